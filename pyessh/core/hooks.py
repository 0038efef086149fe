"""交互式连接的钩子生命周期

    Idle -> BeforeHook -> Connected -> AfterConnectHook -> InteractiveShell
         -> Disconnected -> AfterHook

限制: 只有当参数恰好为一个且能解析为已知主机时才会触发钩子, 其他情况直接透传给 ssh.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence

from pyessh.config.settings import Settings
from pyessh.core.exceptions import AfterDisconnectHookError, EsshError, HookError
from pyessh.core.invocation import build_local_command, build_ssh
from pyessh.core.log import get_host_logger
from pyessh.core.models import Host, HookAction, HookKind
from pyessh.core.process import run_foreground
from pyessh.core.registry import HostRegistry

logger = logging.getLogger(__name__)


class HookState(Enum):
    IDLE = "idle"
    BEFORE_HOOK = "before_hook"
    CONNECTED = "connected"
    AFTER_CONNECT_HOOK = "after_connect_hook"
    INTERACTIVE_SHELL = "interactive_shell"
    DISCONNECTED = "disconnected"
    AFTER_HOOK = "after_hook"


def run_hook(kind: HookKind, action: HookAction):
    """执行一个钩子, 失败时抛出 HookError"""
    if action.is_script:
        returncode = run_foreground(build_local_command(action.script))
        if returncode != 0:
            raise HookError(kind.value, f"exit status {returncode}")
        return

    try:
        action.callback()
    except EsshError:
        raise
    except Exception as ex:
        raise HookError(kind.value, str(ex)) from ex


class HookLifecycle:
    def __init__(self, registry: HostRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings
        self.state = HookState.IDLE
        self.history: List[HookState] = [HookState.IDLE]

    def _enter(self, state: HookState):
        self.state = state
        self.history.append(state)
        logger.debug("hook lifecycle: %s", state.value)

    def hook_target(self, args: Sequence[str]) -> Optional[Host]:
        if len(args) != 1:
            return None
        return self.registry.by_name(args[0])

    def connect(self, args: Sequence[str]) -> int:
        """运行 ssh, 返回 ssh 的退出码"""
        host = self.hook_target(args)
        if host is None:
            # 没有钩子目标时直接透传, 不进入状态机
            return run_foreground(build_ssh(self.settings, args))

        host_logger = get_host_logger(host)

        before = host.hook(HookKind.BEFORE_CONNECT)
        if before is not None:
            self._enter(HookState.BEFORE_HOOK)
            host_logger.debug("run before_connect hook")
            run_hook(HookKind.BEFORE_CONNECT, before)

        returncode = None
        session_error = None
        try:
            after_connect = host.hook(HookKind.AFTER_CONNECT)
            invocation = build_ssh(
                self.settings,
                args,
                after_connect.script if after_connect is not None else None,
            )
            returncode = self._session(invocation, after_connect is not None)
            return returncode
        except EsshError as ex:
            session_error = ex
            raise
        finally:
            after = host.hook(HookKind.AFTER_DISCONNECT)
            if after is not None:
                self._enter(HookState.AFTER_HOOK)
                host_logger.debug("run after_disconnect hook")
                try:
                    run_hook(HookKind.AFTER_DISCONNECT, after)
                except HookError as ex:
                    raise AfterDisconnectHookError(
                        ex.kind, ex.reason, returncode, session_error
                    ) from ex

    def _session(self, invocation, after_connect: bool = False) -> int:
        self._enter(HookState.CONNECTED)
        if after_connect:
            self._enter(HookState.AFTER_CONNECT_HOOK)
        self._enter(HookState.INTERACTIVE_SHELL)
        returncode = run_foreground(invocation)
        self._enter(HookState.DISCONNECTED)
        return returncode
