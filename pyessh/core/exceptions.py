"""异常定义"""

from typing import Optional


class EsshError(Exception):
    """所有 essh 错误的基类, CLI 会将其输出为 `[essh error]`"""

    # 已经写到错误输出的错误, CLI 不再重复输出
    reported = False


class ConfigError(EsshError):
    pass


class DuplicateNameError(ConfigError):
    def __init__(self, name: str, registry: Optional[str] = None):
        if registry:
            message = f"'{name}' is duplicated in the {registry} registry"
        else:
            message = f"'{name}' is duplicated"
        super().__init__(message)
        self.name = name
        self.registry = registry


class HostNotFoundError(EsshError):
    def __init__(self, selector: str):
        super().__init__(f"no hosts matched '{selector}'")
        self.selector = selector


class UsageError(EsshError):
    pass


class HookError(EsshError):
    def __init__(self, kind: str, reason: str):
        super().__init__(f"{kind} hook failed: {reason}")
        self.kind = kind
        self.reason = reason


class AfterDisconnectHookError(HookError):
    """断开连接后的钩子失败, 携带交互会话已经确定的退出码或会话本身的错误"""

    def __init__(
        self,
        kind: str,
        reason: str,
        exit_status: Optional[int],
        session_error: Optional[Exception] = None,
    ):
        super().__init__(kind, reason)
        self.exit_status = exit_status
        self.session_error = session_error

    def __str__(self):
        if self.session_error is not None:
            return f"{super().__str__()} (session failed: {self.session_error})"
        return f"{super().__str__()} (session exit status: {self.exit_status})"


class InvocationError(EsshError):
    pass


class ScriptSourceError(EsshError):
    pass


class PrepareError(EsshError):
    def __init__(self, task: str, reason: str):
        super().__init__(f"prepare of task '{task}' failed: {reason}")
        self.task = task


class RemoteExecError(EsshError):
    """远程/本地脚本以非零状态退出"""

    def __init__(self, host: Optional[str], returncode: int):
        where = host if host else "localhost"
        super().__init__(f"{where}: exit status {returncode}")
        self.host = host
        self.returncode = returncode
