"""把 (主机, 脚本, 选项) 组装成具体的子进程调用"""

import platform
import shlex
from typing import List, Optional, Sequence, Tuple

from jinja2 import Environment, StrictUndefined, TemplateError

from pyessh.config.settings import Settings
from pyessh.core.exceptions import InvocationError
from pyessh.core.models import DEFAULT_PREFIX, Host, Invocation, Task

# heredoc 分隔符 (参考 laravel/envoy 的做法)
SCRIPT_DELIMITER = "EOF-ESSH-SCRIPT"
PRIVILEGED_DELIMITER = "EOF-ESSH-PRIVILEGED"

HOSTNAME_ENV = "ESSH_HOSTNAME"
PAYLOAD_ENV = "ESSH_PAYLOAD"

_template_env = Environment(undefined=StrictUndefined, autoescape=False)


def local_shell() -> Tuple[str, str]:
    if platform.system() == "Windows":
        return "cmd", "/C"
    return "/bin/sh", "-c"


def render_prefix(template: str, host: Host, task: Optional[Task] = None) -> str:
    """渲染输出前缀模板, 模板可以访问 host 和 task"""
    if not template:
        return ""
    try:
        return _template_env.from_string(template).render(host=host, task=task)
    except TemplateError as ex:
        raise InvocationError(f"invalid prefix template {template!r}: {ex}") from ex


def _heredoc(body: str, delimiter: str) -> str:
    return "<<\\" + delimiter + "\n" + body + "\n" + delimiter


def _ssh_script_argv(
    settings: Settings, host: Host, script: str, tty: bool = False
) -> List[str]:
    argv = [settings.ssh_command]
    if tty:
        argv += ["-t", "-t"]
    argv += ["-F", settings.ssh_config_path, host.name]
    argv += ["bash", "-se", _heredoc(script, SCRIPT_DELIMITER)]
    return argv


def build_remote_exec(settings: Settings, host: Host, command: str) -> Invocation:
    script = f"export {HOSTNAME_ENV}={host.name}\n{command}"
    prefix = "" if settings.no_prefix else render_prefix(DEFAULT_PREFIX, host)
    return Invocation(argv=_ssh_script_argv(settings, host, script), prefix=prefix)


def build_local_exec(settings: Settings, host: Host, command: str) -> Invocation:
    shell, flag = local_shell()
    script = f"export {HOSTNAME_ENV}={host.name}\n{command}"
    prefix = "" if settings.no_prefix else render_prefix(DEFAULT_PREFIX, host)
    return Invocation(argv=[shell, flag, script], prefix=prefix)


def build_remote_task(
    settings: Settings, task: Task, payload: str, host: Host
) -> Invocation:
    # 远程任务对 payload 做 shell 转义, 本地任务不做 (保持兼容)
    env_line = f"export {PAYLOAD_ENV}={shlex.quote(payload)}"
    if task.privileged:
        script = "sudo sudo su - " + _heredoc(
            f" {env_line}\n{task.script}", PRIVILEGED_DELIMITER
        )
    else:
        script = f"{env_line}\n{task.script}"

    prefix = "" if settings.no_prefix else render_prefix(task.prefix, host, task)
    return Invocation(
        argv=_ssh_script_argv(settings, host, script, tty=task.tty), prefix=prefix
    )


def build_local_task(task: Task, payload: str) -> Invocation:
    shell, flag = local_shell()
    script = f"export {PAYLOAD_ENV}={payload}\n{task.script}"
    return Invocation(argv=[shell, flag, script])


def build_ssh(
    settings: Settings, args: Sequence[str], after_connect: Optional[str] = None
) -> Invocation:
    """交互式 ssh; 有 after_connect 时把脚本放在 `exec $SHELL` 之前并强制分配 pty"""
    if after_connect is not None:
        argv = [settings.ssh_command, "-t", "-F", settings.ssh_config_path]
        argv += list(args)
        argv.append(after_connect + "\nexec $SHELL\n")
    else:
        argv = [settings.ssh_command, "-F", settings.ssh_config_path] + list(args)
    return Invocation(argv=argv)


def build_scp(settings: Settings, args: Sequence[str]) -> Invocation:
    return Invocation(
        argv=[settings.scp_command, "-F", settings.ssh_config_path] + list(args)
    )


def build_rsync(settings: Settings, args: Sequence[str]) -> Invocation:
    remote_shell = f"{settings.ssh_command} -F {shlex.quote(settings.ssh_config_path)}"
    return Invocation(argv=[settings.rsync_command, "-e", remote_shell] + list(args))


def build_local_command(command: str) -> Invocation:
    shell, flag = local_shell()
    return Invocation(argv=[shell, flag, command])
