"""命令执行与任务运行"""

from typing import Sequence

from pyessh.config.settings import Settings
from pyessh.core.exceptions import UsageError
from pyessh.core.models import Task
from pyessh.core.registry import HostRegistry
from pyessh.core.runner import Runner


def exec_command(
    registry: HostRegistry,
    settings: Settings,
    filters: Sequence[str],
    args: Sequence[str],
    local: bool = False,
    from_file: bool = False,
) -> int:
    """在 --filter 选中的主机上并行执行一条命令"""
    mode = "local-exec" if local else "exec"
    if not filters:
        raise UsageError(f"{mode} mode requires --filter option.")
    if len(args) != 1:
        raise UsageError(
            f"{mode} mode requires 1 parameter that is the executed command string."
        )

    Runner(registry, settings).run_exec(filters, args[0], local=local, from_file=from_file)
    return 0


def task_command(
    registry: HostRegistry, settings: Settings, task: Task, args: Sequence[str]
) -> int:
    """运行任务, args[0] 是任务名, args[1] 是可选的 payload"""
    if len(args) > 2:
        raise UsageError("too many arguments.")
    payload = args[1] if len(args) == 2 else ""

    Runner(registry, settings).run_task(task, payload)
    return 0
