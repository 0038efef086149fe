"""命令行各运行模式的处理函数"""

from .connect import rsync_command, scp_command, ssh_command
from .execute import exec_command, task_command
from .listing import hosts_command, tags_command, tasks_command

__all__ = [
    "ssh_command",
    "scp_command",
    "rsync_command",
    "exec_command",
    "task_command",
    "hosts_command",
    "tags_command",
    "tasks_command",
]
