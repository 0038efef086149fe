"""运行时设置"""

import sys
from dataclasses import dataclass, field
from typing import Optional, TextIO


@dataclass
class Settings:
    """一次 essh 调用的运行参数, 由 CLI 构造后显式传入执行引擎"""

    ssh_config_path: str
    debug: bool = False
    no_prefix: bool = False
    ssh_command: str = "ssh"
    scp_command: str = "scp"
    rsync_command: str = "rsync"
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    # None 表示由 click 根据终端自动判断
    color: Optional[bool] = None
