import logging
import subprocess

from pyessh.core.exceptions import InvocationError
from pyessh.core.models import Invocation

logger = logging.getLogger(__name__)


def run_foreground(invocation: Invocation) -> int:
    """直接继承当前进程的 stdin/stdout/stderr 运行, 返回退出码"""
    logger.debug("real command: %s", invocation.argv)
    try:
        return subprocess.call(invocation.argv)
    except OSError as ex:
        raise InvocationError(f"failed to run '{invocation.argv[0]}': {ex}") from ex


def spawn_piped(invocation: Invocation) -> subprocess.Popen:
    """启动子进程, stdout/stderr 通过管道交给多路输出读取"""
    logger.debug("real command: %s", invocation.argv)
    try:
        return subprocess.Popen(
            invocation.argv, stdout=subprocess.PIPE, stderr=subprocess.PIPE
        )
    except OSError as ex:
        raise InvocationError(f"failed to run '{invocation.argv[0]}': {ex}") from ex
