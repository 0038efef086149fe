"""ssh/scp/rsync 透传"""

import logging
from typing import Sequence

from pyessh.config.settings import Settings
from pyessh.core.exceptions import UsageError
from pyessh.core.hooks import HookLifecycle
from pyessh.core.invocation import build_rsync, build_scp
from pyessh.core.process import run_foreground
from pyessh.core.registry import HostRegistry

logger = logging.getLogger(__name__)


def ssh_command(registry: HostRegistry, settings: Settings, args: Sequence[str]) -> int:
    return HookLifecycle(registry, settings).connect(args)


def scp_command(settings: Settings, args: Sequence[str]) -> int:
    logger.debug("use scp mode.")
    if len(args) < 2:
        raise UsageError("scp mode requires 2 parameters at least.")
    return run_foreground(build_scp(settings, args))


def rsync_command(settings: Settings, args: Sequence[str]) -> int:
    logger.debug("use rsync mode.")
    if len(args) < 1:
        raise UsageError("rsync mode requires 1 parameters at least.")
    return run_foreground(build_rsync(settings, args))
