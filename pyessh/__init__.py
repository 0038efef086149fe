"""pyessh - extended ssh command with hooks and tasks"""

__version__ = "1.0.0"
__author__ = "pyessh developers"

from .core.models import (
    ExecutionContext,
    HookAction,
    HookKind,
    Host,
    Invocation,
    Registry,
    Task,
)
from .core.registry import HostRegistry
from .core.hooks import HookLifecycle, HookState
from .core.output import OutputMultiplexer
from .core.runner import Runner
from .config.settings import Settings

__all__ = [
    "Host",
    "Task",
    "Registry",
    "HookKind",
    "HookAction",
    "ExecutionContext",
    "Invocation",
    "HostRegistry",
    "HookLifecycle",
    "HookState",
    "OutputMultiplexer",
    "Runner",
    "Settings",
]
