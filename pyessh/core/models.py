from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from pyessh.core.exceptions import ConfigError

# 输出前缀的默认模板 (Jinja2)
DEFAULT_PREFIX = "[{{ host.name }}] "


class HookKind(Enum):
    BEFORE_CONNECT = "before_connect"
    AFTER_CONNECT = "after_connect"
    AFTER_DISCONNECT = "after_disconnect"
    # 已废弃的别名
    BEFORE = "before"
    AFTER = "after"


# 钩子按固定优先级回退, 不依赖字典的遍历顺序
HOOK_FALLBACKS: Dict[HookKind, Tuple[HookKind, ...]] = {
    HookKind.BEFORE_CONNECT: (HookKind.BEFORE_CONNECT, HookKind.BEFORE),
    HookKind.AFTER_CONNECT: (HookKind.AFTER_CONNECT,),
    HookKind.AFTER_DISCONNECT: (HookKind.AFTER_DISCONNECT, HookKind.AFTER),
}


class HookActionKind(Enum):
    SCRIPT = "script"
    CALLBACK = "callback"


@dataclass(frozen=True)
class HookAction:
    """钩子动作: Script(shell 脚本) 或 Callback(Python 可调用对象)"""

    kind: HookActionKind
    script: Optional[str] = None
    callback: Optional[Callable[[], None]] = None

    @classmethod
    def of(cls, value) -> "HookAction":
        """在构造时完成类型分派, 非法类型直接报错"""
        if isinstance(value, HookAction):
            return value
        if isinstance(value, str):
            return cls(kind=HookActionKind.SCRIPT, script=value)
        if callable(value):
            return cls(kind=HookActionKind.CALLBACK, callback=value)
        raise ConfigError(f"invalid hook: {value!r}")

    @property
    def is_script(self) -> bool:
        return self.kind == HookActionKind.SCRIPT


@dataclass(frozen=True)
class Registry:
    """配置的作用域: global 或 local"""

    name: str

    def __str__(self):
        return self.name


GLOBAL_REGISTRY = Registry("global")
LOCAL_REGISTRY = Registry("local")


@dataclass
class Host:
    """主机模型, 配置求值后只读"""

    name: str
    description: str = ""
    props: Dict[str, str] = field(default_factory=dict)
    hooks: Dict[HookKind, HookAction] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    hidden: bool = False
    private: bool = False
    registry: Registry = GLOBAL_REGISTRY

    def __post_init__(self):
        if not self.name:
            raise ConfigError("host name must not be empty")

        hooks = {}
        for kind, action in self.hooks.items():
            try:
                kind = HookKind(kind)
            except ValueError:
                raise ConfigError(f"host '{self.name}' has an unknown hook '{kind}'")
            hooks[kind] = HookAction.of(action)
        self.hooks = hooks

        # after_connect 会被拼接进远程会话, 只能是脚本
        after_connect = self.hooks.get(HookKind.AFTER_CONNECT)
        if after_connect is not None and not after_connect.is_script:
            raise ConfigError(
                f"host '{self.name}': after_connect hook must be a script"
            )

        self.props = {str(k): str(v) for k, v in self.props.items()}

    def hook(self, kind: HookKind) -> Optional[HookAction]:
        for candidate in HOOK_FALLBACKS.get(kind, (kind,)):
            action = self.hooks.get(candidate)
            if action is not None:
                return action
        return None

    def sorted_props(self) -> List[Tuple[str, str]]:
        return sorted(self.props.items())

    @property
    def scope(self) -> str:
        return "private" if self.private else "public"

    def description_or_default(self) -> str:
        return self.description or f"{self.name} host"


@dataclass
class Task:
    """任务模型"""

    name: str
    description: str = ""
    on: List[str] = field(default_factory=list)
    script: str = ""
    parallel: bool = False
    privileged: bool = False
    tty: bool = False
    prefix: str = DEFAULT_PREFIX
    prepare: Optional[Callable[["ExecutionContext"], None]] = None
    registry: Registry = GLOBAL_REGISTRY

    def __post_init__(self):
        if not self.name:
            raise ConfigError("task name must not be empty")
        if self.prepare is not None and not callable(self.prepare):
            raise ConfigError(f"task '{self.name}': prepare must be callable")

    @property
    def is_local(self) -> bool:
        return not self.on


@dataclass
class ExecutionContext:
    """单次任务运行的上下文, prepare 可以改写 payload"""

    task: Task
    payload: str = ""


@dataclass
class Invocation:
    """一次子进程调用: 参数向量和输出前缀"""

    argv: List[str]
    prefix: str = ""
