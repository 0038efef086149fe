"""配置加载

按顺序加载系统级, 用户级 (global 作用域) 以及当前目录 (local 作用域) 的 YAML 配置,
求值为 Host/Task 模型并注册到 HostRegistry.
"""

import importlib
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import marshmallow
import marshmallow_dataclass
import yaml

from pyessh.core.exceptions import ConfigError
from pyessh.core.models import (
    DEFAULT_PREFIX,
    GLOBAL_REGISTRY,
    LOCAL_REGISTRY,
    Host,
    Registry,
    Task,
)
from pyessh.core.registry import HostRegistry

logger = logging.getLogger(__name__)

# 用于存储 essh 相关文件的主目录
MAIN_DIR = os.path.join(os.path.expanduser("~"), ".essh")

SYSTEM_WIDE_CONFIG_FILE = "/etc/essh/config.yaml"
PER_USER_CONFIG_FILE = os.path.join(MAIN_DIR, "config.yaml")
CURRENT_DIR_CONFIG_FILE = ".essh.yaml"


@dataclass
class HostSpec:
    description: str = ""
    props: Dict[str, Any] = field(default_factory=dict)
    hooks: Dict[str, Any] = field(default_factory=dict)
    tags: List[str] = field(default_factory=list)
    hidden: bool = False
    private: bool = False


@dataclass
class TaskSpec:
    description: str = ""
    on: List[str] = field(default_factory=list)
    script: str = ""
    parallel: bool = False
    privileged: bool = False
    tty: bool = False
    prefix: str = DEFAULT_PREFIX
    prepare: Optional[str] = None


HostSchema = marshmallow_dataclass.class_schema(HostSpec)
TaskSchema = marshmallow_dataclass.class_schema(TaskSpec)


def import_callable(reference: str) -> Callable:
    """解析 `package.module:attr` 形式的引用"""
    module_name, sep, attr = reference.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"invalid callable reference '{reference}', expected 'module:function'")
    try:
        target = importlib.import_module(module_name)
        for part in attr.split("."):
            target = getattr(target, part)
    except (ImportError, AttributeError) as ex:
        raise ConfigError(f"cannot import '{reference}': {ex}") from ex
    if not callable(target):
        raise ConfigError(f"'{reference}' is not callable")
    return target


def _hook_value(host: str, kind: str, value: Any):
    if isinstance(value, dict):
        if set(value) != {"call"}:
            raise ConfigError(f"host '{host}': hook '{kind}' must be a script or {{call: module:function}}")
        return import_callable(value["call"])
    return value


def build_host(name: str, data: Optional[Dict], registry: Registry) -> Host:
    try:
        spec = HostSchema().load(data or {})
    except marshmallow.ValidationError as ex:
        raise ConfigError(f"host '{name}': {ex.messages}") from ex

    return Host(
        name=str(name),
        description=spec.description,
        props=spec.props,
        hooks={k: _hook_value(name, k, v) for k, v in spec.hooks.items()},
        tags=spec.tags,
        hidden=spec.hidden,
        private=spec.private,
        registry=registry,
    )


def build_task(name: str, data: Optional[Dict], registry: Registry) -> Task:
    data = dict(data or {})
    # YAML 1.1 会把裸写的 on 解析为布尔值 True
    if True in data:
        data["on"] = data.pop(True)
    if isinstance(data.get("on"), str):
        data["on"] = [data["on"]]

    try:
        spec = TaskSchema().load(data)
    except marshmallow.ValidationError as ex:
        raise ConfigError(f"task '{name}': {ex.messages}") from ex

    return Task(
        name=str(name),
        description=spec.description,
        on=spec.on,
        script=spec.script,
        parallel=spec.parallel,
        privileged=spec.privileged,
        tty=spec.tty,
        prefix=spec.prefix,
        prepare=import_callable(spec.prepare) if spec.prepare else None,
        registry=registry,
    )


def load_document(path: Path) -> Dict:
    try:
        with open(path) as file:
            document = yaml.safe_load(file)
    except yaml.YAMLError as ex:
        raise ConfigError(f"failed to parse {path}: {ex}") from ex

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigError(f"{path}: top level must be a mapping")
    unknown = set(document) - {"hosts", "tasks"}
    if unknown:
        raise ConfigError(f"{path}: unknown keys {sorted(map(str, unknown))}")
    return document


def load_into(registry: HostRegistry, path: Path, scope: Registry):
    document = load_document(path)
    for name, data in (document.get("hosts") or {}).items():
        registry.register(build_host(name, data, scope))
    for name, data in (document.get("tasks") or {}).items():
        registry.register_task(build_task(name, data, scope))
    logger.debug("loaded config file: %s", path)


def config_files(config_file: Optional[str] = None) -> List[Tuple[Path, Registry]]:
    if config_file:
        path = Path(config_file)
        if not path.exists():
            raise ConfigError(f"config file '{config_file}' does not exist")
        return [(path, LOCAL_REGISTRY)]

    candidates = [
        (Path(SYSTEM_WIDE_CONFIG_FILE), GLOBAL_REGISTRY),
        (Path(PER_USER_CONFIG_FILE), GLOBAL_REGISTRY),
        (Path.cwd() / CURRENT_DIR_CONFIG_FILE, LOCAL_REGISTRY),
    ]
    return [(path, scope) for path, scope in candidates if path.exists()]


def load_registry(config_file: Optional[str] = None) -> HostRegistry:
    registry = HostRegistry()
    for path, scope in config_files(config_file):
        load_into(registry, path, scope)
    return registry
