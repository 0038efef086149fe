"""主机/任务注册表

主机按配置文件的位置存放在 global 或 local 两个作用域中, 并有 public/private 之分:
  * 同一作用域内主机名必须唯一
  * 所有 public 主机的名字必须唯一 (不论作用域)
  * private 主机只对同一作用域内定义的任务可见, 可以与其他主机重名
  * 主机名, 任务名, 标签共用一个命名空间
"""

import logging
from typing import Dict, List, Optional, Sequence

from pyessh.core.exceptions import DuplicateNameError, HostNotFoundError
from pyessh.core.models import Host, Registry, Task

logger = logging.getLogger(__name__)


class HostRegistry:
    def __init__(self):
        self._hosts: List[Host] = []
        self._tasks: Dict[str, Task] = {}

    @property
    def hosts(self) -> List[Host]:
        return list(self._hosts)

    @property
    def tasks(self) -> List[Task]:
        return list(self._tasks.values())

    def public_hosts(self) -> List[Host]:
        return [h for h in self._hosts if not h.private]

    def register(self, host: Host) -> Host:
        """注册主机, 名字冲突时抛出 DuplicateNameError"""
        for existing in self._hosts:
            if existing.name != host.name:
                continue
            if existing.registry == host.registry:
                raise DuplicateNameError(host.name, str(host.registry))
            if not existing.private and not host.private:
                raise DuplicateNameError(host.name)

        if not host.private:
            if host.name in self._tasks or host.name in self.all_tags():
                raise DuplicateNameError(host.name)

        public_names = {h.name for h in self.public_hosts()}
        for tag in host.tags:
            if tag in self._tasks or tag in public_names:
                raise DuplicateNameError(tag)
            if tag == host.name and not host.private:
                raise DuplicateNameError(tag)

        self._hosts.append(host)
        logger.debug("registered %s host '%s' (%s)", host.scope, host.name, host.registry)
        return host

    def register_task(self, task: Task) -> Task:
        if task.name in self._tasks:
            raise DuplicateNameError(task.name)
        if task.name in {h.name for h in self.public_hosts()}:
            raise DuplicateNameError(task.name)
        if task.name in self.all_tags():
            raise DuplicateNameError(task.name)

        self._tasks[task.name] = task
        return task

    def get_task(self, name: str) -> Optional[Task]:
        return self._tasks.get(name)

    def by_name(self, name: str, scope: Optional[Registry] = None) -> Optional[Host]:
        """精确查找主机

        不指定 scope 时只查找 public 主机; 指定 scope 时同一作用域内的 private 主机也可见,
        并且优先于其他作用域的同名 public 主机.
        """
        if scope is not None:
            for host in self._hosts:
                if host.name == name and host.registry == scope:
                    return host
        for host in self._hosts:
            if host.name == name and not host.private:
                return host
        return None

    def visible_hosts(self, scope: Optional[Registry] = None) -> List[Host]:
        if scope is None:
            return self.public_hosts()

        local = [h for h in self._hosts if h.registry == scope]
        names = {h.name for h in local}
        others = [
            h
            for h in self._hosts
            if h.registry != scope and not h.private and h.name not in names
        ]
        return local + others

    def resolve(
        self, selectors: Sequence[str], scope: Optional[Registry] = None
    ) -> List[Host]:
        """把主机名/标签选择器展开为主机列表

        先按选择器顺序放入精确匹配的主机, 再放入标签展开的主机 (按主机名排序),
        重复的主机只保留第一次出现.
        """
        visible = self.visible_hosts(scope)
        named: List[Host] = []
        tagged: List[Host] = []

        for selector in selectors:
            host = self.by_name(selector, scope)
            if host is not None:
                named.append(host)
                continue

            matched = [h for h in visible if selector in h.tags]
            if not matched:
                raise HostNotFoundError(selector)
            tagged.extend(matched)

        tagged.sort(key=lambda h: h.name)

        result: List[Host] = []
        seen = set()
        for host in named + tagged:
            if host.name in seen:
                continue
            seen.add(host.name)
            result.append(host)
        return result

    def all_tags(self) -> List[str]:
        return sorted({tag for host in self._hosts for tag in host.tags})

    def config_hosts(self) -> List[Host]:
        """写入 ssh 配置文件的主机: 全部 public 主机, 以及未与 public 主机重名的 private 主机"""
        hosts = self.public_hosts()
        names = {h.name for h in hosts}
        for host in self._hosts:
            if host.private and host.name not in names:
                names.add(host.name)
                hosts.append(host)
        return hosts
