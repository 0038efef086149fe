"""生成 ssh 客户端配置文件"""

import contextlib
import logging
import os
import tempfile
from typing import Iterator, Sequence

from jinja2 import Template

from pyessh.core.models import Host

logger = logging.getLogger(__name__)

HOSTS_TEMPLATE = """\
{% for host in hosts %}Host {{ host.name }}{% for key, value in host.sorted_props() %}
    {{ key }} {{ value }}{% endfor %}

{% endfor %}"""


def render_ssh_config(hosts: Sequence[Host]) -> str:
    return Template(HOSTS_TEMPLATE, keep_trailing_newline=True).render(hosts=hosts)


@contextlib.contextmanager
def temporary_ssh_config(hosts: Sequence[Host]) -> Iterator[str]:
    """写入临时配置文件并返回路径, 退出时删除"""
    fd, path = tempfile.mkstemp(prefix="essh.ssh_config.")
    try:
        with os.fdopen(fd, "w") as file:
            file.write(render_ssh_config(hosts))
        logger.debug("generated config file: %s", path)
        yield path
    finally:
        os.remove(path)
        logger.debug("deleted config file: %s", path)
