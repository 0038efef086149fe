from typing import Optional, Sequence

from pyessh.core.registry import HostRegistry
from pyessh.ui.formatter import ListFormatter


def hosts_command(
    registry: HostRegistry,
    filters: Sequence[str],
    output_format: Optional[str] = None,
    quiet: bool = False,
):
    hosts = registry.resolve(filters) if filters else registry.hosts
    ListFormatter(output_format, quiet).print_hosts(hosts)


def tags_command(registry: HostRegistry, quiet: bool = False):
    ListFormatter(quiet=quiet).print_tags(registry.all_tags())


def tasks_command(registry: HostRegistry, quiet: bool = False):
    ListFormatter(quiet=quiet).print_tasks(registry.tasks)
