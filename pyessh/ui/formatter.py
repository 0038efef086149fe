"""主机/标签/任务列表的输出格式化"""

import json
from typing import Any, Dict, List, Optional, TextIO

import click
from rich import box
from rich.console import Console
from rich.table import Table

from pyessh.core.models import Host, Task


class ListFormatter:
    """列表格式化器"""

    def __init__(
        self,
        format_type: Optional[str] = None,
        quiet: bool = False,
        file: Optional[TextIO] = None,
    ):
        self.format_type = (format_type or "table").lower()
        self.quiet = quiet
        self.console = Console(file=file)
        self.file = file

    def _echo(self, text: str):
        click.echo(text, file=self.file)

    def _table(self, *columns: str) -> Table:
        table = Table(box=box.SIMPLE_HEAD, show_header=not self.quiet, pad_edge=False)
        for column in columns:
            table.add_column(column, style="cyan" if column == "NAME" else None)
        return table

    # hosts

    def host_to_dict(self, host: Host) -> Dict[str, Dict[str, Any]]:
        """转换为 {name: {props..., description, hidden, tags}}"""
        values: Dict[str, Any] = dict(host.props)
        values["description"] = host.description
        values["hidden"] = host.hidden
        values["private"] = host.private
        values["registry"] = str(host.registry)
        values["tags"] = list(host.tags)
        return {host.name: values}

    def format_hosts_json(self, hosts: List[Host]) -> str:
        data = [self.host_to_dict(host) for host in hosts]
        if self.format_type == "prettyjson":
            return json.dumps(data, indent=4, ensure_ascii=False)
        return json.dumps(data, ensure_ascii=False)

    def print_hosts(self, hosts: List[Host]):
        if self.format_type in ("json", "prettyjson"):
            self._echo(self.format_hosts_json(hosts))
            return

        visible = [host for host in hosts if not host.hidden]
        if self.quiet:
            for host in visible:
                self._echo(host.name)
            return

        table = self._table("NAME", "DESCRIPTION", "TAGS", "SCOPE")
        for host in visible:
            table.add_row(host.name, host.description, ",".join(host.tags), host.scope)
        self.console.print(table)

    # tags

    def print_tags(self, tags: List[str]):
        if self.quiet:
            for tag in tags:
                self._echo(tag)
            return

        table = self._table("NAME")
        for tag in tags:
            table.add_row(tag)
        self.console.print(table)

    # tasks

    def print_tasks(self, tasks: List[Task]):
        if self.quiet:
            for task in tasks:
                self._echo(task.name)
            return

        table = self._table("NAME", "DESCRIPTION", "ON")
        for task in tasks:
            table.add_row(task.name, task.description, ",".join(task.on))
        self.console.print(table)
