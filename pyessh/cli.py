"""主命令行接口"""

import click

from pyessh import __version__
from pyessh.commands import (
    exec_command,
    hosts_command,
    rsync_command,
    scp_command,
    ssh_command,
    tags_command,
    task_command,
    tasks_command,
)
from pyessh.config.loader import load_registry
from pyessh.config.settings import Settings
from pyessh.config.ssh_config import render_ssh_config, temporary_ssh_config
from pyessh.core.exceptions import EsshError
from pyessh.core.log import setup_logging

# 未识别的选项和参数原样交给 ssh
CONTEXT_SETTINGS = dict(ignore_unknown_options=True, help_option_names=["--help"])


@click.command(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="essh")
@click.option("--config-file", type=click.Path(), help="只加载指定的配置文件")
@click.option("--debug", is_flag=True, help="输出调试日志")
@click.option("--print", "print_config", is_flag=True, help="打印生成的 ssh 配置")
@click.option("--hosts", "list_hosts", is_flag=True, help="列出主机")
@click.option("--tags", "list_tags", is_flag=True, help="列出标签")
@click.option("--tasks", "list_tasks", is_flag=True, help="列出任务")
@click.option("--quiet", is_flag=True, help="(配合 --hosts/--tags/--tasks) 只显示名字")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "prettyjson"]),
    help="(配合 --hosts) 输出格式",
)
@click.option("--filter", "filters", multiple=True, help="主机名或标签, 可以指定多次")
@click.option("--exec", "exec_mode", is_flag=True, help="在远程主机上并行执行命令")
@click.option("--local-exec", "local_exec_mode", is_flag=True, help="在本地为每个主机并行执行命令")
@click.option("--no-prefix", is_flag=True, help="不输出主机名前缀")
@click.option("--file", "from_file", is_flag=True, help="从文件或 URL 读取命令")
@click.option("--rsync", "rsync_mode", is_flag=True, help="使用 essh 配置运行 rsync")
@click.option("--scp", "scp_mode", is_flag=True, help="使用 essh 配置运行 scp")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(
    ctx,
    config_file,
    debug,
    print_config,
    list_hosts,
    list_tags,
    list_tasks,
    quiet,
    output_format,
    filters,
    exec_mode,
    local_exec_mode,
    no_prefix,
    from_file,
    rsync_mode,
    scp_mode,
    args,
):
    """essh - extended ssh command

    Runs ssh/scp/rsync with hosts defined in the essh configuration, fires
    connection hooks and runs tasks on multiple hosts.
    """
    modes = (print_config, list_hosts, list_tags, list_tasks, exec_mode,
             local_exec_mode, rsync_mode, scp_mode)
    if not args and not any(modes):
        click.echo(ctx.get_help())
        return

    setup_logging(debug)

    try:
        code = _run(
            config_file,
            debug,
            print_config,
            list_hosts,
            list_tags,
            list_tasks,
            quiet,
            output_format,
            filters,
            exec_mode,
            local_exec_mode,
            no_prefix,
            from_file,
            rsync_mode,
            scp_mode,
            list(args),
        )
    except EsshError as ex:
        if not ex.reported:
            click.echo(click.style(f"[essh error] {ex}", fg="red", bold=True), err=True)
        ctx.exit(1)
    ctx.exit(code)


def _run(
    config_file,
    debug,
    print_config,
    list_hosts,
    list_tags,
    list_tasks,
    quiet,
    output_format,
    filters,
    exec_mode,
    local_exec_mode,
    no_prefix,
    from_file,
    rsync_mode,
    scp_mode,
    args,
) -> int:
    registry = load_registry(config_file)

    if print_config:
        click.echo(render_ssh_config(registry.config_hosts()), nl=False)
        return 0
    if list_hosts:
        hosts_command(registry, filters, output_format, quiet)
        return 0
    if list_tags:
        tags_command(registry, quiet)
        return 0
    if list_tasks:
        tasks_command(registry, quiet)
        return 0

    with temporary_ssh_config(registry.config_hosts()) as ssh_config_path:
        settings = Settings(
            ssh_config_path=ssh_config_path, debug=debug, no_prefix=no_prefix
        )

        if exec_mode or local_exec_mode:
            return exec_command(
                registry, settings, filters, args,
                local=local_exec_mode, from_file=from_file,
            )
        if rsync_mode:
            return rsync_command(settings, args)
        if scp_mode:
            return scp_command(settings, args)

        task = registry.get_task(args[0]) if args else None
        if task is not None:
            return task_command(registry, settings, task, args)

        return ssh_command(registry, settings, args)


def main():
    """主入口函数"""
    cli()


if __name__ == "__main__":
    main()
