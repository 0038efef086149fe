"""任务/命令执行器

并行模式下所有 worker 先全部启动再等待; 任何一个主机失败都会写入共享的错误输出,
所有 worker 结束后按解析顺序抛出第一个失败. 没有取消机制, 已启动的兄弟进程会运行到结束.
顺序模式下遇到第一个失败立即返回, 不再触碰后续主机.
"""

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence, Tuple

from pyessh.config.settings import Settings
from pyessh.config.ssh_config import temporary_ssh_config
from pyessh.core.exceptions import EsshError, PrepareError, RemoteExecError, UsageError
from pyessh.core.invocation import (
    build_local_exec,
    build_local_task,
    build_remote_exec,
    build_remote_task,
)
from pyessh.core.models import ExecutionContext, Host, Invocation, Task
from pyessh.core.output import OutputMultiplexer
from pyessh.core.process import run_foreground, spawn_piped
from pyessh.core.registry import HostRegistry
from pyessh.core.script_source import load_script

logger = logging.getLogger(__name__)

Job = Tuple[Host, Invocation]


class Runner:
    def __init__(self, registry: HostRegistry, settings: Settings):
        self.registry = registry
        self.settings = settings

    def _multiplexer(self) -> OutputMultiplexer:
        return OutputMultiplexer(
            stdout=self.settings.stdout,
            stderr=self.settings.stderr,
            color=self.settings.color,
        )

    # ad-hoc exec

    def run_exec(
        self,
        selectors: Sequence[str],
        command: str,
        local: bool = False,
        from_file: bool = False,
    ):
        """在选定主机上并行执行命令 (远程或本地)"""
        mode = "local-exec" if local else "exec"
        if not selectors:
            raise UsageError(f"{mode} mode requires --filter option.")

        hosts = self.registry.resolve(selectors)
        logger.debug("target hosts: %s", ", ".join(h.name for h in hosts))

        if from_file:
            command = load_script(command)

        build = build_local_exec if local else build_remote_exec
        jobs = [(host, build(self.settings, host, command)) for host in hosts]
        self._run_parallel(jobs, self._multiplexer())

    # task

    def run_task(self, task: Task, payload: str = ""):
        logger.debug("run task: %s", task.name)

        if task.prepare is not None:
            logger.debug("run prepare function.")
            context = ExecutionContext(task=task, payload=payload)
            try:
                task.prepare(context)
            except EsshError:
                raise
            except Exception as ex:
                raise PrepareError(task.name, str(ex)) from ex
            payload = context.payload

        if task.is_local:
            invocation = build_local_task(task, payload)
            returncode = run_foreground(invocation)
            if returncode != 0:
                raise RemoteExecError(None, returncode)
            return

        hosts = self.registry.resolve(task.on, scope=task.registry)
        logger.debug("target hosts: %s", ", ".join(h.name for h in hosts))

        # private 主机可能与 public 主机重名, 按任务作用域单独生成 ssh 配置
        scoped_hosts = self.registry.visible_hosts(task.registry)
        with temporary_ssh_config(scoped_hosts) as ssh_config_path:
            settings = dataclasses.replace(self.settings, ssh_config_path=ssh_config_path)
            jobs = [
                (host, build_remote_task(settings, task, payload, host))
                for host in hosts
            ]
            mux = self._multiplexer()
            if task.parallel:
                self._run_parallel(jobs, mux)
            else:
                for host, invocation in jobs:
                    self._run_streamed(host, invocation, mux)

    # workers

    def _run_streamed(self, host: Optional[Host], invocation: Invocation, mux: OutputMultiplexer):
        process = spawn_piped(invocation)
        readers = mux.attach(process, invocation.prefix)
        returncode = process.wait()
        for reader in readers:
            reader.join()
        if returncode != 0:
            raise RemoteExecError(host.name if host else None, returncode)

    def _run_parallel(self, jobs: List[Job], mux: OutputMultiplexer):
        if not jobs:
            return

        order = {host.name: index for index, (host, _) in enumerate(jobs)}
        failures: List[Tuple[Host, EsshError]] = []

        with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
            futures = {
                executor.submit(self._run_streamed, host, invocation, mux): host
                for host, invocation in jobs
            }
            for future in as_completed(futures):
                ex = future.exception()
                if ex is None:
                    continue
                if not isinstance(ex, EsshError):
                    raise ex
                mux.error(ex)
                ex.reported = True
                failures.append((futures[future], ex))

        if failures:
            failures.sort(key=lambda failure: order[failure[0].name])
            raise failures[0][1]
