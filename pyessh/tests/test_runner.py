import pytest

from conftest import posix_only, read_lines, requires_bash
from pyessh.core.exceptions import (
    HostNotFoundError,
    PrepareError,
    RemoteExecError,
    UsageError,
)
from pyessh.core.models import GLOBAL_REGISTRY, LOCAL_REGISTRY, Host, Task
from pyessh.core.registry import HostRegistry
from pyessh.core.runner import Runner

pytestmark = posix_only

FAIL_ON_WEB01 = 'if [ "$ESSH_HOSTNAME" = web01.localhost ]; then echo bad >&2; exit 3; fi; echo ok'


def output_lines(settings):
    return settings.stdout.getvalue().splitlines()


class TestRunExec:
    """测试 --exec/--local-exec"""

    def test_requires_selectors(self, registry, make_settings):
        with pytest.raises(UsageError):
            Runner(registry, make_settings()).run_exec([], "uptime")

    def test_unknown_selector(self, registry, make_settings):
        with pytest.raises(HostNotFoundError):
            Runner(registry, make_settings()).run_exec(["nothing"], "uptime", local=True)

    def test_local_exec(self, registry, make_settings):
        settings = make_settings()
        Runner(registry, settings).run_exec(["web"], "echo hello $ESSH_HOSTNAME", local=True)
        assert sorted(output_lines(settings)) == [
            "[web01.localhost] hello web01.localhost",
            "[web02.localhost] hello web02.localhost",
        ]

    def test_local_exec_no_prefix(self, registry, make_settings):
        settings = make_settings(no_prefix=True)
        Runner(registry, settings).run_exec(["db"], "echo hello", local=True)
        assert output_lines(settings) == ["hello"]

    def test_stderr_is_prefixed(self, registry, make_settings):
        settings = make_settings()
        Runner(registry, settings).run_exec(["db"], "echo oops >&2", local=True)
        assert settings.stderr.getvalue() == "[db01.localhost] oops\n"

    def test_parallel_lines_stay_whole(self, registry, make_settings):
        settings = make_settings()
        command = "for i in 1 2 3; do echo line$i; sleep 0.05; done"
        Runner(registry, settings).run_exec(
            ["web", "db01.localhost"], command, local=True
        )

        lines = output_lines(settings)
        assert len(lines) == 9
        for name in ("web01.localhost", "web02.localhost", "db01.localhost"):
            own = [line for line in lines if line.startswith(f"[{name}] ")]
            assert own == [f"[{name}] line1", f"[{name}] line2", f"[{name}] line3"]

    def test_failure_is_reported_after_all_hosts(self, registry, make_settings):
        settings = make_settings()
        with pytest.raises(RemoteExecError) as excinfo:
            Runner(registry, settings).run_exec(["web"], FAIL_ON_WEB01, local=True)

        assert excinfo.value.host == "web01.localhost"
        assert excinfo.value.returncode == 3
        assert excinfo.value.reported
        assert output_lines(settings) == ["[web02.localhost] ok"]
        errors = settings.stderr.getvalue().splitlines()
        assert "[web01.localhost] bad" in errors
        assert "[essh error] web01.localhost: exit status 3" in errors

    def test_first_failure_in_resolution_order(self, registry, make_settings):
        settings = make_settings()
        with pytest.raises(RemoteExecError) as excinfo:
            Runner(registry, settings).run_exec(
                ["web02.localhost", "web01.localhost"], "exit 1", local=True
            )
        assert excinfo.value.host == "web02.localhost"
        assert settings.stderr.getvalue().count("[essh error]") == 2

    def test_from_file(self, registry, make_settings, tmp_path):
        script = tmp_path / "script.sh"
        script.write_text("echo from file\n")
        settings = make_settings()
        Runner(registry, settings).run_exec(["db"], str(script), local=True, from_file=True)
        assert output_lines(settings) == ["[db01.localhost] from file"]

    @requires_bash
    def test_remote_exec(self, registry, make_settings, executing_ssh, ssh_log):
        settings = make_settings(ssh_command=executing_ssh)
        Runner(registry, settings).run_exec(["web"], "echo remote $ESSH_HOSTNAME")

        assert sorted(output_lines(settings)) == [
            "[web01.localhost] remote web01.localhost",
            "[web02.localhost] remote web02.localhost",
        ]
        assert sorted(read_lines(ssh_log)) == ["web01.localhost", "web02.localhost"]


@requires_bash
class TestRunTask:
    """测试任务运行"""

    def test_sequential_stops_at_first_failure(self, registry, make_settings, executing_ssh, ssh_log):
        settings = make_settings(ssh_command=executing_ssh)
        task = Task(
            name="deploy",
            on=["web01.localhost", "web02.localhost", "db01.localhost"],
            script='if [ "$FAKE_SSH_HOST" = web02.localhost ]; then exit 4; fi\necho done',
        )

        with pytest.raises(RemoteExecError) as excinfo:
            Runner(registry, settings).run_task(task)

        assert excinfo.value.host == "web02.localhost"
        assert excinfo.value.returncode == 4
        assert not excinfo.value.reported
        assert read_lines(ssh_log) == ["web01.localhost", "web02.localhost"]
        assert output_lines(settings) == ["[web01.localhost] done"]

    def test_parallel_touches_every_host(self, registry, make_settings, executing_ssh, ssh_log):
        settings = make_settings(ssh_command=executing_ssh)
        task = Task(
            name="deploy",
            on=["web", "db"],
            parallel=True,
            script='if [ "$FAKE_SSH_HOST" = web02.localhost ]; then exit 4; fi\necho done',
        )

        with pytest.raises(RemoteExecError) as excinfo:
            Runner(registry, settings).run_task(task)

        assert excinfo.value.host == "web02.localhost"
        assert sorted(read_lines(ssh_log)) == [
            "db01.localhost",
            "web01.localhost",
            "web02.localhost",
        ]
        assert sorted(output_lines(settings)) == [
            "[db01.localhost] done",
            "[web01.localhost] done",
        ]

    def test_payload(self, registry, make_settings, executing_ssh):
        settings = make_settings(ssh_command=executing_ssh)
        task = Task(name="greet", on=["db"], script='echo "payload=$ESSH_PAYLOAD"')

        Runner(registry, settings).run_task(task, "it's me")
        assert output_lines(settings) == ["[db01.localhost] payload=it's me"]

    def test_prepare_rewrites_payload(self, registry, make_settings, executing_ssh):
        def prepare(context):
            context.payload = context.payload.upper()

        settings = make_settings(ssh_command=executing_ssh)
        task = Task(name="greet", on=["db"], script="echo $ESSH_PAYLOAD", prepare=prepare)

        Runner(registry, settings).run_task(task, "hello")
        assert output_lines(settings) == ["[db01.localhost] HELLO"]

    def test_prepare_failure_touches_no_host(self, registry, make_settings, executing_ssh, ssh_log):
        def prepare(context):
            raise RuntimeError("not ready")

        task = Task(name="greet", on=["web"], script="echo hi", prepare=prepare)
        with pytest.raises(PrepareError) as excinfo:
            Runner(registry, make_settings(ssh_command=executing_ssh)).run_task(task)

        assert "not ready" in str(excinfo.value)
        assert read_lines(ssh_log) == []

    def test_custom_prefix(self, registry, make_settings, executing_ssh):
        settings = make_settings(ssh_command=executing_ssh)
        task = Task(name="greet", on=["db"], script="echo hi", prefix="{{ task.name }}|{{ host.name }}: ")

        Runner(registry, settings).run_task(task)
        assert output_lines(settings) == ["greet|db01.localhost: hi"]


class TestRunLocalTask:
    """没有 on 的任务在本地执行"""

    def test_local_task(self, registry, make_settings, tmp_path):
        out = tmp_path / "out.txt"
        task = Task(name="build", script=f"echo $ESSH_PAYLOAD > {out}")

        Runner(registry, make_settings()).run_task(task, "release")
        assert read_lines(out) == ["release"]

    def test_local_task_failure(self, registry, make_settings):
        task = Task(name="build", script="exit 2")
        with pytest.raises(RemoteExecError) as excinfo:
            Runner(registry, make_settings()).run_task(task)
        assert excinfo.value.host is None
        assert excinfo.value.returncode == 2
        assert str(excinfo.value) == "localhost: exit status 2"


class TestTaskSshConfig:
    """任务使用按作用域生成的 ssh 配置"""

    @pytest.fixture
    def shadowed(self):
        reg = HostRegistry()
        reg.register(Host(name="web01", props={"HostName": "1.1.1.1"}, registry=GLOBAL_REGISTRY))
        reg.register(Host(
            name="web01", props={"HostName": "2.2.2.2"}, private=True, registry=LOCAL_REGISTRY,
        ))
        reg.register(Host(name="db01", props={"HostName": "3.3.3.3"}, registry=GLOBAL_REGISTRY))
        return reg

    def test_private_host_shadowing_public(self, shadowed, make_settings, resolving_ssh, ssh_log):
        task = Task(name="deploy", on=["web01", "db01"], script="true", registry=LOCAL_REGISTRY)
        Runner(shadowed, make_settings(ssh_command=resolving_ssh)).run_task(task)
        assert read_lines(ssh_log) == ["2.2.2.2", "3.3.3.3"]

    def test_global_task_sees_public_host(self, shadowed, make_settings, resolving_ssh, ssh_log):
        task = Task(name="deploy", on=["web01"], script="true", registry=GLOBAL_REGISTRY)
        Runner(shadowed, make_settings(ssh_command=resolving_ssh)).run_task(task)
        assert read_lines(ssh_log) == ["1.1.1.1"]

    def test_private_hosts_with_same_name_in_each_registry(self, make_settings, resolving_ssh, ssh_log):
        reg = HostRegistry()
        reg.register(Host(name="build01", props={"HostName": "10.0.0.1"}, private=True, registry=GLOBAL_REGISTRY))
        reg.register(Host(name="build01", props={"HostName": "10.0.0.2"}, private=True, registry=LOCAL_REGISTRY))
        runner = Runner(reg, make_settings(ssh_command=resolving_ssh))

        runner.run_task(Task(name="a", on=["build01"], script="true", registry=GLOBAL_REGISTRY))
        runner.run_task(Task(name="b", on=["build01"], script="true", registry=LOCAL_REGISTRY))
        assert read_lines(ssh_log) == ["10.0.0.1", "10.0.0.2"]
