import io
import os
import shutil
import stat
import sys

import pytest

from pyessh.config.settings import Settings
from pyessh.core.models import GLOBAL_REGISTRY, LOCAL_REGISTRY, Host
from pyessh.core.registry import HostRegistry

# 模拟 ssh: 去掉 -t/-F 选项, 记录目标主机, 然后像 sshd 一样用 sh -c 执行剩余参数
EXECUTING_SSH = """#!/bin/sh
while [ $# -gt 0 ]; do
  case "$1" in
    -t) shift ;;
    -F) shift 2 ;;
    *) break ;;
  esac
done
FAKE_SSH_HOST="$1"
export FAKE_SSH_HOST
echo "$FAKE_SSH_HOST" >> "$FAKE_SSH_LOG"
shift
exec /bin/sh -c "$*"
"""

# 模拟 ssh: 只记录参数, 以 FAKE_SSH_EXIT 退出
RECORDING_SSH = """#!/bin/sh
for arg in "$@"; do
  printf '%s\\n' "$arg" >> "$FAKE_SSH_LOG"
done
if [ -n "$FAKE_SSH_ORDER" ]; then
  echo ssh >> "$FAKE_SSH_ORDER"
fi
exit ${FAKE_SSH_EXIT:-0}
"""

# 模拟 ssh: 从 -F 指定的配置文件中查出目标主机的 HostName 并记录
RESOLVING_SSH = """#!/bin/sh
while [ "$1" = "-t" ]; do shift; done
config="$2"
host="$3"
awk -v h="$host" '$1 == "Host" { m = ($2 == h) } m && $1 == "HostName" { print $2 }' "$config" >> "$FAKE_SSH_LOG"
"""


posix_only = pytest.mark.skipif(sys.platform == "win32", reason="requires /bin/sh")
requires_bash = pytest.mark.skipif(shutil.which("bash") is None, reason="requires bash")


def _write_script(path, content):
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def ssh_log(tmp_path, monkeypatch):
    log = tmp_path / "ssh.log"
    monkeypatch.setenv("FAKE_SSH_LOG", str(log))
    return log


@pytest.fixture
def executing_ssh(tmp_path, ssh_log):
    return _write_script(tmp_path / "fake-ssh", EXECUTING_SSH)


@pytest.fixture
def recording_ssh(tmp_path, ssh_log):
    return _write_script(tmp_path / "record-ssh", RECORDING_SSH)


@pytest.fixture
def resolving_ssh(tmp_path, ssh_log):
    return _write_script(tmp_path / "resolve-ssh", RESOLVING_SSH)


@pytest.fixture
def make_settings(tmp_path):
    def _make(ssh_command="ssh", no_prefix=False):
        config = tmp_path / "ssh_config"
        config.touch()
        return Settings(
            ssh_config_path=str(config),
            no_prefix=no_prefix,
            ssh_command=str(ssh_command),
            stdout=io.StringIO(),
            stderr=io.StringIO(),
            color=False,
        )

    return _make


@pytest.fixture
def registry() -> HostRegistry:
    """web01/web02 (web), db01 (db) 三台 public 主机"""
    reg = HostRegistry()
    reg.register(Host(name="web01.localhost", props={"HostName": "192.168.0.11"}, tags=["web"]))
    reg.register(Host(name="web02.localhost", props={"HostName": "192.168.0.12"}, tags=["web"]))
    reg.register(Host(name="db01.localhost", props={"HostName": "192.168.0.21"}, tags=["db"]))
    return reg


@pytest.fixture
def scoped_registry() -> HostRegistry:
    reg = HostRegistry()
    reg.register(Host(name="web01", tags=["web"], registry=GLOBAL_REGISTRY))
    reg.register(Host(name="web01", tags=["web"], private=True, registry=LOCAL_REGISTRY))
    reg.register(Host(name="build01", tags=["build"], private=True, registry=LOCAL_REGISTRY))
    return reg


def read_lines(path):
    if not os.path.exists(path):
        return []
    with open(path) as fh:
        return fh.read().splitlines()
