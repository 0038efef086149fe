"""多路输出

多个并发子进程的 stdout/stderr 按行读取, 每一行在共享锁内带前缀写出,
保证不同主机的输出不会在一行之内交错. 不同主机之间的行序不做保证.
"""

import subprocess
import sys
import threading
from typing import IO, List, Optional, TextIO

import click


def _decode_line(raw: bytes) -> str:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
    if raw.endswith(b"\r"):
        raw = raw[:-1]
    return raw.decode("utf-8", errors="replace")


class OutputMultiplexer:
    """一次 exec/task 调用内所有 worker 共享的输出写入器"""

    def __init__(
        self,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        color: Optional[bool] = None,
    ):
        self.stdout = stdout or sys.stdout
        self.stderr = stderr or sys.stderr
        self.color = color
        self._lock = threading.Lock()

    def write_line(self, dest: TextIO, prefix: str, line: str):
        with self._lock:
            if prefix:
                styled = click.style(prefix, fg="cyan", bold=True)
                click.echo(f"{styled}{line}", file=dest, color=self.color)
            else:
                click.echo(line, file=dest, color=self.color)

    def error(self, message):
        with self._lock:
            click.echo(
                click.style(f"[essh error] {message}", fg="red", bold=True),
                file=self.stderr,
                color=self.color,
            )

    def pump(self, source: IO[bytes], dest: TextIO, prefix: str):
        """逐行读取 source 直到 EOF"""
        try:
            for raw in iter(source.readline, b""):
                self.write_line(dest, prefix, _decode_line(raw))
        finally:
            source.close()

    def attach(self, process: subprocess.Popen, prefix: str) -> List[threading.Thread]:
        """为子进程的 stdout 和 stderr 各启动一个读取线程"""
        readers = []
        for source, dest in ((process.stdout, self.stdout), (process.stderr, self.stderr)):
            reader = threading.Thread(
                target=self.pump, args=(source, dest, prefix), daemon=True
            )
            reader.start()
            readers.append(reader)
        return readers
