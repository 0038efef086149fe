import io
import threading

from pyessh.core.output import OutputMultiplexer


def make_mux():
    return OutputMultiplexer(stdout=io.StringIO(), stderr=io.StringIO(), color=False)


class TestOutputMultiplexer:
    """测试带前缀的多路输出"""

    def test_prefix(self):
        mux = make_mux()
        mux.pump(io.BytesIO(b"hello\nworld\n"), mux.stdout, "[web01] ")
        assert mux.stdout.getvalue() == "[web01] hello\n[web01] world\n"

    def test_no_prefix(self):
        mux = make_mux()
        mux.pump(io.BytesIO(b"hello\n"), mux.stdout, "")
        assert mux.stdout.getvalue() == "hello\n"

    def test_line_endings(self):
        """CRLF 和末尾没有换行的行都会被完整输出"""
        mux = make_mux()
        mux.pump(io.BytesIO(b"a\r\nb\nc"), mux.stdout, "> ")
        assert mux.stdout.getvalue() == "> a\n> b\n> c\n"

    def test_invalid_utf8(self):
        mux = make_mux()
        mux.pump(io.BytesIO(b"\xff\n"), mux.stdout, "")
        assert mux.stdout.getvalue() == "\ufffd\n"

    def test_error(self):
        mux = make_mux()
        mux.error("web01: exit status 1")
        assert mux.stderr.getvalue() == "[essh error] web01: exit status 1\n"
        assert mux.stdout.getvalue() == ""

    def test_concurrent_lines_are_not_interleaved(self):
        mux = make_mux()
        count = 200
        hosts = [f"host{i}" for i in range(8)]
        threads = []
        for h in hosts:
            source = io.BytesIO("".join(f"{h}-line-{n}\n" for n in range(count)).encode())
            threads.append(
                threading.Thread(target=mux.pump, args=(source, mux.stdout, f"[{h}] "))
            )
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        lines = mux.stdout.getvalue().splitlines()
        assert len(lines) == count * len(hosts)
        for line in lines:
            prefix, _, body = line.partition(" ")
            host = prefix.strip("[]")
            assert body.startswith(f"{host}-line-")

        # 同一主机内的行序保持不变
        for h in hosts:
            own = [line for line in lines if line.startswith(f"[{h}] ")]
            assert own == [f"[{h}] {h}-line-{n}" for n in range(count)]
