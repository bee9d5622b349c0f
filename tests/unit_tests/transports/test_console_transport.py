"""
ConsoleTransport unit tests.
"""

from __future__ import annotations

import io

import orjson
import pytest

from logweave.errors import QueryUnsupportedError, TransportIOError
from logweave.formatting import LEVEL_COLORS
from logweave.transports import ConsoleTransport


class TestConsoleTransport:
    async def test_plain_line(self) -> None:
        stream = io.StringIO()
        transport = ConsoleTransport(stream=stream)

        await transport.log("info", "abc", {"user": "bob"})

        assert stream.getvalue() == "info: abc user=bob\n"

    async def test_json_line_with_label(self) -> None:
        stream = io.StringIO()
        transport = ConsoleTransport(stream=stream, json=True, label="api")

        await transport.log("warn", "abc")

        assert orjson.loads(stream.getvalue()) == {"level": "warn", "message": "abc", "label": "api"}

    async def test_timestamp_prefix(self) -> None:
        stream = io.StringIO()
        transport = ConsoleTransport(stream=stream, timestamp=lambda: "2024-05-01")

        await transport.log("info", "abc")

        assert stream.getvalue() == "2024-05-01 - info: abc\n"

    async def test_colorize(self) -> None:
        stream = io.StringIO()
        transport = ConsoleTransport(stream=stream, colorize=True)

        await transport.log("error", "boom")

        assert LEVEL_COLORS["error"] in stream.getvalue()

    async def test_defaults_to_stdout(self, capsys) -> None:
        transport = ConsoleTransport()
        await transport.log("info", "to stdout")
        assert "info: to stdout" in capsys.readouterr().out

    async def test_stderr_levels(self, capsys) -> None:
        transport = ConsoleTransport(stderr_levels=["error"])

        await transport.log("error", "bad")
        await transport.log("info", "fine")

        captured = capsys.readouterr()
        assert "error: bad" in captured.err
        assert "error: bad" not in captured.out
        assert "info: fine" in captured.out

    async def test_silent(self) -> None:
        stream = io.StringIO()
        await ConsoleTransport(stream=stream, silent=True).log("info", "abc")
        assert stream.getvalue() == ""

    async def test_closed_stream(self) -> None:
        stream = io.StringIO()
        stream.close()
        with pytest.raises(TransportIOError):
            await ConsoleTransport(stream=stream).log("info", "abc")

    async def test_not_queryable_but_streamable(self) -> None:
        stream = io.StringIO()
        transport = ConsoleTransport(stream=stream)
        tail = transport.stream()

        await transport.log("info", "abc")

        assert (await tail.__anext__())["message"] == "abc"
        with pytest.raises(QueryUnsupportedError):
            await transport.query()
