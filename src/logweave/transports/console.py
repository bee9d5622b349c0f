"""
Console transport: writes every entry to a text stream.
"""

from __future__ import annotations

import sys
from typing import Any, Iterable, Mapping, Optional, TextIO

from ..errors import TransportIOError
from .base import Transport


class ConsoleTransport(Transport):
    """Standard I/O transport.

    Args:
        stream: Output stream (default: stdout, resolved at write time).
        stderr_levels: Levels routed to stderr instead of ``stream``.
    """

    name = "console"
    supports_stream = True

    def __init__(
        self,
        *,
        stream: Optional[TextIO] = None,
        stderr_levels: Iterable[str] = (),
        **options: Any,
    ):
        options.setdefault("json", False)
        options.setdefault("timestamp", False)
        super().__init__(**options)
        self._stream = stream
        self.stderr_levels = frozenset(stderr_levels)

    def _target(self, level: str) -> TextIO:
        if level in self.stderr_levels:
            return sys.stderr
        return self._stream or sys.stdout

    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        if self.silent:
            return

        entry = self.build_entry(level, message, metadata)
        output = self.render(entry)
        target = self._target(level)
        try:
            target.write(output + "\n")
            target.flush()
        except (OSError, ValueError) as exc:
            raise TransportIOError(f"Console write failed: {exc}", transport=self.name) from exc

        self._publish(entry)
