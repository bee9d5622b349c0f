"""
Transport abstraction (Strategy Pattern).

A transport is a sink that receives ``(level, message, metadata)`` and
decides on its own how to persist or display it. ``log`` completes by
returning and fails by raising; it never raises synchronously because it is
a coroutine.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Mapping, Optional

from ..errors import QueryUnsupportedError
from ..events import EventEmitter
from ..formatting import Stringify, TimestampOption, build_entry, render_entry
from ..query import QueryOptions, QueryOrder


class LogTail:
    """Async iterator over entries logged after subscription."""

    def __init__(self, owner: "Transport", maxsize: int = 0):
        self._owner = owner
        self._queue: asyncio.Queue[Optional[dict[str, Any]]] = asyncio.Queue(maxsize)
        self._closed = False

    def _push(self, entry: dict[str, Any]) -> None:
        if self._closed:
            return
        try:
            self._queue.put_nowait(entry)
        except asyncio.QueueFull:
            # Slow consumer: the oldest pending entry makes room
            self._queue.get_nowait()
            self._queue.put_nowait(entry)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._owner._tails.discard(self)
        try:
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            # A consumer is never blocked on a full queue; it stops once drained
            pass

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self

    async def __anext__(self) -> dict[str, Any]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        entry = await self._queue.get()
        if entry is None:
            raise StopAsyncIteration
        return entry


class Transport(EventEmitter, ABC):
    """Abstract base class for log transports.

    Args:
        name: Identity under which a logger registers the transport.
        level: Minimum severity threshold; None means the logger's table default.
        silent: When True, ``log`` completes immediately and does nothing.
        json: Serialize entries as JSON instead of plain text.
        colorize: ANSI colours for plain output.
        pretty_print: Indented JSON.
        timestamp: True for automatic UTC timestamps, or a callable producing one.
        label: Tag included in every entry.
        stringify: Custom JSON serializer.
    """

    name: str = "transport"
    default_order: QueryOrder = "desc"
    supports_query: bool = False
    supports_stream: bool = False

    def __init__(
        self,
        *,
        name: Optional[str] = None,
        level: Optional[str] = None,
        silent: bool = False,
        json: bool = False,
        colorize: bool = False,
        pretty_print: bool = False,
        timestamp: TimestampOption = False,
        label: Optional[str] = None,
        stringify: Optional[Stringify] = None,
    ):
        super().__init__()
        if name:
            self.name = name
        self.level = level
        self.silent = silent
        self.json = json
        self.colorize = colorize
        self.pretty_print = pretty_print
        self.timestamp = timestamp
        self.label = label
        self.stringify = stringify
        self._tails: set[LogTail] = set()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, level={self.level!r})"

    # -------------------------------------------------------------------------
    # Contract
    # -------------------------------------------------------------------------

    @abstractmethod
    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        """Persist or display one record."""
        ...

    async def query(self, options: QueryOptions | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        """Read back previously logged entries."""
        raise QueryUnsupportedError(self.name)

    def stream(self, maxsize: int = 0) -> LogTail:
        """Tail entries logged from now on."""
        if not self.supports_stream:
            raise QueryUnsupportedError(self.name, operation="stream")
        tail = LogTail(self, maxsize)
        self._tails.add(tail)
        return tail

    async def close(self) -> None:
        for tail in list(self._tails):
            tail.close()

    # -------------------------------------------------------------------------
    # Helpers for subclasses
    # -------------------------------------------------------------------------

    def normalize_query(self, options: QueryOptions | Mapping[str, Any] | None) -> QueryOptions:
        return QueryOptions.coerce(options).normalized(default_order=self.default_order)

    def build_entry(self, level: str, message: str, metadata: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        return build_entry(level, message, metadata, timestamp=self.timestamp, label=self.label)

    def render(self, entry: Mapping[str, Any]) -> str:
        return render_entry(
            entry,
            json=self.json,
            pretty_print=self.pretty_print,
            colorize=self.colorize,
            stringify=self.stringify,
        )

    def _publish(self, entry: dict[str, Any]) -> None:
        """Announce a landed entry to ``logged`` listeners and open tails."""
        for tail in list(self._tails):
            tail._push(dict(entry))
        self.emit("logged", entry)
