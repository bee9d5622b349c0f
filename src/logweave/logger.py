"""
Logger: level filtering, fan-out to transports and merged queries.

Dispatch of one record::

    log(level, message, ...)
      ├─ unknown level  → error event, result carries UnknownLevelError
      ├─ filter transports by their own thresholds (insertion order)
      ├─ per transport: ``logging`` event, then its own ``log`` coroutine
      └─ all transports finished → callback(result) exactly once
"""

from __future__ import annotations

import asyncio
import functools
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from .diagnostics import get_logger
from .errors import LogweaveError, QueryUnsupportedError, TransportIOError, UnknownLevelError
from .events import EventEmitter
from .levels import LevelTable, as_level_table
from .query import QueryOptions
from .transports.base import Transport

logger = get_logger("logweave.logger")


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one ``Logger.log`` call."""

    level: str
    message: str
    metadata: Mapping[str, Any]
    errors: tuple[Exception, ...] = ()
    transports: tuple[str, ...] = ()

    @property
    def error(self) -> Optional[Exception]:
        return self.errors[0] if self.errors else None

    @property
    def ok(self) -> bool:
        return not self.errors


DispatchCallback = Callable[[DispatchResult], Any]


class QueryResult(Dict[str, list]):
    """Records keyed by transport name; failed transports are listed in ``errors``."""

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.errors: Dict[str, Exception] = {}


class LoggerTail:
    """Merged tail over every streaming transport of a logger."""

    def __init__(self, transports: Iterable[Transport]):
        self._queue: asyncio.Queue[Optional[tuple[str, dict[str, Any]]]] = asyncio.Queue()
        self._subscriptions: list[tuple[Transport, Callable[..., None]]] = []
        self._closed = False
        for transport in transports:
            if not transport.supports_stream:
                continue
            handler = functools.partial(self._push, transport.name)
            transport.on("logged", handler)
            self._subscriptions.append((transport, handler))

    def _push(self, name: str, entry: dict[str, Any]) -> None:
        if not self._closed:
            self._queue.put_nowait((name, dict(entry)))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for transport, handler in self._subscriptions:
            transport.off("logged", handler)
        self._subscriptions.clear()
        self._queue.put_nowait(None)

    def __aiter__(self) -> "LoggerTail":
        return self

    async def __anext__(self) -> tuple[str, dict[str, Any]]:
        if self._closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            raise StopAsyncIteration
        return item


class Logger(EventEmitter):
    """Fan-out logger.

    Args:
        transports: Initial transports, dispatched to in this order.
        levels: Level table (replaces the default npm-style table).
        emit_errs: Report errors nobody listens to instead of dropping them silently.

    Every level of the active table is available as a method::

        await logger.info("user signed in", user_id=42)
    """

    def __init__(
        self,
        *,
        transports: Iterable[Transport] = (),
        levels: LevelTable | Mapping[str, int] | None = None,
        emit_errs: bool = False,
    ):
        super().__init__()
        self._levels = as_level_table(levels)
        self.emit_errs = emit_errs
        self._transports: Dict[str, Transport] = {}
        self._error_handlers: Dict[str, Callable[..., None]] = {}
        self._profilers: Dict[str, float] = {}
        for transport in transports:
            self.add(transport)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        levels = self.__dict__.get("_levels")
        if levels is not None and name in levels:
            return functools.partial(self.log, name)
        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    # -------------------------------------------------------------------------
    # Levels
    # -------------------------------------------------------------------------

    @property
    def levels(self) -> LevelTable:
        return self._levels

    def set_levels(self, levels: LevelTable | Mapping[str, int]) -> None:
        """Replace the level table; thresholds are re-resolved against it."""
        self._levels = as_level_table(levels)
        for transport in self._transports.values():
            if transport.level is not None and transport.level not in self._levels:
                logger.warning(
                    "transport_threshold_unknown",
                    transport=transport.name,
                    threshold=transport.level,
                    levels=self._levels.names,
                )

    def threshold_of(self, transport: Transport) -> str:
        return transport.level or self._levels.default_threshold

    # -------------------------------------------------------------------------
    # Transports
    # -------------------------------------------------------------------------

    @property
    def transports(self) -> Mapping[str, Transport]:
        return dict(self._transports)

    def add(self, transport: Transport) -> Transport:
        """Attach ``transport``; a second transport with the same name is ignored."""
        existing = self._transports.get(transport.name)
        if existing is not None:
            logger.warning("transport_already_attached", transport=transport.name)
            return existing

        handler = functools.partial(self._on_transport_error, transport)
        transport.on("error", handler)
        self._transports[transport.name] = transport
        self._error_handlers[transport.name] = handler
        return transport

    def remove(self, transport: Transport | str) -> Optional[Transport]:
        name = transport if isinstance(transport, str) else transport.name
        removed = self._transports.pop(name, None)
        if removed is None:
            logger.warning("transport_not_attached", transport=name)
            return None
        removed.off("error", self._error_handlers.pop(name))
        return removed

    def clear(self) -> None:
        for name in list(self._transports):
            self.remove(name)

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------

    async def log(
        self,
        level: str,
        message: Any,
        *args: Any,
        metadata: Optional[Mapping[str, Any]] = None,
        callback: Optional[DispatchCallback] = None,
        **fields: Any,
    ) -> DispatchResult:
        """Dispatch one record to every transport whose threshold it passes."""
        message = _interpolate(message, args)
        meta: Dict[str, Any] = {**(metadata or {}), **fields}

        if level not in self._levels:
            error = UnknownLevelError(level)
            self._raise_error(error)
            return self._finish(DispatchResult(level, message, meta, errors=(error,)), callback)

        targets = []
        for transport in self._transports.values():
            try:
                passes = self._levels.should_log(level, self.threshold_of(transport))
            except UnknownLevelError as exc:
                self._raise_error(exc, transport)
                continue
            if passes:
                targets.append(transport)

        if not targets:
            return self._finish(DispatchResult(level, message, meta), callback)

        pending = []
        for transport in targets:
            # Each transport gets its own top-level copy; added or removed keys never leak
            own_meta = dict(meta)
            self.emit("logging", transport, level, message, own_meta)
            pending.append(self._dispatch(transport, level, message, own_meta))

        outcomes = await asyncio.gather(*pending)
        result = DispatchResult(
            level,
            message,
            meta,
            errors=tuple(outcome for outcome in outcomes if outcome is not None),
            transports=tuple(transport.name for transport in targets),
        )
        return self._finish(result, callback)

    async def _dispatch(
        self,
        transport: Transport,
        level: str,
        message: str,
        metadata: Dict[str, Any],
    ) -> Optional[Exception]:
        try:
            await transport.log(level, message, metadata)
        except Exception as exc:
            error: Exception = exc
            if not isinstance(exc, LogweaveError):
                error = TransportIOError(f"{transport.name}: {exc}", transport=transport.name)
                error.__cause__ = exc
            transport.emit("error", error)
            return error

        self.emit("logged", transport, level, message, metadata)
        return None

    @staticmethod
    def _finish(result: DispatchResult, callback: Optional[DispatchCallback]) -> DispatchResult:
        if callback is not None:
            callback(result)
        return result

    def _on_transport_error(self, transport: Transport, error: Exception) -> None:
        self._raise_error(error, transport)

    def _raise_error(self, error: Exception, transport: Optional[Transport] = None) -> None:
        if self.listener_count("error"):
            self.emit("error", error, transport)
            return

        context = {
            "error": str(error),
            "code": getattr(error, "code", None),
            "transport": transport.name if transport is not None else None,
        }
        if self.emit_errs:
            logger.error("unhandled_logger_error", **context)
        else:
            logger.debug("logger_error_swallowed", **context)

    # -------------------------------------------------------------------------
    # Query, tail, profiling
    # -------------------------------------------------------------------------

    async def query(self, options: QueryOptions | Mapping[str, Any] | None = None) -> QueryResult:
        """Query every queryable transport concurrently and merge by transport name.

        Raises:
            Exception: the first error, when every queryable transport failed.
        """
        query_options = QueryOptions.coerce(options)
        transports = list(self._transports.values())
        outcomes = await asyncio.gather(*(_query_one(transport, query_options) for transport in transports))

        result = QueryResult()
        failures = []
        for transport, outcome in zip(transports, outcomes):
            if isinstance(outcome, Exception):
                result.errors[transport.name] = outcome
                if not isinstance(outcome, QueryUnsupportedError):
                    failures.append(outcome)
            else:
                result[transport.name] = outcome

        if failures and not result:
            raise failures[0]
        return result

    def stream(self) -> LoggerTail:
        """Tail ``(transport_name, entry)`` pairs of every streaming transport."""
        return LoggerTail(self._transports.values())

    async def profile(self, profile_id: str, message: Optional[str] = None, **fields: Any) -> Optional[DispatchResult]:
        """Start a timer on first call; log its duration on the second."""
        now = time.monotonic()
        started = self._profilers.pop(profile_id, None)
        if started is None:
            self._profilers[profile_id] = now
            return None

        fields["duration_ms"] = round((now - started) * 1000)
        level = "info" if "info" in self._levels else self._levels.default_threshold
        return await self.log(level, message or profile_id, **fields)

    async def close(self) -> None:
        """Close every transport (each flushes its pending writes first)."""
        for transport in list(self._transports.values()):
            try:
                await transport.close()
            except Exception as exc:
                error = exc if isinstance(exc, LogweaveError) else TransportIOError(str(exc), transport=transport.name)
                self._raise_error(error, transport)
        self.emit("close")


async def _query_one(transport: Transport, options: QueryOptions) -> list | Exception:
    try:
        return await transport.query(options)
    except Exception as exc:
        return exc


def _interpolate(message: Any, args: tuple[Any, ...]) -> str:
    text = message if isinstance(message, str) else str(message)
    if not args:
        return text
    try:
        return text % args
    except (TypeError, ValueError):
        return " ".join([text, *(str(arg) for arg in args)])
