"""
Unified exception hierarchy for logweave.

Construction-time problems raise immediately; runtime problems are carried
back through dispatch results and ``error`` events instead of propagating
into the caller.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class LogweaveError(Exception):
    """Root of every logweave exception."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}


class ConfigurationError(LogweaveError):
    """Invalid or contradictory construction options."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR", details=details)


class UnknownLevelError(LogweaveError):
    """A level name that is absent from the active level table."""

    def __init__(self, level: str) -> None:
        super().__init__(
            f"Unknown log level: {level}",
            code="UNKNOWN_LEVEL",
            details={"level": level},
        )
        self.level = level


class TransportIOError(LogweaveError):
    """The underlying I/O of a transport failed (file write, network send, ...)."""

    def __init__(
        self,
        message: str,
        *,
        transport: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = dict(details or {})
        if transport is not None:
            merged["transport"] = transport
        super().__init__(message, code="TRANSPORT_IO_ERROR", details=merged)
        self.transport = transport


class QueryUnsupportedError(LogweaveError):
    """The transport cannot answer historical queries or tails."""

    def __init__(self, transport: str, *, operation: str = "query") -> None:
        super().__init__(
            f"Transport '{transport}' does not support {operation}",
            code="QUERY_UNSUPPORTED",
            details={"transport": transport, "operation": operation},
        )
        self.transport = transport
        self.operation = operation


__all__ = [
    "LogweaveError",
    "ConfigurationError",
    "UnknownLevelError",
    "TransportIOError",
    "QueryUnsupportedError",
]
