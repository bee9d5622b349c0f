"""
In-memory transport: an append-only list of serialized entries.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from ..formatting import parse_entry
from ..query import QueryOptions
from .base import Transport


class MemoryTransport(Transport):
    """Keeps rendered entries in ``write_output``; capacity is unbounded."""

    name = "memory"
    default_order = "asc"
    supports_query = True
    supports_stream = True

    def __init__(self, **options: Any):
        options.setdefault("json", True)
        options.setdefault("timestamp", True)
        super().__init__(**options)
        self.write_output: list[str] = []

    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        if self.silent:
            return

        entry = self.build_entry(level, message, metadata)
        self.write_output.append(self.render(entry))
        self._publish(entry)

    def clear_logs(self) -> None:
        self.write_output = []

    async def query(self, options: QueryOptions | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        normalized = self.normalize_query(options)
        entries = (parse_entry(raw) for raw in list(self.write_output))
        return normalized.apply(entry for entry in entries if entry is not None)
