"""
Build a ready-to-use Logger from ``LogweaveSettings``.
"""

from __future__ import annotations

from typing import Mapping, Optional

from .config import LogFormat, LogweaveSettings, TransportKind
from .diagnostics import configure_diagnostics
from .errors import ConfigurationError, UnknownLevelError
from .levels import LevelTable, as_level_table
from .logger import Logger
from .transports import ConsoleTransport, FileTransport, MemoryTransport, Transport


def _build_transport(kind: TransportKind, settings: LogweaveSettings) -> Transport:
    common = {"level": settings.level, "label": settings.label}
    if kind is TransportKind.CONSOLE:
        return ConsoleTransport(
            json=settings.format is LogFormat.JSON,
            colorize=settings.colorize,
            timestamp=True,
            **common,
        )
    if kind is TransportKind.FILE:
        return FileTransport(
            filename=settings.file_path,
            maxsize=settings.file_maxsize,
            max_files=settings.file_max_files,
            **common,
        )
    return MemoryTransport(**common)


def configure_logging(
    settings: Optional[LogweaveSettings] = None,
    *,
    levels: LevelTable | Mapping[str, int] | None = None,
) -> Logger:
    """
    Configure a logger from settings (environment variables ``LOGWEAVE_*``).

    Args:
        settings: Explicit settings; loaded from the environment when omitted.
        levels: Level table; the npm-style default when omitted.
    """
    settings = settings or LogweaveSettings()
    table = as_level_table(levels)

    # 1. Validate the threshold against the table
    try:
        table.severity(settings.level)
    except UnknownLevelError as exc:
        raise ConfigurationError(
            f"Level '{settings.level}' is not part of the level table",
            details={"level": settings.level, "levels": table.names},
        ) from exc

    # 2. Optional diagnostics for logweave itself
    if settings.diagnostics_level:
        configure_diagnostics(settings.diagnostics_level)

    # 3. Transports
    try:
        kinds = settings.transport_kinds
    except ValueError as exc:
        raise ConfigurationError(f"Unknown transport in '{settings.transports}'") from exc

    return Logger(
        transports=[_build_transport(kind, settings) for kind in kinds],
        levels=table,
        emit_errs=settings.emit_errs,
    )
