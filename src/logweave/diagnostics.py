"""
Internal diagnostics for logweave itself.

The library reports its own lifecycle (rotations, duplicate registrations,
swallowed errors) through structlog loggers bound to the stdlib logger
``logweave``, which carries a ``NullHandler``. Nothing is printed until the
application calls ``configure_diagnostics`` or attaches its own handlers to
the ``logweave`` logger; structlog's global configuration is never touched.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional, TextIO

import structlog
from structlog.typing import EventDict, WrappedLogger

LOGGER_NAME = "logweave"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())

_renderer: Any = structlog.dev.ConsoleRenderer(colors=False)
_handler: Optional[logging.Handler] = None


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add ISO 8601 timestamp to log event."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def add_logger_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Add logger name to log event."""
    event_dict["logger"] = event_dict.pop("_name", LOGGER_NAME)
    return event_dict


def render(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> str:
    """Render with the renderer chosen by ``configure_diagnostics``."""
    return _renderer(logger, method_name, event_dict)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger; silent until diagnostics are configured."""
    name = name or LOGGER_NAME
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            add_timestamp,
            add_logger_name,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            render,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        cache_logger_on_first_use=True,
        _name=name,
    )


def configure_diagnostics(level: str = "WARNING", *, stream: TextIO | None = None, json: bool = False) -> None:
    """Route logweave's own diagnostics to ``stream`` (stderr by default)."""
    global _renderer, _handler

    _renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer(colors=False)

    root = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        root.removeHandler(_handler)
    _handler = logging.StreamHandler(stream or sys.stderr)
    _handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(_handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))
    # Diagnostics go to ``stream`` only, not to the application's root handlers
    root.propagate = False


def reset_diagnostics() -> None:
    """Undo ``configure_diagnostics``: back to silent."""
    global _renderer, _handler

    root = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        root.removeHandler(_handler)
        _handler = None
    root.setLevel(logging.NOTSET)
    root.propagate = True
    _renderer = structlog.dev.ConsoleRenderer(colors=False)
