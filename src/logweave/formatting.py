"""
Entry construction and rendering shared by every transport.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional, Union

import orjson

TimestampOption = Union[bool, Callable[[], Any], None]
Stringify = Callable[[Mapping[str, Any]], str]

# Keys a record's metadata may never override
RESERVED_KEYS = frozenset({"level", "message", "timestamp", "label"})

# =============================================================================
# Colours
# =============================================================================

COLORS = {
    "reset": "\033[0m",
    "dim": "\033[2m",
    "timestamp": "\033[90m",
    "key": "\033[34m",
}

LEVEL_COLORS = {
    "emerg": "\033[1;31m",
    "alert": "\033[1;31m",
    "crit": "\033[1;31m",
    "error": "\033[31m",
    "warn": "\033[33m",
    "warning": "\033[33m",
    "notice": "\033[33m",
    "help": "\033[36m",
    "data": "\033[90m",
    "info": "\033[32m",
    "verbose": "\033[36m",
    "prompt": "\033[90m",
    "input": "\033[90m",
    "debug": "\033[34m",
    "silly": "\033[35m",
}


def colorize(text: str, color: str) -> str:
    """Apply ANSI color to text."""
    code = COLORS.get(color) or LEVEL_COLORS.get(color)
    if not code:
        return text
    return f"{code}{text}{COLORS['reset']}"


# =============================================================================
# Serialization
# =============================================================================


def orjson_dumps(value: Any, *, pretty: bool = False) -> str:
    """Fast JSON serialization using orjson; unknown objects fall back to ``str``."""
    option = orjson.OPT_UTC_Z | orjson.OPT_NAIVE_UTC | orjson.OPT_NON_STR_KEYS
    if pretty:
        option |= orjson.OPT_INDENT_2
    return orjson.dumps(value, default=str, option=option).decode()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def resolve_timestamp(option: TimestampOption) -> Optional[str]:
    """Produce the timestamp value a transport stamps onto an entry."""
    if not option:
        return None
    if callable(option):
        value = option()
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.isoformat()
        return None if value is None else str(value)
    return utc_now().isoformat()


def build_entry(
    level: str,
    message: str,
    metadata: Optional[Mapping[str, Any]] = None,
    *,
    timestamp: TimestampOption = None,
    label: Optional[str] = None,
) -> dict[str, Any]:
    """Assemble the structured entry persisted or displayed by a transport."""
    entry: dict[str, Any] = {"level": level, "message": message}
    if metadata:
        for key, value in metadata.items():
            if key not in RESERVED_KEYS:
                entry[key] = value
    if label:
        entry["label"] = label
    stamp = resolve_timestamp(timestamp)
    if stamp is not None:
        entry["timestamp"] = stamp
    return entry


def render_plain(entry: Mapping[str, Any], *, use_color: bool = False) -> str:
    """Render ``<timestamp> - [label] level: message key=value ...``."""
    level = str(entry.get("level", ""))
    parts: list[str] = []

    timestamp = entry.get("timestamp")
    if timestamp:
        stamp = str(timestamp)
        parts.append((colorize(stamp, "timestamp") if use_color else stamp) + " - ")

    label = entry.get("label")
    if label:
        parts.append(f"[{label}] ")

    parts.append(colorize(level, level) if use_color else level)
    parts.append(f": {entry.get('message', '')}")

    extras = []
    for key, value in entry.items():
        if key in RESERVED_KEYS:
            continue
        text = value if isinstance(value, str) else orjson_dumps(value)
        if use_color:
            extras.append(f"{colorize(key, 'key')}={colorize(text, 'dim')}")
        else:
            extras.append(f"{key}={text}")
    if extras:
        parts.append(" " + " ".join(extras))

    return "".join(parts)


def render_entry(
    entry: Mapping[str, Any],
    *,
    json: bool,
    pretty_print: bool = False,
    colorize: bool = False,
    stringify: Optional[Stringify] = None,
) -> str:
    """Turn an entry into the single string a transport writes."""
    if json:
        if stringify is not None:
            return stringify(entry)
        return orjson_dumps(entry, pretty=pretty_print)
    return render_plain(entry, use_color=colorize)


def parse_entry(raw: Any) -> Optional[dict[str, Any]]:
    """Decode a stored entry back into a dict; returns None when malformed."""
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            value = orjson.loads(raw)
        except orjson.JSONDecodeError:
            return None
        return value if isinstance(value, dict) else None
    return None
