"""
Minimal observer primitive shared by loggers and transports.

Listeners are kept in registration order and notified synchronously, so an
observer sees events in exactly the order they were raised.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List

Listener = Callable[..., Any]


class _Once:
    __slots__ = ("listener",)

    def __init__(self, listener: Listener):
        self.listener = listener


class EventEmitter:
    """Explicit listener list plus notify."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener | _Once]] = {}

    def on(self, event: str, listener: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def once(self, event: str, listener: Listener) -> Listener:
        self._listeners.setdefault(event, []).append(_Once(listener))
        return listener

    def off(self, event: str, listener: Listener) -> None:
        entries = self._listeners.get(event)
        if not entries:
            return
        for index, entry in enumerate(entries):
            target = entry.listener if isinstance(entry, _Once) else entry
            if target == listener:
                del entries[index]
                return

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def emit(self, event: str, *args: Any) -> bool:
        """Notify every listener of ``event``; returns False if nobody listened."""
        entries = self._listeners.get(event)
        if not entries:
            return False

        # Snapshot so listeners may (un)register while being notified
        snapshot = list(entries)
        for entry in snapshot:
            if isinstance(entry, _Once):
                if entry in entries:
                    entries.remove(entry)
                entry.listener(*args)
            else:
                entry(*args)
        return True
