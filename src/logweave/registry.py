"""
Named-logger registry.

Created once by the application and passed to whoever needs shared loggers;
there is no module-level default instance.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Mapping, Optional

from .diagnostics import get_logger
from .levels import LevelTable
from .logger import Logger
from .transports.base import Transport

logger = get_logger("logweave.registry")


class LoggerRegistry:
    """Owns a set of named loggers.

    Args:
        transports: Transports shared by every logger added without its own.
        transports_factory: Builds fresh transports for such loggers instead.
    """

    def __init__(
        self,
        *,
        transports: Iterable[Transport] = (),
        transports_factory: Optional[Callable[[str], Iterable[Transport]]] = None,
    ):
        self._shared = list(transports)
        self._factory = transports_factory
        self._loggers: Dict[str, Logger] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._loggers

    def __len__(self) -> int:
        return len(self._loggers)

    @property
    def names(self) -> list[str]:
        return list(self._loggers)

    def has(self, name: str) -> bool:
        return name in self._loggers

    def add(
        self,
        name: str,
        *,
        transports: Optional[Iterable[Transport]] = None,
        levels: LevelTable | Mapping[str, int] | None = None,
        emit_errs: bool = False,
    ) -> Logger:
        """Create the logger ``name``; an existing one is returned unchanged."""
        existing = self._loggers.get(name)
        if existing is not None:
            return existing

        if transports is None:
            transports = self._factory(name) if self._factory is not None else self._shared

        created = Logger(transports=transports, levels=levels, emit_errs=emit_errs)
        self._loggers[name] = created
        logger.debug("logger_registered", name=name, transports=list(created.transports))
        return created

    def get(self, name: str) -> Logger:
        """Return ``name``, creating it with the registry defaults on first use."""
        return self._loggers.get(name) or self.add(name)

    async def remove(self, name: str) -> None:
        """Detach and close ``name``.

        Shared transports stay open while another logger still uses them.
        """
        removed = self._loggers.pop(name, None)
        if removed is None:
            return

        still_used = {id(t) for other in self._loggers.values() for t in other.transports.values()}
        for transport in list(removed.transports.values()):
            removed.remove(transport)
            if id(transport) not in still_used:
                await transport.close()
        removed.emit("close")

    async def close(self) -> None:
        for name in list(self._loggers):
            await self.remove(name)
