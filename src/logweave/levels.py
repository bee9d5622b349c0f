"""
Level tables and threshold filtering.

A level table maps level names to integer severities. Lower values are more
severe (syslog convention), so a record passes a transport threshold when its
severity is numerically less than or equal to the threshold's severity.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterator, Mapping

from .errors import ConfigurationError, UnknownLevelError

DEFAULT_THRESHOLD = "info"


class LevelTable:
    """Immutable level-name → severity mapping."""

    def __init__(self, levels: Mapping[str, int]):
        if not levels:
            raise ConfigurationError("A level table needs at least one level")

        table: dict[str, int] = {}
        for name, severity in levels.items():
            if not isinstance(name, str) or not name:
                raise ConfigurationError("Level names must be non-empty strings", details={"level": name})
            if isinstance(severity, bool) or not isinstance(severity, int):
                raise ConfigurationError(
                    f"Severity of level '{name}' must be an integer",
                    details={"level": name, "severity": severity},
                )
            table[name] = severity

        self._levels = MappingProxyType(dict(sorted(table.items(), key=lambda item: item[1])))

    def __contains__(self, name: object) -> bool:
        return name in self._levels

    def __iter__(self) -> Iterator[str]:
        return iter(self._levels)

    def __len__(self) -> int:
        return len(self._levels)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LevelTable):
            return dict(self._levels) == dict(other._levels)
        return NotImplemented

    def __repr__(self) -> str:
        return f"LevelTable({dict(self._levels)!r})"

    @property
    def levels(self) -> Mapping[str, int]:
        return self._levels

    @property
    def names(self) -> list[str]:
        """Level names ordered from most to least severe."""
        return list(self._levels)

    @property
    def most_verbose(self) -> str:
        return self.names[-1]

    @property
    def default_threshold(self) -> str:
        """Threshold used by transports that do not configure one."""
        if DEFAULT_THRESHOLD in self._levels:
            return DEFAULT_THRESHOLD
        return self.most_verbose

    def severity(self, name: str) -> int:
        try:
            return self._levels[name]
        except KeyError:
            raise UnknownLevelError(name) from None

    def should_log(self, record_level: str, threshold: str) -> bool:
        """True iff ``record_level`` is at least as severe as ``threshold``.

        Raises:
            UnknownLevelError: either name is absent from the table.
        """
        return self.severity(record_level) <= self.severity(threshold)


NPM_LEVELS = LevelTable(
    {
        "error": 0,
        "warn": 1,
        "info": 2,
        "verbose": 3,
        "debug": 4,
        "silly": 5,
    }
)

CLI_LEVELS = LevelTable(
    {
        "error": 0,
        "warn": 1,
        "help": 2,
        "data": 3,
        "info": 4,
        "debug": 5,
        "prompt": 6,
        "verbose": 7,
        "input": 8,
        "silly": 9,
    }
)

SYSLOG_LEVELS = LevelTable(
    {
        "emerg": 0,
        "alert": 1,
        "crit": 2,
        "error": 3,
        "warning": 4,
        "notice": 5,
        "info": 6,
        "debug": 7,
    }
)

DEFAULT_LEVELS = NPM_LEVELS


def as_level_table(levels: LevelTable | Mapping[str, int] | None) -> LevelTable:
    if levels is None:
        return DEFAULT_LEVELS
    if isinstance(levels, LevelTable):
        return levels
    return LevelTable(levels)
