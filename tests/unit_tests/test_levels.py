"""
Level table unit tests.

Covers validation, ordering, the default threshold and the
``should_log`` comparison (lower severity value = more severe).
"""

from __future__ import annotations

import itertools

import pytest

from logweave.errors import ConfigurationError, UnknownLevelError
from logweave.levels import (
    CLI_LEVELS,
    DEFAULT_LEVELS,
    NPM_LEVELS,
    SYSLOG_LEVELS,
    LevelTable,
    as_level_table,
)


# ================================
# Construction
# ================================


class TestLevelTableConstruction:
    def test_levels_sorted_by_severity(self) -> None:
        table = LevelTable({"low": 5, "high": 0, "mid": 2})
        assert table.names == ["high", "mid", "low"]

    def test_empty_table_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            LevelTable({})

    @pytest.mark.parametrize("severity", ["1", 1.5, None, True])
    def test_non_integer_severity_rejected(self, severity) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            LevelTable({"odd": severity})
        assert exc_info.value.code == "CONFIGURATION_ERROR"

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            LevelTable({"": 0})

    def test_mapping_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            NPM_LEVELS.levels["error"] = 9  # type: ignore[index]

    def test_equality_ignores_declaration_order(self) -> None:
        assert LevelTable({"a": 0, "b": 1}) == LevelTable({"b": 1, "a": 0})
        assert LevelTable({"a": 0}) != LevelTable({"a": 1})

    def test_as_level_table(self) -> None:
        assert as_level_table(None) is DEFAULT_LEVELS
        assert as_level_table(CLI_LEVELS) is CLI_LEVELS
        assert as_level_table({"x": 0}).names == ["x"]


# ================================
# Built-in tables
# ================================


class TestBuiltinTables:
    def test_npm_levels(self) -> None:
        assert dict(NPM_LEVELS.levels) == {
            "error": 0,
            "warn": 1,
            "info": 2,
            "verbose": 3,
            "debug": 4,
            "silly": 5,
        }
        assert DEFAULT_LEVELS is NPM_LEVELS

    def test_cli_levels(self) -> None:
        assert CLI_LEVELS.names[0] == "error"
        assert CLI_LEVELS.most_verbose == "silly"
        assert CLI_LEVELS.severity("help") == 2

    def test_syslog_levels(self) -> None:
        assert SYSLOG_LEVELS.names == [
            "emerg",
            "alert",
            "crit",
            "error",
            "warning",
            "notice",
            "info",
            "debug",
        ]


# ================================
# Thresholds
# ================================


class TestThresholds:
    def test_default_threshold_is_info_when_present(self) -> None:
        assert NPM_LEVELS.default_threshold == "info"
        assert SYSLOG_LEVELS.default_threshold == "info"

    def test_default_threshold_falls_back_to_most_verbose(self) -> None:
        table = LevelTable({"alright": 0, "danger": 1, "catastrophe": 2})
        assert table.default_threshold == "catastrophe"

    def test_should_log_matches_severity_comparison(self) -> None:
        for record, threshold in itertools.product(NPM_LEVELS, repeat=2):
            expected = NPM_LEVELS.severity(record) <= NPM_LEVELS.severity(threshold)
            assert NPM_LEVELS.should_log(record, threshold) is expected

    def test_equal_severity_passes(self) -> None:
        assert NPM_LEVELS.should_log("warn", "warn")

    def test_more_verbose_record_is_dropped(self) -> None:
        assert NPM_LEVELS.should_log("error", "warn")
        assert not NPM_LEVELS.should_log("info", "warn")

    def test_unknown_record_level(self) -> None:
        with pytest.raises(UnknownLevelError) as exc_info:
            NPM_LEVELS.should_log("nope", "info")
        assert exc_info.value.level == "nope"
        assert exc_info.value.code == "UNKNOWN_LEVEL"

    def test_unknown_threshold(self) -> None:
        with pytest.raises(UnknownLevelError):
            NPM_LEVELS.should_log("info", "loud")
