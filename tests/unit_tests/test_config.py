"""
Settings and bootstrap unit tests.
"""

from __future__ import annotations

import pytest

from logweave.bootstrap import configure_logging
from logweave.config import LogFormat, LogweaveSettings, TransportKind
from logweave.diagnostics import reset_diagnostics
from logweave.errors import ConfigurationError
from logweave.levels import SYSLOG_LEVELS
from logweave.transports import ConsoleTransport, FileTransport, MemoryTransport


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from LOGWEAVE_* variables and any .env in the cwd."""
    for key in [
        "LOGWEAVE_LEVEL",
        "LOGWEAVE_TRANSPORTS",
        "LOGWEAVE_FORMAT",
        "LOGWEAVE_COLORIZE",
        "LOGWEAVE_LABEL",
        "LOGWEAVE_FILE_PATH",
        "LOGWEAVE_FILE_MAXSIZE",
        "LOGWEAVE_FILE_MAX_FILES",
        "LOGWEAVE_EMIT_ERRS",
        "LOGWEAVE_DIAGNOSTICS_LEVEL",
    ]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    reset_diagnostics()


class TestLogweaveSettings:
    def test_defaults(self) -> None:
        settings = LogweaveSettings()
        assert settings.level == "info"
        assert settings.transport_kinds == [TransportKind.CONSOLE]
        assert settings.format is LogFormat.CONSOLE
        assert settings.file_maxsize is None

    def test_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("LOGWEAVE_LEVEL", " WARN ")
        monkeypatch.setenv("LOGWEAVE_TRANSPORTS", "memory, console,")
        monkeypatch.setenv("LOGWEAVE_FILE_MAXSIZE", "2048")
        monkeypatch.setenv("LOGWEAVE_EMIT_ERRS", "true")

        settings = LogweaveSettings()

        assert settings.level == "warn"
        assert settings.transport_kinds == [TransportKind.MEMORY, TransportKind.CONSOLE]
        assert settings.file_maxsize == 2048
        assert settings.emit_errs is True

    def test_dotenv_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("LOGWEAVE_LABEL=from-dotenv\n")
        assert LogweaveSettings().label == "from-dotenv"

    def test_unknown_transport_kind(self) -> None:
        with pytest.raises(ValueError):
            LogweaveSettings(transports="pigeon").transport_kinds


class TestConfigureLogging:
    def test_default_console_logger(self) -> None:
        logger = configure_logging(LogweaveSettings())
        console = logger.transports["console"]
        assert isinstance(console, ConsoleTransport)
        assert console.level == "info"
        assert console.json is False

    def test_transports_from_settings(self, tmp_path) -> None:
        settings = LogweaveSettings(
            level="debug",
            transports="console,file,memory",
            format="json",
            label="svc",
            file_path=str(tmp_path / "out" / "app.log"),
            file_maxsize=1024,
            file_max_files=3,
            emit_errs=True,
        )

        logger = configure_logging(settings)

        assert list(logger.transports) == ["console", "file", "memory"]
        console, file, memory = logger.transports.values()
        assert isinstance(file, FileTransport) and isinstance(memory, MemoryTransport)
        assert console.json is True
        assert file.maxsize == 1024 and file.max_files == 3
        assert file.path == tmp_path / "out" / "app.log"
        assert all(t.level == "debug" and t.label == "svc" for t in (console, file, memory))
        assert logger.emit_errs is True

    async def test_built_logger_logs(self) -> None:
        logger = configure_logging(LogweaveSettings(transports="memory", level="warn"))

        await logger.info("dropped")
        await logger.error("kept")

        entries = await logger.query()
        assert [e["message"] for e in entries["memory"]] == ["kept"]

    def test_custom_level_table(self) -> None:
        logger = configure_logging(LogweaveSettings(level="notice"), levels=SYSLOG_LEVELS)
        assert logger.levels is SYSLOG_LEVELS

    def test_unknown_level(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            configure_logging(LogweaveSettings(level="loud"))
        assert exc_info.value.details["level"] == "loud"

    def test_unknown_transport(self) -> None:
        with pytest.raises(ConfigurationError):
            configure_logging(LogweaveSettings(transports="console,pigeon"))

    def test_diagnostics_enabled(self, capsys) -> None:
        logger = configure_logging(LogweaveSettings(transports="memory", diagnostics_level="DEBUG"))

        logger.add(MemoryTransport())

        assert "transport_already_attached" in capsys.readouterr().err
