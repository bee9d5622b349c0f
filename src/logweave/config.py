"""
Logging Configuration.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class TransportKind(str, Enum):
    CONSOLE = "console"
    FILE = "file"
    MEMORY = "memory"


class LogweaveSettings(BaseSettings):
    """Settings for a logger built by ``logweave.bootstrap.configure_logging``."""

    model_config = SettingsConfigDict(
        env_prefix="LOGWEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    level: str = Field(default="info", description="Threshold applied to every transport")
    transports: str = Field(default="console", description="Comma-separated transports (console, file, memory)")
    format: LogFormat = Field(default=LogFormat.CONSOLE, description="Console output format")
    colorize: bool = Field(default=False, description="ANSI colours on console output")
    label: Optional[str] = Field(default=None, description="Tag added to every entry")
    file_path: str = Field(default="logs/logweave.log", description="Path for the file transport")
    file_maxsize: Optional[int] = Field(default=None, gt=0, description="Rotation threshold in bytes")
    file_max_files: Optional[int] = Field(default=None, ge=1, description="Numbered files kept on disk")
    emit_errs: bool = Field(default=False, description="Report errors that have no listener")
    diagnostics_level: Optional[str] = Field(
        default=None,
        description="Enable logweave's own diagnostics at this level (DEBUG, INFO, WARNING, ...)",
    )

    @field_validator("level")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.strip().lower()

    @property
    def transport_kinds(self) -> list[TransportKind]:
        kinds = []
        for raw in self.transports.split(","):
            name = raw.strip().lower()
            if name:
                kinds.append(TransportKind(name))
        return kinds
