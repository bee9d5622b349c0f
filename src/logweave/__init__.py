"""
logweave: structured logging façade.

A ``Logger`` fans each record out to pluggable transports (console, file,
memory, network services), each with its own level threshold, and merges
time-range queries across the transports that keep history.
"""

from .bootstrap import configure_logging
from .channels import ChannelReply, HttpMessageChannel, MessageChannel
from .config import LogweaveSettings
from .errors import (
    ConfigurationError,
    LogweaveError,
    QueryUnsupportedError,
    TransportIOError,
    UnknownLevelError,
)
from .levels import CLI_LEVELS, DEFAULT_LEVELS, NPM_LEVELS, SYSLOG_LEVELS, LevelTable
from .logger import DispatchResult, Logger, QueryResult
from .query import QueryOptions
from .registry import LoggerRegistry
from .transports import (
    ConsoleTransport,
    DocumentStoreTransport,
    FileState,
    FileTransport,
    MailTransport,
    MemoryTransport,
    Transport,
)

__all__ = [
    "CLI_LEVELS",
    "ChannelReply",
    "ConfigurationError",
    "ConsoleTransport",
    "DEFAULT_LEVELS",
    "DispatchResult",
    "DocumentStoreTransport",
    "FileState",
    "FileTransport",
    "HttpMessageChannel",
    "LevelTable",
    "Logger",
    "LoggerRegistry",
    "LogweaveError",
    "LogweaveSettings",
    "MailTransport",
    "MemoryTransport",
    "MessageChannel",
    "NPM_LEVELS",
    "QueryOptions",
    "QueryResult",
    "QueryUnsupportedError",
    "SYSLOG_LEVELS",
    "Transport",
    "TransportIOError",
    "UnknownLevelError",
    "configure_logging",
]
