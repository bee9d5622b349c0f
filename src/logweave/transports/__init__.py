"""
Pluggable log sinks.

- console: text stream (stdout/stderr)
- file: rotating newline-delimited files
- memory: in-process list, queryable
- mail / document_store: network services over a message channel
"""

from .base import LogTail, Transport
from .console import ConsoleTransport
from .document_store import DocumentStoreTransport
from .file import FileState, FileTransport
from .mail import MailTransport
from .memory import MemoryTransport

__all__ = [
    "ConsoleTransport",
    "DocumentStoreTransport",
    "FileState",
    "FileTransport",
    "LogTail",
    "MailTransport",
    "MemoryTransport",
    "Transport",
]
