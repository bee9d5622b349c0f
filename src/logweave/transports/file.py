"""
File transport with size-based rotation.

State machine::

    CLOSED -> OPENING -> OPEN -> ROTATING -> OPEN -> ... -> CLOSED

While a file is being opened (first write, or ``maxsize`` reached) every
record is queued in a FIFO buffer together with the waiter of its ``log``
call. The buffer is drained into the new file in arrival order, including
records that arrive while the drain itself is in progress, and only then is
the transport ``OPEN`` again.

Files are named ``<stem><N><ext>``; the first file has no number, later ones
are numbered from 1 upwards. With ``max_files`` the file ``max_files``
positions behind the new one is deleted while advancing.
"""

from __future__ import annotations

import asyncio
import inspect
import io
import re
from collections import deque
from enum import Enum
from pathlib import Path
from typing import Any, Deque, Mapping, Optional, Tuple

import aiofiles

from ..diagnostics import get_logger
from ..errors import ConfigurationError, QueryUnsupportedError, TransportIOError
from ..formatting import parse_entry
from ..query import QueryOptions
from .base import Transport

logger = get_logger("logweave.transports.file")

DEFAULT_BASENAME = "logweave.log"


class FileState(str, Enum):
    CLOSED = "closed"
    OPENING = "opening"
    OPEN = "open"
    ROTATING = "rotating"


class FileTransport(Transport):
    """Newline-delimited JSON (or plain text) log files.

    Args:
        filename: Path of the log file.
        dirname: Directory receiving ``logweave.log``.
        stream: Pre-opened writable; no rotation and no query in this mode.
        maxsize: Byte threshold that triggers rotation.
        max_files: Number of numbered files kept on disk.

    Exactly one of ``filename``, ``dirname`` and ``stream`` must be given.
    """

    name = "file"
    supports_query = True
    supports_stream = True

    def __init__(
        self,
        *,
        filename: Optional[str | Path] = None,
        dirname: Optional[str | Path] = None,
        stream: Any = None,
        maxsize: Optional[int] = None,
        max_files: Optional[int] = None,
        **options: Any,
    ):
        options.setdefault("json", True)
        options.setdefault("timestamp", True)
        super().__init__(**options)

        given = [
            key
            for key, value in (("filename", filename), ("dirname", dirname), ("stream", stream))
            if value is not None and value != ""
        ]
        if len(given) > 1:
            raise ConfigurationError(f"Cannot set {' and '.join(given)} together", details={"options": given})
        if not given:
            raise ConfigurationError("Cannot log to file without filename, dirname or stream")
        if stream is not None and (maxsize or max_files):
            raise ConfigurationError("Cannot set maxsize or max_files together with stream")
        if maxsize is not None and maxsize <= 0:
            raise ConfigurationError("maxsize must be a positive number of bytes", details={"maxsize": maxsize})
        if max_files is not None and max_files < 1:
            raise ConfigurationError("max_files must be at least 1", details={"max_files": max_files})

        self.maxsize = maxsize
        self.max_files = max_files

        self._stream = stream
        self._file: Any = None
        self._size = 0
        self._created = 0
        self._buffer: Deque[Tuple[bytes, asyncio.Future[None]]] = deque()
        self._rotating = False
        self._state = FileState.CLOSED
        self._io_lock = asyncio.Lock()
        self._idle = asyncio.Event()
        self._idle.set()
        self._rotation_task: Optional[asyncio.Task[None]] = None

        if stream is not None:
            self.supports_query = False
            self.dirname: Optional[Path] = None
            self.filename: Optional[str] = None
            return

        path = Path(filename) if filename else Path(dirname) / DEFAULT_BASENAME
        self.dirname = path.parent
        self._basename = path.name
        self._stem, self._ext = _split_ext(self._basename)
        if re.search(r"\d$", self._stem) or re.search(r"\d$", self._basename):
            raise ConfigurationError(
                "Do not use a log filename with a number at the end",
                details={"filename": self._basename},
            )
        self.filename = self._basename

        try:
            self.dirname.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(f"Cannot create log directory {self.dirname}: {exc}") from exc
        self._scan_existing()

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    @property
    def state(self) -> FileState:
        return self._state

    @property
    def size(self) -> int:
        """Bytes written (or accepted for writing) to the open file."""
        return self._size

    @property
    def files_created(self) -> int:
        return self._created

    @property
    def pending(self) -> int:
        return len(self._buffer)

    @property
    def path(self) -> Optional[Path]:
        if self.dirname is None or self.filename is None:
            return None
        return self.dirname / self.filename

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------

    async def log(self, level: str, message: str, metadata: Optional[Mapping[str, Any]] = None) -> None:
        if self.silent:
            return

        entry = self.build_entry(level, message, metadata)
        data = (self.render(entry) + "\n").encode("utf-8")

        if self._stream is not None:
            await self._write_stream(data)
        elif self._rotating or self._needs_rotation(len(data)):
            waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            self._buffer.append((data, waiter))
            if not self._rotating:
                self._begin_rotation()
            await waiter
        else:
            await self._write(data)

        self._publish(entry)

    def _needs_rotation(self, pending_write: int) -> bool:
        if self._file is None:
            return True
        if not self.maxsize or self._size == 0:
            return False
        return self._size + pending_write > self.maxsize

    async def _write(self, data: bytes) -> None:
        # Size is accounted before the first suspension point
        self._size += len(data)
        async with self._io_lock:
            handle = self._file
            if handle is None:
                self._size = max(0, self._size - len(data))
                raise TransportIOError("Log file is closed", transport=self.name)
            try:
                await handle.write(data)
                await handle.flush()
            except (OSError, ValueError) as exc:
                # A failed write must not count towards the rotation threshold
                self._size = max(0, self._size - len(data))
                raise TransportIOError(
                    f"Write to {self.path} failed: {exc}",
                    transport=self.name,
                    details={"path": str(self.path)},
                ) from exc

    async def _write_stream(self, data: bytes) -> None:
        stream = self._stream
        payload: Any = data.decode("utf-8") if isinstance(stream, io.TextIOBase) else data
        async with self._io_lock:
            try:
                result = stream.write(payload)
                if inspect.isawaitable(result):
                    await result
                drain = getattr(stream, "drain", None)
                if drain is not None:
                    await drain()
                elif hasattr(stream, "flush"):
                    flushed = stream.flush()
                    if inspect.isawaitable(flushed):
                        await flushed
            except (OSError, ValueError, ConnectionError) as exc:
                raise TransportIOError(f"Stream write failed: {exc}", transport=self.name) from exc

    # -------------------------------------------------------------------------
    # Rotation
    # -------------------------------------------------------------------------

    def _begin_rotation(self) -> None:
        self._rotating = True
        self._idle.clear()
        self._state = FileState.OPENING if self._file is None else FileState.ROTATING
        self._rotation_task = asyncio.get_running_loop().create_task(self._rotate())

    async def _rotate(self) -> None:
        path = self.dirname / self._filename_for(self._created)
        try:
            target = path.name
            while path.exists():
                target = self._advance()
                path = self.dirname / target

            async with self._io_lock:
                if self._file is not None:
                    previous, self._file = self._file, None
                    await previous.close()
                self._file = await aiofiles.open(path, "ab")
                self._size = 0
                self.filename = target
        except OSError as exc:
            self._fail_pending(
                TransportIOError(
                    f"Cannot open log file {path}: {exc}",
                    transport=self.name,
                    details={"path": str(path)},
                )
            )
            return

        logger.debug("log_file_opened", path=str(path), files_created=self._created)
        await self._flush()
        self.emit("open", str(path))

    async def _flush(self) -> None:
        """Drain the buffer into the open file in FIFO order."""
        # Entries appended while a write is suspended are picked up by the same loop
        while self._buffer:
            data, waiter = self._buffer.popleft()
            try:
                await self._write(data)
            except TransportIOError as exc:
                if not waiter.done():
                    waiter.set_exception(exc)
                continue
            if not waiter.done():
                waiter.set_result(None)

        self._rotating = False
        self._state = FileState.OPEN
        self._idle.set()
        self.emit("flush")

    def _fail_pending(self, error: TransportIOError) -> None:
        logger.warning("log_file_open_failed", error=str(error), pending=len(self._buffer))
        while self._buffer:
            _, waiter = self._buffer.popleft()
            if not waiter.done():
                waiter.set_exception(error)
        self._rotating = False
        self._state = FileState.CLOSED
        self._idle.set()

    def _filename_for(self, number: int) -> str:
        if number == 0:
            return self._basename
        return f"{self._stem}{number}{self._ext}"

    def _advance(self) -> str:
        """Move to the next numbered file, deleting the one that falls off the cap."""
        self._created += 1
        if self.max_files:
            self._remove_numbered(self._created - self.max_files)
        return self._filename_for(self._created)

    def _remove_numbered(self, number: int) -> None:
        if number < 0:
            return
        doomed = self.dirname / self._filename_for(number)
        try:
            doomed.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("log_file_remove_failed", path=str(doomed), error=str(exc))
        else:
            logger.debug("log_file_removed", path=str(doomed))

    def _scan_existing(self) -> None:
        """Continue numbering after files left by a previous process."""
        pattern = re.compile(rf"^{re.escape(self._stem)}(\d*){re.escape(self._ext)}$")
        numbers = []
        for candidate in self.dirname.iterdir():
            match = pattern.match(candidate.name)
            if match and candidate.is_file():
                numbers.append(int(match.group(1) or 0))
        if not numbers:
            return

        self._created = max(numbers) + 1
        if self.max_files:
            for number in numbers:
                if number <= self._created - self.max_files:
                    self._remove_numbered(number)

    # -------------------------------------------------------------------------
    # Query & lifecycle
    # -------------------------------------------------------------------------

    async def query(self, options: QueryOptions | Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        if self._stream is not None:
            raise QueryUnsupportedError(self.name)

        normalized = self.normalize_query(options)
        path = self.path
        entries = []
        try:
            async with aiofiles.open(path, "rb") as handle:
                async for line in handle:
                    line = line.strip()
                    if not line:
                        continue
                    # Malformed lines (including a torn final line) are skipped
                    entry = parse_entry(line)
                    if entry is not None:
                        entries.append(entry)
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise TransportIOError(f"Cannot read {path}: {exc}", transport=self.name) from exc

        return normalized.apply(entries)

    async def close(self) -> None:
        """Close once every buffered record has been written."""
        if self._rotating:
            await self._idle.wait()

        async with self._io_lock:
            if self._file is not None:
                handle, self._file = self._file, None
                try:
                    await handle.close()
                except OSError as exc:
                    logger.warning("log_file_close_failed", path=str(self.path), error=str(exc))

        self._size = 0
        self._state = FileState.CLOSED
        await super().close()
        self.emit("close")


def _split_ext(basename: str) -> Tuple[str, str]:
    stem, dot, ext = basename.rpartition(".")
    if not dot or not stem:
        return basename, ""
    return stem, f".{ext}"
