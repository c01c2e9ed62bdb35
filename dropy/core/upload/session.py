"""Upload session driver.

This module drives the start / append / finish request sequence that
assembles a large payload on the server from bounded chunks. Chunks are
sent strictly one after another; the cursor offset always reflects the
bytes actually read from the source, never the requested chunk size.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO

from dropy.core.exceptions import ConfigurationError
from dropy.core.models import CommitInfo, FileInfo
from dropy.core.transport.base import FilesTransport
from dropy.core.upload.bounded_reader import BoundedReader, ChunkState

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    STARTED = "started"
    APPENDING = "appending"
    FINISHED = "finished"
    FAILED = "failed"


@dataclass
class SessionCursor:
    """Session id plus the number of bytes the server has accepted."""

    session_id: str
    offset: int = 0

    def advance(self, consumed: int) -> None:
        self.offset += consumed

    def to_api_arg(self) -> dict:
        return {"session_id": self.session_id, "offset": self.offset}


class UploadSessionDriver:
    """Upload one payload through an upload session.

    The driver owns its cursor and bounded reader for the lifetime of a
    single session and is not reusable. Any exception raised by the
    transport moves it to ``FAILED`` and is re-raised unchanged; the
    partially uploaded session is left for the server to expire.
    """

    def __init__(
        self,
        transport: FilesTransport,
        chunk_size: int,
        size: int | None = None,
        progress_callback: Callable[[int], None] | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            transport: Transport used for the session calls.
            chunk_size: Bytes per chunk, already resolved against the limits.
            size: Total payload size when known. Enables skipping the last
                append so the finish call carries the trailing bytes.
            progress_callback: Called with the byte count of every chunk the
                server accepts.

        Raises:
            ConfigurationError: If ``chunk_size`` is not positive or ``size``
                is negative.
        """
        if chunk_size <= 0:
            raise ConfigurationError(f"Chunk size must be positive, got {chunk_size}")
        if size is not None and size < 0:
            raise ConfigurationError(f"Upload size must not be negative, got {size}")
        self._transport = transport
        self._chunk_size = chunk_size
        self._size = size or None
        self._progress_callback = progress_callback

        self._state = SessionState.NOT_STARTED
        self._cursor: SessionCursor | None = None
        self.append_calls = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def cursor(self) -> SessionCursor | None:
        return self._cursor

    @property
    def bytes_uploaded(self) -> int:
        return self._cursor.offset if self._cursor else 0

    def run(self, source: BinaryIO, commit: CommitInfo) -> FileInfo:
        """Upload ``source`` and commit it with ``commit``.

        Args:
            source: Stream to upload. It is read to the end but not closed.
            commit: Commit arguments for the finished file.

        Returns:
            Metadata of the committed file.

        Raises:
            RuntimeError: If the driver has already been used.
            ConfigurationError: If the source holds more data than the
                declared size leaves room for in the final chunk.
        """
        if self._state is not SessionState.NOT_STARTED:
            raise RuntimeError(f"Upload session already {self._state.value}")

        reader = BoundedReader(source, self._chunk_size)
        try:
            self._start(reader)
            while self._needs_append(reader):
                self._append(reader)
            return self._finish(reader, commit)
        except BaseException:
            self._state = SessionState.FAILED
            logger.error(
                "Upload session failed: path=%s session_id=%s offset=%d",
                commit.path,
                self._cursor.session_id if self._cursor else None,
                self.bytes_uploaded,
            )
            raise
        finally:
            reader.close()

    def _start(self, reader: BoundedReader) -> None:
        logger.info(
            "Starting upload session: chunk_size=%d size=%s",
            self._chunk_size,
            self._size,
        )
        session_id = self._transport.upload_session_start(reader)
        self._cursor = SessionCursor(session_id=session_id, offset=reader.consumed)
        self._state = SessionState.STARTED
        self._report(reader.consumed)
        logger.debug(
            "Session started: session_id=%s offset=%d state=%s",
            session_id,
            self._cursor.offset,
            reader.state.value,
        )

    def _needs_append(self, reader: BoundedReader) -> bool:
        # A chunk short of its bound means the source ran dry.
        if reader.state is not ChunkState.FULL:
            return False
        # The rest fits in the finish call.
        if self._size is not None and (
            self._cursor.offset + self._chunk_size >= self._size
        ):
            return False
        return True

    def _append(self, reader: BoundedReader) -> None:
        reader.reset(self._chunk_size)
        self._transport.upload_session_append(self._cursor, reader)
        self._cursor.advance(reader.consumed)
        self._state = SessionState.APPENDING
        self.append_calls += 1
        self._report(reader.consumed)
        logger.debug(
            "Appended chunk: session_id=%s consumed=%d offset=%d",
            self._cursor.session_id,
            reader.consumed,
            self._cursor.offset,
        )

    def _finish(self, reader: BoundedReader, commit: CommitInfo) -> FileInfo:
        # Leftover source bytes abort the request before the server commits.
        reader.reset(self._chunk_size, final=True)
        info = self._transport.upload_session_finish(self._cursor, commit, reader)
        self._cursor.advance(reader.consumed)
        self._state = SessionState.FINISHED
        self._report(reader.consumed)

        if self._size is not None and self._cursor.offset != self._size:
            logger.warning(
                "Uploaded byte count differs from declared size: "
                "path=%s declared=%d uploaded=%d",
                commit.path,
                self._size,
                self._cursor.offset,
            )
        logger.info(
            "Upload session finished: path=%s bytes=%d appends=%d",
            commit.path,
            self._cursor.offset,
            self.append_calls,
        )
        return info

    def _report(self, consumed: int) -> None:
        if self._progress_callback and consumed:
            self._progress_callback(consumed)
