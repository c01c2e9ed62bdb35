"""Bounded view over a byte stream used to cut upload chunks.

The reader exposes at most ``limit`` bytes of the underlying stream before
reporting end of file. After a chunk has been consumed it can be reset to a
new limit without disturbing the stream's position, so one reader serves
every chunk of an upload session.

The last chunk of a session is read in final mode: reaching the bound while
the stream still holds data is an error rather than a silent truncation.
"""

import io
from enum import Enum
from typing import BinaryIO

from dropy.core.exceptions import ConfigurationError


class ChunkState(Enum):
    """Outcome of reading one bounded chunk."""

    FULL = "full"
    PARTIAL = "partial"
    EMPTY = "empty"


class BoundedReader(io.RawIOBase):
    """Expose at most ``limit`` bytes of ``source`` per chunk.

    The source stream is borrowed, not owned: closing the reader leaves the
    source open for the caller to close.
    """

    def __init__(self, source: BinaryIO, limit: int) -> None:
        """Initialize the reader for a first chunk.

        Args:
            source: Binary stream to read from.
            limit: Maximum number of bytes to expose for the first chunk.

        Raises:
            ConfigurationError: If ``limit`` is not positive.
        """
        super().__init__()
        self._source = source
        self._limit = 0
        self._remaining = 0
        self._source_ended = False
        self._final = False
        self._overflow_checked = False
        self.reset(limit)

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def remaining(self) -> int:
        """Bytes that may still be read before the current chunk is full."""
        return self._remaining

    @property
    def consumed(self) -> int:
        """Bytes delivered so far in the current chunk."""
        return self._limit - self._remaining

    @property
    def state(self) -> ChunkState:
        """Classify the current chunk.

        ``FULL`` means the bound was reached and the source may hold more
        data. ``PARTIAL`` and ``EMPTY`` mean the source ended first.
        """
        if self._remaining == 0:
            return ChunkState.FULL
        if self.consumed == 0:
            return ChunkState.EMPTY
        return ChunkState.PARTIAL

    @property
    def source_ended(self) -> bool:
        """Whether the source signalled end of stream during this chunk."""
        return self._source_ended

    def reset(self, limit: int | None = None, *, final: bool = False) -> None:
        """Start a new chunk, optionally with a different limit.

        With ``final`` set, a read past a full chunk checks the source for
        leftover bytes and raises ``ConfigurationError`` if any remain.
        """
        if limit is None:
            limit = self._limit
        if limit <= 0:
            raise ConfigurationError(f"Chunk limit must be positive, got {limit}")
        self._limit = limit
        self._remaining = limit
        self._source_ended = False
        self._final = final
        self._overflow_checked = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int | None:
        if self._remaining <= 0:
            if self._final:
                self._check_overflow()
            return 0
        view = memoryview(buffer).cast("B")
        want = min(len(view), self._remaining)
        if want == 0:
            return 0
        data = self._source.read(want)
        if data is None:
            # Non-blocking source with nothing available yet.
            return None
        if not data:
            self._source_ended = True
            return 0
        n = len(data)
        view[:n] = data
        self._remaining -= n
        return n

    def _check_overflow(self) -> None:
        if self._overflow_checked:
            return
        self._overflow_checked = True
        extra = self._source.read(1)
        if extra:
            raise ConfigurationError(
                f"Source holds more data than the final chunk of {self._limit} bytes"
            )
        if extra is not None:
            self._source_ended = True
