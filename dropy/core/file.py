"""File-like handle over a remote path.

Reads stream the remote contents. Writes are fed through an OS pipe to a
background upload session, so data of unknown length can be written
incrementally without buffering it all in memory.
"""

from __future__ import annotations

import io
import logging
import os
import threading
from typing import TYPE_CHECKING, BinaryIO

from dropy.core.models import FileInfo

if TYPE_CHECKING:
    from dropy.client import Client

logger = logging.getLogger(__name__)


class RemoteFile(io.RawIOBase):
    """Readable and writable handle for a single remote file.

    Writing replaces the remote file once the handle is closed; ``info``
    then holds the committed metadata. Closing always releases the pipe
    and the download stream, and re-raises any upload failure.
    """

    def __init__(self, client: Client, name: str) -> None:
        super().__init__()
        self.name = name
        self._client = client
        self._download: BinaryIO | None = None

        self._pipe_w: BinaryIO | None = None
        self._upload_thread: threading.Thread | None = None
        self._upload_error: BaseException | None = None
        self._info: FileInfo | None = None

    @property
    def info(self) -> FileInfo | None:
        return self._info

    def readable(self) -> bool:
        return True

    def writable(self) -> bool:
        return True

    def readinto(self, buffer) -> int | None:
        if self._download is None:
            self._download = self._client.download(self.name)
        data = self._download.read(len(buffer))
        n = len(data)
        memoryview(buffer).cast("B")[:n] = data
        return n

    def write(self, data) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        if self._pipe_w is None:
            self._start_upload()
        try:
            self._pipe_w.write(data)
        except BrokenPipeError:
            # The uploader stopped reading; surface its error instead.
            self._join_upload()
            if self._upload_error is not None:
                raise self._upload_error
            raise
        return len(data)

    def close(self) -> None:
        if self.closed:
            return
        try:
            if self._pipe_w is not None:
                try:
                    self._pipe_w.close()
                except BrokenPipeError:
                    pass
                self._join_upload()
        finally:
            if self._download is not None:
                self._download.close()
            super().close()
        if self._upload_error is not None:
            raise self._upload_error

    def _start_upload(self) -> None:
        read_fd, write_fd = os.pipe()
        pipe_r = os.fdopen(read_fd, "rb")
        self._pipe_w = os.fdopen(write_fd, "wb")
        self._upload_thread = threading.Thread(
            target=self._run_upload,
            args=(pipe_r,),
            name=f"dropy-upload-{self.name}",
            daemon=True,
        )
        logger.debug("Starting pipe upload for %s", self.name)
        self._upload_thread.start()

    def _run_upload(self, pipe_r: BinaryIO) -> None:
        try:
            self._info = self._client.upload_session(self.name, pipe_r)
        except BaseException as e:
            logger.error("Pipe upload failed for %s: %s", self.name, e)
            self._upload_error = e
        finally:
            pipe_r.close()

    def _join_upload(self) -> None:
        if self._upload_thread is not None:
            self._upload_thread.join()
