"""High-level client for the Dropbox files API.

This module provides the ``Client`` class, which wraps a files transport
with filesystem-like helpers for stat, listing, reading, writing, search
and large uploads.
"""

import logging
from collections.abc import Callable, Iterator
from datetime import datetime, timezone
from typing import BinaryIO

from dropy.core import listing
from dropy.core.auth import Auth
from dropy.core.exceptions import ConfigurationError
from dropy.core.file import RemoteFile
from dropy.core.models import CommitInfo, FileInfo, WriteMode
from dropy.core.transport.base import FilesTransport
from dropy.core.transport.http_transport import HttpTransport
from dropy.core.upload.strategy import UploadLimits
from dropy.core.upload.uploader import UploadPlan, detect_size, upload_stream

logger = logging.getLogger(__name__)


class Client:
    """Filesystem-style convenience layer over a files transport."""

    def __init__(
        self,
        transport: FilesTransport | None = None,
        *,
        access_token: str | None = None,
        limits: UploadLimits | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            transport: Transport to use; an ``HttpTransport`` is built when
                omitted.
            access_token: Token for the default transport. Falls back to the
                ``DROPBOX_ACCESS_TOKEN`` environment variable.
            limits: Upload size limits; defaults to the configured constants.
        """
        self.transport = transport or HttpTransport(Auth(access_token))
        self.limits = limits or UploadLimits()

    def stat(self, name: str) -> FileInfo:
        """Return file or folder metadata for ``name``."""
        return self.transport.get_metadata(name)

    def list_n(self, name: str, n: int) -> list[FileInfo]:
        """Return up to ``n`` entries of folder ``name``, or all when n <= 0.

        Raises:
            ExhaustedInputError: If ``n > 0`` and the folder is empty.
        """
        return listing.list_n(self.transport, name, n)

    def list_all(self, name: str) -> list[FileInfo]:
        """Return all entries of folder ``name``."""
        return listing.list_all(self.transport, name)

    def list_filter(
        self, name: str, predicate: Callable[[FileInfo], bool]
    ) -> list[FileInfo]:
        """Return entries of folder ``name`` matching ``predicate``."""
        return listing.list_filter(self.transport, name, predicate)

    def list_folders(self, name: str) -> list[FileInfo]:
        return self.list_filter(name, lambda info: info.is_dir)

    def list_files(self, name: str) -> list[FileInfo]:
        return self.list_filter(name, lambda info: not info.is_dir)

    def open(self, name: str) -> RemoteFile:
        """Return a file handle for reading or writing ``name``."""
        return RemoteFile(self, name)

    def read(self, name: str) -> bytes:
        """Return the full contents of ``name``."""
        with self.open(name) as f:
            return f.read()

    def download(self, name: str) -> BinaryIO:
        """Return a stream over the contents of ``name``; close it when done."""
        return self.transport.download(name)

    def preview(self, name: str) -> BinaryIO:
        """Return a stream over the PDF preview of ``name``."""
        return self.transport.get_preview(name)

    def mkdir(self, name: str) -> FileInfo:
        return self.transport.create_folder(name)

    def delete(self, name: str) -> FileInfo:
        return self.transport.delete(name)

    def copy(self, src: str, dst: str) -> FileInfo:
        return self.transport.copy(src, dst)

    def move(self, src: str, dst: str) -> FileInfo:
        return self.transport.move(src, dst)

    def search(self, path: str, query: str) -> list[FileInfo]:
        """Return filename matches for ``query`` under ``path``."""
        return listing.search(self.transport, path, query)

    def iter_search(self, path: str, query: str) -> Iterator[FileInfo]:
        """Lazily yield filename matches for ``query`` under ``path``."""
        return listing.iter_search(self.transport, path, query)

    def upload(self, path: str, source: BinaryIO) -> FileInfo:
        """Upload ``source`` to ``path`` in a single request.

        The file is overwritten and notifications are muted.

        Raises:
            ConfigurationError: If ``source`` is known to exceed the single
                request limit; use ``upload_session`` instead.
        """
        size = detect_size(source)
        if size is not None and size >= self.limits.max_request_size:
            raise ConfigurationError(
                f"{size} bytes is too large for a single upload request "
                f"(limit {self.limits.max_request_size}); use upload_session"
            )
        commit = CommitInfo(path=path, mode=WriteMode.OVERWRITE, mute=True)
        return self.transport.upload(commit, source)

    def upload_session(self, path: str, source: BinaryIO) -> FileInfo:
        """Upload ``source`` to ``path``, splitting it into chunks as needed.

        The file is overwritten, stamped with the current time and
        notifications are muted.
        """
        commit = CommitInfo(
            path=path,
            mode=WriteMode.OVERWRITE,
            client_modified=datetime.now(timezone.utc),
            mute=True,
        )
        return self.upload_session_options(UploadPlan(commit=commit, source=source))

    def upload_session_options(
        self,
        plan: UploadPlan,
        progress_callback: Callable[[int], None] | None = None,
    ) -> FileInfo:
        """Upload according to ``plan``.

        Small payloads of known size go up in one request; everything else
        uses an upload session.

        Args:
            plan: Upload inputs and commit arguments.
            progress_callback: Called with byte counts as data is committed.

        Returns:
            Metadata of the committed file.
        """
        return upload_stream(
            self.transport, plan, self.limits, progress_callback=progress_callback
        )
