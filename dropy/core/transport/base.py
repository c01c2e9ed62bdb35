from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, BinaryIO

from dropy.core.models import CommitInfo, FileInfo, ListFolderPage, SearchPage

if TYPE_CHECKING:
    from dropy.core.upload.bounded_reader import BoundedReader
    from dropy.core.upload.session import SessionCursor


class FilesTransport(ABC):
    """
    Interface to the remote files API.

    Implementations make exactly one remote call per method and raise on
    failure; they never retry. Upload methods read their payload from the
    given reader until it reports end of file, so callers observe how many
    bytes were sent through ``BoundedReader.consumed``.
    """

    @abstractmethod
    def get_metadata(self, path: str) -> FileInfo: ...

    @abstractmethod
    def list_folder(self, path: str) -> ListFolderPage: ...

    @abstractmethod
    def list_folder_continue(self, cursor: str) -> ListFolderPage: ...

    @abstractmethod
    def search(self, path: str, query: str, start: int = 0) -> SearchPage: ...

    @abstractmethod
    def download(self, path: str) -> BinaryIO:
        """Open a stream over the file contents; the caller must close it."""
        ...

    @abstractmethod
    def get_preview(self, path: str) -> BinaryIO: ...

    @abstractmethod
    def create_folder(self, path: str) -> FileInfo: ...

    @abstractmethod
    def delete(self, path: str) -> FileInfo: ...

    @abstractmethod
    def copy(self, from_path: str, to_path: str) -> FileInfo: ...

    @abstractmethod
    def move(self, from_path: str, to_path: str) -> FileInfo: ...

    @abstractmethod
    def upload(self, commit: CommitInfo, source: BinaryIO) -> FileInfo:
        """Upload ``source`` in one request and commit it."""
        ...

    @abstractmethod
    def upload_session_start(self, reader: BoundedReader) -> str:
        """Open an upload session carrying the first chunk; return its id."""
        ...

    @abstractmethod
    def upload_session_append(
        self, cursor: SessionCursor, reader: BoundedReader
    ) -> None: ...

    @abstractmethod
    def upload_session_finish(
        self, cursor: SessionCursor, commit: CommitInfo, reader: BoundedReader
    ) -> FileInfo:
        """Send the trailing bytes of ``reader`` and commit the session."""
        ...
