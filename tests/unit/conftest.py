import io
import posixpath
from datetime import datetime, timezone
from typing import BinaryIO

import pytest

from dropy.client import Client
from dropy.core.exceptions import ApiError
from dropy.core.models import (
    CommitInfo,
    FileInfo,
    ListFolderPage,
    SearchPage,
    WriteMode,
)
from dropy.core.transport.base import FilesTransport
from dropy.core.upload.bounded_reader import BoundedReader
from dropy.core.upload.session import SessionCursor
from dropy.core.upload.strategy import UploadLimits

SERVER_MODIFIED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
READ_BLOCK = 1024 * 1024


def _parent(path_lower: str) -> str:
    return posixpath.dirname(path_lower) or "/"


def _normalize(path: str) -> str:
    path = path.lower().rstrip("/")
    return path or "/"


class FakeSession:
    def __init__(self) -> None:
        self.data = bytearray()
        self.size = 0


class FakeTransport(FilesTransport):
    """In-memory stand-in for the Dropbox files API.

    Upload calls drain their reader the way a real request body would be
    streamed, and append/finish validate the cursor offset like the server.
    """

    def __init__(self, keep_content: bool = True, page_size: int = 2) -> None:
        self.keep_content = keep_content
        self.page_size = page_size
        self.entries: dict[str, FileInfo] = {}
        self.contents: dict[str, bytes] = {}
        self.sessions: dict[str, FakeSession] = {}
        self.calls: list[str] = []
        self.payload_sizes: list[int] = []
        self.failures: dict[str, BaseException] = {}

    # helpers

    def _call(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def _drain(self, reader: BinaryIO) -> bytes:
        chunks = []
        total = 0
        while True:
            block = reader.read(READ_BLOCK)
            if not block:
                break
            total += len(block)
            if self.keep_content:
                chunks.append(block)
        self.payload_sizes.append(total)
        if self.keep_content:
            return b"".join(chunks)
        return _Sized(total)

    def _commit(self, commit: CommitInfo, data) -> FileInfo:
        key = _normalize(commit.path)
        if commit.mode is WriteMode.ADD and key in self.entries:
            raise ApiError("files/upload", 409, "path/conflict/file/")
        info = FileInfo(
            tag="file",
            name=posixpath.basename(commit.path),
            id=f"id:{len(self.entries)}",
            path_lower=key,
            path_display=commit.path,
            size=len(data),
            client_modified=commit.client_modified,
            server_modified=SERVER_MODIFIED,
            rev="0123456789abcdef",
        )
        self.entries[key] = info
        if self.keep_content:
            self.contents[key] = bytes(data)
        return info

    def _get(self, endpoint: str, path: str) -> FileInfo:
        key = _normalize(path)
        if key not in self.entries:
            raise ApiError(endpoint, 409, "path/not_found/")
        return self.entries[key]

    def _subtree(self, key: str) -> list[str]:
        return [
            k for k in self.entries if k == key or k.startswith(key.rstrip("/") + "/")
        ]

    def add_folder(self, path: str) -> FileInfo:
        key = _normalize(path)
        info = FileInfo(
            tag="folder",
            name=posixpath.basename(path.rstrip("/")),
            id=f"id:{len(self.entries)}",
            path_lower=key,
            path_display=path,
        )
        self.entries[key] = info
        return info

    def add_file(self, path: str, content: bytes) -> FileInfo:
        return self._commit(CommitInfo(path=path), content)

    # metadata

    def get_metadata(self, path: str) -> FileInfo:
        self._call("get_metadata")
        return self._get("files/get_metadata", path)

    def list_folder(self, path: str) -> ListFolderPage:
        self._call("list_folder")
        return self._page(_normalize(path), 0)

    def list_folder_continue(self, cursor: str) -> ListFolderPage:
        self._call("list_folder_continue")
        path, offset = cursor.rsplit("|", 1)
        return self._page(path, int(offset))

    def _page(self, key: str, offset: int) -> ListFolderPage:
        children = sorted(
            (
                info
                for k, info in self.entries.items()
                if k != "/" and _parent(k) == key
            ),
            key=lambda info: info.path_lower,
        )
        end = offset + self.page_size
        return ListFolderPage(
            entries=children[offset:end],
            cursor=f"{key}|{end}",
            has_more=end < len(children),
        )

    def search(self, path: str, query: str, start: int = 0) -> SearchPage:
        self._call("search")
        prefix = _normalize(path).rstrip("/") + "/"
        matches = sorted(
            (
                info
                for k, info in self.entries.items()
                if k.startswith(prefix) and query.lower() in info.name.lower()
            ),
            key=lambda info: info.path_lower,
        )
        page = matches[start : start + self.page_size]
        next_start = start + len(page)
        return SearchPage(
            matches=page, more=next_start < len(matches), start=next_start
        )

    # content

    def download(self, path: str) -> BinaryIO:
        self._call("download")
        info = self._get("files/download", path)
        return io.BytesIO(self.contents[info.path_lower])

    def get_preview(self, path: str) -> BinaryIO:
        self._call("get_preview")
        info = self._get("files/get_preview", path)
        return io.BytesIO(b"%PDF-" + self.contents[info.path_lower])

    def create_folder(self, path: str) -> FileInfo:
        self._call("create_folder")
        if _normalize(path) in self.entries:
            raise ApiError("files/create_folder_v2", 409, "path/conflict/folder/")
        return self.add_folder(path)

    def delete(self, path: str) -> FileInfo:
        self._call("delete")
        info = self._get("files/delete_v2", path)
        for key in self._subtree(info.path_lower):
            self.entries.pop(key)
            self.contents.pop(key, None)
        return info

    def copy(self, from_path: str, to_path: str) -> FileInfo:
        self._call("copy")
        return self._relocate("files/copy_v2", from_path, to_path, keep=True)

    def move(self, from_path: str, to_path: str) -> FileInfo:
        self._call("move")
        return self._relocate("files/move_v2", from_path, to_path, keep=False)

    def _relocate(self, endpoint: str, src: str, dst: str, keep: bool) -> FileInfo:
        source = self._get(endpoint, src)
        dst_key = _normalize(dst)
        for key in self._subtree(source.path_lower):
            new_key = dst_key + key[len(source.path_lower) :]
            info = self.entries[key]
            self.entries[new_key] = info.model_copy(
                update={
                    "path_lower": new_key,
                    "path_display": new_key,
                    "name": posixpath.basename(new_key),
                }
            )
            if key in self.contents:
                self.contents[new_key] = self.contents[key]
            if not keep:
                self.entries.pop(key)
                self.contents.pop(key, None)
        return self.entries[dst_key]

    # uploads

    def upload(self, commit: CommitInfo, source: BinaryIO) -> FileInfo:
        self._call("upload")
        return self._commit(commit, self._drain(source))

    def upload_session_start(self, reader: BoundedReader) -> str:
        self._call("start")
        session_id = f"session-{len(self.sessions) + 1}"
        session = FakeSession()
        self.sessions[session_id] = session
        self._receive(session, reader)
        return session_id

    def upload_session_append(
        self, cursor: SessionCursor, reader: BoundedReader
    ) -> None:
        self._call("append")
        session = self._session_at(cursor)
        self._receive(session, reader)

    def upload_session_finish(
        self, cursor: SessionCursor, commit: CommitInfo, reader: BoundedReader
    ) -> FileInfo:
        self._call("finish")
        session = self._session_at(cursor)
        self._receive(session, reader)
        del self.sessions[cursor.session_id]
        data = bytes(session.data) if self.keep_content else _Sized(session.size)
        return self._commit(commit, data)

    def _session_at(self, cursor: SessionCursor) -> FakeSession:
        session = self.sessions.get(cursor.session_id)
        if session is None:
            raise ApiError("files/upload_session", 409, "lookup_failed/not_found/")
        if cursor.offset != session.size:
            raise ApiError(
                "files/upload_session", 409, "lookup_failed/incorrect_offset/"
            )
        return session

    def _receive(self, session: FakeSession, reader: BoundedReader) -> None:
        data = self._drain(reader)
        session.size += len(data)
        if self.keep_content:
            session.data.extend(data)


class _Sized:
    """Length-only placeholder for payloads that are not stored."""

    def __init__(self, size: int) -> None:
        self._size = size

    def __len__(self) -> int:
        return self._size


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def small_limits() -> UploadLimits:
    return UploadLimits(default_chunk_size=4, max_request_size=6)


@pytest.fixture
def client(fake_transport: FakeTransport, small_limits: UploadLimits) -> Client:
    return Client(fake_transport, limits=small_limits)
