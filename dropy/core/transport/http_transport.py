"""Dropbox HTTP transport built on requests.

RPC-style endpoints take a JSON body; content endpoints carry their
arguments in the ``Dropbox-API-Arg`` header and stream the payload as the
request body. Every method issues exactly one request and raises ``ApiError``
for error responses; connection errors and timeouts from requests propagate
as they are.
"""

from __future__ import annotations

import json
import logging
from typing import Any, BinaryIO

import requests

from dropy.core.auth import Auth
from dropy.core.const import API_URL, CONTENT_URL, REQUEST_TIMEOUT
from dropy.core.exceptions import ApiError
from dropy.core.models import CommitInfo, FileInfo, ListFolderPage, SearchPage
from dropy.core.transport.base import FilesTransport
from dropy.core.upload.bounded_reader import BoundedReader
from dropy.core.upload.session import SessionCursor
from dropy.core.utils.http_errors import extract_error_detail

logger = logging.getLogger(__name__)


def _api_path(path: str) -> str:
    # The API names the root folder with an empty string.
    return "" if path in ("", "/") else path


class HttpTransport(FilesTransport):
    """Talks to the Dropbox v2 API over HTTPS."""

    def __init__(
        self,
        auth: Auth | None = None,
        session: requests.Session | None = None,
        api_url: str = API_URL,
        content_url: str = CONTENT_URL,
        timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the transport.

        Args:
            auth: Source of authorization headers.
            session: HTTP session to reuse; a new one is created if omitted.
            api_url: Base URL for RPC endpoints.
            content_url: Base URL for upload and download endpoints.
            timeout: Timeout in seconds applied to every request.
        """
        self._auth = auth or Auth()
        self._session = session or requests.Session()
        self._api_url = api_url.rstrip("/")
        self._content_url = content_url.rstrip("/")
        self._timeout = timeout

    def _raise_for_status(self, endpoint: str, response: requests.Response) -> None:
        if response.ok:
            return
        detail = extract_error_detail(response)
        logger.warning(
            "API call failed: endpoint=%s status=%d detail=%s",
            endpoint,
            response.status_code,
            detail,
        )
        raise ApiError(endpoint, response.status_code, detail)

    def _rpc(self, endpoint: str, payload: dict[str, Any]) -> dict[str, Any]:
        logger.debug("POST %s", endpoint)
        response = self._session.post(
            f"{self._api_url}/{endpoint}",
            json=payload,
            headers=self._auth.get_headers(),
            timeout=self._timeout,
        )
        self._raise_for_status(endpoint, response)
        return response.json()

    def _content_upload(
        self, endpoint: str, arg: dict[str, Any], body: BinaryIO
    ) -> dict[str, Any] | None:
        headers = self._auth.get_headers()
        headers["Dropbox-API-Arg"] = json.dumps(arg)
        headers["Content-Type"] = "application/octet-stream"
        logger.debug("POST %s arg=%s", endpoint, headers["Dropbox-API-Arg"])
        response = self._session.post(
            f"{self._content_url}/{endpoint}",
            data=body,
            headers=headers,
            timeout=self._timeout,
        )
        self._raise_for_status(endpoint, response)
        if not response.content:
            return None
        return response.json()

    def _content_download(self, endpoint: str, arg: dict[str, Any]) -> BinaryIO:
        headers = self._auth.get_headers()
        headers["Dropbox-API-Arg"] = json.dumps(arg)
        logger.debug("POST %s arg=%s", endpoint, headers["Dropbox-API-Arg"])
        response = self._session.post(
            f"{self._content_url}/{endpoint}",
            headers=headers,
            stream=True,
            timeout=self._timeout,
        )
        try:
            self._raise_for_status(endpoint, response)
        except ApiError:
            response.close()
            raise
        response.raw.decode_content = True
        return response.raw

    def get_metadata(self, path: str) -> FileInfo:
        return FileInfo.from_metadata(
            self._rpc("files/get_metadata", {"path": _api_path(path)})
        )

    def list_folder(self, path: str) -> ListFolderPage:
        data = self._rpc("files/list_folder", {"path": _api_path(path)})
        return ListFolderPage.model_validate(data)

    def list_folder_continue(self, cursor: str) -> ListFolderPage:
        data = self._rpc("files/list_folder/continue", {"cursor": cursor})
        return ListFolderPage.model_validate(data)

    def search(self, path: str, query: str, start: int = 0) -> SearchPage:
        data = self._rpc(
            "files/search",
            {
                "path": _api_path(path),
                "query": query,
                "start": start,
                "mode": "filename",
            },
        )
        return SearchPage(
            matches=[
                FileInfo.from_metadata(match["metadata"])
                for match in data.get("matches", [])
            ],
            more=data.get("more", False),
            start=data.get("start", start),
        )

    def download(self, path: str) -> BinaryIO:
        return self._content_download("files/download", {"path": path})

    def get_preview(self, path: str) -> BinaryIO:
        return self._content_download("files/get_preview", {"path": path})

    def create_folder(self, path: str) -> FileInfo:
        data = self._rpc("files/create_folder_v2", {"path": path})
        return FileInfo.from_metadata({".tag": "folder", **data["metadata"]})

    def delete(self, path: str) -> FileInfo:
        data = self._rpc("files/delete_v2", {"path": path})
        return FileInfo.from_metadata(data["metadata"])

    def copy(self, from_path: str, to_path: str) -> FileInfo:
        data = self._rpc(
            "files/copy_v2", {"from_path": from_path, "to_path": to_path}
        )
        return FileInfo.from_metadata(data["metadata"])

    def move(self, from_path: str, to_path: str) -> FileInfo:
        data = self._rpc(
            "files/move_v2", {"from_path": from_path, "to_path": to_path}
        )
        return FileInfo.from_metadata(data["metadata"])

    def upload(self, commit: CommitInfo, source: BinaryIO) -> FileInfo:
        data = self._content_upload("files/upload", commit.to_api_arg(), source)
        return FileInfo.from_metadata(data)

    def upload_session_start(self, reader: BoundedReader) -> str:
        data = self._content_upload(
            "files/upload_session/start", {"close": False}, reader
        )
        return data["session_id"]

    def upload_session_append(
        self, cursor: SessionCursor, reader: BoundedReader
    ) -> None:
        self._content_upload(
            "files/upload_session/append_v2",
            {"cursor": cursor.to_api_arg(), "close": False},
            reader,
        )

    def upload_session_finish(
        self, cursor: SessionCursor, commit: CommitInfo, reader: BoundedReader
    ) -> FileInfo:
        data = self._content_upload(
            "files/upload_session/finish",
            {"cursor": cursor.to_api_arg(), "commit": commit.to_api_arg()},
            reader,
        )
        return FileInfo.from_metadata(data)
