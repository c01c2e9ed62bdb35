"""Pydantic models for Dropbox metadata and commit arguments."""

import stat
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

API_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class WriteMode(str, Enum):
    """How a commit behaves when the destination already exists."""

    ADD = "add"
    OVERWRITE = "overwrite"


class FileInfo(BaseModel):
    """Normalized view over a remote metadata entry.

    Mirrors the subset of the Dropbox ``Metadata`` union needed to describe
    files and folders. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    tag: Literal["file", "folder", "deleted"] = Field(default="file", alias=".tag")
    name: str
    id: str | None = None
    path_lower: str | None = None
    path_display: str | None = None
    size: int = 0
    client_modified: datetime | None = None
    server_modified: datetime | None = None
    rev: str | None = None
    content_hash: str | None = None

    @classmethod
    def from_metadata(cls, metadata: dict[str, Any]) -> "FileInfo":
        """Build a FileInfo from a raw API metadata dictionary."""
        return cls.model_validate(metadata)

    @property
    def is_dir(self) -> bool:
        return self.tag == "folder"

    @property
    def mod_time(self) -> datetime | None:
        return self.server_modified

    @property
    def mode(self) -> int:
        """Return stat-style mode bits for the entry."""
        if self.is_dir:
            return stat.S_IFDIR | 0o755
        return stat.S_IFREG | 0o644


class CommitInfo(BaseModel):
    """Commit arguments attached to a single-shot upload or a session finish.

    Attributes:
        path: Destination path of the committed file.
        mode: Behaviour when the destination exists.
        autorename: Let the server pick a free name on conflict.
        client_modified: Modification timestamp recorded with the file.
        mute: Suppress desktop notifications about the change.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    mode: WriteMode = WriteMode.OVERWRITE
    autorename: bool = False
    client_modified: datetime | None = None
    mute: bool = True

    def to_api_arg(self) -> dict[str, Any]:
        arg: dict[str, Any] = {
            "path": self.path,
            "mode": self.mode.value,
            "autorename": self.autorename,
            "mute": self.mute,
        }
        if self.client_modified is not None:
            modified = self.client_modified
            if modified.tzinfo is not None:
                modified = modified.astimezone(timezone.utc)
            arg["client_modified"] = modified.strftime(API_DATETIME_FORMAT)
        return arg


class ListFolderPage(BaseModel):
    """One page of a folder listing."""

    entries: list[FileInfo] = []
    cursor: str = ""
    has_more: bool = False


class SearchPage(BaseModel):
    """One page of filename search results."""

    matches: list[FileInfo] = []
    more: bool = False
    start: int = 0
