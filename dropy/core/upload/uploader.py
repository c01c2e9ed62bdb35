"""Entry point for uploading a stream to a remote path."""

import io
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import BinaryIO

from dropy.core.models import CommitInfo, FileInfo
from dropy.core.transport.base import FilesTransport
from dropy.core.upload.session import UploadSessionDriver
from dropy.core.upload.strategy import UploadLimits, UploadStrategy, select_strategy

logger = logging.getLogger(__name__)


@dataclass
class UploadPlan:
    """Inputs to a single logical upload.

    Attributes:
        commit: Destination path and commit arguments.
        source: Stream to upload; owned by the caller.
        size: Total payload size, None or 0 when unknown.
        chunk_size: Bytes per session chunk, None or 0 for the default.
    """

    commit: CommitInfo
    source: BinaryIO
    size: int | None = None
    chunk_size: int | None = None


def detect_size(source: BinaryIO) -> int | None:
    """Return the bytes left in a seekable stream, or None if unknown."""
    try:
        if not source.seekable():
            return None
        position = source.tell()
        end = source.seek(0, io.SEEK_END)
        source.seek(position)
    except (AttributeError, OSError):
        return None
    return max(end - position, 0)


def upload_stream(
    transport: FilesTransport,
    plan: UploadPlan,
    limits: UploadLimits | None = None,
    progress_callback: Callable[[int], None] | None = None,
) -> FileInfo:
    """Upload ``plan.source`` using whichever strategy fits its size.

    Args:
        transport: Transport used for the remote calls.
        plan: Upload inputs.
        limits: Size limits; defaults to the configured constants.
        progress_callback: Called with byte counts as data is committed.

    Returns:
        Metadata of the committed file.

    Raises:
        ConfigurationError: If the size or chunk size is invalid.
    """
    limits = limits or UploadLimits()
    size = plan.size or detect_size(plan.source)
    decision = select_strategy(size, plan.chunk_size, limits)
    logger.info(
        "Uploading %s: strategy=%s size=%s chunk_size=%d",
        plan.commit.path,
        decision.strategy.value,
        decision.size,
        decision.chunk_size,
    )

    if decision.strategy is UploadStrategy.SINGLE_SHOT:
        info = transport.upload(plan.commit, plan.source)
        if progress_callback:
            progress_callback(decision.size)
        return info

    driver = UploadSessionDriver(
        transport,
        chunk_size=decision.chunk_size,
        size=decision.size,
        progress_callback=progress_callback,
    )
    return driver.run(plan.source, plan.commit)
