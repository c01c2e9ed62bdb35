"""Choosing between a single-shot upload and an upload session.

Everything here is a pure function of its inputs; no network calls are made,
so misconfigured uploads fail before the first request.
"""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, PositiveInt

from dropy.core.const import DEFAULT_CHUNK_SIZE, MAX_REQUEST_SIZE
from dropy.core.exceptions import ConfigurationError


class UploadLimits(BaseModel):
    """Size limits applied when planning an upload.

    Attributes:
        default_chunk_size: chunk size used when the caller does not pick one.
        max_request_size: largest payload a single request may carry.
    """

    model_config = ConfigDict(frozen=True)

    default_chunk_size: PositiveInt = DEFAULT_CHUNK_SIZE
    max_request_size: PositiveInt = MAX_REQUEST_SIZE


class UploadStrategy(str, Enum):
    SINGLE_SHOT = "single_shot"
    SESSION = "session"


@dataclass(frozen=True)
class UploadDecision:
    """Resolved upload parameters.

    ``size`` is None when the payload size is unknown.
    """

    strategy: UploadStrategy
    chunk_size: int
    size: int | None


def resolve_chunk_size(chunk_size: int | None, limits: UploadLimits) -> int:
    """Resolve a requested chunk size against the limits.

    Args:
        chunk_size: Requested chunk size; None or 0 selects the default.
        limits: Limits to resolve against.

    Returns:
        A chunk size in ``(0, limits.max_request_size]``.

    Raises:
        ConfigurationError: If a negative chunk size is requested.
    """
    if chunk_size is None or chunk_size == 0:
        chunk_size = limits.default_chunk_size
    elif chunk_size < 0:
        raise ConfigurationError(f"Chunk size must be positive, got {chunk_size}")
    return min(chunk_size, limits.max_request_size)


def select_strategy(
    size: int | None, chunk_size: int | None, limits: UploadLimits
) -> UploadDecision:
    """Decide how a payload should be uploaded.

    A single request is used only when the size is known and smaller than
    both the request limit and the resolved chunk size. An unknown size
    always goes through a session.

    Args:
        size: Total payload size; None or 0 when unknown.
        chunk_size: Requested chunk size; None or 0 selects the default.
        limits: Limits to plan against.

    Returns:
        The chosen strategy together with the resolved chunk size.

    Raises:
        ConfigurationError: If ``size`` or ``chunk_size`` is negative.
    """
    if size is not None and size < 0:
        raise ConfigurationError(f"Upload size cannot be negative, got {size}")
    resolved = resolve_chunk_size(chunk_size, limits)
    known_size = size or None

    if (
        known_size is not None
        and known_size < limits.max_request_size
        and known_size < resolved
    ):
        return UploadDecision(UploadStrategy.SINGLE_SHOT, resolved, known_size)
    return UploadDecision(UploadStrategy.SESSION, resolved, known_size)
