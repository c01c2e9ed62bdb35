"""Folder listing and search helpers.

These functions turn paginated API responses into flat sequences of
``FileInfo`` entries. Any failed page aborts the whole operation.
"""

import logging
from collections.abc import Callable, Iterator

from dropy.core.exceptions import ExhaustedInputError
from dropy.core.models import FileInfo
from dropy.core.transport.base import FilesTransport

logger = logging.getLogger(__name__)


def list_n(transport: FilesTransport, path: str, n: int) -> list[FileInfo]:
    """List up to ``n`` entries of the folder at ``path``.

    Args:
        transport: Transport used for the listing calls.
        path: Folder to list.
        n: Maximum number of entries; zero or negative lists everything.

    Returns:
        Entries in the order the server returned them, truncated at ``n``.

    Raises:
        ExhaustedInputError: If a bounded request (``n > 0``) finds nothing.
    """
    bounded = n > 0
    entries: list[FileInfo] = []

    page = transport.list_folder(path)
    pages = 1
    while True:
        entries.extend(page.entries)
        if bounded and len(entries) >= n:
            entries = entries[:n]
            break
        if not page.has_more:
            break
        page = transport.list_folder_continue(page.cursor)
        pages += 1

    logger.debug("Listed %s: entries=%d pages=%d", path, len(entries), pages)
    if bounded and not entries:
        raise ExhaustedInputError(f"No entries found in {path!r}")
    return entries


def list_all(transport: FilesTransport, path: str) -> list[FileInfo]:
    """List every entry of the folder at ``path``."""
    return list_n(transport, path, 0)


def list_filter(
    transport: FilesTransport, path: str, predicate: Callable[[FileInfo], bool]
) -> list[FileInfo]:
    """List the entries of ``path`` for which ``predicate`` returns True."""
    return [entry for entry in list_all(transport, path) if predicate(entry)]


def iter_search(
    transport: FilesTransport, path: str, query: str
) -> Iterator[FileInfo]:
    """Lazily yield filename search results under ``path``.

    Pages are fetched on demand. The iterator is finite and cannot be
    restarted once consumed.
    """
    start = 0
    while True:
        page = transport.search(path, query, start)
        yield from page.matches
        if not page.more:
            return
        start = page.start


def search(transport: FilesTransport, path: str, query: str) -> list[FileInfo]:
    """Return all filename search results under ``path``."""
    return list(iter_search(transport, path, query))
