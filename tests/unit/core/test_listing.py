import pytest

from dropy.core import listing
from dropy.core.exceptions import ApiError, ExhaustedInputError


@pytest.fixture
def populated(fake_transport):
    fake_transport.add_folder("/docs")
    fake_transport.add_folder("/docs/archive")
    for name in ["a.txt", "b.txt", "c.md", "d.txt", "e.md"]:
        fake_transport.add_file(f"/docs/{name}", name.encode())
    fake_transport.add_file("/docs/archive/old-a.txt", b"old")
    return fake_transport


def _names(entries):
    return [entry.name for entry in entries]


def test_list_all_follows_continuation_cursors(populated):
    entries = listing.list_all(populated, "/docs")

    assert _names(entries) == ["a.txt", "archive", "b.txt", "c.md", "d.txt", "e.md"]
    assert populated.calls == ["list_folder"] + ["list_folder_continue"] * 2


def test_single_page_matches_unbounded_listing(populated):
    populated.page_size = 100

    first_page = populated.list_folder("/docs")
    entries = listing.list_all(populated, "/docs")

    assert first_page.has_more is False
    assert entries == first_page.entries


@pytest.mark.parametrize("n", [0, -1, -100])
def test_non_positive_n_returns_everything(populated, n):
    assert len(listing.list_n(populated, "/docs", n)) == 6


@pytest.mark.parametrize("n, expected", [(1, 1), (3, 3), (6, 6), (50, 6)])
def test_bounded_listing_truncates_at_n(populated, n, expected):
    entries = listing.list_n(populated, "/docs", n)

    assert len(entries) == expected
    assert entries == listing.list_all(populated, "/docs")[:expected]


def test_bounded_listing_stops_paging_once_satisfied(populated):
    listing.list_n(populated, "/docs", 2)

    assert populated.calls == ["list_folder"]


def test_bounded_listing_of_empty_folder_raises(fake_transport):
    fake_transport.add_folder("/empty")

    with pytest.raises(ExhaustedInputError):
        listing.list_n(fake_transport, "/empty", 5)


def test_unbounded_listing_of_empty_folder_is_empty(fake_transport):
    fake_transport.add_folder("/empty")

    assert listing.list_all(fake_transport, "/empty") == []


def test_failure_on_later_page_aborts_listing(populated):
    error = ApiError("files/list_folder/continue", 409, "reset/")
    populated.failures["list_folder_continue"] = error

    with pytest.raises(ApiError) as exc_info:
        listing.list_all(populated, "/docs")

    assert exc_info.value is error


def test_list_filter_applies_predicate(populated):
    entries = listing.list_filter(
        populated, "/docs", lambda info: info.name.endswith(".md")
    )

    assert _names(entries) == ["c.md", "e.md"]


def test_iter_search_is_lazy_and_finite(populated):
    results = listing.iter_search(populated, "/docs", "a")

    assert populated.calls == []
    first = next(results)
    assert first.name == "a.txt"
    assert populated.calls == ["search"]

    rest = list(results)
    assert _names([first] + rest) == ["a.txt", "archive", "old-a.txt"]
    assert populated.calls == ["search", "search"]
    assert list(results) == []


def test_search_collects_all_pages(populated):
    results = listing.search(populated, "/docs", ".txt")

    assert _names(results) == ["a.txt", "old-a.txt", "b.txt", "d.txt"]
    assert populated.calls.count("search") == 2


def test_search_without_matches(populated):
    assert listing.search(populated, "/docs", "zzz") == []
