"""
Tests for pagination cursor validation and aggregation.
"""
import pytest

from connect_assets.errors import PaginationError, RepeatedCursorError, UntrustedCursorError
from connect_assets.models import Page
from connect_assets.pagination import paginate_all, validate_cursor, validate_next_url

from conftest import BASE_URL


def test_aggregates_all_pages_in_order():
    """Test that 200 + 200 + 50 items come back as one 450-item page."""
    pages = {
        f"{BASE_URL}/v1/items?cursor=2": Page(items=list(range(200, 400)),
                                              next_cursor="/v1/items?cursor=3"),
        "/v1/items?cursor=3": Page(items=list(range(400, 450))),
    }
    fetched = []

    def fetch(cursor):
        fetched.append(cursor)
        return pages[cursor]

    first = Page(items=list(range(200)), next_cursor=f"{BASE_URL}/v1/items?cursor=2")
    result = paginate_all(first, fetch, BASE_URL)

    assert result.items == list(range(450))
    assert result.next_cursor is None
    assert len(fetched) == 2


def test_single_page_needs_no_fetch():
    def fetch(cursor):
        raise AssertionError("should not fetch")

    result = paginate_all(Page(items=[1, 2]), fetch, BASE_URL)

    assert result.items == [1, 2]


def test_untrusted_host_is_rejected_before_fetching():
    fetched = []
    first = Page(items=[1], next_cursor="https://evil.example.test/v1/items?cursor=2")

    with pytest.raises(UntrustedCursorError):
        paginate_all(first, fetched.append, BASE_URL)

    assert fetched == []


def test_repeated_cursor_is_rejected():
    cursor = f"{BASE_URL}/v1/items?cursor=2"

    def fetch(c):
        return Page(items=[2], next_cursor=cursor)

    with pytest.raises(RepeatedCursorError):
        paginate_all(Page(items=[1], next_cursor=cursor), fetch, BASE_URL)


def test_unexpected_page_type_is_rejected():
    with pytest.raises(PaginationError):
        paginate_all(Page(items=[1], next_cursor="/v1/items?cursor=2"), lambda c: {"data": []}, BASE_URL)


@pytest.mark.parametrize("cursor", [
    None,
    "",
    "/v1/items?cursor=2",
    f"{BASE_URL}/v1/items?cursor=2",
])
def test_trusted_cursors(cursor):
    validate_cursor(cursor, BASE_URL)


@pytest.mark.parametrize("cursor", [
    "http://api.example.test/v1/items?cursor=2",
    "https://api.example.test.evil.test/v1/items",
    "https://other.example.test/v1/items",
])
def test_untrusted_cursors(cursor):
    with pytest.raises(UntrustedCursorError):
        validate_cursor(cursor, BASE_URL)


def test_next_url_must_be_absolute():
    with pytest.raises(UntrustedCursorError):
        validate_next_url("/v1/items?cursor=2", BASE_URL)

    validate_next_url(f"{BASE_URL}/v1/items?cursor=2", BASE_URL)
