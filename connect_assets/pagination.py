"""
Module for validating pagination cursors and aggregating multi-page listings.
"""
import logging
from typing import Callable, Optional
from urllib.parse import urlsplit

from .errors import PaginationError, RepeatedCursorError, UntrustedCursorError
from .models import Page

logger = logging.getLogger(__name__)

FetchPage = Callable[[str], Page]


def validate_cursor(cursor: Optional[str], base_url: str) -> None:
    """Ensure a "next" cursor stays on the trusted API host.

    Relative cursors are resolved against the API base URL and are always
    accepted. Absolute cursors must use https and the base URL's host.

    Args:
        cursor: Cursor URL from a response or from user input
        base_url: The API base URL requests are made against

    Raises:
        UntrustedCursorError: If the cursor points anywhere else
    """
    cursor = (cursor or "").strip()
    if not cursor:
        return

    parts = urlsplit(cursor)
    if not parts.scheme and not parts.netloc:
        return

    trusted_host = urlsplit(base_url).netloc
    if parts.netloc != trusted_host:
        raise UntrustedCursorError(
            f"rejected pagination URL from untrusted host {parts.netloc!r} (expected {trusted_host!r})"
        )
    if parts.scheme != "https":
        raise UntrustedCursorError(
            f"rejected pagination URL with insecure scheme {parts.scheme!r} (expected 'https')"
        )


def validate_next_url(next_url: str, base_url: str) -> None:
    """Validate a --next URL supplied on the command line.

    Unlike cursors from responses, user input must be an absolute https
    URL on the API host.

    Raises:
        UntrustedCursorError: If the URL is relative or points elsewhere
    """
    parts = urlsplit(next_url.strip())
    if not parts.scheme or not parts.netloc:
        raise UntrustedCursorError(f"--next must be an absolute URL, got {next_url!r}")
    validate_cursor(next_url, base_url)


def paginate_all(first_page: Page, fetch: FetchPage, base_url: str) -> Page:
    """Follow "next" cursors from the first page and concatenate every page.

    Args:
        first_page: The page already fetched by the caller
        fetch: Callable that fetches the page a cursor points to
        base_url: The API base URL cursors must stay on

    Returns:
        A single Page holding all items in arrival order and no cursor

    Raises:
        UntrustedCursorError: Before fetching a cursor on another host
        RepeatedCursorError: If a cursor comes back a second time
        PaginationError: If fetch returns something other than a Page
    """
    result = Page(items=list(first_page.items), next_cursor=None)
    seen = set()
    page = first_page
    page_number = 1

    while page.next_cursor:
        cursor = page.next_cursor
        validate_cursor(cursor, base_url)
        if cursor in seen:
            raise RepeatedCursorError(f"page {page_number + 1}: detected repeated pagination URL {cursor!r}")
        seen.add(cursor)
        page_number += 1

        page = fetch(cursor)
        if not isinstance(page, Page):
            raise PaginationError(
                f"page {page_number}: unexpected response type {type(page).__name__}"
            )
        result.items.extend(page.items)

    logger.debug(f"Aggregated {len(result.items)} items across {page_number} page(s)")
    return result
