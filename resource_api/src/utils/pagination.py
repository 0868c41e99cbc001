"""
Pagination response headers.

``X-Total-Count`` carries the collection size; ``Link`` carries RFC 5988
navigation links built from the current request URL with ``page`` and
``size`` replaced and every other query parameter preserved.
"""

from typing import Dict

from starlette.datastructures import URL

from resource_api.src.models.pagination import Page

TOTAL_COUNT_HEADER = "X-Total-Count"


def prepare_link(url: URL, page: int, size: int, rel: str) -> str:
    target = url.include_query_params(page=page, size=size)
    return f'<{target}>; rel="{rel}"'


def generate_pagination_headers(url: URL, page: Page) -> Dict[str, str]:
    """
    Build pagination headers for a page.

    Links appear in the order next, prev, last, first; ``next`` only when a
    following page exists, ``prev`` only when not on the first page.

    Args:
        url: URL of the current request
        page: Page returned by the store

    Returns:
        Header mapping with X-Total-Count and Link
    """
    links = []

    if page.has_next:
        links.append(prepare_link(url, page.number + 1, page.size, "next"))
    if page.has_previous:
        links.append(prepare_link(url, page.number - 1, page.size, "prev"))

    last_page = max(page.total_pages - 1, 0)
    links.append(prepare_link(url, last_page, page.size, "last"))
    links.append(prepare_link(url, 0, page.size, "first"))

    return {
        TOTAL_COUNT_HEADER: str(page.total_elements),
        "Link": ",".join(links),
    }
