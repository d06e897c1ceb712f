"""Helpers for GitHub's Link-header pagination metadata."""

from typing import Optional
from urllib.parse import parse_qs, urlparse

from requests.utils import parse_header_links


def last_page_number(link_header: Optional[str]) -> Optional[int]:
    """
    Return the page number of the ``rel="last"`` entry of a Link header.

    Args:
        link_header: Raw Link header value, e.g. '<https://...?per_page=1&page=7>; rel="last"'

    Returns:
        The last page number, or None if the header has no usable last relation
    """
    if not link_header:
        return None

    for link in parse_header_links(link_header):
        if link.get("rel") != "last":
            continue
        pages = parse_qs(urlparse(link.get("url", "")).query).get("page")
        if pages and pages[0].isdigit():
            return int(pages[0])

    return None
