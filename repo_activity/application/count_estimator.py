"""Approximate collection sizes from one single-item page plus Link metadata."""

import logging
from typing import Any, Dict, Optional

from repo_activity.infrastructure.github_client import GitHubRestClient, NetworkError
from repo_activity.infrastructure.pagination import last_page_number

logger = logging.getLogger(__name__)

COUNT_PAGE_SIZE = 1


async def estimate_count(
    client: GitHubRestClient,
    path: str,
    params: Optional[Dict[str, Any]] = None,
) -> int:
    """
    Estimate how many items a paginated collection holds.

    Requests the first page with one item per page. With a page size of 1 the
    ``rel="last"`` page number is the item count. Without a last relation the
    collection fits on one page, so the items in the body are counted instead.

    Args:
        client: GitHub REST client
        path: Collection endpoint
        params: Extra query parameters (per_page is always overridden)

    Returns:
        Estimated item count; 0 when the request fails
    """
    query = dict(params or {})
    query["per_page"] = COUNT_PAGE_SIZE

    try:
        response = await client.get(path, params=query)
    except NetworkError as e:
        logger.warning(f"Count estimate for {path} failed: {e}. Using 0.")
        return 0

    if not response.ok:
        logger.warning(f"Count estimate for {path} returned HTTP {response.status}. Using 0.")
        return 0

    last_page = last_page_number(response.headers.get("Link"))
    if last_page is not None:
        return last_page

    return len(response.data) if isinstance(response.data, list) else 0
