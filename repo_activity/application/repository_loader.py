"""Load an account's repository list once, ordered by stars."""

import logging
from typing import Tuple

from repo_activity.domain.repository import Repository, sort_by_stars
from repo_activity.infrastructure.github_client import (
    GitHubRestClient,
    NetworkError,
    RepositoryListError,
)

logger = logging.getLogger(__name__)

REPOS_PAGE_SIZE = 100  # Maximum allowed by GitHub API


async def load_repositories(client: GitHubRestClient, account: str) -> Tuple[Repository, ...]:
    """
    Fetch the first page of an account's repositories.

    Args:
        client: GitHub REST client
        account: User login whose repositories are listed

    Returns:
        Repositories sorted by star count, highest first

    Raises:
        RepositoryListError: If the request fails, returns a non-2xx status or holds malformed items
    """
    try:
        response = await client.get(f"users/{account}/repos", params={"per_page": REPOS_PAGE_SIZE})
    except NetworkError as e:
        raise RepositoryListError(str(e)) from e

    if not response.ok:
        raise RepositoryListError(f"HTTP {response.status}", status=response.status)

    if not isinstance(response.data, list):
        logger.warning(f"Repository list for {account} is not a JSON array. Treating it as empty.")
        return ()

    try:
        repositories = sort_by_stars(Repository.from_github_api(item, account) for item in response.data)
    except (KeyError, TypeError, AttributeError) as e:
        raise RepositoryListError(f"Malformed repository list: {e!r}", status=response.status) from e

    logger.info(f"Loaded {len(repositories)} repositories for {account}")
    return repositories
