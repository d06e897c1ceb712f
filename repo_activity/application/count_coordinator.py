"""Concurrent commit and pull request count estimation for a whole repository list."""

import asyncio
import logging
from typing import AsyncIterator, Dict, Iterable, Tuple

from repo_activity.application.count_estimator import estimate_count
from repo_activity.domain.activity import ApproximateCounts
from repo_activity.domain.repository import Repository
from repo_activity.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)


async def estimate_repository_counts(
    client: GitHubRestClient,
    repository: Repository,
) -> Tuple[str, ApproximateCounts]:
    """Estimate both metrics of one repository concurrently."""
    commit_count, pull_count = await asyncio.gather(
        estimate_count(client, repository.commits_path),
        estimate_count(client, repository.pulls_path, {"state": "all"}),
    )
    return repository.full_name, ApproximateCounts(commit_count=commit_count, pull_count=pull_count)


async def estimate_all_counts(
    client: GitHubRestClient,
    repositories: Iterable[Repository],
) -> AsyncIterator[Tuple[str, ApproximateCounts]]:
    """
    Estimate counts for every repository, yielding each result as it completes.

    All repositories are dispatched at once. Results arrive in completion
    order, not list order. A repository whose task fails unexpectedly is
    logged and skipped; the others keep going.

    Args:
        client: GitHub REST client
        repositories: Repositories to estimate

    Yields:
        (full_name, ApproximateCounts) patches
    """
    tasks = [asyncio.ensure_future(estimate_repository_counts(client, repo)) for repo in repositories]
    if not tasks:
        return

    logger.info(f"Estimating activity counts for {len(tasks)} repositories")
    for next_done in asyncio.as_completed(tasks):
        try:
            yield await next_done
        except Exception as e:
            logger.error(f"Count estimation task failed: {e}")


async def collect_all_counts(
    client: GitHubRestClient,
    repositories: Iterable[Repository],
) -> Dict[str, ApproximateCounts]:
    """Wait for the whole batch and return it as a single patch."""
    return {full_name: counts async for full_name, counts in estimate_all_counts(client, repositories)}
