"""Application service holding one browsing session over an account's repositories."""

import asyncio
import logging
import os
from typing import Mapping, Optional, Set, Tuple

from repo_activity.application.count_coordinator import collect_all_counts, estimate_all_counts
from repo_activity.application.detail_cache import DetailCache
from repo_activity.application.repository_loader import load_repositories
from repo_activity.application.state_store import KeyedStore, LoadCycle
from repo_activity.domain.activity import ApproximateCounts, DetailStatus, RepositoryDetail
from repo_activity.domain.repository import Repository
from repo_activity.infrastructure.github_client import GitHubRestClient, RepositoryListError

logger = logging.getLogger(__name__)


class RepositoryBrowser:
    """Loads an account's repositories and keeps their counts and details in sync."""

    PUBLISH_INCREMENTAL = "incremental"
    PUBLISH_BATCH = "batch"

    def __init__(
        self,
        github_client: GitHubRestClient,
        account: str,
        publish_mode: Optional[str] = None,
    ):
        """
        Initialize browsing session.

        Args:
            github_client: GitHub API client
            account: User login whose repositories are browsed
            publish_mode: "incremental" merges each repository's counts as soon as they
                arrive, "batch" merges them all once every estimate is done.
                If None, uses COUNT_PUBLISH_MODE env var.
        """
        if publish_mode is None:
            publish_mode = os.getenv("COUNT_PUBLISH_MODE", self.PUBLISH_INCREMENTAL)
        if publish_mode not in (self.PUBLISH_INCREMENTAL, self.PUBLISH_BATCH):
            raise ValueError(f"Unknown count publish mode: {publish_mode}")

        self.github_client = github_client
        self.account = account
        self.publish_mode = publish_mode

        self.loading = False
        self.error: Optional[str] = None

        self._repositories: Tuple[Repository, ...] = ()
        self._cycle = LoadCycle()
        self._counts: KeyedStore = KeyedStore(merge=ApproximateCounts.merge)
        self._details: KeyedStore = KeyedStore()
        self._detail_cache = DetailCache(github_client, self._details, self._cycle)
        self._tasks: Set[asyncio.Task] = set()

    @property
    def repositories(self) -> Tuple[Repository, ...]:
        return self._repositories

    @property
    def counts(self) -> Mapping[str, ApproximateCounts]:
        return self._counts.snapshot()

    @property
    def details(self) -> Mapping[str, RepositoryDetail]:
        return self._details.snapshot()

    def detail(self, full_name: str) -> RepositoryDetail:
        """Detail state of one repository; NOT_REQUESTED when nothing was fetched yet."""
        return self._details.get(full_name) or RepositoryDetail()

    @property
    def expanded(self) -> frozenset:
        return self._detail_cache.expanded

    def repository(self, full_name: str) -> Optional[Repository]:
        for repo in self._repositories:
            if repo.full_name == full_name or repo.name == full_name:
                return repo
        return None

    async def load_repositories(self) -> Tuple[Repository, ...]:
        """
        Load the repository list and start count estimation in the background.

        State from any previous load is cleared first. Count estimation is
        scheduled only after the list is published and is not awaited here.

        Returns:
            The repositories, highest star count first

        Raises:
            RepositoryListError: If the list cannot be loaded
        """
        generation = self._cycle.begin()
        self._repositories = ()
        self._counts.clear()
        self._details.clear()
        self._detail_cache.reset()
        self.loading = True
        self.error = None

        try:
            repositories = await load_repositories(self.github_client, self.account)
        except RepositoryListError as e:
            logger.error(f"Failed to load repositories for {self.account}: {e}")
            if self._cycle.is_current(generation):
                self.error = str(e) or "Failed to fetch"
                self.loading = False
            raise

        if not self._cycle.publish(generation, (repo.full_name for repo in repositories)):
            logger.warning(f"Repository list from load generation {generation} was superseded")
            return repositories

        self._repositories = repositories
        self.loading = False
        self._spawn(self._refresh_counts(generation, repositories))
        return repositories

    def toggle_expansion(self, repository: Repository) -> Optional[asyncio.Task]:
        """Expand or collapse a repository, fetching its details on first expansion."""
        return self._detail_cache.toggle_expansion(repository)

    async def fetch_details(self, repository: Repository) -> RepositoryDetail:
        """Fetch a repository's details again regardless of what is cached."""
        return await self._detail_cache.fetch_details(repository)

    def badge_counts(self, full_name: str) -> Tuple[Optional[int], Optional[int]]:
        """
        Commit and pull request numbers to display for a repository.

        Estimates win. Without one, the length of loaded detail lists is used.
        None means nothing is known yet.
        """
        counts = self._counts.get(full_name) or ApproximateCounts()
        detail = self._details.get(full_name)
        loaded = detail is not None and detail.status is DetailStatus.LOADED

        commit_count = counts.commit_count
        if commit_count is None and loaded:
            commit_count = len(detail.commits)

        pull_count = counts.pull_count
        if pull_count is None and loaded:
            pull_count = len(detail.pulls)

        return commit_count, pull_count

    async def wait_for_pending(self):
        """Wait until background count estimation and detail fetches are finished."""
        while True:
            pending = {task for task in self._tasks | self._detail_cache.pending_tasks if not task.done()}
            if not pending:
                return
            await asyncio.gather(*pending)

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _refresh_counts(self, generation: int, repositories: Tuple[Repository, ...]):
        if self.publish_mode == self.PUBLISH_BATCH:
            patch = await collect_all_counts(self.github_client, repositories)
            self._counts.merge_patch(self._cycle.filter_patch(generation, patch))
            published = len(patch)
        else:
            published = 0
            async for full_name, counts in estimate_all_counts(self.github_client, repositories):
                self._counts.merge_patch(self._cycle.filter_patch(generation, {full_name: counts}))
                published += 1

        logger.info(f"Published activity counts for {published}/{len(repositories)} repositories")
