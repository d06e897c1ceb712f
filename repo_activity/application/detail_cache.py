"""Lazily loaded recent commits and pull requests per repository."""

import asyncio
import logging
from typing import Optional, Set

from repo_activity.application.state_store import KeyedStore, LoadCycle
from repo_activity.domain.activity import Commit, PullRequest, RepositoryDetail
from repo_activity.domain.repository import Repository
from repo_activity.infrastructure.github_client import (
    ApiResponse,
    DetailFetchError,
    GitHubRestClient,
    NetworkError,
)

logger = logging.getLogger(__name__)


def _items(response: ApiResponse, label: str) -> list:
    """Return the JSON array of a successful response, or raise DetailFetchError."""
    if not response.ok:
        raise DetailFetchError(f"{label} request failed: {response.status}", status=response.status)
    if not isinstance(response.data, list):
        raise DetailFetchError(f"{label} response is not a JSON array", status=response.status)
    return response.data


class DetailCache:
    """
    Expansion state plus a memoized detail fetch per repository.

    A repository is fetched on its first expansion only. Any existing entry,
    including a failed one, counts as already requested; call
    ``fetch_details`` directly to load it again.
    """

    DETAIL_PAGE_SIZE = 5

    def __init__(self, client: GitHubRestClient, details: KeyedStore, cycle: LoadCycle):
        self.client = client
        self.details = details
        self.cycle = cycle
        self._expanded: Set[str] = set()
        self._tasks: Set[asyncio.Task] = set()

    @property
    def expanded(self) -> frozenset:
        return frozenset(self._expanded)

    @property
    def pending_tasks(self) -> Set[asyncio.Task]:
        return set(self._tasks)

    def reset(self):
        """Forget expansion state. In-flight fetches are left to finish and get dropped as stale."""
        self._expanded.clear()

    def toggle_expansion(self, repository: Repository) -> Optional[asyncio.Task]:
        """
        Flip a repository between expanded and collapsed.

        Must be called from a running event loop.

        Returns:
            The scheduled fetch task on a first expansion, otherwise None
        """
        key = repository.full_name
        if key in self._expanded:
            self._expanded.discard(key)
            return None

        self._expanded.add(key)
        if key in self.details:
            return None

        generation = self._begin(repository)
        task = asyncio.get_running_loop().create_task(self._complete(repository, generation))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def fetch_details(self, repository: Repository) -> RepositoryDetail:
        """Load the latest commits and pull requests of a repository, replacing any cached entry."""
        generation = self._begin(repository)
        return await self._complete(repository, generation)

    def _begin(self, repository: Repository) -> int:
        # LOADING is published before the first await so a second toggle sees the entry
        generation = self.cycle.generation
        self._publish(generation, repository.full_name, RepositoryDetail.loading())
        return generation

    async def _complete(self, repository: Repository, generation: int) -> RepositoryDetail:
        try:
            commits_response, pulls_response = await asyncio.gather(
                self.client.get(repository.commits_path, params={"per_page": self.DETAIL_PAGE_SIZE}),
                self.client.get(
                    repository.pulls_path,
                    params={"state": "all", "per_page": self.DETAIL_PAGE_SIZE},
                ),
            )

            commits = _items(commits_response, "Commits")
            pulls = _items(pulls_response, "Pulls")

            detail = RepositoryDetail.loaded(
                [Commit.from_github_api(item) for item in commits],
                [PullRequest.from_github_api(item) for item in pulls],
            )
            logger.info(
                f"Loaded {len(detail.commits)} commits and {len(detail.pulls)} pull requests "
                f"for {repository.full_name}"
            )
        except NetworkError as e:
            logger.warning(f"Details for {repository.full_name} failed: {e}")
            detail = RepositoryDetail.failed(str(e) or "Failed")
        except Exception as e:
            logger.error(f"Details for {repository.full_name} could not be parsed: {e}", exc_info=True)
            detail = RepositoryDetail.failed(f"Malformed response: {e}")

        self._publish(generation, repository.full_name, detail)
        return detail

    def _publish(self, generation: int, key: str, detail: RepositoryDetail):
        self.details.merge_patch(self.cycle.filter_patch(generation, {key: detail}))
