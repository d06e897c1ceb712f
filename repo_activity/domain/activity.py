"""Domain entities for repository activity: commits, pull requests and per-repository state."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


@dataclass(frozen=True)
class Commit:
    """Commit as listed by the commits endpoint."""

    sha: str
    message: str
    author_name: str
    authored_at: Optional[datetime]
    html_url: str

    @classmethod
    def from_github_api(cls, data: dict) -> 'Commit':
        commit_data = data.get("commit") or {}
        author = commit_data.get("author") or {}

        return cls(
            sha=data.get("sha", ""),
            message=commit_data.get("message", ""),
            author_name=author.get("name", "unknown"),
            authored_at=_parse_timestamp(author.get("date")),
            html_url=data.get("html_url", ""),
        )

    @property
    def first_line(self) -> str:
        return self.message.split("\n")[0] if self.message else ""


@dataclass(frozen=True)
class PullRequest:
    """Pull request as listed by the pulls endpoint (open, closed or merged)."""

    number: int
    title: str
    author_login: str
    state: str
    merged: bool
    html_url: str

    @classmethod
    def from_github_api(cls, data: dict) -> 'PullRequest':
        user = data.get("user") or {}

        return cls(
            number=data.get("number", 0),
            title=data.get("title", ""),
            author_login=user.get("login", ""),
            state=data.get("state", "open"),
            merged=bool(data.get("merged_at")),
            html_url=data.get("html_url", ""),
        )


@dataclass(frozen=True)
class ApproximateCounts:
    """
    Estimated activity counts for one repository.

    None means the metric has not been estimated yet. A failed estimate is
    reported as 0, so a real zero and a failure look the same.
    """

    commit_count: Optional[int] = None
    pull_count: Optional[int] = None

    def merge(self, other: 'ApproximateCounts') -> 'ApproximateCounts':
        """Return a copy with every estimated field of ``other`` applied."""
        return ApproximateCounts(
            commit_count=other.commit_count if other.commit_count is not None else self.commit_count,
            pull_count=other.pull_count if other.pull_count is not None else self.pull_count,
        )


class DetailStatus(Enum):
    NOT_REQUESTED = "not_requested"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass(frozen=True)
class RepositoryDetail:
    """Recent commits and pull requests for one repository, tagged with its load state."""

    status: DetailStatus = DetailStatus.NOT_REQUESTED
    commits: Tuple[Commit, ...] = ()
    pulls: Tuple[PullRequest, ...] = ()
    error: Optional[str] = None

    @classmethod
    def loading(cls) -> 'RepositoryDetail':
        return cls(status=DetailStatus.LOADING)

    @classmethod
    def loaded(cls, commits, pulls) -> 'RepositoryDetail':
        return cls(status=DetailStatus.LOADED, commits=tuple(commits), pulls=tuple(pulls))

    @classmethod
    def failed(cls, message: str) -> 'RepositoryDetail':
        return cls(status=DetailStatus.FAILED, error=message)

    @property
    def is_loading(self) -> bool:
        return self.status is DetailStatus.LOADING
