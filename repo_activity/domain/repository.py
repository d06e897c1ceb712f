"""Domain entities for GitHub repositories."""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Repository:
    """Immutable repository entity."""

    id: int
    name: str
    owner: str
    full_name: str
    stars: int
    description: Optional[str]
    language: Optional[str]
    html_url: str

    @classmethod
    def from_github_api(cls, data: dict, account: str) -> 'Repository':
        """
        Create a Repository from a REST API payload.

        Args:
            data: Repository object from the GitHub REST API
            account: Account the list was requested for, used when the payload has no owner
        """
        owner = (data.get("owner") or {}).get("login") or account
        name = data["name"]

        return cls(
            id=data.get("id", 0),
            name=name,
            owner=owner,
            full_name=data.get("full_name") or f"{owner}/{name}",
            stars=data.get("stargazers_count") or 0,
            description=data.get("description"),
            language=data.get("language"),
            html_url=data.get("html_url", ""),
        )

    @property
    def commits_path(self) -> str:
        return f"repos/{self.owner}/{self.name}/commits"

    @property
    def pulls_path(self) -> str:
        return f"repos/{self.owner}/{self.name}/pulls"


def sort_by_stars(repositories: Iterable[Repository]) -> Tuple[Repository, ...]:
    """Order repositories by star count, highest first. Ties keep source order."""
    return tuple(sorted(repositories, key=lambda repo: repo.stars, reverse=True))
