"""Shared fixtures: an in-memory stand-in for GitHubRestClient."""

import asyncio

import pytest

from repo_activity.infrastructure.github_client import ApiResponse, NetworkError


class FakeGitHubClient:
    """Answers GET requests from registered routes keyed by path and page size."""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, path, per_page, status=200, data=None, headers=None, error=None, gate=None):
        """
        Register a canned answer.

        Args:
            gate: asyncio.Event the request waits on before answering
            error: exception raised instead of answering
        """
        response = ApiResponse(status=status, data=data, headers=headers or {})
        self.routes[(path, per_page)] = (response, error, gate)

    async def get(self, path, params=None):
        params = dict(params or {})
        self.calls.append((path, params))
        await asyncio.sleep(0)

        route = self.routes.get((path, params.get("per_page")))
        if route is None:
            return ApiResponse(status=404, data={"message": "Not Found"})

        response, error, gate = route
        if gate is not None:
            await gate.wait()
        if error is not None:
            raise error
        return response

    def calls_to(self, path):
        return [call for call in self.calls if call[0] == path]


def repo_payload(name, stars, owner="octo", **extra):
    payload = {
        "id": abs(hash(name)) % 100000,
        "name": name,
        "full_name": f"{owner}/{name}",
        "owner": {"login": owner},
        "stargazers_count": stars,
        "description": f"{name} repository",
        "language": "Python",
        "html_url": f"https://github.com/{owner}/{name}",
    }
    payload.update(extra)
    return payload


def commit_payload(sha, message="Fix bug\n\nLonger body", author="Ada"):
    return {
        "sha": sha,
        "commit": {"message": message, "author": {"name": author, "date": "2024-05-01T10:00:00Z"}},
        "html_url": f"https://github.com/octo/x/commit/{sha}",
    }


def pull_payload(number, state="closed", merged_at="2024-05-02T10:00:00Z"):
    return {
        "id": number * 10,
        "number": number,
        "title": f"PR {number}",
        "user": {"login": "grace"},
        "state": state,
        "merged_at": merged_at,
        "html_url": f"https://github.com/octo/x/pull/{number}",
    }


def last_link(path, page):
    return {"Link": f'<https://api.github.com/{path}?per_page=1&page=2>; rel="next", '
                    f'<https://api.github.com/{path}?per_page=1&page={page}>; rel="last"'}


@pytest.fixture
def fake_client():
    return FakeGitHubClient()


@pytest.fixture
def timeout_error():
    return NetworkError("Request timed out")
