"""GitHub REST API client exposing an awaitable GET."""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
from requests.structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)


class NetworkError(Exception):
    """Raised when a GitHub request fails or returns an unusable status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class RepositoryListError(NetworkError):
    """Raised when the repository list for an account cannot be loaded."""
    pass


class DetailFetchError(NetworkError):
    """Raised when recent commits or pull requests for a repository cannot be loaded."""
    pass


@dataclass(frozen=True)
class ApiResponse:
    """Status, headers and decoded JSON body of one REST call."""

    status: int
    data: Any = None
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)

    def __post_init__(self):
        if not isinstance(self.headers, CaseInsensitiveDict):
            object.__setattr__(self, "headers", CaseInsensitiveDict(self.headers or {}))

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class GitHubRestClient:
    """Client for the GitHub REST API.

    All requests share one ``aiohttp.ClientSession`` on the running event loop,
    so many of them can be in flight at once without extra threads.
    """

    DEFAULT_API_URL = "https://api.github.com"
    DEFAULT_TIMEOUT_SECONDS = 30
    MAX_CONNECTIONS = 0  # 0 disables the connector limit

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token. If None, uses GITHUB_TOKEN env var.
            api_url: API root. If None, uses GITHUB_API_URL env var or api.github.com.
            timeout: Per-request timeout in seconds. If None, uses GITHUB_TIMEOUT env var.
        """
        if token is None:
            token = os.getenv("GITHUB_TOKEN")
        if api_url is None:
            api_url = os.getenv("GITHUB_API_URL", self.DEFAULT_API_URL)
        if timeout is None:
            timeout = float(os.getenv("GITHUB_TIMEOUT", self.DEFAULT_TIMEOUT_SECONDS))

        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Accept": "application/vnd.github+json",
        }
        self._session: Optional[aiohttp.ClientSession] = None

        # Anonymous access works, subject to the much lower unauthenticated rate limit
        if self.token:
            self.headers["Authorization"] = f"token {self.token}"
        else:
            logger.warning("GITHUB_TOKEN not set. Using unauthenticated requests (limited rate).")

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def url_for(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.api_url}/{path.lstrip('/')}"

    def _get_session(self) -> aiohttp.ClientSession:
        # Created lazily so it binds to the loop that issues the first request
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                connector=aiohttp.TCPConnector(limit=self.MAX_CONNECTIONS),
            )
        return self._session

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> ApiResponse:
        """
        Issue one GET request.

        Args:
            path: Endpoint path relative to the API root, or an absolute URL
            params: Query parameters

        Returns:
            The response, whatever its status code

        Raises:
            NetworkError: If the request fails before a response arrives
        """
        url = self.url_for(path)
        query = {key: str(value) for key, value in (params or {}).items()}
        logger.debug(f"GET {url} {query or ''}")

        try:
            async with self._get_session().get(url, params=query) as response:
                data = None
                try:
                    data = await response.json(content_type=None)
                except ValueError:
                    logger.warning(f"Response from {url} is not valid JSON (status {response.status})")
                return ApiResponse(status=response.status, data=data, headers=response.headers)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"Request to {url} timed out") from e
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request to {url} failed: {e}") from e

    async def close(self):
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
