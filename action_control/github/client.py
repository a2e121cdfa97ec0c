"""
GitHub REST client.

Implements the RepositoryContentProvider interface on top of httpx. Connection
failures, 5xx responses and rate-limit responses are retried; rate limits wait
for as long as GitHub asks (Retry-After / X-RateLimit-Reset) and everything
else backs off exponentially. What cannot be recovered surfaces as a
TransportError (NotFoundError for 404), including bodies that are not JSON.
"""
import base64
import binascii
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from action_control import __version__
from action_control.exceptions import NotFoundError, TransportError, WorkflowParseError
from action_control.github.models import Repository
from action_control.github.workflows import extract_actions_from_workflow
from action_control.policy.models import ObservedAction
from action_control.utils.retry import async_retry

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
WORKFLOWS_DIR = ".github/workflows"
PAGE_SIZE = 100


class GitHubServerError(TransportError):
    """A 5xx response; retried before being surfaced."""
    pass


class GitHubRateLimitError(TransportError):
    """A 429, or a 403 caused by the primary or secondary rate limit."""

    def __init__(self, message: str, status_code: int, retry_after: Optional[float] = None):
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


def is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    return response.headers.get("x-ratelimit-remaining") == "0" or "retry-after" in response.headers


def rate_limit_wait(response: httpx.Response, now: Optional[float] = None) -> Optional[float]:
    """
    Seconds to wait before retrying a rate-limited request.

    `Retry-After` wins; otherwise the distance to `X-RateLimit-Reset` (epoch
    seconds) is used. None when the response announces neither.
    """
    retry_after = response.headers.get("retry-after")
    if retry_after is not None:
        try:
            return max(0.0, float(retry_after))
        except ValueError:
            pass

    reset = response.headers.get("x-ratelimit-reset")
    if reset is not None:
        try:
            return max(0.0, float(reset) - (time.time() if now is None else now))
        except ValueError:
            pass
    return None


class GitHubClient:
    """
    An asynchronous client for the GitHub REST API.
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout_s: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the GitHub client.

        Args:
            token: A personal access or Actions token.
            api_url: Base URL of the REST API (GitHub Enterprise uses /api/v3).
            timeout_s: Per-request timeout in seconds.
            transport: Optional httpx transport, mainly for tests.
        """
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": f"action-control/{__version__}",
            },
            timeout=timeout_s,
            transport=transport,
        )

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @async_retry(
        retries=3,
        delay=1.0,
        max_retry_after=60.0,
        catch_exceptions=(httpx.TransportError, GitHubServerError, GitHubRateLimitError),
    )
    async def _send(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        response = await self._client.get(url, params=params)
        if is_rate_limited(response):
            raise GitHubRateLimitError(
                f"GET {url} -> {response.status_code}: rate limited",
                status_code=response.status_code,
                retry_after=rate_limit_wait(response),
            )
        if response.status_code >= 500:
            raise GitHubServerError(
                f"GET {url} -> {response.status_code}", status_code=response.status_code
            )
        return response

    async def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        try:
            response = await self._send(url, params)
        except httpx.HTTPError as e:
            raise TransportError(f"GET {url} failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"GET {url}: not found")
        if response.status_code >= 400:
            try:
                message = response.json().get("message", response.text)
            except (ValueError, AttributeError):
                message = response.text
            raise TransportError(
                f"GET {url} -> {response.status_code}: {message}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"GET {response.request.url.path}: invalid JSON body",
                status_code=response.status_code,
            ) from e

    async def list_repositories(self, org: str) -> List[Repository]:
        """Lists every repository in an organization, following pagination."""
        url: Optional[str] = f"/orgs/{org}/repos"
        params: Optional[Dict[str, Any]] = {"per_page": PAGE_SIZE}
        repos: List[Repository] = []

        while url:
            response = await self._get(url, params)
            items = self._json(response)
            if not isinstance(items, list):
                raise TransportError(f"GET {url}: expected a list of repositories")
            for item in items:
                if not isinstance(item, dict):
                    continue
                repos.append(Repository(
                    name=item.get("name") or "",
                    full_name=item.get("full_name") or "",
                    description=item.get("description") or "",
                    private=bool(item.get("private", False)),
                ))
            # the next link already carries the query string
            url = response.links.get("next", {}).get("url")
            params = None

        logger.info("Found %d repositories in %s", len(repos), org)
        return repos

    async def get_repository_content(self, owner: str, repo: str, path: str) -> Optional[bytes]:
        """Returns the decoded content of a file, or None if it does not exist."""
        try:
            response = await self._get(f"/repos/{owner}/{repo}/contents/{path}")
        except NotFoundError:
            return None

        payload = self._json(response)
        if not isinstance(payload, dict) or not isinstance(payload.get("content"), str):
            raise TransportError(f"{owner}/{repo}:{path} is not a file")

        content = payload["content"]
        if payload.get("encoding", "base64") != "base64":
            return content.encode("utf-8")
        try:
            return base64.b64decode(content)
        except (binascii.Error, ValueError) as e:
            raise TransportError(f"failed to decode {owner}/{repo}:{path}: {e}") from e

    async def get_actions(self, owner: str, repo: str) -> List[ObservedAction]:
        """
        Returns the actions referenced by every workflow file of a repository.

        A repository without a workflows directory has no actions. Workflow
        files that cannot be fetched or parsed are skipped with a warning.
        """
        try:
            response = await self._get(f"/repos/{owner}/{repo}/contents/{WORKFLOWS_DIR}")
        except NotFoundError:
            logger.debug("%s/%s has no %s directory", owner, repo, WORKFLOWS_DIR)
            return []

        entries = self._json(response)
        if not isinstance(entries, list):
            raise TransportError(f"{owner}/{repo}:{WORKFLOWS_DIR} is not a directory")

        actions: List[ObservedAction] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            name = entry.get("name") or ""
            if not name.endswith((".yml", ".yaml")):
                continue

            path = entry.get("path") or f"{WORKFLOWS_DIR}/{name}"
            try:
                content = await self.get_repository_content(owner, repo, path)
            except TransportError as e:
                logger.warning("Skipping workflow %s in %s/%s: %s", path, owner, repo, e)
                continue
            if content is None:
                continue

            try:
                actions.extend(extract_actions_from_workflow(content, name))
            except WorkflowParseError as e:
                logger.warning("Skipping workflow %s in %s/%s: %s", path, owner, repo, e)

        logger.debug("Found %d actions in %s/%s", len(actions), owner, repo)
        return actions
