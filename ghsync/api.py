"""API client for the GitHub REST API."""

from __future__ import annotations

import logging
import random
import time
from typing import Any
from urllib.parse import quote

import httpx

from .config import config
from .exceptions import (
    GitHubAPIError,
    GitHubAuthenticationError,
    GitHubConflictError,
    GitHubInvalidResponseError,
    GitHubNetworkError,
    GitHubNotFoundError,
    GitHubPermissionError,
    GitHubRateLimitError,
    GitHubSyncConfigError,
    GitHubValidationError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, decode_content, encode_content

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
API_VERSION = "2022-11-28"

# Longest rate-limit reset we are willing to sleep through before giving up
MAX_RATE_LIMIT_WAIT: float = 60.0


def quote_path(path: str) -> str:
    """URL-quote a repository path, keeping the slashes between segments."""
    return quote(path.strip("/"), safe="/")


class GitHubClient:
    """Client for the parts of the GitHub API used by the sync engine."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = 30.0,
    ):
        """Initialize GitHub API client.

        Args:
            token: Optional personal access token (uses config if not provided)
            api_url: Optional API URL (defaults to https://api.github.com)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.token = token or config.token
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.token:
            raise GitHubSyncConfigError(
                "GitHub token not configured. "
                "Run 'ghsync init' or set the GHSYNC_TOKEN environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": API_VERSION,
                    "User-Agent": "ghsync",
                },
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GitHubClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        if isinstance(exception, (GitHubNetworkError, GitHubRateLimitError)):
            return True

        if isinstance(exception, GitHubAPIError) and exception.status_code:
            return 500 <= exception.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _rate_limit_delay(self, response: httpx.Response, attempt: int) -> float:
        """Work out how long to wait after a rate-limited response."""
        retry_after = response.headers.get("Retry-After")
        if retry_after and retry_after.isdigit():
            return float(retry_after)

        reset = response.headers.get("X-RateLimit-Reset")
        if reset and reset.isdigit():
            return max(float(reset) - time.time(), 0.0) + 1.0

        return self._calculate_retry_delay(attempt)

    @staticmethod
    def _error_message(response: httpx.Response) -> str | None:
        """Extract the 'message' field GitHub puts in error bodies."""
        try:
            if response.content:
                data = response.json()
                if isinstance(data, dict):
                    return data.get("message") or data.get("error")
        except ValueError:
            pass
        return None

    def _handle_http_error(self, e: httpx.HTTPStatusError) -> GitHubAPIError:
        """Map an HTTP error to the matching ghsync exception.

        Args:
            e: The HTTP error exception

        Returns:
            Exception to raise (or retry on)
        """
        response = e.response
        status_code = response.status_code
        detail = self._error_message(response)
        suffix = f": {detail}" if detail else ""

        if status_code == 401:
            return GitHubAuthenticationError(
                f"Invalid token or unauthorized access{suffix}", status_code
            )
        if status_code == 403:
            if response.headers.get("X-RateLimit-Remaining") == "0":
                return GitHubRateLimitError(
                    f"Rate limit exceeded{suffix}", status_code
                )
            return GitHubPermissionError(
                f"Access forbidden - check token scopes{suffix}", status_code
            )
        if status_code == 404:
            return GitHubNotFoundError(f"Resource not found{suffix}", status_code)
        if status_code == 409:
            return GitHubConflictError(f"Conflict{suffix}", status_code)
        if status_code == 422:
            return GitHubValidationError(f"Validation failed{suffix}", status_code)
        if status_code == 429:
            return GitHubRateLimitError(f"Rate limit exceeded{suffix}", status_code)

        return GitHubAPIError(
            f"API request failed with status {status_code}{suffix}", status_code
        )

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Response JSON data

        Raises:
            GitHubAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()

                content_type = response.headers.get("Content-Type", "")
                if response.content and "json" not in content_type:
                    raise GitHubInvalidResponseError(
                        f"Unexpected response type: {content_type}"
                    )

                if response.content:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise GitHubInvalidResponseError(
                            "Invalid JSON response from server"
                        ) from e
                return {}

            except httpx.HTTPStatusError as e:
                error = self._handle_http_error(e)
                last_exception = error

                if self._should_retry(error, attempt):
                    if isinstance(error, GitHubRateLimitError):
                        delay = self._rate_limit_delay(e.response, attempt)
                        if delay > MAX_RATE_LIMIT_WAIT:
                            raise error from e
                    else:
                        delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        "%s %s failed (%s), retrying in %.1fs",
                        method,
                        endpoint,
                        error,
                        delay,
                    )
                    time.sleep(delay)
                    continue
                raise error from e
            except GitHubAPIError:
                raise
            except httpx.RequestError as e:
                error = GitHubNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug("Network error on %s, retrying in %.1fs", url, delay)
                    time.sleep(delay)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise GitHubAPIError("Request failed after all retry attempts")

    # =========================
    # Account & repositories
    # =========================

    def get_authenticated_user(self) -> Any:
        """Get the user that owns the token (used to validate it).

        Returns:
            User object with 'login', 'id', ...
        """
        return self._request("GET", "/user")

    def list_repositories(self, per_page: int = 100) -> list[dict[str, Any]]:
        """List repositories the token can access, most recently updated first.

        Args:
            per_page: Page size (GitHub caps it at 100)

        Returns:
            List of repository objects
        """
        params = {"per_page": per_page, "sort": "updated"}
        return self._request("GET", "/user/repos", params=params) or []

    def list_branches(self, repo: str) -> list[dict[str, Any]]:
        """List branches of a repository.

        Args:
            repo: Repository identifier in 'owner/name' form

        Returns:
            List of branch objects with a 'name' key
        """
        return self._request("GET", f"/repos/{repo}/branches") or []

    # =========================
    # Git trees & blobs
    # =========================

    def get_tree(self, repo: str, branch: str, recursive: bool = True) -> Any:
        """Get the tree of a branch.

        A millisecond timestamp is sent as cache buster so intermediate
        caches never serve a stale tree.

        Args:
            repo: Repository identifier in 'owner/name' form
            branch: Branch name (or any tree-ish reference)
            recursive: List the whole tree instead of the top level only

        Returns:
            Response with 'sha', 'tree' and 'truncated' keys
        """
        params: dict[str, Any] = {"t": int(time.time() * 1000)}
        if recursive:
            params["recursive"] = 1
        return self._request(
            "GET", f"/repos/{repo}/git/trees/{quote_path(branch)}", params=params
        )

    def get_blob(self, repo: str, sha: str) -> bytes:
        """Download a blob by its sha.

        Args:
            repo: Repository identifier
            sha: Blob sha

        Returns:
            Raw blob content
        """
        data = self._request("GET", f"/repos/{repo}/git/blobs/{sha}")
        if data.get("encoding") != "base64":
            raise GitHubInvalidResponseError(
                f"Unsupported blob encoding: {data.get('encoding')}"
            )
        return decode_content(data.get("content", ""))

    # =========================
    # Contents
    # =========================

    def get_contents(self, repo: str, path: str, ref: str) -> tuple[bytes, str]:
        """Read a single file.

        Files above 1 MB come back without inline content; those are
        fetched through the blob endpoint instead.

        Args:
            repo: Repository identifier
            path: File path inside the repository
            ref: Branch name to read from

        Returns:
            Tuple of (content, sha)
        """
        data = self._request(
            "GET", f"/repos/{repo}/contents/{quote_path(path)}", params={"ref": ref}
        )
        if not isinstance(data, dict) or data.get("type", "file") != "file":
            raise GitHubInvalidResponseError(f"Not a file: {path}")

        sha = data.get("sha", "")
        if data.get("encoding") == "base64" and data.get("content") is not None:
            return decode_content(data["content"]), sha

        logger.debug("No inline content for %s, fetching blob %s", path, sha)
        return self.get_blob(repo, sha), sha

    def put_contents(
        self,
        repo: str,
        path: str,
        content: bytes,
        branch: str,
        sha: str | None = None,
        message: str | None = None,
    ) -> str:
        """Create or update a file.

        With a sha the update only succeeds if it matches the blob currently
        stored at that path. Without one the call can only create: an
        existing path is reported as a conflict instead of being overwritten.

        Args:
            repo: Repository identifier
            path: File path inside the repository
            content: Raw file content
            branch: Branch to commit to
            sha: Sha of the blob being replaced, if any
            message: Commit message (defaults to 'Sync: <path>')

        Returns:
            Sha of the newly stored blob
        """
        data: dict[str, Any] = {
            "message": message or f"Sync: {path}",
            "content": encode_content(content),
            "branch": branch,
        }
        if sha:
            data["sha"] = sha

        try:
            response = self._request(
                "PUT", f"/repos/{repo}/contents/{quote_path(path)}", json=data
            )
        except GitHubValidationError as e:
            if sha:
                raise
            raise GitHubConflictError(
                f"Cannot create {path} without an update token "
                f"(it may already exist remotely): {e}",
                e.status_code,
            ) from e

        return (response.get("content") or {}).get("sha", "")

    def delete_contents(
        self,
        repo: str,
        path: str,
        sha: str,
        branch: str,
        message: str | None = None,
    ) -> Any:
        """Delete a file.

        Args:
            repo: Repository identifier
            path: File path inside the repository
            sha: Sha of the blob being deleted (must be current)
            branch: Branch to commit to
            message: Commit message (defaults to 'Delete: <path>')

        Returns:
            Response with 'commit' key
        """
        data = {
            "message": message or f"Delete: {path}",
            "sha": sha,
            "branch": branch,
        }
        return self._request(
            "DELETE", f"/repos/{repo}/contents/{quote_path(path)}", json=data
        )
