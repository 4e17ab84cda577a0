"""Exceptions raised by ghsync."""

from typing import Optional


class GitHubSyncError(Exception):
    """Base exception for all ghsync errors."""


class GitHubSyncConfigError(GitHubSyncError):
    """Configuration is missing or invalid (no token, no repository, ...)."""


class GitHubAPIError(GitHubSyncError):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthenticationError(GitHubAPIError):
    """Token is invalid or lacks access (HTTP 401)."""


class GitHubPermissionError(GitHubAPIError):
    """Access forbidden (HTTP 403 without rate limit exhaustion)."""


class GitHubNotFoundError(GitHubAPIError):
    """Repository, branch or path not found (HTTP 404)."""


class GitHubConflictError(GitHubAPIError):
    """The supplied update token does not match the current remote blob.

    Also raised when a create (no token) targets a path that already exists.
    """


class GitHubValidationError(GitHubAPIError):
    """The request was rejected as unprocessable (HTTP 422)."""


class GitHubRateLimitError(GitHubAPIError):
    """API rate limit exceeded."""


class GitHubNetworkError(GitHubAPIError):
    """Network-level failure talking to the API."""


class GitHubInvalidResponseError(GitHubAPIError):
    """The API returned something that is not the expected JSON."""


class LocalStorageError(GitHubSyncError):
    """A local read, write, listing or mkdir failed."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path


class SyncInProgressError(GitHubSyncError):
    """A sync run was requested while another one is still running."""
