"""ghsync - keep a local folder in sync with a GitHub repository."""

from .api import GitHubClient
from .config import ConfigManager, SyncSettings
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
    GitHubSyncError,
    GitHubValidationError,
    LocalStorageError,
    SyncInProgressError,
)
from .sync import FileSystemStorage, SyncEngine, SyncMode, SyncResult
from .utils import decode_content, encode_content

__all__ = [
    "GitHubClient",
    "ConfigManager",
    "SyncSettings",
    "SyncEngine",
    "SyncMode",
    "SyncResult",
    "FileSystemStorage",
    "GitHubSyncError",
    "GitHubSyncConfigError",
    "GitHubAPIError",
    "GitHubAuthenticationError",
    "GitHubConflictError",
    "GitHubInvalidResponseError",
    "GitHubNetworkError",
    "GitHubNotFoundError",
    "GitHubPermissionError",
    "GitHubRateLimitError",
    "GitHubValidationError",
    "LocalStorageError",
    "SyncInProgressError",
    "decode_content",
    "encode_content",
]
