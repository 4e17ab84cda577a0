"""Local and remote tree listing for sync operations."""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..exceptions import GitHubInvalidResponseError
from .exclusions import ExclusionMatcher
from .storage import LocalStorage

if TYPE_CHECKING:
    from ..api import GitHubClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemoteFile:
    """One blob in the remote tree."""

    path: str
    """Repository-relative path (forward slashes, no leading slash)"""

    sha: str
    """Content-addressed update token; required to update or delete the blob"""

    size: Optional[int] = None
    """Blob size in bytes, if reported"""

    @classmethod
    def from_tree_entry(cls, entry: dict) -> "RemoteFile":
        """Create a RemoteFile from an entry of a git tree response."""
        return cls(path=entry["path"], sha=entry["sha"], size=entry.get("size"))


class LocalTreeScanner:
    """Enumerates every non-excluded file under the local storage root.

    Hidden files and host configuration folders are included unless a rule
    excludes them.

    Examples:
        >>> scanner = LocalTreeScanner(FileSystemStorage("/vault"), ExclusionMatcher())
        >>> paths = scanner.list_local()
    """

    def __init__(self, storage: LocalStorage, matcher: ExclusionMatcher):
        self.storage = storage
        self.matcher = matcher

    def list_local(self, directory: str = "") -> set[str]:
        """Recursively list files below a directory.

        Args:
            directory: Root-relative directory to start from ("" for the root)

        Returns:
            Set of root-relative file paths

        Raises:
            LocalStorageError: If any directory listing fails
        """
        files: set[str] = set()
        listed = self.storage.list(directory)

        for file_path in listed.files:
            if self.matcher.is_excluded(file_path):
                logger.debug(f"Excluded: {file_path}")
                continue
            files.add(file_path)

        for folder in listed.folders:
            if self.matcher.is_excluded(folder):
                logger.debug(f"Excluded directory: {folder}")
                continue
            files |= self.list_local(folder)

        return files


class RemoteTreeFetcher:
    """Lists every blob on a branch with a single recursive tree request."""

    def __init__(self, client: "GitHubClient", repo: str):
        """Initialize fetcher.

        Args:
            client: GitHub API client
            repo: Repository identifier in 'owner/name' form
        """
        self.client = client
        self.repo = repo

    def list_remote(self, branch: str) -> list[RemoteFile]:
        """Fetch the remote file set for a branch.

        Tree entries for directories and submodules are dropped; only blobs
        are returned, in the order the API lists them.

        Args:
            branch: Branch name

        Returns:
            List of RemoteFile objects, unique by path

        Raises:
            GitHubAPIError: If the tree cannot be fetched
            GitHubInvalidResponseError: If the API returned a truncated tree
        """
        start = time.time()
        response = self.client.get_tree(self.repo, branch, recursive=True)

        if response.get("truncated"):
            raise GitHubInvalidResponseError(
                f"Remote tree for {self.repo}@{branch} is truncated; "
                "refusing to sync against a partial listing"
            )

        remote_files: list[RemoteFile] = []
        seen: set[str] = set()
        for entry in response.get("tree") or []:
            if entry.get("type") != "blob" or entry.get("path") in seen:
                continue
            seen.add(entry["path"])
            remote_files.append(RemoteFile.from_tree_entry(entry))

        logger.debug(
            "Fetched %d remote file(s) in %.2fs", len(remote_files), time.time() - start
        )
        return remote_files
