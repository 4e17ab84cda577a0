"""Single-file transfer operations between local storage and GitHub."""

import logging
from typing import TYPE_CHECKING, Optional

from .scanner import RemoteFile
from .storage import LocalStorage, ensure_parent_dirs

if TYPE_CHECKING:
    from ..api import GitHubClient

logger = logging.getLogger(__name__)


class SyncOperations:
    """Upload, download and delete one file at a time."""

    def __init__(
        self,
        client: "GitHubClient",
        storage: LocalStorage,
        repo: str,
        branch: str,
    ):
        """Initialize sync operations.

        Args:
            client: GitHub API client
            storage: Local storage
            repo: Repository identifier in 'owner/name' form
            branch: Branch that transfers read from and commit to
        """
        self.client = client
        self.storage = storage
        self.repo = repo
        self.branch = branch

    def upload_file(self, path: str, token: Optional[str] = None) -> str:
        """Upload a local file.

        Args:
            path: Relative path, identical locally and remotely
            token: Sha of the remote blob being replaced; None to create

        Returns:
            Sha of the new remote blob

        Raises:
            LocalStorageError: If the local file cannot be read
            GitHubConflictError: If the token is stale, or the path exists
                remotely and no token was given
        """
        content = self.storage.read_binary(path)
        return self.client.put_contents(
            repo=self.repo,
            path=path,
            content=content,
            branch=self.branch,
            sha=token,
        )

    def download_file(self, path: str) -> str:
        """Download a remote file, overwriting any local copy.

        Parent directories are created first.

        Args:
            path: Relative path, identical locally and remotely

        Returns:
            Sha of the downloaded blob
        """
        content, sha = self.client.get_contents(self.repo, path, ref=self.branch)
        ensure_parent_dirs(self.storage, path)
        self.storage.write_binary(path, content)
        return sha

    def delete_remote(self, remote_file: RemoteFile) -> None:
        """Delete a remote file.

        Args:
            remote_file: Remote file; its sha must still be current
        """
        self.client.delete_contents(
            repo=self.repo,
            path=remote_file.path,
            sha=remote_file.sha,
            branch=self.branch,
        )
