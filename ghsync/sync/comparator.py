"""Plan computation: which files to upload, download or delete."""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .exclusions import ExclusionMatcher
from .modes import SyncMode
from .scanner import RemoteFile


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote (create, or update with a token)"""

    DOWNLOAD = "download"
    """Download remote file to local"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file"""

    SKIP = "skip"
    """Skip file (no action needed or allowed)"""


@dataclass(frozen=True)
class SyncDecision:
    """Represents a decision about how to sync a file."""

    action: SyncAction
    """Action to take"""

    relative_path: str
    """Relative path of the file"""

    reason: str
    """Human-readable reason for this decision"""

    remote_file: Optional[RemoteFile] = None
    """Remote counterpart, if the path exists remotely"""

    @property
    def token(self) -> Optional[str]:
        """Update token to send with the transfer, if any.

        Only decisions with a remote counterpart carry one; creates never do.
        """
        if self.remote_file is None:
            return None
        return self.remote_file.sha

    @property
    def is_actionable(self) -> bool:
        return self.action != SyncAction.SKIP


class FileComparator:
    """Compares local and remote trees to determine sync actions."""

    def __init__(
        self, sync_mode: SyncMode, matcher: Optional[ExclusionMatcher] = None
    ):
        """Initialize file comparator.

        Args:
            sync_mode: Sync mode to use for comparison
            matcher: Exclusion rules applied to remote paths
        """
        self.sync_mode = sync_mode
        self.matcher = matcher or ExclusionMatcher([])

    def plan(
        self, local_paths: Iterable[str], remote_files: Iterable[RemoteFile]
    ) -> list[SyncDecision]:
        """Compute the sync plan.

        Local paths are handled first (sorted), then remote files in tree
        order. Paths are matched by exact string equality.

        Args:
            local_paths: Relative paths of the local files
            remote_files: Remote blobs

        Returns:
            List of SyncDecision objects, including skips
        """
        local_set = set(local_paths)
        remote_list = list(remote_files)
        remote_map = {r.path: r for r in remote_list}

        decisions: list[SyncDecision] = []
        for path in sorted(local_set):
            decision = self._handle_local(path, remote_map.get(path))
            if decision is not None:
                decisions.append(decision)

        for remote_file in remote_list:
            decision = self._handle_remote(remote_file, remote_file.path in local_set)
            if decision is not None:
                decisions.append(decision)

        return decisions

    def _handle_local(
        self, path: str, remote_file: Optional[RemoteFile]
    ) -> Optional[SyncDecision]:
        """Decide what happens to a file that exists locally.

        Returns None when the remote pass decides on the path instead.
        """
        if remote_file is None:
            if self.sync_mode.allows_upload:
                return SyncDecision(SyncAction.UPLOAD, path, "New local file")
            return SyncDecision(
                SyncAction.SKIP,
                path,
                f"Local-only file kept by {self.sync_mode.value}",
            )

        if not self.sync_mode.overwrites_existing:
            return SyncDecision(
                SyncAction.SKIP, path, "Exists on both sides", remote_file
            )
        if self.sync_mode.allows_upload:
            return SyncDecision(
                SyncAction.UPLOAD, path, "Local copy replaces remote", remote_file
            )
        return None

    def _handle_remote(
        self, remote_file: RemoteFile, exists_locally: bool
    ) -> Optional[SyncDecision]:
        """Decide what happens to a remote file.

        Returns None for remote files that the local pass already decided on.
        """
        path = remote_file.path
        replaces_local = (
            self.sync_mode.overwrites_existing and self.sync_mode.allows_download
        )

        if exists_locally and not replaces_local:
            return None

        if self.matcher.is_excluded(path):
            return SyncDecision(SyncAction.SKIP, path, "Excluded", remote_file)

        if exists_locally:
            return SyncDecision(
                SyncAction.DOWNLOAD, path, "Remote copy replaces local", remote_file
            )
        if self.sync_mode.allows_remote_delete:
            return SyncDecision(
                SyncAction.DELETE_REMOTE, path, "Not present locally", remote_file
            )
        if self.sync_mode.allows_download:
            return SyncDecision(
                SyncAction.DOWNLOAD, path, "New remote file", remote_file
            )
        return SyncDecision(
            SyncAction.SKIP,
            path,
            f"Remote-only file kept by {self.sync_mode.value}",
            remote_file,
        )
