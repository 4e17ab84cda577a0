"""Core sync engine for executing sync operations."""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..exceptions import GitHubSyncConfigError, GitHubSyncError, SyncInProgressError
from ..output import OutputFormatter
from .comparator import FileComparator, SyncAction, SyncDecision
from .exclusions import ExclusionMatcher
from .log import SyncLog
from .modes import SyncMode
from .operations import SyncOperations
from .scanner import LocalTreeScanner, RemoteFile, RemoteTreeFetcher
from .storage import LocalStorage

if TYPE_CHECKING:
    from ..api import GitHubClient
    from ..config import SyncSettings

logger = logging.getLogger(__name__)


@dataclass
class SyncItemResult:
    """Outcome of one planned transfer."""

    relative_path: str
    action: SyncAction
    success: bool
    error: Optional[str] = None
    sha: Optional[str] = None
    """Sha of the blob after the transfer (uploads and downloads)"""


@dataclass
class SyncResult:
    """Summary of a sync run.

    A run that reaches the end of its plan is complete even when some
    transfers failed; the failures are listed in ``failed``.
    """

    mode: SyncMode
    decisions: list[SyncDecision] = field(default_factory=list)
    items: list[SyncItemResult] = field(default_factory=list)
    dry_run: bool = False
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    @property
    def succeeded(self) -> list[SyncItemResult]:
        return [item for item in self.items if item.success]

    @property
    def failed(self) -> list[SyncItemResult]:
        return [item for item in self.items if not item.success]

    @property
    def planned(self) -> list[SyncDecision]:
        return [d for d in self.decisions if d.is_actionable]

    @property
    def stats(self) -> dict:
        """Counts per action; planned counts for dry runs, successes otherwise."""
        stats = {
            "uploads": 0,
            "downloads": 0,
            "deletes_remote": 0,
            "skips": 0,
            "failures": len(self.failed),
        }
        keys = {
            SyncAction.UPLOAD: "uploads",
            SyncAction.DOWNLOAD: "downloads",
            SyncAction.DELETE_REMOTE: "deletes_remote",
        }
        for decision in self.decisions:
            if decision.action == SyncAction.SKIP:
                stats["skips"] += 1
            elif self.dry_run:
                stats[keys[decision.action]] += 1
        for item in self.succeeded:
            stats[keys[item.action]] += 1
        return stats

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "dry_run": self.dry_run,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "stats": self.stats,
            "failed": [
                {
                    "path": item.relative_path,
                    "action": item.action.value,
                    "error": item.error,
                }
                for item in self.failed
            ],
        }


class SyncEngine:
    """Reconciles a local tree with a GitHub branch.

    Only one run may execute at a time per engine; a run requested while
    another is in progress is rejected with SyncInProgressError.
    """

    def __init__(
        self,
        client: "GitHubClient",
        storage: LocalStorage,
        output: Optional[OutputFormatter] = None,
        log: Optional[SyncLog] = None,
    ):
        """Initialize sync engine.

        Args:
            client: GitHub API client
            storage: Local storage to reconcile
            output: Output formatter for displaying progress/status
            log: Sync log receiving one entry per notable event
        """
        self.client = client
        self.storage = storage
        self.output = output or OutputFormatter()
        self.log = log if log is not None else SyncLog()
        self._run_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    @property
    def _progress_disabled(self) -> bool:
        return bool(self.output.quiet or self.output.json_output)

    def sync(
        self,
        mode: Union[SyncMode, str],
        settings: "SyncSettings",
        dry_run: bool = False,
    ) -> SyncResult:
        """Run one sync.

        Args:
            mode: Sync mode or its tag ('local_to_remote', 'remote_to_local',
                  'merge')
            settings: Settings snapshot for this run
            dry_run: If True, only compute and show the plan

        Returns:
            SyncResult with per-file outcomes

        Raises:
            GitHubSyncConfigError: If token or repository is missing
            SyncInProgressError: If another run is in progress
            GitHubAPIError: If the remote tree cannot be listed
            LocalStorageError: If the local tree cannot be listed

        Examples:
            >>> engine = SyncEngine(client, FileSystemStorage("/vault"))
            >>> result = engine.sync("merge", settings)
            >>> print(f"{len(result.failed)} file(s) failed")
        """
        if not isinstance(mode, SyncMode):
            mode = SyncMode.from_string(mode)

        if not settings.token or not settings.repo:
            raise GitHubSyncConfigError(
                "Token and repository must be configured before syncing"
            )

        if not self._run_lock.acquire(blocking=False):
            logger.info("Sync already running, dropping %s request", mode.value)
            raise SyncInProgressError("A sync is already in progress")

        try:
            return self._run(mode, settings, dry_run)
        finally:
            self._run_lock.release()

    def _run(
        self, mode: SyncMode, settings: "SyncSettings", dry_run: bool
    ) -> SyncResult:
        start_time = time.time()
        self.log.add(f">>> Starting sync [mode: {mode.value}]")
        if not self.output.quiet:
            self.output.info(f"Syncing: {settings.repo}@{settings.branch}")
            self.output.info(f"Mode: {mode.value}")
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            self.output.print("")

        matcher = ExclusionMatcher(settings.excluded_rules)

        try:
            remote_files, local_paths = self._scan(settings, matcher)
        except GitHubSyncError as e:
            self.log.add(f"Error: {e}")
            logger.error("Sync aborted: %s", e)
            raise

        comparator = FileComparator(mode, matcher)
        result = SyncResult(
            mode=mode,
            decisions=comparator.plan(local_paths, remote_files),
            dry_run=dry_run,
        )
        self._display_sync_plan(result)

        if not dry_run:
            operations = SyncOperations(
                self.client, self.storage, settings.repo, settings.branch
            )
            result.items = self._execute_decisions(result.planned, operations)

        result.finished_at = datetime.now()
        stats = result.stats
        self.log.add(
            f"Sync complete: {stats['uploads']} uploaded, "
            f"{stats['downloads']} downloaded, "
            f"{stats['deletes_remote']} deleted, {stats['failures']} failed"
        )
        logger.debug("Sync took %.2fs", time.time() - start_time)

        if not self.output.quiet:
            self._display_summary(result)

        return result

    def _scan(
        self, settings: "SyncSettings", matcher: ExclusionMatcher
    ) -> tuple[list[RemoteFile], set[str]]:
        """Fetch the remote tree, then enumerate the local tree."""
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self._progress_disabled,
        ) as progress:
            task = progress.add_task("Fetching remote tree...", total=None)
            fetcher = RemoteTreeFetcher(self.client, settings.repo)
            remote_files = fetcher.list_remote(settings.branch)
            progress.update(
                task, description=f"Found {len(remote_files)} remote file(s)"
            )

            task = progress.add_task("Scanning local files...", total=None)
            local_paths = LocalTreeScanner(self.storage, matcher).list_local()
            progress.update(
                task, description=f"Found {len(local_paths)} local file(s)"
            )

        return remote_files, local_paths

    def _execute_decisions(
        self, decisions: list[SyncDecision], operations: SyncOperations
    ) -> list[SyncItemResult]:
        """Execute decisions one after another.

        A failing transfer is recorded and the next decision runs anyway.
        """
        results: list[SyncItemResult] = []
        if not decisions:
            return results

        with Progress(disable=self._progress_disabled) as progress:
            task = progress.add_task("Syncing files...", total=len(decisions))
            for decision in decisions:
                results.append(self._execute_single_decision(decision, operations))
                progress.update(task, advance=1)

        return results

    def _execute_single_decision(
        self, decision: SyncDecision, operations: SyncOperations
    ) -> SyncItemResult:
        """Execute a single sync decision.

        Args:
            decision: Sync decision to execute
            operations: Transfer operations bound to the run's repo and branch

        Returns:
            SyncItemResult describing success or the failure reason
        """
        path = decision.relative_path
        action_start = time.time()
        sha: Optional[str] = None

        try:
            if decision.action == SyncAction.UPLOAD:
                sha = operations.upload_file(path, token=decision.token)
                self.log.add(f"Uploaded: {path}")
            elif decision.action == SyncAction.DOWNLOAD:
                sha = operations.download_file(path)
                self.log.add(f"Downloaded: {path}")
            elif decision.action == SyncAction.DELETE_REMOTE:
                if decision.remote_file is None:
                    raise ValueError(f"No remote file to delete for {path}")
                operations.delete_remote(decision.remote_file)
                self.log.add(f"Deleted remote: {path}")
        except Exception as e:
            logger.debug("%s of %s failed: %s", decision.action.value, path, e)
            self.log.add(f"Failed {decision.action.value} [{path}]: {e}")
            if not self.output.quiet:
                self.output.error(f"Error syncing {path}: {e}")
            return SyncItemResult(path, decision.action, False, error=str(e))

        logger.debug(
            "%s of %s took %.2fs",
            decision.action.value,
            path,
            time.time() - action_start,
        )
        return SyncItemResult(path, decision.action, True, sha=sha)

    def _display_sync_plan(self, result: SyncResult) -> None:
        """Display sync plan to user."""
        if self.output.quiet:
            return

        counts = {action: 0 for action in SyncAction}
        for decision in result.decisions:
            counts[decision.action] += 1

        self.output.info("Sync plan:")
        if counts[SyncAction.UPLOAD]:
            self.output.info(f"  ↑ Upload: {counts[SyncAction.UPLOAD]} file(s)")
        if counts[SyncAction.DOWNLOAD]:
            self.output.info(f"  ↓ Download: {counts[SyncAction.DOWNLOAD]} file(s)")
        if counts[SyncAction.DELETE_REMOTE]:
            self.output.info(
                f"  ✗ Delete remote: {counts[SyncAction.DELETE_REMOTE]} file(s)"
            )
        if counts[SyncAction.SKIP]:
            self.output.info(f"  = Skip: {counts[SyncAction.SKIP]} file(s)")

        if result.dry_run:
            for decision in result.planned:
                self.output.info(
                    f"  {decision.action.value}: {decision.relative_path}"
                    f" ({decision.reason})"
                )
        self.output.print("")

    def _display_summary(self, result: SyncResult) -> None:
        """Display sync summary."""
        stats = result.stats
        self.output.print("")
        if result.dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Sync complete!")

        total_actions = stats["uploads"] + stats["downloads"] + stats["deletes_remote"]
        if total_actions > 0:
            self.output.info(f"Total actions: {total_actions}")
            if stats["uploads"] > 0:
                self.output.info(f"  Uploaded: {stats['uploads']}")
            if stats["downloads"] > 0:
                self.output.info(f"  Downloaded: {stats['downloads']}")
            if stats["deletes_remote"] > 0:
                self.output.info(f"  Deleted remotely: {stats['deletes_remote']}")
        elif not result.failed:
            self.output.info("No changes needed - everything is in sync!")

        if result.failed:
            self.output.warning(
                f"{len(result.failed)} file(s) failed; see 'ghsync log' for details"
            )
