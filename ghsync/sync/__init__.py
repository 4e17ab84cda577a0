"""Sync engine for ghsync - reconcile a local tree with a GitHub branch."""

from .comparator import FileComparator, SyncAction, SyncDecision
from .engine import SyncEngine, SyncItemResult, SyncResult
from .exclusions import DEFAULT_EXCLUDES, ExclusionMatcher, rule_to_regex
from .log import SyncLog
from .modes import SyncMode
from .operations import SyncOperations
from .scanner import LocalTreeScanner, RemoteFile, RemoteTreeFetcher
from .storage import FileSystemStorage, ListedFolder, LocalStorage, ensure_parent_dirs

__all__ = [
    "SyncEngine",
    "SyncMode",
    "SyncResult",
    "SyncItemResult",
    "SyncOperations",
    "SyncLog",
    "FileComparator",
    "SyncAction",
    "SyncDecision",
    "ExclusionMatcher",
    "DEFAULT_EXCLUDES",
    "rule_to_regex",
    "LocalTreeScanner",
    "RemoteTreeFetcher",
    "RemoteFile",
    "LocalStorage",
    "FileSystemStorage",
    "ListedFolder",
    "ensure_parent_dirs",
]
