"""Local storage access used by the sync engine.

The engine only talks to :class:`LocalStorage`; :class:`FileSystemStorage`
is the implementation backed by a directory on disk. Paths are always
relative to the storage root and use forward slashes.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, Union

from ..exceptions import LocalStorageError
from ..utils import join_path, normalize_path, parent_dirs

logger = logging.getLogger(__name__)


@dataclass
class ListedFolder:
    """Result of listing one directory."""

    files: list[str] = field(default_factory=list)
    """Root-relative paths of the files directly inside the directory"""

    folders: list[str] = field(default_factory=list)
    """Root-relative paths of the subdirectories"""


class LocalStorage(Protocol):
    """Operations the engine needs from local storage."""

    def list(self, path: str) -> ListedFolder: ...

    def read_binary(self, path: str) -> bytes: ...

    def write_binary(self, path: str, content: bytes) -> None: ...

    def exists(self, path: str) -> bool: ...

    def mkdir(self, path: str) -> None: ...


class FileSystemStorage:
    """LocalStorage over a directory tree on disk."""

    def __init__(self, root: Union[Path, str]):
        """Initialize storage.

        Args:
            root: Directory that relative paths are resolved against
        """
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        relative = normalize_path(path)
        if any(part == ".." for part in relative.split("/")):
            raise LocalStorageError(f"Path escapes storage root: {path}", path)
        return self.root / relative if relative else self.root

    def list(self, path: str = "") -> ListedFolder:
        """List the files and subdirectories of a directory.

        Symlinked directories are skipped so a link back to an ancestor
        cannot make the tree infinite. Symlinked files are listed.

        Raises:
            LocalStorageError: If the directory cannot be read
        """
        directory = self._resolve(path)
        parent = normalize_path(path)
        listed = ListedFolder()
        try:
            for item in sorted(directory.iterdir()):
                child = join_path(parent, item.name)
                if item.is_symlink() and item.is_dir():
                    logger.debug(f"Skipping symlinked directory: {child}")
                    continue
                if item.is_dir():
                    listed.folders.append(child)
                elif item.is_file():
                    listed.files.append(child)
        except OSError as e:
            raise LocalStorageError(f"Cannot list {path or '.'}: {e}", path) from e
        return listed

    def read_binary(self, path: str) -> bytes:
        try:
            return self._resolve(path).read_bytes()
        except OSError as e:
            raise LocalStorageError(f"Cannot read {path}: {e}", path) from e

    def write_binary(self, path: str, content: bytes) -> None:
        try:
            self._resolve(path).write_bytes(content)
        except OSError as e:
            raise LocalStorageError(f"Cannot write {path}: {e}", path) from e

    def exists(self, path: str) -> bool:
        return self._resolve(path).exists()

    def mkdir(self, path: str) -> None:
        """Create a single directory.

        Raises:
            FileExistsError: If something already exists at the path
            LocalStorageError: On any other failure
        """
        try:
            self._resolve(path).mkdir()
        except FileExistsError:
            raise
        except OSError as e:
            raise LocalStorageError(f"Cannot create directory {path}: {e}", path) from e


def ensure_parent_dirs(storage: LocalStorage, path: str) -> None:
    """Create every missing ancestor directory of a file path.

    A directory that already exists, or that appears between the existence
    check and the mkdir call, counts as success.

    Args:
        storage: Local storage
        path: Root-relative file path
    """
    for directory in parent_dirs(path):
        if storage.exists(directory):
            continue
        try:
            storage.mkdir(directory)
            logger.debug(f"Created directory {directory}")
        except FileExistsError:
            logger.debug(f"Directory {directory} appeared concurrently")
