"""Tests for local and remote tree listing."""

from unittest.mock import Mock

import pytest

from ghsync.api import GitHubClient
from ghsync.exceptions import (
    GitHubInvalidResponseError,
    GitHubNotFoundError,
    LocalStorageError,
)
from ghsync.sync.exclusions import ExclusionMatcher
from ghsync.sync.scanner import LocalTreeScanner, RemoteFile, RemoteTreeFetcher
from ghsync.sync.storage import FileSystemStorage, ListedFolder


class TestLocalTreeScanner:
    """Tests for LocalTreeScanner."""

    @pytest.fixture
    def vault(self, tmp_path):
        (tmp_path / "notes" / "deep").mkdir(parents=True)
        (tmp_path / "notes" / "a.md").write_text("a")
        (tmp_path / "notes" / "deep" / "b.md").write_text("b")
        (tmp_path / ".obsidian").mkdir()
        (tmp_path / ".obsidian" / "app.json").write_text("{}")
        (tmp_path / ".obsidian" / "workspace.json").write_text("{}")
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "HEAD").write_text("ref")
        (tmp_path / ".hidden").write_text("h")
        return tmp_path

    def test_lists_all_files_recursively(self, vault):
        scanner = LocalTreeScanner(FileSystemStorage(vault), ExclusionMatcher([]))

        assert scanner.list_local() == {
            "notes/a.md",
            "notes/deep/b.md",
            ".obsidian/app.json",
            ".obsidian/workspace.json",
            ".git/HEAD",
            ".hidden",
        }

    def test_default_rules_applied(self, vault):
        """Hidden files stay, excluded files and folders go."""
        scanner = LocalTreeScanner(FileSystemStorage(vault), ExclusionMatcher())

        assert scanner.list_local() == {
            "notes/a.md",
            "notes/deep/b.md",
            ".obsidian/app.json",
            ".hidden",
        }

    def test_excluded_folder_not_descended(self):
        """Test that an excluded folder is never listed."""
        storage = Mock()
        storage.list.side_effect = lambda path: {
            "": ListedFolder(files=["a.md"], folders=["node_modules"]),
        }[path]
        scanner = LocalTreeScanner(storage, ExclusionMatcher(["node_modules"]))

        assert scanner.list_local() == {"a.md"}
        storage.list.assert_called_once_with("")

    def test_subdirectory_start(self, vault):
        scanner = LocalTreeScanner(FileSystemStorage(vault), ExclusionMatcher())

        assert scanner.list_local("notes") == {"notes/a.md", "notes/deep/b.md"}

    def test_listing_error_propagates(self, tmp_path):
        scanner = LocalTreeScanner(
            FileSystemStorage(tmp_path / "nope"), ExclusionMatcher()
        )

        with pytest.raises(LocalStorageError):
            scanner.list_local()


class TestRemoteTreeFetcher:
    """Tests for RemoteTreeFetcher."""

    @pytest.fixture
    def mock_client(self):
        return Mock(spec=GitHubClient)

    def test_keeps_blobs_only(self, mock_client):
        mock_client.get_tree.return_value = {
            "sha": "root",
            "truncated": False,
            "tree": [
                {"path": "notes", "type": "tree", "sha": "t1"},
                {"path": "notes/a.md", "type": "blob", "sha": "s1", "size": 5},
                {"path": "lib", "type": "commit", "sha": "c1"},
                {"path": "c.md", "type": "blob", "sha": "s2"},
            ],
        }
        fetcher = RemoteTreeFetcher(mock_client, "octo/vault")

        files = fetcher.list_remote("main")

        assert files == [
            RemoteFile("notes/a.md", "s1", 5),
            RemoteFile("c.md", "s2", None),
        ]
        mock_client.get_tree.assert_called_once_with(
            "octo/vault", "main", recursive=True
        )

    def test_duplicate_paths_collapsed(self, mock_client):
        mock_client.get_tree.return_value = {
            "tree": [
                {"path": "a.md", "type": "blob", "sha": "first"},
                {"path": "a.md", "type": "blob", "sha": "second"},
            ]
        }

        files = RemoteTreeFetcher(mock_client, "o/r").list_remote("main")

        assert files == [RemoteFile("a.md", "first")]

    def test_empty_tree(self, mock_client):
        mock_client.get_tree.return_value = {"sha": "root", "tree": []}

        assert RemoteTreeFetcher(mock_client, "o/r").list_remote("main") == []

    def test_truncated_tree_rejected(self, mock_client):
        """A partial listing is never returned."""
        mock_client.get_tree.return_value = {
            "truncated": True,
            "tree": [{"path": "a.md", "type": "blob", "sha": "s"}],
        }

        with pytest.raises(GitHubInvalidResponseError, match="truncated"):
            RemoteTreeFetcher(mock_client, "o/r").list_remote("main")

    def test_errors_propagate(self, mock_client):
        mock_client.get_tree.side_effect = GitHubNotFoundError("missing", 404)

        with pytest.raises(GitHubNotFoundError):
            RemoteTreeFetcher(mock_client, "o/r").list_remote("nope")


class TestRemoteFile:
    def test_from_tree_entry(self):
        entry = {"path": "x/y.md", "sha": "abc", "size": 12, "mode": "100644"}
        assert RemoteFile.from_tree_entry(entry) == RemoteFile("x/y.md", "abc", 12)
