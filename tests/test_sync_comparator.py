"""Tests for the FileComparator class."""

from ghsync.sync.comparator import FileComparator, SyncAction, SyncDecision
from ghsync.sync.exclusions import ExclusionMatcher
from ghsync.sync.modes import SyncMode
from ghsync.sync.scanner import RemoteFile

LOCAL = {"notes/a.md", "notes/b.md"}
REMOTE = [
    RemoteFile(path="notes/a.md", sha="tokenA"),
    RemoteFile(path="notes/c.md", sha="tokenC"),
]


def _actions(decisions: list[SyncDecision]) -> dict[str, tuple[SyncAction, object]]:
    """Map path -> (action, token) for actionable decisions."""
    return {
        d.relative_path: (d.action, d.token) for d in decisions if d.is_actionable
    }


class TestScenarios:
    """The reference scenario with local {a, b} and remote {a, c}."""

    def test_local_to_remote_plan(self):
        comparator = FileComparator(SyncMode.LOCAL_TO_REMOTE)

        plan = _actions(comparator.plan(LOCAL, REMOTE))

        assert plan == {
            "notes/a.md": (SyncAction.UPLOAD, "tokenA"),
            "notes/b.md": (SyncAction.UPLOAD, None),
            "notes/c.md": (SyncAction.DELETE_REMOTE, "tokenC"),
        }

    def test_remote_to_local_plan(self):
        comparator = FileComparator(SyncMode.REMOTE_TO_LOCAL)

        decisions = comparator.plan(LOCAL, REMOTE)
        plan = _actions(decisions)

        assert set(plan) == {"notes/a.md", "notes/c.md"}
        assert all(action == SyncAction.DOWNLOAD for action, _ in plan.values())
        skipped = [d for d in decisions if d.relative_path == "notes/b.md"]
        assert len(skipped) == 1
        assert skipped[0].action == SyncAction.SKIP

    def test_merge_plan(self):
        comparator = FileComparator(SyncMode.MERGE)

        decisions = comparator.plan(LOCAL, REMOTE)
        plan = _actions(decisions)

        assert plan == {
            "notes/b.md": (SyncAction.UPLOAD, None),
            "notes/c.md": (SyncAction.DOWNLOAD, "tokenC"),
        }
        both = [d for d in decisions if d.relative_path == "notes/a.md"]
        assert [d.action for d in both] == [SyncAction.SKIP]


class TestPlanShape:
    """General properties of computed plans."""

    def test_one_decision_per_path(self):
        for mode in SyncMode:
            decisions = FileComparator(mode).plan(LOCAL, REMOTE)
            paths = [d.relative_path for d in decisions]
            assert len(paths) == len(set(paths)), mode
            assert set(paths) == {"notes/a.md", "notes/b.md", "notes/c.md"}

    def test_empty_inputs(self):
        for mode in SyncMode:
            assert FileComparator(mode).plan(set(), []) == []

    def test_local_paths_sorted_before_remote(self):
        comparator = FileComparator(SyncMode.LOCAL_TO_REMOTE)
        remote = [RemoteFile("z.md", "s1")]

        decisions = comparator.plan({"b.md", "a.md"}, remote)

        assert [d.relative_path for d in decisions] == ["a.md", "b.md", "z.md"]

    def test_exact_string_matching(self):
        """Paths differing only in case are different files."""
        comparator = FileComparator(SyncMode.MERGE)
        remote = [RemoteFile("Notes/A.md", "s1")]

        plan = _actions(comparator.plan({"notes/a.md"}, remote))

        assert plan == {
            "notes/a.md": (SyncAction.UPLOAD, None),
            "Notes/A.md": (SyncAction.DOWNLOAD, "s1"),
        }


class TestModeCapabilities:
    """Plans follow the capabilities each mode declares."""

    def test_remote_to_local_replaces_shared_paths(self):
        decisions = FileComparator(SyncMode.REMOTE_TO_LOCAL).plan(LOCAL, REMOTE)

        shared = [d for d in decisions if d.relative_path == "notes/a.md"]
        assert len(shared) == 1
        assert shared[0].action == SyncAction.DOWNLOAD
        assert shared[0].reason == "Remote copy replaces local"

    def test_download_only_where_allowed(self):
        for mode in SyncMode:
            decisions = FileComparator(mode).plan(LOCAL, REMOTE)
            downloads = [d for d in decisions if d.action == SyncAction.DOWNLOAD]
            assert bool(downloads) == mode.allows_download, mode

    def test_shared_paths_untouched_when_not_overwriting(self):
        for mode in SyncMode:
            decisions = FileComparator(mode).plan(LOCAL, REMOTE)
            shared = [d for d in decisions if d.relative_path == "notes/a.md"]
            assert shared[0].is_actionable == mode.overwrites_existing, mode


class TestExclusions:
    """Remote-side exclusion handling."""

    def test_local_to_remote_never_deletes_excluded(self):
        matcher = ExclusionMatcher([".obsidian/workspace.json"])
        comparator = FileComparator(SyncMode.LOCAL_TO_REMOTE, matcher)
        remote = [RemoteFile(".obsidian/workspace.json", "w1")]

        decisions = comparator.plan(set(), remote)

        assert [d.action for d in decisions] == [SyncAction.SKIP]
        assert decisions[0].reason == "Excluded"

    def test_remote_to_local_skips_excluded(self):
        matcher = ExclusionMatcher(["private/*"])
        comparator = FileComparator(SyncMode.REMOTE_TO_LOCAL, matcher)
        remote = [RemoteFile("private/key.md", "k1"), RemoteFile("pub.md", "p1")]

        plan = _actions(comparator.plan(set(), remote))

        assert plan == {"pub.md": (SyncAction.DOWNLOAD, "p1")}

    def test_merge_skips_excluded_remote(self):
        matcher = ExclusionMatcher(["node_modules"])
        comparator = FileComparator(SyncMode.MERGE, matcher)
        remote = [RemoteFile("node_modules/x/index.js", "n1")]

        assert _actions(comparator.plan(set(), remote)) == {}


class TestMergeSafety:
    """Merge never deletes and never overwrites."""

    def test_merge_never_deletes(self):
        comparator = FileComparator(SyncMode.MERGE)
        remote = [RemoteFile(f"r{i}.md", f"s{i}") for i in range(5)]

        decisions = comparator.plan({"l.md"}, remote)

        assert all(d.action != SyncAction.DELETE_REMOTE for d in decisions)

    def test_merge_never_touches_shared_paths(self):
        shared = {"a.md", "b/c.md"}
        remote = [RemoteFile(p, "s") for p in sorted(shared)]

        decisions = FileComparator(SyncMode.MERGE).plan(shared, remote)

        assert all(d.action == SyncAction.SKIP for d in decisions)

    def test_merge_uploads_never_carry_token(self):
        comparator = FileComparator(SyncMode.MERGE)

        decisions = comparator.plan({"new.md"}, [])

        assert decisions[0].action == SyncAction.UPLOAD
        assert decisions[0].token is None


class TestIdempotence:
    """A second LOCAL_TO_REMOTE plan against a mirrored remote."""

    def test_second_run_has_no_deletes_and_only_token_updates(self):
        comparator = FileComparator(SyncMode.LOCAL_TO_REMOTE)
        local = {"a.md", "b.md"}
        mirrored = [RemoteFile("a.md", "new-a"), RemoteFile("b.md", "new-b")]

        plan = _actions(comparator.plan(local, mirrored))

        assert plan == {
            "a.md": (SyncAction.UPLOAD, "new-a"),
            "b.md": (SyncAction.UPLOAD, "new-b"),
        }
