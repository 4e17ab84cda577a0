"""Tests for the sync log ring buffer."""

from datetime import datetime

from ghsync.sync.log import SyncLog


class TestSyncLog:
    def test_entry_format(self):
        log = SyncLog()
        entry = log.add("Uploaded: a.md", moment=datetime(2024, 5, 1, 9, 8, 7))
        assert entry == "[09:08:07] Uploaded: a.md"
        assert log.entries == [entry]

    def test_newest_first(self):
        log = SyncLog()
        log.add("first")
        log.add("second")
        assert log.entries[0].endswith("second")
        assert log.entries[1].endswith("first")

    def test_capacity_drops_oldest(self):
        log = SyncLog(capacity=10)
        for i in range(15):
            log.add(f"msg {i}")
        assert len(log) == 10
        assert log.entries[0].endswith("msg 14")
        assert log.entries[-1].endswith("msg 5")

    def test_initial_entries_kept_newest_first(self):
        existing = [f"[00:00:0{i}] old {i}" for i in range(3)]
        log = SyncLog(existing)
        log.add("new")
        assert log.entries[0].endswith("new")
        assert log.entries[1:] == existing

    def test_initial_entries_truncated(self):
        existing = [f"entry {i}" for i in range(20)]
        log = SyncLog(existing, capacity=10)
        assert log.entries == existing[:10]

    def test_clear(self):
        log = SyncLog()
        log.add("x")
        log.clear()
        assert log.entries == []
