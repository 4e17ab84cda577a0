"""Tests for SyncMode."""

import pytest

from ghsync.sync.modes import SyncMode


class TestSyncModeParsing:
    """Tests for SyncMode.from_string."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("local_to_remote", SyncMode.LOCAL_TO_REMOTE),
            ("remote_to_local", SyncMode.REMOTE_TO_LOCAL),
            ("merge", SyncMode.MERGE),
            ("ltr", SyncMode.LOCAL_TO_REMOTE),
            ("rtl", SyncMode.REMOTE_TO_LOCAL),
            ("m", SyncMode.MERGE),
            ("Local-To-Remote", SyncMode.LOCAL_TO_REMOTE),
            (" MERGE ", SyncMode.MERGE),
        ],
    )
    def test_valid_values(self, value, expected):
        assert SyncMode.from_string(value) == expected

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="Invalid sync mode"):
            SyncMode.from_string("twoWay")

    def test_value_is_the_tag(self):
        assert SyncMode.MERGE.value == "merge"
        assert SyncMode("local_to_remote") is SyncMode.LOCAL_TO_REMOTE


class TestSyncModeCapabilities:
    """Tests for the capability properties."""

    def test_local_to_remote(self):
        mode = SyncMode.LOCAL_TO_REMOTE
        assert mode.allows_upload
        assert not mode.allows_download
        assert mode.allows_remote_delete
        assert mode.overwrites_existing

    def test_remote_to_local(self):
        mode = SyncMode.REMOTE_TO_LOCAL
        assert not mode.allows_upload
        assert mode.allows_download
        assert not mode.allows_remote_delete
        assert mode.overwrites_existing

    def test_merge(self):
        mode = SyncMode.MERGE
        assert mode.allows_upload
        assert mode.allows_download
        assert not mode.allows_remote_delete
        assert not mode.overwrites_existing
