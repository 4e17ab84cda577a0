"""Sync strategies."""

from enum import Enum


class SyncMode(str, Enum):
    """Reconciliation strategy for one sync run."""

    LOCAL_TO_REMOTE = "local_to_remote"
    """Make the remote an exact mirror of local, including deletions"""

    REMOTE_TO_LOCAL = "remote_to_local"
    """Download every remote file, overwriting local copies; never deletes"""

    MERGE = "merge"
    """Transfer only files missing on one side; never overwrites or deletes"""

    @classmethod
    def from_string(cls, value: str) -> "SyncMode":
        """Parse a mode tag or its abbreviation.

        Args:
            value: 'local_to_remote', 'remote_to_local', 'merge' or
                   one of the aliases 'ltr', 'rtl', 'm'

        Returns:
            Matching SyncMode

        Raises:
            ValueError: If the value names no mode

        Examples:
            >>> SyncMode.from_string("ltr")
            <SyncMode.LOCAL_TO_REMOTE: 'local_to_remote'>
        """
        normalized = value.strip().lower().replace("-", "_")
        if normalized in _ALIASES:
            return _ALIASES[normalized]
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"Invalid sync mode: {value!r}. Valid modes: {valid}"
            ) from None

    @property
    def allows_upload(self) -> bool:
        return self in (SyncMode.LOCAL_TO_REMOTE, SyncMode.MERGE)

    @property
    def allows_download(self) -> bool:
        return self in (SyncMode.REMOTE_TO_LOCAL, SyncMode.MERGE)

    @property
    def allows_remote_delete(self) -> bool:
        return self == SyncMode.LOCAL_TO_REMOTE

    @property
    def overwrites_existing(self) -> bool:
        """Whether files present on both sides are transferred again."""
        return self != SyncMode.MERGE


_ALIASES = {
    "ltr": SyncMode.LOCAL_TO_REMOTE,
    "rtl": SyncMode.REMOTE_TO_LOCAL,
    "m": SyncMode.MERGE,
}
