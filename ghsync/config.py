"""Configuration management for ghsync.

Settings live in a single JSON file (``~/.config/ghsync/config.json`` by
default). They are only changed through :class:`ConfigManager`, which
validates each change and writes the whole file atomically.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

from .exceptions import GitHubSyncConfigError
from .sync.exclusions import DEFAULT_EXCLUDES
from .utils import DEFAULT_BRANCH, DEFAULT_LOG_CAPACITY

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
TOKEN_ENV_VAR = "GHSYNC_TOKEN"
CONFIG_DIR_ENV_VAR = "GHSYNC_CONFIG_DIR"

# JSON key for every SyncSettings field
_JSON_KEYS = {
    "token": "token",
    "repo": "repo",
    "branch": "branch",
    "sync_interval": "syncInterval",
    "auto_sync_after_edit": "autoSyncAfterEdit",
    "excluded_rules": "excludedRules",
    "logs": "logs",
    "is_token_locked": "isTokenLocked",
}


@dataclass
class SyncSettings:
    """User configuration for a sync target."""

    token: str = ""
    """GitHub personal access token"""

    repo: str = ""
    """Repository identifier in 'owner/name' form"""

    branch: str = DEFAULT_BRANCH
    """Branch to sync against"""

    sync_interval: int = 0
    """Fixed-interval sync period in seconds (0 = disabled)"""

    auto_sync_after_edit: int = 0
    """Idle-after-edit sync period in seconds (0 = disabled)"""

    excluded_rules: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    """Exclusion rules, in insertion order"""

    logs: list[str] = field(default_factory=list)
    """Most recent sync log entries, newest first"""

    is_token_locked: bool = False
    """Whether the token was validated and may no longer be edited"""

    def to_dict(self) -> dict[str, Any]:
        """Convert settings to dictionary for JSON serialization."""
        return {json_key: getattr(self, attr) for attr, json_key in _JSON_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncSettings":
        """Create settings from a dictionary, filling in defaults."""
        kwargs = {
            attr: data[json_key]
            for attr, json_key in _JSON_KEYS.items()
            if json_key in data
        }
        settings = cls(**kwargs)
        validate_settings(settings)
        return settings

    @property
    def is_configured(self) -> bool:
        """True when both a token and a repository are set."""
        return bool(self.token and self.repo)


def _validate_interval(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise GitHubSyncConfigError(
            f"{name} must be a non-negative number of seconds, got {value!r}"
        )


def validate_settings(settings: SyncSettings) -> None:
    """Check that settings are internally consistent.

    Raises:
        GitHubSyncConfigError: If any field has an invalid value
    """
    if settings.repo and settings.repo.count("/") != 1:
        raise GitHubSyncConfigError(
            f"Repository must look like 'owner/name', got {settings.repo!r}"
        )
    if not settings.branch:
        raise GitHubSyncConfigError("Branch must not be empty")
    _validate_interval("sync_interval", settings.sync_interval)
    _validate_interval("auto_sync_after_edit", settings.auto_sync_after_edit)
    if not isinstance(settings.excluded_rules, list) or not all(
        isinstance(rule, str) and rule for rule in settings.excluded_rules
    ):
        raise GitHubSyncConfigError("Exclusion rules must be non-empty strings")


class ConfigManager:
    """Loads, updates and persists :class:`SyncSettings`."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize config manager.

        Args:
            config_dir: Directory holding config.json. Defaults to
                        $GHSYNC_CONFIG_DIR or ~/.config/ghsync/
        """
        if config_dir is None:
            env_dir = os.environ.get(CONFIG_DIR_ENV_VAR)
            config_dir = (
                Path(env_dir) if env_dir else Path.home() / ".config" / "ghsync"
            )
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Path of the JSON config file."""
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def token(self) -> Optional[str]:
        """Token from the environment, falling back to the stored one."""
        return os.environ.get(TOKEN_ENV_VAR) or self.load().token or None

    def load(self) -> SyncSettings:
        """Load settings from disk.

        Returns:
            Stored settings, or defaults when no config file exists yet

        Raises:
            GitHubSyncConfigError: If the file exists but cannot be parsed
        """
        path = self.get_config_path()
        if not path.exists():
            logger.debug(f"No config found at {path}, using defaults")
            return SyncSettings()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise GitHubSyncConfigError(f"Failed to read config {path}: {e}") from e

        if not isinstance(data, dict):
            raise GitHubSyncConfigError(f"Config {path} is not a JSON object")
        return SyncSettings.from_dict(data)

    def save(self, settings: SyncSettings) -> None:
        """Validate and write settings atomically.

        The file is written to a temporary sibling and then moved into
        place, so readers never see a half-written config.
        """
        validate_settings(settings)
        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()

        fd, tmp_name = tempfile.mkstemp(
            dir=self.config_dir, prefix=".config-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise GitHubSyncConfigError(f"Failed to write config {path}: {e}") from e
        logger.debug(f"Saved config to {path}")

    def update(self, **changes: Any) -> SyncSettings:
        """Apply field changes and persist the result.

        Args:
            **changes: SyncSettings field names and their new values

        Returns:
            The updated settings

        Raises:
            GitHubSyncConfigError: On unknown fields or invalid values
        """
        known = {f.name for f in fields(SyncSettings)}
        unknown = set(changes) - known
        if unknown:
            raise GitHubSyncConfigError(
                f"Unknown setting(s): {', '.join(sorted(unknown))}"
            )

        settings = replace(self.load(), **changes)
        self.save(settings)
        return settings

    def lock_token(self, token: str) -> SyncSettings:
        """Store a validated token and lock it against edits.

        Raises:
            GitHubSyncConfigError: If a token is already locked
        """
        if self.load().is_token_locked:
            raise GitHubSyncConfigError(
                "Token is locked. Run 'ghsync reset' to change it."
            )
        return self.update(token=token, is_token_locked=True)

    def add_exclusion_rule(self, rule: str) -> SyncSettings:
        """Append an exclusion rule (no-op if it is already present)."""
        rule = rule.strip()
        if not rule:
            raise GitHubSyncConfigError("Exclusion rule must not be empty")
        settings = self.load()
        if rule in settings.excluded_rules:
            return settings
        return self.update(excluded_rules=[*settings.excluded_rules, rule])

    def remove_exclusion_rule(self, rule: str) -> SyncSettings:
        """Remove an exclusion rule, including built-in defaults.

        Raises:
            GitHubSyncConfigError: If the rule is not configured
        """
        rule = rule.strip()
        settings = self.load()
        if rule not in settings.excluded_rules:
            raise GitHubSyncConfigError(f"No such exclusion rule: {rule}")
        return self.update(
            excluded_rules=[r for r in settings.excluded_rules if r != rule]
        )

    def save_logs(self, entries: list[str]) -> SyncSettings:
        """Persist sync log entries (newest first, capped)."""
        return self.update(logs=list(entries[:DEFAULT_LOG_CAPACITY]))

    def clear_logs(self) -> SyncSettings:
        """Drop all stored sync log entries."""
        return self.update(logs=[])

    def reset(self) -> SyncSettings:
        """Restore every setting to its default, unlocking the token."""
        settings = SyncSettings()
        self.save(settings)
        return settings


config = ConfigManager()
