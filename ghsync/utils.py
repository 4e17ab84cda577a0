"""Utility functions for ghsync."""

import base64
import binascii
from datetime import datetime
from typing import Optional

# =============================================================================
# Constants
# =============================================================================

# Retry configuration for transient errors
DEFAULT_MAX_RETRIES: int = 3
DEFAULT_RETRY_DELAY: float = 1.0  # seconds

DEFAULT_BRANCH: str = "main"

# Capacity of the in-settings sync log
DEFAULT_LOG_CAPACITY: int = 10


# =============================================================================
# Transfer codec
# =============================================================================


def encode_content(content: bytes) -> str:
    """Encode raw file content for transport in a JSON body.

    Args:
        content: Raw bytes (text or binary)

    Returns:
        Standard base64 text

    Examples:
        >>> encode_content(b"hello")
        'aGVsbG8='
    """
    return base64.b64encode(content).decode("ascii")


def decode_content(text: str) -> bytes:
    """Decode transport text back to raw file content.

    The API wraps long payloads every 60 characters, so all whitespace is
    removed before decoding.

    Args:
        text: Base64 text, possibly containing newlines

    Returns:
        Raw bytes

    Raises:
        ValueError: If the text is not valid base64

    Examples:
        >>> decode_content("aGVs\\nbG8=\\n")
        b'hello'
    """
    compact = "".join(text.split())
    try:
        return base64.b64decode(compact, validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 content: {e}") from e


# =============================================================================
# Path helpers
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a relative path to forward slashes without leading slash.

    Examples:
        >>> normalize_path("notes\\\\a.md")
        'notes/a.md'
        >>> normalize_path("/notes/a.md")
        'notes/a.md'
    """
    return path.replace("\\", "/").strip("/")


def join_path(parent: str, name: str) -> str:
    """Join a parent relative path and a child name."""
    return f"{parent}/{name}" if parent else name


def parent_dirs(path: str) -> list[str]:
    """List every ancestor directory of a file path, outermost first.

    Examples:
        >>> parent_dirs("a/b/c.md")
        ['a', 'a/b']
        >>> parent_dirs("c.md")
        []
    """
    parts = path.split("/")[:-1]
    return ["/".join(parts[: i + 1]) for i in range(len(parts))]


# =============================================================================
# Formatting
# =============================================================================


def format_log_time(moment: Optional[datetime] = None) -> str:
    """Format a timestamp the way sync log entries show it (HH:MM:SS)."""
    return (moment or datetime.now()).strftime("%H:%M:%S")

