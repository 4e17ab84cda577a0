"""Unit tests for utility functions."""

import os
from datetime import datetime

import pytest

from ghsync.utils import (
    decode_content,
    encode_content,
    format_log_time,
    join_path,
    normalize_path,
    parent_dirs,
)


class TestEncodeContent:
    """Tests for encode_content function."""

    def test_text_content(self):
        """Test encoding plain text."""
        assert encode_content(b"hello") == "aGVsbG8="

    def test_empty_content(self):
        """Test encoding empty content."""
        assert encode_content(b"") == ""

    def test_result_is_ascii(self):
        """Test that binary content encodes to ASCII-only text."""
        encoded = encode_content(bytes(range(256)))
        assert encoded.isascii()


class TestDecodeContent:
    """Tests for decode_content function."""

    def test_basic_decode(self):
        """Test decoding a simple payload."""
        assert decode_content("aGVsbG8=") == b"hello"

    def test_tolerates_newlines(self):
        """Test that wrapped payloads (as sent by the API) decode."""
        assert decode_content("aGVs\nbG8=\n") == b"hello"

    def test_tolerates_spaces_and_crlf(self):
        """Test that any whitespace is ignored."""
        assert decode_content(" aGVs\r\n bG8= ") == b"hello"

    def test_invalid_input_raises(self):
        """Test that non-base64 input raises ValueError."""
        with pytest.raises(ValueError, match="Invalid base64"):
            decode_content("not*base64!")

    def test_round_trip_binary(self):
        """Test that arbitrary binary content survives encoding."""
        samples = [
            b"",
            b"\x00",
            bytes(range(256)),
            "héllo wörld ✓".encode(),
            b"\x89PNG\r\n\x1a\n" + os.urandom(2048),
        ]
        for sample in samples:
            assert decode_content(encode_content(sample)) == sample

    def test_round_trip_with_wrapping(self):
        """Test round trip when the encoded text is wrapped every 60 chars."""
        data = os.urandom(1000)
        encoded = encode_content(data)
        wrapped = "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60))
        assert decode_content(wrapped) == data


class TestPathHelpers:
    """Tests for path helper functions."""

    def test_normalize_backslashes(self):
        assert normalize_path("notes\\a.md") == "notes/a.md"

    def test_normalize_strips_slashes(self):
        assert normalize_path("/notes/a.md/") == "notes/a.md"

    def test_normalize_keeps_case(self):
        assert normalize_path("Notes/A.md") == "Notes/A.md"

    def test_join_path_root(self):
        assert join_path("", "a.md") == "a.md"

    def test_join_path_nested(self):
        assert join_path("notes", "a.md") == "notes/a.md"

    def test_parent_dirs_nested(self):
        assert parent_dirs("a/b/c.md") == ["a", "a/b"]

    def test_parent_dirs_top_level(self):
        assert parent_dirs("c.md") == []


class TestFormatting:
    """Tests for formatting helpers."""

    def test_format_log_time(self):
        assert format_log_time(datetime(2024, 1, 2, 3, 4, 5)) == "03:04:05"
