"""Exclusion rules deciding which paths take part in a sync.

A rule is a literal path, a path with ``*`` wildcards or a directory
prefix. A path is excluded when, for any rule:

* the rule, with ``*`` read as "any run of characters" (slashes included),
  matches the whole path, or
* the path lies under the rule as a directory (``rule + "/"`` prefix), or
* the path equals the rule.

Every other regex metacharacter in a rule is matched literally.
"""

import re
from collections.abc import Iterable
from functools import lru_cache
from typing import Optional

DEFAULT_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".obsidian/workspace.json",
    ".obsidian/workspace-mobile.json",
    "node_modules",
)


@lru_cache(maxsize=256)
def rule_to_regex(rule: str) -> "re.Pattern[str]":
    """Compile an exclusion rule into a regex to be used with ``fullmatch``.

    Examples:
        >>> bool(rule_to_regex(".obsidian/plugins/*").fullmatch(".obsidian/plugins/x/y"))
        True
        >>> bool(rule_to_regex("a.b").fullmatch("axb"))
        False
    """
    return re.compile(".*".join(re.escape(part) for part in rule.split("*")))


def matches_rule(path: str, rule: str) -> bool:
    """Check a single path against a single rule."""
    return (
        path == rule
        or path.startswith(rule + "/")
        or rule_to_regex(rule).fullmatch(path) is not None
    )


class ExclusionMatcher:
    """Tests paths against a set of exclusion rules."""

    def __init__(self, rules: Optional[Iterable[str]] = None):
        """Initialize the matcher.

        Args:
            rules: Exclusion rules; defaults to DEFAULT_EXCLUDES
        """
        self.rules: list[str] = list(DEFAULT_EXCLUDES if rules is None else rules)

    def is_excluded(self, path: str) -> bool:
        """Return True if any rule excludes the path."""
        return any(matches_rule(path, rule) for rule in self.rules)

    def __repr__(self) -> str:
        return f"ExclusionMatcher({self.rules!r})"
