"""
kernel/patterns.py - Event name pattern matching

A pattern without "*" is a prefix: "app.events" matches every name that
starts with it. A pattern with "*" is a glob anchored to the whole name,
where "*" matches any run of characters (dots included) and everything
else is literal.
"""

from __future__ import annotations
from functools import lru_cache
import re


WILDCARD = "*"


@lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    parts = [re.escape(part) for part in pattern.split(WILDCARD)]
    return re.compile(".*".join(parts), re.DOTALL)


def is_wildcard(pattern: str) -> bool:
    """Check whether a pattern uses glob matching."""
    return WILDCARD in pattern


def matches(pattern: str, identifier: str) -> bool:
    """
    Check whether an event identifier matches a pattern.

    Args:
        pattern: Prefix or glob pattern
        identifier: Event name or dotted class path

    Returns:
        True if the identifier matches
    """
    if is_wildcard(pattern):
        return _compile(pattern).fullmatch(identifier) is not None
    return identifier.startswith(pattern)
