"""
Patterns — Bounded glob matching for promotable artifact paths

Supports one construct: `*`, matching any run of characters inside a single
path segment. Everything else is literal, so malformed input such as
"[invalid" is simply a literal that rarely matches.

Matching is segment by segment with a two-pointer wildcard scan, which is
linear in the input for any number of wildcards. No regular expressions are
built at runtime.
"""

from typing import Iterable, List, Optional


# Relative to a scope root
PROMOTABLE_PATTERNS = (
    "architecture/*.md",
    "contracts/*.md",
    "principles/*.md",
    "project-context.md",
)


def _split(path: str) -> List[str]:
    return [part for part in path.replace("\\", "/").split("/") if part and part != "."]


def match_segment(name: str, pattern: str) -> bool:
    """Match one path segment against a pattern containing `*` wildcards."""
    n = p = 0
    star = -1
    resume = 0
    while n < len(name):
        if p < len(pattern) and pattern[p] != "*" and pattern[p] == name[n]:
            n += 1
            p += 1
        elif p < len(pattern) and pattern[p] == "*":
            star = p
            resume = n
            p += 1
        elif star != -1:
            # Let the last star swallow one more character
            resume += 1
            n = resume
            p = star + 1
        else:
            return False
    while p < len(pattern) and pattern[p] == "*":
        p += 1
    return p == len(pattern)


def match_pattern(path: Optional[str], pattern: Optional[str]) -> bool:
    """
    Does a relative path match a pattern?

    Both are split on "/" and must have the same number of segments.
    None or empty inputs never match.
    """
    if not path or not pattern:
        return False
    path_parts = _split(path)
    pattern_parts = _split(pattern)
    if not path_parts or len(path_parts) != len(pattern_parts):
        return False
    return all(match_segment(name, pat) for name, pat in zip(path_parts, pattern_parts))


def matches_any(path: str, patterns: Iterable[str] = PROMOTABLE_PATTERNS) -> bool:
    return any(match_pattern(path, pattern) for pattern in patterns)
