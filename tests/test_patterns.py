"""
Tests for Patterns — Promotable path matching
"""

import pytest

from scopekit.core.patterns import PROMOTABLE_PATTERNS, match_pattern, match_segment, matches_any


class TestMatchSegment:

    @pytest.mark.parametrize("name,pattern,expected", [
        ("api.md", "*.md", True),
        ("api.txt", "*.md", False),
        ("api.md", "api.md", True),
        ("api.md", "a*i.md", True),
        ("api.md", "*", True),
        ("", "*", True),
        ("api.md", "**.md", True),
        ("abcabc", "*abc", True),
        ("abcab", "*abc", False),
    ])
    def test_segments(self, name, pattern, expected):
        assert match_segment(name, pattern) is expected

    def test_long_input_with_many_stars(self):
        """Pathological input stays fast and correct."""
        assert not match_segment("a" * 5000 + "b", "*a*a*a*a*a*c")


class TestMatchPattern:

    def test_star_does_not_cross_segments(self):
        assert match_pattern("architecture/api.md", "architecture/*.md")
        assert not match_pattern("architecture/v1/api.md", "architecture/*.md")

    def test_segment_counts_must_match(self):
        assert not match_pattern("project-context.md", "architecture/*.md")

    @pytest.mark.parametrize("path,pattern", [
        (None, "*.md"), ("", "*.md"), ("a.md", None), ("a.md", ""),
    ])
    def test_empty_inputs_never_match(self, path, pattern):
        assert not match_pattern(path, pattern)

    def test_brackets_are_literal(self):
        assert not match_pattern("a.md", "[invalid")
        assert match_pattern("[invalid", "[invalid")

    def test_question_mark_is_literal(self):
        assert not match_pattern("ab.md", "a?.md")


class TestPromotable:

    @pytest.mark.parametrize("path", [
        "architecture/overview.md",
        "contracts/api.md",
        "principles/naming.md",
        "project-context.md",
    ])
    def test_promotable(self, path):
        assert matches_any(path, PROMOTABLE_PATTERNS)

    @pytest.mark.parametrize("path", [
        "planning-artifacts/plan.md",
        "architecture/diagram.png",
        "shared/auth/architecture/api.md",
        ".sync-meta.yaml",
    ])
    def test_not_promotable(self, path):
        assert not matches_any(path, PROMOTABLE_PATTERNS)
