"""Tests for diff_generator utility functions."""

import pytest

from mat_agent.models import IndentationProfile
from mat_agent.utils.diff_generator import (
    detect_indentation,
    generate_unified_diff,
    regenerate_diff_body,
)


def test_generate_unified_diff_basic():
    """Basic diff has --- a/ and +++ b/ headers and changed lines."""
    diff = generate_unified_diff(
        "src/app.tsx",
        "export const a = 1;\nexport const b = 2;\n",
        "export const a = 1;\nexport const b = 3;\n",
    )
    assert diff.startswith("--- a/src/app.tsx")
    assert "+++ b/src/app.tsx" in diff
    assert "-export const b = 2;" in diff
    assert "+export const b = 3;" in diff


def test_generate_unified_diff_no_changes():
    """Identical content returns empty string."""
    diff = generate_unified_diff("a.ts", "hello\n", "hello\n")
    assert diff == ""


def test_generate_unified_diff_respects_context_lines(numbered_content):
    """Only the requested number of context lines surround a change."""
    original = numbered_content(20)
    modified = original.replace("line10\n", "changed\n")
    diff = generate_unified_diff("f.txt", original, modified, context_lines=1)
    assert "@@ -9,3 +9,3 @@" in diff
    assert " line8" not in diff


def test_regenerate_diff_body_drops_file_headers():
    """Regenerated body starts at the first hunk header."""
    body = regenerate_diff_body("a\nb\nc", "a\nB\nc")
    lines = body.split("\n")
    assert lines[0] == "@@ -1,3 +1,3 @@"
    assert "-b" in lines
    assert "+B" in lines
    assert not any(line.startswith(("---", "+++")) for line in lines)


def test_regenerate_diff_body_identical_texts():
    assert regenerate_diff_body("same", "same") == ""


def test_regenerate_diff_body_keeps_distant_changes_apart(numbered_content):
    """Changes far apart become separate hunks with three lines of context."""
    old = numbered_content(40).rstrip("\n")
    new = old.replace("line5", "five").replace("line35", "thirty-five")
    body = regenerate_diff_body(old, new)
    headers = [line for line in body.split("\n") if line.startswith("@@")]
    assert headers == ["@@ -2,7 +2,7 @@", "@@ -32,7 +32,7 @@"]


class TestDetectIndentation:
    """Tests for tab vs space inference and tab width."""

    def test_tab_indented(self):
        content = "function f() {\n\tif (x) {\n\t\treturn 1;\n\t}\n}\n"
        profile = detect_indentation(content)
        assert profile.use_tabs is True
        assert profile.tab_size == 2

    def test_four_space_indented(self):
        content = "def f():\n    if x:\n        return 1\n    return 0\n"
        profile = detect_indentation(content)
        assert profile == IndentationProfile(use_tabs=False, tab_size=4)

    def test_two_space_indented(self):
        content = "const a = {\n  b: {\n    c: 1,\n  },\n};\n"
        assert detect_indentation(content).tab_size == 2

    def test_gcd_below_range_falls_back(self):
        """A single-space run makes the GCD 1, which is outside [2, 8]."""
        content = "a\n    b\n c\n"
        assert detect_indentation(content).tab_size == 2

    def test_gcd_above_range_falls_back(self):
        content = "a\n            b\n"
        assert detect_indentation(content).tab_size == 2

    def test_tabs_with_space_alignment(self):
        """Tabs still win the vote while space runs set the width."""
        content = "\ta\n\tb\n\tc\n    d\n        e\n"
        profile = detect_indentation(content)
        assert profile.use_tabs is True
        assert profile.tab_size == 4

    def test_tie_prefers_spaces(self):
        content = "\ta\n  b\n"
        assert detect_indentation(content).use_tabs is False

    def test_only_first_hundred_lines_vote(self):
        content = "  a\n" * 100 + "\tb\n" * 150
        assert detect_indentation(content).use_tabs is False

    @pytest.mark.parametrize("content", ["", "no indentation\nat all\n"])
    def test_unindented_defaults(self, content):
        assert detect_indentation(content) == IndentationProfile()
