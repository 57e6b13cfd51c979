"""Utilities for generating diffs and inferring indentation style."""

import difflib
import math
import re
from functools import reduce

from mat_agent.models import IndentationProfile

DEFAULT_CONTEXT_LINES = 3
DEFAULT_TAB_SIZE = 2
MIN_TAB_SIZE = 2
MAX_TAB_SIZE = 8
INDENT_SAMPLE_LINES = 100  # Lines inspected when voting tabs vs spaces

LEADING_SPACES_PATTERN = re.compile(r"^ +", re.MULTILINE)


def generate_unified_diff(
    file_path: str,
    original_content: str,
    modified_content: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> str:
    """Generate a git-compatible unified diff.

    Args:
        file_path: Relative path from repo root (e.g. "src/app.tsx").
        original_content: File content before the change.
        modified_content: File content after the change.
        context_lines: Number of context lines around each change.

    Returns:
        Unified diff string with a/ b/ prefixes. Empty string if no changes.
    """
    if original_content == modified_content:
        return ""

    original_lines = original_content.splitlines(keepends=True)
    modified_lines = modified_content.splitlines(keepends=True)

    diff_gen = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=f"a/{file_path}",
        tofile=f"b/{file_path}",
        n=context_lines,
        lineterm="",
    )

    # Content lines keep their own newline (keepends=True); headers do not
    diff_lines = []
    for line in diff_gen:
        if line.endswith("\n"):
            diff_lines.append(line[:-1])
        else:
            diff_lines.append(line)

    return "\n".join(diff_lines)


def regenerate_diff_body(
    old_content: str,
    new_content: str,
    context_lines: int = DEFAULT_CONTEXT_LINES,
) -> str:
    """Produce a headerless multi-hunk diff between two full texts.

    Used when a diff turns out to be a full-file replacement: the implied
    old and new texts are re-diffed so that only the changed regions (plus
    context) remain.

    Args:
        old_content: Reconstructed text before the change.
        new_content: Reconstructed text after the change.
        context_lines: Number of context lines around each change.

    Returns:
        Hunk headers and content lines only. Empty string if the texts match.
    """
    diff_text = generate_unified_diff("file", old_content, new_content, context_lines)
    if not diff_text:
        return ""
    # difflib always emits exactly one ---/+++ pair first
    return "\n".join(diff_text.split("\n")[2:])


def detect_indentation(content: str) -> IndentationProfile:
    """Infer whether content is indented with tabs, and the tab width.

    Tabs win when more of the first INDENT_SAMPLE_LINES lines start with a
    tab than with two or more spaces. The tab width is the greatest common
    divisor of every leading-space run in the content, used only when it
    falls within [MIN_TAB_SIZE, MAX_TAB_SIZE].

    Args:
        content: Full file content.

    Returns:
        IndentationProfile. Empty content yields spaces with width 2.
    """
    sample = content.split("\n")[:INDENT_SAMPLE_LINES]
    tab_count = sum(1 for line in sample if line.startswith("\t"))
    space_count = sum(1 for line in sample if line.startswith("  "))

    tab_size = DEFAULT_TAB_SIZE
    runs = LEADING_SPACES_PATTERN.findall(content)
    if runs:
        divisor = reduce(math.gcd, {len(run) for run in runs})
        if MIN_TAB_SIZE <= divisor <= MAX_TAB_SIZE:
            tab_size = divisor

    return IndentationProfile(use_tabs=tab_count > space_count, tab_size=tab_size)
