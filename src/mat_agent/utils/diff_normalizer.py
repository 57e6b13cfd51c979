"""Repair of AI-generated unified diffs.

Language models routinely emit diffs that a strict applier rejects: hunk
headers whose line counts do not match the body, space indentation against
tab-indented files, or a single hunk that rewrites the whole file. The
helpers here rebuild such a diff into one that applies cleanly against the
original content. Everything in this module is pure text processing.
"""

import logging
import re
from collections.abc import Iterator
from typing import NamedTuple

from mat_agent.utils.diff_generator import detect_indentation, regenerate_diff_body

logger = logging.getLogger(__name__)

HUNK_HEADER_PATTERN = re.compile(r"@@\s+-(\d+)(?:,(\d+))?\s+\+(\d+)(?:,(\d+))?\s+@@")

HUNK_PREFIX = "@@"
FILE_HEADER_PREFIXES = ("---", "+++")
CONTENT_PREFIXES = (" ", "+", "-")
NO_NEWLINE_PREFIX = "\\"

# Single hunk covering more than this share of the file is a full rewrite
FULL_FILE_THRESHOLD = 0.7


class HunkHeader(NamedTuple):
    """Parsed ``@@ -old_start,old_count +new_start,new_count @@`` header."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int

    def render(self) -> str:
        return (
            f"@@ -{self.old_start},{self.old_count} "
            f"+{self.new_start},{self.new_count} @@"
        )


def split_diff_lines(diff: str) -> list[str]:
    """Split diff text into lines; the final terminator is not a line."""
    lines = diff.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def parse_hunk_header(line: str) -> HunkHeader | None:
    """Parse a hunk header line. Omitted counts default to 1.

    Returns:
        HunkHeader, or None if the line does not look like a hunk header.
    """
    match = HUNK_HEADER_PATTERN.search(line)
    if not match:
        return None
    old_start, old_count, new_start, new_count = match.groups()
    return HunkHeader(
        old_start=int(old_start),
        old_count=int(old_count) if old_count is not None else 1,
        new_start=int(new_start),
        new_count=int(new_count) if new_count is not None else 1,
    )


def _starts_file_header_pair(lines: list[str], index: int) -> bool:
    return (
        lines[index].startswith("--- ")
        and index + 1 < len(lines)
        and lines[index + 1].startswith("+++ ")
    )


def collect_hunk_body(lines: list[str], start: int) -> tuple[list[str], int]:
    """Collect the body lines of a hunk starting at ``lines[start]``.

    Collection stops at the next hunk header, at the next file header pair,
    at a line that is neither prefixed nor empty, or at end of input.
    Empty lines become blank context lines (``" "``).

    Returns:
        Tuple of (body_lines, index of the first line after the body).
    """
    body: list[str] = []
    index = start
    while index < len(lines):
        line = lines[index]
        if line.startswith(HUNK_PREFIX) or _starts_file_header_pair(lines, index):
            break
        if line.startswith(CONTENT_PREFIXES) or line.startswith(NO_NEWLINE_PREFIX):
            body.append(line)
        elif line == "":
            body.append(" ")
        else:
            break
        index += 1
    return body, index


def count_hunk_lines(body: list[str]) -> tuple[int, int]:
    """Count (old, new) lines in a hunk body: context counts toward both."""
    old_count = 0
    new_count = 0
    for line in body:
        if line.startswith(" "):
            old_count += 1
            new_count += 1
        elif line.startswith("-"):
            old_count += 1
        elif line.startswith("+"):
            new_count += 1
    return old_count, new_count


def iter_hunks(diff: str) -> Iterator[tuple[HunkHeader, list[str]]]:
    """Yield (declared header, body) for every parseable hunk in a diff."""
    lines = split_diff_lines(diff)
    index = 0
    while index < len(lines):
        header = (
            parse_hunk_header(lines[index])
            if lines[index].startswith(HUNK_PREFIX)
            else None
        )
        if header is None:
            index += 1
            continue
        body, index = collect_hunk_body(lines, index + 1)
        yield header, body


def extract_content_from_diff(diff: str) -> tuple[str, str]:
    """Reconstruct the old and new texts implied by a diff.

    Only meaningful for a single contiguous hunk covering the whole file,
    which is the case ``is_full_file_diff`` detects.

    Returns:
        Tuple of (old_content, new_content), each joined with newlines.
    """
    old_lines: list[str] = []
    new_lines: list[str] = []
    in_hunk = False

    for line in split_diff_lines(diff):
        if line.startswith(HUNK_PREFIX):
            in_hunk = True
            continue
        if line.startswith(FILE_HEADER_PREFIXES):
            continue
        if line.startswith("-"):
            old_lines.append(line[1:])
        elif line.startswith("+"):
            new_lines.append(line[1:])
        elif line.startswith(" ") or (in_hunk and line == ""):
            old_lines.append(line[1:])
            new_lines.append(line[1:])

    return "\n".join(old_lines), "\n".join(new_lines)


def is_full_file_diff(diff: str, original_content: str) -> bool:
    """Detect a diff that is really a whole-file replacement.

    True only when the diff holds exactly one hunk and that hunk has more
    content lines than FULL_FILE_THRESHOLD of the original's line count.
    Multi-hunk diffs are assumed to be localized already.
    """
    lines = split_diff_lines(diff)
    hunk_starts = [i for i, line in enumerate(lines) if line.startswith(HUNK_PREFIX)]
    if len(hunk_starts) != 1:
        return False

    body, _ = collect_hunk_body(lines, hunk_starts[0] + 1)
    content_count = sum(1 for line in body if line.startswith(CONTENT_PREFIXES))
    original_count = len(original_content.splitlines())

    return content_count > original_count * FULL_FILE_THRESHOLD


def _tabify(line: str, tab_size: int) -> str:
    marker, payload = line[0], line[1:]
    rest = payload.lstrip(" ")
    tabs, spaces = divmod(len(payload) - len(rest), tab_size)
    return marker + "\t" * tabs + " " * spaces + rest


def convert_spaces_to_tabs(diff: str, tab_size: int) -> str:
    """Turn leading spaces of diff content lines into tabs.

    Every full ``tab_size`` run becomes one tab; the remainder stays as
    spaces. File and hunk headers are never touched.
    """
    converted = []
    for line in diff.split("\n"):
        if line.startswith(CONTENT_PREFIXES) and not line.startswith(FILE_HEADER_PREFIXES):
            line = _tabify(line, tab_size)
        converted.append(line)
    return "\n".join(converted)


def ensure_file_headers(diff: str, file_name: str) -> str:
    """Prepend ``--- a/<name>`` / ``+++ b/<name>`` to a headerless diff."""
    for line in split_diff_lines(diff):
        if line.startswith("--- "):
            return diff
        if line.startswith(HUNK_PREFIX):
            break
    return f"--- a/{file_name}\n+++ b/{file_name}\n{diff}"


def normalize_diff(
    diff: str,
    original_content: str,
    tab_size: int | None = None,
) -> str:
    """Correct common defects in an AI-generated unified diff.

    Steps, in order:
    1. A full-file diff is re-expressed as contextual hunks via
       ``regenerate_diff_body``.
    2. If the original is tab-indented, leading spaces in content lines are
       converted to tabs.
    3. Every parseable hunk header is rewritten so its counts match the
       body. Unparseable headers are passed through unchanged.

    Args:
        diff: Raw diff text, file headers optional.
        original_content: Content of the file the diff targets.
        tab_size: Explicit tab width; inferred from the original when None.

    Returns:
        The corrected diff text.
    """
    if is_full_file_diff(diff, original_content):
        logger.info("Detected full-file diff, regenerating with proper hunks")
        old_content, new_content = extract_content_from_diff(diff)
        diff = regenerate_diff_body(old_content, new_content)
        hunk_count = sum(1 for line in diff.split("\n") if line.startswith(HUNK_PREFIX))
        logger.info("Regenerated diff with %d hunk(s)", hunk_count)

    profile = detect_indentation(original_content)
    if tab_size is not None:
        profile = profile.model_copy(update={"tab_size": tab_size})
    if profile.use_tabs:
        diff = convert_spaces_to_tabs(diff, profile.tab_size)

    lines = split_diff_lines(diff)
    result: list[str] = []
    index = 0

    while index < len(lines):
        line = lines[index]

        # File headers and anything outside a hunk pass through
        if not line.startswith(HUNK_PREFIX):
            result.append(line)
            index += 1
            continue

        header = parse_hunk_header(line)
        if header is None:
            logger.debug("Leaving unparseable hunk header unchanged: %r", line)
            result.append(line)
            index += 1
            continue

        body, index = collect_hunk_body(lines, index + 1)
        old_count, new_count = count_hunk_lines(body)
        result.append(
            header._replace(old_count=old_count, new_count=new_count).render()
        )
        result.extend(body)

    normalized = "\n".join(result)
    if diff.endswith("\n") and normalized:
        normalized += "\n"
    return normalized
