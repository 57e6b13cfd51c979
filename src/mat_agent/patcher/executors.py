"""Patch executors: strict in-process application and the external patch tool."""

import logging
import os
import shutil
import subprocess
import tempfile
import time
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from unidiff import PatchSet
from unidiff.errors import UnidiffParseError
from unidiff.patch import PatchedFile

from mat_agent.patcher.config import (
    PATCH_COMMAND_ENV,
    PATCH_TIMEOUT_ENV,
    env_positive_int,
    positive_int,
)
from mat_agent.patcher.exceptions import (
    ExternalPatchError,
    HunkMismatchError,
    MalformedDiffError,
)
from mat_agent.utils.diff_normalizer import (
    count_hunk_lines,
    ensure_file_headers,
    iter_hunks,
)

logger = logging.getLogger(__name__)

PLACEHOLDER_FILE_NAME = "file"  # Used when a diff carries no file headers
PATCH_FILE_NAME = "changes.patch"
DEFAULT_PATCH_COMMAND = "patch"
DEFAULT_PATCH_TIMEOUT = 30  # Seconds


class PatchExecutor(Protocol):
    """Applies a unified diff to file content.

    Implementations return the full patched content or raise on failure.
    """

    name: str

    def apply(
        self,
        original_content: str,
        diff: str,
        file_path: str | None = None,
    ) -> str: ...


def read_text_exact(path: Path) -> str:
    """Read a UTF-8 file without newline translation."""
    with path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def write_text_exact(path: Path, content: str) -> None:
    """Write a UTF-8 file without newline translation."""
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)


def _line_value(line) -> str:
    value = line.value
    if value.endswith("\n"):
        value = value[:-1]
    if value.endswith("\r"):
        value = value[:-1]
    return value


def _split_lines(content: str) -> tuple[list[str], list[str], bool]:
    """Split content into line texts and each line's own ending.

    A last line without a terminator borrows the ending of the line before
    it; the returned flag records that the file had no final newline.
    """
    pieces = content.split("\n")
    tail = pieces.pop()  # Text after the last "\n", empty when terminated
    texts: list[str] = []
    endings: list[str] = []
    for piece in pieces:
        if piece.endswith("\r"):
            texts.append(piece[:-1])
            endings.append("\r\n")
        else:
            texts.append(piece)
            endings.append("\n")
    if tail:
        texts.append(tail)
        endings.append(endings[-1] if endings else "\n")
    return texts, endings, bool(tail)


def _positions_by_distance(expected: int, lowest: int, highest: int) -> Iterator[int]:
    """Yield expected, then expected+1, expected-1, expected+2, ... in bounds."""
    yield expected
    distance = 1
    while expected + distance <= highest or expected - distance >= lowest:
        if expected + distance <= highest:
            yield expected + distance
        if expected - distance >= lowest:
            yield expected - distance
        distance += 1


def _locate(lines: list[str], old_lines: list[str], expected: int, lowest: int) -> int | None:
    highest = len(lines) - len(old_lines)
    if highest < lowest:
        return None
    expected = min(max(expected, lowest), highest)
    for position in _positions_by_distance(expected, lowest, highest):
        if lines[position:position + len(old_lines)] == old_lines:
            return position
    return None


class LibraryPatchExecutor:
    """Strict in-process application of a single-file unified diff.

    Every hunk header must declare the counts its body actually has. A
    hunk's old lines (context and removals) must match the content exactly,
    but may sit at a different offset than the header claims: the match
    nearest to the expected position wins, and hunks never overlap. Every
    line keeps its own ending, so mixed LF and CRLF content is patched as is.
    """

    name = "library"

    def apply(
        self,
        original_content: str,
        diff: str,
        file_path: str | None = None,
    ) -> str:
        self._check_declared_counts(diff)
        patched_file = self._parse_single_file(diff)

        lines, endings, missing_final_newline = _split_lines(original_content)
        delta = 0  # Net lines added by hunks applied so far
        lowest = 0  # First line a later hunk may touch

        for hunk in patched_file:
            old_lines = [_line_value(line) for line in hunk if line.is_context or line.is_removed]

            # A zero-length old range inserts after line source_start
            if hunk.source_length == 0:
                expected = hunk.source_start + delta
            else:
                expected = hunk.source_start - 1 + delta

            position = _locate(lines, old_lines, expected, lowest)
            if position is None:
                raise HunkMismatchError(
                    f"Hunk @@ -{hunk.source_start},{hunk.source_length} "
                    f"+{hunk.target_start},{hunk.target_length} @@ "
                    "does not match the content"
                )
            if position != expected:
                logger.debug("Hunk applied at offset %d", position - expected)

            end = position + len(old_lines)
            new_lines, new_endings = self._replacement(hunk, endings, position, end)
            lines[position:end] = new_lines
            endings[position:end] = new_endings
            delta += len(new_lines) - len(old_lines)
            lowest = position + len(new_lines)

        if missing_final_newline and endings:
            endings[-1] = ""
        return "".join(text + ending for text, ending in zip(lines, endings))

    def _replacement(
        self,
        hunk,
        endings: list[str],
        start: int,
        end: int,
    ) -> tuple[list[str], list[str]]:
        """Build a hunk's new lines with their endings.

        Context lines keep the ending they had in the content. Added lines
        take the ending of the nearest preceding old line in the hunk, or of
        the neighbouring content line when none precedes them.
        """
        old_endings = endings[start:end]
        if old_endings:
            ending = old_endings[0]
        elif start > 0:
            ending = endings[start - 1]
        else:
            ending = endings[0] if endings else "\n"

        new_lines: list[str] = []
        new_endings: list[str] = []
        index = 0
        for line in hunk:
            if line.is_context or line.is_removed:
                ending = old_endings[index]
                index += 1
                if line.is_removed:
                    continue
            elif not line.is_added:
                continue
            new_lines.append(_line_value(line))
            new_endings.append(ending)
        return new_lines, new_endings

    def _check_declared_counts(self, diff: str) -> None:
        """Reject hunks whose header counts disagree with their bodies.

        Raises:
            MalformedDiffError: If the diff has no hunks or any count is off.
        """
        hunks = list(iter_hunks(diff))
        if not hunks:
            raise MalformedDiffError("Diff contains no hunks")

        for header, body in hunks:
            old_count, new_count = count_hunk_lines(body)
            if (old_count, new_count) != (header.old_count, header.new_count):
                raise MalformedDiffError(
                    f"Hunk header declares -{header.old_start},{header.old_count} "
                    f"+{header.new_start},{header.new_count} but its body has "
                    f"{old_count} old and {new_count} new lines"
                )

    def _parse_single_file(self, diff: str) -> PatchedFile:
        """Parse the diff with unidiff and return its only file.

        Raises:
            MalformedDiffError: If parsing fails or the diff is not
                exactly one file with at least one hunk.
        """
        text = ensure_file_headers(diff, PLACEHOLDER_FILE_NAME)
        if not text.endswith("\n"):
            text += "\n"

        try:
            patch_set = PatchSet(text)
        except UnidiffParseError as e:
            raise MalformedDiffError(f"Unparseable diff: {e}") from e

        if len(patch_set) != 1:
            raise MalformedDiffError(
                f"Expected a single-file diff, found {len(patch_set)} files"
            )

        patched_file = patch_set[0]
        expected_hunks = sum(1 for _ in iter_hunks(diff))
        if len(patched_file) != expected_hunks:
            raise MalformedDiffError(
                f"Parsed {len(patched_file)} of {expected_hunks} hunks; "
                "a hunk header is not in canonical form"
            )
        return patched_file


class ShellPatchExecutor:
    """Runs the external whitespace-tolerant ``patch`` tool on temp files.

    The original content is copied into a fresh temp directory under the
    target's base name, the diff is written next to it, and the patched copy
    is read back. The temp directory is always removed.
    """

    name = "external"

    def __init__(
        self,
        command: str | None = None,
        timeout: int | None = None,
    ) -> None:
        """Initialize the executor.

        Args:
            command: Patch binary. Falls back to MAT_AGENT_PATCH_COMMAND,
                then "patch".
            timeout: Seconds before the subprocess is killed. Falls back to
                MAT_AGENT_PATCH_TIMEOUT, then DEFAULT_PATCH_TIMEOUT.

        Raises:
            PatchConfigError: If the timeout is not a positive integer.
        """
        self.command: str = command or os.getenv(PATCH_COMMAND_ENV) or DEFAULT_PATCH_COMMAND
        self.timeout: int = (
            positive_int(timeout, "timeout")
            or env_positive_int(PATCH_TIMEOUT_ENV)
            or DEFAULT_PATCH_TIMEOUT
        )

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def build_command(self, target: Path, patch_path: Path) -> list[str]:
        return [
            self.command,
            "--ignore-whitespace",
            "--batch",
            "--forward",
            "--input",
            str(patch_path),
            str(target),
        ]

    def apply(
        self,
        original_content: str,
        diff: str,
        file_path: str | None = None,
    ) -> str:
        """Apply the diff with the external tool.

        Raises:
            ExternalPatchError: If no file path is given, the tool is not on
                PATH, it times out, or it exits non-zero.
        """
        if not file_path:
            raise ExternalPatchError("A file path is required for the external patch tool")
        if not self.is_available():
            raise ExternalPatchError(f"Patch command '{self.command}' not found on PATH")

        file_name = Path(file_path).name
        prefix = f"patch-{int(time.time() * 1000)}-"

        with tempfile.TemporaryDirectory(prefix=prefix) as tmpdir:
            tmp_path = Path(tmpdir)
            target = tmp_path / file_name
            patch_path = tmp_path / PATCH_FILE_NAME

            write_text_exact(target, original_content)
            patch_text = ensure_file_headers(diff, file_name)
            if not patch_text.endswith("\n"):
                patch_text += "\n"
            write_text_exact(patch_path, patch_text)

            try:
                result = subprocess.run(
                    self.build_command(target, patch_path),
                    cwd=tmpdir,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                )
            except subprocess.TimeoutExpired as e:
                raise ExternalPatchError(
                    f"Patch command timed out after {self.timeout}s"
                ) from e
            except OSError as e:
                raise ExternalPatchError(f"Failed to run patch command: {e}") from e

            if result.returncode != 0:
                detail = (result.stdout + result.stderr).strip()
                raise ExternalPatchError(
                    f"Patch command exited with status {result.returncode}: {detail}"
                )

            return read_text_exact(target)
