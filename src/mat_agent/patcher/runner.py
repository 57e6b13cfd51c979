"""Batch application of executor modifications to a repository checkout."""

import logging
import os
from pathlib import Path, PurePosixPath

from mat_agent.models import (
    ExecutorOutput,
    FileModification,
    PatchFileState,
    PatchResult,
)
from mat_agent.patcher.config import REPO_ROOT_ENV
from mat_agent.patcher.exceptions import PatchConfigError
from mat_agent.patcher.executors import read_text_exact, write_text_exact
from mat_agent.patcher.fallback import FallbackPatcher
from mat_agent.utils.paths import normalize_path

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".backup"
MISSING_FILE_MESSAGE = "File does not exist on disk."
PATH_ESCAPE_MESSAGE = "Path escapes repository root."
DEFAULT_FAILURE_MESSAGE = "Patch application failed"


class PatchRunner:
    """Applies a list of file modifications, one file at a time.

    For each file a ``.backup`` sibling is written before patching. It is
    removed after a successful write and preserved after a failure for
    manual recovery. One file failing never stops the batch.
    """

    def __init__(
        self,
        repo_root: str | None = None,
        patcher: FallbackPatcher | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            repo_root: Repository root. Falls back to FRONTEND_REPO_PATH.
            patcher: Patcher used per file. Defaults to FallbackPatcher().

        Raises:
            PatchConfigError: If no root is configured or it is not a directory.
        """
        raw_root = repo_root or os.getenv(REPO_ROOT_ENV)
        if not raw_root:
            raise PatchConfigError(
                f"No repository root configured. Provide repo_root or set {REPO_ROOT_ENV}."
            )
        root = Path(raw_root).expanduser().resolve()
        if not root.is_dir():
            raise PatchConfigError(f"Repository root '{raw_root}' is not a directory")

        self.repo_root: Path = root
        self.patcher: FallbackPatcher = patcher or FallbackPatcher()

    def apply_patches(
        self,
        modifications: ExecutorOutput | list[FileModification],
    ) -> list[PatchResult]:
        """Apply every modification in list order.

        Returns:
            One PatchResult per modification, in the same order.
        """
        if isinstance(modifications, ExecutorOutput):
            modifications = modifications.modifications
        return [self.apply_one(modification) for modification in modifications]

    def apply_one(self, modification: FileModification) -> PatchResult:
        """Apply a single modification: back up, patch, write, clean up."""
        relative_path = normalize_path(modification.path)
        result = PatchResult(file=relative_path, success=False)

        target = self._resolve(relative_path)
        if target is None:
            result.error = PATH_ESCAPE_MESSAGE
            return result

        if not target.is_file():
            result.state = PatchFileState.MISSING
            result.error = MISSING_FILE_MESSAGE
            return result

        try:
            original = read_text_exact(target)
        except (OSError, UnicodeDecodeError) as e:
            result.error = f"Failed to read file: {e}"
            return result

        backup_path = target.with_name(target.name + BACKUP_SUFFIX)
        try:
            write_text_exact(backup_path, original)
        except OSError as e:
            result.error = f"Failed to write backup: {e}"
            return result
        result.state = PatchFileState.BACKED_UP

        logger.info("Applying patch to %s", relative_path)
        outcome = self.patcher.apply(original, modification.diff, str(target))

        if not outcome.success or outcome.content is None:
            return self._fail(result, backup_path, outcome.error or DEFAULT_FAILURE_MESSAGE)

        try:
            write_text_exact(target, outcome.content)
        except OSError as e:
            return self._fail(result, backup_path, f"Failed to write patched file: {e}")

        try:
            backup_path.unlink()
        except OSError:
            logger.warning("Could not remove backup file: %s", backup_path)

        result.success = True
        result.state = PatchFileState.APPLIED
        return result

    def _fail(self, result: PatchResult, backup_path: Path, error: str) -> PatchResult:
        logger.warning("Backup preserved at: %s", backup_path)
        result.state = PatchFileState.FAILED
        result.error = error
        result.backup_path = str(backup_path)
        return result

    def _resolve(self, relative_path: str) -> Path | None:
        """Resolve a repo-relative path, rejecting anything outside the root."""
        if ".." in PurePosixPath(relative_path).parts:
            return None
        target = (self.repo_root / relative_path).resolve()
        if not target.is_relative_to(self.repo_root):
            return None
        return target


def apply_patches(
    modifications: ExecutorOutput | list[FileModification],
    repo_root: str | None = None,
    patcher: FallbackPatcher | None = None,
) -> list[PatchResult]:
    """Apply modifications against a repository root with a fresh runner."""
    return PatchRunner(repo_root=repo_root, patcher=patcher).apply_patches(modifications)
