"""Multi-strategy application of AI-generated diffs."""

import functools
import logging
from collections.abc import Callable

from mat_agent.models import PatchOutcome, PatchStrategy, StrategyResult
from mat_agent.patcher.config import TAB_SIZE_ENV, env_positive_int, positive_int
from mat_agent.patcher.executors import (
    LibraryPatchExecutor,
    PatchExecutor,
    ShellPatchExecutor,
)
from mat_agent.utils.diff_normalizer import iter_hunks, normalize_diff

logger = logging.getLogger(__name__)

REJECTED_MESSAGE = "Patch rejected - unable to apply with any strategy"


def run_strategy(strategy: PatchStrategy, attempt: Callable[[], str]) -> StrategyResult:
    """Run one strategy, turning any exception into a failed result."""
    try:
        return StrategyResult.success(strategy, attempt())
    except Exception as e:
        return StrategyResult.failure(strategy, f"{type(e).__name__}: {e}")


class FallbackPatcher:
    """Applies a diff using up to three strategies; the first success wins.

    1. ORIGINAL: the raw diff, applied in-process.
    2. NORMALIZED: the diff repaired by ``normalize_diff``, applied in-process.
    3. EXTERNAL: the repaired diff, applied by the external executor against
       a temp copy of the file. Only tried when a file path is given and an
       external executor is configured.

    No exception escapes ``apply``; every failure is recorded in the
    returned outcome's ``attempts``.
    """

    def __init__(
        self,
        library_executor: PatchExecutor | None = None,
        external_executor: PatchExecutor | None = None,
        use_external: bool = True,
        tab_size: int | None = None,
    ) -> None:
        """Initialize the patcher.

        Args:
            library_executor: In-process executor for strategies 1 and 2.
            external_executor: Executor for strategy 3. Defaults to
                ShellPatchExecutor when use_external is True.
            use_external: Set False to disable strategy 3 entirely.
            tab_size: Tab width override for normalization. Falls back to
                MAT_AGENT_TAB_SIZE, then inference from the original file.

        Raises:
            PatchConfigError: If the tab size is not a positive integer.
        """
        self.library_executor: PatchExecutor = library_executor or LibraryPatchExecutor()
        self.external_executor: PatchExecutor | None = None
        if use_external:
            self.external_executor = external_executor or ShellPatchExecutor()
        self.tab_size: int | None = (
            positive_int(tab_size, "tab_size") or env_positive_int(TAB_SIZE_ENV)
        )

    def apply(
        self,
        original_content: str,
        diff: str,
        file_path: str | None = None,
    ) -> PatchOutcome:
        """Apply a diff to content.

        Args:
            original_content: Current content of the file.
            diff: Unified diff produced by the model.
            file_path: Target path; required for the external strategy.

        Returns:
            PatchOutcome with the patched content on success, or the generic
            rejection message when every strategy failed.
        """

        @functools.cache
        def normalized_diff() -> str:
            return normalize_diff(diff, original_content, self.tab_size)

        strategies: list[tuple[PatchStrategy, Callable[[], str]]] = [
            (
                PatchStrategy.ORIGINAL,
                lambda: self.library_executor.apply(original_content, diff, file_path),
            ),
            (
                PatchStrategy.NORMALIZED,
                lambda: self._apply_normalized(
                    self.library_executor,
                    original_content,
                    diff,
                    normalized_diff(),
                    file_path,
                ),
            ),
        ]
        if self.external_executor is None:
            logger.debug("External patch strategy disabled")
        elif not file_path:
            logger.debug("No file path given; skipping external patch strategy")
        else:
            external = self.external_executor
            strategies.append(
                (
                    PatchStrategy.EXTERNAL,
                    lambda: self._apply_normalized(
                        external,
                        original_content,
                        diff,
                        normalized_diff(),
                        file_path,
                    ),
                )
            )

        attempts: list[StrategyResult] = []
        for number, (strategy, attempt) in enumerate(strategies, 1):
            logger.info("Strategy %d: applying %s diff...", number, strategy.value)
            result = run_strategy(strategy, attempt)
            attempts.append(result)
            if result.ok:
                logger.info("Strategy %d succeeded", number)
                return PatchOutcome(
                    success=True,
                    content=result.content,
                    strategy=strategy,
                    attempts=attempts,
                )
            logger.info("Strategy %d failed: %s", number, result.reason)

        return PatchOutcome(success=False, error=REJECTED_MESSAGE, attempts=attempts)

    def _apply_normalized(
        self,
        executor: PatchExecutor,
        original_content: str,
        diff: str,
        normalized: str,
        file_path: str | None,
    ) -> str:
        """Apply a repaired diff.

        A diff whose hunks were all regenerated away (a full-file diff that
        changes nothing) leaves the content as it is.
        """
        if not normalized.strip() and any(iter_hunks(diff)):
            logger.info("Normalized diff is empty; content unchanged")
            return original_content
        return executor.apply(original_content, normalized, file_path)


def apply_patch_with_fallback(
    original_content: str,
    diff: str,
    file_path: str | None = None,
    patcher: FallbackPatcher | None = None,
) -> PatchOutcome:
    """Apply a diff with the default three-strategy patcher."""
    return (patcher or FallbackPatcher()).apply(original_content, diff, file_path)
