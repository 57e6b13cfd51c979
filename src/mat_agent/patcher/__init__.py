"""Diff application: strategies, executors, and the batch runner."""

from mat_agent.patcher.exceptions import (
    ExternalPatchError,
    HunkMismatchError,
    MalformedDiffError,
    PatchConfigError,
    PatchError,
)
from mat_agent.patcher.executors import (
    LibraryPatchExecutor,
    PatchExecutor,
    ShellPatchExecutor,
)
from mat_agent.patcher.fallback import (
    REJECTED_MESSAGE,
    FallbackPatcher,
    apply_patch_with_fallback,
)
from mat_agent.patcher.runner import (
    MISSING_FILE_MESSAGE,
    PatchRunner,
    apply_patches,
)

__all__ = [
    "ExternalPatchError",
    "FallbackPatcher",
    "HunkMismatchError",
    "LibraryPatchExecutor",
    "MISSING_FILE_MESSAGE",
    "MalformedDiffError",
    "PatchConfigError",
    "PatchError",
    "PatchExecutor",
    "PatchRunner",
    "REJECTED_MESSAGE",
    "ShellPatchExecutor",
    "apply_patch_with_fallback",
    "apply_patches",
]
