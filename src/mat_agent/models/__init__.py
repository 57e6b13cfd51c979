"""Data models for the Mat AI agent."""

from mat_agent.models.patch_models import (
    ExecutorOutput,
    FileModification,
    IndentationProfile,
    PatchFileState,
    PatchOutcome,
    PatchResult,
    PatchStrategy,
    StrategyResult,
)

__all__ = [
    "ExecutorOutput",
    "FileModification",
    "IndentationProfile",
    "PatchFileState",
    "PatchOutcome",
    "PatchResult",
    "PatchStrategy",
    "StrategyResult",
]
