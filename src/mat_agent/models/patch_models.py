"""Models for diff application inputs, outcomes, and per-file results."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class IndentationProfile(BaseModel):
    """Indentation style inferred from a file's content."""

    model_config = ConfigDict(frozen=True)

    use_tabs: bool = False
    tab_size: int = 2


class FileModification(BaseModel):
    """A single file change produced by the executor agent."""

    path: str  # Relative path from repo root
    diff: str  # Unified diff, file headers optional


class ExecutorOutput(BaseModel):
    """Executor agent output as stored in executor-output.json."""

    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    modifications: list[FileModification] = Field(default_factory=list)
    missing_information: list[str] = Field(
        default_factory=list, alias="missingInformation"
    )
    confidence: float | None = None


class PatchStrategy(str, Enum):
    """Strategies tried, in order, when applying a diff."""

    ORIGINAL = "original"
    NORMALIZED = "normalized"
    EXTERNAL = "external"


class StrategyResult(BaseModel):
    """Result of a single strategy attempt: either content or a reason."""

    model_config = ConfigDict(frozen=True)

    strategy: PatchStrategy
    ok: bool
    content: str | None = None
    reason: str | None = None

    @classmethod
    def success(cls, strategy: PatchStrategy, content: str) -> "StrategyResult":
        return cls(strategy=strategy, ok=True, content=content)

    @classmethod
    def failure(cls, strategy: PatchStrategy, reason: str) -> "StrategyResult":
        return cls(strategy=strategy, ok=False, reason=reason)


class PatchOutcome(BaseModel):
    """Outcome of applying one diff to one file's content."""

    success: bool
    content: str | None = None  # Full resulting text, set only on success
    error: str | None = None
    strategy: PatchStrategy | None = None  # Strategy that succeeded
    attempts: list[StrategyResult] = Field(default_factory=list)


class PatchFileState(str, Enum):
    """Lifecycle of a single file in a batch run."""

    PENDING = "pending"
    MISSING = "missing"
    BACKED_UP = "backed_up"
    APPLIED = "applied"
    FAILED = "failed"


class PatchResult(BaseModel):
    """Per-file result of a batch run."""

    model_config = ConfigDict(frozen=False)

    file: str  # Normalized relative path
    success: bool
    error: str | None = None
    state: PatchFileState = PatchFileState.PENDING
    backup_path: str | None = None  # Preserved backup, set on failure after backup
