"""Tests for patcher and orchestrator exception classes."""

import pytest

from mat_agent.orchestrator.exceptions import (
    ExecutionNotFoundError,
    ExecutorOutputError,
    OrchestratorError,
)
from mat_agent.patcher.exceptions import (
    ExternalPatchError,
    HunkMismatchError,
    MalformedDiffError,
    PatchConfigError,
    PatchError,
)
from mat_agent.patcher.executors import ShellPatchExecutor
from mat_agent.patcher.fallback import FallbackPatcher


class TestPatchExceptions:
    """Tests for patch exception hierarchy."""

    def test_patch_error_exists(self):
        """Test that PatchError base exception exists."""
        exc = PatchError("Base error")
        assert isinstance(exc, Exception)
        assert str(exc) == "Base error"

    @pytest.mark.parametrize(
        "exc_class",
        [MalformedDiffError, HunkMismatchError, ExternalPatchError, PatchConfigError],
    )
    def test_inherits_from_patch_error(self, exc_class):
        exc = exc_class("failed")
        assert isinstance(exc, PatchError)
        assert str(exc) == "failed"

    def test_catch_specific_via_base(self):
        """Test that specific errors can be caught as PatchError."""
        with pytest.raises(PatchError):
            raise HunkMismatchError("Hunk does not match")

    def test_config_error_for_invalid_settings(self):
        with pytest.raises(PatchConfigError):
            FallbackPatcher(tab_size=0)
        with pytest.raises(PatchConfigError):
            ShellPatchExecutor(timeout=-1)


class TestOrchestratorExceptions:
    """Tests for orchestrator exception hierarchy."""

    @pytest.mark.parametrize("exc_class", [ExecutionNotFoundError, ExecutorOutputError])
    def test_inherits_from_orchestrator_error(self, exc_class):
        assert issubclass(exc_class, OrchestratorError)

    def test_not_a_patch_error(self):
        assert not issubclass(OrchestratorError, PatchError)
