"""Exceptions for orchestrator operations."""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class ExecutionNotFoundError(OrchestratorError):
    """Raised when no execution folder or executor output file is found."""


class ExecutorOutputError(OrchestratorError):
    """Raised when executor output cannot be read, parsed, or validated."""
