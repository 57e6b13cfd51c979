"""Orchestration of saved executor runs."""

from mat_agent.orchestrator.exceptions import (
    ExecutionNotFoundError,
    ExecutorOutputError,
    OrchestratorError,
)
from mat_agent.orchestrator.run_apply import (
    find_latest_execution,
    load_executor_output,
    resolve_output_path,
    run_apply,
)

__all__ = [
    "ExecutionNotFoundError",
    "ExecutorOutputError",
    "OrchestratorError",
    "find_latest_execution",
    "load_executor_output",
    "resolve_output_path",
    "run_apply",
]
