"""Loading saved executor runs and applying them to the repository."""

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from mat_agent.models import ExecutorOutput, PatchResult
from mat_agent.orchestrator.exceptions import ExecutionNotFoundError, ExecutorOutputError
from mat_agent.patcher.runner import PatchRunner
from mat_agent.utils.json_utils import parse_json_safe

logger = logging.getLogger(__name__)

DEFAULT_EXECUTIONS_DIR = "./executions"
EXECUTOR_OUTPUT_FILE = "executor-output.json"


def find_latest_execution(executions_dir: str | Path) -> Path:
    """Return the newest execution folder.

    Execution folders are named by millisecond timestamp, so the
    lexicographically greatest name is the latest run.

    Raises:
        ExecutionNotFoundError: If the directory is missing or has no folders.
    """
    root = Path(executions_dir)
    if not root.is_dir():
        raise ExecutionNotFoundError(f"Executions directory '{root}' does not exist")

    folders = sorted(path for path in root.iterdir() if path.is_dir())
    if not folders:
        raise ExecutionNotFoundError(f"No execution folders found in '{root}'")
    return folders[-1]


def resolve_output_path(target: str | Path) -> Path:
    """Accept an executor-output.json file or an execution folder holding one.

    Raises:
        ExecutionNotFoundError: If no output file exists at the target.
    """
    path = Path(target)
    if path.is_dir():
        path = path / EXECUTOR_OUTPUT_FILE
    if not path.is_file():
        raise ExecutionNotFoundError(f"{EXECUTOR_OUTPUT_FILE} not found at '{path}'")
    return path


def load_executor_output(path: str | Path) -> ExecutorOutput:
    """Read and validate a saved executor output file.

    Raises:
        ExecutorOutputError: If the file is unreadable, not JSON, or has the
            wrong shape.
    """
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ExecutorOutputError(f"Failed to read '{path}': {e}") from e

    try:
        data = parse_json_safe(raw)
    except json.JSONDecodeError as e:
        raise ExecutorOutputError(f"'{path}' is not valid JSON: {e}") from e

    try:
        return ExecutorOutput.model_validate(data)
    except ValidationError as e:
        raise ExecutorOutputError(f"'{path}' is not a valid executor output: {e}") from e


def run_apply(output: ExecutorOutput, runner: PatchRunner) -> list[PatchResult]:
    """Apply every modification in an executor output."""
    logger.info(
        "Applying %d modification(s) to %s",
        len(output.modifications),
        runner.repo_root,
    )
    results = runner.apply_patches(output)
    applied = sum(1 for result in results if result.success)
    logger.info("Patch operation complete: %d/%d applied", applied, len(results))
    return results
