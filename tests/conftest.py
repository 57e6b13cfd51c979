import json
import logging
from pathlib import Path

import pytest

from mat_agent.logging import ROOT_LOGGER_NAME
from mat_agent.patcher.config import (
    EXECUTIONS_DIR_ENV,
    PATCH_COMMAND_ENV,
    PATCH_TIMEOUT_ENV,
    REPO_ROOT_ENV,
    TAB_SIZE_ENV,
)

SAMPLE_CONTENT = "line1\nline2\nline3\n"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep tests independent of the caller's shell and any .env file."""
    for name in (
        REPO_ROOT_ENV,
        EXECUTIONS_DIR_ENV,
        TAB_SIZE_ENV,
        PATCH_TIMEOUT_ENV,
        PATCH_COMMAND_ENV,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_package_logger():
    """Undo handler and level changes made by setup_logging."""
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    propagate = logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def repo(tmp_path):
    """Repository root holding src/app.txt with SAMPLE_CONTENT."""
    root = tmp_path / "repo"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.txt").write_text(SAMPLE_CONTENT)
    return root


@pytest.fixture
def numbered_content():
    """Build newline-terminated content of ``count`` numbered lines."""

    def _build(count: int, prefix: str = "line") -> str:
        return "".join(f"{prefix}{i}\n" for i in range(1, count + 1))

    return _build


@pytest.fixture
def write_execution(tmp_path):
    """Write an executor-output.json into executions/<name>/ and return the folder."""

    def _write(payload: dict, name: str = "1700000000000") -> Path:
        folder = tmp_path / "executions" / name
        folder.mkdir(parents=True)
        (folder / "executor-output.json").write_text(json.dumps(payload))
        return folder

    return _write
