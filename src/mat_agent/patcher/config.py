"""Environment-backed settings for patch application.

Explicit arguments always win; these variables are only consulted when a
caller leaves a setting unset.
"""

import os

from mat_agent.patcher.exceptions import PatchConfigError

REPO_ROOT_ENV = "FRONTEND_REPO_PATH"
EXECUTIONS_DIR_ENV = "MAT_AGENT_EXECUTIONS_DIR"
TAB_SIZE_ENV = "MAT_AGENT_TAB_SIZE"
PATCH_TIMEOUT_ENV = "MAT_AGENT_PATCH_TIMEOUT"
PATCH_COMMAND_ENV = "MAT_AGENT_PATCH_COMMAND"


def positive_int(value: str | int | None, name: str) -> int | None:
    """Validate an optional positive integer setting.

    Raises:
        PatchConfigError: If the value is set but not a positive integer.
    """
    if value is None or value == "":
        return None
    try:
        number = int(value)
    except (TypeError, ValueError) as e:
        raise PatchConfigError(f"{name} must be a positive integer, got {value!r}") from e
    if number < 1:
        raise PatchConfigError(f"{name} must be a positive integer, got {value!r}")
    return number


def env_positive_int(env_name: str) -> int | None:
    """Read an optional positive integer from the environment."""
    return positive_int(os.getenv(env_name), env_name)
