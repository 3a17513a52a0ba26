"""Default log locations and runtime level changes."""

import os
from pathlib import Path

from update_plus.constants import (
    APP_DIR_NAME,
    DEFAULT_CONSOLE_LOG_LEVEL,
    DEFAULT_LOG_LEVEL,
    OPENCLAW_DIR_NAME,
)
from update_plus.logger.handlers import level_number
from update_plus.logger.state import LogState

LOG_DIR_ENV = "UPDATE_PLUS_LOG_DIR"
LOG_FILE_NAME = "update-plus.log"


def default_log_file() -> Path:
    """Return the log file path, honoring UPDATE_PLUS_LOG_DIR.

    The environment override keeps test runs out of the user's
    ~/.openclaw/update-plus/logs directory.
    """
    override = os.environ.get(LOG_DIR_ENV)
    if override:
        return Path(override).expanduser() / LOG_FILE_NAME
    return Path.home() / OPENCLAW_DIR_NAME / APP_DIR_NAME / "logs" / (
        LOG_FILE_NAME
    )


def default_levels() -> tuple[str, str]:
    """Return the (console, file) levels used when none are given."""
    return DEFAULT_CONSOLE_LOG_LEVEL, DEFAULT_LOG_LEVEL


def apply_console_level(state: LogState, level: str) -> None:
    """Change the stdout handler level of a running setup."""
    if state.console_handler is not None:
        state.console_handler.setLevel(level_number(level))
