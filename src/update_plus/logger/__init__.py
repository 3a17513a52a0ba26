"""Logging for update-plus.

Every module logs through a child of the "update_plus" logger:

    >>> from update_plus.logger import get_logger
    >>> logger = get_logger(__name__)
    >>> logger.info("📦 Backing up %s", label)

Records are queued and written by a listener thread to stdout (bare INFO
lines, structured warnings) and to a rotating file under
~/.openclaw/update-plus/logs, or under $UPDATE_PLUS_LOG_DIR when set.

Use %-style arguments in log calls and never attach handlers to child
loggers.
"""

from update_plus.logger.config import apply_console_level
from update_plus.logger.formatters import (
    ColoredConsoleFormatter,
    HybridConsoleFormatter,
)
from update_plus.logger.logger import (
    clear_logger_state,
    flush_all_handlers,
    get_logger,
    setup_logging,
)
from update_plus.logger.state import get_state

__all__ = [
    "ColoredConsoleFormatter",
    "HybridConsoleFormatter",
    "clear_logger_state",
    "flush_all_handlers",
    "get_logger",
    "set_console_level",
    "setup_logging",
]


def set_console_level(level: str) -> None:
    """Change the stdout level at runtime, e.g. "DEBUG" for --verbose."""
    apply_console_level(get_state(), level)
