"""Handlers behind the queue of the "update_plus" root logger.

Records travel Logger → QueueHandler → queue → QueueListener thread →
console/file handlers, so a slow terminal or disk never stalls the event
loop while git, gpg or rclone subprocesses are being awaited.
"""

import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path

from update_plus.constants import (
    LOG_BACKUP_COUNT,
    LOG_CONSOLE_DATE_FORMAT,
    LOG_CONSOLE_FORMAT,
    LOG_FILE_DATE_FORMAT,
    LOG_FILE_FORMAT,
    LOG_ROTATION_THRESHOLD_BYTES,
)
from update_plus.exceptions import ConfigurationError
from update_plus.logger.formatters import HybridConsoleFormatter
from update_plus.logger.state import LogState

ROOT_LOGGER_NAME = "update_plus"


def level_number(name: str) -> int:
    """Map a level name such as "debug" to its number, INFO if unknown."""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO


def build_console_handler(level: str) -> logging.StreamHandler:
    """Create the stdout handler used for command output."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        HybridConsoleFormatter(
            LOG_CONSOLE_FORMAT, datefmt=LOG_CONSOLE_DATE_FORMAT
        )
    )
    handler.setLevel(level_number(level))
    return handler


def build_file_handler(log_file: Path, level: str) -> RotatingFileHandler:
    """Create the rotating log file handler.

    Args:
        log_file: Destination file; its directory is created if missing.
        level: Minimum level written to the file.

    Returns:
        A handler rotating at LOG_ROTATION_THRESHOLD_BYTES.

    Raises:
        ConfigurationError: If the log directory or file is not writable.

    """
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_ROTATION_THRESHOLD_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError as e:
        msg = f"Cannot open log file: {e}"
        raise ConfigurationError(msg, target=str(log_file)) from e

    handler.setFormatter(
        logging.Formatter(LOG_FILE_FORMAT, datefmt=LOG_FILE_DATE_FORMAT)
    )
    handler.setLevel(level_number(level))
    return handler


def install_root_handlers(
    state: LogState,
    console_level: str,
    file_level: str,
    log_file: Path | None,
) -> None:
    """Attach the queue to the root logger and start the listener.

    Args:
        state: Shared state receiving the listener and handlers.
        console_level: Minimum level printed to stdout.
        file_level: Minimum level written to the log file.
        log_file: Log file path, or None to log to the console only.

    """
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)
    root.propagate = False
    for stale in list(root.handlers):
        root.removeHandler(stale)
        stale.close()

    state.console_handler = build_console_handler(console_level)
    targets: list[logging.Handler] = [state.console_handler]
    if log_file is not None:
        state.file_handler = build_file_handler(log_file, file_level)
        targets.append(state.file_handler)

    state.log_queue = queue.Queue()
    state.queue_listener = QueueListener(
        state.log_queue, *targets, respect_handler_level=True
    )
    state.queue_listener.start()
    root.addHandler(QueueHandler(state.log_queue))
    state.root_initialized = True
