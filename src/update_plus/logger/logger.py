"""Public entry points of the logging package."""

import atexit
import logging
from pathlib import Path

from update_plus.logger.config import default_levels, default_log_file
from update_plus.logger.handlers import (
    ROOT_LOGGER_NAME,
    install_root_handlers,
)
from update_plus.logger.state import get_state


def flush_all_handlers() -> None:
    """Write out every queued record.

    Stopping the listener drains the queue on its thread; it is restarted
    right away so logging keeps working afterwards.
    """
    listener = get_state().queue_listener
    if listener is None:
        return
    listener.stop()
    for handler in listener.handlers:
        handler.flush()
    listener.start()


def _shutdown() -> None:
    state = get_state()
    if state.queue_listener is not None:
        state.queue_listener.stop()
        for handler in state.queue_listener.handlers:
            handler.close()
        state.reset()


atexit.register(_shutdown)


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    console_level: str | None = None,
    file_level: str | None = None,
    log_file: Path | None = None,
    enable_file_logging: bool = True,  # noqa: FBT001, FBT002
) -> logging.Logger:
    """Configure the root logger on first use and return a logger.

    Later calls leave the existing handlers alone, so only the first
    caller's levels and file take effect.

    Args:
        name: Logger name, normally the caller's __name__.
        console_level: Stdout level, defaults to INFO.
        file_level: Log file level, defaults to INFO.
        log_file: Log file path, defaults to default_log_file().
        enable_file_logging: Whether to write a log file at all.

    Returns:
        The logger registered under name.

    Raises:
        ConfigurationError: If the log file cannot be opened.

    """
    state = get_state()
    with state.lock:
        if not state.root_initialized:
            default_console, default_file = default_levels()
            install_root_handlers(
                state,
                console_level or default_console,
                file_level or default_file,
                (log_file or default_log_file())
                if enable_file_logging
                else None,
            )
    return logging.getLogger(name)


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Return a logger below "update_plus".

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("🔄 Updating %s", module.name)

    """
    return setup_logging(name=name)


def clear_logger_state() -> None:
    """Stop the listener and detach all handlers (tests only)."""
    state = get_state()
    with state.lock:
        _shutdown()
        for logger_name in list(logging.Logger.manager.loggerDict):
            if logger_name.split(".")[0] != ROOT_LOGGER_NAME:
                continue
            instance = logging.getLogger(logger_name)
            for handler in list(instance.handlers):
                instance.removeHandler(handler)
                handler.close()
