"""Process-wide logging state shared by the logger modules."""

import logging
import queue
import threading
from dataclasses import dataclass, field
from logging.handlers import QueueListener, RotatingFileHandler


@dataclass
class LogState:
    """Handlers and listener owned by the "update_plus" root logger.

    Attributes:
        lock: Guards first-time setup across threads.
        root_initialized: Whether the root logger has handlers.
        log_queue: Queue between QueueHandler and the listener thread.
        queue_listener: Thread feeding records to the real handlers.
        console_handler: Handler printing to stdout.
        file_handler: Rotating log file handler, if file logging is on.

    """

    lock: threading.Lock = field(default_factory=threading.Lock)
    root_initialized: bool = False
    log_queue: queue.Queue | None = None
    queue_listener: QueueListener | None = None
    console_handler: logging.Handler | None = None
    file_handler: RotatingFileHandler | None = None

    def reset(self) -> None:
        """Forget the listener and handlers after they were shut down."""
        self.root_initialized = False
        self.log_queue = None
        self.queue_listener = None
        self.console_handler = None
        self.file_handler = None


_state = LogState()


def get_state() -> LogState:
    """Return the process-wide logging state."""
    return _state
