"""Console formatters.

The console is the user-facing channel of every command: progress lines
("📦 Creating backup...") are logged at INFO and printed bare, while
warnings and errors carry a timestamp, the logger name and a colored
level.
"""

import logging

from update_plus.constants import LOG_COLORS


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that wraps the level name in ANSI color codes."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a copy of the record so other handlers see plain text.

        Args:
            record: Record emitted by an update_plus logger.

        Returns:
            The formatted line with a colored level name.

        """
        color = LOG_COLORS.get(record.levelname)
        if color is None:
            return super().format(record)

        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{LOG_COLORS['RESET']}"
        return super().format(colored)


class HybridConsoleFormatter(ColoredConsoleFormatter):
    """Print INFO records bare and everything else structured.

    Example:
        INFO     -> "📦 Creating backup..."
        WARNING  -> "12:30:45 - update_plus.core.restore.engine - WARNING -
                    Unknown label 'notes'"

    """

    def format(self, record: logging.LogRecord) -> str:
        """Return the bare message for INFO, the colored line otherwise."""
        if record.levelno == logging.INFO:
            return record.getMessage()
        return super().format(record)
