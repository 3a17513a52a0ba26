"""Path constants and utilities for update-plus configuration.

This module centralizes default path management so every component
resolves OpenClaw locations the same way.
"""

from pathlib import Path

from update_plus.constants import (
    APP_DIR_NAME,
    DEFAULT_SKILLS_LABEL,
    LOCK_FILE_NAME,
    OPENCLAW_CONFIG_FILE_NAME,
    OPENCLAW_DIR_NAME,
    SETTINGS_FILE_NAME,
)


class Paths:
    """Application paths and directory structure."""

    HOME_DIR = Path.home()
    OPENCLAW_DIR = HOME_DIR / OPENCLAW_DIR_NAME
    APP_DIR = OPENCLAW_DIR / APP_DIR_NAME

    SETTINGS_FILE = OPENCLAW_DIR / SETTINGS_FILE_NAME
    OPENCLAW_CONFIG_FILE = OPENCLAW_DIR / OPENCLAW_CONFIG_FILE_NAME
    BACKUPS_DIR = OPENCLAW_DIR / "backups"
    SKILLS_DIR = OPENCLAW_DIR / DEFAULT_SKILLS_LABEL
    LOGS_DIR = APP_DIR / "logs"

    @classmethod
    def expand_path(
        cls, path_str: str | Path, home: Path | None = None
    ) -> Path:
        """Expand ~ against the given home and make the path absolute.

        Args:
            path_str: Path string to expand (e.g., "~/.openclaw/skills")
            home: Home directory used for "~" (defaults to the user's home)

        Returns:
            Expanded absolute Path object

        Example:
            >>> Paths.expand_path("~/.openclaw", Path("/home/user"))
            PosixPath('/home/user/.openclaw')

        """
        raw = str(path_str)
        base = home or cls.HOME_DIR
        if raw == "~":
            return base
        if raw.startswith("~/"):
            return base / raw[2:]
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = base / path
        return path

    @classmethod
    def lock_file(cls, backup_dir: Path) -> Path:
        """Get the advisory lock file guarding a backup directory."""
        return backup_dir / LOCK_FILE_NAME
