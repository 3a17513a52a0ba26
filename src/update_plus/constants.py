"""Centralized constants module for update-plus.

This module serves as the single source of truth for shared constants
across the update-plus codebase. Constants are organized by logical
categories and use typing.Final annotations to ensure immutability.

Usage:
    from update_plus.constants import BACKUP_PREFIX
"""

from typing import Final

# =============================================================================
# Configuration Constants
# =============================================================================

# OpenClaw base directory under the user's home directory
OPENCLAW_DIR_NAME: Final[str] = ".openclaw"

# update-plus settings file (JSON) inside the OpenClaw directory
SETTINGS_FILE_NAME: Final[str] = "update-plus.json"

# External OpenClaw configuration file captured in every backup
OPENCLAW_CONFIG_FILE_NAME: Final[str] = "openclaw.json"

# Application-specific subdirectory for logs and lock files
APP_DIR_NAME: Final[str] = "update-plus"

DEFAULT_BACKUP_COUNT: Final[int] = 5
DEFAULT_BACKUP_BEFORE_UPDATE: Final[bool] = True
DEFAULT_CORE_COMMAND: Final[str] = "openclaw"
DEFAULT_NPM_PACKAGE: Final[str] = "openclaw"
DEFAULT_CONNECTIVITY_URL: Final[str] = "https://github.com"
DEFAULT_SKILLS_LABEL: Final[str] = "skills"

# Minimum free space required in the backup directory before an update run
DEFAULT_MIN_FREE_MB: Final[int] = 500
BYTES_PER_MB: Final[int] = 1024 * 1024

# Dependency and bytecode caches never worth archiving
DEFAULT_EXCLUDE_PATTERNS: Final[tuple[str, ...]] = (
    ".venv",
    "node_modules",
    "*.pyc",
    "__pycache__",
)

# Built-in label -> target associations, relative to the home directory
DEFAULT_LABEL_TARGETS: Final[dict[str, str]] = {
    "config": ".openclaw",
    "workspace": ".openclaw/workspace",
    "skills": ".openclaw/skills",
    "extensions": ".openclaw/extensions",
    "prod": ".openclaw/skills",
    "dev": ".openclaw/skills-dev",
    "default": ".openclaw/skills",
}

# =============================================================================
# Backup Archive Constants
# =============================================================================

BACKUP_PREFIX: Final[str] = "openclaw-update"
BACKUP_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%d-%H:%M:%S"
ARCHIVE_SUFFIX: Final[str] = ".tar.gz"
ENCRYPTED_SUFFIX: Final[str] = ".gpg"
ARCHIVE_GLOBS: Final[tuple[str, ...]] = ("*.tar.gz", "*.tar.gz.gpg")

# Timestamp pattern embedded in archive names (YYYY-MM-DD-HH:MM:SS)
BACKUP_ID_PATTERN: Final[str] = r"\d{4}-\d{2}-\d{2}-\d{2}:\d{2}:\d{2}"

REPORT_PREFIX: Final[str] = "report"
LOCK_FILE_NAME: Final[str] = ".update-plus.lock"

# Scratch directory prefixes for extraction and decryption
RESTORE_SCRATCH_PREFIX: Final[str] = "update-plus-restore-"
DIFF_SCRATCH_PREFIX: Final[str] = "update-plus-diff-"

# =============================================================================
# Path Sanitizer Constants
# =============================================================================

# Version-control metadata directories never scanned or rewritten
VCS_METADATA_DIRS: Final[frozenset[str]] = frozenset({".git", ".hg", ".svn"})

# Binary extensions never scanned or rewritten
BINARY_EXTENSIONS: Final[frozenset[str]] = frozenset(
    {
        ".tar.gz",
        ".tgz",
        ".gz",
        ".zip",
        ".rar",
        ".7z",
        ".gpg",
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".bmp",
        ".ico",
        ".webp",
        ".woff",
        ".woff2",
        ".ttf",
        ".otf",
        ".eot",
        ".mp3",
        ".mp4",
        ".avi",
        ".mov",
        ".webm",
        ".pdf",
        ".exe",
        ".dll",
        ".so",
        ".dylib",
    }
)

# =============================================================================
# Status Values
# =============================================================================

REASON_EXCLUDED: Final[str] = "excluded"
REASON_LOCAL_CHANGES: Final[str] = "local changes detected"
REASON_PULL_ROLLED_BACK: Final[str] = "pull failed, rolled back"
REASON_ROLLBACK_FAILED: Final[str] = "pull failed, rollback failed"

VERSION_UNKNOWN: Final[str] = "unknown"

# =============================================================================
# Network Constants
# =============================================================================

CONNECTIVITY_TIMEOUT_SECONDS: Final[int] = 10
NPM_REGISTRY_URL: Final[str] = "https://registry.npmjs.org"

# =============================================================================
# Logging Constants
# =============================================================================

DEFAULT_LOG_LEVEL: Final[str] = "INFO"
DEFAULT_CONSOLE_LOG_LEVEL: Final[str] = "INFO"

# Maximum size for rotated log files (bytes)
LOG_ROTATION_THRESHOLD_BYTES: Final[int] = 1024 * 1024  # 1 MB

# Number of rotated log files to keep
LOG_BACKUP_COUNT: Final[int] = 3

LOG_CONSOLE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
LOG_CONSOLE_DATE_FORMAT: Final[str] = "%H:%M:%S"
LOG_FILE_FORMAT: Final[str] = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "%(funcName)s:%(lineno)d - %(message)s"
)
LOG_FILE_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# ANSI color codes for console log levels
LOG_COLORS: Final[dict[str, str]] = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}
