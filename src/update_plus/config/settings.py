"""Settings loading for update-plus.

The JSON settings file is read once at startup and turned into an
immutable UpdatePlusConfig value. Every component receives that value
through its constructor; nothing re-reads or mutates configuration later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import orjson

from update_plus.config.paths import Paths
from update_plus.config.schemas import validate_settings
from update_plus.constants import (
    APP_DIR_NAME,
    DEFAULT_BACKUP_BEFORE_UPDATE,
    DEFAULT_BACKUP_COUNT,
    DEFAULT_CONNECTIVITY_URL,
    DEFAULT_CORE_COMMAND,
    DEFAULT_EXCLUDE_PATTERNS,
    DEFAULT_LABEL_TARGETS,
    DEFAULT_MIN_FREE_MB,
    DEFAULT_NPM_PACKAGE,
    DEFAULT_SKILLS_LABEL,
    OPENCLAW_CONFIG_FILE_NAME,
    OPENCLAW_DIR_NAME,
)
from update_plus.exceptions import ConfigurationError
from update_plus.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SkillsDirectory:
    """A directory whose immediate git subdirectories are modules."""

    path: Path
    label: str = DEFAULT_SKILLS_LABEL
    update: bool = True


@dataclass(frozen=True)
class BackupPath:
    """A labeled source directory captured in every backup."""

    label: str
    path: Path


@dataclass(frozen=True)
class RemoteStorageConfig:
    """Remote object store settings (rclone remote and path)."""

    enabled: bool = False
    rclone_remote: str = ""
    path: str = ""

    @property
    def destination(self) -> str:
        """Remote destination in rclone's ``remote:path`` notation."""
        if not self.path:
            return self.rclone_remote
        return f"{self.rclone_remote}/{self.path}"


@dataclass(frozen=True)
class EncryptionConfig:
    """Backup encryption settings."""

    enabled: bool = False
    gpg_recipient: str = ""


@dataclass(frozen=True)
class UpdatePlusConfig:
    """Immutable configuration passed into every component.

    Attributes:
        home: Home directory used for "~" expansion and path rehoming.
        backup_dir: Directory holding backup archives and reports.
        config_file: External OpenClaw configuration file to capture.
        skills_dirs: Directories containing git-tracked modules.
        backup_paths: Labeled source directories to capture.
        excluded_skills: Module names never updated.
        exclude_patterns: fnmatch patterns skipped while archiving.
        backup_count: Number of archives kept per storage location.
        backup_before_update: Whether update runs create a backup first.
        remote_storage: Remote object store settings.
        encryption: Backup encryption settings.
        label_targets: Configured label -> target associations.
        core_command: OpenClaw executable name.
        npm_package: npm package queried for the latest core version.
        connectivity_url: URL requested by the connectivity precheck.
        min_free_mb: Minimum free space in the backup directory.

    """

    home: Path
    backup_dir: Path
    config_file: Path
    skills_dirs: tuple[SkillsDirectory, ...]
    backup_paths: tuple[BackupPath, ...] = ()
    excluded_skills: frozenset[str] = frozenset()
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    backup_count: int = DEFAULT_BACKUP_COUNT
    backup_before_update: bool = DEFAULT_BACKUP_BEFORE_UPDATE
    remote_storage: RemoteStorageConfig = field(
        default_factory=RemoteStorageConfig
    )
    encryption: EncryptionConfig = field(default_factory=EncryptionConfig)
    label_targets: dict[str, Path] = field(default_factory=dict)
    core_command: str = DEFAULT_CORE_COMMAND
    npm_package: str = DEFAULT_NPM_PACKAGE
    connectivity_url: str = DEFAULT_CONNECTIVITY_URL
    min_free_mb: int = DEFAULT_MIN_FREE_MB

    @property
    def lock_file(self) -> Path:
        """Advisory lock file guarding the backup directory."""
        return Paths.lock_file(self.backup_dir)

    @property
    def log_dir(self) -> Path:
        """Default log directory for this home."""
        return self.home / OPENCLAW_DIR_NAME / APP_DIR_NAME / "logs"

    def default_module_dir(self) -> Path:
        """Return the first configured skills directory.

        Legacy (flat) archives are restored into this directory.
        """
        if self.skills_dirs:
            return self.skills_dirs[0].path
        return self.home / OPENCLAW_DIR_NAME / DEFAULT_SKILLS_LABEL

    def backup_sources(self) -> tuple[BackupPath, ...]:
        """Return the labeled directories captured by a backup.

        Configured backup_paths win; otherwise every skills directory is
        captured under its own label.
        """
        if self.backup_paths:
            return self.backup_paths
        return tuple(
            BackupPath(label=directory.label, path=directory.path)
            for directory in self.skills_dirs
        )

    def restore_targets(self) -> dict[str, Path]:
        """Return label -> target overlaying configuration on defaults."""
        targets = {
            label: self.home / relative
            for label, relative in DEFAULT_LABEL_TARGETS.items()
        }
        for source in self.backup_paths:
            targets[source.label] = source.path
        targets.update(self.label_targets)
        return targets


def _as_bool(value: Any, default: bool) -> bool:  # noqa: ANN401, FBT001
    """Interpret JSON booleans and the "true"/"false" strings of old files."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)


def parse_excluded(value: Any) -> frozenset[str]:  # noqa: ANN401
    """Parse the module exclusion set once at the configuration boundary.

    Accepts a JSON list or a comma-joined string (older settings files).

    Args:
        value: Raw "excluded_skills" value

    Returns:
        Set of excluded module names

    Raises:
        ConfigurationError: If the value is neither a list nor a string

    """
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, list):
        items = value
    else:
        msg = "excluded_skills must be a list or a comma-separated string"
        raise ConfigurationError(msg)

    names = set()
    for item in items:
        name = str(item).strip().strip("'\"").strip()
        if name:
            names.add(name)
    return frozenset(names)


class ConfigManager:
    """Loads the update-plus JSON settings file."""

    def __init__(
        self, settings_file: Path | None = None, home: Path | None = None
    ) -> None:
        """Initialize config manager.

        Args:
            settings_file: Settings file path (defaults to
                ~/.openclaw/update-plus.json)
            home: Home directory for "~" expansion (defaults to Path.home())

        """
        self.home = home or Paths.HOME_DIR
        self.settings_file = settings_file or (
            self.home / OPENCLAW_DIR_NAME / Paths.SETTINGS_FILE.name
        )

    def load(self) -> UpdatePlusConfig:
        """Load and validate configuration.

        A missing settings file yields the defaults.

        Returns:
            Immutable configuration value

        Raises:
            ConfigurationError: If the file is unreadable, not valid JSON,
                or does not match the settings schema

        """
        raw: dict[str, Any] = {}
        if self.settings_file.exists():
            try:
                raw = orjson.loads(self.settings_file.read_bytes())
            except orjson.JSONDecodeError as e:
                msg = f"not valid JSON: {e}"
                raise ConfigurationError(
                    msg, target=str(self.settings_file)
                ) from e
            except OSError as e:
                msg = f"cannot read settings: {e}"
                raise ConfigurationError(
                    msg, target=str(self.settings_file)
                ) from e
            validate_settings(raw, str(self.settings_file))
        else:
            logger.debug(
                "Settings file %s not found, using defaults",
                self.settings_file,
            )

        return self._build(raw)

    def _path(self, value: str) -> Path:
        return Paths.expand_path(value, self.home)

    def _skills_dirs(self, raw: dict[str, Any]) -> tuple[SkillsDirectory, ...]:
        entries = raw.get("skills_dirs")
        if entries is None:
            legacy = raw.get("skills_dir")
            path = (
                self._path(legacy)
                if legacy
                else self.home / OPENCLAW_DIR_NAME / DEFAULT_SKILLS_LABEL
            )
            return (SkillsDirectory(path=path),)

        return tuple(
            SkillsDirectory(
                path=self._path(entry["path"]),
                label=entry.get("label") or DEFAULT_SKILLS_LABEL,
                update=_as_bool(entry.get("update"), default=True),
            )
            for entry in entries
        )

    def _backup_paths(self, raw: dict[str, Any]) -> tuple[BackupPath, ...]:
        sources = []
        seen: set[str] = set()
        for entry in raw.get("backup_paths", []):
            label = entry["label"]
            if label in seen:
                msg = f"duplicate backup label '{label}'"
                raise ConfigurationError(msg, target=str(self.settings_file))
            seen.add(label)
            sources.append(
                BackupPath(label=label, path=self._path(entry["path"]))
            )
        return tuple(sources)

    def _backup_count(self, raw: dict[str, Any]) -> int:
        # Older files store the count as a string
        backup_count = int(raw.get("backup_count", DEFAULT_BACKUP_COUNT))
        if backup_count < 1:
            msg = "'backup_count' must be at least 1"
            raise ConfigurationError(msg, target=str(self.settings_file))
        return backup_count

    def _build(self, raw: dict[str, Any]) -> UpdatePlusConfig:
        remote = raw.get("remote_storage", {})
        encryption = raw.get("encryption", {})
        label_targets = raw.get("restore_targets", {})
        patterns = raw.get("exclude_patterns", DEFAULT_EXCLUDE_PATTERNS)

        openclaw_dir = self.home / OPENCLAW_DIR_NAME
        return UpdatePlusConfig(
            home=self.home,
            backup_dir=(
                self._path(raw["backup_dir"])
                if "backup_dir" in raw
                else openclaw_dir / "backups"
            ),
            config_file=(
                self._path(raw["config_file"])
                if "config_file" in raw
                else openclaw_dir / OPENCLAW_CONFIG_FILE_NAME
            ),
            skills_dirs=self._skills_dirs(raw),
            backup_paths=self._backup_paths(raw),
            excluded_skills=parse_excluded(raw.get("excluded_skills")),
            exclude_patterns=tuple(patterns),
            backup_count=self._backup_count(raw),
            backup_before_update=_as_bool(
                raw.get("backup_before_update"),
                default=DEFAULT_BACKUP_BEFORE_UPDATE,
            ),
            remote_storage=RemoteStorageConfig(
                enabled=_as_bool(remote.get("enabled"), default=False),
                rclone_remote=remote.get("rclone_remote", ""),
                path=remote.get("path", ""),
            ),
            encryption=EncryptionConfig(
                enabled=_as_bool(encryption.get("enabled"), default=False),
                gpg_recipient=encryption.get("gpg_recipient", ""),
            ),
            label_targets={
                label: self._path(target)
                for label, target in label_targets.items()
            },
            core_command=raw.get("core_command", DEFAULT_CORE_COMMAND),
            npm_package=raw.get("npm_package", DEFAULT_NPM_PACKAGE),
            connectivity_url=raw.get(
                "connectivity_url", DEFAULT_CONNECTIVITY_URL
            ),
            min_free_mb=raw.get("min_free_mb", DEFAULT_MIN_FREE_MB),
        )
