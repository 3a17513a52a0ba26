"""Configuration package for update-plus."""

from update_plus.config.paths import Paths
from update_plus.config.settings import (
    BackupPath,
    ConfigManager,
    EncryptionConfig,
    RemoteStorageConfig,
    SkillsDirectory,
    UpdatePlusConfig,
    parse_excluded,
)

__all__ = [
    "BackupPath",
    "ConfigManager",
    "EncryptionConfig",
    "Paths",
    "RemoteStorageConfig",
    "SkillsDirectory",
    "UpdatePlusConfig",
    "parse_excluded",
]
