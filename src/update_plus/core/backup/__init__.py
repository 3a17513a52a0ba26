"""Backup creation, cataloging and comparison."""

from update_plus.core.backup.archive import ArchiveBuilder, archive_name
from update_plus.core.backup.catalog import BackupCatalog

__all__ = ["ArchiveBuilder", "BackupCatalog", "archive_name"]
