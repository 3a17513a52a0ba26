"""Backup catalog: listing, lookup, upload and retention of archives."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from update_plus.constants import ARCHIVE_GLOBS
from update_plus.domain.types import BackupArchive, TrimResult, is_archive_name
from update_plus.exceptions import (
    NotFoundError,
    ToolError,
    ToolUnavailableError,
)
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.protocols import ObjectStore

logger = get_logger(__name__)


class BackupCatalog:
    """Archives stored in the backup directory and on the remote store.

    Archive names embed a timestamp, so lexicographic order of names is
    recency order. Local listing uses modification time and falls back to
    the name for ties.
    """

    def __init__(
        self,
        config: UpdatePlusConfig,
        store: ObjectStore | None = None,
    ) -> None:
        """Initialize the catalog.

        Args:
            config: Immutable configuration
            store: Remote object store used when remote storage is enabled

        """
        self.config = config
        self.store = store

    @property
    def backup_dir(self) -> Path:
        """Directory holding local archives."""
        return self.config.backup_dir

    @property
    def remote_enabled(self) -> bool:
        """Whether archives are mirrored to a remote store."""
        return self.config.remote_storage.enabled and self.store is not None

    def list(self) -> Sequence[BackupArchive]:
        """Return local archives, most recent first.

        Sorted by modification time descending, ties broken by name
        descending.
        """
        if not self.backup_dir.is_dir():
            return []

        paths: set[Path] = set()
        for pattern in ARCHIVE_GLOBS:
            paths.update(
                path
                for path in self.backup_dir.glob(pattern)
                if path.is_file()
            )

        archives = [BackupArchive.from_path(path) for path in paths]
        archives.sort(
            key=lambda archive: (archive.created, archive.name), reverse=True
        )
        return archives

    def find(self, backup_id: str) -> BackupArchive:
        """Find an archive by file name, then by timestamp identifier.

        Args:
            backup_id: Archive file name or its YYYY-MM-DD-HH:MM:SS part

        Returns:
            Matching archive

        Raises:
            NotFoundError: If no archive matches

        """
        archives = self.list()
        for archive in archives:
            if archive.name == backup_id:
                return archive
        for archive in archives:
            if archive.identifier == backup_id:
                return archive

        msg = f"no backup named '{backup_id}' in {self.backup_dir}"
        raise NotFoundError(msg, target=backup_id)

    async def upload(self, archive: BackupArchive) -> bool:
        """Copy an archive to the remote store.

        Failures are logged as warnings and never raised.

        Returns:
            True if the archive was uploaded

        """
        if not self.remote_enabled or self.store is None:
            return False

        destination = self.config.remote_storage.destination
        logger.info("☁️  Uploading %s to %s", archive.name, destination)
        try:
            await self.store.copy_in(archive.path, destination)
        except (ToolError, ToolUnavailableError) as e:
            logger.warning("⚠️  Remote upload failed: %s", e)
            return False
        return True

    def _trim_local(self, count: int) -> tuple[str, ...]:
        deleted = []
        for archive in self.list()[count:]:
            try:
                archive.path.unlink()
            except OSError as e:
                logger.warning("Could not delete %s: %s", archive.name, e)
                continue
            logger.info("🗑️  Removed old backup: %s", archive.name)
            deleted.append(archive.name)
        return tuple(deleted)

    async def _trim_remote(self, count: int) -> tuple[str, ...]:
        if not self.remote_enabled or self.store is None:
            return ()

        destination = self.config.remote_storage.destination
        try:
            names = await self.store.list_names(destination)
        except (ToolError, ToolUnavailableError) as e:
            logger.warning("⚠️  Could not list remote backups: %s", e)
            return ()

        archive_names = sorted(
            (name for name in names if is_archive_name(name)), reverse=True
        )
        deleted = []
        for name in archive_names[count:]:
            try:
                await self.store.delete(destination, name)
            except (ToolError, ToolUnavailableError) as e:
                logger.warning(
                    "⚠️  Could not delete remote %s: %s", name, e
                )
                continue
            logger.info("🗑️  Removed old remote backup: %s", name)
            deleted.append(name)
        return tuple(deleted)

    async def trim(self, count: int | None = None) -> TrimResult:
        """Keep only the most recent archives, locally and remotely.

        Args:
            count: Number of archives to keep (defaults to backup_count)

        Returns:
            Names of the deleted local and remote archives

        """
        keep = self.config.backup_count if count is None else count
        keep = max(keep, 0)
        return TrimResult(
            local=self._trim_local(keep),
            remote=await self._trim_remote(keep),
        )
