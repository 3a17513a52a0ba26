"""Archive builder for point-in-time backups.

Every source directory is stored under its label and the OpenClaw
configuration file is stored at the archive root, so archives written here
are always in the labeled format.
"""

from __future__ import annotations

import asyncio
import errno
import fnmatch
import tarfile
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from update_plus.constants import (
    ARCHIVE_SUFFIX,
    BACKUP_PREFIX,
    BACKUP_TIMESTAMP_FORMAT,
    ENCRYPTED_SUFFIX,
)
from update_plus.domain.types import ArchiveFormat, BackupArchive, PathEntry
from update_plus.exceptions import (
    ArchiveCreationError,
    EncryptionError,
    PermissionOrSpaceError,
    ToolUnavailableError,
)
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.protocols import Encryptor

logger = get_logger(__name__)

# errno values meaning the destination cannot take the archive
_WRITE_ERRNOS = frozenset({errno.ENOSPC, errno.EDQUOT, errno.EROFS})


def archive_name(moment: datetime, prefix: str = BACKUP_PREFIX) -> str:
    """Build the archive file name for a moment in time.

    strftime with numeric directives only, so the name does not depend on
    the locale.

    Example:
        >>> archive_name(datetime(2026, 1, 25, 9, 5, 0))
        'openclaw-update-2026-01-25-09:05:00.tar.gz'

    """
    stamp = moment.strftime(BACKUP_TIMESTAMP_FORMAT)
    return f"{prefix}-{stamp}{ARCHIVE_SUFFIX}"


class ArchiveBuilder:
    """Create gzip tar archives of the configured source directories."""

    def __init__(
        self,
        config: UpdatePlusConfig,
        encryptor: Encryptor | None = None,
        clock: Callable[[], datetime] | None = None,
        prefix: str = BACKUP_PREFIX,
    ) -> None:
        """Initialize the builder.

        Args:
            config: Immutable configuration
            encryptor: Encryptor used when encryption is enabled
            clock: Returns the local time used for the archive name
            prefix: Archive name prefix

        """
        self.config = config
        self.encryptor = encryptor
        self.clock = clock or datetime.now
        self.prefix = prefix

    def planned_name(self) -> str:
        """Name create() would give an archive right now, .gpg included."""
        name = archive_name(self.clock(), self.prefix)
        if self.config.encryption.enabled:
            name += ENCRYPTED_SUFFIX
        return name

    def _is_excluded(self, name: str) -> bool:
        return any(
            fnmatch.fnmatch(name, pattern)
            for pattern in self.config.exclude_patterns
        )

    def _nested_backup_dirs(
        self, entries: tuple[PathEntry, ...]
    ) -> set[str]:
        """Archive names of the backup directory inside any source."""
        names = set()
        for entry in entries:
            try:
                relative = self.config.backup_dir.relative_to(entry.source)
            except ValueError:
                continue
            names.add(f"{entry.label}/{relative.as_posix()}")
        return names

    def _collect_sources(self) -> tuple[PathEntry, ...]:
        entries = []
        for source in self.config.backup_sources():
            if source.path.is_dir():
                entries.append(
                    PathEntry(label=source.label, source=source.path)
                )
            else:
                logger.warning(
                    "⚠️  Backup source '%s' not found: %s",
                    source.label,
                    source.path,
                )
        return tuple(entries)

    def _check_encryption(self) -> None:
        if not self.config.encryption.enabled:
            return
        if self.encryptor is None or not self.encryptor.is_available():
            msg = "encryption is enabled but gpg is not installed"
            raise ToolUnavailableError(msg, target="gpg")
        if not self.config.encryption.gpg_recipient:
            msg = "encryption is enabled but no gpg_recipient is configured"
            raise EncryptionError(msg)

    def _write_archive(
        self, destination: Path, entries: tuple[PathEntry, ...]
    ) -> None:
        """Write the tar.gz file. Runs in a worker thread."""
        skipped = self._nested_backup_dirs(entries)

        def _filter(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo | None:
            # Returning None for a directory also skips everything below it
            name = Path(tarinfo.name).name
            if tarinfo.name in skipped or name == destination.name:
                return None
            if self._is_excluded(name):
                return None
            return tarinfo

        try:
            # "x" mode refuses to replace an archive from the same second
            tar = tarfile.open(destination, "x:gz")  # noqa: SIM115
        except FileExistsError as e:
            msg = f"archive {destination.name} already exists"
            raise ArchiveCreationError(msg, target=destination.name) from e
        except tarfile.CompressionError as e:
            msg = "gzip compression is not available"
            raise ToolUnavailableError(msg, target="gzip") from e
        except OSError as e:
            msg = f"cannot create {destination}: {e.strerror or e}"
            raise PermissionOrSpaceError(msg, target=destination.name) from e

        try:
            with tar:
                for entry in entries:
                    logger.debug("Adding %s as %s/", entry.source, entry.label)
                    tar.add(
                        entry.source,
                        arcname=entry.label,
                        filter=_filter,
                    )
                config_file = self.config.config_file
                if config_file.is_file():
                    tar.add(config_file, arcname=config_file.name)
                else:
                    logger.debug(
                        "Config file %s not found, skipping", config_file
                    )
        except OSError as e:
            destination.unlink(missing_ok=True)
            if e.errno in _WRITE_ERRNOS:
                msg = f"cannot write {destination}: {e.strerror}"
                raise PermissionOrSpaceError(
                    msg, target=destination.name
                ) from e
            msg = f"cannot read backup sources: {e}"
            raise ArchiveCreationError(msg, target=destination.name) from e
        except tarfile.TarError as e:
            destination.unlink(missing_ok=True)
            msg = f"archive creation failed: {e}"
            raise ArchiveCreationError(msg, target=destination.name) from e

    async def _encrypt(self, plaintext: Path) -> Path:
        if self.encryptor is None:
            msg = "no encryptor configured"
            raise ToolUnavailableError(msg, target="gpg")
        encrypted = plaintext.with_name(plaintext.name + ENCRYPTED_SUFFIX)
        try:
            await self.encryptor.encrypt(
                plaintext, encrypted, self.config.encryption.gpg_recipient
            )
        finally:
            plaintext.unlink(missing_ok=True)
        logger.info(
            "🔒 Backup encrypted for %s",
            self.config.encryption.gpg_recipient,
        )
        return encrypted

    async def create(self) -> BackupArchive:
        """Create a new archive in the backup directory.

        Returns:
            The created archive

        Raises:
            ArchiveCreationError: If no source exists, a source is
                unreadable, or an archive with the same name exists
            PermissionOrSpaceError: If the destination cannot be written
            ToolUnavailableError: If gzip or gpg support is missing
            EncryptionError: If encryption is misconfigured or fails

        """
        self._check_encryption()

        entries = self._collect_sources()
        if not entries:
            msg = "archive creation failed: no backup source directory exists"
            raise ArchiveCreationError(msg)

        backup_dir = self.config.backup_dir
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            reason = e.strerror or e
            msg = f"cannot create backup directory {backup_dir}: {reason}"
            raise PermissionOrSpaceError(msg, target=str(backup_dir)) from e

        destination = backup_dir / archive_name(self.clock(), self.prefix)
        if destination.with_name(destination.name + ENCRYPTED_SUFFIX).exists():
            msg = f"archive {destination.name} already exists"
            raise ArchiveCreationError(msg, target=destination.name)

        logger.info("📦 Creating backup %s", destination.name)
        await asyncio.to_thread(self._write_archive, destination, entries)

        final = destination
        if self.config.encryption.enabled:
            final = await self._encrypt(destination)

        archive = BackupArchive.from_path(
            final, archive_format=ArchiveFormat.LABELED, entries=entries
        )
        logger.info(
            "✅ Backup created: %s (%d bytes)", archive.name, archive.size
        )
        return archive
