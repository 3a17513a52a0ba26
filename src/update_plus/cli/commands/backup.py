"""Backup command handlers: create, list and compare backups."""

from __future__ import annotations

from typing import TYPE_CHECKING

from update_plus.constants import BYTES_PER_MB
from update_plus.core.backup.diff import diff_archives
from update_plus.logger import get_logger

from .base import BaseCommandHandler

if TYPE_CHECKING:
    from argparse import Namespace

logger = get_logger(__name__)


def _format_size(size: int) -> str:
    if size >= BYTES_PER_MB:
        return f"{size / BYTES_PER_MB:.1f} MB"
    return f"{size / 1024:.1f} KB"


class BackupHandler(BaseCommandHandler):
    """Create a backup, upload it and apply retention."""

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """Create one archive from the configured sources."""
        async with self.lock():
            archive = await self.container.builder.create()
            await self.container.catalog.upload(archive)
            await self.container.catalog.trim()
        logger.info("✅ Backup created: %s", archive.name)
        return 0


class ListBackupsHandler(BaseCommandHandler):
    """Print local backups, newest first."""

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """List backups in the backup directory."""
        archives = self.container.catalog.list()
        if not archives:
            logger.info("No backups found in %s", self.config.backup_dir)
            return 0

        print(f"📦 Backups in {self.config.backup_dir}:")
        for archive in archives:
            created = archive.created.strftime("%Y-%m-%d %H:%M:%S")
            lock = " 🔒" if archive.encrypted else ""
            print(
                f"  {archive.name}  {_format_size(archive.size)}  "
                f"{created}{lock}"
            )
        return 0


class DiffBackupsHandler(BaseCommandHandler):
    """Show differences between two backups."""

    async def execute(self, args: Namespace) -> int:
        """Print a unified diff of two backups' contents."""
        lines = await diff_archives(
            self.container.catalog,
            args.first,
            args.second,
            encryptor=self.container.encryptor,
        )
        if not lines:
            logger.info("✅ Backups are identical")
            return 0
        for line in lines:
            print(line.rstrip("\n"))
        return 0
