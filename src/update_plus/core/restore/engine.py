"""Restore engine: locate, decrypt, extract, sanitize, plan and apply.

The restore runs as a linear state machine (see RestoreStage). All
intermediate files live in one scratch directory that is removed on every
exit path, including aborts.
"""

from __future__ import annotations

import asyncio
import gzip
import shutil
import tarfile
import tempfile
import zlib
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from update_plus.constants import ENCRYPTED_SUFFIX, RESTORE_SCRATCH_PREFIX
from update_plus.core.restore.plan import (
    build_restore_plan,
    describe_plan,
    detect_format,
    list_labels,
)
from update_plus.core.restore.sanitizer import PathSanitizer
from update_plus.core.restore.sync import merge_tree, mirror_tree
from update_plus.domain.types import (
    ArchiveFormat,
    BackupArchive,
    RestoreResult,
    RestoreStage,
)
from update_plus.exceptions import ArchiveFormatError, ToolUnavailableError
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.backup.catalog import BackupCatalog
    from update_plus.core.protocols import Encryptor

logger = get_logger(__name__)

ConfirmCallback = Callable[[str], bool]


def prompt_confirmation(message: str) -> bool:
    """Ask a y/N question on the terminal. End of input means no."""
    try:
        reply = input(f"{message} (y/N) ")
    except EOFError:
        return False
    return reply.strip().lower() in {"y", "yes"}


def _extraction_filter(
    member: tarfile.TarInfo, dest_path: str
) -> tarfile.TarInfo | None:
    """Apply the "data" filter, keeping symlinks that point outside.

    Module trees often carry absolute symlinks (interpreters, shared
    data). They are kept as links; writing through them is still refused
    by the path check of the "tar" filter.
    """
    try:
        return tarfile.data_filter(member, dest_path)
    except (tarfile.AbsoluteLinkError, tarfile.LinkOutsideDestinationError):
        if not member.issym():
            raise
        return tarfile.tar_filter(member, dest_path)


def extract_archive(tarball: Path, destination: Path) -> None:
    """Extract a gzip tar archive into destination.

    Raises:
        ArchiveFormatError: If the archive is corrupt, truncated or holds
            members that would land outside destination

    """
    try:
        with tarfile.open(tarball, "r:gz") as tar:
            tar.extractall(destination, filter=_extraction_filter)
    except (tarfile.TarError, EOFError, gzip.BadGzipFile, zlib.error) as e:
        msg = f"cannot extract archive: {e}"
        raise ArchiveFormatError(msg, target=tarball.name) from e


class RestoreEngine:
    """Restore archives into their configured target directories."""

    def __init__(
        self,
        config: UpdatePlusConfig,
        catalog: BackupCatalog,
        encryptor: Encryptor | None = None,
        sanitizer: PathSanitizer | None = None,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            config: Immutable configuration
            catalog: Catalog used to locate archives
            encryptor: Decrypts .gpg archives
            sanitizer: Path rehoming pass (defaults to the configured home)
            confirm: Asks the user before anything is overwritten

        """
        self.config = config
        self.catalog = catalog
        self.encryptor = encryptor
        self.sanitizer = sanitizer or PathSanitizer(config.home)
        self.confirm = confirm or prompt_confirmation

    @property
    def protected_paths(self) -> tuple[Path, ...]:
        """Locations a mirror sync must never delete."""
        return (self.config.backup_dir, self.config.log_dir)

    async def _decrypt(self, archive: BackupArchive, scratch: Path) -> Path:
        if self.encryptor is None or not self.encryptor.is_available():
            msg = "gpg is required to restore encrypted backups"
            raise ToolUnavailableError(msg, target="gpg")

        logger.info("🔓 Decrypting %s", archive.name)
        plaintext = scratch / archive.name.removesuffix(ENCRYPTED_SUFFIX)
        await self.encryptor.decrypt(archive.path, plaintext)
        return plaintext

    async def restore(
        self,
        backup_id: str,
        label: str | None = None,
        *,
        force: bool = False,
    ) -> RestoreResult:
        """Restore a backup.

        Args:
            backup_id: Archive name or timestamp identifier
            label: Restore only this label (labeled archives)
            force: Skip the confirmation prompt

        Returns:
            RestoreResult; check its success property

        Raises:
            NotFoundError: If no archive matches backup_id
            ToolUnavailableError: If gpg is needed but missing
            EncryptionError: If decryption fails
            ArchiveFormatError: If the archive cannot be extracted

        """
        result = RestoreResult(backup_name=backup_id)
        archive = self.catalog.find(backup_id)
        result.backup_name = archive.name
        result.advance(RestoreStage.LOCATED)

        try:
            with tempfile.TemporaryDirectory(
                prefix=RESTORE_SCRATCH_PREFIX
            ) as scratch:
                await self._run(archive, Path(scratch), result, label, force)
        except Exception:
            result.advance(RestoreStage.ABORTED)
            raise
        finally:
            result.advance(RestoreStage.CLEANED)

        if result.success and not result.cancelled:
            logger.info("✅ Restore completed from: %s", archive.name)
        elif not result.success:
            logger.error("❌ Restore from %s failed", archive.name)
        return result

    async def _run(
        self,
        archive: BackupArchive,
        scratch: Path,
        result: RestoreResult,
        label: str | None,
        force: bool,  # noqa: FBT001
    ) -> None:
        tarball = archive.path
        if archive.encrypted:
            tarball = await self._decrypt(archive, scratch)
            result.advance(RestoreStage.DECRYPTED)

        extract_dir = scratch / "extract"
        extract_dir.mkdir()
        logger.info("Extracting backup...")
        await asyncio.to_thread(extract_archive, tarball, extract_dir)
        result.advance(RestoreStage.EXTRACTED)

        result.sanitize = await asyncio.to_thread(
            self.sanitizer.sanitize, extract_dir
        )
        result.advance(RestoreStage.SANITIZED)

        result.format = detect_format(extract_dir)
        if result.format is ArchiveFormat.LEGACY:
            await self._restore_legacy(extract_dir, result, force)
        else:
            await self._restore_labeled(extract_dir, result, label, force)

    async def _restore_legacy(
        self,
        extract_dir: Path,
        result: RestoreResult,
        force: bool,  # noqa: FBT001
    ) -> None:
        target = self.config.default_module_dir()
        logger.info("Detected legacy backup format")
        result.advance(RestoreStage.PLAN_BUILT)

        if not force:
            logger.warning("This will restore to: %s", target)
            if not self.confirm("Are you sure?"):
                logger.info("Restore cancelled")
                result.cancelled = True
                return
        result.advance(RestoreStage.CONFIRMED)

        try:
            await asyncio.to_thread(merge_tree, extract_dir, target)
        except OSError as e:
            logger.error("❌ Failed to restore into %s: %s", target, e)
            result.advance(RestoreStage.ABORTED)
            return
        result.merged = True
        result.advance(RestoreStage.APPLIED)
        logger.info("Restored legacy backup into %s", target)

    async def _restore_labeled(
        self,
        extract_dir: Path,
        result: RestoreResult,
        label: str | None,
        force: bool,  # noqa: FBT001
    ) -> None:
        labels = list_labels(extract_dir)
        plan = build_restore_plan(labels, self.config.restore_targets(), label)
        result.advance(RestoreStage.PLAN_BUILT)

        logger.info("Restore plan:")
        for line in describe_plan(plan):
            logger.info("  %s", line)

        if label is not None and label not in labels:
            logger.error(
                "Label '%s' not found in backup (available: %s)",
                label,
                ", ".join(labels),
            )
            result.skipped.extend(entry.label for entry in plan.skipped)
            result.advance(RestoreStage.ABORTED)
            return

        if not force:
            logger.warning("This will overwrite the above directories!")
            if not self.confirm("Are you sure?"):
                logger.info("Restore cancelled")
                result.cancelled = True
                return
        result.advance(RestoreStage.CONFIRMED)

        for entry in plan.entries:
            if not entry.selected:
                result.skipped.append(entry.label)
                continue
            if entry.target is None:
                logger.warning("Unknown label '%s', skipping", entry.label)
                result.unknown.append(entry.label)
                continue

            logger.info("Restoring %s → %s", entry.label, entry.target)
            try:
                await asyncio.to_thread(
                    mirror_tree,
                    extract_dir / entry.label,
                    entry.target,
                    self.protected_paths,
                )
            except OSError as e:
                logger.error("❌ Failed to restore %s: %s", entry.label, e)
                result.failed.append(entry.label)
                continue
            result.restored.append(entry.label)

        if label is None:
            self._restore_config_file(extract_dir, result)

        if result.restored:
            result.advance(RestoreStage.APPLIED)
        else:
            logger.error("No labels were restored")
            result.advance(RestoreStage.ABORTED)

    def _restore_config_file(
        self, extract_dir: Path, result: RestoreResult
    ) -> None:
        config_file = self.config.config_file
        captured = extract_dir / config_file.name
        if not captured.is_file():
            return
        try:
            config_file.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(captured, config_file)
        except OSError as e:
            logger.error("❌ Failed to restore %s: %s", config_file, e)
            return
        result.config_restored = True
        logger.info("Restored configuration file %s", config_file)
