"""Update orchestrator: the top-level update and rollback sequence.

A run goes through these stages in order:

1. disk space precheck
2. connectivity precheck
3. optional backup (and upload to the remote store)
4. OpenClaw update, restoring the fresh backup if it fails
5. module updates
6. retention trim
7. optional notification
8. summary and JSON report

Stages 1 to 4 can abort the run. Module failures never do; they only make
the overall status a failure.

A dry run performs the prechecks, then only logs what stages 3 to 8 would
do. Modules are fetched to report how far behind they are, but nothing is
pulled, written, trimmed or sent.
"""

from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

from update_plus.constants import BYTES_PER_MB
from update_plus.core.report import format_summary
from update_plus.domain.types import (
    BackupArchive,
    BackupStatus,
    CoreUpdateStatus,
    ModuleOutcome,
    ModuleStatus,
    UpdateRun,
)
from update_plus.exceptions import (
    CoreToolError,
    FatalAbortError,
    PermissionOrSpaceError,
    ToolError,
    ToolUnavailableError,
    UpdatePlusError,
)
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.backup.archive import ArchiveBuilder
    from update_plus.core.backup.catalog import BackupCatalog
    from update_plus.core.protocols import (
        ConnectivityChecker,
        CoreTool,
        Reporter,
    )
    from update_plus.core.restore.engine import RestoreEngine
    from update_plus.core.update.check import UpdateChecker
    from update_plus.core.update.skills import SkillUpdater

logger = get_logger(__name__)


class DiskUsage(NamedTuple):
    """Subset of shutil.disk_usage() used by the precheck."""

    total: int
    used: int
    free: int


DiskUsageFunc = Callable[[Path], DiskUsage]


@dataclass(frozen=True)
class UpdateOptions:
    """Per-run switches.

    Attributes:
        backup: Create a backup before updating.
        force: Continue when the backup fails.
        notify: Send a notification when the run ends.
        check_disk: Run the disk space precheck.
        json_report: Write report-<timestamp>.json to the backup directory.
        dry_run: Log what would change without changing anything.

    """

    backup: bool = True
    force: bool = False
    notify: bool = False
    check_disk: bool = True
    json_report: bool = False
    dry_run: bool = False


def _existing_parent(path: Path) -> Path:
    """Return path or its nearest existing ancestor."""
    for candidate in (path, *path.parents):
        if candidate.exists():
            return candidate
    return path


class UpdateOrchestrator:
    """Sequence prechecks, backup, core update and module updates."""

    def __init__(  # noqa: PLR0913
        self,
        config: UpdatePlusConfig,
        builder: ArchiveBuilder,
        catalog: BackupCatalog,
        updater: SkillUpdater,
        restorer: RestoreEngine,
        core_tool: CoreTool,
        connectivity: ConnectivityChecker,
        reporter: Reporter,
        clock: Callable[[], datetime] | None = None,
        disk_usage: DiskUsageFunc | None = None,
        checker: UpdateChecker | None = None,
    ) -> None:
        """Initialize the orchestrator with its collaborators.

        Args:
            config: Immutable configuration
            builder: Creates the pre-update backup
            catalog: Uploads and trims archives
            updater: Updates modules
            restorer: Rolls back after a failed core update
            core_tool: The OpenClaw binary
            connectivity: Network precheck
            reporter: Summary and JSON report sink
            clock: Returns the run timestamp
            disk_usage: Free space query (shutil.disk_usage by default)
            checker: Reports module lag during dry runs

        """
        self.config = config
        self.builder = builder
        self.catalog = catalog
        self.updater = updater
        self.restorer = restorer
        self.core_tool = core_tool
        self.connectivity = connectivity
        self.reporter = reporter
        self.clock = clock or (lambda: datetime.now().astimezone())
        self.disk_usage = disk_usage or shutil.disk_usage
        self.checker = checker

    def check_disk_space(self) -> int:
        """Verify the backup directory has the configured free space.

        Returns:
            Free space in MB

        Raises:
            PermissionOrSpaceError: If free space is below the minimum

        """
        location = _existing_parent(self.config.backup_dir)
        try:
            free_mb = self.disk_usage(location).free // BYTES_PER_MB
        except OSError as e:
            msg = f"cannot check free space of {location}: {e}"
            raise PermissionOrSpaceError(msg, target=str(location)) from e

        required_mb = self.config.min_free_mb
        if free_mb < required_mb:
            msg = (
                f"insufficient disk space: {free_mb}MB available, "
                f"{required_mb}MB required"
            )
            raise PermissionOrSpaceError(msg, target=str(location))
        logger.info("Disk space check: %dMB available (OK)", free_mb)
        return free_mb

    async def _check_connectivity(self) -> None:
        if not await self.connectivity.is_reachable():
            msg = f"cannot reach {self.config.connectivity_url}"
            raise FatalAbortError(msg)
        logger.debug("Connectivity check passed")

    async def _create_backup(
        self, run: UpdateRun, options: UpdateOptions
    ) -> BackupArchive | None:
        if not options.backup:
            run.backup.status = BackupStatus.SKIPPED
            logger.info("Backup disabled for this run")
            return None

        try:
            archive = await self.builder.create()
        except UpdatePlusError as e:
            run.backup.status = BackupStatus.FAILED
            run.backup.error = str(e)
            if not options.force:
                msg = f"backup failed, use --force to continue: {e}"
                raise FatalAbortError(msg) from e
            logger.warning(
                "⚠️  Backup failed, but --force is enabled. "
                "Continuing without backup."
            )
            return None

        run.backup.status = BackupStatus.CREATED
        run.backup.filename = archive.name
        run.backup.size = archive.size
        await self.catalog.upload(archive)
        return archive

    async def _roll_back(
        self, run: UpdateRun, archive: BackupArchive | None
    ) -> None:
        if archive is None:
            logger.error("No backup available to restore from.")
            return
        logger.warning("Rolling back from %s...", archive.name)
        try:
            result = await self.restorer.restore(archive.name, force=True)
        except UpdatePlusError as e:
            logger.error("❌ Rollback failed: %s", e)
            return
        run.core_update.rolled_back = result.success

    def _require_core_tool(self, run: UpdateRun) -> None:
        if not self.core_tool.is_installed():
            core = run.core_update
            core.status = CoreUpdateStatus.NOT_FOUND
            core.error = f"{self.config.core_command} not found"
            raise FatalAbortError(core.error, target=self.config.core_command)

    async def _update_core(
        self, run: UpdateRun, archive: BackupArchive | None
    ) -> None:
        core = run.core_update
        self._require_core_tool(run)

        core.from_version = await self.core_tool.version()
        logger.info(
            "Updating %s (current: %s)...",
            self.config.core_command,
            core.from_version,
        )
        try:
            await self.core_tool.update()
        except (CoreToolError, ToolUnavailableError) as e:
            core.status = CoreUpdateStatus.FAILED
            core.error = str(e)
            logger.error(
                "❌ %s update failed: %s", self.config.core_command, e
            )
            await self._roll_back(run, archive)
            msg = f"{self.config.core_command} update failed"
            raise FatalAbortError(msg, target=self.config.core_command) from e

        core.to_version = await self.core_tool.version()
        if core.to_version == core.from_version:
            core.status = CoreUpdateStatus.NO_CHANGE
            logger.info("✓ %s already up to date", self.config.core_command)
        else:
            core.status = CoreUpdateStatus.UPDATED
            logger.info(
                "✅ %s updated: %s → %s",
                self.config.core_command,
                core.from_version,
                core.to_version,
            )

    def _plan_backup(self, run: UpdateRun, options: UpdateOptions) -> None:
        run.backup.status = BackupStatus.SKIPPED
        if not options.backup:
            logger.info("Backup disabled for this run")
            return
        run.backup.filename = self.builder.planned_name()
        logger.info(
            "🔍 Would create backup: %s",
            self.config.backup_dir / run.backup.filename,
        )

    async def _plan_core_update(self, run: UpdateRun) -> None:
        self._require_core_tool(run)
        core = run.core_update
        core.status = CoreUpdateStatus.SKIPPED
        core.from_version = await self.core_tool.version()
        logger.info(
            "🔍 Would update %s (current: %s)",
            self.config.core_command,
            core.from_version,
        )

    async def _plan_modules(self) -> list[ModuleOutcome]:
        outcomes = []
        for module in self.updater.discover():
            if module.excluded:
                reason = "excluded"
            elif self.checker is None:
                reason = "dry-run"
            else:
                check = await self.checker.check_module(
                    module.name, module.path
                )
                if check.error is not None:
                    reason = f"dry-run, could not check: {check.error}"
                elif check.behind:
                    reason = f"dry-run, {check.behind} commits behind"
                else:
                    reason = "dry-run, up to date"
            logger.info("🔍 Would update %s (%s)", module.name, reason)
            outcomes.append(
                ModuleOutcome(module.name, ModuleStatus.SKIPPED, reason=reason)
            )
        return outcomes

    async def _trim(self) -> None:
        try:
            await self.catalog.trim(self.config.backup_count)
        except (UpdatePlusError, OSError) as e:
            logger.warning("⚠️  Retention trim failed: %s", e)

    async def _notify(self, run: UpdateRun) -> None:
        message = "\n".join(
            ["🔄 OpenClaw Update Report", "", *format_summary(run)]
        )
        logger.info("Sending notification...")
        try:
            await self.core_tool.send_message(message)
        except (ToolError, ToolUnavailableError) as e:
            logger.warning(
                "⚠️  Could not send notification (gateway may not be "
                "running): %s",
                e,
            )
            return
        logger.info("Notification sent successfully")

    async def _finish(self, run: UpdateRun, options: UpdateOptions) -> None:
        run.finalize()
        if options.notify and options.dry_run:
            logger.info("🔍 Would send notification")
        elif options.notify:
            await self._notify(run)
        self.reporter.summarize(run)
        if options.json_report and options.dry_run:
            logger.info("🔍 Would write JSON report")
        elif options.json_report:
            try:
                self.reporter.write(run)
            except OSError as e:
                logger.warning("⚠️  Could not write JSON report: %s", e)

    async def run(self, options: UpdateOptions | None = None) -> UpdateRun:
        """Execute a full update run.

        Fatal conditions end the run early; they are recorded on the
        returned UpdateRun instead of being raised.

        Args:
            options: Per-run switches

        Returns:
            The finished UpdateRun

        """
        options = options or UpdateOptions()
        run = UpdateRun(timestamp=self.clock(), dry_run=options.dry_run)
        if options.dry_run:
            logger.warning("🔍 DRY-RUN MODE - No changes will be made")
        logger.info("Starting update process...")

        try:
            if options.check_disk:
                self.check_disk_space()
            await self._check_connectivity()
            if options.dry_run:
                self._plan_backup(run, options)
                await self._plan_core_update(run)
            else:
                archive = await self._create_backup(run, options)
                await self._update_core(run, archive)
        except UpdatePlusError as e:
            logger.error("❌ %s", e)
            run.abort(str(e))
            await self._finish(run, options)
            return run

        if options.dry_run:
            run.modules = await self._plan_modules()
            logger.info(
                "🔍 Would keep the %d most recent backups",
                self.config.backup_count,
            )
        else:
            run.modules = await self.updater.update_all()
            await self._trim()
        await self._finish(run, options)
        if run.succeeded:
            logger.info("✅ Update completed!")
        return run
