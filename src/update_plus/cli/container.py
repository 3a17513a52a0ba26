"""Dependency injection container for service wiring.

ServiceContainer is the composition root: it turns the immutable
configuration into concrete adapters (git, gpg, rclone, OpenClaw) and
wires them into the core services. Services are created lazily on first
access, so read-only commands never construct the update machinery.

Usage:
    >>> from update_plus.cli.container import ServiceContainer
    >>> from update_plus.config import ConfigManager
    >>>
    >>> container = ServiceContainer(ConfigManager().load())
    >>> run = await container.orchestrator.run(options)
"""

from __future__ import annotations

from functools import cached_property
from typing import TYPE_CHECKING

from update_plus.core.backup import ArchiveBuilder, BackupCatalog
from update_plus.core.report import JsonReportWriter
from update_plus.core.restore import PathSanitizer, RestoreEngine
from update_plus.core.update import (
    SkillUpdater,
    UpdateChecker,
    UpdateOrchestrator,
)
from update_plus.infrastructure.git import GitClient
from update_plus.infrastructure.gpg import GpgEncryptor
from update_plus.infrastructure.network import HttpConnectivityChecker
from update_plus.infrastructure.openclaw import OpenClawTool
from update_plus.infrastructure.rclone import RcloneStore

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.restore.engine import ConfirmCallback


class ServiceContainer:
    """Lazily built services sharing one configuration.

    Attributes:
        config: Immutable configuration every service receives.
        confirm: Optional confirmation callback for restores.

    """

    def __init__(
        self,
        config: UpdatePlusConfig,
        confirm: ConfirmCallback | None = None,
    ) -> None:
        """Initialize container.

        Args:
            config: Immutable configuration
            confirm: Confirmation callback used by the restore engine
                (terminal prompt when None)

        """
        self.config = config
        self.confirm = confirm

    @cached_property
    def vcs(self) -> GitClient:
        """Version-control adapter."""
        return GitClient()

    @cached_property
    def encryptor(self) -> GpgEncryptor:
        """Encryption adapter."""
        return GpgEncryptor()

    @cached_property
    def store(self) -> RcloneStore | None:
        """Remote store adapter, None when remote storage is disabled."""
        if not self.config.remote_storage.enabled:
            return None
        return RcloneStore()

    @cached_property
    def core_tool(self) -> OpenClawTool:
        """OpenClaw binary adapter."""
        return OpenClawTool(
            command=self.config.core_command,
            npm_package=self.config.npm_package,
        )

    @cached_property
    def builder(self) -> ArchiveBuilder:
        """Archive builder."""
        return ArchiveBuilder(self.config, encryptor=self.encryptor)

    @cached_property
    def catalog(self) -> BackupCatalog:
        """Backup catalog."""
        return BackupCatalog(self.config, store=self.store)

    @cached_property
    def restore_engine(self) -> RestoreEngine:
        """Restore engine."""
        return RestoreEngine(
            self.config,
            self.catalog,
            encryptor=self.encryptor,
            sanitizer=PathSanitizer(self.config.home),
            confirm=self.confirm,
        )

    @cached_property
    def updater(self) -> SkillUpdater:
        """Module updater."""
        return SkillUpdater(self.config, self.vcs)

    @cached_property
    def checker(self) -> UpdateChecker:
        """Update checker."""
        return UpdateChecker(self.core_tool, self.updater, self.vcs)

    @cached_property
    def orchestrator(self) -> UpdateOrchestrator:
        """Fully wired update orchestrator."""
        return UpdateOrchestrator(
            config=self.config,
            builder=self.builder,
            catalog=self.catalog,
            updater=self.updater,
            restorer=self.restore_engine,
            core_tool=self.core_tool,
            connectivity=HttpConnectivityChecker(self.config.connectivity_url),
            reporter=JsonReportWriter(self.config.backup_dir),
            checker=self.checker,
        )
