"""Per-module updates with rollback and a dirty-tree guard."""

from __future__ import annotations

from typing import TYPE_CHECKING

from update_plus.constants import (
    REASON_EXCLUDED,
    REASON_LOCAL_CHANGES,
    REASON_PULL_ROLLED_BACK,
    REASON_ROLLBACK_FAILED,
)
from update_plus.domain.types import (
    ModuleOutcome,
    ModuleRepository,
    ModuleStatus,
)
from update_plus.exceptions import ToolUnavailableError, VersionControlError
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from update_plus.config import UpdatePlusConfig
    from update_plus.core.protocols import VersionControl

logger = get_logger(__name__)


class SkillUpdater:
    """Pull the latest revision of every tracked module.

    A module with uncommitted changes is never touched. A failed pull is
    rolled back to the revision recorded before it.
    """

    def __init__(self, config: UpdatePlusConfig, vcs: VersionControl) -> None:
        """Initialize the updater.

        Args:
            config: Immutable configuration
            vcs: Version-control collaborator

        """
        self.config = config
        self.vcs = vcs

    def discover(self) -> list[ModuleRepository]:
        """Enumerate modules in every updatable skills directory.

        A module is an immediate subdirectory containing .git. Directories
        with update disabled or missing on disk are skipped.
        """
        modules = []
        for directory in self.config.skills_dirs:
            if not directory.update:
                logger.debug("Skipping %s (update disabled)", directory.path)
                continue
            if not directory.path.is_dir():
                logger.debug("Skills directory %s not found", directory.path)
                continue
            for path in sorted(directory.path.iterdir()):
                if not path.is_dir() or not (path / ".git").exists():
                    continue
                modules.append(
                    ModuleRepository(
                        name=path.name,
                        path=path,
                        source_label=directory.label,
                        excluded=path.name in self.config.excluded_skills,
                    )
                )
        return modules

    async def update(self, module: ModuleRepository) -> ModuleOutcome:
        """Update one module.

        Returns:
            ModuleOutcome; this method never raises for module failures

        """
        if module.excluded:
            logger.info("⏭️  Skipping %s (excluded)", module.name)
            return ModuleOutcome(
                module.name, ModuleStatus.SKIPPED, reason=REASON_EXCLUDED
            )

        try:
            if await self.vcs.is_dirty(module.path):
                logger.warning(
                    "⚠️  %s has local changes, not updating", module.name
                )
                return ModuleOutcome(
                    module.name,
                    ModuleStatus.FAILED,
                    reason=REASON_LOCAL_CHANGES,
                )
            before = await self.vcs.current_revision(module.path)
        except (VersionControlError, ToolUnavailableError) as e:
            logger.error("❌ Cannot inspect %s: %s", module.name, e)
            return ModuleOutcome(
                module.name, ModuleStatus.FAILED, reason=e.message
            )

        logger.info("Updating %s...", module.name)
        if not await self.vcs.pull(module.path):
            return await self._roll_back(module, before)

        try:
            after = await self.vcs.current_revision(module.path)
        except VersionControlError as e:
            logger.error("❌ Cannot read revision of %s: %s", module.name, e)
            return ModuleOutcome(
                module.name,
                ModuleStatus.FAILED,
                from_revision=before,
                reason=e.message,
            )

        if after == before:
            logger.info("✓ %s already up to date", module.name)
            return ModuleOutcome(
                module.name,
                ModuleStatus.NO_CHANGE,
                from_revision=before,
                to_revision=after,
            )

        logger.info("✅ Updated %s: %s → %s", module.name, before, after)
        return ModuleOutcome(
            module.name,
            ModuleStatus.UPDATED,
            from_revision=before,
            to_revision=after,
        )

    async def _roll_back(
        self, module: ModuleRepository, revision: str
    ) -> ModuleOutcome:
        try:
            await self.vcs.reset_hard(module.path, revision)
        except VersionControlError as e:
            logger.error(
                "❌ Rollback of %s to %s failed: %s", module.name, revision, e
            )
            return ModuleOutcome(
                module.name,
                ModuleStatus.FAILED,
                from_revision=revision,
                reason=REASON_ROLLBACK_FAILED,
            )

        logger.warning(
            "⚠️  Pull failed for %s, rolled back to %s",
            module.name,
            revision,
        )
        return ModuleOutcome(
            module.name,
            ModuleStatus.FAILED,
            from_revision=revision,
            reason=REASON_PULL_ROLLED_BACK,
        )

    async def update_all(
        self, modules: list[ModuleRepository] | None = None
    ) -> list[ModuleOutcome]:
        """Update modules one at a time, in discovery order."""
        if modules is None:
            modules = self.discover()
        if not modules:
            logger.info("No modules to update")
            return []

        outcomes = []
        for module in modules:
            outcomes.append(await self.update(module))
        return outcomes
