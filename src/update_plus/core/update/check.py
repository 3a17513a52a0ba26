"""Report available updates without applying them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from packaging.version import InvalidVersion, Version

from update_plus.constants import VERSION_UNKNOWN
from update_plus.domain.types import CheckReport, ModuleCheck
from update_plus.exceptions import ToolUnavailableError, VersionControlError
from update_plus.logger import get_logger

if TYPE_CHECKING:
    from pathlib import Path

    from update_plus.core.protocols import CoreTool, VersionControl
    from update_plus.core.update.skills import SkillUpdater

logger = get_logger(__name__)


def is_newer(installed: str | None, latest: str | None) -> bool:
    """Tell whether latest is a newer release than installed.

    Versions that are not PEP 440 compliant fall back to plain string
    inequality.

    Example:
        >>> is_newer("2026.1.9", "2026.1.10")
        True

    """
    if not latest or not installed or installed == VERSION_UNKNOWN:
        return False
    try:
        return Version(latest) > Version(installed)
    except InvalidVersion:
        return latest != installed


class UpdateChecker:
    """Compare installed versions with upstream."""

    def __init__(
        self,
        core_tool: CoreTool,
        updater: SkillUpdater,
        vcs: VersionControl,
    ) -> None:
        """Initialize the checker.

        Args:
            core_tool: Reports installed and latest OpenClaw versions
            updater: Discovers the modules to check
            vcs: Fetches modules and counts pending commits

        """
        self.core_tool = core_tool
        self.updater = updater
        self.vcs = vcs

    async def check_module(self, name: str, path: Path) -> ModuleCheck:
        """Fetch one module and count the commits it is behind.

        Fetch failures are reported on the result instead of raised.
        """
        try:
            await self.vcs.fetch(path)
            behind = await self.vcs.commits_behind(path)
        except (VersionControlError, ToolUnavailableError) as e:
            logger.debug("Cannot check %s: %s", name, e)
            return ModuleCheck(name=name, error=e.message)
        return ModuleCheck(name=name, behind=behind)

    async def check(self) -> CheckReport:
        """Collect installed/latest core versions and module lag.

        Returns:
            CheckReport; network and fetch failures leave fields unknown
            instead of raising

        """
        installed: str | None = None
        if self.core_tool.is_installed():
            installed = await self.core_tool.version()
        latest = await self.core_tool.latest_version()

        modules = []
        for module in self.updater.discover():
            if module.excluded:
                modules.append(ModuleCheck(name=module.name, excluded=True))
                continue
            modules.append(await self.check_module(module.name, module.path))

        report = CheckReport(
            installed_version=installed,
            latest_version=latest,
            update_available=is_newer(installed, latest),
            modules=tuple(modules),
        )
        self._log(report)
        return report

    @staticmethod
    def _log(report: CheckReport) -> None:
        logger.info(
            "OpenClaw: installed %s, latest %s",
            report.installed_version or "not installed",
            report.latest_version or VERSION_UNKNOWN,
        )
        if report.update_available:
            logger.info("⬆️  OpenClaw update available")
        for module in report.modules:
            if module.excluded:
                logger.info("  %s: excluded", module.name)
            elif module.error is not None:
                logger.info("  %s: could not check", module.name)
            elif module.behind:
                logger.info(
                    "  %s: %d commits behind", module.name, module.behind
                )
            else:
                logger.info("  %s: up to date", module.name)
