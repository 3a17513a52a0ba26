"""Update and check command handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from update_plus.core.update import UpdateOptions
from update_plus.logger import get_logger

from .base import BaseCommandHandler

if TYPE_CHECKING:
    from argparse import Namespace

logger = get_logger(__name__)


class UpdateHandler(BaseCommandHandler):
    """Run the backup, update and rollback sequence."""

    def build_options(self, args: Namespace) -> UpdateOptions:
        """Translate CLI flags and settings into run options."""
        return UpdateOptions(
            backup=self.config.backup_before_update and not args.no_backup,
            force=args.force,
            notify=args.notify,
            check_disk=not args.no_check_disk,
            json_report=args.json_report,
            dry_run=args.dry_run,
        )

    async def execute(self, args: Namespace) -> int:
        """Execute a full update run.

        Returns:
            0 when every step succeeded, 1 on abort or partial failure

        """
        options = self.build_options(args)
        async with self.lock():
            run = await self.container.orchestrator.run(options)
        return 0 if run.succeeded else 1


class CheckHandler(BaseCommandHandler):
    """Report available updates without applying them."""

    async def execute(self, args: Namespace) -> int:  # noqa: ARG002
        """Log installed and latest versions."""
        await self.container.checker.check()
        return 0
