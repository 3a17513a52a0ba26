"""Restore command handler."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .base import BaseCommandHandler

if TYPE_CHECKING:
    from argparse import Namespace


class RestoreHandler(BaseCommandHandler):
    """Restore a backup onto this host."""

    async def execute(self, args: Namespace) -> int:
        """Restore the requested backup, optionally a single label.

        Returns:
            0 when the restore succeeded or was cancelled, 1 otherwise

        """
        async with self.lock():
            result = await self.container.restore_engine.restore(
                args.backup_id,
                label=args.label,
                force=args.force,
            )
        return 0 if result.success else 1
