"""Common base of the command handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from update_plus.core.locking import LockManager

if TYPE_CHECKING:
    from argparse import Namespace

    from update_plus.cli.container import ServiceContainer


class BaseCommandHandler(ABC):
    """One subcommand, wired to the services of a ServiceContainer.

    Example:
        >>> handler = BackupHandler(ServiceContainer(config))
        >>> exit_code = await handler.execute(args)

    """

    def __init__(self, container: ServiceContainer) -> None:
        """Keep the container and its configuration at hand."""
        self.container = container
        self.config = container.config

    def lock(self) -> LockManager:
        """Lock taken by commands that write backups or skills."""
        return LockManager(self.config.lock_file)

    @abstractmethod
    async def execute(self, args: Namespace) -> int:
        """Run the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit status, 0 on success.

        """
