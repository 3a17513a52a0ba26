"""CLI runner for update-plus.

Orchestrates the execution of CLI commands by routing parsed
arguments to the appropriate command handlers.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from update_plus import __version__
from update_plus.cli.commands import (
    BackupHandler,
    CheckHandler,
    DiffBackupsHandler,
    ListBackupsHandler,
    RestoreHandler,
    UpdateHandler,
)
from update_plus.cli.container import ServiceContainer
from update_plus.cli.parser import CLIParser
from update_plus.config import ConfigManager
from update_plus.exceptions import UpdatePlusError
from update_plus.logger import get_logger, set_console_level

if TYPE_CHECKING:
    from argparse import Namespace

    from update_plus.cli.commands import BaseCommandHandler

logger = get_logger(__name__)

HANDLERS: dict[str, type[BaseCommandHandler]] = {
    "update": UpdateHandler,
    "backup": BackupHandler,
    "list-backups": ListBackupsHandler,
    "restore": RestoreHandler,
    "diff-backups": DiffBackupsHandler,
    "check": CheckHandler,
}


class CLIRunner:
    """CLI command runner and orchestrator."""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        """Initialize CLI runner.

        Args:
            container: Pre-built service container. When None, one is
                built from the settings file after argument parsing.

        """
        self.container = container
        self.parser = CLIParser()

    def _build_container(self, args: Namespace) -> ServiceContainer:
        settings_file = Path(args.config) if args.config else None
        config = ConfigManager(settings_file=settings_file).load()
        return ServiceContainer(config)

    async def run(self, argv: list[str] | None = None) -> None:
        """Run the CLI application.

        Parses arguments, handles global flags, validates commands,
        and routes to the appropriate handler. Exits with status 1 when
        the command fails.

        Args:
            argv: Arguments to parse (defaults to sys.argv[1:])

        """
        args = self.parser.parse_args(argv)

        if args.version:
            print(__version__)
            return

        if not args.command:
            print("❌ No command specified. Use --help.")
            sys.exit(1)

        if args.verbose:
            set_console_level("DEBUG")

        try:
            exit_code = await self._execute_command(args)
        except KeyboardInterrupt:
            print("\n⏹️  Operation cancelled by user")
            sys.exit(1)
        except UpdatePlusError as e:
            logger.error("❌ %s", e)
            sys.exit(1)

        if exit_code:
            sys.exit(exit_code)

    async def _execute_command(self, args: Namespace) -> int:
        """Execute the specified command with the appropriate handler.

        Args:
            args: Parsed command-line arguments namespace.

        Returns:
            Exit status reported by the handler

        """
        if self.container is None:
            self.container = self._build_container(args)

        handler = HANDLERS[args.command](self.container)
        logger.debug("Executing command: %s", args.command)
        return await handler.execute(args)
