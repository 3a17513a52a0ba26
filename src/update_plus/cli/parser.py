"""CLI argument parser for update-plus.

Handles parsing of command-line arguments and provides a clean
interface for defining CLI commands and their options.
"""

import argparse
from argparse import Namespace


class CLIParser:
    """Command-line argument parser for update-plus."""

    def parse_args(self, argv: list[str] | None = None) -> Namespace:
        """Parse command-line arguments.

        Args:
            argv: Arguments to parse (defaults to sys.argv[1:])

        Returns:
            Namespace: Parsed arguments namespace.

        """
        parser = self.create_parser()
        return parser.parse_args(argv)

    def create_parser(self) -> argparse.ArgumentParser:
        """Build the full parser with global options and subcommands."""
        parser = self._create_main_parser()
        self._add_global_options(parser)
        self._add_subcommands(parser)
        return parser

    def _create_main_parser(self) -> argparse.ArgumentParser:
        return argparse.ArgumentParser(
            prog="update-plus",
            description="Backup, update and restore OpenClaw skills",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  # Backup, update OpenClaw and all skills
  %(prog)s update
  %(prog)s update --no-backup --notify --json-report

  # Backups
  %(prog)s backup
  %(prog)s list-backups
  %(prog)s restore openclaw-update-2026-01-25-12:00:00.tar.gz
  %(prog)s restore 2026-01-25-12:00:00 --label skills --force
  %(prog)s diff-backups 2026-01-24-12:00:00 2026-01-25-12:00:00

  # Show available updates without applying them
  %(prog)s check
            """,
        )

    def _add_global_options(self, parser: argparse.ArgumentParser) -> None:
        parser.add_argument(
            "--version",
            action="store_true",
            help="Show update-plus version and exit",
        )
        parser.add_argument(
            "--verbose",
            action="store_true",
            help="Show debug output on the console",
        )
        parser.add_argument(
            "--config",
            metavar="FILE",
            help="Settings file (default: ~/.openclaw/update-plus.json)",
        )

    def _add_subcommands(self, parser: argparse.ArgumentParser) -> None:
        subparsers = parser.add_subparsers(
            dest="command", help="Available commands"
        )
        self._add_update_command(subparsers)
        self._add_backup_command(subparsers)
        self._add_list_command(subparsers)
        self._add_restore_command(subparsers)
        self._add_diff_command(subparsers)
        self._add_check_command(subparsers)

    def _add_update_command(self, subparsers) -> None:
        update_parser = subparsers.add_parser(
            "update", help="Backup, then update OpenClaw and all skills"
        )
        update_parser.add_argument(
            "--no-backup",
            action="store_true",
            help="Skip the pre-update backup",
        )
        update_parser.add_argument(
            "--no-check-disk",
            action="store_true",
            help="Skip the disk space check",
        )
        update_parser.add_argument(
            "--force",
            action="store_true",
            help="Continue even if the backup fails",
        )
        update_parser.add_argument(
            "--notify",
            action="store_true",
            help="Send a notification through OpenClaw when done",
        )
        update_parser.add_argument(
            "--json-report",
            action="store_true",
            help="Write a JSON report to the backup directory",
        )
        update_parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without changing anything",
        )

    def _add_backup_command(self, subparsers) -> None:
        subparsers.add_parser("backup", help="Create a backup now")

    def _add_list_command(self, subparsers) -> None:
        subparsers.add_parser("list-backups", help="List available backups")

    def _add_restore_command(self, subparsers) -> None:
        restore_parser = subparsers.add_parser(
            "restore", help="Restore a backup"
        )
        restore_parser.add_argument(
            "backup_id", help="Backup file name or timestamp"
        )
        restore_parser.add_argument(
            "--label", help="Restore only this label"
        )
        restore_parser.add_argument(
            "--force",
            action="store_true",
            help="Do not ask for confirmation",
        )

    def _add_diff_command(self, subparsers) -> None:
        diff_parser = subparsers.add_parser(
            "diff-backups", help="Compare the contents of two backups"
        )
        diff_parser.add_argument("first", help="Older backup")
        diff_parser.add_argument("second", help="Newer backup")

    def _add_check_command(self, subparsers) -> None:
        subparsers.add_parser(
            "check", help="Show available updates without applying them"
        )
