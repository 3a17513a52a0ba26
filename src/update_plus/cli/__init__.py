"""Command-line interface for update-plus."""

from update_plus.cli.runner import CLIRunner

__all__ = ["CLIRunner"]
