"""Command handlers for the update-plus CLI."""

from .backup import BackupHandler, DiffBackupsHandler, ListBackupsHandler
from .base import BaseCommandHandler
from .restore import RestoreHandler
from .update import CheckHandler, UpdateHandler

__all__ = [
    "BackupHandler",
    "BaseCommandHandler",
    "CheckHandler",
    "DiffBackupsHandler",
    "ListBackupsHandler",
    "RestoreHandler",
    "UpdateHandler",
]
