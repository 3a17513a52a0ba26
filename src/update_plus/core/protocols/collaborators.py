"""Collaborator protocols for core services.

Core services depend on these interfaces instead of the concrete git, gpg,
rclone and OpenClaw adapters. Tests substitute in-memory fakes.

Usage in core services::

    from update_plus.core.protocols import VersionControl

    class SkillUpdater:
        def __init__(self, config, vcs: VersionControl) -> None:
            self.vcs = vcs

"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from update_plus.domain.types import UpdateRun


@runtime_checkable
class VersionControl(Protocol):
    """Version-control operations on one module working tree.

    Every method raises VersionControlError when the command fails, except
    pull() which reports failure through its return value so the caller
    can roll back.
    """

    async def is_dirty(self, path: Path) -> bool:
        """Return True if the working tree has uncommitted changes."""
        ...

    async def current_revision(self, path: Path) -> str:
        """Return the abbreviated revision of HEAD."""
        ...

    async def pull(self, path: Path) -> bool:
        """Fast-forward to the upstream revision.

        Returns:
            True on success, False if the pull failed

        """
        ...

    async def reset_hard(self, path: Path, revision: str) -> None:
        """Reset the working tree to the given revision."""
        ...

    async def fetch(self, path: Path) -> None:
        """Fetch upstream revisions without touching the working tree."""
        ...

    async def commits_behind(self, path: Path) -> int:
        """Return how many upstream commits HEAD is missing."""
        ...


@runtime_checkable
class Encryptor(Protocol):
    """Public-key encryption of archive files."""

    def is_available(self) -> bool:
        """Return True if the encryption tool is installed."""
        ...

    async def encrypt(self, src: Path, dest: Path, recipient: str) -> None:
        """Encrypt src for recipient into dest (EncryptionError on failure)."""
        ...

    async def decrypt(self, src: Path, dest: Path) -> None:
        """Decrypt src into dest (EncryptionError on failure)."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Remote storage for archive copies."""

    async def copy_in(self, src: Path, destination: str) -> None:
        """Copy a local file into the remote destination."""
        ...

    async def list_names(self, destination: str) -> list[str]:
        """List file names stored at the remote destination."""
        ...

    async def delete(self, destination: str, name: str) -> None:
        """Delete one file from the remote destination."""
        ...


@runtime_checkable
class CoreTool(Protocol):
    """The OpenClaw command-line binary."""

    def is_installed(self) -> bool:
        """Return True if the binary is on PATH."""
        ...

    async def version(self) -> str:
        """Return the installed version string."""
        ...

    async def update(self) -> None:
        """Update the binary in place (CoreToolError on failure)."""
        ...

    async def send_message(self, message: str) -> None:
        """Send a notification through the configured channel."""
        ...

    async def latest_version(self) -> str | None:
        """Return the latest published version, None if unknown."""
        ...


@runtime_checkable
class ConnectivityChecker(Protocol):
    """Network reachability check."""

    async def is_reachable(self) -> bool:
        """Return True if the update sources can be reached."""
        ...


@runtime_checkable
class Reporter(Protocol):
    """Sink for finished update runs."""

    def summarize(self, run: UpdateRun) -> None:
        """Log a human readable summary of the run."""
        ...

    def write(self, run: UpdateRun) -> Path:
        """Persist the structured report and return its path."""
        ...
