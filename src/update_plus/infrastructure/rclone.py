"""rclone adapter implementing the ObjectStore protocol."""

from __future__ import annotations

from pathlib import Path

from update_plus.core.process import run_command
from update_plus.exceptions import RemoteStorageError


class RcloneStore:
    """Copy, list and delete archives on an rclone remote."""

    def __init__(self, executable: str = "rclone") -> None:
        self.executable = executable

    async def copy_in(self, src: Path, destination: str) -> None:
        """Copy a local file into ``remote:path``."""
        result = await run_command(
            self.executable, "copy", str(src), f"{destination}/"
        )
        if not result.ok:
            raise RemoteStorageError(result.message, target=destination)

    async def list_names(self, destination: str) -> list[str]:
        """List plain file names at ``remote:path``."""
        result = await run_command(
            self.executable, "lsf", "--files-only", f"{destination}/"
        )
        if not result.ok:
            raise RemoteStorageError(result.message, target=destination)
        return [line.strip() for line in result.stdout.splitlines() if line]

    async def delete(self, destination: str, name: str) -> None:
        """Delete one file from ``remote:path``."""
        result = await run_command(
            self.executable, "deletefile", f"{destination}/{name}"
        )
        if not result.ok:
            raise RemoteStorageError(result.message, target=name)
