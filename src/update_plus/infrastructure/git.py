"""Git adapter implementing the VersionControl protocol."""

from __future__ import annotations

from pathlib import Path

from update_plus.core.process import run_command
from update_plus.exceptions import VersionControlError
from update_plus.logger import get_logger

logger = get_logger(__name__)


class GitClient:
    """Run git commands inside module working trees."""

    def __init__(self, executable: str = "git") -> None:
        """Initialize the client.

        Args:
            executable: git executable name or path

        """
        self.executable = executable

    async def _git(self, path: Path, *args: str) -> str:
        result = await run_command(self.executable, "-C", str(path), *args)
        if not result.ok:
            raise VersionControlError(result.message, target=path.name)
        return result.stdout

    async def is_dirty(self, path: Path) -> bool:
        """Return True if `git status --porcelain` reports any change."""
        output = await self._git(path, "status", "--porcelain")
        return bool(output.strip())

    async def current_revision(self, path: Path) -> str:
        """Return the short hash of HEAD."""
        output = await self._git(path, "rev-parse", "--short", "HEAD")
        return output.strip()

    async def pull(self, path: Path) -> bool:
        """Fast-forward pull; failure is reported, not raised."""
        result = await run_command(
            self.executable,
            "-C",
            str(path),
            "pull",
            "--ff-only",
            "--quiet",
        )
        if not result.ok:
            logger.warning("git pull failed in %s: %s", path, result.message)
        return result.ok

    async def reset_hard(self, path: Path, revision: str) -> None:
        """Discard local state and move HEAD back to revision."""
        await self._git(path, "reset", "--hard", "--quiet", revision)

    async def fetch(self, path: Path) -> None:
        """Fetch upstream without merging."""
        await self._git(path, "fetch", "--quiet")

    async def commits_behind(self, path: Path) -> int:
        """Count upstream commits not yet in HEAD."""
        output = await self._git(path, "rev-list", "--count", "HEAD..@{u}")
        try:
            return int(output.strip() or 0)
        except ValueError as e:
            msg = f"unexpected rev-list output: {output.strip()!r}"
            raise VersionControlError(msg, target=path.name) from e
