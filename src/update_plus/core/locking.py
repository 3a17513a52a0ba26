"""Single-instance guard for commands that write backups or skills."""

from __future__ import annotations

import asyncio
import fcntl
from typing import IO, TYPE_CHECKING, Self

from update_plus.exceptions import LockError

if TYPE_CHECKING:
    import types
    from pathlib import Path


class LockManager:
    """Hold an exclusive flock on a lock file inside the backup directory.

    The lock is non-blocking: a second update, backup or restore started
    while one is running fails at once with LockError. The kernel drops
    the lock when the process dies, so a crash never leaves it stuck.

    Example:
        >>> async with LockManager(config.lock_file):
        ...     await orchestrator.run(options)

    """

    def __init__(self, lock_path: Path) -> None:
        """Remember where the lock file lives; nothing is opened yet."""
        self._lock_path = lock_path
        self._handle: IO[str] | None = None

    @property
    def locked(self) -> bool:
        """Whether this instance currently holds the lock."""
        return self._handle is not None

    def _acquire(self) -> None:
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            handle = self._lock_path.open("w", encoding="utf-8")
        except OSError as e:
            msg = f"Failed to acquire lock: {e}"
            raise LockError(msg, target=str(self._lock_path), cause=e) from e
        try:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError as e:
            handle.close()
            msg = "Another update-plus instance is already running"
            raise LockError(msg, target=str(self._lock_path), cause=e) from e
        except OSError as e:
            handle.close()
            msg = f"Failed to acquire lock: {e}"
            raise LockError(msg, target=str(self._lock_path), cause=e) from e
        self._handle = handle

    async def __aenter__(self) -> Self:
        """Take the lock.

        Raises:
            LockError: If another process holds it or the lock file
                cannot be opened.

        """
        await asyncio.to_thread(self._acquire)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Release the lock by closing the file."""
        if self._handle is not None:
            handle, self._handle = self._handle, None
            await asyncio.to_thread(handle.close)
