"""Async subprocess helper shared by the external tool adapters."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path

from update_plus.exceptions import ToolUnavailableError
from update_plus.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Exit status and decoded output of a finished command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.returncode == 0

    @property
    def message(self) -> str:
        """Best available error text for logging and outcomes."""
        text = self.stderr.strip() or self.stdout.strip()
        return text or f"exit status {self.returncode}"


def tool_exists(name: str) -> bool:
    """Check whether an executable is available on PATH."""
    return shutil.which(name) is not None


async def run_command(
    *args: str,
    cwd: Path | None = None,
    input_data: bytes | None = None,
) -> CommandResult:
    """Run an external command to completion.

    Args:
        *args: Program and arguments
        cwd: Working directory for the command
        input_data: Bytes written to the command's stdin

    Returns:
        CommandResult with exit status and decoded output

    Raises:
        ToolUnavailableError: If the program is not installed

    """
    logger.debug("Running command: %s", " ".join(args))
    try:
        process = await asyncio.create_subprocess_exec(
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.PIPE if input_data is not None else None,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        msg = f"'{args[0]}' is not installed"
        raise ToolUnavailableError(msg, target=args[0]) from e

    stdout, stderr = await process.communicate(input_data)
    result = CommandResult(
        returncode=-1 if process.returncode is None else process.returncode,
        stdout=stdout.decode("utf-8", errors="ignore") if stdout else "",
        stderr=stderr.decode("utf-8", errors="ignore") if stderr else "",
    )
    if not result.ok:
        logger.debug(
            "Command %s exited with %d: %s",
            args[0],
            result.returncode,
            result.message,
        )
    return result
