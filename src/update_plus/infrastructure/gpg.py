"""GnuPG adapter implementing the Encryptor protocol."""

from __future__ import annotations

from pathlib import Path

from update_plus.core.process import run_command, tool_exists
from update_plus.exceptions import EncryptionError
from update_plus.logger import get_logger

logger = get_logger(__name__)


class GpgEncryptor:
    """Encrypt and decrypt archives with the gpg binary."""

    def __init__(self, executable: str = "gpg") -> None:
        """Initialize the encryptor.

        Args:
            executable: gpg executable name or path

        """
        self.executable = executable

    def is_available(self) -> bool:
        """Return True if gpg is installed."""
        return tool_exists(self.executable)

    async def encrypt(self, src: Path, dest: Path, recipient: str) -> None:
        """Encrypt src for recipient, writing dest.

        Raises:
            EncryptionError: If gpg fails
            ToolUnavailableError: If gpg is not installed

        """
        logger.debug("Encrypting %s for %s", src.name, recipient)
        result = await run_command(
            self.executable,
            "--batch",
            "--yes",
            "--encrypt",
            "--recipient",
            recipient,
            "--output",
            str(dest),
            str(src),
        )
        if not result.ok:
            dest.unlink(missing_ok=True)
            raise EncryptionError(result.message, target=src.name)

    async def decrypt(self, src: Path, dest: Path) -> None:
        """Decrypt src, writing dest.

        Raises:
            EncryptionError: If gpg fails
            ToolUnavailableError: If gpg is not installed

        """
        logger.debug("Decrypting %s", src.name)
        result = await run_command(
            self.executable,
            "--batch",
            "--yes",
            "--decrypt",
            "--output",
            str(dest),
            str(src),
        )
        if not result.ok:
            dest.unlink(missing_ok=True)
            raise EncryptionError(result.message, target=src.name)
