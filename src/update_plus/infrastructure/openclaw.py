"""OpenClaw binary adapter implementing the CoreTool protocol."""

from __future__ import annotations

import re

import aiohttp
import orjson

from update_plus.constants import (
    DEFAULT_CORE_COMMAND,
    DEFAULT_NPM_PACKAGE,
    NPM_REGISTRY_URL,
    VERSION_UNKNOWN,
)
from update_plus.core.process import run_command, tool_exists
from update_plus.exceptions import CoreToolError
from update_plus.infrastructure.http_session import create_http_session
from update_plus.logger import get_logger

logger = get_logger(__name__)

_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+)+[\w.\-+]*)")


def parse_version_output(output: str) -> str:
    """Extract the version number from ``--version`` output.

    Example:
        >>> parse_version_output("openclaw v2026.1.20\\n")
        '2026.1.20'

    """
    match = _VERSION_RE.search(output)
    if match:
        return match.group(1)
    first_line = output.strip().splitlines()[0] if output.strip() else ""
    return first_line or VERSION_UNKNOWN


class OpenClawTool:
    """Query, update and message through the OpenClaw CLI."""

    def __init__(
        self,
        command: str = DEFAULT_CORE_COMMAND,
        npm_package: str = DEFAULT_NPM_PACKAGE,
        registry_url: str = NPM_REGISTRY_URL,
    ) -> None:
        """Initialize the adapter.

        Args:
            command: OpenClaw executable name or path
            npm_package: npm package name used for the latest-version lookup
            registry_url: npm registry base URL

        """
        self.command = command
        self.npm_package = npm_package
        self.registry_url = registry_url.rstrip("/")

    def is_installed(self) -> bool:
        """Return True if the binary is on PATH."""
        return tool_exists(self.command)

    async def version(self) -> str:
        """Return the installed version ("unknown" when unparseable)."""
        result = await run_command(self.command, "--version")
        if not result.ok:
            logger.warning("Could not read %s version", self.command)
            return VERSION_UNKNOWN
        return parse_version_output(result.stdout)

    async def update(self) -> None:
        """Run ``openclaw update``.

        Raises:
            CoreToolError: If the update command fails

        """
        result = await run_command(self.command, "update")
        if not result.ok:
            raise CoreToolError(result.message, target=self.command)

    async def send_message(self, message: str) -> None:
        """Send a notification with ``openclaw message send``.

        Raises:
            CoreToolError: If the message could not be sent

        """
        result = await run_command(
            self.command, "message", "send", "--message", message
        )
        if not result.ok:
            raise CoreToolError(result.message, target=self.command)

    async def latest_version(self) -> str | None:
        """Look up the latest published version on the npm registry.

        Returns:
            Version string, or None if the registry could not be reached

        """
        url = f"{self.registry_url}/{self.npm_package}/latest"
        try:
            async with (
                create_http_session() as session,
                session.get(url) as response,
            ):
                response.raise_for_status()
                data = orjson.loads(await response.read())
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.debug("npm registry lookup failed: %s", e)
            return None
        except orjson.JSONDecodeError as e:
            logger.debug("npm registry returned invalid JSON: %s", e)
            return None

        version = data.get("version") if isinstance(data, dict) else None
        return str(version) if version else None
