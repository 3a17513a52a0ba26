"""Connectivity check implementing the ConnectivityChecker protocol."""

from __future__ import annotations

import aiohttp

from update_plus.constants import (
    CONNECTIVITY_TIMEOUT_SECONDS,
    DEFAULT_CONNECTIVITY_URL,
)
from update_plus.infrastructure.http_session import create_http_session
from update_plus.logger import get_logger

logger = get_logger(__name__)


class HttpConnectivityChecker:
    """Check a URL with an HTTP HEAD request."""

    def __init__(
        self,
        url: str = DEFAULT_CONNECTIVITY_URL,
        timeout_seconds: int = CONNECTIVITY_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the checker.

        Args:
            url: URL that must answer for the network to count as reachable
            timeout_seconds: Request timeout

        """
        self.url = url
        self.timeout_seconds = timeout_seconds

    async def is_reachable(self) -> bool:
        """Return True if the URL answers with any non-server-error status."""
        try:
            async with (
                create_http_session(self.timeout_seconds) as session,
                session.head(self.url, allow_redirects=True) as response,
            ):
                reachable = response.status < 500  # noqa: PLR2004
        except (aiohttp.ClientError, TimeoutError) as e:
            logger.debug("Connectivity check to %s failed: %s", self.url, e)
            return False

        if not reachable:
            logger.debug(
                "Connectivity check to %s returned %d",
                self.url,
                response.status,
            )
        return reachable
