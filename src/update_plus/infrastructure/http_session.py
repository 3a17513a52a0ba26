"""Shared aiohttp session factory for the network adapters."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiohttp

from update_plus import __version__
from update_plus.constants import CONNECTIVITY_TIMEOUT_SECONDS


@asynccontextmanager
async def create_http_session(
    timeout_seconds: int = CONNECTIVITY_TIMEOUT_SECONDS,
) -> AsyncIterator[aiohttp.ClientSession]:
    """Open a short-lived session for a reachability check or registry lookup.

    Args:
        timeout_seconds: Limit for the whole request, connect included.

    Yields:
        A session identifying itself as update-plus.

    """
    async with aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(
            total=timeout_seconds, sock_connect=timeout_seconds
        ),
        connector=aiohttp.TCPConnector(limit=2),
        headers={"User-Agent": f"update-plus/{__version__}"},
    ) as session:
        yield session
