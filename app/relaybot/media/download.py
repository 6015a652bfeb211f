"""HTTP download of generated images."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import aiohttp

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = aiohttp.ClientTimeout(total=120)


async def fetch_bytes(url: str, headers: Mapping[str, str] | None = None) -> bytes:
    """GET *url* and return the body; raises ``aiohttp.ClientError`` on failure."""
    async with aiohttp.ClientSession(timeout=DOWNLOAD_TIMEOUT) as session:
        async with session.get(url, headers=dict(headers or {})) as resp:
            resp.raise_for_status()
            data = await resp.read()
    logger.debug("Downloaded %d bytes from %s", len(data), url.split("?", 1)[0])
    return data
