# site_harvest/crawler/fetcher.py
"""
Fetcher module: the page-rendering boundary of the crawler.

The crawl loop only needs ``render(url, timeout) -> html``. :class:`HttpPageFetcher`
implements it over a plain aiohttp session; a headless browser can be plugged in
by implementing the same :class:`PageFetcher` protocol.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Optional, Protocol, runtime_checkable

from aiohttp import ClientError, ClientSession, ClientTimeout

from site_harvest.errors import NavigationError

__all__ = ("PageFetcher", "HttpPageFetcher")


@runtime_checkable
class PageFetcher(Protocol):
    async def render(self, url: str, timeout: float) -> str:
        """Return the page HTML or raise :class:`NavigationError`."""
        ...


class HttpPageFetcher:
    """Fetches pages with aiohttp; one request at a time, no retries."""

    def __init__(self, user_agent: str, session: Optional[ClientSession] = None) -> None:
        self.user_agent = user_agent
        self.session = session
        self._owns_session = session is None
        self.logger = logging.getLogger("SiteHarvest")

    async def __aenter__(self) -> HttpPageFetcher:
        if self.session is None:
            self.session = ClientSession(
                headers={"User-Agent": self.user_agent, "Accept": "text/html,application/xhtml+xml"},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def render(self, url: str, timeout: float) -> str:
        if not self.session:
            raise RuntimeError("Session not initialized")
        try:
            async with self.session.get(url, timeout=ClientTimeout(total=timeout)) as resp:
                if not 200 <= resp.status < 300:
                    raise NavigationError(url, f"HTTP {resp.status}")
                return await resp.text(errors="replace")
        except asyncio.TimeoutError as exc:
            raise NavigationError(url, f"timeout after {timeout:g} s") from exc
        except ClientError as exc:
            raise NavigationError(url, str(exc) or type(exc).__name__) from exc
