# File: tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Dict

import pytest
import pytest_asyncio
from aiohttp import web

from site_harvest.config import HarvestConfig
from site_harvest.errors import NavigationError


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


class FakePageFetcher:
    """In-memory page fetcher: URL -> HTML; unknown URLs fail like a 404."""

    def __init__(self, pages: Dict[str, str]) -> None:
        self.pages = pages
        self.calls: list[str] = []

    async def render(self, url: str, timeout: float) -> str:
        self.calls.append(url)
        if url not in self.pages:
            raise NavigationError(url, "HTTP 404")
        return self.pages[url]


@pytest.fixture()
def fake_fetcher_cls():
    return FakePageFetcher


@pytest.fixture()
def basic_config(tmp_path) -> HarvestConfig:
    """
    Return a quick HarvestConfig: no delays, no image download.
    """
    return HarvestConfig(
        base_url="https://example.com",
        max_pages=50,
        delay=0,
        timeout=2.0,
        user_agent="TestAgent/1.0",
        download_images=False,
        output_dir=tmp_path / "output",
        asset_delay=0,
    )


@pytest_asyncio.fixture
async def serve(unused_tcp_port: int) -> AsyncIterator[Callable[[web.Application], Awaitable[str]]]:
    """Start an aiohttp app on a free port and return its base URL; cleaned up after the test."""
    runners: list[web.AppRunner] = []

    async def _start(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", unused_tcp_port)
        await site.start()
        runners.append(runner)
        return f"http://127.0.0.1:{unused_tcp_port}"

    try:
        yield _start
    finally:
        for runner in runners:
            await runner.cleanup()
