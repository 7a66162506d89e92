# File: site_harvest/engine.py
"""site_harvest.engine: wires fetcher, scheduler and downloader together for one job."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from site_harvest.aggregator import HarvestReport, aggregate_results
from site_harvest.assets.downloader import AssetDownloader
from site_harvest.config import HarvestConfig, load_config
from site_harvest.crawler.crawler import CrawlOrchestrator, CrawlResult
from site_harvest.crawler.fetcher import HttpPageFetcher, PageFetcher
from site_harvest.logger import logger

__all__ = ["Engine", "start_crawl"]


async def _run(config: HarvestConfig, fetcher: PageFetcher, **callbacks: Any) -> CrawlResult:
    if not config.download_images:
        return await CrawlOrchestrator(config, fetcher, **callbacks).crawl()
    async with AssetDownloader.from_config(config) as downloader:
        return await CrawlOrchestrator(config, fetcher, downloader=downloader, **callbacks).crawl()


async def start_crawl(
    config: HarvestConfig,
    fetcher: Optional[PageFetcher] = None,
    **callbacks: Any,
) -> CrawlResult:
    """Run one crawl (and image download, if enabled) and return the raw result.

    Without *fetcher* an :class:`HttpPageFetcher` is opened for the duration of
    the job; failing to open it is fatal and propagates.
    """
    if fetcher is not None:
        return await _run(config, fetcher, **callbacks)
    async with HttpPageFetcher(config.user_agent) as http_fetcher:
        return await _run(config, http_fetcher, **callbacks)


class Engine:
    """Synchronous facade for the CLI and scripts: load config, crawl, aggregate."""

    @staticmethod
    def load_config(path: Optional[str]) -> HarvestConfig:
        """Load a YAML/JSON config file."""
        return load_config(path)

    def __init__(self, config: HarvestConfig) -> None:
        self.config = config
        self.result: Optional[CrawlResult] = None

    def run(self, timeout: Optional[float] = None) -> HarvestReport:
        """Run the job, optionally bounded by *timeout* seconds, and return the aggregated report."""
        logger.info("Starting crawl…")
        coro = start_crawl(self.config)
        try:
            self.result = asyncio.run(asyncio.wait_for(coro, timeout=timeout) if timeout else coro)
        except asyncio.TimeoutError:
            logger.error("Crawl did not finish within %s seconds", timeout)
            raise
        except Exception as exc:
            logger.error("Crawl failed: %s", exc)
            raise
        return aggregate_results(self.result)
