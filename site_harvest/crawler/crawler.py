# === FILE: site_harvest/crawler/crawler.py ===
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from site_harvest.assets.downloader import AssetDownloader, BatchResult
from site_harvest.assets.manifest import Manifest
from site_harvest.config import HarvestConfig
from site_harvest.crawler.fetcher import PageFetcher
from site_harvest.crawler.frontier import Scheduler
from site_harvest.crawler.models import FailedPage, ImageInfo, LinkInfo, PageRecord, UrlRecord, utc_now
from site_harvest.crawler.throttle import DelayPolicy, FixedDelay, ThrottleContext, pause
from site_harvest.errors import NavigationError
from site_harvest.parser.html_parser import iter_anchors, iter_images, make_soup, parse_html
from site_harvest.utils import is_internal_url, normalize_url, page_type

__all__ = ("CrawlResult", "CrawlOrchestrator")

Callback = Callable[[Any], None]


@dataclass(slots=True)
class CrawlResult:
    base_url: str
    pages: List[PageRecord] = field(default_factory=list)
    failed_pages: List[FailedPage] = field(default_factory=list)
    crawler_stats: Dict[str, Any] = field(default_factory=dict)
    image_results: Optional[BatchResult] = None
    manifest: Optional[Manifest] = None
    scraped_at: str = field(default_factory=utc_now)
    duration: float = 0.0

    def image_urls(self) -> List[str]:
        """Distinct image URLs across all pages, in discovery order."""
        return list(dict.fromkeys(img.src for page in self.pages for img in page.images))


class CrawlOrchestrator:
    """Sequential crawl loop driven by a :class:`Scheduler`.

    One URL is fetched at a time: dequeue, register, render, extract links and
    images, admit new links, pause. When an :class:`AssetDownloader` is given,
    the images of all scraped pages are downloaded after the crawl.
    """

    def __init__(
        self,
        config: HarvestConfig,
        fetcher: PageFetcher,
        downloader: Optional[AssetDownloader] = None,
        scheduler: Optional[Scheduler] = None,
        delay_policy: Optional[DelayPolicy] = None,
        on_progress: Optional[Callback] = None,
        on_page_complete: Optional[Callback] = None,
        on_error: Optional[Callback] = None,
        on_image_progress: Optional[Callback] = None,
    ) -> None:
        self.config = config
        self.base_url = normalize_url(config.start_url) or config.start_url
        self.fetcher = fetcher
        self.downloader = downloader if config.download_images else None
        self.scheduler = scheduler or Scheduler.from_config(config)
        self.delay_policy = delay_policy or FixedDelay(config.delay)
        self.on_progress = on_progress
        self.on_page_complete = on_page_complete
        self.on_error = on_error
        self.on_image_progress = on_image_progress
        self.pages: List[PageRecord] = []
        self.failed_pages: List[FailedPage] = []
        self.logger = logging.getLogger("SiteHarvest")

    async def crawl(self) -> CrawlResult:
        self.logger.info("Crawl started: %s", self.base_url)
        start = time.monotonic()
        self.scheduler.seed(self.base_url)

        while len(self.pages) < self.config.max_pages:
            record = self.scheduler.next_url()
            if record is None:
                break
            level = self.scheduler.register(record.url, record.parent_url)
            page = await self._visit(record, level)
            await pause(
                self.delay_policy,
                ThrottleContext(url=record.url, ok=page is not None, fetched=len(self.pages)),
            )

        result = CrawlResult(
            base_url=self.base_url,
            pages=self.pages,
            failed_pages=self.failed_pages,
            crawler_stats=self.scheduler.stats(),
        )
        self.logger.info(
            "Crawl finished: %d pages, %d failed, %d still queued",
            len(self.pages),
            len(self.failed_pages),
            len(self.scheduler),
        )

        if self.downloader is not None:
            result.image_results = await self.downloader.download_all(result.image_urls(), self.on_image_progress)
            self.downloader.apply_to_pages(result.pages)
            result.manifest = self.downloader.generate_manifest()

        result.duration = time.monotonic() - start
        return result

    # alias kept for callers that "run" a crawler
    run = crawl

    async def _visit(self, record: UrlRecord, level: int) -> Optional[PageRecord]:
        try:
            html = await self.fetcher.render(record.url, self.config.timeout)
        except NavigationError as exc:
            self.logger.warning("Failed %s: %s", record.url, exc.reason)
            failure = FailedPage(url=record.url, error=exc.reason, level=level)
            self.failed_pages.append(failure)
            if self.on_error:
                self.on_error(failure)
            return None

        page = self._build_page(record.url, level, html)
        self.pages.append(page)
        self.logger.info("Scraped [level %d] %s (%d links, %d images)", level, record.url, len(page.links), len(page.images))
        if self.on_page_complete:
            self.on_page_complete(page)
        if self.on_progress:
            self.on_progress(
                {
                    "current": len(self.pages),
                    "total": min(len(self.scheduler) + len(self.pages), self.config.max_pages),
                    "url": record.url,
                    "level": level,
                }
            )
        return page

    def _build_page(self, url: str, level: int, html: str) -> PageRecord:
        soup = make_soup(html)
        parsed = parse_html(soup)
        page = PageRecord(
            url=url,
            level=level,
            title=parsed.title,
            meta_description=parsed.meta_description,
            h1=parsed.h1,
            content=parsed.text,
            content_length=parsed.word_count,
            page_type=page_type(url),
        )

        seen: set[str] = set()
        anchors = iter_anchors(soup, self.config.navigation_selectors, self.config.with_navigation_crawl)
        for anchor in anchors:
            target = normalize_url(anchor.href, url)
            if target is None or not is_internal_url(target, self.base_url):
                continue
            if target not in seen:
                seen.add(target)
                page.links.append(LinkInfo(target, anchor.text, anchor.is_navigation, anchor.is_footer))
            if self.scheduler.admit(target, url, anchor.is_navigation):
                self.logger.debug("Queued %s (from %s)", target, url)

        for raw in iter_images(soup):
            src = normalize_url(raw.src, url)
            if src is None:
                continue
            page.images.append(ImageInfo(src, raw.alt, raw.title, raw.width, raw.height, page_url=url))
        return page
