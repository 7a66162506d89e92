# File: site_harvest/aggregator.py
"""site_harvest.aggregator: turns a CrawlResult into the report consumed by exporters."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, TypedDict, Union

from site_harvest.crawler.crawler import CrawlResult


class CrawlStatistics(TypedDict, total=False):
    """Aggregate figures of one crawl."""

    total_pages: int
    failed_pages: int
    total_words: int
    total_links: int
    total_images: int
    crawler: Dict[str, Any]
    images: Dict[str, Any]


@dataclass(slots=True)
class HarvestReport:
    """Pages, failures and statistics of one crawl, ready for serialization."""

    base_url: str
    scraped_at: str
    pages: List[Dict[str, Any]] = field(default_factory=list)
    failed_pages: List[Dict[str, Any]] = field(default_factory=list)
    statistics: CrawlStatistics = field(default_factory=dict)  # type: ignore[assignment]
    image_results: Union[Dict[str, Any], None] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["image_results"] is None:
            del data["image_results"]
        return data

    def json(self, *, pretty: bool = False) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def _statistics(result: CrawlResult) -> CrawlStatistics:
    stats: CrawlStatistics = {
        "total_pages": len(result.pages),
        "failed_pages": len(result.failed_pages),
        "total_words": sum(p.content_length for p in result.pages),
        "total_links": sum(len(p.links) for p in result.pages),
        "total_images": sum(len(p.images) for p in result.pages),
        "crawler": result.crawler_stats,
    }
    if result.image_results is not None:
        stats["images"] = result.image_results.statistics.to_dict()
    return stats


def aggregate_results(result: CrawlResult) -> HarvestReport:
    """Collect every part of the report into a HarvestReport."""
    return HarvestReport(
        base_url=result.base_url,
        scraped_at=result.scraped_at,
        pages=[p.to_dict() for p in result.pages],
        failed_pages=[asdict(f) for f in result.failed_pages],
        statistics=_statistics(result),
        image_results=result.image_results.to_dict() if result.image_results is not None else None,
    )
