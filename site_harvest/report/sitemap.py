# File: site_harvest/report/sitemap.py
"""site_harvest.report.sitemap: sitemap.xml for the scraped pages, built with lxml."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Union

from lxml import etree

from site_harvest.aggregator import HarvestReport
from site_harvest.logger import logger

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"

_PRIORITY: Dict[str, float] = {
    "homepage": 1.0,
    "category": 0.8,
    "product": 0.7,
    "news": 0.6,
    "about": 0.5,
    "contact": 0.5,
}

_CHANGEFREQ: Dict[str, str] = {
    "homepage": "daily",
    "news": "daily",
    "product": "weekly",
    "category": "weekly",
    "about": "monthly",
    "contact": "monthly",
}


def _lastmod(scraped_at: str | None) -> str:
    if scraped_at:
        try:
            return datetime.fromisoformat(scraped_at).date().isoformat()
        except ValueError:
            pass
    return datetime.now(timezone.utc).date().isoformat()


def build_sitemap(
    pages: Iterable[Dict[str, Any]],
    default_priority: float = 0.5,
    default_changefreq: str = "monthly",
) -> bytes:
    """Return the sitemap document for *pages* (dicts with ``url``, ``page_type``, ``scraped_at``)."""
    urlset = etree.Element("urlset", nsmap={None: SITEMAP_NS})
    for page in pages:
        kind = page.get("page_type", "default")
        entry = etree.SubElement(urlset, "url")
        etree.SubElement(entry, "loc").text = page["url"]
        etree.SubElement(entry, "lastmod").text = _lastmod(page.get("scraped_at"))
        etree.SubElement(entry, "changefreq").text = _CHANGEFREQ.get(kind, default_changefreq)
        etree.SubElement(entry, "priority").text = f"{_PRIORITY.get(kind, default_priority):.1f}"
    return etree.tostring(urlset, xml_declaration=True, encoding="UTF-8", pretty_print=True)


def render_sitemap(report: HarvestReport, output_path: Union[str, Path]) -> Path:
    """Write ``sitemap.xml`` for every scraped page of *report*."""
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(build_sitemap(report.pages))
    logger.info("Sitemap saved: %s (%d URLs)", output, len(report.pages))
    return output
