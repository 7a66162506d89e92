# site_harvest/crawler/models.py
"""
Data models for the SiteHarvest crawler.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(slots=True)
class UrlRecord:
    """A frontier entry. ``level`` is fixed at admission and never reassigned."""

    url: str
    parent_url: Optional[str]
    level: int
    is_navigation: bool = False


@dataclass(slots=True)
class LinkInfo:
    url: str
    text: str = ""
    is_navigation: bool = False
    is_footer: bool = False


@dataclass(slots=True)
class ImageInfo:
    """An ``<img>`` found on a page; download fields are filled after the asset batch."""

    src: str
    alt: str = ""
    title: str = ""
    width: str = ""
    height: str = ""
    page_url: str = ""
    local_path: Optional[str] = None
    hash: Optional[str] = None
    duplicate: bool = False


@dataclass(slots=True)
class PageRecord:
    """Normalized record of one scraped page."""

    url: str
    level: int
    title: str = ""
    meta_description: str = ""
    h1: str = ""
    content: str = ""
    content_length: int = 0
    page_type: str = "default"
    links: List[LinkInfo] = field(default_factory=list)
    images: List[ImageInfo] = field(default_factory=list)
    scraped_at: str = field(default_factory=utc_now)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(slots=True)
class FailedPage:
    url: str
    error: str
    level: Optional[int] = None


__all__ = ["UrlRecord", "LinkInfo", "ImageInfo", "PageRecord", "FailedPage", "utc_now"]
