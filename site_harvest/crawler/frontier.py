# === FILE: site_harvest/crawler/frontier.py ===
"""
Level classification and the URL frontier.

Every visited URL gets a *level*: the seed is 1, a child is its parent's level
plus one, and legal/compliance pages (matched by keyword) get the reserved
level 0 so they are always crawled and always drained first. Shallow levels
are explored exhaustively; the deepest level only samples a bounded number of
pages per *category* (the first two path segments), which keeps large catalog
sites from exploding the crawl.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Set
from urllib.parse import urlsplit

from site_harvest.config import UNLIMITED
from site_harvest.crawler.models import UrlRecord

__all__ = ("Scheduler", "category_key", "LEGAL_LEVEL", "ROOT_LEVEL")

LEGAL_LEVEL = 0
ROOT_LEVEL = 1

log = logging.getLogger("SiteHarvest")


def _is_crawlable(url: str) -> bool:
    try:
        parts = urlsplit(url)
        _ = parts.port
    except ValueError:
        return False
    return parts.scheme in ("http", "https") and bool(parts.hostname)


def category_key(url: str) -> str:
    """First two non-empty path segments joined by ``/``; ``"root"`` when there are none."""
    segments = [s for s in urlsplit(url).path.split("/") if s]
    return "/".join(segments[:2]) or "root"


class Scheduler:
    """Owns URL levels, per-level visit counters, category samples and the pending queue.

    The crawl loop is the only writer; none of this state is shared.
    """

    def __init__(
        self,
        max_level: int = 3,
        level_limits: Optional[Dict[int, int]] = None,
        legal_keywords: Iterable[str] = (),
    ) -> None:
        self.max_level = max_level
        self.level_limits: Dict[int, int] = dict(level_limits or {1: UNLIMITED, 2: UNLIMITED, 3: 1})
        self.legal_keywords: List[str] = [k.lower() for k in legal_keywords if k]
        self._levels: Dict[str, int] = {}
        self._level_counts: Dict[int, int] = {}
        self._categories: Dict[str, List[str]] = {}
        self._pending: List[UrlRecord] = []
        self._pending_urls: Set[str] = set()

    @classmethod
    def from_config(cls, config) -> Scheduler:
        return cls(
            max_level=config.max_level,
            level_limits=config.level_limits,
            legal_keywords=config.legal_keywords,
        )

    # ------------------------------------------------------------------ #
    # Classification                                                     #
    # ------------------------------------------------------------------ #

    def is_legal_page(self, url: str) -> bool:
        lowered = url.lower()
        return any(keyword in lowered for keyword in self.legal_keywords)

    def level_limit(self, level: int) -> int:
        if level in self.level_limits:
            return self.level_limits[level]
        return 1 if level == self.max_level else UNLIMITED

    def classify_level(self, url: str, parent_url: Optional[str] = None) -> int:
        if self.is_legal_page(url):
            return LEGAL_LEVEL
        if url in self._levels:
            return self._levels[url]
        if parent_url is None:
            return ROOT_LEVEL
        # unregistered parents count as level 0
        return self._levels.get(parent_url, LEGAL_LEVEL) + 1

    def level_of(self, url: str) -> Optional[int]:
        return self._levels.get(url)

    def is_registered(self, url: str) -> bool:
        return url in self._levels

    # ------------------------------------------------------------------ #
    # Admission                                                          #
    # ------------------------------------------------------------------ #

    def should_crawl(self, url: str, parent_url: Optional[str] = None) -> bool:
        """Pure admission check; does not touch any counter."""
        if not _is_crawlable(url):
            log.debug("Malformed URL dropped: %r", url)
            return False
        level = self.classify_level(url, parent_url)
        if level == LEGAL_LEVEL:
            return True
        if level > self.max_level:
            return False
        limit = self.level_limit(level)
        if limit == UNLIMITED:
            return True
        if level == self.max_level:
            return len(self._categories.get(category_key(url), ())) < limit
        return self._level_counts.get(level, 0) < limit

    def admit(self, url: str, parent_url: Optional[str] = None, is_navigation: bool = False) -> bool:
        """Enqueue *url* if it is new and passes :meth:`should_crawl`."""
        if url in self._levels or url in self._pending_urls:
            return False
        if not self.should_crawl(url, parent_url):
            return False
        level = self.classify_level(url, parent_url)
        if level == self.max_level and self.level_limit(level) != UNLIMITED:
            self._categories.setdefault(category_key(url), []).append(url)
        self._push(UrlRecord(url=url, parent_url=parent_url, level=level, is_navigation=is_navigation))
        return True

    def seed(self, url: str) -> None:
        """Enqueue the crawl root without admission checks."""
        if url not in self._pending_urls and url not in self._levels:
            self._push(UrlRecord(url=url, parent_url=None, level=self.classify_level(url), is_navigation=True))

    def _push(self, record: UrlRecord) -> None:
        self._pending.append(record)
        self._pending_urls.add(record.url)

    # ------------------------------------------------------------------ #
    # Visiting                                                           #
    # ------------------------------------------------------------------ #

    def register(self, url: str, parent_url: Optional[str] = None) -> int:
        """Fix the level of a URL that is about to be fetched; idempotent."""
        if url in self._levels:
            return self._levels[url]
        level = self.classify_level(url, parent_url)
        self._levels[url] = level
        self._level_counts[level] = self._level_counts.get(level, 0) + 1
        return level

    @staticmethod
    def prioritize(pending: Sequence[UrlRecord]) -> List[UrlRecord]:
        """Legal pages first, then by level, navigation links before body links (stable)."""
        return sorted(
            pending,
            key=lambda r: (0 if r.level == LEGAL_LEVEL else 1, r.level, 0 if r.is_navigation else 1),
        )

    def next_url(self) -> Optional[UrlRecord]:
        """Pop the highest-priority unvisited record, or None when the frontier is drained."""
        while self._pending:
            self._pending = self.prioritize(self._pending)
            record = self._pending.pop(0)
            self._pending_urls.discard(record.url)
            if record.url not in self._levels:
                return record
        return None

    # ------------------------------------------------------------------ #
    # Introspection                                                      #
    # ------------------------------------------------------------------ #

    @property
    def pending(self) -> List[UrlRecord]:
        return list(self._pending)

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def level_counts(self) -> Dict[int, int]:
        return dict(self._level_counts)

    def category_bucket(self, category: str) -> List[str]:
        return list(self._categories.get(category, ()))

    def stats(self) -> Dict[str, object]:
        by_level = {
            ("legal" if level == LEGAL_LEVEL else f"level{level}"): count
            for level, count in sorted(self._level_counts.items())
        }
        return {"total_urls": len(self._levels), "by_level": by_level}
