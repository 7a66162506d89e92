# File: site_harvest/utils.py
"""site_harvest.utils: URL helpers shared by the crawler, the parser and the reports."""

from __future__ import annotations

from typing import Collection, List, Optional, Sequence
from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

from site_harvest.logger import logger

__all__: Sequence[str] = (
    "normalize_url",
    "is_internal_url",
    "relative_path",
    "page_type",
    "remove_duplicates",
)

_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "data:")

# first match wins
_PAGE_TYPES: Sequence[tuple[str, tuple[str, ...]]] = (
    ("product", ("/product", "/artikel")),
    ("category", ("/category", "/kategorie")),
    ("news", ("/news", "/blog")),
    ("about", ("/about", "/ueber")),
    ("contact", ("/contact", "/kontakt")),
)


def normalize_url(href: str, base: str = "") -> Optional[str]:
    """Resolve *href* against *base* and canonicalise it.

    Scheme and host are lower-cased, the fragment and a trailing slash are
    dropped. Returns ``None`` for anything that is not an absolute http(s) URL.
    """
    raw = (href or "").strip()
    if not raw or raw.startswith("#") or raw.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute, _ = urldefrag(urljoin(base, raw))
        parts = urlsplit(absolute)
        # .port raises ValueError on garbage like "http://host:abc"
        _ = parts.port
    except ValueError:
        logger.debug("Unparsable URL skipped: %r", raw)
        return None
    if parts.scheme.lower() not in ("http", "https") or not parts.hostname:
        return None
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def is_internal_url(url: str, base_url: str) -> bool:
    """Return True if *url* lives on the same hostname as *base_url*."""
    try:
        return urlsplit(url).hostname == urlsplit(base_url).hostname
    except ValueError:
        return False


def relative_path(url: str) -> str:
    """Path (and query) of *url*, ``"/"`` for the site root."""
    parts = urlsplit(url)
    path = parts.path or "/"
    return f"{path}?{parts.query}" if parts.query else path


def page_type(url: str) -> str:
    """Coarse page type from the URL path: homepage, product, category, news, about, contact or default."""
    path = relative_path(url).lower()
    if path in ("/", ""):
        return "homepage"
    for name, markers in _PAGE_TYPES:
        if any(marker in path for marker in markers):
            return name
    return "default"


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Drop duplicate URLs, keeping the first occurrence order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique
