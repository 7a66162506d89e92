# === FILE: site_harvest/parser/html_parser.py ===
"""HTML query helpers for SiteHarvest.

The crawler never walks the DOM itself. It asks this module for three things:

* :func:`parse_html`: title, meta description, first ``<h1>`` and the visible
  body text of a page.
* :func:`iter_anchors`: anchors that matter for traversal: everything matched
  by the navigation selectors plus every footer anchor (legal pages usually
  live in the footer), or simply every anchor when navigation-only mode is off.
* :func:`iter_images`: every ``<img>`` with its descriptive attributes.

Both iterators are generators over a single parsed document: lazy, finite,
consumed once. Attribute and text values are whitespace-normalized; URLs are
returned raw and resolved by the caller.
"""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any, Union

from bs4 import BeautifulSoup
from bs4.element import Tag

__all__: Sequence[str] = ("ParsedPage", "AnchorInfo", "RawImage", "parse_html", "iter_anchors", "iter_images", "make_soup")

_INVISIBLE = ("script", "style", "noscript", "template")


@dataclass(slots=True)
class ParsedPage:
    """Lightweight textual summary of an HTML page."""

    title: str
    meta_description: str
    h1: str
    text: str

    @property
    def word_count(self) -> int:
        return len(self.text.split())


@dataclass(slots=True)
class AnchorInfo:
    href: str
    text: str
    is_navigation: bool = False
    is_footer: bool = False


@dataclass(slots=True)
class RawImage:
    src: str
    alt: str = ""
    title: str = ""
    width: str = ""
    height: str = ""


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        value = " ".join(value)
    return " ".join(str(value).split())


def make_soup(html: Union[str, BeautifulSoup]) -> BeautifulSoup:
    if isinstance(html, BeautifulSoup):
        return html
    return BeautifulSoup(html, "html.parser")


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def parse_html(html: Union[str, BeautifulSoup]) -> ParsedPage:
    """Extract the textual summary of a page.

    The soup is copied before invisible elements are stripped, so the same
    document can still be passed to :func:`iter_anchors` afterwards.
    """
    soup = make_soup(html)

    title_tag = soup.find("title")
    title = _clean(title_tag.get_text()) if title_tag else ""

    meta = soup.find("meta", attrs={"name": "description"})
    description = _clean(meta.get("content")) if isinstance(meta, Tag) else ""

    h1_tag = soup.find("h1")
    h1 = _clean(h1_tag.get_text(" ")) if h1_tag else ""

    body = BeautifulSoup(str(soup.body or soup), "html.parser")
    for element in body(list(_INVISIBLE)):
        element.decompose()
    text = " ".join(body.stripped_strings)

    return ParsedPage(title=title, meta_description=description, h1=h1, text=_clean(text))


def iter_anchors(
    html: Union[str, BeautifulSoup],
    selectors: Sequence[str],
    navigation_only: bool = True,
) -> Iterator[AnchorInfo]:
    """Yield traversal-relevant anchors.

    Parameters
    ----------
    html
        Markup or an already parsed document.
    selectors
        CSS selectors for navigation anchors (``"nav a"``, ``".menu a"`` …).
    navigation_only
        *True*: navigation anchors followed by footer anchors (an anchor that
        is both is yielded twice, once per role, like the source pages list
        them); *False*: every anchor in document order, flagged by role.
    """
    soup = make_soup(html)

    if not navigation_only:
        nav_ids = {id(tag) for selector in selectors for tag in soup.select(selector)}
        for tag in soup.find_all("a", href=True):
            href = _clean(tag.get("href"))
            if not href or href.startswith("#"):
                continue
            yield AnchorInfo(
                href=href,
                text=_clean(tag.get_text(" ")),
                is_navigation=id(tag) in nav_ids,
                is_footer=tag.find_parent("footer") is not None,
            )
        return

    for selector in selectors:
        for tag in soup.select(selector):
            href = _clean(tag.get("href"))
            if href and not href.startswith("#"):
                yield AnchorInfo(href=href, text=_clean(tag.get_text(" ")), is_navigation=True)

    for tag in soup.select("footer a"):
        href = _clean(tag.get("href"))
        if href and not href.startswith("#"):
            yield AnchorInfo(href=href, text=_clean(tag.get_text(" ")), is_footer=True)


def iter_images(html: Union[str, BeautifulSoup]) -> Iterator[RawImage]:
    """Yield every ``<img>`` that has a ``src``."""
    soup = make_soup(html)
    for tag in soup.find_all("img"):
        src = _clean(tag.get("src"))
        if not src:
            continue
        yield RawImage(
            src=src,
            alt=_clean(tag.get("alt")),
            title=_clean(tag.get("title")),
            width=_clean(tag.get("width")),
            height=_clean(tag.get("height")),
        )
