"""HTML parsers for the table of contents and chapter pages."""
from __future__ import annotations

from typing import NamedTuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from innbinder.config import (
    CHAPTER_LINK_SELECTOR,
    MAIN_CONTENT_ID,
    NAVIGATION_LINK_TEXTS,
    TOC_SECTION_ID,
    VOLUME_TITLE_SELECTOR,
    VOLUME_WRAPPER_SELECTOR,
)
from innbinder.models import ChapterLink, VolumeMap

MISSING_MAIN_CONTENT = "<p>No main-content element found</p>"


class TocNotFound(NamedTuple):
    """The page has no recognisable table of contents.  Not an error."""

    reason: str


# ---------------------------------------------------------------------------
# Table of contents
# ---------------------------------------------------------------------------

def parse_toc(html: str, base_url: str) -> VolumeMap | TocNotFound:
    """Parse the table-of-contents page into an ordered volume -> chapters map.

    Volumes and chapters keep document order.  Returns :class:`TocNotFound`
    when the contents section or its volume wrappers are missing.
    """
    soup = BeautifulSoup(html, "lxml")

    section = soup.find(id=TOC_SECTION_ID)
    if section is None:
        return TocNotFound(f"No element found with id '{TOC_SECTION_ID}'")

    wrappers = section.select(VOLUME_WRAPPER_SELECTOR)
    if not wrappers:
        return TocNotFound(
            f"No {VOLUME_WRAPPER_SELECTOR} elements found inside the section"
        )

    volumes: VolumeMap = {}
    for position, wrapper in enumerate(wrappers, start=1):
        title = _volume_title(wrapper) or f"Untitled {position}"
        links = [
            ChapterLink(a.get_text().strip(), _resolve_href(base_url, a.get("href", "")))
            for a in wrapper.select(CHAPTER_LINK_SELECTOR)
        ]
        volumes[disambiguate_key(volumes, title, position)] = links
    return volumes


def disambiguate_key(mapping: dict, key: str, position: int) -> str:
    """Return *key*, or ``"{key} ({position})"`` if it is already taken.

    The first occurrence of a title keeps the bare key.  The suffix is applied
    again while the candidate still collides, so no entry is ever replaced.
    """
    candidate = key
    while candidate in mapping:
        candidate = f"{candidate} ({position})"
    return candidate


def _volume_title(wrapper: Tag) -> str:
    heading = wrapper.select_one(VOLUME_TITLE_SELECTOR)
    return heading.get_text().strip() if heading else ""


def _resolve_href(base_url: str, href) -> str:
    href = str(href or "")
    if not href:
        return href
    try:
        return urljoin(base_url, href)
    except ValueError:
        return href


# ---------------------------------------------------------------------------
# Chapter page
# ---------------------------------------------------------------------------

def extract_main_content(html: str) -> str:
    """Return the outer HTML of ``#main-content`` minus its navigation links."""
    soup = BeautifulSoup(html, "lxml")
    main = soup.find(id=MAIN_CONTENT_ID)
    if main is None:
        return MISSING_MAIN_CONTENT

    for a in main.find_all("a"):
        if a.get_text().strip().lower() in NAVIGATION_LINK_TEXTS:
            a.decompose()
    return str(main)
