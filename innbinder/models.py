"""Value types shared by the acquisition pipeline and the emitters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple


class ChapterLink(NamedTuple):
    """A chapter entry from the table of contents."""

    name: str
    url: str


class CachedChapterRef(NamedTuple):
    """A manifest entry pointing at a cache file under ``chapters/``."""

    index: int
    name: str
    file_name: str


class ChapterContent(NamedTuple):
    """A resolved chapter, ready for emission."""

    name: str
    body: str


class Outcome(str, Enum):
    CACHED = "cached"
    FETCHED = "fetched"
    FAILED = "failed"


class ResolvedChapter(NamedTuple):
    """Result of resolving one chapter in online mode.

    A failed fetch is still a usable chapter: ``content.body`` holds the
    persisted placeholder and ``error`` the message that produced it.
    """

    content: ChapterContent
    ref: CachedChapterRef
    outcome: Outcome
    error: str | None = None


VolumeMap = dict[str, list[ChapterLink]]
ChapterMap = dict[str, list[ChapterContent]]


@dataclass
class CacheManifest:
    toc_url: str
    generated_utc: str
    volumes: dict[str, list[CachedChapterRef]] = field(default_factory=dict)
