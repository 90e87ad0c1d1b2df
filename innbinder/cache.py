"""Chapter cache: one text file per chapter under ``chapters/``.

A cache file, once written, is the canonical copy of a chapter.  Online runs
read it instead of fetching; offline runs read nothing else.  Failed fetches
are persisted as an error placeholder and are not retried until the file is
deleted by hand.
"""

from __future__ import annotations

import html
import logging
from pathlib import Path
from typing import Protocol

from innbinder.errors import CacheMissError
from innbinder.models import (
    CachedChapterRef,
    ChapterContent,
    Outcome,
    ResolvedChapter,
)
from innbinder.parser import extract_main_content
from innbinder.utils import read_text, sanitize, write_text

log = logging.getLogger("innbinder.cache")


class HtmlSource(Protocol):
    def get_html(self, url: str) -> str: ...


def error_placeholder(url: str, message: str) -> str:
    return f"<p>Error fetching {html.escape(url)}: {html.escape(message)}</p>"


class ChapterCache:
    """Resolve chapters against the cache directory, fetching on a miss."""

    def __init__(self, cache_dir: Path, client: HtmlSource | None = None):
        self.cache_dir = Path(cache_dir)
        self.client = client

    @staticmethod
    def file_name_for(index: int, display_name: str) -> str:
        return f"{index}_{sanitize(display_name)}.txt"

    def path_for(self, index: int, display_name: str) -> Path:
        return self.cache_dir / self.file_name_for(index, display_name)

    # ── Online ───────────────────────────────────────────────────────────

    def resolve(
        self,
        volume_key: str,
        index: int,
        display_name: str,
        source_url: str,
    ) -> ResolvedChapter:
        """Return the chapter's content, fetching and persisting it on a miss."""
        file_name = self.file_name_for(index, display_name)
        ref = CachedChapterRef(index, display_name, file_name)
        path = self.cache_dir / file_name

        if path.is_file():
            log.debug("  [%s] cached %d: %s", volume_key, index, path)
            return ResolvedChapter(
                ChapterContent(display_name, read_text(path)), ref, Outcome.CACHED
            )

        if self.client is None:
            raise RuntimeError("ChapterCache.resolve needs a client on a cache miss")

        log.info("  [%s] fetching %d from %s", volume_key, index, source_url)
        error = None
        try:
            body = extract_main_content(self.client.get_html(source_url))
        except Exception as e:
            log.warning("  [%s] chapter %d failed: %s", volume_key, index, e)
            error = str(e)
            body = error_placeholder(source_url, error)

        write_text(path, body)
        outcome = Outcome.FAILED if error is not None else Outcome.FETCHED
        return ResolvedChapter(ChapterContent(display_name, body), ref, outcome, error)

    # ── Offline ──────────────────────────────────────────────────────────

    def read(self, ref: CachedChapterRef) -> str:
        """Read a manifest-referenced chapter.  A missing file is fatal."""
        cache_root = self.cache_dir.resolve()
        path = (cache_root / ref.file_name).resolve()
        if cache_root not in path.parents:
            raise CacheMissError(f"Cache file outside {cache_root}: {ref.file_name}")
        if not path.is_file():
            raise CacheMissError(
                f"Cache file missing for chapter {ref.index} ({ref.name}): {path}"
            )
        return read_text(path)
