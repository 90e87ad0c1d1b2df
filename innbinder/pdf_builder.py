"""PDF building through a headless Chromium page (Playwright)."""

from __future__ import annotations

import html
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from playwright.sync_api import sync_playwright

from innbinder.models import ChapterContent

log = logging.getLogger("innbinder.pdf")


class HtmlRenderer(Protocol):
    def render(self, document: str, output_path: Path) -> None: ...


def volume_html(
    volume_title: str,
    chapters: Sequence[ChapterContent],
    progress_callback=None,
) -> str:
    """Concatenate a volume into a single HTML document."""
    title = html.escape(volume_title)
    parts = [
        "<!DOCTYPE html><html><head><meta charset='utf-8'>"
        f"<title>{title}</title></head><body>",
        f"<h1>{title}</h1>",
    ]
    total = len(chapters)
    for number, chapter in enumerate(chapters, start=1):
        parts.append(f"<h2>Chapter {number}: {html.escape(chapter.name)}</h2>")
        parts.append(f"<div>{chapter.body}</div>")
        if progress_callback:
            progress_callback(number, total)
    parts.append("</body></html>")
    return "\n".join(parts)


class PdfRenderer:
    """Owns one headless browser; each render uses a fresh page.

    Usage::

        with PdfRenderer() as renderer:
            build_pdf(title, chapters, path, renderer)
    """

    def __init__(self, headless: bool = True):
        self.headless = headless
        self._playwright = None
        self._browser = None

    def __enter__(self):
        self._playwright = sync_playwright().start()
        try:
            self._browser = self._playwright.chromium.launch(headless=self.headless)
        except Exception:
            self._playwright.stop()
            raise
        return self

    def __exit__(self, *args):
        try:
            if self._browser is not None:
                self._browser.close()
        finally:
            self._playwright.stop()

    def render(self, document: str, output_path: Path) -> None:
        page = self._browser.new_page()
        try:
            page.set_content(document, wait_until="load")
            page.pdf(path=str(output_path), print_background=True)
        finally:
            page.close()


def build_pdf(
    volume_title: str,
    chapters: Sequence[ChapterContent],
    output_path: Path,
    renderer: HtmlRenderer,
    progress_callback=None,
) -> Path:
    """Render one volume to *output_path* with *renderer*."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.exists():
        output_path.unlink()

    document = volume_html(volume_title, chapters, progress_callback)
    renderer.render(document, output_path)
    log.info("Wrote %s (%d chapters)", output_path, len(chapters))
    return output_path
