"""
EPUB building.

Turns one volume of resolved chapters into an EPUB 3 file.  Chapter bodies are
the cached HTML as-is, wrapped in an XHTML document with a numbered heading.
No network access, no cache lookups.
"""

from __future__ import annotations

import html
import io
import logging
import re
from collections.abc import Sequence
from pathlib import Path

from ebooklib import epub
from PIL import Image, UnidentifiedImageError

from innbinder.models import ChapterContent
from innbinder.utils import sanitize

log = logging.getLogger("innbinder.epub")

# ── Constants ────────────────────────────────────────────────────────────────

BOOK_CSS = """\
@charset "UTF-8";
body {
    font-family: "Georgia", "Times New Roman", serif;
    line-height: 1.6;
    margin: 1em;
    padding: 0;
    color: #1a1a1a;
}
h1 {
    font-size: 1.6em;
    text-align: center;
    margin: 1.5em 0 1em;
}
h2 {
    font-size: 1.3em;
    text-align: center;
    margin: 1.2em 0 0.8em;
}
p {
    margin: 0.6em 0;
    text-align: justify;
}
.cover-page {
    text-align: center;
    padding: 0;
    margin: 0;
}
.cover-page img {
    max-width: 100%;
    max-height: 100%;
}
"""

LANGUAGE = "en"

_XML_ILLEGAL = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


# ── Helpers ──────────────────────────────────────────────────────────────────


def chapter_file_name(number: int) -> str:
    return f"chapter{number:03d}.xhtml"


def chapter_anchor(number: int) -> str:
    return f"chapter-{number}"


def xml_safe(text: str) -> str:
    """Drop characters XML 1.0 does not allow (most C0 controls)."""
    return _XML_ILLEGAL.sub("", text)


def chapter_heading(number: int, name: str) -> str:
    return xml_safe(f"Chapter {number}: {name}")


def cover_image_name(cover_bytes: bytes) -> str | None:
    """Return an archive name for the cover, or None if it is not an image."""
    try:
        with Image.open(io.BytesIO(cover_bytes)) as img:
            fmt = (img.format or "").lower()
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        log.warning("Ignoring cover image: %s", e)
        return None
    ext = {"jpeg": "jpg"}.get(fmt, fmt) or "jpg"
    return f"images/cover.{ext}"


# ── EPUB builder ─────────────────────────────────────────────────────────────


def build_epub(
    volume_title: str,
    chapters: Sequence[ChapterContent],
    output_path: Path,
    cover_bytes: bytes | None = None,
    progress_callback=None,
) -> Path:
    """Write one volume as an EPUB file.

    Args:
        volume_title: Book title, also used to derive the identifier.
        chapters: Resolved chapters in reading order.
        output_path: Target file; replaced if it exists.
        cover_bytes: Optional cover image, placed first in the spine.
        progress_callback: Optional callable(current, total).

    Returns:
        Path to the created EPUB file.
    """
    output_path = Path(output_path)

    book = epub.EpubBook()
    book.set_identifier(f"innbinder-{sanitize(volume_title)}")
    book.set_title(xml_safe(volume_title))
    book.set_language(LANGUAGE)

    style = epub.EpubItem(
        uid="book_style",
        file_name="style/book.css",
        media_type="text/css",
        content=BOOK_CSS.encode("utf-8"),
    )
    book.add_item(style)

    has_cover = False
    if cover_bytes:
        image_name = cover_image_name(cover_bytes)
        if image_name:
            book.set_cover(image_name, cover_bytes, create_page=True)
            has_cover = True

    spine_items: list = ["nav"]
    toc: list[epub.Link] = []
    total = len(chapters)

    for number, chapter in enumerate(chapters, start=1):
        heading = chapter_heading(number, chapter.name)
        file_name = chapter_file_name(number)
        anchor = chapter_anchor(number)

        epub_ch = epub.EpubHtml(
            uid=f"chapter_{number:03d}",
            title=heading,
            file_name=file_name,
            lang=LANGUAGE,
        )
        epub_ch.content = (
            f'<h2 id="{anchor}">{html.escape(heading)}</h2>\n{chapter.body}'
        ).encode("utf-8")
        epub_ch.add_item(style)

        book.add_item(epub_ch)
        spine_items.append(epub_ch)
        toc.append(epub.Link(f"{file_name}#{anchor}", heading, f"toc_{number:03d}"))

        if progress_callback:
            progress_callback(number, total)

    book.toc = toc
    book.add_item(epub.EpubNcx())
    book.add_item(epub.EpubNav())

    if has_cover:
        spine_items.insert(0, "cover")
    book.spine = spine_items

    output_path.parent.mkdir(parents=True, exist_ok=True)
    if output_path.exists():
        output_path.unlink()

    epub.write_epub(str(output_path), book, {})
    log.info("Wrote %s (%d chapters)", output_path, total)
    return output_path
