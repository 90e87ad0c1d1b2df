"""Configuration for innbinder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from innbinder.errors import RootNotFoundError

DEFAULT_TOC_URL = os.environ.get(
    "INNBINDER_TOC_URL", "https://wanderinginn.com/table-of-contents/"
)

HEADERS = {
    "user-agent": "innbinder/1.0",
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}

REQUEST_TIMEOUT = 30  # seconds

# ── Site structure ───────────────────────────────────────────────────────────

TOC_SECTION_ID = "table-of-contents"
VOLUME_WRAPPER_SELECTOR = ".volume-wrapper"
VOLUME_TITLE_SELECTOR = "h2.volume-title"
CHAPTER_LINK_SELECTOR = ".book-body > .chapter-entry > .body-web a"
MAIN_CONTENT_ID = "main-content"
NAVIGATION_LINK_TEXTS = ("previous chapter", "next chapter")

# ── Layout ───────────────────────────────────────────────────────────────────

CHAPTERS_DIRNAME = "chapters"
VOLUMES_DIRNAME = "volumes"
ASSETS_DIRNAME = "assets"
MANIFEST_FILENAME = "manifest.json"
COVER_FILENAME = "cover.jpg"

OUTPUT_FORMATS = ("epub", "pdf")


@dataclass(frozen=True)
class ProjectPaths:
    """Resolved on-disk layout below a project root."""

    root: Path

    @property
    def chapters_dir(self) -> Path:
        return self.root / CHAPTERS_DIRNAME

    @property
    def manifest_path(self) -> Path:
        return self.chapters_dir / MANIFEST_FILENAME

    @property
    def volumes_dir(self) -> Path:
        return self.root / VOLUMES_DIRNAME

    @property
    def cover_path(self) -> Path:
        return self.root / ASSETS_DIRNAME / COVER_FILENAME

    def output_path(self, file_stem: str, fmt: str) -> Path:
        return self.volumes_dir / f"{file_stem}.{fmt}"


def locate_root(explicit: str | os.PathLike | None = None) -> Path:
    """Return the project root directory.

    Order: *explicit* (``--root``), then ``INNBINDER_ROOT``, then the current
    working directory.  Raises :class:`RootNotFoundError` if the chosen
    directory does not exist or the working directory cannot be determined.
    """
    candidate = explicit or os.environ.get("INNBINDER_ROOT")
    if candidate:
        root = Path(candidate).expanduser()
    else:
        try:
            root = Path.cwd()
        except OSError as e:
            raise RootNotFoundError(f"Cannot determine working directory: {e}") from e

    if not root.is_dir():
        raise RootNotFoundError(f"Project directory not found: {root}")
    return root.resolve()
