"""Acquisition: turn a table of contents (online) or a manifest (offline)
into the chapter map the emitters consume.

Online runs resolve every chapter through the cache and rewrite the manifest
for exactly the volumes processed.  Offline runs read the manifest and the
cache files it names; anything missing aborts the run.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from innbinder.cache import ChapterCache, HtmlSource
from innbinder.client import FetchError, InnClient
from innbinder.config import DEFAULT_TOC_URL, ProjectPaths
from innbinder.errors import ManifestError, NetworkError, UserInputError
from innbinder.manifest import load_manifest, save_manifest, utc_timestamp
from innbinder.models import (
    CacheManifest,
    CachedChapterRef,
    ChapterContent,
    ChapterMap,
    VolumeMap,
)
from innbinder.parser import TocNotFound, parse_toc

log = logging.getLogger("innbinder.acquire")

ProgressCallback = Callable[[str, int, int], None]


@dataclass
class RunConfig:
    root: Path
    offline: bool = False
    toc_url: str | None = None
    volume: str | None = None

    @property
    def paths(self) -> ProjectPaths:
        return ProjectPaths(Path(self.root))


@dataclass
class AcquisitionResult:
    chapters: ChapterMap
    manifest: CacheManifest | None = None
    stats: Counter = field(default_factory=Counter)
    notice: str | None = None


# ── Volume selection ─────────────────────────────────────────────────────────


def select_volumes(mapping: Mapping, selector: str | int | None) -> dict:
    """Select volumes by 1-based position in insertion order.

    ``None`` or ``"all"`` selects every volume.  Anything that is not an
    integer in ``[1, len(mapping)]`` raises UserInputError.
    """
    if selector is None or str(selector).strip().lower() == "all":
        return dict(mapping)

    keys = list(mapping)
    try:
        position = int(str(selector).strip())
    except ValueError:
        position = 0
    if not 1 <= position <= len(keys):
        available = ", ".join(f"{i}: {k}" for i, k in enumerate(keys, start=1))
        raise UserInputError(
            f"Invalid volume specifier: {selector}. "
            f"Available volumes: {available or '(none)'}"
        )

    key = keys[position - 1]
    return {key: mapping[key]}


# ── Online ───────────────────────────────────────────────────────────────────


def scan_toc(client: HtmlSource, toc_url: str) -> VolumeMap | TocNotFound:
    """Fetch and parse the table of contents.  Fetch failures are NetworkError."""
    log.info("Fetching table of contents: %s", toc_url)
    try:
        html = client.get_html(toc_url)
    except FetchError as e:
        raise NetworkError(f"HTTP error: {e}") from e
    return parse_toc(html, toc_url)


def acquire_online(
    config: RunConfig,
    client: HtmlSource,
    progress_callback: ProgressCallback | None = None,
) -> AcquisitionResult:
    paths = config.paths
    toc_url = config.toc_url or DEFAULT_TOC_URL

    toc = scan_toc(client, toc_url)
    if isinstance(toc, TocNotFound):
        log.warning("%s", toc.reason)
        return AcquisitionResult(chapters={}, notice=toc.reason)

    selected = select_volumes(toc, config.volume)
    cache = ChapterCache(paths.chapters_dir, client)
    stats: Counter = Counter()
    chapters: ChapterMap = {}
    refs: dict[str, list[CachedChapterRef]] = {}

    for volume_key, links in selected.items():
        log.info("Processing volume: %s", volume_key)
        contents: list[ChapterContent] = []
        volume_refs: list[CachedChapterRef] = []
        total = len(links)
        for index, link in enumerate(links, start=1):
            resolved = cache.resolve(volume_key, index, link.name, link.url)
            contents.append(resolved.content)
            volume_refs.append(resolved.ref)
            stats[resolved.outcome.value] += 1
            if progress_callback:
                progress_callback(volume_key, index, total)
        chapters[volume_key] = contents
        refs[volume_key] = volume_refs

    manifest = CacheManifest(toc_url=toc_url, generated_utc=utc_timestamp(), volumes=refs)
    _warn_on_shrink(paths.manifest_path, manifest)
    save_manifest(paths.manifest_path, manifest)
    return AcquisitionResult(chapters=chapters, manifest=manifest, stats=stats)


def _warn_on_shrink(path: Path, manifest: CacheManifest) -> None:
    """Log the volumes an overwrite is about to drop from the manifest."""
    if not path.is_file():
        return
    try:
        previous = load_manifest(path)
    except ManifestError as e:
        log.debug("Previous manifest unreadable, overwriting: %s", e)
        return
    dropped = [k for k in previous.volumes if k not in manifest.volumes]
    if dropped:
        log.warning(
            "Manifest will no longer cover %d volume(s): %s",
            len(dropped),
            ", ".join(dropped),
        )


# ── Offline ──────────────────────────────────────────────────────────────────


def acquire_offline(
    config: RunConfig,
    progress_callback: ProgressCallback | None = None,
) -> AcquisitionResult:
    paths = config.paths
    manifest = load_manifest(paths.manifest_path)
    if config.toc_url and config.toc_url != manifest.toc_url:
        log.warning(
            "Manifest was built from %s, not %s; using the manifest",
            manifest.toc_url,
            config.toc_url,
        )

    selected = select_volumes(manifest.volumes, config.volume)
    cache = ChapterCache(paths.chapters_dir)
    stats: Counter = Counter()
    chapters: ChapterMap = {}

    for volume_key, refs in selected.items():
        log.info("Loading volume from cache: %s", volume_key)
        contents = []
        total = len(refs)
        for i, ref in enumerate(refs, start=1):
            contents.append(ChapterContent(ref.name, cache.read(ref)))
            stats["cached"] += 1
            if progress_callback:
                progress_callback(volume_key, i, total)
        chapters[volume_key] = contents

    return AcquisitionResult(chapters=chapters, manifest=manifest, stats=stats)


def run(
    config: RunConfig,
    client: HtmlSource | None = None,
    progress_callback: ProgressCallback | None = None,
) -> AcquisitionResult:
    """Build the chapter map for *config*, online or offline."""
    if config.offline:
        return acquire_offline(config, progress_callback)
    if client is not None:
        return acquire_online(config, client, progress_callback)
    with InnClient() as own_client:
        return acquire_online(config, own_client, progress_callback)
