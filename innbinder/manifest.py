"""Manifest store: ``chapters/manifest.json``.

The manifest records which cache file holds each chapter of each volume.  It
is rewritten in full after every online run and is the only input, besides the
cache files, of an offline rebuild.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from innbinder.errors import ManifestError
from innbinder.models import CacheManifest, CachedChapterRef

log = logging.getLogger("innbinder.manifest")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def manifest_to_dict(manifest: CacheManifest) -> dict:
    return {
        "tocUrl": manifest.toc_url,
        "generatedUtc": manifest.generated_utc,
        "volumes": {
            title: [
                {"index": ref.index, "name": ref.name, "fileName": ref.file_name}
                for ref in refs
            ]
            for title, refs in manifest.volumes.items()
        },
    }


def manifest_from_dict(data) -> CacheManifest:
    """Validate decoded JSON and build a :class:`CacheManifest`.

    Raises ManifestError if the shape is wrong or there are no volumes.
    """
    if not isinstance(data, dict):
        raise ManifestError("Manifest root must be an object")

    toc_url = data.get("tocUrl")
    generated = data.get("generatedUtc")
    volumes = data.get("volumes")
    if not isinstance(toc_url, str) or not isinstance(generated, str):
        raise ManifestError("Manifest needs string 'tocUrl' and 'generatedUtc'")
    if not isinstance(volumes, dict):
        raise ManifestError("Manifest 'volumes' must be an object")
    if not volumes:
        raise ManifestError("Manifest lists no volumes")

    parsed: dict[str, list[CachedChapterRef]] = {}
    for title, entries in volumes.items():
        if not isinstance(entries, list):
            raise ManifestError(f"Volume {title!r}: chapters must be a list")
        refs = []
        for expected, entry in enumerate(entries, start=1):
            if not isinstance(entry, dict):
                raise ManifestError(f"Volume {title!r}: chapter {expected} is not an object")
            index = entry.get("index")
            name = entry.get("name")
            file_name = entry.get("fileName")
            # bool is an int subclass
            if type(index) is not int or index != expected:
                raise ManifestError(
                    f"Volume {title!r}: expected chapter index {expected}, got {index!r}"
                )
            if not isinstance(name, str) or not isinstance(file_name, str) or not file_name:
                raise ManifestError(
                    f"Volume {title!r}: chapter {expected} needs 'name' and 'fileName'"
                )
            refs.append(CachedChapterRef(index, name, file_name))
        parsed[title] = refs

    return CacheManifest(toc_url=toc_url, generated_utc=generated, volumes=parsed)


def load_manifest(path: Path) -> CacheManifest:
    """Load and validate a manifest.  Every failure is a ManifestError."""
    path = Path(path)
    if not path.is_file():
        raise ManifestError(f"Manifest not found: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ManifestError(f"Cannot read manifest {path}: {e}") from e

    manifest = manifest_from_dict(data)
    log.debug("Loaded manifest %s (%d volumes)", path, len(manifest.volumes))
    return manifest


def save_manifest(path: Path, manifest: CacheManifest) -> Path:
    """Overwrite *path* with the full manifest, pretty-printed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(manifest_to_dict(manifest), f, indent=2, ensure_ascii=False)
        f.write("\n")
    log.debug("Saved manifest %s (%d volumes)", path, len(manifest.volumes))
    return path
