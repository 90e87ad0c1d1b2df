"""Shared file-name and file I/O helpers."""
from __future__ import annotations

import re
from pathlib import Path

MAX_NAME_LENGTH = 120
# Leaves room for "{index}_" and ".txt" under the 255-byte NAME_MAX.
MAX_NAME_BYTES = 200

# Removed outright, no substitute.
_STRIPPED = re.compile(r'[?*"<>|]')
# Replaced with a dash.
_REPLACED = re.compile(r"[/\\:\x00-\x1f]")


def sanitize(text: str | None) -> str:
    """Turn arbitrary text into a file-name-safe string.

    ``? * " < > |`` are dropped, ``/ \\ :`` and control characters become
    ``-``.  The result is trimmed and cut to 120 characters and 200 UTF-8
    bytes; blank input gives ``"untitled"``.
    """
    if not text:
        return "untitled"
    cleaned = _STRIPPED.sub("", text.strip())
    cleaned = _REPLACED.sub("-", cleaned)
    cleaned = cleaned.strip()[:MAX_NAME_LENGTH]
    encoded = cleaned.encode("utf-8")
    if len(encoded) > MAX_NAME_BYTES:
        cleaned = encoded[:MAX_NAME_BYTES].decode("utf-8", errors="ignore")
    cleaned = cleaned.strip()
    return cleaned or "untitled"


def read_text(path: Path) -> str:
    """Read a UTF-8 file exactly as stored (no newline translation)."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: Path, content: str) -> Path:
    """Write a UTF-8 file exactly as given, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    return path
