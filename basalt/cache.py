"""Locations of the on-disk artwork caches under the user's home directory."""

from __future__ import annotations

import os
import time
from pathlib import Path

EMULATOR_ARTWORK_IMAGES_PATH = "images"
EMULATOR_ARTWORK_INDEX_PATH = "index"


def _ensure_dir(path: Path) -> Path | None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None
    return path


def _cache_base() -> Path | None:
    home = os.environ.get("HOME")
    if home is None:
        return None
    return Path(home) / ".basalt" / "cache"


def _emulator_artwork_cache_root_dir() -> Path | None:
    base = _cache_base()
    if base is None:
        return None
    return _ensure_dir(base / "emulator_artwork")


def steam_artwork_cache_dir() -> Path | None:
    """Create and return the Steam artwork cache directory, or None if impossible."""
    base = _cache_base()
    if base is None:
        return None
    return _ensure_dir(base / "steam_artwork")


def emulator_artwork_images_cache_dir() -> Path | None:
    """Create and return the emulator artwork image cache directory."""
    root = _emulator_artwork_cache_root_dir()
    if root is None:
        return None
    return _ensure_dir(root / EMULATOR_ARTWORK_IMAGES_PATH)


def emulator_artwork_index_cache_dir() -> Path | None:
    """Create and return the emulator thumbnail index cache directory."""
    root = _emulator_artwork_cache_root_dir()
    if root is None:
        return None
    return _ensure_dir(root / EMULATOR_ARTWORK_INDEX_PATH)


def current_unix_timestamp_seconds() -> int:
    """Whole seconds since the Unix epoch, never negative."""
    return max(int(time.time()), 0)