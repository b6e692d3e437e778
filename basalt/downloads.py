"""Fetching and caching Steam and emulator artwork, and running download jobs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path, PurePath, PurePosixPath

import requests

from basalt.artwork_types import ArtworkDownloadJob, ArtworkDownloadResult, ArtworkRunnerKind
from basalt.cache import emulator_artwork_images_cache_dir, steam_artwork_cache_dir
from basalt.imaging import (
    PreparedArtwork,
    is_valid_emulator_artwork,
    is_valid_portrait_artwork,
    prepare_artwork_payload_from_path,
)
from basalt.matching_index import (
    EMULATOR_ARTWORK_USER_AGENT,
    build_emulator_boxart_file_url,
    build_emulator_boxart_title_candidates,
    build_emulator_boxart_url,
    find_best_fuzzy_listing_match_filename,
)
from basalt.titles import stable_hash_hex

STEAM_ARTWORK_USER_AGENT = "Basalt-Steam-Artwork"
MAX_RETRIES = 2
HTTP_TIMEOUT_SECONDS = 12

_CLOUDFLARE_CDN = "https://cdn.cloudflare.steamstatic.com/steam/apps"
_AKAMAI_CDN = "https://cdn.akamai.steamstatic.com/steam/apps"

# (CDN base, remote file name, local file name suffix), in lookup order.
_STEAM_VARIANTS = (
    (_CLOUDFLARE_CDN, "library_600x900_2x.jpg", "_library_600x900_2x.jpg"),
    (_CLOUDFLARE_CDN, "library_600x900.jpg", "_library_600x900.jpg"),
    (_CLOUDFLARE_CDN, "library_600x900.png", "_library_600x900.png"),
    (_AKAMAI_CDN, "library_600x900_2x.jpg", "_library_600x900_2x_alt.jpg"),
    (_AKAMAI_CDN, "library_600x900.jpg", "_library_600x900_alt.jpg"),
    (_AKAMAI_CDN, "library_600x900.png", "_library_600x900_alt.png"),
)

_EMULATOR_ARTWORK_SETS = ("Named_Boxarts", "Named_Titles", "Named_Snaps")
_EMULATOR_DOWNLOAD_EXTENSIONS = ("png", "jpg")
_EMULATOR_CACHE_EXTENSIONS = ("png", "jpg", "jpeg")

EmulatorResolver = Callable[[str], "tuple[str, PurePath | str] | None"]


def _remove(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError:
        pass


def download_url_to_file(
    url: str, target_path: str | Path, user_agent: str = STEAM_ARTWORK_USER_AGENT
) -> bool:
    """Download ``url`` into ``target_path``, retrying server and network errors."""
    target = Path(target_path)
    for _ in range(MAX_RETRIES + 1):
        try:
            response = requests.get(
                url,
                headers={"User-Agent": user_agent},
                timeout=HTTP_TIMEOUT_SECONDS,
                stream=True,
            )
        except requests.RequestException:
            continue

        with response:
            status = response.status_code
            if 500 <= status <= 599:
                continue
            if status >= 400:
                return False
            if not 200 <= status <= 299:
                continue
            try:
                with target.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=65536):
                        handle.write(chunk)
            except (OSError, requests.RequestException):
                _remove(target)
                continue
            return True
    return False


def _fetch_valid(
    url: str, target: Path, user_agent: str, is_valid: Callable[[Path], bool]
) -> bool:
    if download_url_to_file(url, target, user_agent) and target.is_file() and is_valid(target):
        return True
    _remove(target)
    return False


def find_cached_steam_portrait_artwork_path(appid: str) -> Path | None:
    """Return the first cached portrait image for an app id, if any."""
    cache_dir = steam_artwork_cache_dir()
    if cache_dir is None:
        return None
    for _, _, suffix in _STEAM_VARIANTS:
        candidate = cache_dir / f"{appid}{suffix}"
        if candidate.is_file():
            return candidate
    return None


def download_and_cache_steam_portrait_artwork(appid: str) -> Path | None:
    """Return a valid cached portrait for an app id, downloading it if needed."""
    cache_dir = steam_artwork_cache_dir()
    if cache_dir is None:
        return None

    existing = find_cached_steam_portrait_artwork_path(appid)
    if existing is not None:
        return existing

    for base_url, remote_name, suffix in _STEAM_VARIANTS:
        url = f"{base_url}/{appid}/{remote_name}"
        target = cache_dir / f"{appid}{suffix}"
        if target.is_file():
            if is_valid_portrait_artwork(target):
                return target
            _remove(target)
        if _fetch_valid(url, target, STEAM_ARTWORK_USER_AGENT, is_valid_portrait_artwork):
            return target
    return None


def find_cached_emulator_artwork_path(launch_target: str) -> Path | None:
    """Return a valid cached image for an emulator launch target, dropping invalid ones."""
    images_dir = emulator_artwork_images_cache_dir()
    if images_dir is None:
        return None
    image_hash = stable_hash_hex(launch_target)
    for extension in _EMULATOR_CACHE_EXTENSIONS:
        candidate = images_dir / f"{image_hash}.{extension}"
        if not candidate.is_file():
            continue
        if is_valid_emulator_artwork(candidate):
            return candidate
        _remove(candidate)
    return None


def _named_attempts(
    primary_titles: list[str], region_fallback_titles: list[str]
) -> Iterator[tuple[str, str, str]]:
    for artwork_set in _EMULATOR_ARTWORK_SETS:
        for title in primary_titles:
            for extension in _EMULATOR_DOWNLOAD_EXTENSIONS:
                yield artwork_set, title, extension
    for title in region_fallback_titles:
        for extension in _EMULATOR_DOWNLOAD_EXTENSIONS:
            yield "Named_Boxarts", title, extension


def _valid_existing(target: Path) -> bool:
    return target.is_file() and is_valid_emulator_artwork(target)


def download_and_cache_emulator_artwork(
    launch_target: str, system_catalog: str, rom_path: PurePath | str
) -> Path | None:
    """Find emulator box art by name, then by fuzzy listing match, and cache it."""
    rom_stem = PurePath(rom_path).stem
    if not rom_stem:
        return None
    primary_titles, region_fallback_titles = build_emulator_boxart_title_candidates(rom_stem)
    if not primary_titles:
        return None

    images_dir = emulator_artwork_images_cache_dir()
    if images_dir is None:
        return None
    image_hash = stable_hash_hex(launch_target)

    for artwork_set, title, extension in _named_attempts(primary_titles, region_fallback_titles):
        target = images_dir / f"{image_hash}.{extension}"
        if _valid_existing(target):
            return target
        url = build_emulator_boxart_url(system_catalog, artwork_set, title, extension)
        if _fetch_valid(url, target, EMULATOR_ARTWORK_USER_AGENT, is_valid_emulator_artwork):
            return target

    fuzzy_query_titles = [*primary_titles, *region_fallback_titles]
    for artwork_set in _EMULATOR_ARTWORK_SETS:
        best_filename = find_best_fuzzy_listing_match_filename(
            system_catalog, artwork_set, fuzzy_query_titles
        )
        if best_filename is None:
            continue

        extension = PurePosixPath(best_filename).suffix[1:].lower()
        if extension not in _EMULATOR_CACHE_EXTENSIONS:
            extension = "png"

        target = images_dir / f"{image_hash}.{extension}"
        if _valid_existing(target):
            return target
        url = build_emulator_boxart_file_url(system_catalog, artwork_set, best_filename)
        if _fetch_valid(url, target, EMULATOR_ARTWORK_USER_AGENT, is_valid_emulator_artwork):
            return target
    return None


def _prepare_or_discard(path: Path | None) -> PreparedArtwork | None:
    if path is None:
        return None
    payload = prepare_artwork_payload_from_path(path, None)
    if payload is None:
        _remove(path)
    return payload


def _prepare(path: Path | None) -> PreparedArtwork | None:
    if path is None:
        return None
    return prepare_artwork_payload_from_path(path, None)


def process_download_job(
    job: ArtworkDownloadJob, emulator_resolver: EmulatorResolver | None = None
) -> ArtworkDownloadResult:
    """Run one download job, using the cache first.

    ``emulator_resolver`` maps an emulator launch target to
    ``(system_catalog, rom_path)``, or None when the target cannot be resolved.
    """
    if job.runner is ArtworkRunnerKind.STEAM:
        payload = _prepare_or_discard(find_cached_steam_portrait_artwork_path(job.target))
        if payload is None:
            payload = _prepare(download_and_cache_steam_portrait_artwork(job.target))
    elif job.runner is ArtworkRunnerKind.EMULATOR:
        payload = _prepare_or_discard(find_cached_emulator_artwork_path(job.target))
        if payload is None and emulator_resolver is not None:
            resolved = emulator_resolver(job.target)
            if resolved is not None:
                system_catalog, rom_path = resolved
                payload = _prepare(
                    download_and_cache_emulator_artwork(job.target, system_catalog, rom_path)
                )
    else:
        payload = None

    if payload is None:
        return ArtworkDownloadResult.missing(job.key)
    return ArtworkDownloadResult.ready(job.key, payload)