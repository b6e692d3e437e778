"""Title candidates, thumbnail URLs and fuzzy matching against thumbnail listings."""

from __future__ import annotations

import re
import threading
from pathlib import Path, PurePosixPath

import requests

from basalt.cache import current_unix_timestamp_seconds, emulator_artwork_index_cache_dir
from basalt.titles import (
    encode_url_path_segment,
    normalize_matching_title,
    stable_hash_hex,
    strip_bracketed_segments,
)

THUMBNAIL_BASE_URL = "https://thumbnails.libretro.com"
EMULATOR_ARTWORK_USER_AGENT = "Basalt-Emulator-Artwork"
EMULATOR_ARTWORK_INDEX_TTL_SECONDS = 60 * 60 * 24
LISTING_FETCH_TIMEOUT_SECONDS = 18
FUZZY_MATCH_THRESHOLD = 0.58

_REGION_TAGS = ("(USA)", "(Europe)", "(Japan)", "(World)")
_TRAILING_ARTICLES = (", The", ", A", ", An")
_LEADING_ARTICLES = ("The ", "A ", "An ")
_IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")
_TIMESTAMP_HEADER = "#ts="
_DIGITS = re.compile(r"[0-9]+")

_ASCII_UPPER_TO_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)

_listing_cache: dict[str, list[str]] = {}
_listing_cache_lock = threading.Lock()


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_UPPER_TO_LOWER)


def _join_words(text: str) -> str:
    return " ".join(text.split())


def _push_unique_candidate(candidates: list[str], candidate: str) -> None:
    normalized = _join_words(candidate)
    if not normalized:
        return
    lowered = _ascii_lower(normalized)
    if any(_ascii_lower(existing) == lowered for existing in candidates):
        return
    candidates.append(normalized)


def _move_trailing_article_to_leading(value: str) -> str | None:
    for article in _TRAILING_ARTICLES:
        if value.endswith(article):
            base = value[: -len(article)]
            article_word = article.lstrip(",").strip()
            return _join_words(f"{article_word} {base.strip()}")
    return None


def _move_leading_article_to_trailing(value: str) -> str | None:
    for article in _LEADING_ARTICLES:
        if value.startswith(article):
            base = value[len(article):]
            return _join_words(f"{base.strip()}, {article.strip()}")
    return None


def build_emulator_boxart_title_candidates(rom_stem: str) -> tuple[list[str], list[str]]:
    """Return ``(primary_titles, region_fallback_titles)`` to try for a ROM name."""
    base_trimmed = rom_stem.strip()
    if not base_trimmed:
        return [], []

    stripped = _join_words(strip_bracketed_segments(base_trimmed))

    primary: list[str] = []
    _push_unique_candidate(primary, base_trimmed)
    _push_unique_candidate(primary, stripped)

    if stripped:
        softened = _join_words(stripped.replace(":", " -").replace(" - ", " "))
        _push_unique_candidate(primary, softened)

        without_the = stripped
        for prefix in ("The ", "the "):
            if stripped.startswith(prefix):
                without_the = stripped[len(prefix):]
                break
        without_the = without_the.strip()
        _push_unique_candidate(primary, without_the)

        trailing = _move_leading_article_to_trailing(without_the)
        if trailing is not None:
            _push_unique_candidate(primary, trailing)

        leading = _move_trailing_article_to_leading(without_the)
        if leading is not None:
            _push_unique_candidate(primary, leading)

        if " and " in without_the:
            _push_unique_candidate(primary, without_the.replace(" and ", " & "))
        if " & " in without_the:
            _push_unique_candidate(primary, without_the.replace(" & ", " and "))

    region_fallback: list[str] = []
    base_for_region = stripped or base_trimmed
    if base_for_region:
        for region_tag in _REGION_TAGS:
            _push_unique_candidate(region_fallback, f"{base_for_region} {region_tag}")

    return primary, region_fallback


def build_emulator_boxart_url(
    system_catalog: str, artwork_set: str, title: str, extension: str
) -> str:
    """URL of a named thumbnail with the given extension."""
    return (
        f"{THUMBNAIL_BASE_URL}/{encode_url_path_segment(system_catalog)}/"
        f"{encode_url_path_segment(artwork_set)}/{encode_url_path_segment(title)}.{extension}"
    )


def build_emulator_boxart_file_url(system_catalog: str, artwork_set: str, file_name: str) -> str:
    """URL of a thumbnail file taken verbatim from a listing."""
    return (
        f"{THUMBNAIL_BASE_URL}/{encode_url_path_segment(system_catalog)}/"
        f"{encode_url_path_segment(artwork_set)}/{encode_url_path_segment(file_name)}"
    )


def fuzzy_title_similarity(left: str, right: str) -> float:
    """Score two normalised titles between 0 and 1."""
    if left == right:
        return 1.0

    left_tokens = left.split()
    right_tokens = right.split()
    if not left_tokens or not right_tokens:
        return 0.0

    matches = sum(1 for token in left_tokens if token in right_tokens)
    union = len(left_tokens) + len(right_tokens) - matches
    token_jaccard = matches / union if union else 0.0

    contains_bonus = 1.0 if (right in left or left in right) else 0.0
    prefix_bonus = 1.0 if (left.startswith(right) or right.startswith(left)) else 0.0

    left_len = len(left.encode("utf-8"))
    right_len = len(right.encode("utf-8"))
    length_ratio = min(left_len, right_len) / max(left_len, right_len)

    return (
        token_jaccard * 0.55
        + contains_bonus * 0.20
        + prefix_bonus * 0.15
        + length_ratio * 0.10
    )


def _hex_value(byte: int) -> int | None:
    if 0x30 <= byte <= 0x39:
        return byte - 0x30
    if 0x61 <= byte <= 0x66:
        return byte - 0x61 + 10
    if 0x41 <= byte <= 0x46:
        return byte - 0x41 + 10
    return None


def decode_url_component(value: str) -> str:
    """Decode percent escapes; malformed escapes are kept as they are."""
    data = value.encode("utf-8")
    output = bytearray()
    index = 0
    while index < len(data):
        if data[index] == 0x25 and index + 2 < len(data):
            high = _hex_value(data[index + 1])
            low = _hex_value(data[index + 2])
            if high is not None and low is not None:
                output.append((high << 4) | low)
                index += 3
                continue
        output.append(data[index])
        index += 1
    return output.decode("utf-8", errors="replace")


def parse_thumbnail_listing(body: str) -> list[str] | None:
    """Extract image file names from the links of a directory index page."""
    listing: list[str] = []
    marker = 'href="'
    cursor = 0
    while True:
        start = body.find(marker, cursor)
        if start < 0:
            break
        value_start = start + len(marker)
        value_end = body.find('"', value_start)
        if value_end < 0:
            break
        href_value = body[value_start:value_end]
        cursor = value_end + 1

        if href_value.startswith(("?", "/")):
            continue

        decoded = decode_url_component(href_value.replace("&amp;", "&"))
        file_name = decoded.split("/")[-1].strip()
        if not file_name:
            continue
        if not file_name.lower().endswith(_IMAGE_SUFFIXES):
            continue
        listing.append(file_name)

    return listing or None


def pick_best_fuzzy_match(listing: list[str], query_titles: list[str]) -> str | None:
    """Return the listing entry most similar to any query title, if it scores high enough."""
    if not listing:
        return None

    query_norms = [norm for norm in map(normalize_matching_title, query_titles) if norm]
    if not query_norms:
        return None

    best_score = 0.0
    best_filename: str | None = None
    for file_name in listing:
        stem = PurePosixPath(file_name).stem
        if not stem:
            continue
        candidate_norm = normalize_matching_title(stem)
        if not candidate_norm:
            continue

        score = 0.0
        for query_norm in query_norms:
            score = max(score, fuzzy_title_similarity(query_norm, candidate_norm))
            if score >= 0.999:
                break

        if score > best_score:
            best_score = score
            best_filename = file_name

    return best_filename if best_score >= FUZZY_MATCH_THRESHOLD else None


def _listing_cache_key(system_catalog: str, artwork_set: str) -> str:
    return f"{system_catalog}|{artwork_set}"


def _listing_cache_file_path(system_catalog: str, artwork_set: str) -> Path | None:
    cache_dir = emulator_artwork_index_cache_dir()
    if cache_dir is None:
        return None
    key = _listing_cache_key(system_catalog, artwork_set)
    return cache_dir / f"{stable_hash_hex(key)}.tsv"


def _read_listing_from_disk(system_catalog: str, artwork_set: str) -> list[str] | None:
    file_path = _listing_cache_file_path(system_catalog, artwork_set)
    if file_path is None:
        return None
    try:
        contents = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None

    lines = contents.split("\n")
    header = lines[0].rstrip("\r")
    if not header.startswith(_TIMESTAMP_HEADER):
        return None
    stamp = header[len(_TIMESTAMP_HEADER):]
    if not _DIGITS.fullmatch(stamp):
        return None
    timestamp = int(stamp)

    age = max(current_unix_timestamp_seconds() - timestamp, 0)
    if age > EMULATOR_ARTWORK_INDEX_TTL_SECONDS:
        return None

    listing = [line.strip() for line in lines[1:] if line.strip()]
    return listing or None


def _write_listing_to_disk(system_catalog: str, artwork_set: str, listing: list[str]) -> None:
    file_path = _listing_cache_file_path(system_catalog, artwork_set)
    if file_path is None:
        raise OSError("Failed to resolve thumbnail listing cache file path")
    lines = [f"{_TIMESTAMP_HEADER}{current_unix_timestamp_seconds()}", *listing]
    file_path.write_bytes(("\n".join(lines) + "\n").encode("utf-8"))


def _fetch_listing_from_remote(system_catalog: str, artwork_set: str) -> list[str] | None:
    directory_url = (
        f"{THUMBNAIL_BASE_URL}/{encode_url_path_segment(system_catalog)}/"
        f"{encode_url_path_segment(artwork_set)}/"
    )
    try:
        response = requests.get(
            directory_url,
            headers={"User-Agent": EMULATOR_ARTWORK_USER_AGENT},
            timeout=LISTING_FETCH_TIMEOUT_SECONDS,
        )
        if not 200 <= response.status_code <= 299:
            return None
        body = response.text
    except requests.RequestException:
        return None
    return parse_thumbnail_listing(body)


def load_thumbnail_listing(system_catalog: str, artwork_set: str) -> list[str] | None:
    """Return the thumbnail file names of a set, from memory, disk or the network."""
    key = _listing_cache_key(system_catalog, artwork_set)
    with _listing_cache_lock:
        existing = _listing_cache.get(key)
    if existing is not None:
        return list(existing)

    listing = _read_listing_from_disk(system_catalog, artwork_set)
    if listing is None:
        listing = _fetch_listing_from_remote(system_catalog, artwork_set)
        if listing is None:
            return None
        try:
            _write_listing_to_disk(system_catalog, artwork_set, listing)
        except OSError:
            pass

    with _listing_cache_lock:
        _listing_cache[key] = list(listing)
    return list(listing)


def find_best_fuzzy_listing_match_filename(
    system_catalog: str, artwork_set: str, query_titles: list[str]
) -> str | None:
    """Find the listed thumbnail file that best matches one of the query titles."""
    listing = load_thumbnail_listing(system_catalog, artwork_set)
    if not listing:
        return None
    return pick_best_fuzzy_match(listing, query_titles)