"""Title normalisation, hashing and identifier helpers for artwork lookup."""

from __future__ import annotations

import os

_FNV_OFFSET_BASIS = 0xCBF29CE484222325
_FNV_PRIME = 0x00000100000001B3
_U64_MASK = 0xFFFFFFFFFFFFFFFF

_ASCII_DIGITS = frozenset("0123456789")
_ASCII_ALNUM = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")
_URL_UNRESERVED = frozenset(b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789-_.~")

_STEAM_APPID_PREFIXES = (
    "steam://rungameid/",
    "steam://run/",
    "steam:appid:",
    "steam-appid:",
)

_OPENERS = {"(": 0, "[": 1, "{": 2}
_CLOSERS = {")": 0, "]": 1, "}": 2}


def _is_ascii_digits(text: str) -> bool:
    return all(char in _ASCII_DIGITS for char in text)


def strip_bracketed_segments(raw: str) -> str:
    """Remove text inside (), [] and {} together with the brackets themselves."""
    depths = [0, 0, 0]
    kept = []
    for char in raw:
        if char in _OPENERS:
            depths[_OPENERS[char]] += 1
        elif char in _CLOSERS:
            slot = _CLOSERS[char]
            depths[slot] = max(depths[slot] - 1, 0)
        elif not any(depths):
            kept.append(char)
    return "".join(kept)


def normalize_matching_title(raw: str) -> str:
    """Reduce a title to lowercase ASCII words separated by single spaces."""
    stripped = strip_bracketed_segments(raw)
    pieces = []
    previous_was_space = False
    for char in stripped:
        if char in _ASCII_ALNUM:
            pieces.append(char.lower())
            previous_was_space = False
        elif not previous_was_space:
            pieces.append(" ")
            previous_was_space = True
    return " ".join("".join(pieces).split())


def stable_hash_hex(text: str) -> str:
    """Return the 64-bit FNV-1a hash of the UTF-8 text as 16 hex digits."""
    value = _FNV_OFFSET_BASIS
    for byte in text.encode("utf-8"):
        value ^= byte
        value = (value * _FNV_PRIME) & _U64_MASK
    return f"{value:016x}"


def encode_url_path_segment(raw: str) -> str:
    """Percent-encode every byte except the RFC 3986 unreserved characters."""
    return "".join(
        chr(byte) if byte in _URL_UNRESERVED else f"%{byte:02X}"
        for byte in raw.encode("utf-8")
    )


def extract_steam_appid(launch_target: str) -> str | None:
    """Pull a numeric Steam app id out of a launch target, if it holds one."""
    trimmed = launch_target.strip()
    if not trimmed:
        return None
    if _is_ascii_digits(trimmed):
        return trimmed
    for prefix in _STEAM_APPID_PREFIXES:
        if trimmed.startswith(prefix):
            value = trimmed[len(prefix):]
            if _is_ascii_digits(value):
                return value
    return None


def compute_artwork_worker_counts(host_threads: int) -> tuple[int, int]:
    """Return ``(steam_workers, emulator_workers)`` for a host thread count."""
    clamped_threads = max(host_threads, 2)
    emulator_workers = min(max(clamped_threads // 2, 2), 12)
    if clamped_threads >= 16:
        steam_workers = 4
    elif clamped_threads >= 8:
        steam_workers = 3
    else:
        steam_workers = 2
    return steam_workers, emulator_workers


def detect_host_thread_count() -> int:
    """Return the number of threads this process may run on, or 4 if unknown."""
    affinity = getattr(os, "sched_getaffinity", None)
    if affinity is not None:
        try:
            count = len(affinity(0))
        except OSError:
            count = 0
        if count > 0:
            return count
    return os.cpu_count() or 4