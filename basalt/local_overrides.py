"""Finding user-supplied artwork files in a local artwork directory."""

from __future__ import annotations

from pathlib import Path, PurePath

from basalt.artwork_types import ArtworkRequest, ArtworkRunnerKind
from basalt.titles import extract_steam_appid, normalize_matching_title

LOCAL_ARTWORK_EXTENSIONS = ("png", "jpg", "jpeg")

_ASCII_ALNUM = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789")
_SEPARATORS = frozenset(" -_")
_ASCII_UPPER_TO_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def normalize_local_artwork_basename(raw_value: str) -> str:
    """Lowercase ASCII words; spaces, dashes and underscores separate them."""
    pieces: list[str] = []
    previous_was_space = False
    for char in raw_value.strip():
        if char in _ASCII_ALNUM:
            pieces.append(char.lower())
            previous_was_space = False
        elif char in _SEPARATORS and not previous_was_space:
            pieces.append(" ")
            previous_was_space = True
    return " ".join("".join(pieces).split())


def is_supported_local_artwork_extension(extension: str) -> bool:
    """True for png, jpg and jpeg in any ASCII case."""
    return extension.translate(_ASCII_UPPER_TO_LOWER) in LOCAL_ARTWORK_EXTENSIONS


def _push_candidate(candidates: list[str], raw_value: str) -> None:
    normalized = normalize_local_artwork_basename(raw_value)
    if normalized and normalized not in candidates:
        candidates.append(normalized)


def build_local_artwork_name_candidates(
    request: ArtworkRequest, rom_path: PurePath | str | None = None
) -> list[str]:
    """File base names, in priority order, under which local artwork may be stored."""
    candidates: list[str] = []
    _push_candidate(candidates, request.display_name)
    _push_candidate(candidates, request.key)
    _push_candidate(candidates, request.target)

    if request.runner is ArtworkRunnerKind.STEAM:
        appid = extract_steam_appid(request.target)
        if appid is not None:
            _push_candidate(candidates, appid)

    if request.runner is ArtworkRunnerKind.EMULATOR and rom_path is not None:
        rom = PurePath(rom_path)
        _push_candidate(candidates, rom.stem)
        _push_candidate(candidates, rom.name)

    normalized_title = normalize_matching_title(request.display_name)
    _push_candidate(candidates, normalized_title)
    _push_candidate(candidates, normalized_title.replace(" ", "_"))
    _push_candidate(candidates, normalized_title.replace(" ", "-"))
    return candidates


def find_local_game_artwork_path(
    request: ArtworkRequest,
    artwork_dir: str | Path,
    rom_path: PurePath | str | None = None,
) -> Path | None:
    """Return a local artwork file for the request, creating the directory if needed."""
    directory = Path(artwork_dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError:
        return None

    candidate_bases = build_local_artwork_name_candidates(request, rom_path)
    for base_name in candidate_bases:
        for extension in LOCAL_ARTWORK_EXTENSIONS:
            candidate = directory / f"{base_name}.{extension}"
            if candidate.is_file():
                return candidate

    try:
        entries = sorted(directory.iterdir())
    except OSError:
        return None

    for path in entries:
        if not path.is_file():
            continue
        if not is_supported_local_artwork_extension(path.suffix[1:]):
            continue
        file_stem = normalize_local_artwork_basename(path.stem)
        if file_stem and file_stem in candidate_bases:
            return path
    return None