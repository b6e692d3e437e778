from pathlib import PurePath

import pytest

from basalt.artwork_types import ArtworkRequest, ArtworkRunnerKind
from basalt.local_overrides import (
    build_local_artwork_name_candidates,
    find_local_game_artwork_path,
    is_supported_local_artwork_extension,
    normalize_local_artwork_basename,
)


@pytest.fixture
def steam_request():
    return ArtworkRequest(
        key="steam:440",
        target="steam://rungameid/440",
        display_name="Team Fortress 2",
        runner=ArtworkRunnerKind.STEAM,
    )


def test_normalize_collapses_separators():
    assert normalize_local_artwork_basename("  Super_Mario--Bros!! ") == "super mario bros"


@pytest.mark.parametrize("raw", ["Zelda: A Link", "a__b--c", "  ", "Ünïcode Name 3"])
def test_normalize_is_idempotent(raw):
    once = normalize_local_artwork_basename(raw)
    assert normalize_local_artwork_basename(once) == once
    assert "  " not in once
    assert once == once.strip()


@pytest.mark.parametrize("ext,expected", [("png", True), ("JPG", True), ("Jpeg", True), ("gif", False), ("", False)])
def test_supported_extensions(ext, expected):
    assert is_supported_local_artwork_extension(ext) is expected


def test_candidates_order_and_uniqueness(steam_request):
    candidates = build_local_artwork_name_candidates(steam_request)
    assert candidates[0] == normalize_local_artwork_basename("Team Fortress 2")
    assert "440" in candidates
    assert len(candidates) == len(set(candidates))
    assert all(candidates)


def test_emulator_candidates_include_rom_names():
    request = ArtworkRequest(
        key="emulator:v2:abc", target="t", display_name="Zelda", runner=ArtworkRunnerKind.EMULATOR
    )
    rom = PurePath("roms/Zelda (USA).sfc")
    with_rom = build_local_artwork_name_candidates(request, rom)
    without_rom = build_local_artwork_name_candidates(request)
    stem_name = normalize_local_artwork_basename(rom.stem)
    file_name = normalize_local_artwork_basename(rom.name)
    assert stem_name in with_rom
    assert file_name in with_rom
    assert stem_name not in without_rom


def test_find_direct_match(tmp_path, steam_request):
    base = normalize_local_artwork_basename(steam_request.display_name)
    artwork = tmp_path / f"{base}.png"
    artwork.write_bytes(b"x")
    assert find_local_game_artwork_path(steam_request, tmp_path) == artwork


def test_find_by_directory_scan(tmp_path, steam_request):
    artwork = tmp_path / "Team_Fortress-2.JPG"
    artwork.write_bytes(b"x")
    assert find_local_game_artwork_path(steam_request, tmp_path) == artwork


def test_find_by_appid(tmp_path, steam_request):
    artwork = tmp_path / "440.jpeg"
    artwork.write_bytes(b"x")
    assert find_local_game_artwork_path(steam_request, tmp_path) == artwork


def test_unsupported_extension_is_ignored(tmp_path, steam_request):
    (tmp_path / "Team Fortress 2.gif").write_bytes(b"x")
    assert find_local_game_artwork_path(steam_request, tmp_path) is None


def test_missing_directory_is_created(tmp_path, steam_request):
    directory = tmp_path / "a" / "b"
    assert find_local_game_artwork_path(steam_request, directory) is None
    assert directory.is_dir()