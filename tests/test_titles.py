import string
from urllib.parse import unquote

import pytest

from basalt.titles import (
    compute_artwork_worker_counts,
    detect_host_thread_count,
    encode_url_path_segment,
    extract_steam_appid,
    normalize_matching_title,
    stable_hash_hex,
    strip_bracketed_segments,
)


def test_strip_bracketed_segments_removes_all_bracket_kinds():
    assert strip_bracketed_segments("Game (USA) [!] {beta}") == "Game   "


def test_strip_bracketed_segments_handles_nesting_and_stray_closers():
    assert strip_bracketed_segments("A (x [y] z) B") == "A  B"
    assert strip_bracketed_segments("A) B") == "A B"


def test_normalize_ignores_bracketed_tags_and_case():
    assert normalize_matching_title("Super Mario Bros. (USA) [!]") == normalize_matching_title(
        "super mario bros"
    )


def test_normalize_is_idempotent():
    once = normalize_matching_title("The Legend of Zelda: A Link to the Past (Rev 1)")
    assert normalize_matching_title(once) == once


def test_normalize_output_is_lowercase_ascii_words():
    result = normalize_matching_title("  Pokémon -- Red/Blue!!  ")
    allowed = set(string.ascii_lowercase + string.digits + " ")
    assert set(result) <= allowed
    assert "  " not in result
    assert result == result.strip()


def test_normalize_empty_input():
    assert normalize_matching_title("(only tags)") == ""


def test_stable_hash_of_empty_is_offset_basis():
    assert stable_hash_hex("") == "cbf29ce484222325"


def test_stable_hash_known_vector():
    assert stable_hash_hex("a") == "af63dc4c8601ec8c"


def test_stable_hash_shape_and_determinism():
    value = stable_hash_hex("emulator|/roms/snes/game.sfc")
    assert len(value) == 16
    assert set(value) <= set("0123456789abcdef")
    assert value == stable_hash_hex("emulator|/roms/snes/game.sfc")
    assert value != stable_hash_hex("emulator|/roms/snes/game2.sfc")


def test_encode_keeps_unreserved_characters():
    assert encode_url_path_segment("abc-XYZ_0.9~") == "abc-XYZ_0.9~"


def test_encode_space_uses_uppercase_hex():
    assert encode_url_path_segment(" ") == "%20"


@pytest.mark.parametrize(
    "raw",
    ["Nintendo - Super Nintendo Entertainment System", "Mario & Luigi: Ω", "a/b?c#d"],
)
def test_encode_round_trips_and_uses_safe_characters(raw):
    encoded = encode_url_path_segment(raw)
    assert unquote(encoded) == raw
    assert set(encoded) <= set(string.ascii_letters + string.digits + "-_.~%")


@pytest.mark.parametrize(
    "target, expected",
    [
        ("  12345 ", "12345"),
        ("steam://rungameid/440", "440"),
        ("steam://run/570", "570"),
        ("steam:appid:730", "730"),
        ("steam-appid:10", "10"),
    ],
)
def test_extract_steam_appid_accepted_forms(target, expected):
    assert extract_steam_appid(target) == expected


@pytest.mark.parametrize("target", ["", "   ", "abc", "steam://run/abc", "steam://other/440", "٣٤٥"])
def test_extract_steam_appid_rejects(target):
    assert extract_steam_appid(target) is None


def test_extract_steam_appid_bare_prefix_gives_empty_id():
    assert extract_steam_appid("steam:appid:") == ""


def test_worker_counts_low_thread_counts_are_clamped():
    assert compute_artwork_worker_counts(0) == compute_artwork_worker_counts(2)
    assert compute_artwork_worker_counts(1) == compute_artwork_worker_counts(2)


@pytest.mark.parametrize("threads", [1, 2, 3, 7, 8, 15, 16, 24, 64, 256])
def test_worker_counts_are_bounded(threads):
    steam, emulator = compute_artwork_worker_counts(threads)
    assert steam in (2, 3, 4)
    assert 2 <= emulator <= 12


def test_worker_counts_are_monotonic():
    previous = compute_artwork_worker_counts(2)
    for threads in range(3, 64):
        current = compute_artwork_worker_counts(threads)
        assert current[0] >= previous[0]
        assert current[1] >= previous[1]
        previous = current


def test_emulator_workers_cap_at_twelve():
    assert compute_artwork_worker_counts(1000)[1] == 12


def test_detect_host_thread_count_positive():
    assert detect_host_thread_count() >= 1