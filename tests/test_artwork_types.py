import pytest

from basalt.artwork_types import (
    ArtworkDownloadJob,
    ArtworkDownloadResult,
    ArtworkRequest,
    ArtworkRunnerKind,
    GameRef,
)
from basalt.titles import stable_hash_hex


@pytest.mark.parametrize(
    "game, expected",
    [
        (GameRef("MattMC", "bash", "/x"), ArtworkRunnerKind.MATTMC),
        (GameRef("mattmc", "steam", "440"), ArtworkRunnerKind.MATTMC),
        (GameRef("Portal", "steam", "400"), ArtworkRunnerKind.STEAM),
        (GameRef("Zelda", "emulator", "snes|/z.sfc"), ArtworkRunnerKind.EMULATOR),
        (GameRef("Script", "bash", "/run.sh"), ArtworkRunnerKind.NOOP),
    ],
)
def test_from_game(game, expected):
    assert ArtworkRunnerKind.from_game(game) is expected


def test_mattmc_request_uses_default_key():
    game = GameRef("MattMC", "bash", "/games/mattmc")
    request = ArtworkRunnerKind.MATTMC.build_request(game)
    assert request == ArtworkRequest("mattmc:default", "", "MattMC", ArtworkRunnerKind.MATTMC)


def test_steam_request_from_url():
    game = GameRef("Team Fortress", "steam", "steam://rungameid/440")
    request = ArtworkRunnerKind.STEAM.build_request(game)
    assert request.key == "steam:440"
    assert request.target == "440"
    assert request.display_name == "Team Fortress"
    assert request.runner is ArtworkRunnerKind.STEAM


def test_steam_request_without_appid_is_none():
    game = GameRef("Odd", "steam", "steam://run/abc")
    assert ArtworkRunnerKind.STEAM.build_request(game) is None


def test_emulator_request_key_is_versioned_hash():
    target = "snes|/roms/snes/Zelda (USA).sfc"
    request = ArtworkRunnerKind.EMULATOR.build_request(GameRef("Zelda", "emulator", target))
    assert request.key == f"emulator:v2:{stable_hash_hex(target)}"
    assert request.target == target


def test_noop_has_no_request():
    assert ArtworkRunnerKind.NOOP.build_request(GameRef("x", "bash", "y")) is None


@pytest.mark.parametrize("kind", [ArtworkRunnerKind.STEAM, ArtworkRunnerKind.EMULATOR])
def test_download_job_for_downloading_kinds(kind):
    assert kind.to_download_job("k", "t") == ArtworkDownloadJob("k", "t", kind)


@pytest.mark.parametrize("kind", [ArtworkRunnerKind.MATTMC, ArtworkRunnerKind.NOOP])
def test_no_download_job_for_other_kinds(kind):
    assert kind.to_download_job("k", "t") is None


def test_download_result_ready_and_missing():
    ready = ArtworkDownloadResult.ready("steam:440", object())
    missing = ArtworkDownloadResult.missing("steam:440")
    assert ready.is_ready is True
    assert missing.is_ready is False
    assert missing.key == "steam:440"