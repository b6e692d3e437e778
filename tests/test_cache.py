import time

import pytest

from basalt.cache import (
    current_unix_timestamp_seconds,
    emulator_artwork_images_cache_dir,
    emulator_artwork_index_cache_dir,
    steam_artwork_cache_dir,
)


@pytest.fixture
def home(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


def test_steam_cache_dir_is_created(home):
    result = steam_artwork_cache_dir()
    assert result == home / ".basalt" / "cache" / "steam_artwork"
    assert result.is_dir()


def test_emulator_images_cache_dir_is_created(home):
    result = emulator_artwork_images_cache_dir()
    assert result == home / ".basalt" / "cache" / "emulator_artwork" / "images"
    assert result.is_dir()


def test_emulator_index_cache_dir_is_created(home):
    result = emulator_artwork_index_cache_dir()
    assert result == home / ".basalt" / "cache" / "emulator_artwork" / "index"
    assert result.is_dir()


def test_repeated_calls_return_same_dir(home):
    expected = home / ".basalt" / "cache" / "steam_artwork"
    first = steam_artwork_cache_dir()
    (first / "marker").write_text("kept")
    second = steam_artwork_cache_dir()
    assert first == expected
    assert second == expected
    assert (second / "marker").read_text() == "kept"


@pytest.mark.parametrize(
    "func",
    [steam_artwork_cache_dir, emulator_artwork_images_cache_dir, emulator_artwork_index_cache_dir],
)
def test_missing_home_gives_none(func, monkeypatch):
    monkeypatch.delenv("HOME", raising=False)
    assert func() is None


@pytest.mark.parametrize(
    "func",
    [steam_artwork_cache_dir, emulator_artwork_images_cache_dir, emulator_artwork_index_cache_dir],
)
def test_uncreatable_dir_gives_none(func, tmp_path, monkeypatch):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory")
    monkeypatch.setenv("HOME", str(blocker))
    assert func() is None


def test_timestamp_is_current():
    before = int(time.time())
    value = current_unix_timestamp_seconds()
    after = int(time.time())
    assert before <= value <= after