"""Runner kinds and the request, job and result records of the artwork pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any

from basalt.titles import extract_steam_appid, stable_hash_hex

MATTMC_ARTWORK_KEY = "mattmc:default"
EMULATOR_ARTWORK_KEY_VERSION = "v2"

_ASCII_UPPER_TO_LOWER = str.maketrans(
    "ABCDEFGHIJKLMNOPQRSTUVWXYZ", "abcdefghijklmnopqrstuvwxyz"
)


def _ascii_lower(text: str) -> str:
    return text.translate(_ASCII_UPPER_TO_LOWER)


@dataclass(frozen=True)
class GameRef:
    """The parts of a library entry the artwork pipeline looks at."""

    name: str
    runner_kind: str
    launch_target: str


@dataclass(frozen=True)
class ArtworkRequest:
    """A request for the artwork of one game."""

    key: str
    target: str
    display_name: str
    runner: "ArtworkRunnerKind"


@dataclass(frozen=True)
class ArtworkDownloadJob:
    """Work handed to a download worker."""

    key: str
    target: str
    runner: "ArtworkRunnerKind"


@dataclass(frozen=True)
class ArtworkDownloadResult:
    """Outcome of a download job: a prepared payload, or none when missing."""

    key: str
    payload: Any = None

    @property
    def is_ready(self) -> bool:
        return self.payload is not None

    @classmethod
    def ready(cls, key: str, payload: Any) -> "ArtworkDownloadResult":
        return cls(key=key, payload=payload)

    @classmethod
    def missing(cls, key: str) -> "ArtworkDownloadResult":
        return cls(key=key, payload=None)


class ArtworkRunnerKind(enum.Enum):
    """Where a game's artwork comes from."""

    MATTMC = "mattmc"
    STEAM = "steam"
    EMULATOR = "emulator"
    NOOP = "noop"

    @staticmethod
    def from_game(game: GameRef) -> "ArtworkRunnerKind":
        if _ascii_lower(game.name) == "mattmc":
            return ArtworkRunnerKind.MATTMC
        if game.runner_kind == "steam":
            return ArtworkRunnerKind.STEAM
        if game.runner_kind == "emulator":
            return ArtworkRunnerKind.EMULATOR
        return ArtworkRunnerKind.NOOP

    def build_request(self, game: GameRef) -> ArtworkRequest | None:
        """Build the artwork request for ``game``, or None if this kind has none."""
        if self is ArtworkRunnerKind.MATTMC:
            return ArtworkRequest(
                key=MATTMC_ARTWORK_KEY, target="", display_name=game.name, runner=self
            )
        if self is ArtworkRunnerKind.STEAM:
            appid = extract_steam_appid(game.launch_target)
            if appid is None:
                return None
            return ArtworkRequest(
                key=f"steam:{appid}", target=appid, display_name=game.name, runner=self
            )
        if self is ArtworkRunnerKind.EMULATOR:
            key = f"emulator:{EMULATOR_ARTWORK_KEY_VERSION}:{stable_hash_hex(game.launch_target)}"
            return ArtworkRequest(
                key=key, target=game.launch_target, display_name=game.name, runner=self
            )
        return None

    @property
    def downloads(self) -> bool:
        """True for kinds whose artwork is fetched by download workers."""
        return self in (ArtworkRunnerKind.STEAM, ArtworkRunnerKind.EMULATOR)

    def to_download_job(self, key: str, target: str) -> ArtworkDownloadJob | None:
        if not self.downloads:
            return None
        return ArtworkDownloadJob(key=key, target=target, runner=self)