"""In-memory artwork store fed by background download workers."""

from __future__ import annotations

import queue
import threading
from collections.abc import Iterable
from pathlib import Path, PurePath

from basalt.artwork_types import (
    ArtworkDownloadJob,
    ArtworkDownloadResult,
    ArtworkRequest,
    ArtworkRunnerKind,
    GameRef,
)
from basalt.downloads import (
    EmulatorResolver,
    find_cached_emulator_artwork_path,
    find_cached_steam_portrait_artwork_path,
    process_download_job,
)
from basalt.imaging import PreparedArtwork, prepare_artwork_payload_from_path
from basalt.local_overrides import find_local_game_artwork_path
from basalt.titles import compute_artwork_worker_counts, detect_host_thread_count

MAX_STEAM_DOWNLOAD_QUEUE = 48
MAX_EMULATOR_DOWNLOAD_QUEUE = 48
MAX_RESULT_QUEUE = 96
MAX_TEXTURE_UPLOADS_PER_TICK = 6

_POLL_INTERVAL_SECONDS = 0.05


def _clamp(value: int, low: int, high: int) -> int:
    return min(max(value, low), high)


class ArtworkStore:
    """Holds prepared artwork per key and schedules downloads for what is missing.

    ``emulator_resolver`` maps an emulator launch target to
    ``(system_catalog, rom_path)``; without it emulator artwork is only taken
    from the cache. ``local_artwork_dir`` is searched for user-supplied
    artwork before anything is downloaded; None disables that lookup.
    """

    def __init__(
        self,
        emulator_resolver: EmulatorResolver | None = None,
        local_artwork_dir: str | Path | None = None,
        host_thread_count: int | None = None,
    ) -> None:
        self.emulator_resolver = emulator_resolver
        self.local_artwork_dir = Path(local_artwork_dir) if local_artwork_dir is not None else None

        threads = host_thread_count if host_thread_count is not None else detect_host_thread_count()
        steam_workers, emulator_workers = compute_artwork_worker_counts(threads)
        self.max_pending_steam_downloads = _clamp(steam_workers * 3, 4, 24)
        self.max_pending_emulator_downloads = _clamp(emulator_workers * 3, 6, 64)

        self.textures: dict[str, PreparedArtwork] = {}
        self.missing: set[str] = set()
        self.pending: dict[str, ArtworkRunnerKind] = {}
        self.prefetch_queue: list[ArtworkRequest] = []

        self._steam_jobs: queue.Queue[ArtworkDownloadJob] = queue.Queue(MAX_STEAM_DOWNLOAD_QUEUE)
        self._emulator_jobs: queue.Queue[ArtworkDownloadJob] = queue.Queue(
            MAX_EMULATOR_DOWNLOAD_QUEUE
        )
        self._results: queue.Queue[ArtworkDownloadResult] = queue.Queue(MAX_RESULT_QUEUE)
        self._stop = threading.Event()
        self._closed = False

        self._workers = [
            self._start_worker(self._steam_jobs) for _ in range(steam_workers)
        ] + [self._start_worker(self._emulator_jobs) for _ in range(emulator_workers)]

    def __enter__(self) -> "ArtworkStore":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _start_worker(self, jobs: "queue.Queue[ArtworkDownloadJob]") -> threading.Thread:
        worker = threading.Thread(target=self._worker_loop, args=(jobs,), daemon=True)
        worker.start()
        return worker

    def _worker_loop(self, jobs: "queue.Queue[ArtworkDownloadJob]") -> None:
        while not self._stop.is_set():
            try:
                job = jobs.get(timeout=_POLL_INTERVAL_SECONDS)
            except queue.Empty:
                continue
            try:
                result = process_download_job(job, self.emulator_resolver)
            except Exception:
                result = ArtworkDownloadResult.missing(job.key)
            while not self._stop.is_set():
                try:
                    self._results.put(result, timeout=_POLL_INTERVAL_SECONDS)
                    break
                except queue.Full:
                    continue

    def close(self) -> None:
        """Stop the download workers; later downloads are reported as missing."""
        self._closed = True
        self._stop.set()
        for worker in self._workers:
            worker.join(timeout=2.0)

    def poll_download_results(self) -> bool:
        """Take in finished downloads; return True if new artwork became available."""
        has_updates = False
        for _ in range(MAX_TEXTURE_UPLOADS_PER_TICK):
            try:
                result = self._results.get_nowait()
            except queue.Empty:
                break
            self.pending.pop(result.key, None)
            if result.is_ready:
                self.textures[result.key] = result.payload
                self.missing.discard(result.key)
                has_updates = True
            else:
                self.missing.add(result.key)

        self._pump_prefetch_queue()
        return has_updates

    def prepare_for_games(self, games: Iterable[GameRef]) -> None:
        """Forget artwork of games no longer listed and queue metadata prefetches."""
        visible_keys: set[str] = set()
        prefetch: list[ArtworkRequest] = []
        for game in games:
            request = ArtworkRunnerKind.from_game(game).build_request(game)
            if request is None:
                continue
            visible_keys.add(request.key)
            if request.runner.downloads:
                prefetch.append(request)

        self.textures = {key: value for key, value in self.textures.items() if key in visible_keys}
        self.pending = {key: value for key, value in self.pending.items() if key in visible_keys}
        self.missing &= visible_keys

        self.prefetch_queue = prefetch
        self._pump_prefetch_queue()

    def refresh_metadata_for_games(self, games: Iterable[GameRef]) -> None:
        """Drop everything known and start over for the given games."""
        self.textures.clear()
        self.missing.clear()
        self.pending.clear()
        self.prefetch_queue.clear()
        self.prepare_for_games(games)

    def artwork_for_game(self, game: GameRef) -> PreparedArtwork | None:
        """Return the game's artwork if available, requesting it otherwise."""
        request = ArtworkRunnerKind.from_game(game).build_request(game)
        if request is None:
            return None
        return self.artwork_for_request(request)

    def _rom_path_for(self, request: ArtworkRequest) -> PurePath | str | None:
        if request.runner is not ArtworkRunnerKind.EMULATOR or self.emulator_resolver is None:
            return None
        resolved = self.emulator_resolver(request.target)
        return None if resolved is None else resolved[1]

    def _local_artwork_path(self, request: ArtworkRequest) -> Path | None:
        if self.local_artwork_dir is None:
            return None
        return find_local_game_artwork_path(
            request, self.local_artwork_dir, self._rom_path_for(request)
        )

    def artwork_for_request(self, request: ArtworkRequest) -> PreparedArtwork | None:
        """Return artwork for a request from memory or local files, else queue a download."""
        existing = self.textures.get(request.key)
        if existing is not None:
            return existing

        local_path = self._local_artwork_path(request)
        if local_path is not None:
            payload = prepare_artwork_payload_from_path(local_path, None)
            if payload is not None:
                self.textures[request.key] = payload
                self.missing.discard(request.key)
                return payload

        self.request_download(request)
        return None

    def _has_cached_artwork(self, request: ArtworkRequest) -> bool:
        if request.runner is ArtworkRunnerKind.STEAM:
            return find_cached_steam_portrait_artwork_path(request.target) is not None
        if request.runner is ArtworkRunnerKind.EMULATOR:
            return find_cached_emulator_artwork_path(request.target) is not None
        return False

    def _max_pending_for(self, runner: ArtworkRunnerKind) -> int:
        if runner is ArtworkRunnerKind.STEAM:
            return self.max_pending_steam_downloads
        if runner is ArtworkRunnerKind.EMULATOR:
            return self.max_pending_emulator_downloads
        return 0

    def request_download(self, request: ArtworkRequest) -> bool:
        """Try to queue a download; False means it should be retried later."""
        if self._local_artwork_path(request) is not None:
            return True
        if request.key in self.missing or request.key in self.pending:
            return True

        pending_for_runner = sum(1 for runner in self.pending.values() if runner is request.runner)
        if (
            not self._has_cached_artwork(request)
            and pending_for_runner >= self._max_pending_for(request.runner)
        ):
            return False

        job = request.runner.to_download_job(request.key, request.target)
        if job is None:
            return True

        if self._closed:
            self.missing.add(request.key)
            return True

        jobs = self._steam_jobs if request.runner is ArtworkRunnerKind.STEAM else self._emulator_jobs
        try:
            jobs.put_nowait(job)
        except queue.Full:
            return False
        self.pending[request.key] = request.runner
        return True

    def _pump_prefetch_queue(self) -> None:
        if not self.prefetch_queue:
            return
        queued, self.prefetch_queue = self.prefetch_queue, []
        remaining: list[ArtworkRequest] = []
        for request in queued:
            if (
                request.key in self.textures
                or request.key in self.missing
                or request.key in self.pending
            ):
                continue
            if not self.request_download(request):
                remaining.append(request)
        self.prefetch_queue = remaining