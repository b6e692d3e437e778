# basalt

Artwork handling for a game library. The package works out which cover image
belongs to each game and looks for it in a local folder, then in an on-disk
cache, and downloads it if it is in neither. It then prepares the image for
display.

## Install

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## What it does

- **Steam games** get their 600x900 portrait library art. The Steam app id is
  taken from the launch target: a bare number, or a `steam://rungameid/`,
  `steam://run/`, `steam:appid:` or `steam-appid:` target. Six CDN variants
  are tried in turn. A downloaded image is kept only if it is at least 300x450
  and its width/height ratio lies between 0.60 and 0.74. Images are cached
  under `~/.basalt/cache/steam_artwork`.
- **Emulated games** get box art, title screens or snapshots from the public
  libretro thumbnail catalogue. Candidate titles are built from the ROM file
  name: bracketed tags are removed, leading and trailing articles are moved,
  `&` and `and` are swapped, and region tags are added as a fallback. If none
  of these names is found, a fuzzy match is run over the catalogue's directory
  listing, and a match is accepted only if it scores at least 0.58. Listings
  are cached for a day under `~/.basalt/cache/emulator_artwork/index`.
  Downloaded images must be at least 120x120 and are cached under
  `~/.basalt/cache/emulator_artwork/images`.
- **Local overrides** in an artwork directory are checked before the cache or
  any download. A `png`, `jpg` or `jpeg` file is used if its normalised name
  matches one of these: the game's name, its artwork key, its launch target,
  its Steam app id, or its ROM file name.
- **Images** are scaled down to fit within 360x540. They can also be
  composited onto a solid background colour.

Download workers run in background threads. The number of workers depends on
how many threads the host has.

## Usage

```python
from pathlib import PurePath

from basalt.artwork_types import GameRef
from basalt.store import ArtworkStore


def resolve_emulator_target(launch_target):
    # Map your own emulator launch target to (catalogue name, ROM path), or None.
    return "Nintendo - Super Nintendo Entertainment System", PurePath(launch_target)


games = [
    GameRef(name="Portal 2", runner_kind="steam", launch_target="620"),
    GameRef(name="Super Metroid", runner_kind="emulator",
            launch_target="/roms/snes/Super Metroid (USA).sfc"),
]

with ArtworkStore(emulator_resolver=resolve_emulator_target,
                  local_artwork_dir="artwork") as store:
    store.prepare_for_games(games)       # queue metadata prefetches
    store.poll_download_results()        # call periodically; True when new art arrived
    art = store.artwork_for_game(games[0])
    if art is not None:
        print(art.width, art.height, len(art.foreground_rgba))
```

`ArtworkStore.artwork_for_game` returns the artwork as a `PreparedArtwork`
with RGBA byte buffers, or `None`. When it returns `None`, it queues a
download, and the artwork becomes available after a later
`poll_download_results`. The store has several more methods:

- `refresh_metadata_for_games` forgets everything the store knows and starts
  over.
- `request_download` queues a single request.
- `close` stops the workers.

If a store has no `emulator_resolver`, it takes emulator artwork from the
cache only. If it has no `local_artwork_dir`, it does not look up local
overrides.

The smaller helpers can be used on their own:

- `basalt.search.matches_query`: case-insensitive substring search. A blank
  query matches everything.
- `basalt.titles`: title normalisation, stripping of bracketed text, FNV-1a
  `stable_hash_hex`, URL path encoding, `extract_steam_appid` and worker
  counts.
- `basalt.artwork_types`: `GameRef`, `ArtworkRunnerKind` and the request,
  job and result records.
- `basalt.cache`: cache directory locations.
- `basalt.matching_index`: candidate titles, catalogue URLs, listing parsing
  and fuzzy matching.
- `basalt.imaging`: resizing, compositing and dimension checks.
- `basalt.downloads`: cached lookup and download of Steam and emulator art,
  and `process_download_job`.
- `basalt.local_overrides`: candidate names and the lookup of local artwork
  files.

## What it does not do

- Basalt is a library only. It has no window, no screens and no
  command-line tool.
- It does not keep a game list or playlists, and it does not discover,
  install, sync or launch games. The caller passes in `GameRef` values.
- It cannot decode emulator launch targets by itself. The caller's
  `emulator_resolver` does that.
- It has no built-in artwork for MattMC entries. Such an entry shows artwork
  only when a matching local override file exists.
- It does not upload images to a graphics toolkit. It hands back raw RGBA
  bytes.