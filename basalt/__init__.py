"""Game library artwork: Steam and emulator cover art lookup, caching, fuzzy matching and preparation."""

__version__ = "0.1.0"