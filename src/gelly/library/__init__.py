"""Library domain: sync, media fetching and snapshot helpers."""

from .media import MediaFetcher
from .playlists import PlaylistType
from .sync import LIBRARY_CACHE_KEY, PLAYLISTS_CACHE_KEY, LibrarySync, SnapshotCell

__all__ = [
    "LIBRARY_CACHE_KEY",
    "PLAYLISTS_CACHE_KEY",
    "LibrarySync",
    "MediaFetcher",
    "PlaylistType",
    "SnapshotCell",
]
