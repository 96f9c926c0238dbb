"""Disk caches for library metadata and album art."""

from .disk import DiskCache, get_cache_directory

ALBUM_ART_STORE = "album-art"
LIBRARY_STORE = "library"

__all__ = ["ALBUM_ART_STORE", "LIBRARY_STORE", "DiskCache", "get_cache_directory"]
