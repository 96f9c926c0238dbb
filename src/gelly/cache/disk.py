"""
Disk-backed byte cache with request coalescing.

One file per key under the cache directory. Presence on disk means valid:
there is no expiry and no eviction, so the directory grows until clear().

fetch_or_populate() makes sure that, for a given key, only one caller in the
process runs the fetch function at a time. Everyone else either hits the
file on disk or polls until the running fetch finishes and then re-reads the
disk. A failed fetch leaves nothing behind, so the next caller tries the
network again.
"""

import gzip
import os
import shutil
import tempfile
import threading
import time
from pathlib import Path, PurePosixPath
from typing import Callable, Optional, Set

from loguru import logger

from gelly.core.config import get_cache_root
from gelly.jellyfin.exceptions import CacheIOError

DEFAULT_POLL_INTERVAL = 0.1  # seconds


def get_cache_directory(name: str, root: Optional[Path] = None) -> Path:
    """Directory of one named store, e.g. `album-art` or `library`."""
    return (root or get_cache_root()) / name


def validate_key(key: str) -> str:
    """Reject keys that would escape the cache directory.

    Raises:
        ValueError: Empty, absolute, or containing `..`
    """
    if not key:
        raise ValueError("Cache key must not be empty")
    path = PurePosixPath(key)
    if path.is_absolute() or ".." in path.parts or "\\" in key:
        raise ValueError(f"Invalid cache key: {key!r}")
    return key


class DiskCache:
    """Byte store addressed by string keys, with in-flight fetch tracking."""

    def __init__(
        self,
        cache_dir: Path,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        compress: bool = False,
    ):
        self.cache_dir = Path(cache_dir)
        self.poll_interval = poll_interval
        self.compress = compress
        self._pending: Set[str] = set()
        self._pending_lock = threading.Lock()

    def path_for(self, key: str) -> Path:
        return self.cache_dir / validate_key(key)

    def is_pending(self, key: str) -> bool:
        with self._pending_lock:
            return key in self._pending

    def load(self, key: str) -> Optional[bytes]:
        """Cached bytes for key, or None on a miss.

        Unreadable files count as misses too.
        """
        path = self.path_for(key)
        try:
            if self.compress:
                with gzip.open(path, "rb") as f:
                    return f.read()
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except (OSError, EOFError) as e:
            logger.warning(f"Unreadable cache entry {path}, treating as miss: {e}")
            return None

    def save(self, key: str, data: bytes) -> None:
        """Write key atomically, creating parent directories.

        Raises:
            OSError: The write failed; callers decide whether that matters
        """
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = gzip.compress(data) if self.compress else data

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def save_quietly(self, key: str, data: bytes) -> bool:
        """save() that logs failures instead of raising. Returns success."""
        try:
            self.save(key, data)
        except OSError as e:
            logger.warning(f"Failed to save {key} to disk cache: {e}")
            return False
        return True

    def fetch_or_populate(self, key: str, fetch_fn: Callable[[], bytes]) -> bytes:
        """Return cached bytes, or run fetch_fn once per key and cache the result.

        Errors from fetch_fn propagate and are not cached.
        """
        while True:
            cached = self.load(key)
            if cached is not None:
                return cached

            with self._pending_lock:
                in_flight = key in self._pending
                if not in_flight:
                    self._pending.add(key)

            if in_flight:
                time.sleep(self.poll_interval)
                continue

            try:
                logger.debug(f"Cache miss for {key}, fetching")
                data = fetch_fn()
                self.save_quietly(key, data)
                return data
            finally:
                with self._pending_lock:
                    self._pending.discard(key)

    def link(self, alias: str, target: str) -> bool:
        """Point alias at target's file so alias lookups hit the cache."""
        alias_path = self.path_for(alias)
        target_path = self.path_for(target)
        try:
            alias_path.parent.mkdir(parents=True, exist_ok=True)
            alias_path.unlink(missing_ok=True)
            os.symlink(target_path, alias_path)
        except OSError as e:
            logger.warning(f"Failed to link cache entry {alias} -> {target}: {e}")
            return False
        return True

    def clear(self) -> None:
        """Delete every entry. In-flight fetches are not cancelled.

        Raises:
            CacheIOError: The directory could not be removed
        """
        try:
            shutil.rmtree(self.cache_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise CacheIOError(f"Failed to clear cache: {e}", str(self.cache_dir)) from e
        logger.info(f"Cleared cache {self.cache_dir}")
