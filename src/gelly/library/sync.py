"""
Library sync: full-library and playlist-list loading with disk caching.

Optimization strategy for get_library():
1. Unless forced, serve library.json from the disk cache (0 API calls)
2. Fetch page 0 to learn TotalRecordCount
3. Fetch every remaining page concurrently
4. Merge pages as they complete; failed pages are logged and dropped
5. Persist the merged result (best effort) and return it

A dropped page does not lower total_record_count, so a snapshot can hold
fewer items than it reports. LibrarySnapshot.is_partial and
LibrarySnapshot.failed_pages expose that to callers.
"""

import json
import math
import threading
from concurrent.futures import Executor, ThreadPoolExecutor, as_completed
from typing import Any, Callable, List, Optional

from loguru import logger

from gelly.cache.disk import DiskCache
from gelly.jellyfin.client import ApiClient
from gelly.jellyfin.exceptions import JellyfinError, JsonParsingError
from gelly.jellyfin.models import LibraryItem, LibrarySnapshot, PlaylistSummary

LIBRARY_CACHE_KEY = "library.json"
PLAYLISTS_CACHE_KEY = "playlists.json"
DEFAULT_PAGE_SIZE = 1000


def remaining_page_count(total: int, page_size: int) -> int:
    """Pages still needed after page 0."""
    if total <= page_size:
        return 0
    return math.ceil((total - page_size) / page_size)


def _decode(data: bytes, key: str, parser: Callable[[Any], Any]) -> Any:
    try:
        return parser(json.loads(data))
    except (ValueError, KeyError, TypeError) as e:
        raise JsonParsingError(f"Corrupt cache entry {key}: {e!r}") from e


class SnapshotCell:
    """Holds the current LibrarySnapshot; replaced whole, never edited."""

    def __init__(self, snapshot: Optional[LibrarySnapshot] = None):
        self._snapshot = snapshot or LibrarySnapshot()
        self._lock = threading.Lock()

    def get(self) -> LibrarySnapshot:
        with self._lock:
            return self._snapshot

    def swap(self, snapshot: LibrarySnapshot) -> LibrarySnapshot:
        """Install snapshot and return the previous one."""
        with self._lock:
            previous, self._snapshot = self._snapshot, snapshot
        return previous


class LibrarySync:
    """Loads the library and playlist list through the cache."""

    def __init__(
        self,
        client: ApiClient,
        cache: DiskCache,
        executor: Optional[Executor] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_workers: int = 8,
    ):
        self.client = client
        self.cache = cache
        self.executor = executor
        self.page_size = page_size
        self.max_workers = max_workers

    def get_library(self, library_id: str, force_refresh: bool = False) -> LibrarySnapshot:
        """Return the full library, from disk unless force_refresh is set.

        Raises:
            JellyfinError: Page 0 failed, or the cached copy is corrupt
        """
        if not force_refresh:
            cached = self.cache.load(LIBRARY_CACHE_KEY)
            if cached is not None:
                snapshot = _decode(cached, LIBRARY_CACHE_KEY, LibrarySnapshot.from_dto)
                logger.info(f"Loaded {len(snapshot)} library items from cache")
                return snapshot

        snapshot = self._fetch_library(library_id)
        self._persist(LIBRARY_CACHE_KEY, snapshot.to_dto())
        return snapshot

    def refresh(
        self, cell: SnapshotCell, library_id: str, force_refresh: bool = True
    ) -> LibrarySnapshot:
        """Load the library and swap it into cell in one step."""
        snapshot = self.get_library(library_id, force_refresh=force_refresh)
        cell.swap(snapshot)
        return snapshot

    def get_playlists(self, force_refresh: bool = False) -> List[PlaylistSummary]:
        """Return the playlist list, from disk unless force_refresh is set."""
        if not force_refresh:
            cached = self.cache.load(PLAYLISTS_CACHE_KEY)
            if cached is not None:
                return _decode(
                    cached,
                    PLAYLISTS_CACHE_KEY,
                    lambda data: [PlaylistSummary.from_dto(p) for p in data],
                )

        playlists = self.client.get_playlists()
        self._persist(PLAYLISTS_CACHE_KEY, [p.to_dto() for p in playlists])
        logger.info(f"Fetched {len(playlists)} playlists")
        return playlists

    def _fetch_library(self, library_id: str) -> LibrarySnapshot:
        first = self.client.get_library_page(library_id, 0, self.page_size)
        total = first.total_record_count
        items: List[LibraryItem] = list(first.items)
        extra_pages = remaining_page_count(total, self.page_size)
        failed: List[int] = []

        logger.info(
            f"Library {library_id}: {total} items, fetching {extra_pages} more pages"
        )

        if extra_pages:
            executor = self.executor or ThreadPoolExecutor(
                max_workers=min(self.max_workers, extra_pages),
                thread_name_prefix="gelly-page",
            )
            try:
                futures = {
                    executor.submit(
                        self.client.get_library_page,
                        library_id,
                        page * self.page_size,
                        self.page_size,
                    ): page
                    for page in range(1, extra_pages + 1)
                }
                for future in as_completed(futures):
                    page = futures[future]
                    try:
                        items.extend(future.result().items)
                    except JellyfinError as e:
                        failed.append(page)
                        logger.warning(f"Dropping library page {page}: {e}")
            finally:
                if executor is not self.executor:
                    executor.shutdown(wait=True)

        failed.sort()
        if failed:
            logger.warning(
                f"Library partially loaded: {len(items)} of {total} items "
                f"(failed pages {failed})"
            )

        return LibrarySnapshot(
            items=tuple(items),
            total_record_count=total,
            failed_pages=tuple(failed),
        )

    def _persist(self, key: str, payload: Any) -> None:
        data = json.dumps(payload).encode("utf-8")
        self.cache.save_quietly(key, data)

    def clear_cache(self) -> None:
        self.cache.clear()

