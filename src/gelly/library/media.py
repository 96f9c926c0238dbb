"""Album art and stream addresses for individual items."""

from typing import Optional

from loguru import logger

from gelly.cache.disk import DiskCache
from gelly.jellyfin.client import ApiClient
from gelly.jellyfin.exceptions import JellyfinError


class MediaFetcher:
    """Per-item image fetch through the image cache.

    At most one download per item id is in flight at a time; concurrent
    callers for the same id wait on the cache instead.
    """

    def __init__(self, client: ApiClient, image_cache: DiskCache):
        self.client = client
        self.image_cache = image_cache

    def get_image(self, item_id: str) -> bytes:
        return self.image_cache.fetch_or_populate(
            item_id, lambda: self._download(item_id)
        )

    def get_images(self, primary: str, fallback: Optional[str] = None) -> bytes:
        """Image for primary, falling back to another item's image.

        Used for tracks without their own art (fallback = album id). When the
        fallback is used, primary's cache entry is linked to it so the next
        lookup for primary is a cache hit.
        """
        if fallback is None:
            return self.get_image(primary)

        try:
            return self.get_image(primary)
        except JellyfinError as e:
            logger.debug(f"No image for {primary} ({e}), trying {fallback}")

        image = self.get_image(fallback)
        self.image_cache.link(primary, fallback)
        return image

    def stream_uri(self, item_id: str) -> str:
        """Not cached: building the address costs no network call."""
        return self.client.get_stream_uri(item_id)

    def _download(self, item_id: str) -> bytes:
        logger.debug(f"Downloading album art for {item_id}")
        return self.client.get_image(item_id)
