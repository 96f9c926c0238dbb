"""Tests for album art fetching through the image cache."""

import threading
from pathlib import Path
from unittest.mock import Mock

import pytest

from gelly.cache.disk import DiskCache
from gelly.jellyfin.client import ApiClient
from gelly.jellyfin.exceptions import HttpError, TransportError
from gelly.library.media import MediaFetcher


@pytest.fixture
def client() -> Mock:
    return Mock(spec=ApiClient)


@pytest.fixture
def fetcher(client: Mock, tmp_path: Path) -> MediaFetcher:
    return MediaFetcher(client, DiskCache(tmp_path / "album-art", poll_interval=0.01))


class TestGetImage:
    def test_downloads_once(self, fetcher: MediaFetcher, client: Mock) -> None:
        client.get_image.return_value = b"png"

        assert fetcher.get_image("album-1") == b"png"
        assert fetcher.get_image("album-1") == b"png"
        client.get_image.assert_called_once_with("album-1")

    def test_offline_hit(self, fetcher: MediaFetcher, client: Mock) -> None:
        """Cached art is served without touching the network."""
        fetcher.image_cache.save("album-1", b"png")
        client.get_image.side_effect = TransportError("offline")

        assert fetcher.get_image("album-1") == b"png"
        client.get_image.assert_not_called()

    def test_error_propagates_uncached(self, fetcher: MediaFetcher, client: Mock) -> None:
        client.get_image.side_effect = HttpError(404, "no image")

        with pytest.raises(HttpError):
            fetcher.get_image("album-1")

        assert fetcher.image_cache.load("album-1") is None

    def test_concurrent_requests_coalesce(self, fetcher: MediaFetcher, client: Mock) -> None:
        started = threading.Event()
        release = threading.Event()

        def slow_download(item_id: str) -> bytes:
            started.set()
            release.wait(5)
            return b"png"

        client.get_image.side_effect = slow_download
        results = []

        first = threading.Thread(target=lambda: results.append(fetcher.get_image("a")))
        first.start()
        started.wait(5)
        second = threading.Thread(target=lambda: results.append(fetcher.get_image("a")))
        second.start()
        release.set()
        first.join(5)
        second.join(5)

        assert results == [b"png", b"png"]
        client.get_image.assert_called_once()


class TestGetImages:
    """Tests for primary/fallback art."""

    def test_primary_wins(self, fetcher: MediaFetcher, client: Mock) -> None:
        client.get_image.return_value = b"track art"

        assert fetcher.get_images("track-1", "album-1") == b"track art"
        client.get_image.assert_called_once_with("track-1")

    def test_fallback_used_and_linked(self, fetcher: MediaFetcher, client: Mock) -> None:
        def get_image(item_id: str) -> bytes:
            if item_id == "track-1":
                raise HttpError(404, "no image")
            return b"album art"

        client.get_image.side_effect = get_image

        assert fetcher.get_images("track-1", "album-1") == b"album art"
        assert fetcher.image_cache.load("track-1") == b"album art"

        client.get_image.reset_mock()
        assert fetcher.get_images("track-1", "album-1") == b"album art"
        client.get_image.assert_not_called()

    def test_no_fallback_propagates(self, fetcher: MediaFetcher, client: Mock) -> None:
        client.get_image.side_effect = HttpError(404, "no image")

        with pytest.raises(HttpError):
            fetcher.get_images("track-1")


class TestStreamUri:
    def test_delegates_to_client(self, fetcher: MediaFetcher, client: Mock) -> None:
        client.get_stream_uri.return_value = "http://h/Audio/t1/universal"

        assert fetcher.stream_uri("t1") == "http://h/Audio/t1/universal"
