"""Shared fixtures: canned HTTP responses and library items."""

import json
from typing import Any, Optional

import pytest
import requests

from gelly.jellyfin.models import ArtistRef, Credentials, LibraryItem


def make_response(
    status: int = 200,
    json_body: Optional[Any] = None,
    content: Optional[bytes] = None,
    url: str = "http://jellyfin.local/Items",
) -> requests.Response:
    """Build a real requests.Response with the given status and body."""
    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = "utf-8"
    if json_body is not None:
        response._content = json.dumps(json_body).encode("utf-8")
    else:
        response._content = content if content is not None else b""
    return response


def make_item(item_id: str, **overrides: Any) -> LibraryItem:
    fields = {
        "id": item_id,
        "title": f"Song {item_id}",
        "album": "Album",
        "album_id": "album-1",
        "artists": ("Artist",),
        "album_artists": (ArtistRef(id="artist-1", name="Artist"),),
        "date_created": "2024-01-01T00:00:00.0000000Z",
        "duration_ticks": 1_800_000_000,
    }
    fields.update(overrides)
    return LibraryItem(**fields)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(
        host="http://jellyfin.local",
        access_token="abc",
        user_id="user-1",
        device_id="device-1",
    )


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def item_factory():
    return make_item
