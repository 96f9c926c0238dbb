"""Jellyfin REST API client."""

from .client import ApiClient, describe_error
from .exceptions import (
    AuthenticationFailedError,
    CacheIOError,
    HttpError,
    JellyfinError,
    JsonParsingError,
    TransportError,
)
from .models import (
    Credentials,
    Library,
    LibraryItem,
    LibrarySnapshot,
    PlaylistItems,
    PlaylistSummary,
)
from .transport import Transport, build_auth_header

__all__ = [
    "ApiClient",
    "AuthenticationFailedError",
    "CacheIOError",
    "Credentials",
    "HttpError",
    "JellyfinError",
    "JsonParsingError",
    "Library",
    "LibraryItem",
    "LibrarySnapshot",
    "PlaylistItems",
    "PlaylistSummary",
    "Transport",
    "TransportError",
    "build_auth_header",
    "describe_error",
]
