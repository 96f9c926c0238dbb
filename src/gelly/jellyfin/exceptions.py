"""Jellyfin-specific exceptions for error handling."""

from typing import Optional


class JellyfinError(Exception):
    """Base exception for Jellyfin operations."""

    pass


class TransportError(JellyfinError):
    """Raised when the server cannot be reached (connection, DNS, TLS, timeout)."""

    pass


class HttpError(JellyfinError):
    """Raised when the server answers with a non-2xx status other than 401."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        self.message = message
        super().__init__(f"HTTP error: {status} - {message}")


class AuthenticationFailedError(JellyfinError):
    """Raised when the server rejects the credentials (HTTP 401)."""

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(f"Authentication failed: {message}")


class JsonParsingError(JellyfinError):
    """Raised when the server is reachable but its payload cannot be parsed."""

    pass


class CacheIOError(JellyfinError):
    """Raised when the disk cache cannot be read or written."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)
