"""
HTTP transport for the Jellyfin API.

Resolves endpoint paths against the server host, attaches the MediaBrowser
authorization header and issues GET/POST/DELETE. No retries; request
failures surface as TransportError.
"""

import socket
from functools import lru_cache
from typing import Any, Dict, Optional

import requests
from loguru import logger

from gelly.core.config import APP_VERSION, CLIENT_NAME

from .exceptions import TransportError
from .models import Credentials

FALLBACK_DEVICE_NAME = "Gelly-Device"
DEFAULT_TIMEOUT = 30


@lru_cache(maxsize=1)
def get_device_name() -> str:
    """Hostname of this machine, or a placeholder if it can't be read."""
    try:
        name = socket.gethostname().strip()
    except OSError as e:
        logger.debug(f"Could not read hostname: {e}")
        return FALLBACK_DEVICE_NAME
    return name or FALLBACK_DEVICE_NAME


def build_auth_header(
    device_id: str,
    token: str = "",
    device_name: Optional[str] = None,
    client_name: str = CLIENT_NAME,
    version: str = APP_VERSION,
) -> str:
    """Build the `Authorization` header value.

    The Token fragment is only present when a token is set.
    """
    device = device_name if device_name is not None else get_device_name()
    header = (
        f'MediaBrowser Client="{client_name}", Device="{device}", '
        f'DeviceId="{device_id}", Version="{version}"'
    )
    if token:
        header += f', Token="{token}"'
    return header


def join_url(host: str, endpoint: str) -> str:
    return f"{host.rstrip('/')}/{endpoint.lstrip('/')}"


class Transport:
    """Thin verb wrapper around a requests.Session.

    `credentials` is swapped as a whole by the owning client; each request
    reads it once.
    """

    def __init__(
        self,
        credentials: Credentials,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.credentials = credentials
        self.session = session or requests.Session()
        self.timeout = timeout

    def url(self, endpoint: str, credentials: Optional[Credentials] = None) -> str:
        creds = credentials or self.credentials
        return join_url(creds.host, endpoint)

    def auth_header(self, credentials: Optional[Credentials] = None) -> str:
        creds = credentials or self.credentials
        return build_auth_header(creds.device_id, creds.access_token)

    def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        credentials: Optional[Credentials] = None,
    ) -> requests.Response:
        """Send one request and return the raw response, whatever its status."""
        creds = credentials or self.credentials
        url = self.url(endpoint, creds)
        headers = {"Authorization": self.auth_header(creds)}
        logger.debug(f"Sending {method} request to {url}")
        try:
            return self.session.request(
                method,
                url,
                params=params,
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise TransportError(f"Transport error: {e}") from e

    def get(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        return self.request("GET", endpoint, params=params, **kwargs)

    def post(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Any] = None,
        **kwargs,
    ) -> requests.Response:
        return self.request("POST", endpoint, params=params, json=json, **kwargs)

    def delete(self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> requests.Response:
        return self.request("DELETE", endpoint, params=params, **kwargs)

    def close(self) -> None:
        self.session.close()
