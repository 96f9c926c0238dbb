"""Tests for the Jellyfin HTTP transport."""

from unittest.mock import Mock, patch

import pytest
import requests

from gelly.jellyfin.exceptions import TransportError
from gelly.jellyfin.models import Credentials
from gelly.jellyfin.transport import (
    FALLBACK_DEVICE_NAME,
    Transport,
    build_auth_header,
    get_device_name,
    join_url,
)


class TestBuildAuthHeader:
    """Tests for the MediaBrowser authorization header."""

    def test_token_fragment_appears_once(self) -> None:
        """A token adds exactly one Token fragment at the end."""
        header = build_auth_header("dev-uuid", "abc", device_name="box", version="0.1")
        assert header.count('Token="abc"') == 1
        assert header.endswith('Token="abc"')
        assert not header.endswith(",")
        assert ",," not in header

    def test_exact_format(self) -> None:
        """Header matches the format the server expects."""
        header = build_auth_header(
            "dev-uuid", "abc", device_name="box", client_name="Gelly", version="0.1"
        )
        assert header == (
            'MediaBrowser Client="Gelly", Device="box", '
            'DeviceId="dev-uuid", Version="0.1", Token="abc"'
        )

    def test_empty_token_has_no_token_fragment(self) -> None:
        """Anonymous header is still well formed, without Token=."""
        header = build_auth_header("dev-uuid", "", device_name="box", version="0.1")
        assert "Token=" not in header
        assert header.startswith("MediaBrowser Client=")
        assert header.endswith('Version="0.1"')


class TestDeviceName:
    """Tests for hostname resolution."""

    def setup_method(self) -> None:
        get_device_name.cache_clear()

    def teardown_method(self) -> None:
        get_device_name.cache_clear()

    def test_uses_hostname(self) -> None:
        with patch("gelly.jellyfin.transport.socket.gethostname", return_value="box\n"):
            assert get_device_name() == "box"

    def test_falls_back_on_error(self) -> None:
        """An unreadable hostname never fails the request."""
        with patch(
            "gelly.jellyfin.transport.socket.gethostname", side_effect=OSError("nope")
        ):
            assert get_device_name() == FALLBACK_DEVICE_NAME

    def test_falls_back_on_empty_hostname(self) -> None:
        with patch("gelly.jellyfin.transport.socket.gethostname", return_value=""):
            assert get_device_name() == FALLBACK_DEVICE_NAME


class TestJoinUrl:
    """Tests for host/endpoint joining."""

    @pytest.mark.parametrize(
        "host,endpoint",
        [
            ("http://h:8096", "Items"),
            ("http://h:8096/", "Items"),
            ("http://h:8096/", "/Items"),
            ("http://h:8096//", "//Items"),
        ],
    )
    def test_single_slash(self, host: str, endpoint: str) -> None:
        assert join_url(host, endpoint) == "http://h:8096/Items"


class TestTransport:
    """Tests for Transport requests."""

    def _transport(self, credentials: Credentials) -> tuple[Transport, Mock]:
        session = Mock(spec=requests.Session)
        return Transport(credentials, session=session), session

    def test_get_sends_auth_header_and_params(self, credentials, response_factory) -> None:
        transport, session = self._transport(credentials)
        session.request.return_value = response_factory(200, {"Items": []})

        transport.get("/UserViews", params={"userId": "user-1"})

        args, kwargs = session.request.call_args
        assert args == ("GET", "http://jellyfin.local/UserViews")
        assert kwargs["params"] == {"userId": "user-1"}
        assert 'Token="abc"' in kwargs["headers"]["Authorization"]
        assert 'DeviceId="device-1"' in kwargs["headers"]["Authorization"]

    def test_returns_non_2xx_response_unchanged(self, credentials, response_factory) -> None:
        """Status classification is the client's job, not the transport's."""
        transport, session = self._transport(credentials)
        session.request.return_value = response_factory(500, content=b"boom")

        response = transport.post("Items/1/Refresh")

        assert response.status_code == 500

    def test_request_exception_becomes_transport_error(self, credentials) -> None:
        transport, session = self._transport(credentials)
        session.request.side_effect = requests.ConnectionError("Name or service not known")

        with pytest.raises(TransportError):
            transport.delete("Items/1")

    def test_explicit_credentials_override(self, credentials, response_factory) -> None:
        """Per-request credentials are used for URL and header."""
        transport, session = self._transport(credentials)
        session.request.return_value = response_factory(200, {})
        anonymous = Credentials(host="https://other.example/", device_id="device-1")

        transport.post("Users/authenticatebyname", json={}, credentials=anonymous)

        args, kwargs = session.request.call_args
        assert args[1] == "https://other.example/Users/authenticatebyname"
        assert "Token=" not in kwargs["headers"]["Authorization"]

    def test_credentials_swap_applies_to_next_request(
        self, credentials, response_factory
    ) -> None:
        transport, session = self._transport(credentials)
        session.request.return_value = response_factory(200, {})

        transport.credentials = credentials.anonymous()
        transport.get("Items")

        _, kwargs = session.request.call_args
        assert "Token=" not in kwargs["headers"]["Authorization"]
