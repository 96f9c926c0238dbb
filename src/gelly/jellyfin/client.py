"""
Jellyfin API operations.

ApiClient owns the Credentials and the Transport. Every call returns a typed
value or raises a JellyfinError subclass:

- TransportError: the server could not be reached
- AuthenticationFailedError: HTTP 401
- HttpError: any other non-2xx status
- JsonParsingError: reachable server, unparsable payload

Nothing here caches or retries; see gelly.library for that.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import requests
from loguru import logger

from .exceptions import (
    AuthenticationFailedError,
    HttpError,
    JsonParsingError,
    TransportError,
)
from .models import (
    AuthResult,
    Credentials,
    ItemsPage,
    Library,
    LibraryItem,
    Lyrics,
    PlaybackReport,
    PlaybackReportStatus,
    PlaylistItems,
    PlaylistSummary,
)
from .transport import Transport

T = TypeVar("T")

# Client's transcoding preference, most preferred first
STREAM_CONTAINERS = "flac,opus,mp3,aac,m4a,ogg,wav,webm|opus,webm|webma,webma"

IMAGE_PARAMS = {"fillHeight": 200, "fillWidth": 200, "quality": 96}

LIBRARY_FIELDS = "DateCreated,ParentId,AlbumPrimaryImageTag,AlbumArtists"


def check_response(response: requests.Response) -> requests.Response:
    """Raise the classified error for a non-2xx response."""
    if 200 <= response.status_code < 300:
        return response

    message = response.text or "Unknown Error"

    if response.status_code == 401:
        raise AuthenticationFailedError(message)
    raise HttpError(response.status_code, message)


def parse_json(response: requests.Response, parser: Callable[[Any], T]) -> T:
    """Check status, decode JSON and hand it to parser.

    Decoding errors and missing or mistyped fields become JsonParsingError.
    """
    check_response(response)
    try:
        data = response.json()
    except ValueError as e:
        raise JsonParsingError(f"Invalid JSON from {response.url}: {e}") from e

    try:
        return parser(data)
    except (KeyError, TypeError, ValueError) as e:
        raise JsonParsingError(
            f"Unexpected response shape from {response.url}: {e!r}"
        ) from e


class ApiClient:
    """Typed operations over the Jellyfin REST API."""

    def __init__(
        self,
        credentials: Credentials,
        transport: Optional[Transport] = None,
        max_bitrate: Optional[int] = None,
    ):
        self._credentials = credentials
        self.transport = transport or Transport(credentials)
        self.transport.credentials = credentials
        self.max_bitrate = max_bitrate

    @property
    def credentials(self) -> Credentials:
        return self._credentials

    def set_credentials(self, credentials: Credentials) -> None:
        """Replace the credentials wholesale."""
        self._credentials = credentials
        self.transport.credentials = credentials

    @property
    def is_authenticated(self) -> bool:
        return self._credentials.is_authenticated

    # -- Authentication -------------------------------------------------

    def authenticate(self, host: str, username: str, password: str) -> Credentials:
        """Log in with username/password and install the resulting credentials.

        The login request itself goes out without a token.

        Raises:
            AuthenticationFailedError: Bad username or password
        """
        anonymous = Credentials(host=host, device_id=self._credentials.device_id)
        logger.info(f"Authenticating {username} against {anonymous.host}")
        response = self.transport.post(
            "Users/authenticatebyname",
            json={"Username": username, "Pw": password},
            credentials=anonymous,
        )
        auth = parse_json(response, AuthResult.from_dto)

        credentials = Credentials(
            host=anonymous.host,
            access_token=auth.access_token,
            user_id=auth.user_id,
            device_id=anonymous.device_id,
        )
        self.set_credentials(credentials)
        logger.info(f"Authenticated as user {auth.user_id}")
        return credentials

    def logout(self) -> Credentials:
        """Drop the token; returns the anonymous credentials now in use."""
        credentials = self._credentials.anonymous()
        self.set_credentials(credentials)
        return credentials

    # -- Library --------------------------------------------------------

    def get_views(self) -> List[Library]:
        """List the user's library roots."""
        response = self.transport.get(
            "UserViews", params={"userId": self._credentials.user_id}
        )
        return parse_json(
            response, lambda data: [Library.from_dto(i) for i in data["Items"]]
        )

    def get_library_page(
        self, library_id: str, start_index: int, limit: int
    ) -> ItemsPage:
        """Fetch one page of audio items, newest first."""
        params = {
            "parentId": library_id,
            "userId": self._credentials.user_id,
            "IncludeItemTypes": "Audio",
            "sortBy": "DateCreated",
            "sortOrder": "Descending",
            "recursive": "true",
            "Fields": LIBRARY_FIELDS,
            "StartIndex": start_index,
            "Limit": limit,
        }
        logger.debug(f"Fetching library page start={start_index} limit={limit}")
        response = self.transport.get("Items", params=params)
        return parse_json(
            response,
            lambda data: ItemsPage(
                items=[LibraryItem.from_dto(i) for i in data["Items"]],
                total_record_count=int(data["TotalRecordCount"]),
                start_index=start_index,
            ),
        )

    def request_library_rescan(self, library_id: str) -> None:
        """Ask the server to rescan a library. Returns once the server accepts."""
        params = {
            "itemId": library_id,
            "Recursive": "true",
            "ImageRefreshMode": "Default",
            "MetadataRefreshMode": "Default",
            "ReplaceAllImages": "false",
            "RegenerateTrickplay": "false",
            "ReplaceAllMetadata": "false",
        }
        response = self.transport.post(f"Items/{library_id}/Refresh", params=params)
        check_response(response)
        logger.info(f"Requested rescan of library {library_id}")

    # -- Playlists ------------------------------------------------------

    def get_playlists(self) -> List[PlaylistSummary]:
        """List the user's playlists straight from the server."""
        params = {
            "userId": self._credentials.user_id,
            "IncludeItemTypes": "Playlist",
            "recursive": "true",
            "Fields": "ChildCount",
            "sortBy": "SortName",
            "sortOrder": "Ascending",
        }
        response = self.transport.get("Items", params=params)
        return parse_json(
            response,
            lambda data: [PlaylistSummary.from_dto(i) for i in data["Items"]],
        )

    def get_playlist_items(self, playlist_id: str) -> PlaylistItems:
        """Ordered item ids of a playlist."""
        response = self.transport.get(f"Playlists/{playlist_id}")
        return parse_json(
            response, lambda data: PlaylistItems.from_dto(playlist_id, data)
        )

    def new_playlist(self, name: str, item_ids: Sequence[str] = ()) -> str:
        """Create a playlist and return its id."""
        body = {
            "Name": name,
            "Ids": list(item_ids),
            "UserId": self._credentials.user_id,
            "MediaType": "Audio",
        }
        response = self.transport.post("Playlists", json=body)
        playlist_id = parse_json(response, lambda data: str(data["Id"]))
        logger.info(f"Created playlist {name!r} ({playlist_id})")
        return playlist_id

    def add_playlist_item(self, playlist_id: str, item_ids: Sequence[str]) -> None:
        params = {"ids": ",".join(item_ids), "userId": self._credentials.user_id}
        response = self.transport.post(f"Playlists/{playlist_id}/Items", params=params)
        check_response(response)

    def move_playlist_item(self, playlist_id: str, item_id: str, new_index: int) -> None:
        response = self.transport.post(
            f"Playlists/{playlist_id}/Items/{item_id}/Move/{new_index}"
        )
        check_response(response)

    def remove_playlist_item(self, playlist_id: str, entry_ids: Sequence[str]) -> None:
        params = {"entryIds": ",".join(entry_ids)}
        response = self.transport.delete(f"Playlists/{playlist_id}/Items/", params=params)
        check_response(response)

    def delete_item(self, item_id: str) -> None:
        """Delete an item (used for playlists) from the server."""
        response = self.transport.delete(f"Items/{item_id}")
        check_response(response)
        logger.info(f"Deleted item {item_id}")

    # -- Media ----------------------------------------------------------

    def get_image(self, item_id: str) -> bytes:
        """Primary image of an item as raw bytes."""
        response = self.transport.get(
            f"Items/{item_id}/Images/Primary", params=IMAGE_PARAMS
        )
        check_response(response)
        return response.content

    def get_stream_uri(self, item_id: str) -> str:
        """Universal audio stream address. No network call."""
        creds = self._credentials
        uri = (
            f"{creds.host}/Audio/{item_id}/universal"
            f"?api_key={creds.access_token}"
            f"&userId={creds.user_id}"
            f"&container={STREAM_CONTAINERS}"
        )
        if self.max_bitrate:
            uri += f"&maxStreamingBitrate={self.max_bitrate}"
        return uri

    def fetch_lyrics(self, item_id: str) -> Lyrics:
        response = self.transport.get(f"Audio/{item_id}/Lyrics")
        return parse_json(response, Lyrics.from_dto)

    # -- Reporting ------------------------------------------------------

    def playback_report(
        self, report: PlaybackReport, status: PlaybackReportStatus
    ) -> None:
        """Tell the server what is playing."""
        response = self.transport.post(status.endpoint, json=report.to_dto())
        check_response(response)

    def close(self) -> None:
        self.transport.close()


def describe_error(error: Exception) -> Dict[str, str]:
    """Map an error to a notification: {"kind", "message"}.

    kind is "auth" for bad credentials, "unreachable" when the host can't be
    reached, otherwise "error".
    """
    if isinstance(error, AuthenticationFailedError):
        return {"kind": "auth", "message": "Invalid username or password"}
    if isinstance(error, TransportError):
        return {"kind": "unreachable", "message": "Can't reach the server"}
    return {"kind": "error", "message": str(error)}
