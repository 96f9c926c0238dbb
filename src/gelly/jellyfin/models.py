"""
Jellyfin domain models.

Immutable values built from server responses. Each model converts to and from
the PascalCase DTO shape the server speaks, so cached JSON and live responses
share one parser.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

DEFAULT_SCHEME = "http://"


def normalize_host(host: str) -> str:
    """Trim whitespace and trailing slashes, defaulting to plain http."""
    host = host.strip().rstrip("/")
    if host and "://" not in host:
        host = DEFAULT_SCHEME + host
    return host


@dataclass(frozen=True)
class Credentials:
    """Authentication state for one server.

    Replaced wholesale on login/logout, never mutated.
    An empty access_token means unauthenticated.
    """

    host: str
    access_token: str = ""
    user_id: str = ""
    device_id: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "host", normalize_host(self.host))

    @property
    def is_authenticated(self) -> bool:
        return bool(self.access_token) and bool(self.user_id)

    def anonymous(self) -> "Credentials":
        """Same host and device, no token or user."""
        return Credentials(host=self.host, device_id=self.device_id)


@dataclass(frozen=True)
class ArtistRef:
    id: str
    name: str

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "ArtistRef":
        return cls(id=dto.get("Id", ""), name=dto.get("Name", ""))

    def to_dto(self) -> Dict[str, Any]:
        return {"Id": self.id, "Name": self.name}


@dataclass(frozen=True)
class LibraryItem:
    """One audio track in the library."""

    id: str
    title: str
    album: str = ""
    album_id: str = ""
    artists: Tuple[str, ...] = ()
    album_artists: Tuple[ArtistRef, ...] = ()
    date_created: str = ""
    duration_ticks: int = 0  # 100ns units
    track_number: int = 0
    disc_number: int = 0
    play_count: int = 0
    is_favorite: bool = False
    played: bool = False
    normalization_gain: Optional[float] = None  # dB
    production_year: Optional[int] = None
    album_image_tag: str = ""

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "LibraryItem":
        """Build from an `/Items` entry. Raises KeyError if Id or Name is missing."""
        user_data = dto.get("UserData") or {}
        artist_items = dto.get("ArtistItems") or []
        if artist_items:
            artists = tuple(a.get("Name", "") for a in artist_items)
        else:
            artists = tuple(dto.get("Artists") or ())
        return cls(
            id=dto["Id"],
            title=dto["Name"],
            album=dto.get("Album") or "",
            album_id=dto.get("AlbumId") or "",
            artists=artists,
            album_artists=tuple(
                ArtistRef.from_dto(a) for a in dto.get("AlbumArtists") or []
            ),
            date_created=dto.get("DateCreated") or "",
            duration_ticks=int(dto.get("RunTimeTicks") or 0),
            track_number=int(dto.get("IndexNumber") or 0),
            disc_number=int(dto.get("ParentIndexNumber") or 0),
            play_count=int(user_data.get("PlayCount") or 0),
            is_favorite=bool(user_data.get("IsFavorite", False)),
            played=bool(user_data.get("Played", False)),
            normalization_gain=dto.get("NormalizationGain"),
            production_year=dto.get("ProductionYear"),
            album_image_tag=dto.get("AlbumPrimaryImageTag") or "",
        )

    def to_dto(self) -> Dict[str, Any]:
        dto: Dict[str, Any] = {
            "Id": self.id,
            "Name": self.title,
            "Album": self.album,
            "AlbumId": self.album_id,
            "Artists": list(self.artists),
            "AlbumArtists": [a.to_dto() for a in self.album_artists],
            "DateCreated": self.date_created,
            "RunTimeTicks": self.duration_ticks,
            "IndexNumber": self.track_number,
            "ParentIndexNumber": self.disc_number,
            "UserData": {
                "PlayCount": self.play_count,
                "IsFavorite": self.is_favorite,
                "Played": self.played,
            },
            "AlbumPrimaryImageTag": self.album_image_tag,
        }
        if self.normalization_gain is not None:
            dto["NormalizationGain"] = self.normalization_gain
        if self.production_year is not None:
            dto["ProductionYear"] = self.production_year
        return dto

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def duration_seconds(self) -> float:
        return self.duration_ticks / 10_000_000


@dataclass(frozen=True)
class LibrarySnapshot:
    """The full library at one point in time.

    total_record_count is what the server reported; it can exceed len(items)
    when pages were dropped during a refresh.
    failed_pages lists those pages; it is not part of the cached document.
    """

    items: Tuple[LibraryItem, ...] = ()
    total_record_count: int = 0
    failed_pages: Tuple[int, ...] = field(default=(), compare=False)

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "LibrarySnapshot":
        return cls(
            items=tuple(LibraryItem.from_dto(i) for i in dto.get("Items") or []),
            total_record_count=int(dto.get("TotalRecordCount") or 0),
        )

    def to_dto(self) -> Dict[str, Any]:
        return {
            "Items": [item.to_dto() for item in self.items],
            "TotalRecordCount": self.total_record_count,
        }

    @property
    def is_partial(self) -> bool:
        return len(self.items) < self.total_record_count

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Library:
    """A library root (user view) on the server."""

    id: str
    name: str
    collection_type: str = ""

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "Library":
        return cls(
            id=dto["Id"],
            name=dto["Name"],
            collection_type=dto.get("CollectionType") or "",
        )

    @property
    def is_music(self) -> bool:
        return self.collection_type == "music"


@dataclass(frozen=True)
class PlaylistSummary:
    id: str
    name: str
    child_count: int = 0

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "PlaylistSummary":
        return cls(
            id=dto["Id"],
            name=dto["Name"],
            child_count=int(dto.get("ChildCount") or 0),
        )

    def to_dto(self) -> Dict[str, Any]:
        return {"Id": self.id, "Name": self.name, "ChildCount": self.child_count}


@dataclass(frozen=True)
class PlaylistItems:
    """Server-ordered item ids of one playlist."""

    playlist_id: str
    item_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dto(cls, playlist_id: str, dto: Dict[str, Any]) -> "PlaylistItems":
        return cls(playlist_id=playlist_id, item_ids=tuple(dto["ItemIds"]))


@dataclass(frozen=True)
class LyricLine:
    text: str
    start_ticks: Optional[int] = None


@dataclass(frozen=True)
class Lyrics:
    lines: Tuple[LyricLine, ...] = ()

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "Lyrics":
        return cls(
            lines=tuple(
                LyricLine(text=line.get("Text", ""), start_ticks=line.get("Start"))
                for line in dto.get("Lyrics") or []
            )
        )

    @property
    def is_synced(self) -> bool:
        return bool(self.lines) and all(
            line.start_ticks is not None for line in self.lines
        )

    def line_at(self, position_ticks: int) -> Optional[int]:
        """Index of the line being sung at position_ticks, None before the first."""
        if not self.is_synced:
            return None
        current = None
        for index, line in enumerate(self.lines):
            if line.start_ticks is not None and line.start_ticks <= position_ticks:
                current = index
            else:
                break
        return current


class PlaybackReportStatus(Enum):
    STARTED = "Started"
    IN_PROGRESS = "InProgress"
    STOPPED = "Stopped"

    @property
    def endpoint(self) -> str:
        return {
            PlaybackReportStatus.STARTED: "Sessions/Playing",
            PlaybackReportStatus.IN_PROGRESS: "Sessions/Playing/Progress",
            PlaybackReportStatus.STOPPED: "Sessions/Playing/Stopped",
        }[self]


@dataclass(frozen=True)
class PlaybackReport:
    item_id: str
    session_id: str
    play_session_id: str
    can_seek: bool = True
    is_paused: bool = False
    is_muted: bool = False
    position_ticks: int = 0

    def to_dto(self) -> Dict[str, Any]:
        return {
            "ItemId": self.item_id,
            "SessionId": self.session_id,
            "PlaySessionId": self.play_session_id,
            "CanSeek": self.can_seek,
            "IsPaused": self.is_paused,
            "IsMuted": self.is_muted,
            "PositionTicks": self.position_ticks,
        }


@dataclass(frozen=True)
class AuthResult:
    """Parsed `/Users/authenticatebyname` response."""

    access_token: str
    user_id: str
    server_id: str = ""

    @classmethod
    def from_dto(cls, dto: Dict[str, Any]) -> "AuthResult":
        return cls(
            access_token=dto["AccessToken"],
            user_id=dto["User"]["Id"],
            server_id=dto.get("ServerId") or "",
        )


@dataclass(frozen=True)
class ItemsPage:
    """One page of a paginated `/Items` listing."""

    items: List[LibraryItem] = field(default_factory=list)
    total_record_count: int = 0
    start_index: int = 0
