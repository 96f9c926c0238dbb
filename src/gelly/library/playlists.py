"""
Playlist types.

Regular playlists live on the server. Smart playlists are generated locally
from the library snapshot and are addressed by ids of the form
`smart:<kind>:<count>`.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from gelly.jellyfin.client import ApiClient
from gelly.jellyfin.models import LibraryItem

from .utils import most_played_songs, shuffle_songs, songs_for_ids

DEFAULT_SMART_COUNT = 100
SMART_PREFIX = "smart:"


@dataclass(frozen=True)
class PlaylistType:
    """kind is "regular", "shuffle" or "most_played"."""

    kind: str = "regular"
    count: int = DEFAULT_SMART_COUNT

    @classmethod
    def regular(cls) -> "PlaylistType":
        return cls("regular")

    @classmethod
    def shuffle_library(cls, count: int = DEFAULT_SMART_COUNT) -> "PlaylistType":
        return cls("shuffle", count)

    @classmethod
    def most_played(cls, count: int = DEFAULT_SMART_COUNT) -> "PlaylistType":
        return cls("most_played", count)

    @classmethod
    def from_id(cls, playlist_id: str) -> "PlaylistType":
        """Parse a playlist id; anything not smart is regular.

        A missing, malformed or non-positive count falls back to
        DEFAULT_SMART_COUNT.
        """
        if not playlist_id.startswith(SMART_PREFIX):
            return cls.regular()

        parts = playlist_id.split(":")
        kind = parts[1] if len(parts) > 1 else ""
        if kind not in ("shuffle", "most_played"):
            return cls.regular()

        try:
            count = int(parts[2])
        except (IndexError, ValueError):
            count = DEFAULT_SMART_COUNT
        if count <= 0:
            count = DEFAULT_SMART_COUNT
        return cls(kind, count)

    @property
    def is_smart(self) -> bool:
        return self.kind != "regular"

    def to_id(self) -> Optional[str]:
        if not self.is_smart:
            return None
        return f"{SMART_PREFIX}{self.kind}:{self.count}"

    @property
    def display_name(self) -> str:
        if self.kind == "shuffle":
            return f"{self.count} Shuffled Songs"
        if self.kind == "most_played":
            return f"{self.count} Most Played"
        return "Playlist"

    @property
    def estimated_count(self) -> Optional[int]:
        return self.count if self.is_smart else None

    def load_items(
        self,
        playlist_id: str,
        client: ApiClient,
        library: Sequence[LibraryItem],
    ) -> List[LibraryItem]:
        """Tracks of the playlist, resolved against the library snapshot.

        Only regular playlists touch the network.
        """
        if self.kind == "shuffle":
            return shuffle_songs(library, self.count)
        if self.kind == "most_played":
            return most_played_songs(library, self.count)
        playlist_items = client.get_playlist_items(playlist_id)
        return songs_for_ids(playlist_items.item_ids, library)


def smart_playlists(
    shuffle_enabled: bool = True, most_played_enabled: bool = True
) -> List[PlaylistType]:
    """Smart playlists to offer alongside the server's."""
    types = []
    if shuffle_enabled:
        types.append(PlaylistType.shuffle_library())
    if most_played_enabled:
        types.append(PlaylistType.most_played())
    return types
