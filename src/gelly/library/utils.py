"""
Pure helpers that derive albums, artists and track selections from a
library snapshot. No I/O.
"""

import random
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from gelly.jellyfin.models import LibraryItem

TICKS_PER_SECOND = 10_000_000


@dataclass(frozen=True)
class Album:
    id: str
    name: str
    artists: Tuple[str, ...] = ()
    date_created: str = ""
    image_tag: str = ""

    @classmethod
    def from_item(cls, item: LibraryItem) -> "Album":
        return cls(
            id=item.album_id,
            name=item.album,
            artists=item.artists,
            date_created=item.date_created,
            image_tag=item.album_image_tag,
        )

    @property
    def primary_artist(self) -> str:
        return self.artists[0] if self.artists else ""

    @property
    def artists_string(self) -> str:
        return ", ".join(self.artists)


@dataclass(frozen=True)
class Artist:
    id: str
    name: str


def albums_from_library(library: Iterable[LibraryItem]) -> List[Album]:
    """One Album per album id, in library order."""
    seen = set()
    albums = []
    for item in library:
        if item.album_id in seen:
            continue
        seen.add(item.album_id)
        albums.append(Album.from_item(item))
    return albums


def artists_from_library(library: Iterable[LibraryItem]) -> List[Artist]:
    """Distinct album artists, sorted by name ignoring case."""
    seen = set()
    artists = []
    for item in library:
        for ref in item.album_artists:
            if ref.id in seen:
                continue
            seen.add(ref.id)
            artists.append(Artist(id=ref.id, name=ref.name))
    artists.sort(key=lambda a: a.name.lower())
    return artists


def albums_for_artist(artist_id: str, library: Iterable[LibraryItem]) -> List[Album]:
    return albums_from_library(
        item
        for item in library
        if any(ref.id == artist_id for ref in item.album_artists)
    )


def songs_for_album(album_id: str, library: Iterable[LibraryItem]) -> List[LibraryItem]:
    """Tracks of an album in disc, then track order."""
    tracks = [item for item in library if item.album_id == album_id]
    tracks.sort(key=lambda t: (t.disc_number, t.track_number))
    return tracks


def songs_for_ids(ids: Sequence[str], library: Iterable[LibraryItem]) -> List[LibraryItem]:
    """Items whose id is in ids, in the order given by ids.

    Ids missing from the library are skipped.
    """
    by_id = {item.id: item for item in library}
    return [by_id[item_id] for item_id in ids if item_id in by_id]


def shuffle_songs(
    library: Sequence[LibraryItem], count: int, rng: Optional[random.Random] = None
) -> List[LibraryItem]:
    """Up to count distinct random tracks."""
    rng = rng or random.Random()
    return rng.sample(list(library), max(0, min(count, len(library))))


def most_played_songs(library: Iterable[LibraryItem], count: int) -> List[LibraryItem]:
    """Top count tracks by play count; never-played tracks are left out."""
    played = [item for item in library if item.play_count > 0]
    played.sort(key=lambda t: t.play_count, reverse=True)
    return played[: max(0, count)]


def format_duration(ticks: int) -> str:
    """Render 100ns ticks as M:SS, or H:MM:SS past an hour."""
    seconds = ticks // TICKS_PER_SECOND
    minutes = seconds // 60
    hours = minutes // 60
    remaining_seconds = seconds % 60
    if hours > 0:
        return f"{hours}:{minutes % 60:02}:{remaining_seconds:02}"
    return f"{minutes}:{remaining_seconds:02}"
