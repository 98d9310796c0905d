"""
Music library scanning and search operations.

Handles walking the library directory for audio files and the read-only
queries (search, artists, albums, statistics) that run over a catalog copy.
"""

import os
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from loguru import logger

from .duration import format_duration
from .errors import ScanCancelledError, ScanFailedError
from .models import Song

DEFAULT_SEARCH_LIMIT = 50
MAX_SEARCH_LIMIT = 200
SEARCH_TYPES = ("all", "song", "artist", "album")


def is_supported_format(local_path: str, supported_formats: Iterable[str]) -> bool:
    """Check if file format is supported."""
    return os.path.splitext(local_path)[1].lower() in supported_formats


def _check_cancelled(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise ScanCancelledError("Library scan cancelled")


def walk_audio_files(
    directory: str,
    supported_formats: Iterable[str],
    cancel: Optional[threading.Event] = None,
) -> Iterator[tuple[str, int]]:
    """Walk a directory tree and yield (path, size) for each audio file.

    Each directory's files are yielded in name order before its
    subdirectories are walked, also in name order. Symlinked
    directories are not followed. A file whose stat fails is logged and
    skipped; a directory that cannot be listed aborts the walk.

    Args:
        directory: Root directory to walk
        supported_formats: Lowercased extensions (with leading dot) to include
        cancel: Optional event checked before every entry

    Raises:
        ScanFailedError: A directory could not be read
        ScanCancelledError: The cancel event was set
    """
    formats = frozenset(supported_formats)
    stack = [directory]

    while stack:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            raise ScanFailedError(current, f"Failed to access {current}: {e}") from e

        subdirs = []
        for entry in entries:
            _check_cancelled(cancel)

            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.path)
                    continue
                if not entry.is_file():
                    continue
            except OSError as e:
                logger.warning(f"Could not inspect {entry.path}: {e}")
                continue

            if not is_supported_format(entry.name, formats):
                continue

            try:
                size = entry.stat().st_size
            except OSError as e:
                logger.warning(f"Failed to stat file {entry.path}: {e}")
                continue

            yield entry.path, size

        # Reverse so the lexically first subdirectory is walked next
        stack.extend(reversed(subdirs))


@dataclass
class SearchResult:
    """One page of search matches plus the artists/albums of all matches."""

    songs: list[Song] = field(default_factory=list)
    total: int = 0
    artists: list[str] = field(default_factory=list)
    albums: list[str] = field(default_factory=list)


@dataclass
class ArtistInfo:
    name: str
    song_count: int


@dataclass
class AlbumInfo:
    name: str
    artist: str
    song_count: int
    year: int = 0


def _matches(song: Song, query: str, search_type: str) -> bool:
    if search_type == "song":
        return query in song.title.lower()
    if search_type == "artist":
        return query in song.artist.lower()
    if search_type == "album":
        return query in song.album.lower()
    return (
        query in song.title.lower()
        or query in song.artist.lower()
        or query in song.album.lower()
    )


def search_songs(
    songs: list[Song],
    query: str,
    search_type: str = "all",
    limit: int = DEFAULT_SEARCH_LIMIT,
    offset: int = 0,
) -> SearchResult:
    """Search songs by title, artist or album.

    Title matches sort first, then by title. Out-of-range limits fall back
    to the default and negative offsets to zero. Unknown search types
    search all fields.

    Raises:
        ValueError: If the query is blank
    """
    query = query.strip().lower()
    if not query:
        raise ValueError("Search query must not be empty")
    if limit <= 0 or limit > MAX_SEARCH_LIMIT:
        limit = DEFAULT_SEARCH_LIMIT
    offset = max(offset, 0)

    matched = [song for song in songs if _matches(song, query, search_type)]
    matched.sort(key=lambda s: (query not in s.title.lower(), s.title))

    artists = sorted({song.artist for song in matched if song.artist})
    albums = sorted({song.album for song in matched if song.album})

    return SearchResult(
        songs=matched[offset : offset + limit],
        total=len(matched),
        artists=artists,
        albums=albums,
    )


def get_artists(songs: list[Song]) -> list[ArtistInfo]:
    """List artists by song count (descending), then name."""
    counts: dict[str, int] = {}
    for song in songs:
        if song.artist:
            counts[song.artist] = counts.get(song.artist, 0) + 1

    artists = [ArtistInfo(name=name, song_count=count) for name, count in counts.items()]
    artists.sort(key=lambda a: (-a.song_count, a.name))
    return artists


def get_artist_songs(songs: list[Song], artist: str) -> list[Song]:
    """Get all songs by an artist (case-insensitive), sorted by album and title."""
    artist = artist.lower()
    result = [song for song in songs if song.artist.lower() == artist]
    result.sort(key=lambda s: (s.album, s.title))
    return result


def get_albums(songs: list[Song]) -> list[AlbumInfo]:
    """List albums grouped by album and artist, sorted by name."""
    albums: dict[tuple[str, str], AlbumInfo] = {}
    for song in songs:
        if not song.album:
            continue
        key = (song.album, song.artist)
        if key in albums:
            albums[key].song_count += 1
        else:
            albums[key] = AlbumInfo(
                name=song.album, artist=song.artist, song_count=1, year=song.year
            )

    return sorted(albums.values(), key=lambda a: a.name)


def get_album_songs(songs: list[Song], album: str) -> list[Song]:
    """Get all songs on an album (case-insensitive), sorted by track then title."""
    album = album.lower()
    result = [song for song in songs if song.album.lower() == album]
    result.sort(key=lambda s: (s.track, s.title))
    return result


def format_size(bytes_size: float) -> str:
    """Format file size in bytes to human readable string."""
    for unit in ["B", "KB", "MB", "GB"]:
        if bytes_size < 1024:
            return f"{bytes_size:.1f} {unit}"
        bytes_size /= 1024
    return f"{bytes_size:.1f} TB"


def get_library_stats(songs: list[Song]) -> dict[str, Any]:
    """Get statistics about the music library."""
    total_duration = sum(song.duration for song in songs)
    total_size = sum(song.file_size for song in songs)

    formats: dict[str, int] = {}
    for song in songs:
        if song.format:
            formats[song.format] = formats.get(song.format, 0) + 1

    return {
        "total_songs": len(songs),
        "total_duration": total_duration,
        "total_duration_str": format_duration(total_duration),
        "total_size": total_size,
        "total_size_str": format_size(total_size),
        "artists": len({song.artist for song in songs if song.artist}),
        "albums": len({song.album for song in songs if song.album}),
        "formats": formats,
    }
