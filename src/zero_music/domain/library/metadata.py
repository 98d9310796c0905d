"""
Music metadata extraction.

Builds catalog entries from audio files: stable id and filename defaults
first, then a best-effort overlay of embedded tags read with Mutagen, then
the duration.
"""

import os
from dataclasses import dataclass, replace
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from loguru import logger
from mutagen import File as MutagenFile

from .duration import compute_duration, format_duration
from .models import UNKNOWN, Song, generate_song_id

# Tag keys per field: ID3 (MP3), MP4 atoms, Vorbis/FLAC comments
TITLE_KEYS = ["TIT2", "\xa9nam", "TITLE", "title"]
ARTIST_KEYS = ["TPE1", "\xa9ART", "ARTIST", "artist"]
ALBUM_KEYS = ["TALB", "\xa9alb", "ALBUM", "album"]
GENRE_KEYS = ["TCON", "\xa9gen", "GENRE", "genre"]
YEAR_KEYS = ["TDRC", "TYER", "\xa9day", "DATE", "YEAR", "date", "year"]
TRACK_KEYS = ["TRCK", "trkn", "TRACKNUMBER", "tracknumber"]
COVER_KEYS = ["covr", "metadata_block_picture"]


@dataclass
class TagMetadata:
    """Partial metadata read from embedded tags; None means not supplied."""

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    genre: Optional[str] = None
    year: Optional[int] = None
    track: Optional[int] = None
    has_cover: Optional[bool] = None


def get_tag_value(audio_file: Any, tag_names: list[str]) -> Optional[Any]:
    """Get the first raw tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                if isinstance(value, list):
                    return value[0]
                return value
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def get_tag_text(audio_file: Any, tag_names: list[str]) -> Optional[str]:
    """Get a tag value as stripped text, or None when absent or blank."""
    value = get_tag_value(audio_file, tag_names)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_tag_number(value: Any) -> Optional[int]:
    """Parse numbers like 3, "3/12", (3, 12) or "2001-05-01" into 3 / 2001."""
    if value is None:
        return None
    if isinstance(value, tuple):
        value = value[0] if value else None
        if value is None:
            return None
    text = str(value).strip()
    for sep in ("/", "-"):
        text = text.split(sep)[0]
    try:
        number = int(text)
    except ValueError:
        return None
    return number if number > 0 else None


def has_embedded_cover(audio_file: Any) -> bool:
    """Check the common picture containers for an embedded cover."""
    if getattr(audio_file, "pictures", None):
        return True

    tags = getattr(audio_file, "tags", None)
    if tags is None:
        return False
    if hasattr(tags, "getall"):
        return bool(tags.getall("APIC"))

    for key in COVER_KEYS:
        try:
            if key in tags:
                return True
        except (KeyError, ValueError):
            continue
    return False


def read_tags(local_path: str) -> Optional[TagMetadata]:
    """Read embedded tags, returning None on any failure.

    Unsupported formats, corrupt tags and I/O errors all degrade to None so
    the caller keeps its defaults.
    """
    try:
        audio_file = MutagenFile(local_path)
        if audio_file is None or audio_file.tags is None:
            return None

        return TagMetadata(
            title=get_tag_text(audio_file, TITLE_KEYS),
            artist=get_tag_text(audio_file, ARTIST_KEYS),
            album=get_tag_text(audio_file, ALBUM_KEYS),
            genre=get_tag_text(audio_file, GENRE_KEYS),
            year=parse_tag_number(get_tag_value(audio_file, YEAR_KEYS)),
            track=parse_tag_number(get_tag_value(audio_file, TRACK_KEYS)),
            has_cover=has_embedded_cover(audio_file),
        )
    except Exception as e:
        logger.debug(f"Could not read tags from {local_path}: {e}")
        return None


def new_song(local_path: str, file_size: int) -> Song:
    """Create a song populated with filename-derived defaults."""
    local_path = os.path.abspath(local_path)
    path = Path(local_path)

    try:
        added_at = datetime.fromtimestamp(os.stat(local_path).st_mtime)
    except OSError:
        added_at = datetime.now()

    return Song(
        id=generate_song_id(local_path),
        title=path.stem,
        file_path=local_path,
        file_name=path.name,
        file_size=file_size,
        format=path.suffix.lower(),
        added_at=added_at,
        artist=UNKNOWN,
        album=UNKNOWN,
    )


def apply_tags(song: Song, tags: TagMetadata) -> Song:
    """Overlay tag fields onto a song; empty or zero fields are ignored."""
    overlay: dict[str, Any] = {}
    for name in ("title", "artist", "album", "genre"):
        value = getattr(tags, name)
        if value:
            overlay[name] = value
    for name in ("year", "track"):
        value = getattr(tags, name)
        if value:
            overlay[name] = value
    if tags.has_cover is not None:
        overlay["has_cover"] = tags.has_cover
    return replace(song, **overlay) if overlay else song


def extract_song(local_path: str, file_size: int) -> Song:
    """Build the catalog entry for an audio file.

    Always returns a song for a file that exists; tag and duration failures
    leave the defaults in place.
    """
    song = new_song(local_path, file_size)

    tags = read_tags(song.file_path)
    if tags is not None:
        song = apply_tags(song, tags)

    duration = compute_duration(song.file_path, song.format, song.file_size)
    return replace(
        song, duration=duration, duration_formatted=format_duration(duration)
    )
