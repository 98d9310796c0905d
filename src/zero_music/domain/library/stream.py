"""
Resolve song ids to files for streaming.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from loguru import logger

from zero_music.core.path_security import validate_song_path
from zero_music.utils.mime import get_audio_mime_type

from .index import LibraryIndex
from .models import is_valid_song_id


@dataclass(frozen=True)
class StreamTarget:
    """A validated file ready to be streamed."""

    song_id: str
    path: Path
    mime_type: str
    file_size: int


def resolve_song_path(index: LibraryIndex, song_id: str) -> Optional[Path]:
    """Map a caller-supplied id to a file inside the library, or None.

    The id is checked against the id pattern before it touches anything
    else, then looked up in the cached catalog, then the path is confirmed
    to still exist inside the library root.
    """
    if not is_valid_song_id(song_id):
        logger.warning(f"Rejected malformed song id: {song_id!r}")
        return None

    song = index.get_entry(song_id)
    if song is None:
        return None

    return validate_song_path(Path(song.file_path), index.directory)


def resolve_stream_target(index: LibraryIndex, song_id: str) -> Optional[StreamTarget]:
    """Resolve an id to its path, MIME type and current size."""
    path = resolve_song_path(index, song_id)
    if path is None:
        return None
    try:
        file_size = path.stat().st_size
    except OSError as e:
        logger.warning(f"Could not stat {path} for streaming: {e}")
        return None
    return StreamTarget(
        song_id=song_id,
        path=path,
        mime_type=get_audio_mime_type(path.name),
        file_size=file_size,
    )
