"""Library domain - audio file indexing and metadata.

This domain handles:
- Song data model and id contract
- Metadata and duration extraction from audio files
- Directory scanning and catalog queries
- The cached, thread-safe library index
"""

# Models
from .models import (
    SONG_ID_HEX_LENGTH,
    VALID_ID_PATTERN,
    VALID_ID_REGEX,
    Song,
    generate_song_id,
    is_valid_song_id,
)

# Errors
from .errors import (
    DirectoryUnavailableError,
    LibraryError,
    ScanCancelledError,
    ScanFailedError,
)

# Metadata extraction
from .duration import compute_duration, format_duration
from .metadata import (
    TagMetadata,
    apply_tags,
    extract_song,
    new_song,
    read_tags,
)

# Scanning and queries
from .scanner import (
    AlbumInfo,
    ArtistInfo,
    SearchResult,
    format_size,
    get_album_songs,
    get_albums,
    get_artist_songs,
    get_artists,
    get_library_stats,
    is_supported_format,
    search_songs,
    walk_audio_files,
)

# Index
from .index import LibraryIndex
from .stream import StreamTarget, resolve_song_path, resolve_stream_target

__all__ = [
    # Models
    "SONG_ID_HEX_LENGTH",
    "VALID_ID_PATTERN",
    "VALID_ID_REGEX",
    "Song",
    "generate_song_id",
    "is_valid_song_id",
    # Errors
    "DirectoryUnavailableError",
    "LibraryError",
    "ScanCancelledError",
    "ScanFailedError",
    # Metadata
    "TagMetadata",
    "apply_tags",
    "compute_duration",
    "extract_song",
    "format_duration",
    "new_song",
    "read_tags",
    # Scanner
    "AlbumInfo",
    "ArtistInfo",
    "SearchResult",
    "format_size",
    "get_album_songs",
    "get_albums",
    "get_artist_songs",
    "get_artists",
    "get_library_stats",
    "is_supported_format",
    "search_songs",
    "walk_audio_files",
    # Index
    "LibraryIndex",
    "StreamTarget",
    "resolve_song_path",
    "resolve_stream_target",
]
