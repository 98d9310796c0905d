"""
Music library domain models.

Contains the catalog entry record and the identifier contract shared with
every collaborator that references songs by id.
"""

import hashlib
import os
import re
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

# Song ids are the first 16 bytes of SHA-256(path), hex encoded.
SONG_ID_BYTES = 16
SONG_ID_HEX_LENGTH = SONG_ID_BYTES * 2
VALID_ID_PATTERN = rf"^[a-f0-9]{{{SONG_ID_HEX_LENGTH}}}$"
VALID_ID_REGEX = re.compile(VALID_ID_PATTERN)

UNKNOWN = "Unknown"


def generate_song_id(file_path: str) -> str:
    """Derive the stable song id from a file path.

    Pure function of the path bytes: rescanning an unchanged tree yields the
    same ids, and editing a file's content does not change its id.
    """
    # fsencode restores the raw bytes of names that are not valid UTF-8
    digest = hashlib.sha256(os.fsencode(file_path)).digest()
    return digest[:SONG_ID_BYTES].hex()


def is_valid_song_id(value: Any) -> bool:
    """Check a caller-supplied id against the 32-char lowercase hex pattern."""
    # fullmatch: "$" alone would accept a trailing newline
    return isinstance(value, str) and VALID_ID_REGEX.fullmatch(value) is not None


@dataclass
class Song:
    """One playable audio file in the catalog.

    Instances are built fresh on every rebuild and handed out only as
    copies, so callers may mutate what they receive.
    """

    id: str
    title: str
    file_path: str
    file_name: str
    file_size: int
    format: str  # lowercased extension, e.g. ".mp3"
    added_at: datetime  # file mtime at scan time
    artist: str = UNKNOWN
    album: str = UNKNOWN
    genre: str = ""
    year: int = 0
    track: int = 0
    duration: int = 0  # in seconds
    duration_formatted: str = "0:00"
    has_cover: bool = False

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready representation."""
        data = asdict(self)
        data["added_at"] = self.added_at.isoformat()
        return data
