"""Shared fixtures for library tests: synthetic MP3 files."""

import math
from pathlib import Path
from typing import Optional

import pytest
from mutagen.id3 import APIC, ID3, TALB, TCON, TDRC, TIT2, TPE1, TRCK

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no padding
FRAME_HEADER = b"\xff\xfb\x90\x00"
FRAME_LENGTH = 417
FRAME_SECONDS = 1152 / 44100


def mpeg_frames(seconds: float) -> bytes:
    """Build a run of silent frames lasting at least `seconds`."""
    count = math.ceil(seconds / FRAME_SECONDS)
    frame = FRAME_HEADER + bytes(FRAME_LENGTH - len(FRAME_HEADER))
    return frame * count


def write_id3(
    path: Path,
    title: Optional[str] = None,
    artist: Optional[str] = None,
    album: Optional[str] = None,
    genre: Optional[str] = None,
    year: Optional[str] = None,
    track: Optional[str] = None,
    cover: Optional[bytes] = None,
) -> None:
    tags = ID3()
    if title:
        tags.add(TIT2(encoding=3, text=title))
    if artist:
        tags.add(TPE1(encoding=3, text=artist))
    if album:
        tags.add(TALB(encoding=3, text=album))
    if genre:
        tags.add(TCON(encoding=3, text=genre))
    if year:
        tags.add(TDRC(encoding=3, text=year))
    if track:
        tags.add(TRCK(encoding=3, text=track))
    if cover:
        tags.add(APIC(encoding=3, mime="image/jpeg", type=3, desc="Cover", data=cover))
    tags.save(str(path))


@pytest.fixture
def write_mp3():
    """Factory writing an MP3 of a given length, optionally ID3-tagged."""

    def _write(path: Path, seconds: float = 1.0, **tags) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(mpeg_frames(seconds))
        if tags:
            write_id3(path, **tags)
        return path

    return _write
