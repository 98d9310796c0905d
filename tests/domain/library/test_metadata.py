"""
Tests for song metadata extraction.
"""

import os
from datetime import datetime
from unittest.mock import patch

from zero_music.domain.library.metadata import (
    TagMetadata,
    apply_tags,
    extract_song,
    new_song,
    parse_tag_number,
    read_tags,
)
from zero_music.domain.library.models import generate_song_id


class TestNewSong:
    """Test filename-derived defaults."""

    def test_defaults(self, tmp_path):
        path = tmp_path / "test_song.MP3"
        content = b"dummy audio content"
        path.write_bytes(content)

        song = new_song(str(path), len(content))

        assert song.title == "test_song"
        assert song.artist == "Unknown"
        assert song.album == "Unknown"
        assert song.genre == ""
        assert song.year == 0
        assert song.track == 0
        assert song.duration == 0
        assert song.duration_formatted == "0:00"
        assert song.file_path == str(path)
        assert song.file_name == "test_song.MP3"
        assert song.file_size == len(content)
        assert song.format == ".mp3"
        assert song.has_cover is False
        assert song.id == generate_song_id(str(path))
        assert len(song.id) == 32

    def test_added_at_is_mtime(self, tmp_path):
        path = tmp_path / "old.mp3"
        path.write_bytes(b"x")
        mtime = datetime(2020, 1, 2, 3, 4, 5).timestamp()
        os.utime(path, (mtime, mtime))

        song = new_song(str(path), 1)

        assert song.added_at == datetime.fromtimestamp(mtime)

    def test_added_at_falls_back_to_now(self, tmp_path):
        before = datetime.now()
        song = new_song(str(tmp_path / "vanished.mp3"), 0)
        assert song.added_at >= before

    def test_relative_path_is_made_absolute(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "rel.mp3").write_bytes(b"x")
        song = new_song("rel.mp3", 1)
        expected = os.path.join(os.getcwd(), "rel.mp3")
        assert song.file_path == expected
        assert song.id == generate_song_id(expected)


class TestParseTagNumber:
    """Test parsing of year/track tag values."""

    def test_plain(self):
        assert parse_tag_number("7") == 7

    def test_track_of_total(self):
        assert parse_tag_number("3/12") == 3

    def test_mp4_tuple(self):
        assert parse_tag_number((5, 10)) == 5

    def test_date(self):
        assert parse_tag_number("2001-05-01") == 2001

    def test_garbage_and_zero(self):
        assert parse_tag_number("abc") is None
        assert parse_tag_number("0") is None
        assert parse_tag_number(None) is None
        assert parse_tag_number(()) is None


class TestReadTags:
    """Test best-effort tag reading with mutagen."""

    def test_reads_id3(self, tmp_path, write_mp3):
        path = write_mp3(
            tmp_path / "a.mp3",
            title="Song A",
            artist="Artist A",
            album="Album A",
            genre="Techno",
            year="2019",
            track="4/10",
            cover=b"\xff\xd8\xff\xe0fakejpeg",
        )

        tags = read_tags(str(path))

        assert tags == TagMetadata(
            title="Song A",
            artist="Artist A",
            album="Album A",
            genre="Techno",
            year=2019,
            track=4,
            has_cover=True,
        )

    def test_untagged_file(self, tmp_path, write_mp3):
        path = write_mp3(tmp_path / "plain.mp3")
        assert read_tags(str(path)) is None

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "bad.mp3"
        path.write_bytes(b"definitely not audio")
        assert read_tags(str(path)) is None

    def test_missing_file(self, tmp_path):
        assert read_tags(str(tmp_path / "missing.flac")) is None

    def test_parser_exception_is_swallowed(self, tmp_path):
        path = tmp_path / "a.mp3"
        path.write_bytes(b"x")
        with patch(
            "zero_music.domain.library.metadata.MutagenFile",
            side_effect=RuntimeError("boom"),
        ):
            assert read_tags(str(path)) is None


class TestApplyTags:
    """Test field-by-field overlay of tags onto defaults."""

    def _song(self, tmp_path):
        path = tmp_path / "Default Title.mp3"
        path.write_bytes(b"x")
        return new_song(str(path), 1)

    def test_overwrites_supplied_fields(self, tmp_path):
        song = apply_tags(
            self._song(tmp_path),
            TagMetadata(title="Real", artist="Someone", year=1999, track=2),
        )
        assert song.title == "Real"
        assert song.artist == "Someone"
        assert song.album == "Unknown"
        assert song.year == 1999
        assert song.track == 2

    def test_ignores_empty_and_zero_fields(self, tmp_path):
        original = self._song(tmp_path)
        song = apply_tags(
            original, TagMetadata(title="", artist=None, year=0, track=0)
        )
        assert song.title == "Default Title"
        assert song.artist == "Unknown"
        assert song.year == 0

    def test_does_not_mutate_input(self, tmp_path):
        original = self._song(tmp_path)
        apply_tags(original, TagMetadata(title="Changed"))
        assert original.title == "Default Title"


class TestExtractSong:
    """Test full extraction of a catalog entry."""

    def test_tagged_mp3(self, tmp_path, write_mp3):
        path = write_mp3(
            tmp_path / "a.mp3", seconds=180, title="Song A", artist="Artist A"
        )

        song = extract_song(str(path), path.stat().st_size)

        assert song.title == "Song A"
        assert song.artist == "Artist A"
        assert song.album == "Unknown"
        assert song.duration == 180
        assert song.duration_formatted == "3:00"

    def test_corrupt_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "broken.mp3"
        path.write_bytes(b"\x00" * 64)

        song = extract_song(str(path), 64)

        assert song.title == "broken"
        assert song.artist == "Unknown"
        assert song.duration == 0
        assert song.duration_formatted == "0:00"

    def test_estimates_other_formats(self, tmp_path):
        path = tmp_path / "long.wav"
        size = 176400 * 61
        path.write_bytes(b"\x00" * 16)

        song = extract_song(str(path), size)

        assert song.format == ".wav"
        assert song.duration == 61
        assert song.duration_formatted == "1:01"
