"""
Tests for MPEG frame decoding and size-based duration estimates.
"""

import math
import os
from unittest.mock import patch

import pytest

from zero_music.domain.library.duration import (
    DEFAULT_BYTES_PER_SECOND,
    DURATION_STRATEGIES,
    MPEG_1,
    MPEG_2,
    compute_duration,
    decode_mpeg_duration,
    estimate_duration,
    format_duration,
    mp3_duration,
    parse_frame_header,
)

# MPEG-1 Layer III, 128 kbps, 44.1 kHz, no padding
FRAME_HEADER = b"\xff\xfb\x90\x00"
FRAME_LENGTH = 417
FRAME_SECONDS = 1152 / 44100


def mpeg_frames(seconds: float) -> bytes:
    count = math.ceil(seconds / FRAME_SECONDS)
    return (FRAME_HEADER + bytes(FRAME_LENGTH - len(FRAME_HEADER))) * count


class TestParseFrameHeader:
    """Test MPEG audio frame header decoding."""

    def test_mpeg1_layer3(self):
        header = parse_frame_header(FRAME_HEADER)
        assert header is not None
        assert header.version == MPEG_1
        assert header.layer == 3
        assert header.bitrate == 128000
        assert header.sample_rate == 44100
        assert header.padding is False
        assert header.samples == 1152
        assert header.length == FRAME_LENGTH

    def test_padding_adds_one_byte(self):
        header = parse_frame_header(b"\xff\xfb\x92\x00")
        assert header.padding is True
        assert header.length == FRAME_LENGTH + 1

    def test_mpeg2_layer3(self):
        # MPEG-2, Layer III, 64 kbps, 22.05 kHz
        header = parse_frame_header(b"\xff\xf3\x80\x00")
        assert header.version == MPEG_2
        assert header.layer == 3
        assert header.bitrate == 64000
        assert header.sample_rate == 22050
        assert header.samples == 576
        assert header.length == 72 * 64000 // 22050

    def test_layer1_length(self):
        # MPEG-1, Layer I, 128 kbps (index 4), 48 kHz
        header = parse_frame_header(b"\xff\xff\x44\x00")
        assert header.layer == 1
        assert header.samples == 384
        assert header.length == (12 * 128000 // 48000) * 4

    @pytest.mark.parametrize(
        "data",
        [
            b"\x00\x00\x00\x00",  # no sync
            b"\xff\x0b\x90\x00",  # partial sync
            b"\xff\xeb\x90\x00",  # reserved version
            b"\xff\xf9\x90\x00",  # reserved layer
            b"\xff\xfb\x00\x00",  # free-format bitrate
            b"\xff\xfb\xf0\x00",  # bad bitrate
            b"\xff\xfb\x9c\x00",  # reserved sample rate
            b"\xff\xfb",  # too short
        ],
    )
    def test_rejects_invalid(self, data):
        assert parse_frame_header(data) is None


class TestDecodeMpegDuration:
    """Test summing frame durations over a stream."""

    def test_sums_frames(self):
        data = mpeg_frames(10)
        frames = len(data) // FRAME_LENGTH
        assert decode_mpeg_duration(data) == pytest.approx(frames * FRAME_SECONDS)

    def test_empty_stream(self):
        assert decode_mpeg_duration(b"") == 0.0

    def test_garbage_only(self):
        assert decode_mpeg_duration(b"this is not an mp3 file at all") == 0.0

    def test_truncated_trailing_frame_keeps_total(self):
        data = mpeg_frames(2)
        frames = len(data) // FRAME_LENGTH
        truncated = data + FRAME_HEADER + b"\x00" * 10
        assert decode_mpeg_duration(truncated) == pytest.approx(frames * FRAME_SECONDS)

    def test_resyncs_after_junk(self):
        one = mpeg_frames(FRAME_SECONDS)
        data = one + b"junk\x00\xff\x01" + one
        assert decode_mpeg_duration(data) == pytest.approx(2 * FRAME_SECONDS)

    def test_skips_id3v2_tag(self):
        # ID3v2.4 header declaring 20 bytes of tag body full of 0xFF
        tag = b"ID3\x04\x00\x00\x00\x00\x00\x14" + b"\xff" * 20
        data = tag + mpeg_frames(FRAME_SECONDS)
        assert decode_mpeg_duration(data) == pytest.approx(FRAME_SECONDS)


class TestMp3Duration:
    """Test decoding MP3 files on disk."""

    def test_three_minute_file(self, tmp_path, write_mp3):
        path = write_mp3(tmp_path / "a.mp3", seconds=180)
        assert mp3_duration(str(path)) == 180

    def test_tagged_file(self, tmp_path, write_mp3):
        path = write_mp3(tmp_path / "a.mp3", seconds=65, title="Tagged")
        assert mp3_duration(str(path)) == 65

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.mp3"
        path.write_bytes(b"")
        assert mp3_duration(str(path)) == 0

    def test_missing_file(self, tmp_path):
        assert mp3_duration(str(tmp_path / "missing.mp3")) == 0

    def test_file_truncated_while_decoding(self, tmp_path, write_mp3):
        """A rewrite that shrinks the file mid-decode must not crash the scan."""
        path = write_mp3(tmp_path / "a.mp3", seconds=30)

        def shrink_then_decode(data):
            os.truncate(path, 100)
            return decode_mpeg_duration(data)

        with patch(
            "zero_music.domain.library.duration.decode_mpeg_duration",
            side_effect=shrink_then_decode,
        ):
            assert mp3_duration(str(path)) == 30
        assert path.stat().st_size == 100


class TestEstimateDuration:
    """Test size-based estimates for formats without frame decoding."""

    def test_lossless_rates_exceed_lossy(self):
        assert DURATION_STRATEGIES[".flac"] > DURATION_STRATEGIES[".ogg"]
        assert DURATION_STRATEGIES[".wav"] > DURATION_STRATEGIES[".m4a"]

    @pytest.mark.parametrize(
        "fmt,rate",
        [
            (".flac", 125000),
            (".wav", 176400),
            (".m4a", 24000),
            (".aac", 24000),
            (".ogg", 25000),
        ],
    )
    def test_known_formats(self, fmt, rate):
        assert estimate_duration(rate * 200, fmt) == 200

    def test_unknown_format_uses_default(self):
        assert estimate_duration(DEFAULT_BYTES_PER_SECOND * 30, ".wma") == 30

    def test_zero_size(self):
        assert estimate_duration(0, ".flac") == 0

    def test_compute_dispatches_by_format(self, tmp_path):
        path = tmp_path / "x.flac"
        path.write_bytes(b"\x00")
        assert compute_duration(str(path), ".FLAC", 125000 * 90) == 90


class TestFormatDuration:
    """Test M:SS / H:MM:SS formatting."""

    @pytest.mark.parametrize(
        "seconds,expected",
        [
            (0, "0:00"),
            (-5, "0:00"),
            (7, "0:07"),
            (59, "0:59"),
            (60, "1:00"),
            (180, "3:00"),
            (3599, "59:59"),
            (3600, "1:00:00"),
            (3725, "1:02:05"),
        ],
    )
    def test_formats(self, seconds, expected):
        assert format_duration(seconds) == expected
