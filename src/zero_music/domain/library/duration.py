"""
Audio duration computation.

MP3 files are measured by walking their MPEG frame headers and summing the
per-frame playback time. Everything else is estimated from the file size
with a per-format byte rate.
"""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

# Duration strategy per extension: None means "decode MPEG frames",
# an int is the assumed bytes per second for a size-based estimate.
DECODE_FRAMES = None
DURATION_STRATEGIES: dict[str, Optional[int]] = {
    ".mp3": DECODE_FRAMES,
    ".flac": 125000,  # ~1000 kbps
    ".wav": 176400,  # 16 bit, 44.1 kHz, stereo
    ".m4a": 24000,  # ~192 kbps
    ".aac": 24000,
    ".ogg": 25000,  # ~200 kbps
}
DEFAULT_BYTES_PER_SECOND = 32000  # ~256 kbps

# MPEG version ids from the header, mapped to table keys.
MPEG_1 = 1
MPEG_2 = 2
MPEG_25 = 25
_VERSIONS = {0b11: MPEG_1, 0b10: MPEG_2, 0b00: MPEG_25}
_LAYERS = {0b11: 1, 0b10: 2, 0b01: 3}

# kbps, indexed by the 4-bit bitrate field (0 = free format, 15 = invalid)
_BITRATES = {
    (MPEG_1, 1): (0, 32, 64, 96, 128, 160, 192, 224, 256, 288, 320, 352, 384, 416, 448),
    (MPEG_1, 2): (0, 32, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320, 384),
    (MPEG_1, 3): (0, 32, 40, 48, 56, 64, 80, 96, 112, 128, 160, 192, 224, 256, 320),
    (MPEG_2, 1): (0, 32, 48, 56, 64, 80, 96, 112, 128, 144, 160, 176, 192, 224, 256),
    (MPEG_2, 2): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
    (MPEG_2, 3): (0, 8, 16, 24, 32, 40, 48, 56, 64, 80, 96, 112, 128, 144, 160),
}

_SAMPLE_RATES = {
    MPEG_1: (44100, 48000, 32000),
    MPEG_2: (22050, 24000, 16000),
    MPEG_25: (11025, 12000, 8000),
}

ID3V2_HEADER_SIZE = 10
FRAME_HEADER_SIZE = 4


@dataclass(frozen=True)
class FrameHeader:
    """Decoded MPEG audio frame header."""

    version: int
    layer: int
    bitrate: int  # bits per second
    sample_rate: int
    padding: bool

    @property
    def samples(self) -> int:
        if self.layer == 1:
            return 384
        if self.layer == 3 and self.version != MPEG_1:
            return 576
        return 1152

    @property
    def length(self) -> int:
        """Frame length in bytes, header included."""
        if self.layer == 1:
            return (12 * self.bitrate // self.sample_rate + int(self.padding)) * 4
        slot_factor = 72 if (self.layer == 3 and self.version != MPEG_1) else 144
        return slot_factor * self.bitrate // self.sample_rate + int(self.padding)

    @property
    def duration(self) -> float:
        return self.samples / self.sample_rate


def parse_frame_header(data: bytes) -> Optional[FrameHeader]:
    """Decode a 4-byte MPEG audio frame header, or None if it is not one."""
    if len(data) < FRAME_HEADER_SIZE:
        return None
    b0, b1, b2 = data[0], data[1], data[2]
    if b0 != 0xFF or (b1 & 0xE0) != 0xE0:
        return None

    version = _VERSIONS.get((b1 >> 3) & 0b11)
    layer = _LAYERS.get((b1 >> 1) & 0b11)
    if version is None or layer is None:
        return None

    bitrate_index = b2 >> 4
    sample_rate_index = (b2 >> 2) & 0b11
    if bitrate_index in (0, 15) or sample_rate_index == 3:
        return None

    table_version = MPEG_1 if version == MPEG_1 else MPEG_2
    bitrate = _BITRATES[(table_version, layer)][bitrate_index] * 1000
    return FrameHeader(
        version=version,
        layer=layer,
        bitrate=bitrate,
        sample_rate=_SAMPLE_RATES[version][sample_rate_index],
        padding=bool((b2 >> 1) & 0b1),
    )


def _skip_id3v2(data, pos: int) -> int:
    """Return the offset just past any ID3v2 tags starting at pos."""
    while data[pos : pos + 3] == b"ID3" and pos + ID3V2_HEADER_SIZE <= len(data):
        flags = data[pos + 5]
        size_bytes = data[pos + 6 : pos + 10]
        if any(b & 0x80 for b in size_bytes):
            break
        # Synchsafe integer: 7 significant bits per byte
        size = 0
        for b in size_bytes:
            size = (size << 7) | b
        pos += ID3V2_HEADER_SIZE + size
        if flags & 0x10:  # footer present
            pos += ID3V2_HEADER_SIZE
    return pos


def decode_mpeg_duration(data) -> float:
    """Sum frame durations over an MPEG audio stream.

    Bytes that do not form a valid header are skipped up to the next sync
    byte. Decoding stops at the end of data or at a frame truncated by the
    end of data; whatever has been accumulated by then is returned. Every
    iteration advances the position, so the loop is bounded by len(data).
    """
    size = len(data)
    pos = _skip_id3v2(data, 0)
    total = 0.0

    while pos + FRAME_HEADER_SIZE <= size:
        header = parse_frame_header(data[pos : pos + FRAME_HEADER_SIZE])
        if header is None:
            next_sync = data.find(b"\xff", pos + 1)
            if next_sync < 0:
                break
            pos = next_sync
            continue

        frame_length = header.length
        if frame_length < FRAME_HEADER_SIZE or pos + frame_length > size:
            break
        total += header.duration
        pos += frame_length

    return total


def mp3_duration(file_path: str) -> int:
    """Decode an MP3 file's frames and return its whole-second duration."""
    # Plain read: a file shrinking underneath us only shortens the stream
    try:
        with open(file_path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.debug(f"Could not decode MPEG frames in {file_path}: {e}")
        return 0
    return int(decode_mpeg_duration(data))


def estimate_duration(file_size: int, file_format: str) -> int:
    """Estimate duration from size using the per-format byte rate."""
    if file_size <= 0:
        return 0
    bytes_per_second = DURATION_STRATEGIES.get(file_format) or DEFAULT_BYTES_PER_SECOND
    return file_size // bytes_per_second


def compute_duration(file_path: str, file_format: str, file_size: int) -> int:
    """Pick the duration strategy for a format and apply it."""
    file_format = file_format.lower()
    strategy = DURATION_STRATEGIES.get(file_format, DEFAULT_BYTES_PER_SECOND)
    if strategy is DECODE_FRAMES:
        return mp3_duration(file_path)
    return estimate_duration(file_size, file_format)


def format_duration(seconds: float) -> str:
    """Format seconds as M:SS, or H:MM:SS once minutes reach 60."""
    if seconds <= 0:
        return "0:00"

    seconds = int(seconds)
    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"
