"""
Audio MIME type lookup.
"""

import mimetypes
import os

FALLBACK_AUDIO_MIME_TYPES = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".ogg": "audio/ogg",
}
DEFAULT_MIME_TYPE = "application/octet-stream"


def get_audio_mime_type(filename: str) -> str:
    """Return the MIME type for an audio file based on its extension."""
    ext = os.path.splitext(filename)[1].lower()
    mime_type, _ = mimetypes.guess_type(f"file{ext}") if ext else (None, None)
    if mime_type:
        return mime_type
    return FALLBACK_AUDIO_MIME_TYPES.get(ext, DEFAULT_MIME_TYPE)
