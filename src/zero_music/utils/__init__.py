"""
Cross-cutting utilities for Zero Music.

Contains:
- mime: audio MIME type lookup
"""

from .mime import get_audio_mime_type

__all__ = [
    "get_audio_mime_type",
]
