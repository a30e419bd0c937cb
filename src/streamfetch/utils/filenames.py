"""Filename helpers for downloaded streams."""

import re

from ..core.models import MediaStream, VideoDetails

_INVALID_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
_EDGE_CHARS = " \t\n\r\f\v."

_EXTENSIONS = [
    ("video/mp4", ".mp4"),
    ("video/x-matroska", ".mkv"),
    ("video/webm", ".webm"),
    ("audio/mp4", ".m4a"),
    ("audio/webm", ".webm"),
    ("audio/mpeg", ".mp3"),
    ("audio/ogg", ".ogg"),
    ("audio/wav", ".wav"),
]


def sanitize_filename(name: str, max_length: int = 200, fallback: str = "download") -> str:
    """Replace characters filesystems reject and trim the result."""
    output = _INVALID_CHARS_RE.sub("_", name or "").strip(_EDGE_CHARS)
    if len(output) > max_length:
        output = output[:max_length].rstrip(_EDGE_CHARS)
    return output or fallback


def extension_for_mime(mime_type: str) -> str:
    for prefix, ext in _EXTENSIONS:
        if prefix in (mime_type or ""):
            return ext
    return ".bin"


def suggested_filename(details: VideoDetails, stream: MediaStream) -> str:
    """e.g. ``My_Video_1080p60.mp4``"""
    title = sanitize_filename(details.title, 60, fallback="video")
    quality = sanitize_filename(stream.display_quality, 30, fallback=f"itag{stream.itag}")
    return f"{title}_{quality}{extension_for_mime(stream.mime_type)}"
