"""Typed parsing of player response JSON into VideoDetails and MediaStream."""

import json
import logging
import math
import re
from typing import Any, List, Mapping, Optional

from .cipher import url_decode
from .errors import ParseError
from .models import MediaStream, StreamFailure, VideoDetails

logger = logging.getLogger(__name__)

# Current key first, then the legacy spelling.
CIPHER_KEYS = ("signatureCipher", "cipher")

_EMBEDDED_URL_RE = re.compile(r"(?:^|&)url=([^&]+)")
_CODECS_RE = re.compile(r'codecs="([^"]*)"')


def read_int(mapping: Mapping[str, Any], key: str, default: Optional[int] = None) -> Optional[int]:
    """Read a numeric field that may be serialised as a number or a numeric string."""
    value = mapping.get(key)
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if isinstance(value, float):
        # inf and nan have no integer value.
        return int(value) if math.isfinite(value) else default
    return default


def read_str(mapping: Mapping[str, Any], key: str, default: str = "") -> str:
    value = mapping.get(key)
    return value if isinstance(value, str) else default


def parse_mime_type(mime_type: str):
    """Split ``type/subtype; codecs="..."`` into (type, subtype, codecs)."""
    media_type, _, rest = mime_type.partition("/")
    subtype = rest.split(";", 1)[0].strip()
    match = _CODECS_RE.search(mime_type)
    codecs = match.group(1) if match else ""
    return media_type.strip(), subtype, codecs


def embedded_url(cipher: str) -> Optional[str]:
    """Best-effort pull of the ``url=`` value out of a raw cipher string."""
    match = _EMBEDDED_URL_RE.search(cipher)
    if not match:
        return None
    return url_decode(match.group(1)) or None


def find_player_response(data: Any) -> Optional[Mapping[str, Any]]:
    """
    Locate the player response inside a fallback endpoint payload.

    The payload is either an object or an array of objects; the player response
    is a ``playerResponse`` member or any object carrying both ``videoDetails``
    and ``streamingData``.
    """
    candidates = data if isinstance(data, list) else [data]
    for element in candidates:
        if not isinstance(element, dict):
            continue
        if isinstance(element.get("playerResponse"), dict):
            return element["playerResponse"]
        if "videoDetails" in element and "streamingData" in element:
            return element
    return None


class StreamModelParser:
    """Converts a player response JSON tree into a VideoDetails."""

    def __init__(self, skipped: Optional[List[StreamFailure]] = None):
        self.skipped = skipped if skipped is not None else []

    def parse(self, root: Any, video_id: str = "") -> VideoDetails:
        if not isinstance(root, dict):
            raise ParseError(f"Player response root must be an object, got {type(root).__name__}")

        vd = root.get("videoDetails")
        if not isinstance(vd, dict):
            logger.debug("Player response has no videoDetails object")
            vd = {}

        length_seconds = read_int(vd, "lengthSeconds", 0)
        streaming = root.get("streamingData")
        if not isinstance(streaming, dict):
            logger.debug("Player response has no streamingData object")
            streaming = {}

        formats = self._parse_stream_list(streaming.get("formats"), False, length_seconds)
        adaptive = self._parse_stream_list(streaming.get("adaptiveFormats"), True, length_seconds)

        return VideoDetails(
            id=video_id or read_str(vd, "videoId"),
            title=read_str(vd, "title"),
            author=read_str(vd, "author"),
            channel_id=read_str(vd, "channelId"),
            length_seconds=length_seconds,
            description=read_str(vd, "shortDescription"),
            thumbnails=tuple(self._thumbnails(vd)),
            formats=tuple(formats),
            adaptive_formats=tuple(adaptive),
        )

    @staticmethod
    def _thumbnails(vd: Mapping[str, Any]) -> List[str]:
        thumbnail = vd.get("thumbnail")
        if not isinstance(thumbnail, dict):
            return []
        items = thumbnail.get("thumbnails")
        if not isinstance(items, list):
            return []
        return [t["url"] for t in items if isinstance(t, dict) and isinstance(t.get("url"), str)]

    def _skip(self, itag: Optional[int], reason: str):
        logger.debug(f"Skipping stream itag={itag}: {reason}")
        self.skipped.append(StreamFailure(itag=itag, reason=reason))

    def _parse_stream_list(self, items: Any, adaptive: bool, length_seconds: int) -> List[MediaStream]:
        if not isinstance(items, list):
            return []
        streams = []
        for item in items:
            if not isinstance(item, dict):
                continue
            stream = self._parse_stream(item, adaptive, length_seconds)
            if stream is not None:
                streams.append(stream)
        return streams

    def _parse_stream(self, item: Mapping[str, Any], adaptive: bool, length_seconds: int) -> Optional[MediaStream]:
        itag = read_int(item, "itag")
        if itag is None:
            self._skip(None, "entry has no itag")
            return None

        url = read_str(item, "url")
        cipher = None
        if not url:
            for key in CIPHER_KEYS:
                cipher = read_str(item, key) or None
                if cipher:
                    break
            if cipher is None:
                self._skip(itag, "entry has neither a url nor a signature cipher")
                return None
            # Provisional only: the deciphered URL replaces it during resolution.
            url = embedded_url(cipher) or ""

        mime_type = read_str(item, "mimeType")
        media_type, _, codecs = parse_mime_type(mime_type)
        bitrate = read_int(item, "bitrate", 0)

        content_length = read_int(item, "contentLength")
        estimated = False
        if content_length is None and bitrate > 0:
            duration_ms = read_int(item, "approxDurationMs")
            seconds = duration_ms // 1000 if duration_ms is not None else length_seconds
            if seconds:
                content_length = (bitrate // 8) * seconds
                estimated = True

        if adaptive:
            is_audio_only = media_type == "audio"
            is_video_only = media_type == "video"
            if not (is_audio_only or is_video_only):
                self._skip(itag, f"adaptive entry has unrecognised MIME type {mime_type!r}")
                return None
        else:
            is_audio_only = is_video_only = True

        return MediaStream(
            itag=itag,
            url=url,
            mime_type=mime_type,
            codecs=codecs,
            bitrate=bitrate,
            width=read_int(item, "width"),
            height=read_int(item, "height"),
            quality_label=read_str(item, "qualityLabel") or None,
            fps=read_int(item, "fps"),
            audio_quality=read_str(item, "audioQuality") or None,
            audio_sample_rate=read_int(item, "audioSampleRate"),
            audio_channels=read_int(item, "audioChannels"),
            content_length=content_length,
            content_length_estimated=estimated,
            is_dash=adaptive,
            is_audio_only=is_audio_only,
            is_video_only=is_video_only,
            signature_cipher=cipher,
        )


def parse_player_response(root: Any, video_id: str = "",
                          skipped: Optional[List[StreamFailure]] = None) -> VideoDetails:
    """Parse a decoded player response; skipped entries go to ``skipped``."""
    return StreamModelParser(skipped).parse(root, video_id)


def parse_player_response_text(text: str, video_id: str = "",
                               skipped: Optional[List[StreamFailure]] = None) -> VideoDetails:
    """Decode JSON text and parse it as a player response."""
    try:
        root = json.loads(text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid player response JSON: {e}") from e
    return parse_player_response(root, video_id, skipped)
