"""Stream filtering and best/worst selection."""

import logging
import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .errors import SelectionError
from .models import (
    FormatSelectionCriteria,
    MediaStream,
    QualityPreference,
    StreamType,
    VideoDetails,
)

logger = logging.getLogger(__name__)

_BEST = {
    QualityPreference.BEST_RESOLUTION,
    QualityPreference.BEST_BITRATE,
    QualityPreference.BEST_AUDIO_BITRATE,
}


def get_all_streams(details: VideoDetails, prefer_adaptive_first: bool = True) -> List[MediaStream]:
    """Muxed and adaptive streams in one list, adaptive first by default."""
    if prefer_adaptive_first:
        return list(details.adaptive_formats) + list(details.formats)
    return list(details.formats) + list(details.adaptive_formats)


def _matches_type(stream: MediaStream, stream_type: StreamType) -> bool:
    if stream_type is StreamType.ANY:
        return True
    if stream_type is StreamType.MUXED:
        return not stream.is_dash
    if stream_type is StreamType.VIDEO_ONLY:
        return stream.is_video_only
    if stream_type is StreamType.AUDIO_ONLY:
        return stream.is_audio_only
    return False


def _matches(stream: MediaStream, criteria: FormatSelectionCriteria) -> bool:
    if not _matches_type(stream, criteria.stream_type):
        return False
    if criteria.target_height is not None and stream.height != criteria.target_height:
        return False
    if criteria.target_fps is not None and stream.fps != criteria.target_fps:
        return False
    # Muxed streams carry both flags, so both codec checks apply to them.
    if criteria.preferred_video_codec and stream.is_video_only:
        if criteria.preferred_video_codec not in stream.codecs:
            return False
    if criteria.preferred_audio_codec and stream.is_audio_only:
        if criteria.preferred_audio_codec not in stream.codecs:
            return False
    return True


def filter_streams(streams: Iterable[MediaStream], criteria: FormatSelectionCriteria) -> List[MediaStream]:
    """Streams satisfying every criterion, in their original order."""
    return [s for s in streams if _matches(s, criteria)]


def _sort_key(stream: MediaStream, preference: QualityPreference) -> Tuple[int, ...]:
    if preference in (QualityPreference.BEST_RESOLUTION, QualityPreference.WORST_RESOLUTION):
        return (stream.height or 0, stream.fps or 0, stream.bitrate)
    return (stream.bitrate,)


def select_best_stream(streams: Sequence[MediaStream],
                       preference: QualityPreference) -> Optional[MediaStream]:
    """
    Pick one stream under ``preference``.

    A single pass keeps the running best, so the first stream wins any tie the
    ordering key cannot break. ``NONE`` returns the first stream.
    """
    if preference in (QualityPreference.BEST_AUDIO_BITRATE, QualityPreference.WORST_AUDIO_BITRATE):
        # Muxed streams carry audio too but are not audio-only.
        streams = [s for s in streams if s.is_audio_only and not s.is_video_only]
    if not streams:
        return None
    if preference is QualityPreference.NONE:
        return streams[0]

    best = None
    best_key = None
    descending = preference in _BEST
    for stream in streams:
        key = _sort_key(stream, preference)
        if best is None or (key > best_key if descending else key < best_key):
            best, best_key = stream, key
    return best


def query_streams(details: VideoDetails, criteria: FormatSelectionCriteria):
    """Filter the default candidate pool and pick one stream if asked to.

    Returns ``(matching_streams, selected_stream_or_None)``.
    """
    pool = get_all_streams(details, criteria.prefer_adaptive_over_muxed)
    matching = filter_streams(pool, criteria)
    selected = None
    if criteria.quality is not QualityPreference.NONE:
        selected = select_best_stream(matching, criteria.quality)
    return matching, selected


# Compact filter strings -----------------------------------------------------

_STREAM_TYPES = {
    "any": StreamType.ANY,
    "all": StreamType.ANY,
    "video": StreamType.VIDEO_ONLY,
    "video_only": StreamType.VIDEO_ONLY,
    "videoonly": StreamType.VIDEO_ONLY,
    "audio": StreamType.AUDIO_ONLY,
    "audio_only": StreamType.AUDIO_ONLY,
    "audioonly": StreamType.AUDIO_ONLY,
    "muxed": StreamType.MUXED,
    "av": StreamType.MUXED,
}

_RANKED_KEYS = {
    "res": (QualityPreference.BEST_RESOLUTION, QualityPreference.WORST_RESOLUTION),
    "bitrate": (QualityPreference.BEST_BITRATE, QualityPreference.WORST_BITRATE),
    "audio_br": (QualityPreference.BEST_AUDIO_BITRATE, QualityPreference.WORST_AUDIO_BITRATE),
    "abr": (QualityPreference.BEST_AUDIO_BITRATE, QualityPreference.WORST_AUDIO_BITRATE),
}

_HEIGHT_RE = re.compile(r"^(\d+)p?$")


def parse_filter_spec(spec: str,
                      base: Optional[FormatSelectionCriteria] = None) -> FormatSelectionCriteria:
    """
    Build criteria from a string such as ``res:best,type:video,vcodec:avc1``.

    Keys: ``res`` (best, worst or a height like 720/720p), ``bitrate`` and
    ``audio_br``/``abr`` (best or worst), ``type`` (any, video, audio, muxed),
    ``fps``, ``vcodec``, ``acodec``. Unknown keys and malformed values are
    logged and skipped.
    """
    criteria = base or FormatSelectionCriteria()
    if not spec:
        return criteria

    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue
        key, sep, value = part.partition(":")
        key, value = key.strip().lower(), value.strip()
        if not sep or not value:
            logger.warning(f"Ignoring malformed filter term {part!r}")
            continue

        if key in _RANKED_KEYS:
            best, worst = _RANKED_KEYS[key]
            lowered = value.lower()
            if lowered == "best":
                criteria = replace(criteria, quality=best)
            elif lowered == "worst":
                criteria = replace(criteria, quality=worst)
            elif key == "res" and _HEIGHT_RE.match(lowered):
                criteria = replace(criteria, target_height=int(_HEIGHT_RE.match(lowered).group(1)))
            else:
                logger.warning(f"Ignoring {key}:{value}; expected best or worst")
        elif key == "type":
            stream_type = _STREAM_TYPES.get(value.lower())
            if stream_type is None:
                logger.warning(f"Ignoring unknown stream type {value!r}")
            else:
                criteria = replace(criteria, stream_type=stream_type)
        elif key == "fps":
            if value.isdigit():
                criteria = replace(criteria, target_fps=int(value))
            else:
                logger.warning(f"Ignoring non-numeric fps {value!r}")
        elif key == "vcodec":
            criteria = replace(criteria, preferred_video_codec=value)
        elif key == "acodec":
            criteria = replace(criteria, preferred_audio_codec=value)
        else:
            logger.warning(f"Ignoring unknown filter key {key!r}")

    return criteria


# Format strings -------------------------------------------------------------

@dataclass(frozen=True)
class SelectedStreams:
    """Video and audio streams chosen for one download."""
    video: Optional[MediaStream] = None
    audio: Optional[MediaStream] = None

    @property
    def is_complete(self) -> bool:
        """True when a single muxed stream covers both sides."""
        return self.video is not None and self.video is self.audio and self.video.is_muxed

    @property
    def streams(self) -> List[MediaStream]:
        if self.is_complete:
            return [self.video]
        return [s for s in (self.video, self.audio) if s is not None]


def _best_video(details: VideoDetails) -> Optional[MediaStream]:
    candidates = [s for s in details.adaptive_formats if s.is_video_only]
    return select_best_stream(candidates, QualityPreference.BEST_RESOLUTION)


def _best_audio(details: VideoDetails) -> Optional[MediaStream]:
    candidates = [s for s in details.adaptive_formats if s.is_audio_only]
    return select_best_stream(candidates, QualityPreference.BEST_AUDIO_BITRATE)


def _by_itag(details: VideoDetails, token: str) -> MediaStream:
    if not token.isdigit():
        raise SelectionError(f"Unknown format selector {token!r}")
    stream = details.find_stream(int(token))
    if stream is None:
        raise SelectionError(f"Format itag {token} not found")
    return stream


def select_format(details: VideoDetails, format_string: str = "best") -> SelectedStreams:
    """
    Resolve a yt-dlp style format string.

    ``best`` picks the best adaptive video plus the best adaptive audio,
    falling back to the best muxed stream. Also accepted: ``bestvideo``,
    ``bestaudio``, an itag, and ``<video>+<audio>`` where each side is an
    itag or ``bestvideo``/``bestaudio``.

    Raises:
        SelectionError: a named itag does not exist or has the wrong kind.
    """
    format_string = (format_string or "best").strip().lower()

    if format_string == "best":
        video, audio = _best_video(details), _best_audio(details)
        if video is not None and audio is not None:
            return SelectedStreams(video=video, audio=audio)
        muxed = select_best_stream(list(details.formats), QualityPreference.BEST_RESOLUTION)
        if muxed is not None:
            return SelectedStreams(video=muxed, audio=muxed)
        return SelectedStreams(video=video, audio=audio)

    if format_string == "bestvideo":
        return SelectedStreams(video=_best_video(details))
    if format_string == "bestaudio":
        return SelectedStreams(audio=_best_audio(details))

    if "+" in format_string:
        video_part, _, audio_part = format_string.partition("+")
        video = _best_video(details) if video_part == "bestvideo" else _by_itag(details, video_part)
        audio = _best_audio(details) if audio_part == "bestaudio" else _by_itag(details, audio_part)
        if video is not None and not video.is_video_only:
            raise SelectionError(f"itag {video.itag} has no video")
        if audio is not None and not audio.is_audio_only:
            raise SelectionError(f"itag {audio.itag} has no audio")
        return SelectedStreams(video=video, audio=audio)

    stream = _by_itag(details, format_string)
    if stream.is_muxed:
        return SelectedStreams(video=stream, audio=stream)
    if stream.is_video_only:
        return SelectedStreams(video=stream, audio=_best_audio(details))
    return SelectedStreams(audio=stream)
