"""Data models for videos, streams and format selection."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Optional, Tuple, Any


class StreamType(Enum):
    """Structural stream kind requested by a selection."""
    ANY = "any"
    VIDEO_ONLY = "video_only"
    AUDIO_ONLY = "audio_only"
    MUXED = "muxed"


class QualityPreference(Enum):
    """Ordering used when picking a single stream."""
    NONE = "none"
    BEST_RESOLUTION = "best_resolution"
    WORST_RESOLUTION = "worst_resolution"
    BEST_BITRATE = "best_bitrate"
    WORST_BITRATE = "worst_bitrate"
    BEST_AUDIO_BITRATE = "best_audio_bitrate"
    WORST_AUDIO_BITRATE = "worst_audio_bitrate"


class DecipherState(Enum):
    """Lifecycle of a sandboxed decipherer."""
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class MediaStream:
    """One downloadable audio and/or video representation."""
    itag: int
    url: str                     # resolved, provisional, or "" while pending
    mime_type: str               # e.g. 'video/mp4; codecs="avc1.4d401f"'
    codecs: str = ""
    bitrate: int = 0
    width: Optional[int] = None
    height: Optional[int] = None
    quality_label: Optional[str] = None  # e.g. "1080p60"
    fps: Optional[int] = None
    audio_quality: Optional[str] = None  # e.g. "AUDIO_QUALITY_MEDIUM"
    audio_sample_rate: Optional[int] = None
    audio_channels: Optional[int] = None
    content_length: Optional[int] = None
    content_length_estimated: bool = False
    is_dash: bool = False
    is_audio_only: bool = True
    is_video_only: bool = True
    signature_cipher: Optional[str] = None

    @property
    def media_type(self) -> str:
        """Primary MIME type, "audio" or "video" (empty when unknown)."""
        return self.mime_type.split("/", 1)[0].strip() if "/" in self.mime_type else ""

    @property
    def container(self) -> str:
        """MIME subtype without parameters, e.g. "mp4" or "webm"."""
        if "/" not in self.mime_type:
            return ""
        return self.mime_type.split("/", 1)[1].split(";", 1)[0].strip()

    @property
    def is_muxed(self) -> bool:
        return not self.is_dash

    @property
    def needs_decipher(self) -> bool:
        return self.signature_cipher is not None

    @property
    def display_quality(self) -> str:
        """Short human label: quality label, height, audio quality or itag."""
        if self.quality_label:
            return self.quality_label
        if self.height:
            return f"{self.height}p"
        if self.is_audio_only and self.audio_quality:
            return self.audio_quality
        return f"itag{self.itag}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "itag": self.itag,
            "url": self.url,
            "mimeType": self.mime_type,
            "codecs": self.codecs or None,
            "bitrate": self.bitrate,
            "width": self.width,
            "height": self.height,
            "qualityLabel": self.quality_label,
            "fps": self.fps,
            "audioQuality": self.audio_quality,
            "audioSampleRate": self.audio_sample_rate,
            "audioChannels": self.audio_channels,
            "contentLength": self.content_length,
            "contentLengthEstimated": self.content_length_estimated,
            "isDash": self.is_dash,
            "isAudioOnly": self.is_audio_only,
            "isVideoOnly": self.is_video_only,
            "needsDecipher": self.needs_decipher,
        }


@dataclass(frozen=True)
class VideoDetails:
    """Metadata and stream lists for a single video."""
    id: str = ""
    title: str = ""
    author: str = ""
    channel_id: str = ""
    length_seconds: int = 0
    description: str = ""
    thumbnails: Tuple[str, ...] = ()
    formats: Tuple[MediaStream, ...] = ()           # muxed
    adaptive_formats: Tuple[MediaStream, ...] = ()  # audio-only / video-only

    @property
    def streams(self) -> Tuple[MediaStream, ...]:
        return self.formats + self.adaptive_formats

    def with_streams(self, formats, adaptive_formats) -> "VideoDetails":
        """Return a copy carrying different stream lists."""
        return replace(self, formats=tuple(formats), adaptive_formats=tuple(adaptive_formats))

    def find_stream(self, itag: int) -> Optional[MediaStream]:
        for stream in self.streams:
            if stream.itag == itag:
                return stream
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "channelId": self.channel_id,
            "lengthSeconds": self.length_seconds,
            "description": self.description,
            "thumbnails": list(self.thumbnails),
            "formats": [s.to_dict() for s in self.formats],
            "adaptiveFormats": [s.to_dict() for s in self.adaptive_formats],
        }


@dataclass(frozen=True)
class DecipherOperations:
    """Script fragments located in one player script version."""
    function_name: str
    function_code: str               # standalone "function NAME(a){...}"
    helper_name: Optional[str] = None
    helper_code: Optional[str] = None  # "var NAME={...};"

    @property
    def has_helper(self) -> bool:
        return bool(self.helper_name and self.helper_code)


@dataclass(frozen=True)
class FormatSelectionCriteria:
    """What kind of stream a caller wants and how to rank candidates."""
    stream_type: StreamType = StreamType.ANY
    quality: QualityPreference = QualityPreference.NONE
    target_height: Optional[int] = None
    target_fps: Optional[int] = None
    preferred_video_codec: Optional[str] = None  # e.g. "avc1", "vp9", "av01"
    preferred_audio_codec: Optional[str] = None  # e.g. "mp4a", "opus"
    prefer_adaptive_over_muxed: bool = True


@dataclass(frozen=True)
class StreamFailure:
    """A stream that was skipped or could not be resolved, and why."""
    itag: Optional[int]
    reason: str

    def to_dict(self) -> Dict[str, Any]:
        return {"itag": self.itag, "reason": self.reason}


@dataclass(frozen=True)
class ResolvedVideo:
    """Video details together with every stream that did not make it."""
    details: VideoDetails
    failures: Tuple[StreamFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, Any]:
        data = self.details.to_dict()
        data["failures"] = [f.to_dict() for f in self.failures]
        return data
