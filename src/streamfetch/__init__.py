"""Metadata and stream URL extraction for YouTube videos."""

from .api import get_stream_url_json, get_video_info_json, query_streams_json
from .core import (
    DecipherCache,
    FormatSelectionCriteria,
    MediaStream,
    QualityPreference,
    ResolvedVideo,
    StreamFetchError,
    StreamType,
    VideoDetails,
    YouTubeClient,
)
from .version import __version__

__all__ = [
    "__version__",
    "get_stream_url_json",
    "get_video_info_json",
    "query_streams_json",
    "DecipherCache",
    "FormatSelectionCriteria",
    "MediaStream",
    "QualityPreference",
    "ResolvedVideo",
    "StreamFetchError",
    "StreamType",
    "VideoDetails",
    "YouTubeClient",
]
