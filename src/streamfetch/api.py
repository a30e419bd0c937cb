"""JSON envelope functions for callers outside Python.

Every function returns ``{"success": true, "data": ...}`` or
``{"success": false, "error": "..."}`` as a JSON string and never raises.
"""

import json
import logging
from typing import Any, Optional

from .core.errors import StreamFetchError
from .core.models import FormatSelectionCriteria
from .core.selector import parse_filter_spec, query_streams
from .core.youtube_client import YouTubeClient
from .utils.filenames import suggested_filename
from .utils.logging import log_error

logger = logging.getLogger(__name__)


def success(data: Any) -> str:
    return json.dumps({"success": True, "data": data})


def failure(message: str) -> str:
    return json.dumps({"success": False, "error": message})


def _guard(action: str, func, *args) -> str:
    try:
        return success(func(*args))
    except (StreamFetchError, ValueError) as e:
        logger.warning(f"{action} failed: {e}")
        return failure(f"{action} failed: {e}")
    except Exception as e:
        logger.exception(f"Unexpected error during {action}")
        log_error(f"Unexpected error during {action}", e)
        return failure(f"Unexpected error during {action}: {e}")


def get_video_info_json(url: str, client: Optional[YouTubeClient] = None) -> str:
    """Metadata and every resolved stream of ``url``."""
    def fetch():
        if not url:
            raise ValueError("no URL provided")
        return (client or YouTubeClient()).get_video_info(url).to_dict()

    return _guard("fetching video details", fetch)


def get_stream_url_json(url: str, itag: int, client: Optional[YouTubeClient] = None) -> str:
    """The playable URL of one stream plus a filename to save it under."""
    def fetch():
        if not url:
            raise ValueError("no URL provided")
        resolved = (client or YouTubeClient()).get_video_info(url)
        stream = resolved.details.find_stream(int(itag))
        if stream is None or not stream.url:
            reason = next((f.reason for f in resolved.failures if f.itag == int(itag)), None)
            if reason:
                raise StreamFetchError(f"stream {itag} is unavailable: {reason}")
            raise StreamFetchError(f"stream {itag} not found or has no URL")
        return {
            "url": stream.url,
            "suggested_filename": suggested_filename(resolved.details, stream),
            "stream": stream.to_dict(),
        }

    return _guard("getting stream URL", fetch)


def query_streams_json(url: str, filter_spec: str = "", client: Optional[YouTubeClient] = None) -> str:
    """
    Streams of ``url`` matching a compact filter such as ``type:audio,abr:best``.

    ``data.streams`` lists every match; ``data.selected`` is the single pick
    when the filter asks for best/worst, else null.
    """
    def fetch():
        if not url:
            raise ValueError("no URL provided")
        client_ = client or YouTubeClient()
        resolved = client_.get_video_info(url)
        base = FormatSelectionCriteria(prefer_adaptive_over_muxed=client_.config.prefer_adaptive)
        criteria = parse_filter_spec(filter_spec or client_.config.default_filter, base)
        matching, selected = query_streams(resolved.details, criteria)
        return {
            "id": resolved.details.id,
            "title": resolved.details.title,
            "streams": [s.to_dict() for s in matching],
            "selected": selected.to_dict() if selected is not None else None,
            "failures": [f.to_dict() for f in resolved.failures],
        }

    return _guard("querying streams", fetch)
