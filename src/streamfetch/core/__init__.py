"""Core functionality for StreamFetch."""

from .blob import extract_json_blob
from .cipher import SignatureCipher, parse_signature_cipher, url_decode
from .decipherer import DecipherCache, JSInterpreterEngine, SandboxedDecipherer, ScriptEngine
from .errors import (
    CipherParseError,
    DecipherExecutionFailure,
    ExtractionNotFound,
    FetchError,
    LocatorNotFound,
    ParseError,
    SelectionError,
    StreamFetchError,
)
from .locator import ScriptFunctionLocator, locate_decipher_operations
from .models import (
    DecipherOperations,
    DecipherState,
    FormatSelectionCriteria,
    MediaStream,
    QualityPreference,
    ResolvedVideo,
    StreamFailure,
    StreamType,
    VideoDetails,
)
from .parser import StreamModelParser, parse_player_response, parse_player_response_text
from .resolver import resolve_stream, resolve_streams
from .selector import (
    SelectedStreams,
    filter_streams,
    get_all_streams,
    parse_filter_spec,
    query_streams,
    select_best_stream,
    select_format,
)
from .youtube_client import YouTubeClient, extract_video_id

__all__ = [
    "extract_json_blob",
    "SignatureCipher",
    "parse_signature_cipher",
    "url_decode",
    "DecipherCache",
    "JSInterpreterEngine",
    "SandboxedDecipherer",
    "ScriptEngine",
    "CipherParseError",
    "DecipherExecutionFailure",
    "ExtractionNotFound",
    "FetchError",
    "LocatorNotFound",
    "ParseError",
    "SelectionError",
    "StreamFetchError",
    "ScriptFunctionLocator",
    "locate_decipher_operations",
    "DecipherOperations",
    "DecipherState",
    "FormatSelectionCriteria",
    "MediaStream",
    "QualityPreference",
    "ResolvedVideo",
    "StreamFailure",
    "StreamType",
    "VideoDetails",
    "StreamModelParser",
    "parse_player_response",
    "parse_player_response_text",
    "resolve_stream",
    "resolve_streams",
    "SelectedStreams",
    "filter_streams",
    "get_all_streams",
    "parse_filter_spec",
    "query_streams",
    "select_best_stream",
    "select_format",
    "YouTubeClient",
    "extract_video_id",
]
