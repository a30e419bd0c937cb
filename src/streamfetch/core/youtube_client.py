"""YouTube metadata extraction over plain HTTP."""

import json
import logging
import re
from typing import Optional, Tuple
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..utils.config import Config
from .blob import extract_json_blob
from .decipherer import DecipherCache
from .errors import ExtractionNotFound, FetchError, LocatorNotFound, ParseError
from .models import ResolvedVideo
from .parser import find_player_response, parse_player_response
from .resolver import resolve_streams

logger = logging.getLogger(__name__)

BASE_URL = "https://www.youtube.com"
WATCH_URL = BASE_URL + "/watch?v={video_id}"
FALLBACK_URL = WATCH_URL + "&pbj=1"

# Header pair the fallback endpoint expects before it answers with JSON.
FALLBACK_HEADERS = {
    "X-YouTube-Client-Name": "1",
    "X-YouTube-Client-Version": "2.20240101.00.00",
}

_VIDEO_ID_PATTERNS = (
    re.compile(r"(?:[?&]v=)([0-9A-Za-z_-]{11})"),
    re.compile(r"youtu\.be/([0-9A-Za-z_-]{11})"),
    re.compile(r"/(?:embed|shorts|v|live)/([0-9A-Za-z_-]{11})"),
)
_BARE_ID_RE = re.compile(r"^[0-9A-Za-z_-]{11}$")
_PLAYER_JS_RE = re.compile(r'"(?:jsUrl|PLAYER_JS_URL)"\s*:\s*"([^"]+)"')


def build_session(config: Optional[Config] = None) -> requests.Session:
    """A session that retries server errors and sends browser-like headers."""
    config = config or Config()
    session = requests.Session()
    retries = Retry(total=config.max_retries, backoff_factor=1, status_forcelist=[500, 502, 503, 504])
    session.mount('https://', HTTPAdapter(max_retries=retries))
    session.mount('http://', HTTPAdapter(max_retries=retries))
    session.headers.update({
        "User-Agent": config.user_agent,
        "Accept-Language": config.accept_language,
    })
    return session


def extract_video_id(url: str) -> str:
    """
    Pull the 11-character video id out of a watch, short, embed or
    youtu.be URL. A bare id is returned unchanged.

    Raises:
        ValueError: nothing that looks like a video id was found.
    """
    url = (url or "").strip()
    if _BARE_ID_RE.match(url):
        return url
    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    raise ValueError(f"Could not find a video id in {url!r}")


def find_player_script_url(document: str) -> Optional[str]:
    match = _PLAYER_JS_RE.search(document or "")
    if not match:
        return None
    return urljoin(BASE_URL, match.group(1).replace("\\/", "/"))


class YouTubeClient:
    """Handles interaction with YouTube to extract metadata."""

    def __init__(self, session: Optional[requests.Session] = None, config: Optional[Config] = None,
                 decipher_cache: Optional[DecipherCache] = None):
        self.config = config or Config()
        self.session = session or build_session(self.config)
        self.decipher_cache = decipher_cache if decipher_cache is not None else DecipherCache()

    def _get(self, url: str, headers: Optional[dict] = None) -> str:
        try:
            response = self.session.get(url, headers=headers, timeout=self.config.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Request to {url} failed: {e}") from e
        return response.text

    def fetch_player_response(self, video_id: str) -> Tuple[dict, Optional[str]]:
        """
        Return the player response object and the player script URL.

        The watch page is tried first; when its embedded blob is missing or
        broken the JSON fallback endpoint is used instead.
        """
        page = self._get(WATCH_URL.format(video_id=video_id))
        script_url = find_player_script_url(page)
        try:
            player_response = json.loads(extract_json_blob(page))
            if not isinstance(player_response, dict):
                raise ParseError("embedded player response is not an object")
            return player_response, script_url
        except (ExtractionNotFound, ParseError, ValueError) as e:
            logger.info(f"Watch page of {video_id} unusable ({e}), trying fallback endpoint")

        try:
            response = self.session.get(FALLBACK_URL.format(video_id=video_id),
                                        headers=FALLBACK_HEADERS, timeout=self.config.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            raise FetchError(f"Fallback request for {video_id} failed: {e}") from e
        except ValueError as e:
            raise ParseError(f"Fallback response for {video_id} is not JSON: {e}") from e

        player_response = find_player_response(data)
        if player_response is None:
            raise ExtractionNotFound(f"No player response for {video_id}")
        return player_response, script_url

    def get_video_info(self, url: str) -> ResolvedVideo:
        """Extracts video metadata and playable stream URLs."""
        video_id = extract_video_id(url)
        player_response, script_url = self.fetch_player_response(video_id)

        skipped = []
        details = parse_player_response(player_response, video_id=video_id, skipped=skipped)
        if not any(s.needs_decipher for s in details.streams):
            return resolve_streams(details, None, failures=tuple(skipped))

        if not script_url:
            logger.warning(f"{video_id} has ciphered streams but no player script URL")
            return resolve_streams(details, None, "player script not found", tuple(skipped))

        try:
            decipherer = self._decipherer_for(script_url)
        except (FetchError, LocatorNotFound) as e:
            logger.warning(f"Cannot decipher streams of {video_id}: {e}")
            return resolve_streams(details, None, str(e), tuple(skipped))
        return resolve_streams(details, decipherer, failures=tuple(skipped))

    def _decipherer_for(self, script_url: str):
        cached = self.decipher_cache.lookup(script_url)
        if cached is not None:
            return cached
        script = self._get(script_url)
        return self.decipher_cache.get(script, script_url)
