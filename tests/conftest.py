"""Shared fixtures: a player script, a player response and a watch page."""

import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from streamfetch.core.decipherer import DecipherCache
from streamfetch.core.youtube_client import YouTubeClient
from streamfetch.utils.config import Config

VIDEO_ID = "dQw4w9WgXcQ"
PLAYER_JS_PATH = "/s/player/abc123/player_ias.vflset/en_US/base.js"
PLAYER_JS_URL = "https://www.youtube.com" + PLAYER_JS_PATH

# Drops the first three characters of the signature.
PLAYER_SCRIPT = (
    'var XY={ab:function(a,b){a.splice(0,b)}};\n'
    'XY=function(a){a=a.split("");XY.ab(a,3);return a.join("")};\n'
)

AUDIO_CIPHER = (
    "s=ABCDEFG&sp=sig"
    "&url=https%3A%2F%2Fr1.googlevideo.com%2Fvideoplayback%3Fitag%3D140%26mime%3Daudio%252Fmp4"
)


def make_player_response():
    return {
        "videoDetails": {
            "videoId": VIDEO_ID,
            "title": "Test Video",
            "author": "Test Channel",
            "channelId": "UC1234567890",
            "lengthSeconds": "212",
            "shortDescription": "A short description.",
            "thumbnail": {"thumbnails": [
                {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/default.jpg", "width": 120},
                {"url": "https://i.ytimg.com/vi/dQw4w9WgXcQ/hqdefault.jpg", "width": 480},
            ]},
        },
        "streamingData": {
            "formats": [
                {
                    "itag": 18,
                    "url": "https://r1.googlevideo.com/videoplayback?itag=18",
                    "mimeType": 'video/mp4; codecs="avc1.42001E, mp4a.40.2"',
                    "bitrate": 500000,
                    "width": 640,
                    "height": 360,
                    "qualityLabel": "360p",
                    "fps": 30,
                    "contentLength": "13000000",
                    "audioQuality": "AUDIO_QUALITY_LOW",
                },
            ],
            "adaptiveFormats": [
                {
                    "itag": 137,
                    "url": "https://r1.googlevideo.com/videoplayback?itag=137",
                    "mimeType": 'video/mp4; codecs="avc1.640028"',
                    "bitrate": 4000000,
                    "width": 1920,
                    "height": 1080,
                    "qualityLabel": "1080p",
                    "fps": 30,
                    "contentLength": "90000000",
                },
                {
                    "itag": 248,
                    "url": "https://r1.googlevideo.com/videoplayback?itag=248",
                    "mimeType": 'video/webm; codecs="vp9"',
                    "bitrate": 3000000,
                    "width": 1920,
                    "height": 1080,
                    "qualityLabel": "1080p60",
                    "fps": 60,
                },
                {
                    "itag": 136,
                    "url": "https://r1.googlevideo.com/videoplayback?itag=136",
                    "mimeType": 'video/mp4; codecs="avc1.4d401f"',
                    "bitrate": 2000000,
                    "width": 1280,
                    "height": 720,
                    "qualityLabel": "720p",
                    "fps": 30,
                },
                {
                    "itag": 140,
                    "signatureCipher": AUDIO_CIPHER,
                    "mimeType": 'audio/mp4; codecs="mp4a.40.2"',
                    "bitrate": 130000,
                    "audioQuality": "AUDIO_QUALITY_MEDIUM",
                    "audioSampleRate": "44100",
                    "audioChannels": 2,
                    "approxDurationMs": "212000",
                },
                {
                    "itag": 251,
                    "url": "https://r1.googlevideo.com/videoplayback?itag=251",
                    "mimeType": 'audio/webm; codecs="opus"',
                    "bitrate": 160000,
                    "audioQuality": "AUDIO_QUALITY_MEDIUM",
                    "audioSampleRate": "48000",
                    "audioChannels": 2,
                },
                {
                    "mimeType": 'video/mp4; codecs="avc1.4d401e"',
                    "url": "https://r1.googlevideo.com/videoplayback?noitag",
                },
            ],
        },
    }


def make_watch_page(player_response, js_path=PLAYER_JS_PATH):
    cfg = ""
    if js_path:
        cfg = '<script>ytcfg.set({"PLAYER_JS_URL":"%s"});</script>' % js_path.replace("/", "\\/")
    return (
        "<!DOCTYPE html><html><head><title>Test Video - YouTube</title></head><body>"
        "<script>var ytInitialPlayerResponse = %s;var meta = {};</script>%s"
        "</body></html>"
    ) % (json.dumps(player_response), cfg)


def make_response(text="", json_data=None, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


class FakeSite:
    """Routes session.get calls to canned watch, fallback and script responses."""

    def __init__(self, watch_page, fallback=None, script=PLAYER_SCRIPT):
        self.watch_page = watch_page
        self.fallback = fallback
        self.script = script
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append(url)
        if "pbj=1" in url:
            if self.fallback is None:
                return make_response(status_code=404)
            return make_response(text=json.dumps(self.fallback), json_data=self.fallback)
        if url.endswith("base.js"):
            return make_response(text=self.script)
        return make_response(text=self.watch_page)


@pytest.fixture(autouse=True)
def home_dir(tmp_path, monkeypatch):
    """Keep settings and error logs out of the real home directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    return home


@pytest.fixture
def player_script():
    return PLAYER_SCRIPT


@pytest.fixture
def player_response():
    return make_player_response()


@pytest.fixture
def watch_page(player_response):
    return make_watch_page(player_response)


@pytest.fixture
def site(watch_page):
    return FakeSite(watch_page)


@pytest.fixture
def client(site):
    session = MagicMock()
    session.get.side_effect = site.get
    return YouTubeClient(session=session, config=Config(load=False), decipher_cache=DecipherCache())
