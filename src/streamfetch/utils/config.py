"""Configuration management."""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)

DEFAULTS = {
    "user_agent": DEFAULT_USER_AGENT,
    "accept_language": "en-US,en;q=0.9",
    "timeout": 15,
    "max_retries": 5,
    "prefer_adaptive": True,
    "default_filter": "",
    "log_level": "INFO",
}


class Config:
    """Manages application configuration."""

    def __init__(self, config_file: Path = None, load: bool = True):
        if config_file is None:
            # Use user's home directory for config
            config_file = Path.home() / "streamfetch_settings.json"
        self.file = Path(config_file)
        self.data = dict(DEFAULTS)
        if load:
            self.load()

    def load(self):
        """Load configuration from file."""
        if not self.file.exists():
            return
        try:
            with open(self.file, 'r', encoding='utf-8') as f:
                loaded = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read settings from {self.file}: {e}")
            return
        if isinstance(loaded, dict):
            self.data.update(loaded)
        else:
            logger.warning(f"Ignoring settings file {self.file}: not a JSON object")

    def save(self):
        """Save configuration to file."""
        try:
            self.file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.file, 'w', encoding='utf-8') as f:
                json.dump(self.data, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings to {self.file}: {e}")

    def _int(self, key: str) -> int:
        try:
            return int(self.data[key])
        except (KeyError, TypeError, ValueError):
            return DEFAULTS[key]

    @property
    def user_agent(self) -> str:
        return str(self.data.get("user_agent") or DEFAULT_USER_AGENT)

    @property
    def accept_language(self) -> str:
        return str(self.data.get("accept_language") or DEFAULTS["accept_language"])

    @property
    def timeout(self) -> int:
        """HTTP timeout in seconds."""
        return self._int("timeout")

    @property
    def max_retries(self) -> int:
        return self._int("max_retries")

    @property
    def prefer_adaptive(self) -> bool:
        return bool(self.data.get("prefer_adaptive", True))

    @property
    def default_filter(self) -> str:
        return str(self.data.get("default_filter") or "")

    @property
    def log_level(self) -> str:
        return str(self.data.get("log_level") or "INFO").upper()

    def set(self, key: str, value):
        """Set a value and persist it."""
        self.data[key] = value
        self.save()
