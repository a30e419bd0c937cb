"""Version management for StreamFetch."""

import tomllib
from importlib import metadata
from pathlib import Path


def get_version() -> str:
    """Get the installed version, else the one in pyproject.toml."""
    try:
        return metadata.version("streamfetch")
    except metadata.PackageNotFoundError:
        pass

    pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            return tomllib.load(f)["project"]["version"]
    except (OSError, KeyError, tomllib.TOMLDecodeError):
        # Fallback version if we can't read it
        return "0.0.0"


__version__ = get_version()
