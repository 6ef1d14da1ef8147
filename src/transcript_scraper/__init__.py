"""transcript-scraper: session-authenticated transcript retrieval service."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("transcript-scraper")
except PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = ["__version__"]
