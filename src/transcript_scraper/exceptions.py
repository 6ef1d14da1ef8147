"""Centralized exception hierarchy for the transcript-scraper package.

All domain-specific exceptions inherit from ``TranscriptScraperError`` so
callers can catch the entire family with a single ``except`` clause.
"""

from __future__ import annotations


class TranscriptScraperError(Exception):
    """Base exception for all transcript-scraper errors."""


# ---------------------------------------------------------------------------
# Browser / target site errors
# ---------------------------------------------------------------------------


class AuthenticationError(TranscriptScraperError):
    """Raised when the login workflow fails (credentials, network, timeout)."""


class NavigationError(TranscriptScraperError):
    """Raised when the target resource page cannot be loaded."""


class ContentUnavailableError(TranscriptScraperError):
    """Raised when the activator, container, or any transcript text is missing."""


# ---------------------------------------------------------------------------
# Storage errors (absorbed at their own layer)
# ---------------------------------------------------------------------------


class CacheUnavailableError(TranscriptScraperError):
    """Raised when the key-value cache cannot be reached."""


class PersistenceWriteError(TranscriptScraperError):
    """Raised when the session record cannot be written to disk."""
