"""End-to-end transcript retrieval: cache, browser, login, extraction.

``TranscriptService`` owns no long-lived resources of its own. The Redis
client behind ``TranscriptCache`` and the session file behind
``SessionStore`` are created by the caller; a browser is launched per
call through ``browser_factory`` and always released before returning.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from transcript_scraper.auth import ensure_authenticated, perform_login
from transcript_scraper.browser import launch_browser
from transcript_scraper.exceptions import ContentUnavailableError
from transcript_scraper.extractor import extract_transcript
from transcript_scraper.logging import request_logging_context
from transcript_scraper.models import FetchResult, FetchStatus, Session, TranscriptSource

if TYPE_CHECKING:
    from transcript_scraper.browser import BrowserFactory
    from transcript_scraper.cache import TranscriptCache
    from transcript_scraper.config import Settings
    from transcript_scraper.session_store import SessionStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class TranscriptService:
    """Fetch transcripts through the cache, falling back to the live site."""

    def __init__(
        self,
        settings: Settings,
        cache: TranscriptCache,
        store: SessionStore,
        browser_factory: BrowserFactory = launch_browser,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._store = store
        self._browser_factory = browser_factory

    @property
    def cache(self) -> TranscriptCache:
        return self._cache

    @property
    def store(self) -> SessionStore:
        return self._store

    async def fetch(self, resource_id: str) -> FetchResult:
        """Return the transcript for ``resource_id`` as a ``FetchResult``.

        Never raises for scraping failures: content that is missing maps to
        ``NOT_FOUND``, anything else to ``ERROR`` with the cause in
        ``details``. Only non-empty fresh transcripts are cached.
        """
        with request_logging_context(resource_id) as log:
            cached = await self._cache.get(resource_id)
            if cached:
                log.info("transcript_served", source=TranscriptSource.CACHE)
                return FetchResult(
                    identifier=resource_id,
                    status=FetchStatus.OK,
                    transcript=cached,
                    source=TranscriptSource.CACHE,
                )

            try:
                transcript = await self._scrape(resource_id)
            except ContentUnavailableError as exc:
                log.info("transcript_unavailable", reason=str(exc))
                return FetchResult(
                    identifier=resource_id,
                    status=FetchStatus.NOT_FOUND,
                    error=str(exc),
                )
            except Exception as exc:
                log.error(
                    "transcript_retrieval_failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                return FetchResult(
                    identifier=resource_id,
                    status=FetchStatus.ERROR,
                    error=INTERNAL_ERROR_MESSAGE,
                    details=str(exc),
                )

            await self._cache.put(resource_id, transcript)
            log.info("transcript_served", source=TranscriptSource.FRESH)
            return FetchResult(
                identifier=resource_id,
                status=FetchStatus.OK,
                transcript=transcript,
                source=TranscriptSource.FRESH,
            )

    async def _scrape(self, resource_id: str) -> str:
        async with self._browser_factory(self._settings.browser) as handle:
            outcome = await ensure_authenticated(
                handle.context,
                handle.page,
                resource_id,
                self._store,
                self._settings,
            )
            logger.info("authenticated", outcome=outcome)
            transcript = await extract_transcript(handle.page, self._settings)
        return transcript.serialize()

    async def login(self) -> Session:
        """Force a fresh login and persist the resulting session."""
        async with self._browser_factory(self._settings.browser) as handle:
            return await perform_login(
                handle.context, handle.page, self._store, self._settings
            )
