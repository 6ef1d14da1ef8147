"""FastAPI application exposing ``GET /transcript/{resource_id}``."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from redis import asyncio as aioredis

from transcript_scraper import __version__
from transcript_scraper.cache import TranscriptCache
from transcript_scraper.config import Settings
from transcript_scraper.models import (
    ErrorResponse,
    FetchStatus,
    TranscriptResponse,
)
from transcript_scraper.service import TranscriptService
from transcript_scraper.session_store import SessionStore

_STATUS_CODES = {
    FetchStatus.OK: 200,
    FetchStatus.NOT_FOUND: 404,
    FetchStatus.ERROR: 500,
}


def create_app(
    settings: Settings | None = None,
    service: TranscriptService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI server app.

    When ``service`` is omitted, a Redis client is created from
    ``settings.cache.redis_url`` and closed on shutdown.
    """
    app_settings = settings or Settings.load()

    redis_client: aioredis.Redis | None = None
    if service is None:
        redis_client = aioredis.from_url(
            app_settings.cache.redis_url,
            decode_responses=True,
            socket_timeout=app_settings.cache.socket_timeout,
        )
        service = TranscriptService(
            app_settings,
            TranscriptCache.from_settings(redis_client, app_settings.cache),
            SessionStore(app_settings.session.state_file),
        )

    app = FastAPI(title="transcript-scraper API", version=__version__)
    app.state.settings = app_settings
    app.state.service = service

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        if redis_client is not None:
            await redis_client.aclose()

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get(
        "/transcript/{resource_id}",
        response_model=TranscriptResponse,
        responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def get_transcript(resource_id: str) -> JSONResponse:
        result = await service.fetch(resource_id)

        if result.status == FetchStatus.OK:
            body = TranscriptResponse(
                identifier=result.identifier,
                transcript=result.transcript or "",
                source=result.source,  # type: ignore[arg-type]
            ).model_dump(mode="json")
        else:
            body = ErrorResponse(
                error=result.error or "Unknown error",
                details=result.details,
            ).model_dump(mode="json", exclude_none=True)

        return JSONResponse(status_code=_STATUS_CODES[result.status], content=body)

    return app
