"""Uvicorn server runner for the transcript-scraper API."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uvicorn

from transcript_scraper.api.app import create_app

if TYPE_CHECKING:
    from transcript_scraper.config import Settings


def run_server(settings: Settings) -> None:
    """Run uvicorn with settings-backed host/port values."""
    app = create_app(settings)
    uvicorn.run(
        app,
        host=settings.api.host,
        port=settings.api.port,
        log_level=settings.logging.level.lower(),
    )
