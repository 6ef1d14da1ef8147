"""Shared pytest fixtures for the transcript-scraper test suite."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers import InMemoryRedis
from transcript_scraper.config import Settings
from transcript_scraper.session_store import SessionStore

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Return Settings with credentials set and state under ``tmp_path``.

    Runs from ``tmp_path`` so no local ``.env`` or ``config.yaml`` leaks in.
    """
    monkeypatch.chdir(tmp_path)
    return Settings.load(
        credentials={"username": "listener@example.com", "password": "hunter2"},
        session={"state_file": tmp_path / "state" / "session.json"},
    )


@pytest.fixture()
def store(settings: Settings) -> SessionStore:
    return SessionStore(settings.session.state_file)


@pytest.fixture()
def redis_client() -> InMemoryRedis:
    return InMemoryRedis()
