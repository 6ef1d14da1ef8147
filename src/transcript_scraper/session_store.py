"""File-backed persistence for the login session.

The record is a single JSON document ``{"cookies": [...], "timestamp": ms}``.
Reads never raise; writes are best-effort and report failure as ``False``.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from transcript_scraper.exceptions import PersistenceWriteError
from transcript_scraper.models import Session

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SessionStore:
    """Load and save the persisted ``Session`` at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Session | None:
        """Return the stored session, or ``None`` if absent or unreadable."""
        if not self._path.exists():
            logger.debug("session_file_missing", path=str(self._path))
            return None

        try:
            raw = self._path.read_bytes()
            return Session.model_validate_json(raw)
        except (OSError, UnicodeDecodeError, ValidationError) as exc:
            logger.warning(
                "session_load_failed",
                path=str(self._path),
                error=str(exc),
            )
            return None

    def save(self, session: Session) -> bool:
        """Persist ``session``, returning ``False`` if the write failed."""
        try:
            self._write(session)
        except PersistenceWriteError as exc:
            logger.error("session_save_failed", path=str(self._path), error=str(exc))
            return False

        logger.info(
            "session_saved",
            path=str(self._path),
            cookie_count=len(session.cookies),
        )
        return True

    def _write(self, session: Session) -> None:
        payload = json.dumps(session.model_dump(mode="json", by_alias=True), indent=2)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._atomic_write(self._path, payload.encode("utf-8"))
        except OSError as exc:
            raise PersistenceWriteError(
                f"Failed to write session file {self._path}: {exc}"
            ) from exc

    @staticmethod
    def _atomic_write(path: Path, data: bytes) -> None:
        """Write data atomically using temp file -> fsync -> os.replace."""
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), suffix=".tmp")
        fd_closed = False
        try:
            os.write(fd, data)
            os.fsync(fd)
            os.close(fd)
            fd_closed = True
            os.replace(tmp_path, str(path))
        except BaseException:
            if not fd_closed:
                os.close(fd)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
