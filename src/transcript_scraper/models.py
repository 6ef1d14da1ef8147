"""Data models: persisted login session, transcript, and fetch results."""

from __future__ import annotations

import time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

_SEGMENT_SEPARATOR = "\n\n"


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class StoredCookie(BaseModel):
    """One browser cookie, stored in Playwright's field naming."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    value: str
    domain: str
    path: str = "/"
    expires: float = -1
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False
    same_site: str | None = Field(default=None, alias="sameSite")

    def to_playwright(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class Session(BaseModel):
    """Persisted authenticated identity: cookie set plus login timestamp.

    ``timestamp`` is the epoch-millisecond time of the last successful
    login. Staleness is judged from it alone, never from cookie expiry.
    """

    cookies: list[StoredCookie] = Field(default_factory=list)
    timestamp: int

    def age_ms(self, now: int | None = None) -> int:
        return (now if now is not None else now_ms()) - self.timestamp

    def is_stale(self, validity_ms: int, now: int | None = None) -> bool:
        return self.age_ms(now) > validity_ms


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


class TranscriptSegment(BaseModel):
    """A single timed line of the transcript."""

    time_label: str
    text: str

    def render(self) -> str:
        return f"{self.time_label}\n{self.text}"


class Transcript(BaseModel):
    """Ordered sequence of timed transcript segments."""

    segments: list[TranscriptSegment] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    def serialize(self) -> str:
        """Join segments as ``label\\ntext`` pairs separated by blank lines."""
        return _SEGMENT_SEPARATOR.join(segment.render() for segment in self.segments)


# ---------------------------------------------------------------------------
# Fetch results
# ---------------------------------------------------------------------------


class TranscriptSource(StrEnum):
    """Where a returned transcript came from."""

    CACHE = "cache"
    FRESH = "fresh"


class FetchStatus(StrEnum):
    """Terminal outcome of one transcript request."""

    OK = "ok"
    NOT_FOUND = "not_found"
    ERROR = "error"


class FetchResult(BaseModel):
    """Outcome of ``TranscriptService.fetch``."""

    identifier: str
    status: FetchStatus
    transcript: str | None = None
    source: TranscriptSource | None = None
    error: str | None = None
    details: str | None = None


class TranscriptResponse(BaseModel):
    """HTTP 200 body."""

    identifier: str
    transcript: str
    source: TranscriptSource


class ErrorResponse(BaseModel):
    """HTTP 404/500 body."""

    error: str
    details: str | None = None
