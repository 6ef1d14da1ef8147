"""Unit tests for transcript_scraper.models."""

from __future__ import annotations

from transcript_scraper.models import (
    Session,
    StoredCookie,
    Transcript,
    TranscriptSegment,
)

WEEK_MS = 7 * 24 * 60 * 60 * 1000


class TestSessionStaleness:
    """Session.is_stale compares login age with the validity window."""

    def test_fresh_session_is_not_stale(self) -> None:
        session = Session(timestamp=1_000_000)
        assert not session.is_stale(WEEK_MS, now=1_000_000 + 60_000)

    def test_session_one_second_past_window_is_stale(self) -> None:
        session = Session(timestamp=1_000_000)
        assert session.is_stale(WEEK_MS, now=1_000_000 + WEEK_MS + 1_000)

    def test_session_exactly_at_window_is_not_stale(self) -> None:
        session = Session(timestamp=0)
        assert not session.is_stale(WEEK_MS, now=WEEK_MS)

    def test_staleness_ignores_cookie_expiry(self) -> None:
        session = Session(
            cookies=[
                StoredCookie(name="a", value="b", domain=".x", expires=4_000_000_000)
            ],
            timestamp=0,
        )
        assert session.is_stale(WEEK_MS, now=WEEK_MS + 1)

    def test_age_ms(self) -> None:
        assert Session(timestamp=500).age_ms(now=1_500) == 1_000


class TestStoredCookie:
    """StoredCookie round-trips Playwright's camelCase cookie fields."""

    def test_accepts_playwright_fields(self) -> None:
        cookie = StoredCookie.model_validate(
            {
                "name": "sp_dc",
                "value": "v",
                "domain": ".spotify.com",
                "path": "/",
                "expires": 123.0,
                "httpOnly": True,
                "secure": True,
                "sameSite": "Lax",
                "partitionKey": "ignored",
            }
        )
        assert cookie.http_only is True
        assert cookie.same_site == "Lax"

    def test_to_playwright_uses_aliases_and_drops_none(self) -> None:
        cookie = StoredCookie(name="n", value="v", domain=".d")
        payload = cookie.to_playwright()
        assert payload["httpOnly"] is False
        assert "sameSite" not in payload
        assert payload["path"] == "/"


class TestTranscript:
    """Transcript serialization."""

    def test_serialize_joins_pairs_with_blank_lines(self) -> None:
        transcript = Transcript(
            segments=[
                TranscriptSegment(time_label="0:00", text="Hi"),
                TranscriptSegment(time_label="0:05", text="There"),
            ]
        )
        assert transcript.serialize() == "0:00\nHi\n\n0:05\nThere"

    def test_single_segment_has_no_separator(self) -> None:
        transcript = Transcript(segments=[TranscriptSegment(time_label="0:00", text="Hello")])
        assert transcript.serialize() == "0:00\nHello"

    def test_empty_transcript(self) -> None:
        transcript = Transcript()
        assert transcript.is_empty
        assert transcript.serialize() == ""
