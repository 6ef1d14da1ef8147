"""Unit tests for transcript_scraper.logging - structured logging and request context."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest
import structlog

from transcript_scraper.logging import (
    _VALID_LEVELS,
    configure_logging,
    generate_request_id,
    request_logging_context,
)

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture(autouse=True)
def _reset_structlog() -> None:
    """Reset structlog state between tests."""
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


class TestGenerateRequestId:
    """generate_request_id produces short unique hex strings."""

    def test_format(self) -> None:
        rid = generate_request_id()
        assert len(rid) == 12
        int(rid, 16)

    def test_unique_across_calls(self) -> None:
        assert len({generate_request_id() for _ in range(10)}) == 10


class TestConfigureLoggingLevel:
    """configure_logging validates and applies log levels."""

    def test_case_insensitive(self) -> None:
        configure_logging(level="debug")
        assert logging.getLogger().level == logging.DEBUG

    def test_invalid_level_raises(self) -> None:
        with pytest.raises(ValueError, match="Invalid log level"):
            configure_logging(level="TRACE")

    def test_all_valid_levels_accepted(self) -> None:
        for lvl in _VALID_LEVELS:
            configure_logging(level=lvl)
            assert logging.getLogger().level == getattr(logging, lvl)


class TestConfigureLoggingFile:
    """configure_logging creates file handlers."""

    def test_file_receives_json_output(self, tmp_path: Path) -> None:
        log_file = tmp_path / "test.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        structlog.get_logger("test_file").info("test_message", key="value")
        for h in logging.getLogger().handlers:
            h.flush()

        content = log_file.read_text()
        assert '"event": "test_message"' in content
        assert '"key": "value"' in content

    def test_reconfigure_clears_handlers(self, tmp_path: Path) -> None:
        configure_logging(log_file=tmp_path / "first.log")
        configure_logging(log_file=tmp_path / "second.log")
        file_handlers = [
            h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)
        ]
        assert len(file_handlers) == 1

    def test_json_errors_carry_traceback(self, tmp_path: Path) -> None:
        log_file = tmp_path / "errors.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        with pytest.raises(RuntimeError), request_logging_context("abc123"):
            raise RuntimeError("browser crashed")
        for h in logging.getLogger().handlers:
            h.flush()

        error_line = next(
            line for line in log_file.read_text().splitlines() if "request_error" in line
        )
        assert "Traceback" in error_line
        assert "browser crashed" in error_line

    def test_binds_no_context(self) -> None:
        configure_logging(level="INFO")
        assert structlog.contextvars.get_contextvars() == {}


class TestRequestLoggingContext:
    """request_logging_context binds and unbinds request metadata."""

    def test_binds_ids_inside_context(self) -> None:
        with request_logging_context("abc123", request_id="req-1"):
            ctx = structlog.contextvars.get_contextvars()
            assert ctx["resource_id"] == "abc123"
            assert ctx["request_id"] == "req-1"

    def test_unbinds_after_exit(self) -> None:
        with request_logging_context("abc123", attempt=1):
            pass
        ctx = structlog.contextvars.get_contextvars()
        assert "resource_id" not in ctx
        assert "request_id" not in ctx
        assert "attempt" not in ctx

    def test_generates_request_id(self) -> None:
        with request_logging_context("abc123"):
            assert len(structlog.contextvars.get_contextvars()["request_id"]) == 12

    def test_reraises_and_unbinds_on_error(self) -> None:
        with pytest.raises(RuntimeError), request_logging_context("abc123"):
            raise RuntimeError("boom")
        assert "resource_id" not in structlog.contextvars.get_contextvars()

    def test_entries_carry_request_fields(self, tmp_path: Path) -> None:
        log_file = tmp_path / "req.log"
        configure_logging(level="INFO", fmt="json", log_file=log_file)

        with request_logging_context("xyz999", request_id="req-9"):
            structlog.get_logger("test").info("inside")
        for h in logging.getLogger().handlers:
            h.flush()

        lines = [line for line in log_file.read_text().splitlines() if "inside" in line]
        assert '"resource_id": "xyz999"' in lines[0]
        assert '"request_id": "req-9"' in lines[0]
