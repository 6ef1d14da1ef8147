"""structlog configuration and per-request logging context.

Provides request ID generation, a request-level logging context manager,
and structured log configuration for console and JSON output with
optional file logging.
"""

from __future__ import annotations

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

# ---------------------------------------------------------------------------
# Request ID
# ---------------------------------------------------------------------------


def generate_request_id() -> str:
    """Generate a short unique identifier for one transcript request."""
    return uuid.uuid4().hex[:12]


# ---------------------------------------------------------------------------
# structlog configuration
# ---------------------------------------------------------------------------


_VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _renderer_processors(fmt: str) -> list[structlog.types.Processor]:
    """Final processors for stdlib handlers; JSON needs tracebacks as strings."""
    if fmt == "json":
        return [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [structlog.dev.ConsoleRenderer()]


def _build_handlers(
    numeric_level: int, log_file: str | Path | None
) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(str(log_file), encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(numeric_level)
    return handlers


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    log_file: str | Path | None = None,
) -> None:
    """Route structlog through the stdlib root logger.

    Replaces any handlers from an earlier call, so the CLI and the API
    server can both call this on startup. Request identifiers are not
    bound here; ``request_logging_context`` owns them.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        fmt: ``"console"`` for human-readable or ``"json"`` for one JSON
            object per line.
        log_file: Optional file receiving the same entries as stderr.

    Raises:
        ValueError: If ``level`` is not a recognized log level.
    """
    level_upper = level.upper()
    if level_upper not in _VALID_LEVELS:
        msg = f"Invalid log level: {level!r}. Must be one of {sorted(_VALID_LEVELS)}"
        raise ValueError(msg)
    numeric_level = getattr(logging, level_upper)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *_renderer_processors(fmt),
        ],
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()
    for handler in _build_handlers(numeric_level, log_file):
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


# ---------------------------------------------------------------------------
# Request logging context manager
# ---------------------------------------------------------------------------


@contextmanager
def request_logging_context(
    resource_id: str,
    request_id: str | None = None,
    **extra: Any,
) -> Iterator[structlog.stdlib.BoundLogger]:
    """Context manager that binds request-level metadata to structlog.

    Logs request start and completion, and binds the request and resource
    identifiers to every log entry emitted within the context, including
    entries from the auth and extractor modules.

    Args:
        resource_id: The requested resource identifier.
        request_id: Optional request identifier; generated when omitted.
        **extra: Additional key-value pairs to bind.

    Yields:
        A bound structlog logger with request context.

    Example::

        with request_logging_context("abc123") as log:
            log.info("cache_lookup")
    """
    rid = request_id or generate_request_id()
    structlog.contextvars.bind_contextvars(
        request_id=rid,
        resource_id=resource_id,
        **extra,
    )

    log: structlog.stdlib.BoundLogger = structlog.get_logger("request")
    log.info("request_start")

    try:
        yield log
    except Exception:
        log.exception("request_error")
        raise
    finally:
        log.info("request_end")
        structlog.contextvars.unbind_contextvars(
            "request_id", "resource_id", *extra.keys()
        )
