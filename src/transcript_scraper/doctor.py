"""Health checks and self-diagnostics for transcript-scraper."""

from __future__ import annotations

import importlib.util
from enum import StrEnum
from pathlib import Path

import redis
from pydantic import BaseModel, Field

from transcript_scraper.config import Settings
from transcript_scraper.session_store import SessionStore


class CheckStatus(StrEnum):
    """Status for a doctor check item."""

    OK = "ok"
    WARN = "warn"
    FAIL = "fail"


class CheckResult(BaseModel):
    """A single doctor check result."""

    name: str
    status: CheckStatus
    message: str
    details: dict[str, str] = Field(default_factory=dict)


class DoctorReport(BaseModel):
    """Aggregate report for all diagnostics."""

    checks: list[CheckResult]

    @property
    def healthy(self) -> bool:
        return all(check.status != CheckStatus.FAIL for check in self.checks)

    @property
    def exit_code(self) -> int:
        return 0 if self.healthy else 1


def _check_config_schema(config_path: Path | None) -> CheckResult:
    try:
        Settings.load(config_path=config_path)
        return CheckResult(
            name="config-schema",
            status=CheckStatus.OK,
            message="Configuration schema is valid.",
        )
    except Exception as exc:
        return CheckResult(
            name="config-schema",
            status=CheckStatus.FAIL,
            message="Configuration schema validation failed.",
            details={"error": str(exc)},
        )


def _check_credentials(settings: Settings) -> CheckResult:
    if settings.credentials.configured:
        return CheckResult(
            name="credentials",
            status=CheckStatus.OK,
            message="Login credentials are configured.",
        )
    return CheckResult(
        name="credentials",
        status=CheckStatus.FAIL,
        message="Login username or password is not set.",
        details={"env": "TRANSCRIPT_SCRAPER_CREDENTIALS__USERNAME / __PASSWORD"},
    )


def _check_session_directory(path: Path) -> CheckResult:
    directory = path.parent
    try:
        directory.mkdir(parents=True, exist_ok=True)
        probe = directory / ".doctor-write-test"
        probe.write_text("ok", encoding="utf-8")
        probe.unlink(missing_ok=True)
        return CheckResult(
            name="session-directory",
            status=CheckStatus.OK,
            message="Session state directory is writable.",
            details={"path": str(directory)},
        )
    except OSError as exc:
        return CheckResult(
            name="session-directory",
            status=CheckStatus.FAIL,
            message="Session state directory is not writable.",
            details={"path": str(directory), "error": str(exc)},
        )


def _check_session_state(settings: Settings) -> CheckResult:
    session = SessionStore(settings.session.state_file).load()
    if session is None:
        return CheckResult(
            name="session-state",
            status=CheckStatus.WARN,
            message="No stored session; the next request will log in.",
        )
    if session.is_stale(settings.session.validity_ms):
        return CheckResult(
            name="session-state",
            status=CheckStatus.WARN,
            message="Stored session is stale; the next request will log in.",
            details={"age_hours": f"{session.age_ms() / 3_600_000:.1f}"},
        )
    return CheckResult(
        name="session-state",
        status=CheckStatus.OK,
        message="Stored session is within its validity window.",
        details={"cookies": str(len(session.cookies))},
    )


def _check_redis(url: str, timeout: float) -> CheckResult:
    client = redis.Redis.from_url(url, socket_timeout=timeout)
    try:
        client.ping()
        return CheckResult(
            name="redis",
            status=CheckStatus.OK,
            message="Redis cache is reachable.",
            details={"url": url},
        )
    except (redis.RedisError, OSError) as exc:
        return CheckResult(
            name="redis",
            status=CheckStatus.FAIL,
            message="Redis cache is unreachable; transcripts will not be cached.",
            details={"url": url, "error": str(exc)},
        )
    finally:
        client.close()


def _check_playwright() -> CheckResult:
    if importlib.util.find_spec("playwright") is None:
        return CheckResult(
            name="playwright",
            status=CheckStatus.FAIL,
            message="Playwright is not installed.",
        )
    return CheckResult(
        name="playwright",
        status=CheckStatus.OK,
        message="Playwright is installed.",
        details={"hint": "Run `playwright install chromium` if launches fail."},
    )


def run_doctor(
    settings: Settings,
    config_path: Path | None = None,
    check_redis: bool = True,
) -> DoctorReport:
    """Run all health checks and return a structured report."""
    checks = [
        _check_config_schema(config_path),
        _check_credentials(settings),
        _check_session_directory(Path(settings.session.state_file)),
        _check_session_state(settings),
    ]

    if check_redis:
        checks.append(
            _check_redis(settings.cache.redis_url, settings.cache.socket_timeout)
        )
    else:
        checks.append(
            CheckResult(
                name="redis",
                status=CheckStatus.WARN,
                message="Redis connectivity check was skipped.",
            )
        )

    checks.append(_check_playwright())
    return DoctorReport(checks=checks)
