"""Typer CLI entry point for transcript-scraper."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer
from redis import asyncio as aioredis
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from transcript_scraper import __version__
from transcript_scraper.api.server import run_server
from transcript_scraper.cache import TranscriptCache
from transcript_scraper.config import Settings, format_validation_error
from transcript_scraper.doctor import CheckStatus, run_doctor
from transcript_scraper.exceptions import TranscriptScraperError
from transcript_scraper.logging import configure_logging
from transcript_scraper.models import FetchResult, FetchStatus, Session
from transcript_scraper.service import TranscriptService
from transcript_scraper.session_store import SessionStore

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="transcript-scraper",
    help="Fetch episode transcripts from a logged-in browser session.",
    no_args_is_help=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_settings(
    config_path: Path | None = None,
    **overrides: Any,
) -> Settings:
    """Load settings with error handling and user-friendly messages."""
    from pydantic import ValidationError

    try:
        settings = Settings.load(config_path=config_path, **overrides)
    except ValidationError as exc:
        err_console.print(
            Panel(
                format_validation_error(exc),
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(code=1) from exc

    configure_logging(
        level=settings.logging.level,
        fmt=settings.logging.format,
        log_file=settings.logging.file,
    )
    return settings


def _run_with_service(
    settings: Settings,
    action: Callable[[TranscriptService], Awaitable[Any]],
) -> Any:
    """Build a service with its own Redis client, run ``action``, close the client."""

    async def runner() -> Any:
        client = aioredis.from_url(
            settings.cache.redis_url,
            decode_responses=True,
            socket_timeout=settings.cache.socket_timeout,
        )
        service = TranscriptService(
            settings,
            TranscriptCache.from_settings(client, settings.cache),
            SessionStore(settings.session.state_file),
        )
        try:
            return await action(service)
        finally:
            await client.aclose()

    return asyncio.run(runner())


def _format_timestamp(epoch_ms: int) -> str:
    return datetime.fromtimestamp(epoch_ms / 1000, tz=UTC).isoformat(timespec="seconds")


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]transcript-scraper[/bold] {__version__}")
        raise typer.Exit


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="Path to config YAML file."),
]


@app.callback()
def common(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """transcript-scraper global options."""


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    port: Annotated[
        int | None,
        typer.Option("--port", help="Port to bind the FastAPI server."),
    ] = None,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host/interface to bind the FastAPI server."),
    ] = None,
    config: ConfigOption = None,
) -> None:
    """Run the transcript HTTP API."""
    api_overrides: dict[str, Any] = {}
    if port is not None:
        api_overrides["port"] = port
    if host is not None:
        api_overrides["host"] = host

    overrides: dict[str, Any] = {"api": api_overrides} if api_overrides else {}
    settings = _load_settings(config, **overrides)
    run_server(settings)


@app.command()
def fetch(
    resource_id: Annotated[str, typer.Argument(help="Episode identifier to fetch.")],
    config: ConfigOption = None,
) -> None:
    """Fetch one transcript and print it."""
    settings = _load_settings(config)
    result: FetchResult = _run_with_service(
        settings, lambda service: service.fetch(resource_id)
    )

    if result.status == FetchStatus.OK:
        err_console.print(f"[dim]source: {result.source}[/dim]")
        console.print(result.transcript, markup=False, highlight=False)
        return

    message = result.error or "Unknown error"
    if result.details:
        message = f"{message}: {result.details}"
    style = "yellow" if result.status == FetchStatus.NOT_FOUND else "red"
    err_console.print(f"[{style}]{message}[/{style}]")
    raise typer.Exit(code=1)


@app.command()
def login(config: ConfigOption = None) -> None:
    """Log in now and store the session, replacing any existing one."""
    settings = _load_settings(config)
    try:
        session: Session = _run_with_service(settings, lambda service: service.login())
    except TranscriptScraperError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(
        f"[green]Logged in.[/green] Stored {len(session.cookies)} cookies in "
        f"{settings.session.state_file}"
    )


@app.command(name="session")
def session_status(config: ConfigOption = None) -> None:
    """Show the stored login session and whether it is stale."""
    settings = _load_settings(config)
    store = SessionStore(settings.session.state_file)
    session = store.load()

    if session is None:
        console.print(f"[yellow]No stored session at {store.path}[/yellow]")
        raise typer.Exit(code=1)

    stale = session.is_stale(settings.session.validity_ms)
    table = Table(title="Stored Session", show_lines=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Path", str(store.path))
    table.add_row("Logged in at", _format_timestamp(session.timestamp))
    table.add_row("Age (hours)", f"{session.age_ms() / 3_600_000:.1f}")
    table.add_row("Validity (days)", str(settings.session.validity_days))
    table.add_row("Stale", "[red]yes[/red]" if stale else "[green]no[/green]")
    table.add_row("Cookies", str(len(session.cookies)))
    console.print(table)


@app.command(name="cache-clear")
def cache_clear(
    resource_id: Annotated[str, typer.Argument(help="Episode identifier to evict.")],
    config: ConfigOption = None,
) -> None:
    """Remove one cached transcript."""
    settings = _load_settings(config)
    removed: bool = _run_with_service(
        settings, lambda service: service.cache.invalidate(resource_id)
    )
    if removed:
        console.print(f"[green]Removed cached transcript:[/green] {resource_id}")
    else:
        console.print(f"[yellow]No cached transcript for:[/yellow] {resource_id}")


@app.command()
def doctor(
    config: ConfigOption = None,
    no_redis: Annotated[
        bool,
        typer.Option("--no-redis", help="Skip the Redis connectivity check."),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", help="Suppress table output, use exit code only."),
    ] = False,
) -> None:
    """Run self-diagnostics and health checks for this environment."""
    settings = _load_settings(config)
    report = run_doctor(
        settings=settings,
        config_path=config,
        check_redis=not no_redis,
    )

    if not quiet:
        table = Table(title="Transcript Scraper Doctor", show_lines=True)
        table.add_column("Check", style="cyan")
        table.add_column("Status", justify="center")
        table.add_column("Message")

        status_style = {
            CheckStatus.OK: "[green]OK[/green]",
            CheckStatus.WARN: "[yellow]WARN[/yellow]",
            CheckStatus.FAIL: "[red]FAIL[/red]",
        }

        for check in report.checks:
            table.add_row(
                check.name,
                status_style[check.status],
                check.message,
            )
        console.print(table)

        for check in report.checks:
            if check.details:
                details = ", ".join(f"{k}={v}" for k, v in check.details.items())
                console.print(f"[dim]{check.name}: {details}[/dim]")

    raise typer.Exit(code=report.exit_code)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
