"""Test doubles for Playwright pages, browser factories, and Redis."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from transcript_scraper.browser import BrowserHandle
from transcript_scraper.config import SiteSettings
from transcript_scraper.models import Session, StoredCookie, now_ms

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from transcript_scraper.config import BrowserSettings

DAY_MS = 24 * 60 * 60 * 1000
SITE = SiteSettings()


def make_session(age_ms: int = 0, cookies: int = 1) -> Session:
    """Build a session whose login happened ``age_ms`` ago."""
    return Session(
        cookies=[
            StoredCookie(name=f"sp_dc{i}", value=f"token{i}", domain=".spotify.com")
            for i in range(cookies)
        ],
        timestamp=now_ms() - age_ms,
    )


def transcript_markup(*pairs: tuple[str, str], header: str = "Transcript") -> str:
    """Render container inner HTML: one header child, then one child per pair."""
    rows = "".join(
        f'<div><span data-encore-id="text">{label}</span>'
        f'<span dir="auto">{text}</span></div>'
        for label, text in pairs
    )
    return f'<div class="Header">{header}</div>{rows}'


# ---------------------------------------------------------------------------
# Playwright doubles
# ---------------------------------------------------------------------------


def make_async_cm() -> MagicMock:
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=None)
    cm.__aexit__ = AsyncMock(return_value=False)
    return cm


def make_page(
    *,
    logged_in: bool = True,
    activator_count: int = 1,
    container_markup: str = "",
    container_appears: bool = True,
) -> MagicMock:
    """Build a Page double driven by the default site selectors.

    ``page.activator`` and ``page.container`` expose the locator doubles.
    """
    page = MagicMock()
    page.goto = AsyncMock()
    page.fill = AsyncMock()
    page.click = AsyncMock()
    page.expect_navigation = MagicMock(side_effect=lambda **_: make_async_cm())

    async def wait_for_selector(selector: str, **_: Any) -> None:
        if selector == SITE.logged_in_marker and not logged_in:
            raise PlaywrightTimeoutError("Timeout 10000ms exceeded.")
        if selector == SITE.container_selector and not container_appears:
            raise PlaywrightTimeoutError("Timeout 10000ms exceeded.")

    page.wait_for_selector = AsyncMock(side_effect=wait_for_selector)

    activator = MagicMock()
    activator.count = AsyncMock(return_value=activator_count)
    activator.first.click = AsyncMock()

    container = MagicMock()
    container.first.inner_html = AsyncMock(return_value=container_markup)

    def locator(selector: str, **_: Any) -> MagicMock:
        if selector == SITE.activator_selector:
            return activator
        return container

    page.locator = MagicMock(side_effect=locator)
    page.activator = activator
    page.container = container
    return page


def make_context(cookies: list[dict[str, Any]] | None = None) -> MagicMock:
    if cookies is None:
        cookies = [
            {
                "name": "sp_dc",
                "value": "fresh-token",
                "domain": ".spotify.com",
                "path": "/",
                "expires": 1_900_000_000,
                "httpOnly": True,
                "secure": True,
                "sameSite": "Lax",
            }
        ]
    context = MagicMock()
    context.add_cookies = AsyncMock()
    context.cookies = AsyncMock(return_value=cookies)
    return context


def selectors_waited(page: MagicMock) -> list[str]:
    return [c.args[0] for c in page.wait_for_selector.await_args_list]


def urls_visited(page: MagicMock) -> list[str]:
    return [c.args[0] for c in page.goto.await_args_list]


class FakeBrowserFactory:
    """Browser factory double that counts acquisitions and releases."""

    def __init__(
        self,
        page: MagicMock | None = None,
        context: MagicMock | None = None,
    ) -> None:
        self.page = page if page is not None else make_page()
        self.context = context if context is not None else make_context()
        self.opened = 0
        self.closed = 0

    @asynccontextmanager
    async def __call__(self, settings: BrowserSettings) -> AsyncIterator[BrowserHandle]:
        self.opened += 1
        try:
            yield BrowserHandle(context=self.context, page=self.page)
        finally:
            self.closed += 1


# ---------------------------------------------------------------------------
# Redis double
# ---------------------------------------------------------------------------


class InMemoryRedis:
    """Minimal async stand-in for ``redis.asyncio.Redis`` string commands."""

    def __init__(self, initial: dict[str, str | bytes] | None = None) -> None:
        self.data: dict[str, str | bytes] = dict(initial or {})
        self.expiry: dict[str, int | None] = {}

    async def get(self, key: str) -> str | bytes | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> bool:
        self.data[key] = value
        self.expiry[key] = ex
        return True

    async def delete(self, key: str) -> int:
        return 1 if self.data.pop(key, None) is not None else 0

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None
