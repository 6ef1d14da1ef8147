"""Per-request Playwright browser lifecycle.

Each transcript request gets its own Playwright driver, browser, context
and page. Nothing is pooled; everything is torn down when the context
manager exits, whatever the exit path.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import structlog
from playwright.async_api import async_playwright

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

    from playwright.async_api import Browser, BrowserContext, Page

    from transcript_scraper.config import BrowserSettings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class BrowserHandle:
    """The context and page a single request drives."""

    context: BrowserContext
    page: Page


class BrowserFactory(Protocol):
    def __call__(
        self, settings: BrowserSettings
    ) -> AbstractAsyncContextManager[BrowserHandle]: ...


@asynccontextmanager
async def launch_browser(settings: BrowserSettings) -> AsyncIterator[BrowserHandle]:
    """Launch an isolated browser for one request.

    The context carries the configured user agent, and the page's default
    timeout bounds every Playwright call that does not pass its own.

    Args:
        settings: Browser launch and timeout settings.

    Yields:
        A ``BrowserHandle`` for the fresh context and page.
    """
    playwright = await async_playwright().start()
    try:
        launcher = getattr(playwright, settings.browser_type)
        browser: Browser = await launcher.launch(
            headless=settings.headless,
            args=settings.launch_args,
            timeout=settings.launch_timeout,
        )
        try:
            context = await browser.new_context(user_agent=settings.user_agent)
            try:
                page = await context.new_page()
                page.set_default_timeout(settings.default_timeout)
                logger.debug("browser_launched", browser_type=settings.browser_type)
                yield BrowserHandle(context=context, page=page)
            finally:
                await context.close()
        finally:
            await browser.close()
            logger.debug("browser_closed")
    finally:
        await playwright.stop()
