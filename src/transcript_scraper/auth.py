"""Login session management for the target site.

Stateless functions over an explicit Playwright context/page, a
``SessionStore`` and ``Settings``. Each request evaluates the session
afresh: reuse the stored cookies when they are recent enough and the
target page shows the logged-in marker, otherwise run the login form
and persist the new cookie set.

Concurrent requests holding the same stale session may both log in.
No lock is taken around ``ensure_authenticated``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from transcript_scraper.exceptions import AuthenticationError, NavigationError
from transcript_scraper.models import Session, StoredCookie, now_ms

if TYPE_CHECKING:
    from playwright.async_api import BrowserContext, Page

    from transcript_scraper.config import Settings
    from transcript_scraper.session_store import SessionStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class AuthOutcome(StrEnum):
    """How ``ensure_authenticated`` reached the logged-in state."""

    REUSED = "reused"
    LOGGED_IN = "logged_in"


def resource_url(settings: Settings, resource_id: str) -> str:
    """Build the target page URL for ``resource_id``."""
    return settings.site.resource_url_template.format(
        resource_id=quote(resource_id, safe="")
    )


def load_reusable_session(
    store: SessionStore,
    validity_ms: int,
    now: int | None = None,
) -> Session | None:
    """Return the stored session if it exists and is not stale."""
    session = store.load()
    if session is None:
        return None

    if session.is_stale(validity_ms, now):
        logger.info("session_stale", age_ms=session.age_ms(now))
        return None

    return session


async def apply_session(context: BrowserContext, session: Session) -> bool:
    """Install the session cookies on ``context``; ``False`` if nothing applied."""
    if not session.cookies:
        return False

    try:
        await context.add_cookies(
            [cookie.to_playwright() for cookie in session.cookies]  # type: ignore[misc]
        )
    except PlaywrightError as exc:
        logger.warning("session_cookies_rejected", error=str(exc))
        return False

    logger.debug("session_cookies_applied", cookie_count=len(session.cookies))
    return True


async def goto_target(page: Page, resource_id: str, settings: Settings) -> None:
    """Navigate to the resource page and wait for the network to settle."""
    url = resource_url(settings, resource_id)
    try:
        await page.goto(
            url,
            wait_until="networkidle",
            timeout=settings.browser.navigation_timeout,
        )
    except PlaywrightError as exc:
        raise NavigationError(f"Failed to load {url}: {exc}") from exc


async def verify_login(page: Page, settings: Settings) -> bool:
    """Wait briefly for the logged-in marker on the current page.

    A missing marker is the normal "not logged in" signal, not an error.
    """
    try:
        await page.wait_for_selector(
            settings.site.logged_in_marker,
            timeout=settings.browser.login_check_timeout,
        )
    except PlaywrightTimeoutError:
        logger.info("login_marker_missing")
        return False
    return True


async def perform_login(
    context: BrowserContext,
    page: Page,
    store: SessionStore,
    settings: Settings,
) -> Session:
    """Fill and submit the login form, then persist the resulting cookies.

    Args:
        context: Browser context whose cookies are captured after login.
        page: Page used to drive the login form.
        store: Session store receiving the new record.
        settings: Application settings (site selectors, credentials, timeouts).

    Returns:
        The new in-memory session. It is returned even when persisting it
        failed, so the current request can proceed.

    Raises:
        AuthenticationError: If credentials are missing or any login step
            fails. Nothing is written to ``store`` in that case.
    """
    credentials = settings.credentials
    if not credentials.configured:
        raise AuthenticationError("Login credentials are not configured")

    site = settings.site
    timeouts = settings.browser
    logger.info("login_start", login_url=site.login_url)

    try:
        await page.goto(
            site.login_url,
            wait_until="networkidle",
            timeout=timeouts.navigation_timeout,
        )

        await page.wait_for_selector(
            site.username_selector, state="visible", timeout=timeouts.default_timeout
        )
        await page.fill(site.username_selector, credentials.username)

        await page.wait_for_selector(
            site.password_selector, state="visible", timeout=timeouts.default_timeout
        )
        await page.fill(site.password_selector, credentials.password.get_secret_value())

        # Navigation listener must be armed before the click fires.
        async with page.expect_navigation(
            wait_until="networkidle", timeout=timeouts.navigation_timeout
        ):
            await page.click(site.submit_selector)

        cookies = [StoredCookie.model_validate(c) for c in await context.cookies()]
    except Exception as exc:
        logger.error("login_failed", error=str(exc))
        raise AuthenticationError(f"Login failed: {exc}") from exc

    session = Session(cookies=cookies, timestamp=now_ms())
    store.save(session)
    logger.info("login_succeeded", cookie_count=len(cookies))
    return session


async def ensure_authenticated(
    context: BrowserContext,
    page: Page,
    resource_id: str,
    store: SessionStore,
    settings: Settings,
) -> AuthOutcome:
    """Leave ``page`` on the resource page in a logged-in state.

    Login state is verified on the resource page itself rather than on a
    generic account page, since access can be gated per page.

    Raises:
        NavigationError: If the resource page cannot be loaded.
        AuthenticationError: If a required login fails.
    """
    session = load_reusable_session(store, settings.session.validity_ms)
    cookies_applied = session is not None and await apply_session(context, session)

    await goto_target(page, resource_id, settings)

    # Marker check always runs; only applied cookies may skip login.
    logged_in = await verify_login(page, settings)
    if cookies_applied and logged_in:
        logger.info("session_reused")
        return AuthOutcome.REUSED

    await perform_login(context, page, store, settings)
    await goto_target(page, resource_id, settings)
    return AuthOutcome.LOGGED_IN
