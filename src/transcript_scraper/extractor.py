"""Transcript extraction from the rendered resource page.

Opens the transcript tab on an already-authenticated page, waits for the
transcript container, snapshots its HTML and parses it with lxml.

The container's first child is page chrome, not a transcript line, and is
skipped. This mirrors the target site's current markup and is the part of
the pipeline most likely to break when that markup changes.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

import structlog
from lxml import etree, html
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from transcript_scraper.exceptions import ContentUnavailableError
from transcript_scraper.models import Transcript, TranscriptSegment

if TYPE_CHECKING:
    from lxml.html import HtmlElement
    from playwright.async_api import Page

    from transcript_scraper.config import SiteSettings, Settings

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _first_text(element: HtmlElement, xpath: str) -> str:
    matches = element.xpath(xpath)
    if not matches:
        return ""
    return (matches[0].text_content() or "").strip()


def parse_transcript_html(markup: str, site: SiteSettings) -> Transcript:
    """Parse the inner HTML of the transcript container.

    Every direct child after the first is one candidate line. A line
    contributes a segment only when both its time label and its text are
    present and non-blank.

    Args:
        markup: Inner HTML of the transcript container.
        site: Site settings holding the label and text XPath selectors.

    Returns:
        The parsed transcript, possibly empty.
    """
    if not markup.strip():
        return Transcript()

    try:
        root = html.fragment_fromstring(markup, create_parent="div")
    except etree.ParserError:
        logger.warning("transcript_markup_unparseable", length=len(markup))
        return Transcript()

    lines = [child for child in root if isinstance(child.tag, str)][1:]

    segments: list[TranscriptSegment] = []
    for line in lines:
        time_label = _first_text(line, site.time_label_xpath)
        text = _first_text(line, site.text_xpath)
        if time_label and text:
            segments.append(TranscriptSegment(time_label=time_label, text=text))

    logger.debug(
        "transcript_parsed",
        candidate_lines=len(lines),
        segments=len(segments),
    )
    return Transcript(segments=segments)


async def open_transcript_tab(page: Page, site: SiteSettings) -> None:
    """Click the first activator whose text contains the keyword.

    Raises:
        ContentUnavailableError: If no matching activator exists.
    """
    activator = page.locator(
        site.activator_selector,
        has_text=re.compile(re.escape(site.activator_keyword), re.IGNORECASE),
    )
    if await activator.count() == 0:
        raise ContentUnavailableError("Transcript tab not found")

    await activator.first.click()


async def extract_transcript(page: Page, settings: Settings) -> Transcript:
    """Reveal and extract the transcript from the current resource page.

    Args:
        page: Page already showing the resource in a logged-in state.
        settings: Application settings.

    Returns:
        A non-empty transcript.

    Raises:
        ContentUnavailableError: If the tab, the container, or any
            transcript line is missing.
    """
    site = settings.site
    await open_transcript_tab(page, site)

    try:
        await page.wait_for_selector(
            site.container_selector,
            state="attached",
            timeout=settings.browser.content_timeout,
        )
    except PlaywrightTimeoutError as exc:
        raise ContentUnavailableError("Transcript container did not appear") from exc

    markup = await page.locator(site.container_selector).first.inner_html()
    transcript = parse_transcript_html(markup, site)
    if transcript.is_empty:
        raise ContentUnavailableError("Transcript not found or empty")

    logger.info("transcript_extracted", segments=len(transcript.segments))
    return transcript
