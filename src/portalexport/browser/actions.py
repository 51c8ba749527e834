"""
Page primitives shared by portal agents.

Selector resolution polls a page for the first of several equivalent
selectors; text actuation clicks buttons and links by their visible text so
the workflow survives markup that has no stable ids.
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from portalexport.agents.base import SelectorTimeout

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_MS = 200
DEFAULT_CLICKABLE_SELECTOR = "button, a"


def normalize_text(text: Optional[str]) -> str:
    """Collapse runs of whitespace and trim, like XPath normalize-space()."""
    return " ".join((text or "").split())


async def query_first(page, selectors: Sequence[str]):
    """Return the element for the first selector that matches right now, else None."""
    for selector in selectors:
        element = await page.query_selector(selector)
        if element:
            return element
    return None


async def wait_for_any_selector(
    page,
    selectors: Sequence[str],
    timeout: int = 30000,
    poll_interval: int = DEFAULT_POLL_INTERVAL_MS,
):
    """
    Poll until one of ``selectors`` matches an element on the page.

    Selectors are tried in order on every poll and the first hit wins.

    Args:
        page: Playwright page.
        selectors: Candidate selectors, highest priority first.
        timeout: Overall deadline in milliseconds.
        poll_interval: Delay between polls in milliseconds.

    Returns:
        The matching element handle.

    Raises:
        SelectorTimeout: nothing matched before the deadline.
    """
    if not selectors:
        raise ValueError("wait_for_any_selector needs at least one selector")

    deadline = time.monotonic() + timeout / 1000
    while True:
        element = await query_first(page, selectors)
        if element:
            return element
        if time.monotonic() >= deadline:
            break
        await asyncio.sleep(poll_interval / 1000)

    raise SelectorTimeout(
        f"Timeout waiting for any selector: {', '.join(selectors)}"
    )


async def resolve_element(
    page,
    selectors: Sequence[str],
    timeout: int = 30000,
    poll_interval: int = DEFAULT_POLL_INTERVAL_MS,
):
    """Immediate lookup first, then a blocking wait over the same selectors."""
    element = await query_first(page, selectors)
    if element:
        return element
    logger.debug(f"No immediate match for {list(selectors)}, waiting up to {timeout}ms")
    return await wait_for_any_selector(page, selectors, timeout, poll_interval)


async def _click(element, description: str) -> bool:
    try:
        await element.click()
        return True
    except PlaywrightError as e:
        logger.warning(f"Click on {description} failed: {e}")
        return False


async def click_by_text(
    page, text: str, clickable_selector: str = DEFAULT_CLICKABLE_SELECTOR
) -> bool:
    """
    Click the first button or link whose normalized text contains ``text``.

    Returns False instead of raising when nothing matches or the click fails,
    so callers can fall through to the next candidate.
    """
    for element in await page.query_selector_all(clickable_selector):
        label = normalize_text(await element.text_content())
        if text in label:
            logger.debug(f"Clicking element with text {label!r}")
            return await _click(element, repr(text))
    return False


async def click_first_text(
    page, texts: Sequence[str], clickable_selector: str = DEFAULT_CLICKABLE_SELECTOR
) -> Optional[str]:
    """Try ``texts`` in priority order; return the text that was clicked, or None."""
    for text in texts:
        if await click_by_text(page, text, clickable_selector):
            return text
    return None


async def click_first_selector(page, selectors: Sequence[str]) -> Optional[str]:
    """Click the first selector with a present element; return it, or None."""
    for selector in selectors:
        element = await page.query_selector(selector)
        if element and await _click(element, selector):
            return selector
    return None


async def click_exact_link(page, label: str, link_selector: str = "a") -> bool:
    """Click the first anchor whose normalized text equals ``label`` exactly."""
    wanted = normalize_text(label)
    for element in await page.query_selector_all(link_selector):
        if normalize_text(await element.text_content()) == wanted:
            return await _click(element, f"link {wanted!r}")
    return False
