"""
Browser session for the directory scraper.

Wraps a Playwright page behind the small PageSession interface the
pagination controller needs, and owns the launch/teardown of the browser.
"""

import logging
import random
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Protocol

from playwright.async_api import (
    async_playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

import scraper_config

logger = logging.getLogger(__name__)

BROWSER_ARGS = [
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--no-first-run",
]

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

ANTI_DETECT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', {get: () => undefined});
"""


class PageSession(Protocol):
    """What the pagination controller needs from a browser page."""

    @property
    def url(self) -> str:
        """URL of the currently loaded document."""
        ...

    async def goto(self, url: str, timeout_ms: int) -> bool:
        """Load a URL; False on timeout or navigation error."""
        ...

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait for a selector to appear; False if it never does."""
        ...

    async def content(self) -> Optional[str]:
        """Snapshot of the live DOM as HTML; None if it cannot be read."""
        ...


class PlaywrightPageSession:
    """PageSession backed by a Playwright page."""

    def __init__(self, page, wait_until: str = scraper_config.WAIT_UNTIL):
        self.page = page
        self.wait_until = wait_until

    @property
    def url(self) -> str:
        return self.page.url

    async def goto(self, url: str, timeout_ms: int) -> bool:
        try:
            await self.page.goto(url, wait_until=self.wait_until, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.error(f"Page load timed out after {timeout_ms} ms: {url}")
        except PlaywrightError as e:
            logger.error(f"Page load failed for {url}: {e}")
        return False

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False
        except PlaywrightError as e:
            logger.error(f"Waiting for '{selector}' failed: {e}")
            return False

    async def content(self) -> Optional[str]:
        try:
            return await self.page.content()
        except PlaywrightError as e:
            logger.error(f"Reading page content failed for {self.page.url}: {e}")
            return None


async def create_context(browser):
    """Create a browser context with anti-detection settings."""
    vw = 1366 + random.randint(-50, 50)
    vh = 768 + random.randint(-50, 50)

    return await browser.new_context(
        viewport={"width": vw, "height": vh},
        user_agent=USER_AGENT,
        locale="en-US",
        timezone_id="America/New_York",
    )


@asynccontextmanager
async def launch_session(headless: Optional[bool] = None) -> AsyncIterator[PlaywrightPageSession]:
    """
    Launch Chromium and yield a ready PageSession.

    Launch failures propagate to the caller. The browser is always torn
    down on exit, whether the run finished, aborted or raised.
    """
    headless = scraper_config.HEADLESS if headless is None else headless

    playwright = await async_playwright().start()
    browser = None
    context = None
    try:
        try:
            browser = await playwright.chromium.launch(headless=headless, args=BROWSER_ARGS)
        except PlaywrightError as e:
            error_msg = str(e).lower()
            if "playwright install" in error_msg or "executable doesn't exist" in error_msg:
                logger.error("Playwright browsers not installed!")
                logger.error("Please run: playwright install chromium")
            else:
                logger.error(f"Failed to launch browser: {e}")
            raise

        mode = "headless" if headless else "visible"
        logger.info(f"Playwright browser initialized ({mode} mode)")

        context = await create_context(browser)
        page = await context.new_page()
        await page.add_init_script(ANTI_DETECT_SCRIPT)

        yield PlaywrightPageSession(page)
    finally:
        await _cleanup_browser(playwright, browser, context)


async def _cleanup_browser(playwright, browser, context) -> None:
    """Clean up Playwright browser resources."""
    if context is not None:
        try:
            await context.close()
            logger.info("Browser context closed")
        except Exception as e:
            logger.warning(f"Error closing context: {e}")

    if browser is not None:
        try:
            await browser.close()
            logger.info("Browser closed")
        except Exception as e:
            logger.warning(f"Error closing browser: {e}")

    try:
        await playwright.stop()
        logger.info("Playwright stopped")
    except Exception as e:
        logger.warning(f"Error stopping Playwright: {e}")
