"""Shared headless browser for JS-rendered sources.

Uses Patchright (Playwright fork with anti-detection patches). One browser
process is launched lazily per worker process and shared by every run; each
run gets its own isolated browsing context, closed when the run ends.
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from channel_ingest.errors import NavigationError
from channel_ingest.scrapers.page import PageSnapshot

logger = logging.getLogger(__name__)

BROWSER_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
]

BROWSER_CONTEXT_OPTIONS = {
    "viewport": {"width": 1280, "height": 720},
    "user_agent": "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
}

# Markers of a login wall on an otherwise public page
LOGIN_WALL_SELECTORS = [
    'input[name="email"]',
    'input[name="pass"]',
    'input[type="password"]',
    '[data-testid="royal_login_form"]',
    'form[data-testid="login-form"]',
]


async def _launch_patchright(headless: bool):
    from patchright.async_api import async_playwright

    playwright = await async_playwright().start()
    browser = await playwright.chromium.launch(headless=headless, args=BROWSER_LAUNCH_ARGS)
    return playwright, browser


class SharedBrowser:
    """Process-wide browser handle with single-flight initialisation."""

    def __init__(self, headless: bool = True, timeout: int = 30000, launcher=None):
        self.headless = headless
        self.timeout = timeout
        self._launcher = launcher or _launch_patchright
        self._lock: asyncio.Lock | None = None
        self.playwright = None
        self.browser = None

    @property
    def is_running(self) -> bool:
        return self.browser is not None

    async def ensure_browser(self):
        """Launch on first use; concurrent callers wait for the same launch."""
        if self.browser is not None:
            return self.browser
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self.browser is None:
                self.playwright, self.browser = await self._launcher(self.headless)
                logger.info("Launched shared Patchright Chromium")
        return self.browser

    async def new_context(self):
        browser = await self.ensure_browser()
        context = await browser.new_context(**BROWSER_CONTEXT_OPTIONS)
        context.set_default_timeout(self.timeout)
        logger.debug("Browser context created")
        return context

    @asynccontextmanager
    async def context(self):
        """Isolated browsing context, closed on every exit path."""
        context = await self.new_context()
        try:
            yield context
        finally:
            await context.close()
            logger.debug("Browser context closed")

    async def close(self):
        if self.browser:
            await self.browser.close()
            logger.info("Closed shared browser")
        if self.playwright:
            await self.playwright.stop()
        self.browser = None
        self.playwright = None


async def navigate_with_retry(
    page,
    url: str,
    timeout: int = 30000,
    retries: int = 2,
    delay_ms: int = 2000,
) -> None:
    """goto() with ``retries`` extra attempts; raises NavigationError when all fail."""
    last_error = None
    for attempt in range(retries + 1):
        try:
            logger.debug(f"Navigating to {url} (attempt {attempt + 1}/{retries + 1})")
            await page.goto(url, timeout=timeout, wait_until="domcontentloaded")
            return
        except Exception as e:
            last_error = e
            logger.warning(f"Navigation to {url} failed (attempt {attempt + 1}/{retries + 1}): {e}")
            if attempt < retries:
                await asyncio.sleep(delay_ms / 1000)

    raise NavigationError(f"Failed to navigate to {url} after {retries + 1} attempts: {last_error}")


async def scroll_to_load(page, scrolls: int = 5, delay_ms: int = 1000) -> None:
    """Scroll one viewport at a time to trigger lazy-loaded content."""
    for _ in range(scrolls):
        await page.evaluate("() => window.scrollBy(0, window.innerHeight)")
        await page.wait_for_timeout(delay_ms)
    logger.debug(f"Scrolled {scrolls} times")


async def detect_login_wall(page) -> str | None:
    """Return the login-wall marker found on the page, or None."""
    snapshot = await PageSnapshot.capture(page)
    marker = snapshot.first_match(LOGIN_WALL_SELECTORS)
    if marker:
        logger.info(f"Login wall detected on {page.url}: {marker}")
    return marker
