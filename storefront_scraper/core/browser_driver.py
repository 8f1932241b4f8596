"""
Browser Driver using Playwright (Async)
Owns navigation, lazy-load scrolling and JavaScript evaluation on a single page
"""

import asyncio
import logging
import random
from typing import Any, Optional

from playwright.async_api import async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .config import ScraperSettings
from .exceptions import NavigationError
from .page_snapshot import PageSnapshot, ANALYTICS_META, PLATFORM_PRESENT

logger = logging.getLogger(__name__)

USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Safari/605.1.15'
]

COOKIE_BUTTON_SELECTORS = [
    '[aria-label*="cookie"] button:first-child',
    '[class*="cookie"] button:first-child',
    'button:has-text("Accepter")',
    'button:has-text("Accept")',
    'button:has-text("Agree")',
]

# JavaScript used by the scroll loop and snapshot
SCROLL_HEIGHT_JS = '() => document.body.scrollHeight'
SCROLL_BOTTOM_JS = '() => window.scrollY + window.innerHeight'
SCROLL_BY_JS = '(step) => window.scrollBy(0, step)'
SCROLL_TOP_JS = '() => window.scrollTo(0, 0)'
ANALYTICS_META_JS = '() => (window.ShopifyAnalytics && window.ShopifyAnalytics.meta) || null'
PLATFORM_PRESENT_JS = "() => typeof window.Shopify !== 'undefined'"

DEFAULT_SCROLL_STEP = 800
DEFAULT_SCROLL_PAUSE = 0.5
DEFAULT_MAX_SCROLLS = 30

# Seconds for a consent banner to disappear after the click
COOKIE_SETTLE_DELAY = 1.0


class BrowserDriver:
    """
    Drives one headless Chromium page for a scrape invocation

    Use as an async context manager, or call start() and close().
    """

    def __init__(self, settings: Optional[ScraperSettings] = None):
        """
        Initialize Browser Driver

        Args:
            settings: Headless mode and timeouts (defaults to ScraperSettings())
        """
        self.settings = settings or ScraperSettings()
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self) -> None:
        """Launch Chromium with one context and one page"""
        if self.page is not None:
            return

        logger.info(" Launching playwright browser...")
        launch_options = {
            'headless': self.settings.headless,
            'args': [
                '--disable-blink-features=AutomationControlled',
                '--disable-dev-shm-usage',
                '--no-sandbox'
            ]
        }

        try:
            self.playwright = await async_playwright().start()
            self.browser = await self.playwright.chromium.launch(**launch_options)
            self.context = await self.browser.new_context(
                ignore_https_errors=True,
                viewport={
                    'width': random.choice([1920, 1366, 1536, 1440]),
                    'height': random.choice([1080, 768, 864, 900])
                },
                user_agent=random.choice(USER_AGENTS)
            )
            await self.context.add_init_script(
                "Object.defineProperty(navigator, 'webdriver', { get: () => undefined, configurable: true });"
            )
            self.page = await self.context.new_page()
            logger.info(" Browser launched successfully")
        except Exception as e:
            logger.error(f" Failed to launch browser: {e}")
            await self.close()
            raise

    def _require_page(self):
        if self.page is None:
            raise RuntimeError("BrowserDriver is not started; call start() or use 'async with'")
        return self.page

    async def load(self, url: str, wait_for_selector: Optional[str] = None) -> str:
        """
        Navigate to url and wait for the page to settle

        Args:
            url: Target URL
            wait_for_selector: Optional selector to wait for (continues on timeout)

        Returns:
            Final URL after redirects

        Raises:
            NavigationError: host unreachable, navigation timeout or non-2xx response
        """
        page = self._require_page()
        logger.info(f" Navigating to: {url}")

        try:
            response = await page.goto(url, timeout=self.settings.browser_timeout, wait_until='domcontentloaded')
        except PlaywrightError as e:
            raise NavigationError(url, str(e)) from e

        if response is not None and not response.ok:
            raise NavigationError(url, status=response.status)
        logger.info(" DOM content loaded")

        try:
            await page.wait_for_load_state('networkidle', timeout=self.settings.network_idle_timeout)
            logger.info(" Network idle reached")
        except PlaywrightTimeoutError:
            logger.info("⏱  Network idle timeout - continuing (normal for sites with tracking)")

        if wait_for_selector:
            try:
                logger.info(f"⏳ Waiting for selector: {wait_for_selector}")
                await page.wait_for_selector(wait_for_selector, timeout=self.settings.browser_timeout)
            except PlaywrightTimeoutError:
                logger.info(f"⏱  Selector {wait_for_selector} did not appear - continuing")

        return page.url

    async def evaluate(self, expression: str, arg: Any = None, default: Any = None) -> Any:
        """
        Run JavaScript in the page

        Returns:
            The expression's result, or default when evaluation fails
        """
        page = self._require_page()
        try:
            if arg is None:
                return await page.evaluate(expression)
            return await page.evaluate(expression, arg)
        except PlaywrightError as e:
            logger.debug(f" Evaluate failed ({expression[:60]}): {e}")
            return default

    async def stimulate_lazy_load(
        self,
        step: int = DEFAULT_SCROLL_STEP,
        pause: float = DEFAULT_SCROLL_PAUSE,
        max_iterations: int = DEFAULT_MAX_SCROLLS
    ) -> int:
        """
        Scroll down in fixed increments to trigger lazy loading

        Stops when the scroll height did not grow after an increment, when
        the viewport bottom reached the last measured height, or after
        max_iterations. Scrolls back to the top afterwards.

        Returns:
            Number of increments performed
        """
        last_height = await self.evaluate(SCROLL_HEIGHT_JS, default=0) or 0
        iterations = 0

        while iterations < max_iterations:
            iterations += 1
            await self.evaluate(SCROLL_BY_JS, step)
            await asyncio.sleep(pause)

            height = await self.evaluate(SCROLL_HEIGHT_JS, default=last_height) or 0
            bottom = await self.evaluate(SCROLL_BOTTOM_JS, default=height) or 0

            if height <= last_height or bottom >= height:
                break
            logger.debug(f" Scroll #{iterations}: Page grew from {last_height}px to {height}px")
            last_height = height

        await self.evaluate(SCROLL_TOP_JS)
        logger.info(f" Scrolling complete after {iterations} increment(s)")
        return iterations

    async def dismiss_cookie_banner(self) -> bool:
        """
        Click the first consent button found

        Returns:
            True when a button was clicked
        """
        page = self._require_page()
        for selector in COOKIE_BUTTON_SELECTORS:
            try:
                if await page.query_selector(selector) is None:
                    continue
                await page.click(selector, timeout=2000)
                logger.info(f" Dismissed cookie banner ({selector})")
                await asyncio.sleep(COOKIE_SETTLE_DELAY)
                return True
            except PlaywrightError as e:
                logger.debug(f" Cookie button {selector} not clickable: {e}")
        return False

    async def snapshot(self) -> PageSnapshot:
        """Capture HTML, title, final URL and platform globals of the current page"""
        page = self._require_page()
        html = await page.content()
        title = await page.title()
        globals = {
            ANALYTICS_META: await self.evaluate(ANALYTICS_META_JS),
            PLATFORM_PRESENT: bool(await self.evaluate(PLATFORM_PRESENT_JS, default=False)),
        }
        logger.info(f" Page captured: {len(html)} bytes")
        return PageSnapshot(url=page.url, html=html, title=title or '', globals=globals)

    async def close(self) -> None:
        """Clean up browser resources"""
        for name in ('page', 'context', 'browser'):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except PlaywrightError as e:
                logger.debug(f" Closing {name} failed: {e}")
            setattr(self, name, None)

        if self.playwright is not None:
            try:
                await self.playwright.stop()
            except PlaywrightError as e:
                logger.debug(f" Stopping playwright failed: {e}")
            self.playwright = None
            logger.info(" Browser closed")
