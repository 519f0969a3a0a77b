"""Browser factory for creating and managing Playwright browser contexts.

This module provides the BrowserFactory class that handles browser lifecycle
management, context creation with configuration, and cleanup for clone
sessions. Each session gets its own context so cookies and cache are never
shared.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    async_playwright,
)

logger = logging.getLogger(__name__)


DEFAULT_CHROMIUM_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--no-first-run',
    '--no-zygote',
    '--disable-gpu',
]


class BrowserEngineType:
    """Supported browser engine types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class BrowserConfig:
    """Configuration for browser creation and context setup."""

    def __init__(
        self,
        engine: str = BrowserEngineType.CHROMIUM,
        headless: bool = True,
        args: Optional[List[str]] = None,
        slow_mo: int = 0,
        viewport: Optional[Dict[str, int]] = None,
        user_agent: Optional[str] = None,
        extra_headers: Optional[Dict[str, str]] = None,
        ignore_https_errors: bool = False,
        locale: Optional[str] = None,
        **kwargs
    ):
        """Initialize browser configuration.

        Args:
            engine: Browser engine to use (chromium, firefox, webkit)
            headless: Run browser in headless mode
            args: Extra command line switches (Chromium only); defaults to the
                sandbox and GPU switches needed in containers
            slow_mo: Slow down operations by specified milliseconds
            viewport: Viewport size dict with 'width' and 'height'
            user_agent: Custom User-Agent string
            extra_headers: Additional HTTP headers for all requests
            ignore_https_errors: Ignore SSL/TLS certificate errors
            locale: Locale for the browser context
        """
        self.engine = engine
        self.headless = headless
        self.args = list(DEFAULT_CHROMIUM_ARGS if args is None else args)
        self.slow_mo = slow_mo
        self.viewport = viewport or {'width': 1920, 'height': 1080}
        self.user_agent = user_agent
        self.extra_headers = extra_headers or {}
        self.ignore_https_errors = ignore_https_errors
        self.locale = locale
        self.extra_options = kwargs

    def to_browser_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser launch options."""
        options: Dict[str, Any] = {
            'headless': self.headless,
            'slow_mo': self.slow_mo,
        }

        if self.engine == BrowserEngineType.CHROMIUM and self.args:
            options['args'] = self.args

        options.update(self.extra_options)
        return options

    def to_context_options(self) -> Dict[str, Any]:
        """Convert to Playwright browser context options."""
        options: Dict[str, Any] = {}

        if self.viewport:
            options['viewport'] = self.viewport

        if self.user_agent:
            options['user_agent'] = self.user_agent

        if self.extra_headers:
            options['extra_http_headers'] = self.extra_headers

        if self.ignore_https_errors:
            options['ignore_https_errors'] = True

        if self.locale:
            options['locale'] = self.locale

        return options


class BrowserFactory:
    """Factory for creating and managing Playwright browser instances."""

    def __init__(self, config: BrowserConfig):
        """Initialize browser factory with configuration.

        Args:
            config: Browser configuration object
        """
        self.config = config
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self._context_count = 0

    @property
    def is_started(self) -> bool:
        return self.browser is not None

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        if self.playwright is not None:
            logger.warning("Browser factory already started")
            return

        logger.info(f"Starting browser factory with engine: {self.config.engine}")

        try:
            self.playwright = await async_playwright().start()

            if self.config.engine == BrowserEngineType.FIREFOX:
                browser_type = self.playwright.firefox
            elif self.config.engine == BrowserEngineType.WEBKIT:
                browser_type = self.playwright.webkit
            else:
                browser_type = self.playwright.chromium

            self.browser = await browser_type.launch(**self.config.to_browser_options())

            logger.info(f"Browser launched successfully (headless={self.config.headless})")

        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            await self.stop()
            raise

    async def stop(self) -> None:
        """Stop browser and cleanup resources."""
        logger.info("Stopping browser factory")

        try:
            if self.browser:
                await self.browser.close()
                self.browser = None

            if self.playwright:
                await self.playwright.stop()
                self.playwright = None

            self._context_count = 0
            logger.info("Browser factory stopped successfully")

        except Exception as e:
            logger.error(f"Error stopping browser factory: {e}")

    async def create_context(self, **context_overrides) -> BrowserContext:
        """Create a new browser context.

        Args:
            **context_overrides: Override default context options

        Returns:
            New browser context

        Raises:
            RuntimeError: If browser factory not started
        """
        if not self.browser:
            raise RuntimeError("Browser factory not started. Call start() first.")

        context_options = self.config.to_context_options()
        context_options.update(context_overrides)

        context = await self.browser.new_context(**context_options)
        self._context_count += 1

        logger.debug(f"Created browser context #{self._context_count}")
        return context

    @asynccontextmanager
    async def context(self, **context_overrides) -> AsyncGenerator[BrowserContext, None]:
        """Context manager for browser context lifecycle.

        Args:
            **context_overrides: Override default context options

        Yields:
            Browser context that will be automatically closed
        """
        context = await self.create_context(**context_overrides)
        try:
            yield context
        finally:
            try:
                await context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            self._context_count -= 1

    @asynccontextmanager
    async def page(self, **context_overrides) -> AsyncGenerator[Page, None]:
        """Context manager for a single page in its own context.

        Args:
            **context_overrides: Override default context options

        Yields:
            Page instance that will be automatically closed
        """
        async with self.context(**context_overrides) as context:
            page = await context.new_page()
            try:
                yield page
            finally:
                await page.close()

    async def get_browser_version(self) -> Optional[str]:
        """Get browser version information.

        Returns:
            Browser version string or None if not available
        """
        if not self.browser:
            return None
        return self.browser.version

    def __repr__(self) -> str:
        return f"BrowserFactory(engine={self.config.engine}, started={self.is_started})"


def create_default_factory(headless: bool = True) -> BrowserFactory:
    """Create a Chromium factory with the default clone launch switches."""
    return BrowserFactory(BrowserConfig(headless=headless))
