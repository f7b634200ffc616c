"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management for the CRM UI suites.

Features:
    - Browser type and launch arguments from SuiteConfig
    - Context isolation per test
    - Default action/navigation timeouts applied to every page

================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
)

from .suite_config import SuiteConfig


BROWSER_TYPES = ("chromium", "firefox", "webkit")


class BrowserManager:
    """
    Manages the browser instance and contexts of a suite run.

    Usage:
        async with BrowserManager(config) as manager:
            page = await manager.new_page()
            await page.goto(config.base_url)
    """

    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
        "permissions": ["microphone"],
    }

    def __init__(self, config: SuiteConfig):
        """
        Initialize browser manager.

        Args:
            config: Suite configuration (browser type, args, headless, timeouts)
        """
        if config.browser_type not in BROWSER_TYPES:
            raise ValueError(
                f"Unsupported browser '{config.browser_type}'. Use one of: {', '.join(BROWSER_TYPES)}"
            )
        self.config = config

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: List[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def start(self) -> None:
        """Start Playwright and launch browser."""
        self._playwright = await async_playwright().start()
        browser_launcher = getattr(self._playwright, self.config.browser_type)

        self._browser = await browser_launcher.launch(
            headless=self.config.headless,
            args=list(self.config.browser_args),
        )
        logger.debug(f"Browser started: {self.config.browser_type} (headless={self.config.headless})")

    async def close(self) -> None:
        """Close all contexts, the browser and Playwright; each step is attempted."""
        for context in self._contexts:
            try:
                await context.close()
            except PlaywrightError as e:
                logger.warning(f"Failed to close browser context: {e}")
        self._contexts.clear()

        if self._browser:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.warning(f"Failed to close browser: {e}")
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Create new browser context with the suite's default timeouts.

        Args:
            **options: Additional context options
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **options}
        context = await self._browser.new_context(**context_options)
        context.set_default_timeout(self.config.action_timeout_ms)
        context.set_default_navigation_timeout(self.config.navigation_timeout_ms)
        self._contexts.append(context)
        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """Create new page in a new or existing context."""
        if context is None:
            context = await self.new_context(**context_options)
        return await context.new_page()


__all__ = [
    "BrowserManager",
]
