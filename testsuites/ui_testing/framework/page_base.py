"""
================================================================================
Base Page Object
================================================================================

Foundation class for the CRM Page Objects.

Provides:
    - Navigation relative to the environment base URL
    - Smart element location and safe interactions
    - Error-banner detection ("Oops!", page messages, warning alerts)
    - API failure checks through ApiCapture
    - Screenshot and debugging utilities

================================================================================
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .api_capture import ApiCapture
from .smart_locator import SmartLocator
from .suite_config import SuiteConfig
from .table_pagination import require_control


SCREENSHOT_DIR = Path(__file__).parent.parent / "screenshots"

# Banners the application shows when a request failed server-side
ERROR_BANNER_LOCATORS = (
    "#pageMessages",
    "div.alert.animated.flipInX.alert-warning",
    "//*[contains(text(),'Oops!') or contains(text(),'unexpected error')]",
)
ERROR_KEYWORDS = ("error", "oops")

SUCCESS_POPUP_LOCATORS = (
    ".alert-success",
    ".toast-success",
    ".success-message",
    ".swal2-popup",
    ".modal.show",
)


class ErrorBannerError(Exception):
    """Raised when the application displays an error banner."""

    def __init__(self, text: str, context: str = "", screenshot: Optional[Path] = None):
        self.text = text
        self.context = context
        self.screenshot = screenshot
        where = f" during {context}" if context else ""
        super().__init__(f"Captured error banner{where}: \"{text}\"")


class BasePage:
    """
    Base class for all page objects.

    Usage:
        class ImportPage(BasePage):
            URL_PATH = "/"

            async def navigate_to_import(self):
                await self.safe_click(self.import_menu, "Import menu")
                await self.capture_error_if_present("navigate to import")
    """

    URL_PATH: str = "/"
    PAGE_TITLE: str = ""

    def __init__(
        self,
        page: Page,
        base_url: str = "",
        api_capture: Optional[ApiCapture] = None,
        action_timeout: int = 10000,
        config: Optional[SuiteConfig] = None,
    ):
        """
        Initialize page object.

        Args:
            page: Playwright Page object
            base_url: Environment base URL (defaults to the config, then BASE_URL)
            api_capture: Shared API capture of the suite session
            action_timeout: Default timeout for safe_* interactions (ms)
            config: Suite configuration; its element timeout wins over ``action_timeout``
        """
        self.page = page
        self.config = config
        if not base_url:
            base_url = config.base_url if config else os.getenv("BASE_URL", "https://qc6.example-crm.test/")
        self.base_url = base_url.rstrip("/")
        self.smart = SmartLocator(page)
        self.api_capture = api_capture
        self.action_timeout = config.element_timeout_ms if config else action_timeout

    @classmethod
    def for_session(cls, session: Any, **kwargs: Any):
        """Build the page object on the page of a SuiteSession."""
        return cls(
            session.page,
            api_capture=session.api_capture,
            config=session.config,
            **kwargs,
        )

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.URL_PATH}"

    async def navigate(self, wait_for: str = "domcontentloaded") -> None:
        """
        Navigate to this page.

        Args:
            wait_for: Wait condition - 'load', 'domcontentloaded', 'networkidle'
        """
        with allure.step(f"Navigate to {self.URL_PATH}"):
            await self.page.goto(self.url, wait_until=wait_for)
            logger.debug(f"Navigated to: {self.url}")

    async def wait_for_page_load(self, state: str = "networkidle", timeout: int = 15000) -> None:
        """
        Wait for the page to reach a stable load state.

        A page that keeps polling never goes network-idle; that timeout is
        logged rather than raised.
        """
        try:
            await self.page.wait_for_load_state(state, timeout=timeout)
        except PlaywrightTimeoutError:
            logger.debug(f"Page did not reach '{state}' within {timeout}ms")

    # =========================================================================
    # Smart Element Interactions
    # =========================================================================

    async def click(self, element_name: str, timeout: int = 5000, **kwargs: Any) -> None:
        with allure.step(f"Click: {element_name}"):
            await self.smart.click(element_name, timeout, **kwargs)

    async def fill(self, element_name: str, value: str, timeout: int = 5000, **kwargs: Any) -> None:
        shown = "*" * len(value) if "password" in element_name.lower() else value
        with allure.step(f"Fill {element_name}: {shown}"):
            await self.smart.fill(element_name, value, timeout, **kwargs)

    async def is_visible(self, element_name: str, timeout: int = 2000) -> bool:
        return await self.smart.is_visible(element_name, timeout)

    # =========================================================================
    # Direct Locator Interactions
    # =========================================================================

    async def scroll_into_view(self, locator: Locator, timeout: Optional[int] = None) -> None:
        await locator.scroll_into_view_if_needed(timeout=timeout or self.action_timeout)

    async def safe_click(
        self,
        locator: Locator,
        description: str = "element",
        timeout: Optional[int] = None,
    ) -> None:
        """Wait for visibility, scroll, and click."""
        timeout = timeout or self.action_timeout
        with allure.step(f"Click {description}"):
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.scroll_into_view_if_needed(timeout=timeout)
            await locator.click(timeout=timeout)

    async def safe_type(
        self,
        locator: Locator,
        value: str,
        description: str = "field",
        timeout: Optional[int] = None,
    ) -> None:
        """Clear and fill an input; empty values leave the field untouched."""
        if value is None or value == "":
            logger.debug(f"Skipping {description}: no value")
            return
        timeout = timeout or self.action_timeout
        shown = "*" * len(value) if "password" in description.lower() else value
        with allure.step(f"Type into {description}: {shown}"):
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.fill(value, timeout=timeout)

    async def select_by_label(
        self,
        locator: Locator,
        label: str,
        description: str = "dropdown",
        timeout: Optional[int] = None,
    ) -> None:
        timeout = timeout or self.action_timeout
        with allure.step(f"Select '{label}' in {description}"):
            await locator.wait_for(state="visible", timeout=timeout)
            await locator.select_option(label=label, timeout=timeout)

    async def require_control(self, locator: Locator, description: str, timeout: Optional[int] = None) -> Locator:
        """Wait for a control the flow cannot do without (ControlUnavailableError otherwise)."""
        return await require_control(locator, description, timeout or self.action_timeout)

    # =========================================================================
    # Error Banners and API Failures
    # =========================================================================

    async def capture_error_if_present(self, context: str = "", force_screenshot: bool = False) -> None:
        """
        Fail when an error banner is on screen.

        Banner text containing 'error' or 'oops' triggers a screenshot and
        ErrorBannerError. Also checks captured API failures.

        Raises:
            ErrorBannerError: An error banner is displayed
            ApiFailureError: API calls failed and continue-on-failure is off
        """
        if self.page.is_closed():
            return

        for selector in ERROR_BANNER_LOCATORS:
            for element in await self.page.locator(selector).all():
                try:
                    text = ((await element.text_content(timeout=2000)) or "").strip()
                except PlaywrightError:
                    continue
                if text and any(k in text.lower() for k in ERROR_KEYWORDS):
                    shot = await self.screenshot(f"error_{_safe_name(context)}", full_page=True)
                    logger.error(f"Error banner during {context or 'page action'}: {text}")
                    raise ErrorBannerError(text, context, shot)

        if force_screenshot:
            await self.screenshot(f"forced_{_safe_name(context)}", full_page=True)

        if self.api_capture is not None:
            self.api_capture.raise_if_failed(context)

    async def wait_for_error_to_disappear(self, timeout: int = 10000) -> None:
        """Wait until known error banners are detached; lingering ones are logged."""
        if self.page.is_closed():
            return
        for selector in ERROR_BANNER_LOCATORS:
            try:
                await self.page.locator(selector).first.wait_for(state="detached", timeout=timeout)
            except PlaywrightTimeoutError:
                logger.warning(f"Banner still present after {timeout}ms: {selector}")

    async def wait_for_popup_to_disappear(self, timeout: int = 10000) -> None:
        """Wait for the first visible success popup to hide."""
        for selector in SUCCESS_POPUP_LOCATORS:
            popup = self.page.locator(selector).first
            if await popup.is_visible():
                logger.debug(f"Waiting for popup to disappear: {selector}")
                try:
                    await popup.wait_for(state="hidden", timeout=timeout)
                except PlaywrightTimeoutError:
                    logger.warning(f"Popup still visible after {timeout}ms: {selector}")
                return

    # =========================================================================
    # Screenshot and Debug Utilities
    # =========================================================================

    async def screenshot(
        self,
        name: str,
        full_page: bool = False,
        attach_to_allure: bool = True,
    ) -> Path:
        """
        Take screenshot and optionally attach to Allure.

        Returns:
            Path to saved screenshot
        """
        SCREENSHOT_DIR.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = SCREENSHOT_DIR / f"{name}_{timestamp}.png"

        await self.page.screenshot(path=str(filepath), full_page=full_page)

        if attach_to_allure:
            allure.attach.file(
                str(filepath),
                name=name,
                attachment_type=allure.attachment_type.PNG,
            )

        logger.debug(f"Screenshot saved: {filepath}")
        return filepath

    async def capture_failure(self, test_name: str) -> None:
        """Attach screenshot, current URL and recent API calls to the report."""
        with allure.step("Capture failure details"):
            await self.screenshot(f"failure_{_safe_name(test_name)}", attach_to_allure=True)
            allure.attach(
                self.page.url,
                name="Current URL",
                attachment_type=allure.attachment_type.TEXT,
            )
            if self.api_capture is not None and self.api_capture.calls:
                allure.attach(
                    json.dumps([asdict(c) for c in self.api_capture.recent()], indent=2),
                    name="Recent API Requests",
                    attachment_type=allure.attachment_type.JSON,
                )

    def get_locator_health_report(self) -> str:
        return self.smart.get_health_report()


def _safe_name(text: str) -> str:
    return re.sub(r"[^a-zA-Z0-9_-]", "_", text or "unknown")


__all__ = [
    "BasePage",
    "ErrorBannerError",
    "ERROR_BANNER_LOCATORS",
    "PageBase",
]

# Alias used by some Page Objects
PageBase = BasePage
