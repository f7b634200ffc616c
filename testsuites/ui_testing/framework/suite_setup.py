"""
================================================================================
Suite Session
================================================================================

Per-suite setup and teardown of a browser session against the CRM.

Setup:
    1. Launch the configured browser and open a page (suite timeouts applied)
    2. Start API capture on the page
    3. Navigate to the environment base URL
    4. Log in with credentials from the login sheet (optional)

Teardown logs the API summary, then closes the page, contexts and browser.
Every teardown step is attempted even when an earlier one failed.

Usage:
    config = load_suite_config("IRC")
    async with SuiteSession(config, role="Admin") as session:
        import_page = ImportPage.for_session(session)
        await import_page.navigate_to_import()

================================================================================
"""

from __future__ import annotations

from typing import Optional

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from callcenter_tools.data_provider import LoginCredentialRow, SheetDataProvider

from .api_capture import ApiCapture
from .browser_manager import BrowserManager
from .suite_config import SuiteConfig


class SuiteSession:
    """
    Browser session of one suite run.

    Attributes:
        config: Effective suite configuration
        page: Page opened during setup
        api_capture: XHR/fetch capture attached to ``page``
        credentials: Credentials used to log in (None when login was skipped)
    """

    def __init__(
        self,
        config: SuiteConfig,
        credentials: Optional[LoginCredentialRow] = None,
        role: Optional[str] = None,
        data_provider: Optional[SheetDataProvider] = None,
        login: bool = True,
    ):
        """
        Args:
            config: Suite configuration
            credentials: Explicit credentials; looked up from the login sheet otherwise
            role: Role to look up in the login sheet (first row when omitted)
            data_provider: Provider for the login sheet
            login: Log in during setup
        """
        self.config = config
        self.credentials = credentials
        self.role = role
        self.data_provider = data_provider
        self.login_enabled = login

        self.browser_manager: Optional[BrowserManager] = None
        self.page: Optional[Page] = None
        self.api_capture: Optional[ApiCapture] = None

    async def __aenter__(self) -> "SuiteSession":
        try:
            await self.setup()
        except BaseException:
            await self.teardown()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.teardown()

    def resolve_credentials(self) -> LoginCredentialRow:
        if self.credentials is not None:
            return self.credentials
        provider = self.data_provider or SheetDataProvider()
        if self.role:
            return provider.credentials_for_role(self.role)
        rows = provider.login_credentials()
        if not rows:
            raise RuntimeError("Login sheet contains no credentials")
        return rows[0]

    async def setup(self) -> Page:
        """Launch the browser, open the application and log in."""
        with allure.step(f"{self.config.suite} setup ({self.config.environment})"):
            self.config.log_config()

            self.browser_manager = BrowserManager(self.config)
            await self.browser_manager.start()
            self.page = await self.browser_manager.new_page()

            self.api_capture = ApiCapture(
                self.page,
                continue_on_failure=self.config.continue_on_failure,
            ).start()

            await self.page.goto(self.config.base_url, wait_until="domcontentloaded")
            logger.info(f"Opened {self.config.base_url}")

            if self.login_enabled:
                # Imported here; pages depend on the framework, not the reverse
                from testsuites.ui_testing.pages.login_page import LoginPage

                self.credentials = self.resolve_credentials()
                login_page = LoginPage.for_session(self)
                await login_page.login(self.credentials)

        return self.page

    async def teardown(self) -> None:
        """Log the API summary and close everything; failures are logged."""
        with allure.step(f"{self.config.suite} teardown"):
            if self.api_capture is not None:
                self.api_capture.log_summary(attach=True)

            if self.page is not None:
                try:
                    if not self.page.is_closed():
                        await self.page.close()
                except PlaywrightError as e:
                    logger.warning(f"Failed to close page: {e}")
                self.page = None

            if self.browser_manager is not None:
                try:
                    await self.browser_manager.close()
                except PlaywrightError as e:
                    logger.warning(f"Failed to close browser: {e}")
                self.browser_manager = None

        logger.info(f"{self.config.suite} session closed")


__all__ = [
    "SuiteSession",
]
