"""
================================================================================
Login Page Object (Async / Playwright)
================================================================================

Login screen of the CRM application.

Flow:
    1. Open the environment base URL
    2. Fill email + password and submit
    3. Open the user menu and check the role badge of the signed-in user

================================================================================
"""

from __future__ import annotations

from typing import Optional

import allure
from loguru import logger
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from callcenter_tools.data_provider import LoginCredentialRow
from testsuites.ui_testing.framework.page_base import PageBase


class LoginFailedError(AssertionError):
    """Raised when the signed-in user does not show the expected role."""
    pass


class LoginPage(PageBase):
    """Login page object (async)."""

    URL_PATH = "/"
    PAGE_TITLE = "Login"

    @allure.step("Open login page")
    async def open(self) -> "LoginPage":
        await self.navigate()
        await self.wait_for_page_load()
        return self

    @allure.step("Verify login form is displayed")
    async def verify_form_displayed(self) -> bool:
        email_ok = await self.is_visible("email_input", timeout=2000)
        password_ok = await self.is_visible("password_input", timeout=2000)
        button_ok = await self.is_visible("login_button", timeout=2000)
        return email_ok and password_ok and button_ok

    @allure.step("Login as {credentials.email}")
    async def login(self, credentials: LoginCredentialRow, verify_role: bool = True) -> None:
        """
        Sign in with a credential row from the login sheet.

        Args:
            credentials: Email, password and expected role
            verify_role: Check the role badge after signing in
        """
        if not await self.is_visible("email_input", timeout=2000):
            await self.open()

        await self.fill("email_input", credentials.email, timeout=8000)
        await self.fill("password_input", credentials.password, timeout=8000)
        await self.click("login_button", timeout=8000)
        await self.wait_for_page_load()
        await self.capture_error_if_present("login")

        if verify_role and credentials.role:
            await self.assert_role(credentials.role)
        logger.info(f"Logged in as {credentials.email}")

    async def role_badge_visible(self, role: str, timeout: Optional[int] = None) -> bool:
        """Open the user menu and check for the role badge."""
        await self.click("user_menu", timeout=timeout or self.action_timeout)
        badge = self.page.locator(f"//small[normalize-space()='{role}']")
        try:
            await badge.first.wait_for(state="visible", timeout=timeout or self.action_timeout)
        except PlaywrightTimeoutError:
            return False
        return True

    @allure.step("Verify signed-in role is {role}")
    async def assert_role(self, role: str) -> None:
        if not await self.role_badge_visible(role):
            await self.screenshot(f"role_{role}_missing", full_page=True)
            raise LoginFailedError(f"Expected role '{role}' not shown in the user menu")

    async def assert_login_page_loaded(self) -> None:
        """Hard assertion helper used by tests."""
        assert await self.verify_form_displayed(), "Login form should be visible"


__all__ = [
    "LoginFailedError",
    "LoginPage",
]
