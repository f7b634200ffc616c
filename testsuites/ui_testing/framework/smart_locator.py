"""
================================================================================
Smart Locator
================================================================================

Element location with fallback strategies for the CRM screens:
    - Multiple selectors per element, tried in order
    - Warning (and health record) whenever a fallback was needed
    - Health report listing primary selectors that need maintenance

The CRM markup exposes stable ids for most controls; fallbacks use names,
placeholders and visible text.

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page


class ElementNotFoundError(Exception):
    """Raised when all locator strategies fail to find element."""
    pass


@dataclass
class LocatorHealth:
    """
    Tracks locator health and usage statistics.

    Attributes:
        element_name: Human-readable element name
        primary_selector: The preferred selector
        used_fallback: Whether a fallback was used
        fallback_name: Name of fallback used (if any)
        fallback_selector: The fallback selector used (if any)
    """
    element_name: str
    primary_selector: str
    used_fallback: bool = False
    fallback_name: Optional[str] = None
    fallback_selector: Optional[str] = None


class SmartLocator:
    """
    Smart element locator with fallback strategies.

    Usage:
        >>> smart = SmartLocator(page)
        >>> await smart.fill("email_input", "agent@example.com")
        >>> await smart.click("login_button")
    """

    # Format: element_name -> {strategy_name: selector}
    LOCATORS: Dict[str, Dict[str, str]] = {
        # Authentication
        "email_input": {
            "primary": "#user_login",
            "fallback_1": "input[name='user_login']",
            "fallback_2": "input[type='email']",
        },
        "password_input": {
            "primary": "#user_password",
            "fallback_1": "input[name='user_password']",
            "fallback_2": "input[type='password']",
        },
        "login_button": {
            "primary": "#loginButton",
            "fallback_1": "button[type='submit']",
            "fallback_2": "button:has-text('Login')",
        },
        "user_menu": {
            "primary": "span.hidden-xs",
            "fallback_1": ".user-menu .dropdown-toggle",
        },

        # Import
        "import_menu": {
            "primary": "(//li[@class='pageLink'])[3]",
            "fallback_1": "li.pageLink:has-text('Import')",
        },
        "import_new_list": {
            "primary": "#importNewList",
            "fallback_1": "a:has-text('Import New List')",
        },
        "append_existing_list": {
            "primary": "#appenedExistingList",
            "fallback_1": "a:has-text('Append')",
        },
        "import_logs_link": {
            "primary": "//a[contains(text(),'Import Logs')]",
            "fallback_1": "//button[contains(text(),'Import Logs')]",
            "fallback_2": "//a[contains(@href,'importLog')]",
        },

        # Campaign
        "campaign_menu": {
            "primary": "(//a[@href='#'])[2]",
            "fallback_1": "a:has-text('Campaign')",
        },
        "active_campaigns": {
            "primary": "(//a[@id='modifyCampaign'])[1]",
            "fallback_1": "a:has-text('Active Campaigns')",
        },
    }

    def __init__(self, page: Page):
        self.page = page
        self._health_records: List[LocatorHealth] = []
        self._fallback_used: Dict[str, LocatorHealth] = {}

    def selector_for(self, element_name: str) -> str:
        """Primary selector of a registered element."""
        try:
            return self.LOCATORS[element_name]["primary"]
        except KeyError:
            raise ElementNotFoundError(f"No locators defined for element: {element_name}") from None

    async def locate(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 5000,
        element_name: Optional[str] = None,
    ) -> Locator:
        """
        Locate element using smart fallback strategy.

        Args:
            target: Element key in ``LOCATORS`` or a locator map
            timeout: Timeout in milliseconds for each attempt
            element_name: Optional display name for logging

        Returns:
            Playwright Locator for the found element

        Raises:
            ElementNotFoundError: When all strategies fail
        """
        if isinstance(target, dict):
            locators = target
            display_name = element_name or "custom_element"
        else:
            locators = self.LOCATORS.get(target, {})
            display_name = target

        if not locators:
            raise ElementNotFoundError(f"No locators defined for element: {display_name}")

        errors = []

        for strategy_name, selector in locators.items():
            try:
                locator = self.page.locator(selector).first
                await locator.wait_for(state="visible", timeout=timeout)
            except PlaywrightError as e:
                errors.append(f"{strategy_name}: {selector} -> {str(e)[:50]}")
                continue

            is_fallback = strategy_name != "primary"
            health = LocatorHealth(
                element_name=display_name,
                primary_selector=locators.get("primary", selector),
                used_fallback=is_fallback,
                fallback_name=strategy_name if is_fallback else None,
                fallback_selector=selector if is_fallback else None,
            )
            self._health_records.append(health)

            if is_fallback:
                logger.warning(f"Element '{display_name}' used fallback: {strategy_name} -> {selector}")
                self._fallback_used[display_name] = health
            else:
                logger.debug(f"Element '{display_name}' found: {selector}")
            return locator

        error_msg = (
            f"All locators failed for '{display_name}':\n"
            + "\n".join(f"  - {err}" for err in errors)
        )
        logger.error(error_msg)
        raise ElementNotFoundError(error_msg)

    async def click(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.click(**kwargs)

    async def fill(
        self,
        target: Union[str, Dict[str, str]],
        value: str,
        timeout: int = 5000,
        element_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        locator = await self.locate(target, timeout=timeout, element_name=element_name)
        await locator.fill(value, **kwargs)

    async def is_visible(
        self,
        target: Union[str, Dict[str, str]],
        timeout: int = 2000,
        element_name: Optional[str] = None,
    ) -> bool:
        """True when any strategy finds a visible element within ``timeout``."""
        try:
            locator = await self.locate(target, timeout=timeout, element_name=element_name)
            return await locator.is_visible()
        except ElementNotFoundError:
            return False

    def get_health_report(self) -> str:
        """
        Generate locator health report.

        Lists the elements that needed a fallback (maintenance candidates).
        """
        if not self._fallback_used:
            return "All elements used primary locators. No maintenance needed."

        report_lines = [
            "Locator Health Report - Fallbacks Used:",
            "",
            "Consider updating the primary selectors of:",
            "",
        ]
        for element_name, health in self._fallback_used.items():
            report_lines.extend([
                f"  [{element_name}]",
                f"    Failed primary: {health.primary_selector}",
                f"    Used: {health.fallback_name} -> {health.fallback_selector}",
                "",
            ])
        return "\n".join(report_lines)

    def register_locator(self, element_name: str, locators: Dict[str, str]) -> None:
        """Register a locator map at runtime (instance-local)."""
        self.LOCATORS = {**self.LOCATORS, element_name: locators}
        logger.debug(f"Registered new locator: {element_name}")


__all__ = [
    "SmartLocator",
    "ElementNotFoundError",
    "LocatorHealth",
]
