"""
================================================================================
UI Testing Framework
================================================================================

Playwright-based UI automation framework for the CRM suites.

Components:
    - suite_config: Immutable per-suite configuration
    - browser_manager / suite_setup: Browser lifecycle and suite sessions
    - smart_locator: Element location with fallback strategies
    - page_base: Base page object (safe actions, error banners, screenshots)
    - api_capture: XHR/fetch failure tracking
    - table_pagination: Row search across paginated tables
    - import_mapping: Import mapping reconciliation and import-log polling
    - wait_helpers: Bounded async polling

================================================================================
"""

from .api_capture import ApiCapture, ApiFailureError
from .browser_manager import BrowserManager
from .import_mapping import ImportMappingReconciler, MappingPlan
from .page_base import BasePage, ErrorBannerError
from .smart_locator import ElementNotFoundError, SmartLocator
from .suite_config import ConfigurationError, SuiteConfig, load_suite_config
from .suite_setup import SuiteSession
from .table_pagination import ControlUnavailableError, TablePaginationHandler
from .wait_helpers import WaitTimeoutError, poll_until

__all__ = [
    "ApiCapture",
    "ApiFailureError",
    "BasePage",
    "BrowserManager",
    "ConfigurationError",
    "ControlUnavailableError",
    "ElementNotFoundError",
    "ErrorBannerError",
    "ImportMappingReconciler",
    "MappingPlan",
    "SmartLocator",
    "SuiteConfig",
    "SuiteSession",
    "TablePaginationHandler",
    "WaitTimeoutError",
    "load_suite_config",
    "poll_until",
]
