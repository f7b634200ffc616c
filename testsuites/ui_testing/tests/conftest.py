"""
================================================================================
UI Testing Pytest Configuration
================================================================================

Fixtures for the live CRM suites: suite configuration, spreadsheet data,
browser sessions and page objects.

Key Features:
- One SuiteSession (browser + API capture + login) per test
- Suite selected with the SUITE env var (RBL, IRC, Sanity, SanityAgent)
- Screenshot, URL and recent API calls attached on failure

================================================================================
"""

from typing import AsyncGenerator

import pytest

from callcenter_tools.data_provider import SheetDataProvider
from testsuites.ui_testing.framework.suite_config import SuiteConfig, load_suite_config
from testsuites.ui_testing.framework.suite_setup import SuiteSession
from testsuites.ui_testing.pages.campaign_page import CampaignPage
from testsuites.ui_testing.pages.import_page import ImportPage
from testsuites.ui_testing.pages.login_page import LoginPage


# ================================================================================
# Configuration Fixtures
# ================================================================================

@pytest.fixture(scope="session")
def suite_config() -> SuiteConfig:
    """Effective configuration of the suite under test."""
    return load_suite_config()


@pytest.fixture(scope="session")
def data_provider() -> SheetDataProvider:
    """Typed access to the test-data workbooks."""
    return SheetDataProvider()


# ================================================================================
# Session Fixtures
# ================================================================================

@pytest.fixture
async def session(
    request,
    suite_config: SuiteConfig,
    data_provider: SheetDataProvider,
) -> AsyncGenerator[SuiteSession, None]:
    """
    Logged-in browser session.

    The role defaults to the first row of the login sheet; a test can ask
    for another one with ``@pytest.mark.parametrize("session", ["Agent"], indirect=True)``.
    """
    role = getattr(request, "param", None)
    async with SuiteSession(suite_config, role=role, data_provider=data_provider) as active:
        yield active
        await _capture_if_failed(request, active)


@pytest.fixture
async def anonymous_session(request, suite_config: SuiteConfig) -> AsyncGenerator[SuiteSession, None]:
    """Browser session on the login screen, not signed in."""
    async with SuiteSession(suite_config, login=False) as active:
        yield active
        await _capture_if_failed(request, active)


async def _capture_if_failed(request, session: SuiteSession) -> None:
    report = getattr(request.node, "rep_call", None)
    if report is not None and report.failed and session.page is not None:
        await LoginPage.for_session(session).capture_failure(request.node.name)


# ================================================================================
# Page Object Fixtures
# ================================================================================

@pytest.fixture
def login_page(anonymous_session: SuiteSession) -> LoginPage:
    return LoginPage.for_session(anonymous_session)


@pytest.fixture
def import_page(session: SuiteSession, data_provider: SheetDataProvider) -> ImportPage:
    return ImportPage.for_session(session, data_provider=data_provider)


@pytest.fixture
def campaign_page(session: SuiteSession) -> CampaignPage:
    return CampaignPage.for_session(session)


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """
    Expose each phase report on the item (``rep_setup``, ``rep_call``, ...)
    so session fixtures can capture failure details before closing the page.
    """
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"rep_{report.when}", report)
