"""
================================================================================
Root Pytest Configuration
================================================================================

Registers the project markers, tags tests by location and keeps the live UI
suites out of runs that have no CRM environment.

================================================================================
"""

import os

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Suite markers
    config.addinivalue_line(
        "markers", "rbl: RBL suite (lead fields, list import)"
    )
    config.addinivalue_line(
        "markers", "irc: IRC suite (IRC list import)"
    )
    config.addinivalue_line(
        "markers", "sanity: Sanity suite (login, import, campaigns)"
    )
    config.addinivalue_line(
        "markers", "sanity_agent: SanityAgent suite (agent-side checks)"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "ui: Live UI tests against a CRM environment"
    )
    config.addinivalue_line(
        "markers", "unit: Offline tests of the framework and tools"
    )

    # Feature markers
    config.addinivalue_line(
        "markers", "import_mapping: Tests related to list import mapping"
    )
    config.addinivalue_line(
        "markers", "pagination: Tests related to paginated table search"
    )
    config.addinivalue_line(
        "markers", "tool_server: Tests related to the stdio tool servers"
    )


def _live_ui_enabled() -> bool:
    return os.getenv("UI_LIVE_TESTS", "0").strip().lower() in ("1", "true", "yes")


def pytest_collection_modifyitems(config, items):
    """
    Tag collected tests by directory and skip live UI tests unless enabled.
    """
    skip_live = pytest.mark.skip(reason="Live UI tests disabled (set UI_LIVE_TESTS=1)")
    live_enabled = _live_ui_enabled()

    for item in items:
        path = str(item.fspath)

        if f"{os.sep}ui_testing{os.sep}" in path:
            item.add_marker(pytest.mark.ui)
            if not live_enabled:
                item.add_marker(skip_live)

        if f"{os.sep}unit{os.sep}" in path:
            item.add_marker(pytest.mark.unit)
            if "table_pagination" in path:
                item.add_marker(pytest.mark.pagination)
            elif "import_mapping" in path or "import_log" in path:
                item.add_marker(pytest.mark.import_mapping)
            elif "tool_servers" in path:
                item.add_marker(pytest.mark.tool_server)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Call-Center CRM UI Automation",
        f"Live UI tests: {'enabled' if _live_ui_enabled() else 'disabled'}",
        "=" * 60,
        "",
    ]
