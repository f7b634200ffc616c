"""
================================================================================
Call-Center Automation Tools
================================================================================

Support utilities shared by the CRM UI suites and the tool servers.

Modules:
    - common: Shared configuration, logging and batch helpers
    - data_provider: Spreadsheet readers and typed test-data records
    - data_generator: Synthetic CRM data (users, campaigns, leads, scenarios)
    - report_tools: Allure attachment helpers and result readers
    - mcp_servers: stdio tool servers (test-analyzer, test-data-generator)

Example:
    from callcenter_tools.common import init_logger
    from callcenter_tools.data_provider import SheetDataProvider

    init_logger()
    provider = SheetDataProvider("testdata")
    for row in provider.import_files(suite="RBL"):
        print(row.list_name)

================================================================================
"""

__version__ = "1.0.0"

__all__ = [
    "common",
    "data_provider",
    "data_generator",
    "report_tools",
    "mcp_servers",
]
