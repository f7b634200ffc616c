"""
Allure attachment helpers and readers for result files.
"""

from .allure_utils import (
    attach_batch_summary,
    attach_header_comparison,
    attach_json,
    attach_text,
)
from .results_reader import (
    AllureAnalysis,
    TestRecord,
    TestResultSummary,
    read_allure_results,
    read_stats_files,
)

__all__ = [
    "AllureAnalysis",
    "TestRecord",
    "TestResultSummary",
    "attach_batch_summary",
    "attach_header_comparison",
    "attach_json",
    "attach_text",
    "read_allure_results",
    "read_stats_files",
]
