"""
Spreadsheet test data: raw readers, typed records and the per-suite provider.
"""

from .excel_reader import (
    DataProviderError,
    cell_to_text,
    format_time_if_needed,
    get_file_info,
    get_sheet_names,
    read_first_row_headers,
    read_rows,
    validate_file,
)
from .records import (
    AppendToListRow,
    CampaignRow,
    ImportFileRow,
    LeadFieldRow,
    LoginCredentialRow,
    parse_flag,
    parse_list,
)
from .sheet_provider import SheetDataProvider

__all__ = [
    "AppendToListRow",
    "CampaignRow",
    "DataProviderError",
    "ImportFileRow",
    "LeadFieldRow",
    "LoginCredentialRow",
    "SheetDataProvider",
    "cell_to_text",
    "format_time_if_needed",
    "get_file_info",
    "get_sheet_names",
    "parse_flag",
    "parse_list",
    "read_first_row_headers",
    "read_rows",
    "validate_file",
]
