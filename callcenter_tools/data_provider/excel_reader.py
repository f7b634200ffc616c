"""
================================================================================
Spreadsheet Reader
================================================================================

Reads test data from XLSX workbooks (openpyxl) and CSV files.

Every data row is returned as a ``{header: value}`` mapping with string values:
    - values are trimmed
    - fully blank rows are skipped
    - Excel fractional times (0 <= x < 1) become ``HH:MM:SS``
    - whole numbers lose the trailing ``.0``
    - dates and datetimes are ISO formatted

Missing files and sheets raise DataProviderError rather than yielding an
empty list, so a mistyped sheet name fails the test that depends on it.

================================================================================
"""

from __future__ import annotations

import csv
import os
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger
from openpyxl import load_workbook


PathLike = Union[str, Path]

EXCEL_SUFFIXES = (".xlsx", ".xlsm")
CSV_SUFFIXES = (".csv",)


class DataProviderError(Exception):
    """Raised when a data file, sheet or required column is unavailable."""
    pass


def _resolve(file_path: PathLike) -> Path:
    path = Path(file_path)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _require_file(file_path: PathLike) -> Path:
    path = _resolve(file_path)
    if not path.is_file():
        raise DataProviderError(f"Data file not found: {path}")
    return path


def format_time_if_needed(value: Any) -> Any:
    """
    Convert an Excel fractional day (0 <= x < 1) into ``HH:MM:SS``.

    Only non-integral floats are converted, so a literal ``0`` stays ``0``.
    Anything else is returned unchanged.
    """
    if isinstance(value, bool) or not isinstance(value, float):
        return value
    if value.is_integer() or not (0 <= value < 1):
        return value

    total_seconds = round(value * 24 * 60 * 60)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    formatted = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    logger.debug(f"Converted time: {value} -> {formatted}")
    return formatted


def cell_to_text(value: Any) -> str:
    """Render a raw cell value the way it appears in the sheet."""
    if value is None:
        return ""
    value = format_time_if_needed(value)
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _rows_to_records(rows: List[List[Any]]) -> List[Dict[str, str]]:
    if not rows:
        return []

    headers = [cell_to_text(h) for h in rows[0]]
    if not any(headers):
        raise DataProviderError("Sheet has no header row")

    records: List[Dict[str, str]] = []
    for raw in rows[1:]:
        values = [cell_to_text(v) for v in raw]
        if not any(values):
            continue
        values += [""] * (len(headers) - len(values))
        record = {
            header: values[i]
            for i, header in enumerate(headers)
            if header
        }
        records.append(record)
    return records


def read_rows(file_path: PathLike, sheet_name: Optional[str] = None) -> List[Dict[str, str]]:
    """
    Read every non-blank data row of a sheet as a header-keyed mapping.

    Args:
        file_path: Path to an .xlsx/.xlsm workbook or a .csv file
        sheet_name: Worksheet name (ignored for CSV). Defaults to the active sheet.

    Returns:
        List of row mappings in sheet order

    Raises:
        DataProviderError: File or sheet is missing, or the header row is empty
    """
    path = _require_file(file_path)
    logger.info(f"Reading data file: {path.name}" + (f" [{sheet_name}]" if sheet_name else ""))

    if path.suffix.lower() in CSV_SUFFIXES:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            rows = [list(r) for r in csv.reader(f)]
    else:
        workbook = load_workbook(path, read_only=True, data_only=True)
        try:
            if sheet_name is None:
                sheet = workbook.active
            elif sheet_name in workbook.sheetnames:
                sheet = workbook[sheet_name]
            else:
                raise DataProviderError(
                    f"Sheet '{sheet_name}' not found in {path.name}. "
                    f"Available sheets: {', '.join(workbook.sheetnames)}"
                )
            rows = [list(r) for r in sheet.iter_rows(values_only=True)]
        finally:
            workbook.close()

    records = _rows_to_records(rows)
    logger.debug(f"Read {len(records)} data row(s) from {path.name}")
    return records


def read_first_row_headers(file_path: PathLike) -> List[str]:
    """
    Return the header strings of an upload file.

    XLSX: the first row of the first worksheet. CSV: the first line, with
    surrounding quotes stripped. Empty header cells are dropped.
    """
    path = _require_file(file_path)
    suffix = path.suffix.lower()

    if suffix in CSV_SUFFIXES:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            first = next(csv.reader(f), [])
        headers = [h.strip().strip('"').strip() for h in first]
    elif suffix in EXCEL_SUFFIXES:
        workbook = load_workbook(path, read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            first = next(sheet.iter_rows(max_row=1, values_only=True), ())
        finally:
            workbook.close()
        headers = [cell_to_text(h) for h in first]
    else:
        raise DataProviderError(f"Unsupported upload file type: {path.name}")

    return [h for h in headers if h]


def get_sheet_names(file_path: PathLike) -> List[str]:
    """Return the worksheet names of a workbook."""
    path = _require_file(file_path)
    workbook = load_workbook(path, read_only=True)
    try:
        return list(workbook.sheetnames)
    finally:
        workbook.close()


def validate_file(file_path: PathLike, sheet_name: Optional[str] = None) -> bool:
    """
    Check that a data file exists and, for workbooks, that it has the sheet.

    Returns False rather than raising; use it for preconditions and skips.
    """
    path = _resolve(file_path)
    if not path.is_file():
        logger.warning(f"Data file not found: {path}")
        return False
    if sheet_name is None or path.suffix.lower() in CSV_SUFFIXES:
        return True
    names = get_sheet_names(path)
    if sheet_name not in names:
        logger.warning(f"Sheet '{sheet_name}' missing from {path.name}; available: {names}")
        return False
    return True


def get_file_info(file_path: PathLike) -> Dict[str, Any]:
    """Return size, modification time and sheet names of a data file."""
    path = _require_file(file_path)
    stat = os.stat(path)
    info: Dict[str, Any] = {
        "path": str(path),
        "name": path.name,
        "size_bytes": stat.st_size,
        "modified": datetime.fromtimestamp(stat.st_mtime).isoformat(timespec="seconds"),
        "sheets": [],
    }
    if path.suffix.lower() in EXCEL_SUFFIXES:
        info["sheets"] = get_sheet_names(path)
    return info


__all__ = [
    "DataProviderError",
    "cell_to_text",
    "format_time_if_needed",
    "get_file_info",
    "get_sheet_names",
    "read_first_row_headers",
    "read_rows",
    "validate_file",
]
