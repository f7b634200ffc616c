"""
================================================================================
Sheet Data Provider
================================================================================

Maps each test-data purpose to its workbook and sheet, and returns typed
records. The data directory comes from the ``data.directory`` config key
(``TESTDATA_DIR`` overrides it).

Workbooks:
    Login Creds Data.xlsx                 UserLoginData
    Document Update Data.xlsx             Import File, IRC_ImportFile, Append To List
    RBL Test Data.xlsx                    LeadFieldCreation, LeadFieldUpdation
    Campaign Creation Updation Data.xlsx  Creation Data, Updation Data

================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, Mapping, Optional, TypeVar, Union

from loguru import logger

from callcenter_tools.common import get_config

from .excel_reader import DataProviderError, read_rows
from .records import (
    AppendToListRow,
    CampaignRow,
    ImportFileRow,
    LeadFieldRow,
    LoginCredentialRow,
)


R = TypeVar("R")

LOGIN_WORKBOOK = "Login Creds Data.xlsx"
DOCUMENT_WORKBOOK = "Document Update Data.xlsx"
RBL_WORKBOOK = "RBL Test Data.xlsx"
CAMPAIGN_WORKBOOK = "Campaign Creation Updation Data.xlsx"

IMPORT_SHEETS = {
    "RBL": "Import File",
    "SANITY": "Import File",
    "SANITYAGENT": "Import File",
    "IRC": "IRC_ImportFile",
}


class SheetDataProvider:
    """
    Typed access to the CRM test-data workbooks.

    Usage:
        provider = SheetDataProvider()
        creds = provider.login_credentials()
        imports = provider.import_files(suite="IRC")
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None, strict: bool = False):
        """
        Args:
            data_dir: Directory holding the workbooks
            strict: Raise on the first invalid row instead of skipping it
        """
        if data_dir is None:
            data_dir = os.getenv("TESTDATA_DIR") or get_config("data.directory", "testdata")
        self.data_dir = Path(data_dir)
        self.strict = strict

    def _load(
        self,
        workbook: str,
        sheet: str,
        factory: Callable[[Mapping[str, str]], R],
    ) -> List[R]:
        rows = read_rows(self.data_dir / workbook, sheet)
        records: List[R] = []
        for index, row in enumerate(rows, start=2):
            try:
                records.append(factory(row))
            except DataProviderError as e:
                if self.strict:
                    raise DataProviderError(f"{workbook} [{sheet}] row {index}: {e}") from e
                logger.warning(f"Skipping {workbook} [{sheet}] row {index}: {e}")
        logger.info(f"Loaded {len(records)} record(s) from {workbook} [{sheet}]")
        return records

    def login_credentials(self) -> List[LoginCredentialRow]:
        return self._load(LOGIN_WORKBOOK, "UserLoginData", LoginCredentialRow.from_record)

    def credentials_for_role(self, role: str) -> LoginCredentialRow:
        """Return the first credential row whose role matches (case-insensitive)."""
        for row in self.login_credentials():
            if row.role.strip().lower() == role.strip().lower():
                return row
        raise DataProviderError(f"No login credentials for role '{role}' in {LOGIN_WORKBOOK}")

    def import_files(self, suite: str = "RBL") -> List[ImportFileRow]:
        sheet = IMPORT_SHEETS.get(suite.upper())
        if sheet is None:
            raise DataProviderError(
                f"No import sheet for suite '{suite}'. Known suites: {sorted(IMPORT_SHEETS)}"
            )
        return self._load(
            DOCUMENT_WORKBOOK,
            sheet,
            lambda r: ImportFileRow.from_record(r, sheet=sheet),
        )

    def append_to_list(self) -> List[AppendToListRow]:
        return self._load(DOCUMENT_WORKBOOK, "Append To List", AppendToListRow.from_record)

    def lead_fields(self, kind: str = "creation") -> List[LeadFieldRow]:
        sheet = "LeadFieldUpdation" if kind.lower().startswith("upd") else "LeadFieldCreation"
        return self._load(RBL_WORKBOOK, sheet, lambda r: LeadFieldRow.from_record(r, sheet=sheet))

    def campaigns(self, kind: str = "creation") -> List[CampaignRow]:
        sheet = "Updation Data" if kind.lower().startswith("upd") else "Creation Data"
        return self._load(CAMPAIGN_WORKBOOK, sheet, lambda r: CampaignRow.from_record(r, sheet=sheet))

    def resolve_upload(self, file_path: str) -> Path:
        """Resolve an upload path from a data row relative to the data directory."""
        path = Path(file_path)
        if path.is_absolute():
            return path
        candidate = self.data_dir / path
        return candidate if candidate.exists() else Path.cwd() / path


__all__ = [
    "SheetDataProvider",
    "IMPORT_SHEETS",
]
