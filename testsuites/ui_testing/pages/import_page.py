"""
================================================================================
Import Page Object (Async / Playwright)
================================================================================

List import screens of the CRM:
    - Import a new list (name, description, upload, Excel/CSV options)
    - Append a file to an existing list (paginated list table)
    - Column mapping screen (auto / existing / manual mapping)
    - Import log (status of background imports)

The mapping screen operations implement the MappingScreen protocol; the flow
itself is driven by ImportMappingReconciler.

================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import allure
from loguru import logger
from playwright.async_api import expect
from playwright.async_api import Locator
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from callcenter_tools.common import BatchSummary, run_batch
from callcenter_tools.data_provider import (
    AppendToListRow,
    ImportFileRow,
    SheetDataProvider,
    read_first_row_headers,
)
from testsuites.ui_testing.framework.import_mapping import (
    ImportMappingReconciler,
    ImportState,
    MappingMode,
    MappingPlan,
    MappingRow,
    extract_mapping_headers,
)
from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.smart_locator import ElementNotFoundError
from testsuites.ui_testing.framework.table_pagination import (
    TablePaginationHandler,
    arrow_pagination_locators,
)


APPEND_RADIO_CELL = 4
LOG_STATUS_CELL = 6


class ImportPage(PageBase):
    """Import page object (async)."""

    URL_PATH = "/"
    PAGE_TITLE = "Import"

    def __init__(self, *args, data_provider: Optional[SheetDataProvider] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.data_provider = data_provider
        page = self.page

        # Import new list
        self.import_new_list = page.locator(self.smart.selector_for("import_new_list"))
        self.list_name = page.locator("#importListName")
        self.description = page.locator("#importDescription")
        self.excel_radio = page.locator("#excel")
        self.autodetect = page.locator("#autoDetect")
        self.specify = page.locator("#specify")
        self.last_row = page.locator("#lastRow")
        self.last_column = page.locator("#lastColumn")
        self.csv_radio = page.locator("#csv")
        self.delimiter_comma = page.locator("#comma")
        self.upload_input = page.locator("(//input[@type='file'])[4]")
        self.submit_button = page.locator("#creaNewList")
        self.process_overview = page.locator("(//div[@class='box-body p-10'])[2]")
        self.ready_to_import = page.locator("//button[normalize-space()='OK - I am ready to Import']")

        # Mapping screen
        self.auto_map_button = page.locator("#autoFieldsMapping")
        self.existing_mapping_button = page.locator("#existingMapping")
        self.existing_mapping_select = page.locator("#existingMapList")
        self.apply_existing_button = page.locator("#existingMap")
        self.save_mapping_checkbox = page.locator("(//span[@class='ui-checkmark'])[1]")
        self.mapping_name = page.locator("#importListName")
        self.save_mapping_button = page.locator("#saveMappingBtn")
        self.continue_manual = page.locator(
            "//div[@id='saveMapAutoDiv']//button[@type='submit'][normalize-space()='Continue Import']"
        )
        self.continue_auto = page.locator("#autoMappingBtn")
        self.continue_existing = page.locator("#existtMappingBtn")
        self.mapping_cells = page.locator("//tbody//td")
        self.mapping_rows = page.locator("//table/tbody/tr")

        # Append to existing list
        self.append_table = page.locator("#appendExistingLists")
        self.append_rows = page.locator("#appendExistingLists tbody tr")
        self.save_append = page.locator("#addInexistingList")
        self.append_success = page.locator(
            "//div[contains(text(),'success') or contains(text(),'Success') "
            "or contains(text(),'Appended') or contains(text(),'completed')]"
        )

        # Import log
        self.log_rows = page.locator("table tr")

    # =========================================================================
    # Navigation
    # =========================================================================

    @allure.step("Navigate to Import")
    async def navigate_to_import(self) -> None:
        menu = await self.smart.locate("import_menu", timeout=self.action_timeout)
        await self.scroll_into_view(menu)
        await self.safe_click(menu, "Import menu")
        await self.capture_error_if_present("navigate to import")
        await self.require_control(self.import_new_list, "Import New List", timeout=10000)

    @allure.step("Navigate to Append To An Existing List")
    async def navigate_to_append(self) -> None:
        append_link = await self.smart.locate("append_existing_list", timeout=self.action_timeout)
        await self.scroll_into_view(append_link)
        await self.safe_click(append_link, "Append To An Existing List")
        await self.capture_error_if_present("navigate to append list")
        await self.require_control(self.append_table, "append list table", timeout=10000)

    # =========================================================================
    # Import form
    # =========================================================================

    def upload_path(self, row: ImportFileRow) -> Path:
        if self.data_provider is not None:
            return self.data_provider.resolve_upload(row.file_path)
        return Path(row.file_path)

    async def upload_file(self, file_path: Path) -> None:
        with allure.step(f"Upload {file_path.name}"):
            await self.upload_input.set_input_files(str(file_path))
            await self.capture_error_if_present("upload file")
        logger.info(f"Uploaded {file_path}")

    async def choose_file_format(self, row: ImportFileRow) -> None:
        """
        Select Excel (auto-detect or specified range) or CSV options.

        Auto-detect disables the last row/column inputs; specify enables them.
        """
        if row.excel:
            await self.safe_click(self.excel_radio, "Excel format")
            await self.capture_error_if_present("choose Excel format")
            if row.autodetect:
                await expect(self.last_row).to_be_disabled(timeout=10000)
                await expect(self.last_column).to_be_disabled(timeout=10000)
            elif row.specify:
                await expect(self.last_row).to_be_enabled(timeout=10000)
                await expect(self.last_column).to_be_enabled(timeout=10000)
                if row.last_row and row.last_column:
                    await self.safe_type(self.last_row, row.last_row, "last row")
                    await self.safe_type(self.last_column, row.last_column, "last column")
        elif row.csv:
            await self.safe_click(self.csv_radio, "CSV format")
            await self.capture_error_if_present("choose CSV format")
            if row.delimiter_comma:
                await self.safe_click(self.delimiter_comma, "comma delimiter")

    async def submit_new_list(self) -> None:
        await self.scroll_into_view(self.submit_button)
        await self.safe_click(self.submit_button, "Create list")
        await self.capture_error_if_present("submit new list")
        await self.require_control(self.process_overview, "import process overview", timeout=10000)

    async def confirm_ready_to_import(self) -> None:
        await self.scroll_into_view(self.ready_to_import)
        await self.safe_click(self.ready_to_import, "OK - I am ready to Import")
        await self.capture_error_if_present("ready to import")
        await self.require_control(self.mapping_cells.first, "mapping table", timeout=30000)

    async def save_append_selection(self) -> None:
        await self.scroll_into_view(self.save_append)
        await self.safe_click(self.save_append, "Append to list")
        await self.capture_error_if_present("append to list")
        await self.wait_for_page_load(timeout=5000)
        if await self.append_success.first.is_visible():
            logger.info("Append confirmed by success message")
        elif await self.process_overview.is_visible():
            logger.info("Append confirmed by import process overview")
        else:
            logger.warning("No success indicator found after appending to list")

    # =========================================================================
    # MappingScreen
    # =========================================================================

    async def read_mapping_rows(self) -> List[MappingRow]:
        """Headers of the mapping table with their Type/Field selectors."""
        texts = []
        for row in await self.mapping_rows.all():
            texts.append((await row.locator("td").first.text_content()) or "")
        headers = extract_mapping_headers(texts)
        return [
            MappingRow(
                index=i,
                header=header,
                type_select=self.page.locator(f"#aavazType{i}"),
                field_select=self.page.locator(f"#aavazField{i}"),
            )
            for i, header in enumerate(headers)
        ]

    async def click_auto_map(self) -> None:
        await self.scroll_into_view(self.auto_map_button)
        await self.safe_click(self.auto_map_button, "Auto map fields")

    async def apply_existing_mapping(self, name: str) -> None:
        await self.scroll_into_view(self.existing_mapping_button)
        await self.safe_click(self.existing_mapping_button, "Existing mapping")
        await self.select_by_label(self.existing_mapping_select, name, "saved mappings")
        await self.safe_click(self.apply_existing_button, "Apply mapping")

    async def save_mapping(self, name: str) -> None:
        await self.scroll_into_view(self.save_mapping_checkbox)
        await self.safe_click(self.save_mapping_checkbox, "Save mapping")
        await self.safe_type(self.mapping_name, name, "mapping name")
        await self.safe_click(self.save_mapping_button, "Save mapping name")
        await self.wait_for_popup_to_disappear()
        logger.info(f"Mapping saved as '{name}'")

    async def continue_import(self, mode: MappingMode) -> None:
        if mode is MappingMode.AUTO:
            button = self.continue_auto
        elif mode is MappingMode.EXISTING:
            await self.wait_for_error_to_disappear()
            button = self.continue_existing
        else:
            await self.wait_for_popup_to_disappear()
            button = self.continue_manual
        await self.scroll_into_view(button)
        await self.safe_click(button, "Continue Import")
        await self.capture_error_if_present("continue import")

    async def open_import_log(self) -> None:
        """Open the import log; stays on the current page when no link is shown."""
        if await self.smart.is_visible("import_logs_link", timeout=2000):
            await self.smart.click("import_logs_link", timeout=self.action_timeout)
            await self.wait_for_page_load(timeout=5000)
        else:
            logger.warning("Import Logs link not found; reading the current page")
        try:
            await self.page.locator("table").first.wait_for(state="visible", timeout=10000)
        except PlaywrightTimeoutError:
            logger.warning("Import log table not visible yet")

    async def read_import_status(self, expected_name: str) -> Optional[str]:
        """
        Status column of the log row naming ``expected_name``; None when absent.

        A row names the import when one of its cells reads exactly
        ``list/file``. The log lists the newest import first, so the first
        such row wins.
        """
        expected_name = expected_name.strip()
        for row in await self.log_rows.all():
            texts = [t.strip() for t in await row.locator("td").all_text_contents()]
            if len(texts) <= LOG_STATUS_CELL:
                continue
            if expected_name in texts[:LOG_STATUS_CELL]:
                return texts[LOG_STATUS_CELL]
        return None

    # =========================================================================
    # Flows
    # =========================================================================

    def new_reconciler(self) -> ImportMappingReconciler:
        if self.config is None:
            return ImportMappingReconciler(self)
        return ImportMappingReconciler(
            self,
            batch_size=self.config.mapping_batch_size,
            batch_delay_s=self.config.mapping_batch_delay_s,
            poll_attempts=self.config.import_poll_attempts,
            poll_interval_s=self.config.import_poll_interval_s,
        )

    async def _reconcile(self, row: ImportFileRow, upload: Path) -> ImportState:
        uploaded_headers = read_first_row_headers(upload)
        plan = MappingPlan.from_flags(
            auto_map=row.auto_map,
            existing_mapping=row.existing_mapping,
            save_map=row.save_map,
            mapping_name=row.mapping_name,
            types=row.types,
            fields=row.fields,
        )
        reconciler = self.new_reconciler()
        return await reconciler.run(uploaded_headers, plan, row.list_name, upload.name)

    async def fill_import_data(self, row: ImportFileRow) -> ImportState:
        """
        Create a new list from a data row and wait until it is ready.

        Returns:
            Final import state (COMPLETED)
        """
        upload = self.upload_path(row)
        with allure.step(f"Import new list '{row.list_name}' from {upload.name}"):
            await self.safe_click(self.import_new_list, "Import New List")
            await self.capture_error_if_present("open import form")
            await self.safe_type(self.list_name, row.list_name, "list name")
            await self.safe_type(self.description, row.description, "description")
            await self.upload_file(upload)
            await self.choose_file_format(row)
            await self.submit_new_list()
            await self.confirm_ready_to_import()
            return await self._reconcile(row, upload)

    async def select_append_target(self, list_name: str) -> None:
        """
        Find the list in the append table and select its radio button.

        Raises:
            ElementNotFoundError: No row carries the list name
        """
        nav = arrow_pagination_locators(self.page)
        threshold = self.config.pagination_threshold if self.config else 20
        max_pages = self.config.pagination_max_pages if self.config else 50
        handler = TablePaginationHandler(self.page, page_size_threshold=threshold, max_pages=max_pages)

        async def select_radio(matched: Locator) -> None:
            radio = matched.locator("td").nth(APPEND_RADIO_CELL).locator("input[type='radio']")
            await radio.click()

        result = await handler.search(
            self.append_rows,
            0,
            list_name,
            nav.next,
            nav.previous,
            on_match=select_radio,
        )
        if not result.found:
            raise ElementNotFoundError(f"List with name '{list_name}' not found in append list table")
        await self.capture_error_if_present("select append list")
        logger.info(f"Selected list '{list_name}' for append (page {result.page_index})")

    async def append_to_existing_list(self, row: AppendToListRow) -> ImportState:
        """Append a file to an existing list and wait until it is ready."""
        upload = self.upload_path(row)
        with allure.step(f"Append {upload.name} to list '{row.list_name}'"):
            await self.navigate_to_append()
            await self.select_append_target(row.list_name)
            await self.upload_file(upload)
            await self.choose_file_format(row)
            await self.save_append_selection()
            return await self._reconcile(row, upload)

    async def import_list(self, row: ImportFileRow) -> ImportState:
        await self.navigate_to_import()
        return await self.fill_import_data(row)

    async def import_all(self, rows: Sequence[ImportFileRow]) -> BatchSummary:
        """Import every row; one failed import does not stop the others."""
        with allure.step(f"Import {len(rows)} list(s)"):
            return await run_batch(rows, self.import_list, describe=lambda r: r.list_name)

    async def append_all(self, rows: Sequence[AppendToListRow]) -> BatchSummary:
        async def append(row: AppendToListRow) -> ImportState:
            await self.navigate_to_import()
            return await self.append_to_existing_list(row)

        with allure.step(f"Append to {len(rows)} list(s)"):
            return await run_batch(rows, append, describe=lambda r: r.list_name)


__all__ = [
    "ImportPage",
]
