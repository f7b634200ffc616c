"""
================================================================================
Campaign Page Object (Async / Playwright)
================================================================================

Active campaign list of the CRM: verification, creation and modification of
campaigns from the campaign workbook.

Flow (create):
    1. Skip campaigns already listed (fuzzy paginated search)
    2. Fill the settings form and submit
    3. Assign a list (paginated search of the list table) or skip it
    4. Assign skills or callers, depending on the assignment type

Flow (modify):
    1. Open the campaign's edit screen from the campaign list
    2. Re-submit the settings form and open the flagged sections

================================================================================
"""

from __future__ import annotations

from typing import List, Sequence

import allure
from loguru import logger
from playwright.async_api import Locator
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from callcenter_tools.common import BatchSummary, run_batch
from callcenter_tools.data_provider import CampaignRow
from testsuites.ui_testing.framework.page_base import PageBase
from testsuites.ui_testing.framework.table_pagination import (
    RowSearchResult,
    TablePaginationHandler,
    arrow_pagination_locators,
    default_pagination_locators,
)


CAMPAIGN_NAME_CELL = 0
LIST_NAME_CELL = 0
ASSIGNMENT_TABLE = "//table[@class='table table-striped table-display table-bordered m-b-0']"


class CampaignNotFoundError(AssertionError):
    """Raised when an expected campaign is not listed."""
    pass


class CampaignSetupError(AssertionError):
    """Raised when a campaign cannot be assigned its list, skills or callers."""
    pass


class CampaignPage(PageBase):
    """Campaign list page object (async)."""

    URL_PATH = "/"
    PAGE_TITLE = "Campaigns"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        page = self.page
        self.demand_tab = page.locator("#campDemand")
        self.demand_table = page.locator("#demandTable")
        self.demand_rows = page.locator("#demandTable tbody tr")

        # Settings form
        self.create_campaign_button = page.locator("//label[normalize-space()='Create New Campaign']")
        self.campaign_name = page.locator("#campaignName")
        self.description = page.locator("#campDescription")
        self.talking_point = page.locator("#sciptID")
        self.account_manager = page.locator("#accountManagerID")
        self.campaign_type = page.locator("#campaignType")
        self.direction = page.locator("#direction")
        self.default_campaign = page.locator("(//span[@class='ui-checkmark'])[2]")
        self.assignment_type = page.locator("#assignmentType")
        self.dial_mode = page.locator("#dialMode")
        self.submit_button = page.locator("#campaignLimit")

        # List, skill and caller assignment
        self.assignment_table = page.locator(ASSIGNMENT_TABLE)
        self.assignment_rows = page.locator(f"{ASSIGNMENT_TABLE}//tbody//tr")
        self.skip_list_button = page.locator("//button[normalize-space()='Skip List']")
        self.add_list_button = page.locator("//button[normalize-space()='Add List']")
        self.assign_callers_select = page.locator("#callBackBy")
        self.assign_button = page.locator("//button[normalize-space()='Assign']")

        # Modify screen
        self.modify_panel = page.locator("(//div[@class='col-xs-12 col-sm-12 col-lg-12'])[2]")
        self.change_settings_button = page.locator("#btnChangeCampSettings")
        self.pull_appended_button = page.locator("#btnPullAppend")
        self.change_assignments_button = page.locator("#btnchangeAssignment")
        self.change_prospect_button = page.locator("#btnChangeProspect")

    def _handler(self, page_size_threshold: int) -> TablePaginationHandler:
        max_pages = self.config.pagination_max_pages if self.config else 50
        return TablePaginationHandler(self.page, page_size_threshold=page_size_threshold, max_pages=max_pages)

    # =========================================================================
    # Navigation and verification
    # =========================================================================

    @allure.step("Navigate to Active Campaigns")
    async def navigate_to_active_campaign(self) -> bool:
        """
        Open the active campaign list.

        Returns:
            True when the On-Demand tab had to be opened to show the table
        """
        menu = await self.smart.locate("campaign_menu", timeout=self.action_timeout)
        await self.scroll_into_view(menu)
        await self.safe_click(menu, "Campaign menu")
        await self.capture_error_if_present("open campaign menu")
        active = await self.smart.locate("active_campaigns", timeout=self.action_timeout)
        await self.scroll_into_view(active)
        await self.safe_click(active, "Active Campaigns")
        await self.capture_error_if_present("open active campaigns")

        try:
            await self.demand_table.wait_for(state="visible", timeout=10000)
            return False
        except PlaywrightTimeoutError:
            logger.info("Campaign table hidden; opening the On-Demand tab")
        await self.safe_click(self.demand_tab, "On-Demand campaigns")
        await self.require_control(self.demand_table, "campaign table", timeout=10000)
        return True

    async def find_campaign(self, campaign_name: str, on_match=None) -> RowSearchResult:
        """
        Fuzzy search of the campaign table across all pages.

        The campaign list is paged with ``<`` / ``>`` buttons and a page size
        below the default threshold, so every search walks the pager.
        """
        nav = arrow_pagination_locators(self.page)
        return await self._handler(0).find_row_fuzzy(
            self.demand_rows,
            CAMPAIGN_NAME_CELL,
            campaign_name,
            nav.next,
            nav.previous,
            on_match=on_match,
        )

    @allure.step("Verify campaign '{campaign_name}' exists")
    async def verify_existing_campaign(self, campaign_name: str) -> bool:
        result = await self.find_campaign(campaign_name)
        if result.found:
            logger.info(
                f"Campaign verification: '{result.matched_text}' ({result.strategy.value} match)"
            )
        else:
            logger.info(f"Campaign not found: {campaign_name}")
        return result.found

    async def assert_campaign_exists(self, campaign_name: str) -> None:
        if not await self.verify_existing_campaign(campaign_name):
            raise CampaignNotFoundError(f"Campaign '{campaign_name}' is not in the active list")

    async def verify_all(self, rows: List[CampaignRow]) -> BatchSummary:
        """Assert every campaign row exists, collecting failures per row."""
        return await run_batch(
            rows,
            lambda row: self.assert_campaign_exists(row.campaign_name),
            describe=lambda row: row.campaign_name,
        )

    # =========================================================================
    # Creation
    # =========================================================================

    async def fill_settings(self, row: CampaignRow) -> None:
        """Fill the settings form; empty cells leave the current value."""
        await self.safe_type(self.description, row.description, "campaign description")
        await self.safe_type(self.talking_point, row.talking_point, "talking point")
        for locator, label, description in (
            (self.account_manager, row.account_manager, "account manager"),
            (self.campaign_type, row.campaign_type, "campaign type"),
            (self.direction, row.direction, "direction"),
        ):
            if label:
                await self.select_by_label(locator, label, description)
        if row.default_campaign:
            await self.safe_click(self.default_campaign, "Default campaign")
        if row.assignment_type:
            await self.select_by_label(self.assignment_type, row.assignment_type, "assignment type")
        if row.dial_mode:
            await self.select_by_label(self.dial_mode, row.dial_mode, "dial mode")

    async def submit_settings(self, context: str) -> None:
        await self.scroll_into_view(self.submit_button)
        await self.safe_click(self.submit_button, "Submit campaign settings")
        await self.capture_error_if_present(context)

    @allure.step("Create campaign '{row.campaign_name}'")
    async def create_campaign(self, row: CampaignRow) -> bool:
        """
        Create the campaign of a creation row.

        Returns:
            False when the campaign was already listed (nothing created)
        """
        if await self.verify_existing_campaign(row.campaign_name):
            logger.info(f"Campaign already exists: {row.campaign_name}; skipping creation")
            return False

        await self.safe_click(self.create_campaign_button, "Create New Campaign")
        await self.safe_type(self.campaign_name, row.campaign_name, "campaign name")
        await self.fill_settings(row)
        await self.submit_settings("create campaign")
        await self.require_control(self.assignment_table, "list assignment table", timeout=10000)
        logger.info(f"Campaign created: {row.campaign_name}")

        await self.assign_list(row)
        if row.assigns_skills:
            await self.assign_skills(row.skills)
        else:
            await self.assign_callers(row.distribution_method, row.callers)
        return True

    @allure.step("Assign list to campaign")
    async def assign_list(self, row: CampaignRow) -> None:
        """
        Select the row's list in the assignment table and add it.

        Raises:
            CampaignSetupError: The list is not in the table
        """
        if row.skip_list:
            await self.safe_click(self.skip_list_button, "Skip List")
            await self.capture_error_if_present("skip list")
            logger.info(f"List assignment skipped for {row.campaign_name}")
            return

        nav = default_pagination_locators(self.page)
        threshold = self.config.pagination_threshold if self.config else 20

        async def select_radio(matched: Locator) -> None:
            await matched.locator("input[type='radio']").click()

        result = await self._handler(threshold).search(
            self.assignment_rows,
            LIST_NAME_CELL,
            row.list_name,
            nav.next,
            nav.previous,
            on_match=select_radio,
        )
        if not result.found:
            raise CampaignSetupError(f"List '{row.list_name}' not found in the assignment table")

        await self.safe_click(self.add_list_button, "Add List")
        await self.capture_error_if_present("add list to campaign")
        logger.info(f"List '{row.list_name}' added to {row.campaign_name}")

    @allure.step("Assign skills to campaign")
    async def assign_skills(self, skills: Sequence[str]) -> List[str]:
        """
        Tick the checkbox of every skill, then assign.

        A skill without a checkbox is logged and skipped; the rest are still
        assigned.

        Returns:
            Skills that were ticked
        """
        wanted = [skill for skill in skills if skill]
        if not wanted:
            logger.warning("No skills to assign")
            return []

        ticked = []
        for skill in wanted:
            checkbox = self.page.locator(f"//label[normalize-space()='{skill}']//span[@class='ui-checkmark']")
            try:
                await self.safe_click(checkbox, f"skill {skill}", timeout=10000)
            except PlaywrightTimeoutError:
                logger.warning(f"Skill '{skill}' has no checkbox; skipped")
                continue
            await self.capture_error_if_present(f"select skill {skill}")
            ticked.append(skill)

        if not ticked:
            raise CampaignSetupError(f"None of the skills could be selected: {', '.join(wanted)}")
        await self.safe_click(self.assign_button, "Assign")
        await self.capture_error_if_present("assign skills")
        logger.info(f"Assigned {len(ticked)}/{len(wanted)} skill(s)")
        return ticked

    @allure.step("Assign callers to campaign")
    async def assign_callers(self, distribution_method: str, callers: Sequence[str]) -> None:
        """Choose the distribution method and select the callers by label."""
        if distribution_method:
            method = self.page.locator(
                "//div[@class='col-xs-12 col-sm-12 col-lg-11']//ul[@class='ul-li']"
                f"//li[contains(.,'{distribution_method}')]/label//input"
            )
            await self.safe_click(method, f"distribution '{distribution_method}'")
            await self.capture_error_if_present("choose distribution method")

        labels = [caller for caller in callers if caller]
        if labels:
            await self.assign_callers_select.wait_for(state="visible", timeout=self.action_timeout)
            await self.assign_callers_select.select_option(label=labels)
            logger.info(f"Selected callers: {', '.join(labels)}")

        await self.safe_click(self.assign_button, "Assign")
        await self.capture_error_if_present("assign callers")

    async def create_all(self, rows: Sequence[CampaignRow]) -> BatchSummary:
        return await run_batch(rows, self.create_campaign, describe=lambda row: row.campaign_name)

    # =========================================================================
    # Modification
    # =========================================================================

    @allure.step("Open campaign '{campaign_name}' for editing")
    async def open_campaign(self, campaign_name: str) -> None:
        """
        Click the edit icon of the campaign's row.

        Raises:
            CampaignNotFoundError: The campaign is not listed
        """
        async def click_edit(matched: Locator) -> None:
            await matched.locator("td").last.locator("//a//i[@id='edit']").click()

        result = await self.find_campaign(campaign_name, on_match=click_edit)
        if not result.found:
            raise CampaignNotFoundError(f"Campaign '{campaign_name}' is not in the active list")
        await self.capture_error_if_present("open campaign for editing")
        await self.require_control(self.modify_panel, "modify campaign screen", timeout=10000)

    @allure.step("Modify campaign '{row.campaign_name}'")
    async def modify_campaign(self, row: CampaignRow) -> None:
        """Apply an updation row: settings form and the flagged modify sections."""
        await self.open_campaign(row.campaign_name)

        if row.change_settings:
            await self.safe_click(self.change_settings_button, "Change Campaign Settings")
            await self.fill_settings(row)
            await self.submit_settings("change campaign settings")
            await self.require_control(self.assignment_table, "list assignment table", timeout=10000)
            await self.wait_for_popup_to_disappear()
            logger.info(f"Campaign settings updated: {row.campaign_name}")

        for flagged, button, description in (
            (row.pull_appended, self.pull_appended_button, "Pull Appended Prospects"),
            (row.change_assignments, self.change_assignments_button, "Change Assignments"),
            (row.change_prospect_list, self.change_prospect_button, "Change Prospect List"),
        ):
            if flagged:
                await self.scroll_into_view(button)
                await self.safe_click(button, description)
                await self.capture_error_if_present(description)

    async def modify_all(self, rows: Sequence[CampaignRow]) -> BatchSummary:
        return await run_batch(rows, self.modify_campaign, describe=lambda row: row.campaign_name)


__all__ = [
    "CampaignNotFoundError",
    "CampaignPage",
    "CampaignSetupError",
]
