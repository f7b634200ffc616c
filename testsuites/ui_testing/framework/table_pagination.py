"""
================================================================================
Paginated Table Search
================================================================================

Locates a row in a paginated HTML table whose page count is unknown, and
always leaves the table back on its first page.

Algorithm:
    1. Snapshot the rows; a table with fewer rows than the page-size
       threshold is searched in place and the pager is never touched.
    2. Compare the trimmed text of cell ``cell_index`` of every row.
    3. No match: click ``next`` while it is visible and enabled, let the
       network settle, and search the new page.
    4. Whenever the pager was used, click ``previous`` until it is hidden or
       disabled, even when the search raised.

Not finding the row is a normal outcome (``None`` / ``found == False``).

Usage:
    handler = TablePaginationHandler(page)
    nav = default_pagination_locators(page)
    row = await handler.find_row_with_value(
        page.locator("table#appendExistingLists tbody tr"), 0, "Leads Q3",
        nav.next, nav.previous,
    )

================================================================================
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence

import allure
from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


DEFAULT_PAGE_SIZE_THRESHOLD = 20
DEFAULT_MAX_PAGES = 50


class ControlUnavailableError(Exception):
    """Raised when a control the flow requires never becomes usable."""
    pass


class MatchStrategy(str, Enum):
    """Text comparison strategies, in the order the fuzzy search tries them."""
    EXACT = "exact"
    CASE_INSENSITIVE = "case_insensitive"
    WHITESPACE_NORMALIZED = "whitespace_normalized"
    CONTAINS = "contains"


EXACT_ONLY: Sequence[MatchStrategy] = (MatchStrategy.EXACT,)
FUZZY_STRATEGIES: Sequence[MatchStrategy] = tuple(MatchStrategy)

_WHITESPACE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def text_matches(text: str, expected: str, strategy: MatchStrategy) -> bool:
    """
    Compare a trimmed cell text with the expected value.

    Both sides are trimmed before comparison.
    """
    text = text.strip()
    expected = expected.strip()
    if strategy is MatchStrategy.EXACT:
        return text == expected
    if strategy is MatchStrategy.CASE_INSENSITIVE:
        return text.lower() == expected.lower()
    if strategy is MatchStrategy.WHITESPACE_NORMALIZED:
        return normalize_whitespace(text).lower() == normalize_whitespace(expected).lower()
    if strategy is MatchStrategy.CONTAINS:
        return bool(expected) and expected.lower() in text.lower()
    raise ValueError(f"Unknown match strategy: {strategy}")


@dataclass(frozen=True)
class PaginationControls:
    """The ``next`` / ``previous`` controls of a table pager."""
    next: Locator
    previous: Locator


@dataclass
class RowSearchResult:
    """
    Outcome of a table search.

    Attributes:
        row: Locator of the matching row (None when not found)
        page_index: 1-based page the match was found on (last page searched otherwise)
        pages_advanced: Number of ``next`` clicks performed
        pages_reset: Number of ``previous`` clicks performed while resetting
        strategy: Strategy that produced the match
        matched_text: Cell text of the matching row
        action_result: Return value of ``on_match`` when one was given
    """
    row: Optional[Locator] = None
    page_index: int = 1
    pages_advanced: int = 0
    pages_reset: int = 0
    strategy: Optional[MatchStrategy] = None
    matched_text: Optional[str] = None
    action_result: Any = None

    @property
    def found(self) -> bool:
        return self.row is not None

    @property
    def paginated(self) -> bool:
        return self.pages_advanced > 0 or self.pages_reset > 0


def default_pagination_locators(page: Page) -> PaginationControls:
    """
    Controls of the standard pagination bar.

    The bar renders first / previous / page / next / last controls; the
    second is ``previous`` and the fourth is ``next``.
    """
    controls = page.locator("ul.Pagination li.PaginationControl")
    return PaginationControls(next=controls.nth(3), previous=controls.nth(1))


def arrow_pagination_locators(page: Page) -> PaginationControls:
    """Controls of tables paged with ``<`` / ``>`` buttons (campaign lists)."""
    return PaginationControls(
        next=page.locator("//button[normalize-space(text())='>']"),
        previous=page.locator("//button[normalize-space(text())='<']"),
    )


async def control_usable(control: Optional[Locator]) -> bool:
    """True when the control is visible and not disabled."""
    if control is None:
        return False
    if not await control.is_visible():
        return False
    return not await control.is_disabled()


async def require_control(
    control: Locator,
    description: str,
    timeout: int = 5000,
) -> Locator:
    """
    Wait for a control the flow cannot proceed without.

    Raises:
        ControlUnavailableError: The control did not become visible in time
    """
    try:
        await control.wait_for(state="visible", timeout=timeout)
    except PlaywrightTimeoutError as e:
        raise ControlUnavailableError(
            f"Required control '{description}' not visible within {timeout}ms"
        ) from e
    return control


class TablePaginationHandler:
    """
    Row search across the pages of a paginated table.

    Attributes:
        page_size_threshold: Tables with fewer initial rows skip pagination
        max_pages: Safety cap for both the forward walk and the reset walk
    """

    def __init__(
        self,
        page: Page,
        page_size_threshold: int = DEFAULT_PAGE_SIZE_THRESHOLD,
        max_pages: int = DEFAULT_MAX_PAGES,
        settle_timeout_ms: int = 5000,
        fallback_wait_ms: int = 1000,
    ):
        self.page = page
        self.page_size_threshold = page_size_threshold
        self.max_pages = max_pages
        self.settle_timeout_ms = settle_timeout_ms
        self.fallback_wait_ms = fallback_wait_ms

    async def find_row_with_value(
        self,
        rows: Locator,
        cell_index: int,
        expected_value: str,
        next_control: Optional[Locator],
        previous_control: Optional[Locator],
    ) -> Optional[Locator]:
        """
        Exact-match search. Returns the row locator, or None when absent.
        """
        result = await self.search(
            rows, cell_index, expected_value, next_control, previous_control
        )
        return result.row

    async def find_row_fuzzy(
        self,
        rows: Locator,
        cell_index: int,
        expected_value: str,
        next_control: Optional[Locator],
        previous_control: Optional[Locator],
        on_match: Optional[Callable[[Locator], Awaitable[Any]]] = None,
    ) -> RowSearchResult:
        """
        Search trying exact, case-insensitive, whitespace-normalized and
        contains matching, in that order, on each row.
        """
        return await self.search(
            rows,
            cell_index,
            expected_value,
            next_control,
            previous_control,
            strategies=FUZZY_STRATEGIES,
            on_match=on_match,
        )

    async def search(
        self,
        rows: Locator,
        cell_index: int,
        expected_value: str,
        next_control: Optional[Locator],
        previous_control: Optional[Locator],
        strategies: Sequence[MatchStrategy] = EXACT_ONLY,
        on_match: Optional[Callable[[Locator], Awaitable[Any]]] = None,
    ) -> RowSearchResult:
        """
        Search every reachable page for a row whose cell matches.

        Args:
            rows: Locator matching all body rows of the table
            cell_index: 0-based column to compare
            expected_value: Value to look for
            next_control: Pager ``next`` control
            previous_control: Pager ``previous`` control
            strategies: Match strategies tried in order on each row
            on_match: Async action run on the matched row before the pager
                is reset; the row handle points at a different row afterwards

        Returns:
            RowSearchResult describing the match and pager movement
        """
        result = RowSearchResult()

        with allure.step(f"Search table for '{expected_value}' in column {cell_index}"):
            initial_count = await rows.count()
            paginate = initial_count >= self.page_size_threshold
            if not paginate:
                logger.debug(
                    f"{initial_count} row(s) below page size {self.page_size_threshold}; "
                    f"searching current page only"
                )

            try:
                while True:
                    await self._search_page(rows, cell_index, expected_value, strategies, result)
                    if result.found:
                        logger.info(
                            f"Found '{result.matched_text}' on page {result.page_index} "
                            f"({result.strategy.value} match)"
                        )
                        if on_match is not None:
                            result.action_result = await on_match(result.row)
                        break
                    if not paginate:
                        break
                    if result.pages_advanced + 1 >= self.max_pages:
                        logger.warning(f"Stopped after {self.max_pages} pages without a match")
                        break
                    if not await control_usable(next_control):
                        break

                    await next_control.click()
                    await self._settle()
                    result.pages_advanced += 1
                    result.page_index += 1
            finally:
                if paginate:
                    result.pages_reset = await self.reset_to_first_page(previous_control)

        if not result.found:
            logger.warning(
                f"Row with value '{expected_value}' not found in "
                f"{result.page_index} page(s)"
            )
        return result

    async def _search_page(
        self,
        rows: Locator,
        cell_index: int,
        expected_value: str,
        strategies: Sequence[MatchStrategy],
        result: RowSearchResult,
    ) -> None:
        for row in await rows.all():
            cells = row.locator("td")
            if await cells.count() <= cell_index:
                continue
            text = ((await cells.nth(cell_index).text_content()) or "").strip()
            for strategy in strategies:
                if text_matches(text, expected_value, strategy):
                    result.row = row
                    result.strategy = strategy
                    result.matched_text = text
                    return

    async def reset_to_first_page(self, previous_control: Optional[Locator]) -> int:
        """
        Click ``previous`` until it is hidden or disabled.

        A pager that stops responding ends the walk with a warning; the
        search outcome stands.

        Returns:
            Number of clicks performed
        """
        clicks = 0
        with allure.step("Reset table to first page"):
            try:
                while clicks < self.max_pages and await control_usable(previous_control):
                    await previous_control.click()
                    await self._settle()
                    clicks += 1
            except PlaywrightError as e:
                logger.warning(f"Reset to first page failed after {clicks} click(s): {e}")
        if clicks:
            logger.debug(f"Reset table to first page ({clicks} click(s))")
        return clicks

    async def _settle(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle", timeout=self.settle_timeout_ms)
        except PlaywrightTimeoutError:
            logger.debug("Network did not go idle; falling back to a fixed wait")
            await self.page.wait_for_timeout(self.fallback_wait_ms)


__all__ = [
    "ControlUnavailableError",
    "DEFAULT_MAX_PAGES",
    "DEFAULT_PAGE_SIZE_THRESHOLD",
    "EXACT_ONLY",
    "FUZZY_STRATEGIES",
    "MatchStrategy",
    "PaginationControls",
    "RowSearchResult",
    "TablePaginationHandler",
    "arrow_pagination_locators",
    "control_usable",
    "default_pagination_locators",
    "normalize_whitespace",
    "require_control",
    "text_matches",
]
