"""
In-memory stand-ins for the Playwright objects the framework touches.

Only the calls made by the pagination handler and the mapping reconciler are
implemented.
"""

import asyncio
from typing import Dict, List, Optional, Sequence

from playwright.async_api import Error as PlaywrightError

from testsuites.ui_testing.framework.import_mapping import MappingMode, MappingRow


# ================================================================================
# Paginated table
# ================================================================================

class FakePage:
    """Page with the load-state waits used between pagination clicks."""

    def __init__(self):
        self.settle_calls = 0
        self.fixed_waits: List[int] = []

    async def wait_for_load_state(self, state: str = "load", timeout: Optional[int] = None) -> None:
        self.settle_calls += 1

    async def wait_for_timeout(self, timeout: int) -> None:
        self.fixed_waits.append(timeout)


class FakeCell:
    def __init__(self, text: str):
        self.text = text

    async def text_content(self) -> str:
        return self.text


class FakeCells:
    def __init__(self, texts: Sequence[str]):
        self.texts = list(texts)

    async def count(self) -> int:
        return len(self.texts)

    def nth(self, index: int) -> FakeCell:
        return FakeCell(self.texts[index])


class FakeRow:
    def __init__(self, table: "FakeTable", page_index: int, row_index: int):
        self.table = table
        self.page_index = page_index
        self.row_index = row_index
        self.texts = table.pages[page_index][row_index]

    def locator(self, selector: str) -> FakeCells:
        assert selector == "td"
        return FakeCells(self.texts)


class FakeRows:
    def __init__(self, table: "FakeTable"):
        self.table = table

    async def count(self) -> int:
        return len(self.table.pages[self.table.current])

    async def all(self) -> List[FakeRow]:
        current = self.table.current
        return [FakeRow(self.table, current, i) for i in range(len(self.table.pages[current]))]


class FakePagerControl:
    """``next`` (step +1) or ``previous`` (step -1) control of a FakeTable."""

    def __init__(self, table: "FakeTable", step: int, visible: bool = True, fail_on_click: Optional[int] = None):
        self.table = table
        self.step = step
        self.visible = visible
        self.clicks = 0
        self.fail_on_click = fail_on_click

    async def is_visible(self) -> bool:
        return self.visible

    async def is_disabled(self) -> bool:
        if self.step > 0:
            return self.table.current >= len(self.table.pages) - 1
        return self.table.current <= 0

    async def click(self) -> None:
        assert not await self.is_disabled(), "clicked a disabled pager control"
        if self.fail_on_click is not None and self.clicks + 1 >= self.fail_on_click:
            raise PlaywrightError("Element is not attached to the DOM")
        self.clicks += 1
        self.table.current += self.step


class FakeTable:
    """
    Table whose body rows are split into pages.

    Each page is a list of rows, each row a list of cell texts.
    """

    def __init__(self, pages: List[List[List[str]]]):
        self.pages = pages
        self.current = 0
        self.rows = FakeRows(self)
        self.next = FakePagerControl(self, +1)
        self.previous = FakePagerControl(self, -1)

    @classmethod
    def numbered(cls, total: int, page_size: int, prefix: str = "Row") -> "FakeTable":
        """Rows ``<prefix> 1`` .. ``<prefix> total`` with a second status column."""
        rows = [[f"{prefix} {i}", "Active"] for i in range(1, total + 1)]
        return cls([rows[i:i + page_size] for i in range(0, total, page_size)] or [[]])


# ================================================================================
# Mapping screen
# ================================================================================

class ConcurrencyTracker:
    def __init__(self):
        self.active = 0
        self.peak = 0


class FakeOptions:
    def __init__(self, labels: Sequence[str]):
        self.labels = list(labels)

    async def all_text_contents(self) -> List[str]:
        return list(self.labels)


class FakeSelect:
    """<select> with fixed option labels; records the chosen label."""

    def __init__(self, labels: Sequence[str], tracker: Optional[ConcurrencyTracker] = None):
        self.options = FakeOptions(labels)
        self.tracker = tracker
        self.selected: Optional[str] = None

    def locator(self, selector: str) -> FakeOptions:
        assert selector == "option"
        return self.options

    async def select_option(self, label: str) -> None:
        if self.tracker is not None:
            self.tracker.active += 1
            self.tracker.peak = max(self.tracker.peak, self.tracker.active)
        await asyncio.sleep(0)
        self.selected = label
        if self.tracker is not None:
            self.tracker.active -= 1


TYPE_OPTIONS = ["Select", "Lead", "Contact", "Custom"]
FIELD_OPTIONS = ["Select", "First Name", "Last Name", "Phone", "Email"]


def make_mapping_rows(
    headers: Sequence[str],
    tracker: Optional[ConcurrencyTracker] = None,
) -> List[MappingRow]:
    return [
        MappingRow(
            index=i,
            header=header,
            type_select=FakeSelect(TYPE_OPTIONS, tracker),
            field_select=FakeSelect(FIELD_OPTIONS, tracker),
        )
        for i, header in enumerate(headers)
    ]


class FakeMappingScreen:
    """
    Mapping screen double recording every call.

    ``statuses`` are returned by successive read_import_status calls; the
    last one repeats.
    """

    def __init__(self, headers: Sequence[str], statuses: Sequence[Optional[str]] = ("The list is ready to use",)):
        self.rows = make_mapping_rows(headers)
        self.statuses = list(statuses)
        self.calls: List[str] = []
        self.status_reads: List[str] = []
        self.saved_as: Optional[str] = None
        self.continued_with: Optional[MappingMode] = None

    async def read_mapping_rows(self) -> List[MappingRow]:
        self.calls.append("read_mapping_rows")
        return self.rows

    async def click_auto_map(self) -> None:
        self.calls.append("click_auto_map")

    async def apply_existing_mapping(self, name: str) -> None:
        self.calls.append(f"apply_existing_mapping:{name}")

    async def save_mapping(self, name: str) -> None:
        self.calls.append(f"save_mapping:{name}")
        self.saved_as = name

    async def continue_import(self, mode: MappingMode) -> None:
        self.calls.append(f"continue_import:{mode.value}")
        self.continued_with = mode

    async def open_import_log(self) -> None:
        self.calls.append("open_import_log")

    async def read_import_status(self, expected_name: str) -> Optional[str]:
        self.status_reads.append(expected_name)
        index = min(len(self.status_reads), len(self.statuses)) - 1
        return self.statuses[index]

    def selections(self) -> Dict[str, tuple]:
        return {r.header: (r.type_select.selected, r.field_select.selected) for r in self.rows}
