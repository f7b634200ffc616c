import pytest

from testsuites.ui_testing.pages.import_page import ImportPage


READY = "The list is ready to use"


class DummyCells:
    def __init__(self, texts):
        self.texts = texts

    async def all_text_contents(self):
        return list(self.texts)


class DummyLogRow:
    def __init__(self, texts):
        self.texts = texts

    def locator(self, selector):
        assert selector == "td"
        return DummyCells(self.texts)


class DummyLogRows:
    def __init__(self, rows):
        self.rows = rows

    async def all(self):
        return [DummyLogRow(texts) for texts in self.rows]


class DummyLocator:
    def __init__(self, selector):
        self.selector = selector


class DummyPage:
    def __init__(self, log_rows):
        self.log_rows = DummyLogRows(log_rows)

    def locator(self, selector):
        if selector == "table tr":
            return self.log_rows
        return DummyLocator(selector)


def _log_row(name, status):
    return ["12", " " + name + " ", "admin", "2024-03-01 09:30:00", "250", "0", status]


def _import_page(rows):
    return ImportPage(DummyPage(rows), base_url="https://qc6.example-crm.test")


@pytest.mark.asyncio
async def test_status_comes_from_the_row_naming_the_import():
    page = _import_page([
        _log_row("Leads Q3/leads.xlsx", READY),
        _log_row("Q3/leads.xlsx", "Processing"),
    ])

    assert await page.read_import_status("Q3/leads.xlsx") == "Processing"
    assert await page.read_import_status("Leads Q3/leads.xlsx") == READY


@pytest.mark.asyncio
async def test_newest_row_wins_when_an_import_is_listed_twice():
    page = _import_page([
        _log_row("Leads Q3/leads.xlsx", "Processing"),
        _log_row("Leads Q3/leads.xlsx", READY),
    ])

    assert await page.read_import_status("Leads Q3/leads.xlsx") == "Processing"


@pytest.mark.asyncio
async def test_header_and_short_rows_are_ignored():
    page = _import_page([
        [],
        ["Leads Q3/leads.xlsx", READY],
        _log_row("Other/other.csv", READY),
    ])

    assert await page.read_import_status("Leads Q3/leads.xlsx") is None
