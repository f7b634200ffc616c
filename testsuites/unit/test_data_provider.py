from datetime import datetime

import pytest
from openpyxl import Workbook

from callcenter_tools.data_provider import (
    AppendToListRow,
    DataProviderError,
    ImportFileRow,
    SheetDataProvider,
    cell_to_text,
    format_time_if_needed,
    get_file_info,
    parse_flag,
    parse_list,
    read_first_row_headers,
    read_rows,
    validate_file,
)


IMPORT_HEADERS = [
    "ListName", "Description", "Filepath", "Excelradiobutton", "Autodetect", "Specify",
    "Lastrow", "Lastcolumn", "CSVRadiobutton", "DelimiterComma", "Type", "Field",
    "AutoMap", "SaveMap", "MappingName", "ExistingMapping",
]


def _workbook(path, sheets):
    workbook = Workbook()
    workbook.remove(workbook.active)
    for name, rows in sheets.items():
        sheet = workbook.create_sheet(name)
        for row in rows:
            sheet.append(row)
    workbook.save(path)
    return path


def _import_row(name, auto="No", types="", fields="", existing="No", mapping=""):
    return [name, "desc", "uploads/leads.xlsx", "Yes", "No", "No", "", "", "No", "No",
            types, fields, auto, "No", mapping, existing]


# ================================================================================
# Cell conversion
# ================================================================================

def test_fractional_day_becomes_clock_time():
    assert format_time_if_needed(0.5) == "12:00:00"
    assert format_time_if_needed(0.3958333333) == "09:30:00"
    assert format_time_if_needed(0.0) == 0.0
    assert format_time_if_needed(1.5) == 1.5
    assert format_time_if_needed("0.5") == "0.5"


def test_cell_to_text():
    assert cell_to_text(None) == ""
    assert cell_to_text(12.0) == "12"
    assert cell_to_text(" Leads ") == "Leads"
    assert cell_to_text(True) == "TRUE"
    assert cell_to_text(datetime(2024, 3, 1)) == "2024-03-01"
    assert cell_to_text(datetime(2024, 3, 1, 9, 30)) == "2024-03-01 09:30:00"


def test_flags_and_lists():
    assert parse_flag("Yes") is True
    assert parse_flag(" n ") is False
    assert parse_flag(None) is False
    with pytest.raises(DataProviderError, match="AutoMap"):
        parse_flag("maybe", "AutoMap")

    assert parse_list("Lead, Lead ,Contact") == ("Lead", "Lead", "Contact")
    assert parse_list("Lead,,Contact") == ("Lead", "", "Contact")
    assert parse_list("  ") == ()


# ================================================================================
# Reader
# ================================================================================

def test_read_rows_skips_blank_rows_and_pads_short_ones(tmp_path):
    path = _workbook(tmp_path / "data.xlsx", {
        "Sheet": [["Name", "Start", "Count"], ["  Alpha ", 0.25, 3.0], [None, None, None], ["Beta"]],
    })

    rows = read_rows(path, "Sheet")

    assert rows == [
        {"Name": "Alpha", "Start": "06:00:00", "Count": "3"},
        {"Name": "Beta", "Start": "", "Count": ""},
    ]


def test_missing_sheet_lists_available_sheets(tmp_path):
    path = _workbook(tmp_path / "data.xlsx", {"Import File": [["ListName"]]})

    with pytest.raises(DataProviderError, match="Available sheets: Import File"):
        read_rows(path, "IRC_ImportFile")


def test_missing_file_raises(tmp_path):
    with pytest.raises(DataProviderError, match="not found"):
        read_rows(tmp_path / "nope.xlsx")
    assert validate_file(tmp_path / "nope.xlsx") is False


def test_csv_rows_and_headers(tmp_path):
    path = tmp_path / "leads.csv"
    path.write_text('"First Name","Phone"\nAnn,555\n,\n', encoding="utf-8")

    assert read_rows(path) == [{"First Name": "Ann", "Phone": "555"}]
    assert read_first_row_headers(path) == ["First Name", "Phone"]


def test_upload_headers_from_first_sheet(tmp_path):
    path = _workbook(tmp_path / "upload.xlsx", {
        "Leads": [[" First Name", "Phone", None], ["Ann", "555", None]],
        "Other": [["Ignored"]],
    })

    assert read_first_row_headers(path) == ["First Name", "Phone"]
    assert validate_file(path, "Leads")
    assert not validate_file(path, "Missing")
    assert get_file_info(path)["sheets"] == ["Leads", "Other"]


def test_unsupported_upload_type(tmp_path):
    path = tmp_path / "upload.txt"
    path.write_text("x", encoding="utf-8")

    with pytest.raises(DataProviderError, match="Unsupported"):
        read_first_row_headers(path)


# ================================================================================
# Provider
# ================================================================================

@pytest.fixture
def data_dir(tmp_path):
    _workbook(tmp_path / "Login Creds Data.xlsx", {
        "UserLoginData": [
            ["email", "password", "role"],
            ["admin@example-crm.test", "secret", "Admin"],
            ["agent@example-crm.test", "secret", "Agent"],
        ],
    })
    _workbook(tmp_path / "Document Update Data.xlsx", {
        "Import File": [
            IMPORT_HEADERS,
            _import_row("Leads Q3", auto="Yes"),
            _import_row("Broken", auto="Perhaps"),
        ],
        "IRC_ImportFile": [
            IMPORT_HEADERS,
            _import_row("IRC Leads", types="Lead,Lead", fields="First Name,Phone"),
        ],
        "Append To List": [
            IMPORT_HEADERS,
            _import_row("Leads Q3", existing="Yes", mapping="Saved map"),
        ],
    })
    _workbook(tmp_path / "Campaign Creation Updation Data.xlsx", {
        "Creation Data": [
            ["CampaignName", "CampaignType", "DialMode", "SkipList", "CampaignSkills",
             "AssignmentType", "DistributionMethod", "AssignCallers"],
            ["Summer Sale", "Outbound", "Preview", "No", "Sales, Support", "Skills", "", ""],
            ["Winter Sale", "Outbound", "Predictive", "Yes", "", "Callers", "Round Robin", "Ann, Bob"],
        ],
        "Updation Data": [
            ["CampaignName", "CampaignDescription", "CampaignSetting", "PullAppended", "ChangeAssignments"],
            ["Summer Sale", "Renamed", "Yes", "No", "Yes"],
        ],
    })
    return tmp_path


def test_login_credentials_and_role_lookup(data_dir):
    provider = SheetDataProvider(data_dir)

    assert len(provider.login_credentials()) == 2
    assert provider.credentials_for_role("agent").email == "agent@example-crm.test"
    with pytest.raises(DataProviderError, match="Supervisor"):
        provider.credentials_for_role("Supervisor")


def test_password_is_not_in_repr(data_dir):
    row = SheetDataProvider(data_dir).login_credentials()[0]
    assert "secret" not in repr(row)


def test_invalid_rows_are_skipped_unless_strict(data_dir):
    rows = SheetDataProvider(data_dir).import_files("RBL")
    assert [r.list_name for r in rows] == ["Leads Q3"]
    assert rows[0].auto_map is True

    with pytest.raises(DataProviderError, match="row 3"):
        SheetDataProvider(data_dir, strict=True).import_files("RBL")


def test_irc_suite_uses_its_own_sheet(data_dir):
    row = SheetDataProvider(data_dir).import_files("irc")[0]

    assert isinstance(row, ImportFileRow)
    assert row.list_name == "IRC Leads"
    assert row.types == ("Lead", "Lead")
    assert row.fields == ("First Name", "Phone")


def test_unknown_suite_has_no_import_sheet(data_dir):
    with pytest.raises(DataProviderError, match="No import sheet"):
        SheetDataProvider(data_dir).import_files("Campaign")


def test_append_rows_drop_description(data_dir):
    row = SheetDataProvider(data_dir).append_to_list()[0]

    assert isinstance(row, AppendToListRow)
    assert row.description == ""
    assert row.existing_mapping is True
    assert row.mapping_name == "Saved map"


def test_campaign_rows(data_dir):
    row = SheetDataProvider(data_dir).campaigns()[0]

    assert row.campaign_name == "Summer Sale"
    assert row.dial_mode == "Preview"
    assert row.skills == ("Sales", "Support")
    assert row.skip_list is False
    assert row.assigns_skills is True


def test_campaign_rows_assigning_callers(data_dir):
    row = SheetDataProvider(data_dir).campaigns()[1]

    assert row.assigns_skills is False
    assert row.skip_list is True
    assert row.skills == ()
    assert row.distribution_method == "Round Robin"
    assert row.callers == ("Ann", "Bob")


def test_campaign_updation_rows_flag_sections(data_dir):
    row = SheetDataProvider(data_dir).campaigns("updation")[0]

    assert row.description == "Renamed"
    assert row.change_settings is True
    assert row.pull_appended is False
    assert row.change_assignments is True
    assert row.change_prospect_list is False


def test_resolve_upload_prefers_data_dir(data_dir):
    provider = SheetDataProvider(data_dir)
    (data_dir / "uploads").mkdir()
    (data_dir / "uploads" / "leads.xlsx").write_bytes(b"")

    assert provider.resolve_upload("uploads/leads.xlsx") == data_dir / "uploads" / "leads.xlsx"
    assert provider.resolve_upload(str(data_dir / "x.csv")) == data_dir / "x.csv"


def test_data_dir_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("TESTDATA_DIR", str(tmp_path))
    assert SheetDataProvider().data_dir == tmp_path


def test_lead_field_rows_from_updation_sheet(tmp_path):
    _workbook(tmp_path / "RBL Test Data.xlsx", {
        "LeadFieldUpdation": [
            ["Category", "DisplayName", "FieldName", "Type", "Options", "AllowOther"],
            ["Personal", "Preferred Time", "pref_time", "Dropdown", "Morning, Evening", "Yes"],
            ["Personal", "", "no_display", "Text", "", "No"],
        ],
    })
    rows = SheetDataProvider(tmp_path).lead_fields("updation")

    assert [r.display_name for r in rows] == ["Preferred Time"]
    assert rows[0].options == ("Morning", "Evening")
    assert rows[0].allow_other is True
