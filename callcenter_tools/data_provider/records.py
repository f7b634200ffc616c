"""
================================================================================
Typed Test-Data Records
================================================================================

Spreadsheet rows are validated here, at the data-provider boundary, and turned
into immutable dataclasses. Page objects and the import-mapping reconciler
never receive raw ``{header: value}`` maps.

Column conventions of the CRM data workbooks:
    - ``Yes`` / ``No`` flags (also ``Y``/``N``, ``True``/``False``, ``1``/``0``)
    - comma-separated lists for the import ``Type`` and ``Field`` columns

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .excel_reader import DataProviderError


TRUE_VALUES = {"yes", "y", "true", "1"}
FALSE_VALUES = {"no", "n", "false", "0", ""}


def parse_flag(value: Optional[str], column: str = "") -> bool:
    """
    Parse a Yes/No spreadsheet flag.

    Raises:
        DataProviderError: The value is not a recognised flag
    """
    normalized = (value or "").strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise DataProviderError(f"Column '{column}' expects Yes/No, got '{value}'")


def parse_list(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma-separated cell into trimmed items, keeping empty slots."""
    if value is None or not value.strip():
        return ()
    return tuple(item.strip() for item in value.split(","))


def _require(record: Mapping[str, str], column: str, sheet: str) -> str:
    value = (record.get(column) or "").strip()
    if not value:
        raise DataProviderError(f"Sheet '{sheet}': required column '{column}' is empty")
    return value


def _get(record: Mapping[str, str], column: str) -> str:
    return (record.get(column) or "").strip()


@dataclass(frozen=True)
class LoginCredentialRow:
    """One row of the UserLoginData sheet."""
    email: str
    password: str = field(repr=False)
    role: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, str]) -> "LoginCredentialRow":
        sheet = "UserLoginData"
        return cls(
            email=_require(record, "email", sheet),
            password=_require(record, "password", sheet),
            role=_get(record, "role"),
        )


@dataclass(frozen=True)
class ImportFileRow:
    """
    One list-import instruction from the Import File / IRC_ImportFile sheets.

    ``types`` and ``fields`` are positional: entry *i* maps the *i*-th
    displayed file header.
    """
    list_name: str
    file_path: str
    description: str = ""
    excel: bool = False
    autodetect: bool = False
    specify: bool = False
    last_row: str = ""
    last_column: str = ""
    csv: bool = False
    delimiter_comma: bool = False
    types: Tuple[str, ...] = ()
    fields: Tuple[str, ...] = ()
    auto_map: bool = False
    save_map: bool = False
    mapping_name: str = ""
    existing_mapping: bool = False

    @classmethod
    def from_record(cls, record: Mapping[str, str], sheet: str = "Import File") -> "ImportFileRow":
        return cls(
            list_name=_require(record, "ListName", sheet),
            file_path=_require(record, "Filepath", sheet),
            description=_get(record, "Description"),
            excel=parse_flag(record.get("Excelradiobutton"), "Excelradiobutton"),
            autodetect=parse_flag(record.get("Autodetect"), "Autodetect"),
            specify=parse_flag(record.get("Specify"), "Specify"),
            last_row=_get(record, "Lastrow"),
            last_column=_get(record, "Lastcolumn"),
            csv=parse_flag(record.get("CSVRadiobutton"), "CSVRadiobutton"),
            delimiter_comma=parse_flag(record.get("DelimiterComma"), "DelimiterComma"),
            types=parse_list(record.get("Type")),
            fields=parse_list(record.get("Field")),
            auto_map=parse_flag(record.get("AutoMap"), "AutoMap"),
            save_map=parse_flag(record.get("SaveMap"), "SaveMap"),
            mapping_name=_get(record, "MappingName"),
            existing_mapping=parse_flag(record.get("ExistingMapping"), "ExistingMapping"),
        )


@dataclass(frozen=True)
class AppendToListRow(ImportFileRow):
    """Append-to-existing-list instruction; same columns minus Description."""

    @classmethod
    def from_record(cls, record: Mapping[str, str], sheet: str = "Append To List") -> "AppendToListRow":
        base = ImportFileRow.from_record(record, sheet=sheet)
        return cls(**{**vars(base), "description": ""})


@dataclass(frozen=True)
class LeadFieldRow:
    """One row of the LeadFieldCreation / LeadFieldUpdation sheets."""
    category: str
    display_name: str
    field_name: str
    type: str = ""
    input_type: str = ""
    min: str = ""
    max: str = ""
    no_of_lines: str = ""
    options: Tuple[str, ...] = ()
    option_values: Tuple[str, ...] = ()
    allow_other: bool = False
    tooltip: str = ""

    @classmethod
    def from_record(cls, record: Mapping[str, str], sheet: str = "LeadFieldCreation") -> "LeadFieldRow":
        return cls(
            category=_get(record, "Category"),
            display_name=_require(record, "DisplayName", sheet),
            field_name=_get(record, "FieldName"),
            type=_get(record, "Type"),
            input_type=_get(record, "InputType"),
            min=_get(record, "Min"),
            max=_get(record, "Max"),
            no_of_lines=_get(record, "NoOfLines"),
            options=parse_list(record.get("Options")),
            option_values=parse_list(record.get("OptionValues")),
            allow_other=parse_flag(record.get("AllowOther"), "AllowOther"),
            tooltip=_get(record, "Tooltip"),
        )


@dataclass(frozen=True)
class CampaignRow:
    """
    One row of the Creation Data / Updation Data sheets.

    Creation rows drive the settings form, list assignment and skill or
    caller assignment; updation rows additionally flag which sections of the
    modify screen to open.
    """
    campaign_name: str
    description: str = ""
    talking_point: str = ""
    account_manager: str = ""
    campaign_type: str = ""
    direction: str = ""
    default_campaign: bool = False
    assignment_type: str = ""
    dial_mode: str = ""
    list_name: str = ""
    skip_list: bool = False
    skills: Tuple[str, ...] = ()
    distribution_method: str = ""
    callers: Tuple[str, ...] = ()
    change_settings: bool = False
    pull_appended: bool = False
    change_assignments: bool = False
    change_prospect_list: bool = False

    @property
    def assigns_skills(self) -> bool:
        return self.assignment_type.strip().lower() == "skills"

    @classmethod
    def from_record(cls, record: Mapping[str, str], sheet: str = "Creation Data") -> "CampaignRow":
        return cls(
            campaign_name=_require(record, "CampaignName", sheet),
            description=_get(record, "CampaignDescription"),
            talking_point=_get(record, "CampaignTalkingPoint"),
            account_manager=_get(record, "AccountManager"),
            campaign_type=_get(record, "CampaignType"),
            direction=_get(record, "Direction"),
            default_campaign=parse_flag(record.get("DefaultCampaign"), "DefaultCampaign"),
            assignment_type=_get(record, "AssignmentType"),
            dial_mode=_get(record, "DialMode"),
            list_name=_get(record, "ListName"),
            skip_list=parse_flag(record.get("SkipList"), "SkipList"),
            skills=parse_list(record.get("CampaignSkills")),
            distribution_method=_get(record, "DistributionMethod"),
            callers=parse_list(record.get("AssignCallers")),
            change_settings=parse_flag(record.get("CampaignSetting"), "CampaignSetting"),
            pull_appended=parse_flag(record.get("PullAppended"), "PullAppended"),
            change_assignments=parse_flag(record.get("ChangeAssignments"), "ChangeAssignments"),
            change_prospect_list=parse_flag(record.get("ChangeProspectList"), "ChangeProspectList"),
        )


__all__ = [
    "AppendToListRow",
    "CampaignRow",
    "ImportFileRow",
    "LeadFieldRow",
    "LoginCredentialRow",
    "parse_flag",
    "parse_list",
]
