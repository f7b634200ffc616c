"""
================================================================================
CRM Test Data Factory
================================================================================

Generates synthetic CRM records for exploratory runs and the test-data tool
server: users, campaigns, leads and test scenarios.

Features:
- Reproducible generation with a seed (independent random stream per factory)
- JSON / CSV / Excel renderings
- Workbook export with openpyxl, ready for the spreadsheet data provider

================================================================================
"""

from __future__ import annotations

import csv
import io
import json
import random
import uuid
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from loguru import logger
from openpyxl import Workbook


OUTPUT_FORMATS = ("json", "csv", "excel")
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

FIRST_NAMES = ["John", "Jane", "Mike", "Sarah", "David", "Lisa", "Tom", "Anna", "Chris", "Emma"]
LAST_NAMES = ["Smith", "Johnson", "Williams", "Brown", "Jones", "Garcia", "Miller", "Davis", "Rodriguez", "Martinez"]
TIME_ZONES = ["America/New_York", "America/Chicago", "America/Denver", "America/Los_Angeles", "UTC"]
USER_SKILLS = ["Customer Service", "Sales", "Technical Support"]
DEFAULT_ROLES = ["admin", "caller"]

CAMPAIGN_NAMES = ["Summer Sale", "Product Launch", "Customer Survey", "Follow-up Campaign", "Lead Nurturing"]
CAMPAIGN_TYPES = ["outbound", "inbound", "blended"]
DIAL_MODES = ["Preview", "Progressive", "Predictive", "Manual"]
CAMPAIGN_STATUSES = ["Active", "Inactive", "Paused"]

LEAD_FIRST_NAMES = ["Michael", "Jennifer", "William", "Elizabeth", "James", "Patricia", "Robert", "Linda"]
LEAD_LAST_NAMES = ["Anderson", "Thomas", "Jackson", "White", "Harris", "Martin", "Thompson", "Garcia"]
COMPANIES = ["Tech Corp", "Global Solutions", "Innovation Inc", "Future Systems", "Digital Dynamics"]
LEAD_STATUSES = ["New", "Contacted", "Qualified", "Proposal", "Closed Won", "Closed Lost"]
LEAD_SOURCES = ["Website", "Referral", "Cold Call", "Email Campaign", "Social Media"]

TEST_TYPES = ("RBL", "IRC", "Sanity", "Campaign")
COMPLEXITIES = ("simple", "medium", "complex")

SCENARIO_TEMPLATES: Dict[str, List[Dict[str, Any]]] = {
    "RBL": [
        {
            "name": "User Creation and Login Verification",
            "description": "Create a new RBL user and verify login functionality",
            "steps": ["Navigate to Users", "Create new user", "Save user", "Logout",
                      "Login with new user", "Verify role"],
            "expectedResult": "User created successfully and can login with correct role",
            "testData": {"userRole": "caller", "email": "test@example.com"},
            "priority": "High",
            "tags": ["user-management", "authentication"],
            "estimatedTime": "5 minutes",
        },
        {
            "name": "Lead Field Configuration",
            "description": "Configure custom lead fields in RBL system",
            "steps": ["Navigate to System Setup", "Go to Lead Fields", "Create new field",
                      "Configure options", "Save field"],
            "expectedResult": "Lead field created and available for use",
            "testData": {"fieldType": "dropdown", "options": ["Option1", "Option2"]},
            "priority": "Medium",
            "tags": ["system-setup", "lead-fields"],
            "estimatedTime": "3 minutes",
        },
    ],
    "IRC": [
        {
            "name": "Campaign Creation",
            "description": "Create and configure a new IRC campaign",
            "steps": ["Navigate to Campaigns", "Create campaign", "Set dial mode",
                      "Configure schedule", "Activate campaign"],
            "expectedResult": "Campaign created and activated successfully",
            "testData": {"dialMode": "Preview", "schedule": "9AM-5PM"},
            "priority": "High",
            "tags": ["campaign-management"],
            "estimatedTime": "7 minutes",
        },
    ],
}


class CRMDataFactory:
    """
    Factory for CRM test records.

    Usage:
        factory = CRMDataFactory(seed=42)
        users = factory.users(3, roles=["caller"])
        print(factory.render(users, "csv"))
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed: Random seed for reproducible data generation
        """
        self.seed = seed
        self._random = random.Random(seed)

    def _choice(self, options: Sequence[Any]) -> Any:
        return self._random.choice(options)

    def _uuid(self) -> str:
        return str(uuid.UUID(int=self._random.getrandbits(128), version=4))

    def _days_ago(self, max_days: int) -> str:
        moment = datetime.now() - timedelta(days=self._random.randint(0, max_days - 1))
        return moment.strftime(TIMESTAMP_FORMAT)

    def _phone(self) -> str:
        return f"+1{self._random.randint(1000000000, 9999999999)}"

    # =========================================================================
    # Records
    # =========================================================================

    def users(self, count: int, roles: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        roles = list(roles) if roles else DEFAULT_ROLES
        records = []
        for i in range(count):
            first = self._choice(FIRST_NAMES)
            last = self._choice(LAST_NAMES)
            records.append({
                "firstName": first,
                "lastName": last,
                "role": self._choice(roles),
                "email": f"{first.lower()}.{last.lower()}{i + 1}@test.com",
                "password": f"Test@{self._random.randint(1000, 9999)}",
                "timeZone": self._choice(TIME_ZONES),
                "extension": str(self._random.randint(1000, 9999)),
                "phoneNumber": self._phone(),
                "userskill": self._choice(USER_SKILLS),
                "createdAt": self._days_ago(30),
                "id": self._uuid(),
            })
        return records

    def campaigns(self, count: int, campaign_type: str = "outbound") -> List[Dict[str, Any]]:
        if campaign_type not in CAMPAIGN_TYPES:
            raise ValueError(f"Unknown campaign type '{campaign_type}'. Use one of: {', '.join(CAMPAIGN_TYPES)}")
        records = []
        for i in range(count):
            records.append({
                "name": f"{self._choice(CAMPAIGN_NAMES)} {i + 1}",
                "type": campaign_type,
                "dialMode": self._choice(DIAL_MODES),
                "maxLines": self._random.randint(1, 10),
                "dialRatio": f"{self._random.uniform(1, 4):.2f}",
                "startTime": "09:00",
                "endTime": "17:00",
                "timeZone": "America/New_York",
                "status": self._choice(CAMPAIGN_STATUSES),
                "priority": self._random.randint(1, 10),
                "description": f"Test campaign for {campaign_type} calling",
                "createdAt": self._days_ago(7),
                "id": self._uuid(),
            })
        return records

    def leads(self, count: int, fields: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        records = []
        for i in range(count):
            first = self._choice(LEAD_FIRST_NAMES)
            last = self._choice(LEAD_LAST_NAMES)
            domain = self._choice(COMPANIES).lower().replace(" ", "")
            record: Dict[str, Any] = {
                "firstName": first,
                "lastName": last,
                "email": f"{first.lower()}.{last.lower()}@{domain}.com",
                "phone": self._phone(),
                "company": self._choice(COMPANIES),
                "status": self._choice(LEAD_STATUSES),
                "source": self._choice(LEAD_SOURCES),
                "value": self._random.randint(1000, 50999),
                "notes": f"Test lead generated for automation testing - {i + 1}",
                "createdAt": self._days_ago(60),
                "id": self._uuid(),
            }
            for custom in fields or []:
                record[custom] = f"Custom {custom} value {i + 1}"
            records.append(record)
        return records

    def scenarios(self, test_type: str, complexity: str = "medium", count: int = 5) -> List[Dict[str, Any]]:
        """
        Test scenarios drawn from the templates of ``test_type``.

        Types without templates of their own use the RBL templates.
        """
        if complexity not in COMPLEXITIES:
            raise ValueError(f"Unknown complexity '{complexity}'. Use one of: {', '.join(COMPLEXITIES)}")
        templates = SCENARIO_TEMPLATES.get(test_type, SCENARIO_TEMPLATES["RBL"])
        records = []
        for i in range(count):
            template = self._choice(templates)
            records.append({
                "id": self._uuid(),
                "name": f"{template['name']} - Scenario {i + 1}",
                "description": template["description"],
                "steps": list(template["steps"]),
                "expectedResult": template["expectedResult"],
                "testData": dict(template["testData"]),
                "priority": template["priority"],
                "tags": list(template["tags"]),
                "estimatedTime": template["estimatedTime"],
                "complexity": complexity,
            })
        return records

    # =========================================================================
    # Rendering
    # =========================================================================

    @staticmethod
    def render(records: List[Dict[str, Any]], output_format: str = "json") -> str:
        """
        Render records as JSON, CSV, or Excel-ready JSON.

        The ``excel`` rendering is JSON followed by a note pointing at
        ``write_workbook`` for an actual .xlsx file.
        """
        if output_format not in OUTPUT_FORMATS:
            raise ValueError(f"Unknown format '{output_format}'. Use one of: {', '.join(OUTPUT_FORMATS)}")
        if output_format == "csv":
            return to_csv(records)
        text = json.dumps(records, indent=2)
        if output_format == "excel":
            text += "\n\n# Note: use callcenter_tools.data_generator.write_workbook (openpyxl) to produce an .xlsx file"
        return text


def to_csv(records: List[Dict[str, Any]]) -> str:
    """CSV with the keys of the first record as header."""
    if not records:
        return ""
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(records[0]), extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({k: _flatten(v) for k, v in record.items()})
    return buffer.getvalue().rstrip("\n")


def write_workbook(
    records: List[Dict[str, Any]],
    file_path: Union[str, Path],
    sheet_name: str = "Sheet1",
) -> Path:
    """
    Write records to an .xlsx sheet (header row from the first record).

    Returns:
        Path of the written workbook
    """
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_name
    if records:
        headers = list(records[0])
        sheet.append(headers)
        for record in records:
            sheet.append([_flatten(record.get(h)) for h in headers])
    workbook.save(path)
    logger.info(f"Wrote {len(records)} record(s) to {path} [{sheet_name}]")
    return path


def _flatten(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value)
    return value


__all__ = [
    "COMPLEXITIES",
    "CAMPAIGN_TYPES",
    "CRMDataFactory",
    "OUTPUT_FORMATS",
    "SCENARIO_TEMPLATES",
    "TEST_TYPES",
    "to_csv",
    "write_workbook",
]
