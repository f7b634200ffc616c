"""
================================================================================
Allure Report Utilities
================================================================================

Attachment helpers used by the UI framework and the suites.

Features:
- JSON / text attachments
- Import header comparison attachment
- Batch outcome attachment (one entry per failed data row)

================================================================================
"""

import json
from typing import Any, Optional, Sequence

import allure
from loguru import logger


# ================================================================================
# Attachment Helpers
# ================================================================================

def attach_json(data: Any, name: str = "Data"):
    """
    Attach JSON data to Allure report.

    Args:
        data: Data to attach (will be JSON serialized)
        name: Attachment name
    """
    json_str = json.dumps(data, indent=2, default=str)
    allure.attach(
        json_str,
        name=name,
        attachment_type=allure.attachment_type.JSON
    )


def attach_text(text: str, name: str = "Text"):
    """
    Attach text content to Allure report.

    Args:
        text: Text to attach
        name: Attachment name
    """
    allure.attach(
        text,
        name=name,
        attachment_type=allure.attachment_type.TEXT
    )


def attach_header_comparison(
    uploaded: Sequence[str],
    displayed: Sequence[str],
    missing: Optional[Sequence[str]] = None,
    extra: Optional[Sequence[str]] = None,
    name: str = "Import header comparison",
):
    """
    Attach uploaded vs. displayed import headers.

    Args:
        uploaded: Headers read from the uploaded file
        displayed: Headers shown on the mapping screen
        missing: Uploaded headers absent from the screen
        extra: Screen headers absent from the upload
    """
    attach_json(
        {
            "uploaded": list(uploaded),
            "displayed": list(displayed),
            "missing": list(missing or []),
            "extra": list(extra or []),
        },
        name=name,
    )


def attach_batch_summary(summary: Any, name: str = "Batch summary"):
    """
    Attach a BatchSummary (anything with ``to_dict``) and log its counts.
    """
    data = summary.to_dict()
    logger.info(
        f"{name}: {data.get('succeeded', 0)} succeeded, {data.get('failed', 0)} failed "
        f"of {data.get('processed', 0)}"
    )
    attach_json(data, name=name)
