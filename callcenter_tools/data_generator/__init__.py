"""
Synthetic CRM test data (users, campaigns, leads, scenarios).
"""

from .crm_data_factory import (
    COMPLEXITIES,
    CRMDataFactory,
    OUTPUT_FORMATS,
    TEST_TYPES,
    to_csv,
    write_workbook,
)

__all__ = [
    "COMPLEXITIES",
    "CRMDataFactory",
    "OUTPUT_FORMATS",
    "TEST_TYPES",
    "to_csv",
    "write_workbook",
]
