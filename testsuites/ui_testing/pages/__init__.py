"""
================================================================================
Page Objects
================================================================================

Page Object Model implementations for the CRM screens.

Each page class encapsulates:
    - Element locators
    - Page-specific actions
    - Verification methods

================================================================================
"""

from .login_page import LoginPage
from .import_page import ImportPage
from .campaign_page import CampaignPage

__all__ = [
    "CampaignPage",
    "ImportPage",
    "LoginPage",
]
