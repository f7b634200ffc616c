"""
Repository-level pytest configuration.

  - Locate the repository root and the test-data directory
  - Provide safe environment defaults (no real CRM hosts or credentials)
  - Configure the shared Loguru logger once per run

Real environments and credentials are supplied through environment variables
and the login workbook, never through this file.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest

from callcenter_tools.common.global_config import init_logger


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _safe_env_defaults(project_root: Path) -> Generator[None, None, None]:
    """
    Set environment defaults if not already provided by the user/CI.

    Live UI tests stay disabled unless UI_LIVE_TESTS=1 is exported.
    """
    defaults = {
        "UI_LIVE_TESTS": "0",
        "TESTDATA_DIR": str(project_root / "testdata"),
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    init_logger()
    yield
