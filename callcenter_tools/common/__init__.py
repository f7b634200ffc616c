"""
================================================================================
Call-Center Tools Common Utilities
================================================================================

Shared configuration management, logging setup and batch helpers.

Exports:
    - init_logger: Initialize loguru with the standard sinks
    - get_config: Read a configuration value by dot path
    - run_batch / BatchSummary: Best-effort processing of data rows

Usage:
    from callcenter_tools.common import get_config, init_logger

    init_logger()
    data_dir = get_config("data.directory", "testdata")

================================================================================
"""

from .batch import BatchFailedError, BatchSummary, ItemResult, run_batch
from .global_config import get_config, init_logger, reload_config

__all__ = [
    "BatchFailedError",
    "BatchSummary",
    "ItemResult",
    "get_config",
    "init_logger",
    "reload_config",
    "run_batch",
]
