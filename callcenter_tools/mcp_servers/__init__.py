"""
stdio tool servers: test analyzer and test data generator.
"""

from .base import ToolError, ToolServer
from .test_analyzer_server import TestAnalyzerServer
from .test_data_server import TestDataServer

__all__ = [
    "TestAnalyzerServer",
    "TestDataServer",
    "ToolError",
    "ToolServer",
]
