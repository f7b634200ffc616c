"""
================================================================================
Test Results Reader
================================================================================

Reads the result files the suites leave behind:

- Allure results (``<allure_dir>/*-result.json``), one file per test
- JSON stats files (``<results_dir>/**/test-results.json``) with a
  ``stats`` object holding total / passed / failed / skipped counts

Unreadable files are logged and skipped.

================================================================================
"""

import json
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from loguru import logger


PathLike = Union[str, Path]


@dataclass
class TestResultSummary:
    """Summary of test execution results."""
    __test__ = False

    total: int = 0
    passed: int = 0
    failed: int = 0
    broken: int = 0
    skipped: int = 0
    unknown: int = 0
    duration_ms: int = 0
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def pass_rate(self) -> float:
        """Calculate pass rate percentage."""
        if self.total == 0:
            return 0.0
        return (self.passed / self.total) * 100

    def add_status(self, status: str) -> None:
        if status in ("passed", "failed", "broken", "skipped"):
            setattr(self, status, getattr(self, status) + 1)
        else:
            self.unknown += 1
        self.total += 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
            "unknown": self.unknown,
            "passRate": f"{self.pass_rate:.2f}",
            "durationMs": self.duration_ms,
            "timestamp": self.timestamp,
        }


@dataclass
class TestRecord:
    """One test of an Allure results directory."""
    __test__ = False

    name: str
    status: str
    duration_ms: int
    suite: str = "unknown"


@dataclass
class AllureAnalysis:
    """Allure results grouped by status and suite."""
    records: List[TestRecord] = field(default_factory=list)

    @property
    def total_tests(self) -> int:
        return len(self.records)

    @property
    def avg_duration_ms(self) -> float:
        if not self.records:
            return 0.0
        return sum(r.duration_ms for r in self.records) / len(self.records)

    def group_by(self, attribute: str) -> Dict[str, List[str]]:
        groups: Dict[str, List[str]] = defaultdict(list)
        for record in self.records:
            groups[getattr(record, attribute)].append(record.name)
        return dict(groups)

    def summary(self) -> TestResultSummary:
        summary = TestResultSummary()
        for record in self.records:
            summary.add_status(record.status)
            summary.duration_ms += record.duration_ms
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTests": self.total_tests,
            "byStatus": self.group_by("status"),
            "bySuite": self.group_by("suite"),
            "avgDuration": round(self.avg_duration_ms, 2),
        }


def _load_json(path: Path) -> Optional[Dict[str, Any]]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to parse {path}: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"Ignoring {path}: expected a JSON object")
        return None
    return data


def read_stats_files(results_dir: PathLike) -> TestResultSummary:
    """
    Sum the ``stats`` objects of every ``test-results.json`` below ``results_dir``.

    A missing directory yields an empty summary.
    """
    summary = TestResultSummary()
    root = Path(results_dir)
    if not root.is_dir():
        logger.debug(f"No results directory: {root}")
        return summary

    for path in sorted(root.glob("**/test-results.json")):
        data = _load_json(path)
        if data is None:
            continue
        stats = data.get("stats") or {}
        summary.total += int(stats.get("total", 0) or 0)
        summary.passed += int(stats.get("passed", 0) or 0)
        summary.failed += int(stats.get("failed", 0) or 0)
        summary.skipped += int(stats.get("skipped", 0) or 0)
    return summary


def read_allure_results(allure_dir: PathLike) -> AllureAnalysis:
    """
    Parse every ``*-result.json`` of an Allure results directory.

    The suite comes from the ``suite`` label; tests without one are "unknown".
    """
    analysis = AllureAnalysis()
    root = Path(allure_dir)
    if not root.is_dir():
        logger.debug(f"No Allure results directory: {root}")
        return analysis

    for path in sorted(root.glob("*-result.json")):
        data = _load_json(path)
        if data is None:
            continue
        suite = next(
            (label.get("value") for label in data.get("labels", []) if label.get("name") == "suite"),
            None,
        )
        analysis.records.append(
            TestRecord(
                name=data.get("name", path.stem),
                status=data.get("status", "unknown"),
                duration_ms=int(data.get("stop", 0) or 0) - int(data.get("start", 0) or 0),
                suite=suite or "unknown",
            )
        )
    return analysis


__all__ = [
    "AllureAnalysis",
    "TestRecord",
    "TestResultSummary",
    "read_allure_results",
    "read_stats_files",
]
