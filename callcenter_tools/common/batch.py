"""
================================================================================
Best-Effort Batch Processing
================================================================================

Runs an async handler over a sequence of data rows, recording a per-item
outcome instead of aborting on the first failure. Data-driven suites use this
to process every spreadsheet row and report failures together at the end.

Usage:
    summary = await run_batch(rows, import_page.import_list, describe=lambda r: r.list_name)
    summary.raise_for_failures()

================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, TypeVar

from loguru import logger


T = TypeVar("T")


class BatchFailedError(Exception):
    """Raised by BatchSummary.raise_for_failures when any item failed."""

    def __init__(self, summary: "BatchSummary"):
        self.summary = summary
        failed = ", ".join(r.label for r in summary.failures)
        super().__init__(
            f"{summary.failed}/{summary.processed} item(s) failed: {failed}"
        )


@dataclass
class ItemResult(Generic[T]):
    """Outcome of processing a single item."""
    index: int
    label: str
    item: T
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchSummary(Generic[T]):
    """Aggregated outcome of a batch run."""
    results: List[ItemResult[T]] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return self.processed - self.succeeded

    @property
    def failures(self) -> List[ItemResult[T]]:
        return [r for r in self.results if not r.ok]

    def raise_for_failures(self) -> None:
        if self.failed:
            raise BatchFailedError(self)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "failures": [
                {"index": r.index, "item": r.label, "error": repr(r.error)}
                for r in self.failures
            ],
        }


async def run_batch(
    items: Sequence[T],
    handler: Callable[[T], Awaitable[Any]],
    describe: Optional[Callable[[T], str]] = None,
) -> BatchSummary[T]:
    """
    Process items sequentially, capturing each outcome.

    Args:
        items: Items to process, in order
        handler: Async callable invoked once per item
        describe: Optional label function used in logs and the summary

    Returns:
        BatchSummary with one ItemResult per item
    """
    summary: BatchSummary[T] = BatchSummary()

    for index, item in enumerate(items):
        label = describe(item) if describe else f"item {index + 1}"
        logger.info(f"Processing {index + 1}/{len(items)}: {label}")
        try:
            value = await handler(item)
        except Exception as e:
            logger.error(f"Failed to process {label}: {e}")
            summary.results.append(ItemResult(index, label, item, error=e))
        else:
            summary.results.append(ItemResult(index, label, item, value=value))

    logger.info(
        f"Batch complete: {summary.succeeded} succeeded, "
        f"{summary.failed} failed of {summary.processed}"
    )
    return summary


__all__ = [
    "BatchFailedError",
    "BatchSummary",
    "ItemResult",
    "run_batch",
]
