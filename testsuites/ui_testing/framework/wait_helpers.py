# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Async polling utilities for UI flows that finish in the background (list
# imports, report generation, banner dismissal).
#
# Key Features:
#   - Fixed-interval polling with a hard attempt ceiling
#   - Optional exponential backoff with jitter
#   - Allure step reporting
#
# Usage:
#   status = await poll_until(read_status, lambda s: s == "Ready", max_attempts=60, interval=1.0)
#
# ================================================================================

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

import allure
from loguru import logger


T = TypeVar("T")


@dataclass
class WaitConfig:
    """
    Configuration for poll operations.

    Attributes:
        max_attempts: Number of checks before giving up
        interval: Initial wait between checks in seconds
        multiplier: Interval multiplier (1.0 keeps a fixed interval)
        max_interval: Upper bound for the interval
        jitter: Add +/- 25% jitter to each wait
    """
    max_attempts: int = 60
    interval: float = 1.0
    multiplier: float = 1.0
    max_interval: float = 30.0
    jitter: bool = False


class WaitTimeoutError(Exception):
    """Raised when a wait operation exhausts its attempts."""

    def __init__(self, message: str, attempts: int = 0, last_result: Any = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_result = last_result


def next_interval(current: float, config: WaitConfig) -> float:
    """Compute the next interval with backoff and optional jitter."""
    interval = min(current * config.multiplier, config.max_interval)
    if config.jitter:
        interval *= 0.75 + random.random() * 0.5
    return interval


async def poll_until(
    check_fn: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    description: str = "condition",
    max_attempts: Optional[int] = None,
    interval: Optional[float] = None,
    config: Optional[WaitConfig] = None,
) -> T:
    """
    Call ``check_fn`` until ``predicate`` accepts its result.

    Exceptions raised by ``check_fn`` count as a failed attempt and are logged;
    the last one is chained to the timeout error.

    Args:
        check_fn: Async callable producing the observed value
        predicate: Returns True when the observed value is final
        description: Human-readable description for logs and the error
        max_attempts: Overrides ``config.max_attempts``
        interval: Overrides ``config.interval``
        config: Base WaitConfig

    Returns:
        The accepted value

    Raises:
        WaitTimeoutError: No accepted value within ``max_attempts`` checks
    """
    config = config or WaitConfig()
    attempts = max_attempts if max_attempts is not None else config.max_attempts
    current = interval if interval is not None else config.interval
    last_result: Any = None
    last_error: Optional[Exception] = None

    with allure.step(f"Wait for {description} (max {attempts} attempts)"):
        for attempt in range(1, attempts + 1):
            try:
                last_result = await check_fn()
                if predicate(last_result):
                    logger.info(f"{description} reached after {attempt} attempt(s)")
                    return last_result
                logger.debug(f"Attempt {attempt}/{attempts}: {description} not met ({last_result!r})")
            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt}/{attempts} for {description} failed: {e}")

            if attempt < attempts:
                await asyncio.sleep(current)
                current = next_interval(current, config)

    message = (
        f"Timeout after {attempts} attempts waiting for: {description}. "
        f"Last result: {last_result!r}"
    )
    logger.error(message)
    raise WaitTimeoutError(message, attempts=attempts, last_result=last_result) from last_error


__all__ = [
    "WaitConfig",
    "WaitTimeoutError",
    "next_interval",
    "poll_until",
]
