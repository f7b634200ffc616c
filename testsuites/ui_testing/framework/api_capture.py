"""
================================================================================
API Capture
================================================================================

Records the XHR/fetch traffic a page makes so UI steps can fail fast (or at
least report) when the backend returned errors behind an apparently healthy
screen.

Usage:
    capture = ApiCapture(page).start()
    await import_page.navigate_to_import()
    capture.raise_if_failed("navigate to import")
    capture.log_summary()

================================================================================
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import List, Optional

from loguru import logger
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, Response

from callcenter_tools.report_tools import attach_json


CAPTURED_RESOURCE_TYPES = ("xhr", "fetch")
MAX_BODY_CHARS = 2000


class ApiFailureError(Exception):
    """Raised when captured API calls returned an error status."""

    def __init__(self, failures: List["ApiCall"], context: str = ""):
        self.failures = list(failures)
        details = "\n".join(f"  - {c.method} {c.url} ({c.status})" for c in self.failures)
        where = f" ({context})" if context else ""
        super().__init__(f"API failure(s) detected{where}:\n{details}")


@dataclass
class ApiCall:
    url: str
    method: str
    status: int
    status_text: str = ""
    response_body: str = ""
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())

    @property
    def failed(self) -> bool:
        return self.status >= 400


class ApiCapture:
    """
    Collects XHR/fetch responses of a page.

    Attributes:
        calls: Every captured call, in arrival order
        failures: Calls with status >= 400
    """

    def __init__(self, page: Page, continue_on_failure: bool = True):
        self.page = page
        self.continue_on_failure = continue_on_failure
        self.calls: List[ApiCall] = []
        self.failures: List[ApiCall] = []
        self._started = False

    def start(self) -> "ApiCapture":
        """Subscribe to the page's response events (idempotent)."""
        if not self._started:
            self.page.on("response", self._on_response)
            self._started = True
            logger.debug("API capture started")
        return self

    async def _on_response(self, response: Response) -> None:
        if response.request.resource_type not in CAPTURED_RESOURCE_TYPES:
            return
        try:
            body = await response.text()
        except PlaywrightError:
            body = "<unable to read response body>"
        self.record(
            ApiCall(
                url=response.url,
                method=response.request.method,
                status=response.status,
                status_text=response.status_text,
                response_body=body[:MAX_BODY_CHARS],
            )
        )

    def record(self, call: ApiCall) -> None:
        self.calls.append(call)
        if call.failed:
            self.failures.append(call)
            logger.error(f"API failed: {call.method} {call.url} - status {call.status}")

    def raise_if_failed(self, context: str = "") -> None:
        """
        Raise ApiFailureError when failures were captured.

        With ``continue_on_failure`` the failures are logged and the flow goes on.
        """
        if not self.failures:
            return
        if self.continue_on_failure:
            logger.warning(
                f"Continuing despite {len(self.failures)} API failure(s)"
                + (f" ({context})" if context else "")
            )
            return
        raise ApiFailureError(self.failures, context)

    def clear(self) -> None:
        self.calls.clear()
        self.failures.clear()

    def summary(self) -> dict:
        return {
            "total": len(self.calls),
            "failed": len(self.failures),
            "failures": [asdict(c) for c in self.failures],
        }

    def log_summary(self, attach: bool = False) -> None:
        logger.info(f"API summary: {len(self.calls)} call(s), {len(self.failures)} failed")
        for call in self.failures:
            logger.info(f"  - {call.method} {call.url} ({call.status})")
        if attach and self.failures:
            attach_json(self.summary(), name="Failed API calls")

    def recent(self, limit: int = 10) -> List[ApiCall]:
        return self.calls[-limit:]

    def last_failure(self) -> Optional[ApiCall]:
        return self.failures[-1] if self.failures else None


__all__ = [
    "ApiCall",
    "ApiCapture",
    "ApiFailureError",
]
