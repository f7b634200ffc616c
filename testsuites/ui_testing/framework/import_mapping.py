"""
================================================================================
Import Mapping Reconciler
================================================================================

Drives the list-import mapping screen once a file has been uploaded:

    1. Compare the uploaded file headers with the headers shown on the
       mapping screen (case-insensitive, trimmed).
    2. Map the columns in one of three mutually exclusive modes:
         AUTO      - click "auto map", no per-row selection
         EXISTING  - choose a saved mapping by name
         MANUAL    - pick Type/Field per row, in concurrent batches
    3. Optionally save the mapping under a name (AUTO / MANUAL only).
    4. Continue the import, then poll the import log until the list is ready.

State machine:

    IDLE -> HEADERS_VERIFIED -> AUTO_MAPPED | EXISTING_MAPPING_APPLIED | MANUALLY_MAPPED
         -> (MAPPING_SAVED) -> CONTINUE_REQUESTED -> COMPLETED | TIMED_OUT

The screen itself is abstracted behind the MappingScreen protocol so the
reconciler can run against the real ImportPage or an in-memory double.

================================================================================
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Protocol, Sequence

import allure
from loguru import logger
from playwright.async_api import Locator

from callcenter_tools.report_tools import attach_header_comparison

from .wait_helpers import WaitTimeoutError, poll_until


READY_STATUS = "The list is ready to use"
LABEL_TOKENS = ("file header", "aavaz type", "aavaz field")

DEFAULT_BATCH_SIZE = 5
DEFAULT_BATCH_DELAY_S = 0.2
DEFAULT_POLL_ATTEMPTS = 60
DEFAULT_POLL_INTERVAL_S = 1.0


# =============================================================================
# Errors
# =============================================================================

class HeaderMismatchError(AssertionError):
    """Uploaded headers and mapping-screen headers disagree."""

    def __init__(self, missing: Sequence[str], extra: Sequence[str]):
        self.missing = list(missing)
        self.extra = list(extra)
        super().__init__(
            "Import mapping headers do not match the uploaded file. "
            f"Missing: [{', '.join(self.missing)}] Extra: [{', '.join(self.extra)}]"
        )


class UnresolvedOptionError(LookupError):
    """A Type/Field label is not among the selector's options."""

    def __init__(self, header: str, kind: str, attempted: str, available: Sequence[str]):
        self.header = header
        self.kind = kind
        self.attempted = attempted
        self.available = list(available)
        super().__init__(
            f"No {kind} option '{attempted}' for header '{header}'. "
            f"Available: [{', '.join(self.available)}]"
        )


class MappingStateError(RuntimeError):
    """An import step was attempted out of order."""
    pass


class ImportTimeoutError(WaitTimeoutError):
    """The import log never reported the list as ready."""

    def __init__(self, expected_name: str, attempts: int, last_status: Optional[str] = None):
        self.expected_name = expected_name
        super().__init__(
            f"Import not completed within timeout for: {expected_name} "
            f"({attempts} attempts, last status: {last_status!r})",
            attempts=attempts,
            last_result=last_status,
        )


# =============================================================================
# Header comparison
# =============================================================================

def normalize_header(header: str) -> str:
    return header.strip().lower()


@dataclass(frozen=True)
class HeaderComparison:
    """Headers present on only one side of the comparison."""
    missing: List[str] = field(default_factory=list)
    extra: List[str] = field(default_factory=list)

    @property
    def matches(self) -> bool:
        return not self.missing and not self.extra

    def to_dict(self) -> Dict[str, List[str]]:
        return {"missing": list(self.missing), "extra": list(self.extra)}


def verify_headers(
    uploaded_headers: Sequence[str],
    mapping_headers: Sequence[str],
) -> HeaderComparison:
    """
    Compare uploaded and on-screen headers, case-insensitive and trimmed.

    Returns:
        HeaderComparison where ``missing`` are uploaded headers absent from the
        screen and ``extra`` are screen headers absent from the upload, each
        in its original order and spelling.
    """
    uploaded_keys = {normalize_header(h) for h in uploaded_headers}
    mapping_keys = {normalize_header(h) for h in mapping_headers}
    return HeaderComparison(
        missing=[h for h in uploaded_headers if normalize_header(h) not in mapping_keys],
        extra=[h for h in mapping_headers if normalize_header(h) not in uploaded_keys],
    )


def assert_headers_match(
    uploaded_headers: Sequence[str],
    mapping_headers: Sequence[str],
) -> HeaderComparison:
    """verify_headers that raises HeaderMismatchError on any difference."""
    comparison = verify_headers(uploaded_headers, mapping_headers)
    if not comparison.matches:
        raise HeaderMismatchError(comparison.missing, comparison.extra)
    return comparison


def is_label_text(text: str) -> bool:
    """True for the mapping table's own column captions."""
    lowered = text.strip().lower()
    return any(token in lowered for token in LABEL_TOKENS)


def extract_mapping_headers(texts: Sequence[str]) -> List[str]:
    """Keep non-empty first-column texts that are not table captions."""
    return [t.strip() for t in texts if t and t.strip() and not is_label_text(t)]


# =============================================================================
# Manual mapping
# =============================================================================

@dataclass(frozen=True)
class MappingRow:
    """One file header with its Type and Field selectors."""
    index: int
    header: str
    type_select: Locator
    field_select: Locator


async def select_option_by_label(select: Locator, label: str, header: str, kind: str) -> str:
    """
    Select an option by its visible label.

    The trimmed label must equal an option's trimmed text.

    Raises:
        UnresolvedOptionError: No option carries the label
    """
    available = [t.strip() for t in await select.locator("option").all_text_contents()]
    wanted = label.strip()
    resolved = next((o for o in available if o == wanted), None)
    if resolved is None:
        raise UnresolvedOptionError(header, kind, wanted, available)
    await select.select_option(label=resolved)
    return resolved


async def _map_row(row: MappingRow, type_label: str, field_label: str) -> None:
    # Field options are populated from the chosen Type, so Type goes first.
    if type_label:
        await select_option_by_label(row.type_select, type_label, row.header, "type")
    if field_label:
        await select_option_by_label(row.field_select, field_label, row.header, "field")
    logger.debug(f"Mapped [{row.index}] {row.header}: {type_label or '-'} -> {field_label or '-'}")


async def apply_mappings(
    rows: Sequence[MappingRow],
    types: Sequence[str],
    fields: Sequence[str],
    batch_size: int = DEFAULT_BATCH_SIZE,
    batch_delay_s: float = DEFAULT_BATCH_DELAY_S,
) -> int:
    """
    Assign ``types[i]`` / ``fields[i]`` to the selectors of row *i*.

    Rows are processed in batches of ``batch_size``: rows within a batch are
    mapped concurrently, batches run one after another with ``batch_delay_s``
    between them. Empty labels leave the selector untouched, as do rows
    beyond the end of the supplied sequences.

    Returns:
        Number of rows that received at least one assignment

    Raises:
        ValueError: ``types`` and ``fields`` are both given with different lengths,
            or ``batch_size`` is not positive
        UnresolvedOptionError: A label is not among a selector's options
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    if types and fields and len(types) != len(fields):
        raise ValueError(
            f"Type and Field lists differ in length ({len(types)} vs {len(fields)})"
        )

    supplied = max(len(types), len(fields))
    if supplied < len(rows):
        logger.warning(
            f"Mapping data covers {supplied} of {len(rows)} headers; "
            f"remaining headers keep their defaults"
        )

    work = []
    for row in rows[:supplied]:
        type_label = types[row.index].strip() if row.index < len(types) else ""
        field_label = fields[row.index].strip() if row.index < len(fields) else ""
        if type_label or field_label:
            work.append((row, type_label, field_label))

    batches = [work[i:i + batch_size] for i in range(0, len(work), batch_size)]
    for number, batch in enumerate(batches, start=1):
        with allure.step(f"Map batch {number}/{len(batches)} ({len(batch)} headers)"):
            outcomes = await asyncio.gather(
                *(_map_row(row, t, f) for row, t, f in batch),
                return_exceptions=True,
            )
            errors = [o for o in outcomes if isinstance(o, BaseException)]
            if errors:
                logger.error(f"Batch {number} failed: {errors[0]}")
                raise errors[0]
        if number < len(batches) and batch_delay_s > 0:
            await asyncio.sleep(batch_delay_s)

    logger.info(f"Mapped {len(work)} header(s) in {len(batches)} batch(es)")
    return len(work)


# =============================================================================
# Plan and state machine
# =============================================================================

class MappingMode(str, Enum):
    AUTO = "auto"
    EXISTING = "existing"
    MANUAL = "manual"


@dataclass(frozen=True)
class MappingPlan:
    """
    How the mapping screen should be completed.

    Attributes:
        mode: Mapping mode
        types: Per-header Type labels (MANUAL)
        fields: Per-header Field labels (MANUAL)
        save_as: Save the resulting mapping under this name (AUTO / MANUAL)
        existing_name: Saved mapping to apply (EXISTING)
    """
    mode: MappingMode
    types: Sequence[str] = ()
    fields: Sequence[str] = ()
    save_as: Optional[str] = None
    existing_name: Optional[str] = None

    @classmethod
    def from_flags(
        cls,
        auto_map: bool,
        existing_mapping: bool,
        save_map: bool = False,
        mapping_name: str = "",
        types: Sequence[str] = (),
        fields: Sequence[str] = (),
    ) -> "MappingPlan":
        """
        Build a plan from data-sheet flags; AUTO beats EXISTING beats MANUAL.

        Raises:
            ValueError: A mapping name is required but empty
        """
        name = (mapping_name or "").strip()
        if auto_map:
            mode = MappingMode.AUTO
        elif existing_mapping:
            mode = MappingMode.EXISTING
            if not name:
                raise ValueError("Existing mapping requested without a mapping name")
        else:
            mode = MappingMode.MANUAL

        save_as: Optional[str] = None
        if save_map:
            if mode is MappingMode.EXISTING:
                logger.info("Save mapping ignored: an existing mapping is being applied")
            elif not name:
                raise ValueError("Save mapping requested without a mapping name")
            else:
                save_as = name

        return cls(
            mode=mode,
            types=tuple(types),
            fields=tuple(fields),
            save_as=save_as,
            existing_name=name if mode is MappingMode.EXISTING else None,
        )


class ImportState(str, Enum):
    IDLE = "idle"
    HEADERS_VERIFIED = "headers_verified"
    AUTO_MAPPED = "auto_mapped"
    EXISTING_MAPPING_APPLIED = "existing_mapping_applied"
    MANUALLY_MAPPED = "manually_mapped"
    MAPPING_SAVED = "mapping_saved"
    CONTINUE_REQUESTED = "continue_requested"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"


_TRANSITIONS: Dict[ImportState, FrozenSet[ImportState]] = {
    ImportState.IDLE: frozenset({ImportState.HEADERS_VERIFIED}),
    ImportState.HEADERS_VERIFIED: frozenset({
        ImportState.AUTO_MAPPED,
        ImportState.EXISTING_MAPPING_APPLIED,
        ImportState.MANUALLY_MAPPED,
    }),
    ImportState.AUTO_MAPPED: frozenset({ImportState.MAPPING_SAVED, ImportState.CONTINUE_REQUESTED}),
    ImportState.MANUALLY_MAPPED: frozenset({ImportState.MAPPING_SAVED, ImportState.CONTINUE_REQUESTED}),
    ImportState.EXISTING_MAPPING_APPLIED: frozenset({ImportState.CONTINUE_REQUESTED}),
    ImportState.MAPPING_SAVED: frozenset({ImportState.CONTINUE_REQUESTED}),
    ImportState.CONTINUE_REQUESTED: frozenset({ImportState.COMPLETED, ImportState.TIMED_OUT}),
    ImportState.COMPLETED: frozenset(),
    ImportState.TIMED_OUT: frozenset(),
}

_MAPPED_STATE = {
    MappingMode.AUTO: ImportState.AUTO_MAPPED,
    MappingMode.EXISTING: ImportState.EXISTING_MAPPING_APPLIED,
    MappingMode.MANUAL: ImportState.MANUALLY_MAPPED,
}


class MappingScreen(Protocol):
    """UI operations the reconciler needs from the import page."""

    async def read_mapping_rows(self) -> List[MappingRow]: ...

    async def click_auto_map(self) -> None: ...

    async def apply_existing_mapping(self, name: str) -> None: ...

    async def save_mapping(self, name: str) -> None: ...

    async def continue_import(self, mode: MappingMode) -> None: ...

    async def open_import_log(self) -> None: ...

    async def read_import_status(self, expected_name: str) -> Optional[str]: ...


class ImportMappingReconciler:
    """
    Runs one import through the mapping screen and the import log.

    A reconciler instance handles a single import; create a new one per list.

    Usage:
        reconciler = ImportMappingReconciler(import_page)
        await reconciler.run(uploaded_headers, plan, "Leads Q3", "leads.xlsx")
    """

    def __init__(
        self,
        screen: MappingScreen,
        batch_size: int = DEFAULT_BATCH_SIZE,
        batch_delay_s: float = DEFAULT_BATCH_DELAY_S,
        poll_attempts: int = DEFAULT_POLL_ATTEMPTS,
        poll_interval_s: float = DEFAULT_POLL_INTERVAL_S,
    ):
        self.screen = screen
        self.batch_size = batch_size
        self.batch_delay_s = batch_delay_s
        self.poll_attempts = poll_attempts
        self.poll_interval_s = poll_interval_s
        self._state = ImportState.IDLE
        self.history: List[ImportState] = [ImportState.IDLE]
        self.comparison: Optional[HeaderComparison] = None

    @property
    def state(self) -> ImportState:
        return self._state

    def _transition(self, target: ImportState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise MappingStateError(
                f"Illegal import transition {self._state.value} -> {target.value}"
            )
        logger.debug(f"Import state: {self._state.value} -> {target.value}")
        self._state = target
        self.history.append(target)

    async def verify(self, uploaded_headers: Sequence[str]) -> List[MappingRow]:
        """
        Compare headers and move to HEADERS_VERIFIED.

        Raises:
            HeaderMismatchError: Headers differ; no mapping action is taken
        """
        if self._state is not ImportState.IDLE:
            raise MappingStateError(f"Headers already verified (state {self._state.value})")

        with allure.step("Verify import mapping headers"):
            rows = await self.screen.read_mapping_rows()
            mapping_headers = [r.header for r in rows]
            logger.info(f"Uploaded headers: {list(uploaded_headers)}")
            logger.info(f"Mapping headers:  {mapping_headers}")
            comparison = verify_headers(uploaded_headers, mapping_headers)
            attach_header_comparison(
                uploaded_headers, mapping_headers, comparison.missing, comparison.extra
            )
            if not comparison.matches:
                raise HeaderMismatchError(comparison.missing, comparison.extra)
            self.comparison = comparison
        self._transition(ImportState.HEADERS_VERIFIED)
        return rows

    async def reconcile(self, uploaded_headers: Sequence[str], plan: MappingPlan) -> ImportState:
        """
        Verify headers, map, optionally save, and request continuation.

        Returns:
            CONTINUE_REQUESTED
        """
        rows = await self.verify(uploaded_headers)

        with allure.step(f"Map columns ({plan.mode.value})"):
            if plan.mode is MappingMode.AUTO:
                await self.screen.click_auto_map()
            elif plan.mode is MappingMode.EXISTING:
                await self.screen.apply_existing_mapping(plan.existing_name or "")
            elif plan.types or plan.fields:
                await apply_mappings(
                    rows,
                    plan.types,
                    plan.fields,
                    batch_size=self.batch_size,
                    batch_delay_s=self.batch_delay_s,
                )
            else:
                logger.warning("No Type/Field data supplied; keeping the screen's default mapping")
        self._transition(_MAPPED_STATE[plan.mode])

        if plan.save_as:
            with allure.step(f"Save mapping as '{plan.save_as}'"):
                await self.screen.save_mapping(plan.save_as)
            self._transition(ImportState.MAPPING_SAVED)

        with allure.step("Continue import"):
            await self.screen.continue_import(plan.mode)
        self._transition(ImportState.CONTINUE_REQUESTED)
        return self._state

    async def wait_until_ready(self, list_name: str, file_name: str) -> str:
        """
        Poll the import log until ``list_name/file_name`` is ready to use.

        Raises:
            MappingStateError: Continuation was not requested yet
            ImportTimeoutError: Not ready within ``poll_attempts`` polls
        """
        if self._state is not ImportState.CONTINUE_REQUESTED:
            raise MappingStateError(
                f"Cannot poll the import log in state {self._state.value}"
            )

        expected_name = f"{list_name}/{file_name}"
        await self.screen.open_import_log()
        try:
            status = await poll_until(
                lambda: self.screen.read_import_status(expected_name),
                lambda s: (s or "").strip() == READY_STATUS,
                description=f"import of {expected_name}",
                max_attempts=self.poll_attempts,
                interval=self.poll_interval_s,
            )
        except WaitTimeoutError as e:
            self._transition(ImportState.TIMED_OUT)
            raise ImportTimeoutError(expected_name, e.attempts, e.last_result) from e

        self._transition(ImportState.COMPLETED)
        logger.info(f"Import verified: {expected_name} is ready to use")
        return status

    async def run(
        self,
        uploaded_headers: Sequence[str],
        plan: MappingPlan,
        list_name: str,
        file_name: str,
    ) -> ImportState:
        """reconcile() followed by wait_until_ready()."""
        await self.reconcile(uploaded_headers, plan)
        await self.wait_until_ready(list_name, file_name)
        return self._state


__all__ = [
    "HeaderComparison",
    "HeaderMismatchError",
    "ImportMappingReconciler",
    "ImportState",
    "ImportTimeoutError",
    "LABEL_TOKENS",
    "MappingMode",
    "MappingPlan",
    "MappingRow",
    "MappingScreen",
    "MappingStateError",
    "READY_STATUS",
    "UnresolvedOptionError",
    "apply_mappings",
    "assert_headers_match",
    "extract_mapping_headers",
    "is_label_text",
    "normalize_header",
    "select_option_by_label",
    "verify_headers",
]
