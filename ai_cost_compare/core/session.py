"""
Calculator session state.

Owns the current inputs, the filtered model view and the staleness state
machine that decides when a displayed result must be recalculated.

Lifecycle:
1. Fresh - never calculated; input changes only update state
2. Live - calculated at least once; every tracked change marks the
   display stale and re-arms a single debounced recalculation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Mapping, Optional, Tuple, Union

import structlog

from .catalog import PricingCatalog, PricingRecord
from .debounce import DEFAULT_DELAY_SECONDS, Debouncer, Scheduler
from .formatter import RenderedResult, format_compare, format_single
from .pricing import compare, compute_monthly_cost, period_factor, scale
from .token_counter import (
    TokenUsage,
    clamp_discount_percent,
    format_with_commas,
    sanitize_token_count
)

logger = structlog.get_logger(__name__)

DEFAULT_PRESETS: Dict[str, TokenUsage] = {
    "70/30": TokenUsage(input_tokens=7_000_000, output_tokens=3_000_000),
    "50/50": TokenUsage(input_tokens=5_000_000, output_tokens=5_000_000),
}


class CalculationMode(Enum):
    """Single model estimate or A/B comparison."""
    SINGLE = "single"
    COMPARE = "compare"


class SelectionSlot(Enum):
    """Where a selected model is held."""
    SINGLE = "single"
    A = "a"
    B = "b"


@dataclass(frozen=True)
class ValidationHint:
    """User-facing message shown instead of a result."""
    title: str
    body: str


READY_HINT = ValidationHint(
    "Ready.", "Select a model, enter tokens, then click Calculate Cost."
)


@dataclass(frozen=True)
class CalculationRequest:
    """Validated inputs for one calculation."""
    mode: CalculationMode
    record_ids: Tuple[int, ...]
    input_tokens: int
    output_tokens: int
    period_scale: int
    show_discount: bool
    discount_percent: float

    @property
    def annual(self) -> bool:
        return self.period_scale != 1


@dataclass
class StalenessState:
    """Whether a result was ever produced and whether it is out of date."""
    has_calculated_once: bool = False
    dirty: bool = False


Display = Union[RenderedResult, ValidationHint]


def run_request(catalog: PricingCatalog, request: CalculationRequest) -> Display:
    """Compute and render a validated request.

    Records are resolved by stable id against the full catalog. An id
    that no longer resolves yields an "Invalid selection." hint.
    """
    records = [catalog.get(record_id) for record_id in request.record_ids]
    if any(record is None for record in records):
        if request.mode == CalculationMode.SINGLE:
            return ValidationHint("Invalid selection.", "Re-select the model and try again.")
        return ValidationHint(
            "Invalid selection.", "Try re-selecting both models, then calculate again."
        )

    if request.mode == CalculationMode.SINGLE:
        record = records[0]
        breakdown = scale(
            compute_monthly_cost(record, request.input_tokens, request.output_tokens),
            request.period_scale
        )
        return format_single(
            record,
            request.input_tokens,
            request.output_tokens,
            breakdown,
            annual=request.annual,
            show_discount=request.show_discount,
            discount_percent=request.discount_percent
        )

    record_a, record_b = records
    cost_a, cost_b, _ = compare(
        record_a, record_b, request.input_tokens, request.output_tokens, request.period_scale
    )
    return format_compare(
        record_a,
        record_b,
        request.input_tokens,
        request.output_tokens,
        cost_a,
        cost_b,
        annual=request.annual
    )


class CalculatorSession:
    """Explicit calculator state, mutated only through named operations."""

    def __init__(
        self,
        catalog: PricingCatalog,
        scheduler: Scheduler,
        delay: float = DEFAULT_DELAY_SECONDS,
        presets: Optional[Mapping[str, TokenUsage]] = None,
        on_display: Optional[Callable[[Display], None]] = None
    ):
        """Initialize a session over a loaded catalog.

        Args:
            catalog: Loaded pricing catalog
            scheduler: Scheduler for debounced recalculation, such as the
                running asyncio loop; callbacks must run on the caller's thread
            delay: Debounce delay in seconds
            presets: Named token volumes for apply_preset
            on_display: Called whenever the displayed result changes
        """
        self.catalog = catalog
        self.presets = dict(presets if presets is not None else DEFAULT_PRESETS)
        self.on_display = on_display
        self.debouncer = Debouncer(scheduler, delay)
        self.state = StalenessState()

        self.query = ""
        self._view: Tuple[PricingRecord, ...] = catalog.records
        self.mode = CalculationMode.SINGLE
        self.selections: Dict[SelectionSlot, Optional[int]] = {
            slot: None for slot in SelectionSlot
        }
        self.input_tokens_raw = ""
        self.output_tokens_raw = ""
        self.show_discount = False
        self.discount_raw = "0"
        self.annual = False

        self.display: Display = READY_HINT

    @property
    def view(self) -> Tuple[PricingRecord, ...]:
        """Records currently offered for selection."""
        return self._view

    @property
    def token_fields(self) -> Tuple[str, str]:
        """Token fields reformatted with thousands separators."""
        return (
            format_with_commas(self.input_tokens_raw),
            format_with_commas(self.output_tokens_raw),
        )

    # Tracked inputs

    def set_query(self, query: str) -> Tuple[PricingRecord, ...]:
        """Filter the selection view, auto-selecting a lone match."""
        self.query = query or ""
        self._view = self.catalog.filter(self.query)
        count = len(self._view)

        if self.mode == CalculationMode.SINGLE and count == 1:
            self.selections[SelectionSlot.SINGLE] = self._view[0].record_id
            self._mark_dirty("1 match found.", "Model selected. Click Calculate or keep typing.")
            self._schedule()
        elif count == 0:
            self._mark_dirty("No matches found.", "Try a different keyword.")
        else:
            self._mark_dirty(f"{count} matches found.", "Pick a model, then click Calculate.")
        return self._view

    def set_compare_mode(self, enabled: bool) -> None:
        """Switch modes; every selection is cleared."""
        self.mode = CalculationMode.COMPARE if enabled else CalculationMode.SINGLE
        for slot in SelectionSlot:
            self.selections[slot] = None
        self._mark_dirty("Mode changed.", "Pick your model(s), then calculate.")
        self._schedule()

    def select_model(
        self,
        record_id: Optional[int],
        slot: Optional[SelectionSlot] = None
    ) -> None:
        """Select a record by stable id (None clears the slot).

        The slot defaults to SINGLE in single mode; compare mode requires
        SelectionSlot.A or SelectionSlot.B.

        Raises:
            ValueError: If the slot does not belong to the current mode
        """
        if slot is None:
            if self.mode == CalculationMode.COMPARE:
                raise ValueError("Compare mode needs slot A or B")
            slot = SelectionSlot.SINGLE
        if (slot == SelectionSlot.SINGLE) != (self.mode == CalculationMode.SINGLE):
            raise ValueError(f"Slot {slot.name} is not used in {self.mode.value} mode")
        self.selections[slot] = record_id
        self._changed()

    def set_input_tokens(self, raw: str) -> None:
        self.input_tokens_raw = raw or ""
        self._changed()

    def set_output_tokens(self, raw: str) -> None:
        self.output_tokens_raw = raw or ""
        self._changed()

    def set_tokens(self, input_raw: str, output_raw: str) -> None:
        """Set both token fields as a single change."""
        self.input_tokens_raw = input_raw or ""
        self.output_tokens_raw = output_raw or ""
        self._changed()

    def set_show_discount(self, enabled: bool) -> None:
        self.show_discount = bool(enabled)
        self._changed()

    def set_discount_percent(self, raw: str) -> None:
        self.discount_raw = str(raw) if raw is not None else ""
        self._changed()

    def set_annual(self, enabled: bool) -> None:
        self.annual = bool(enabled)
        self._changed()

    def apply_preset(self, name: str) -> TokenUsage:
        """Fill both token fields from a named preset.

        Raises:
            ValueError: If the preset is unknown
        """
        if name not in self.presets:
            raise ValueError(f"Unknown preset: {name}. Available: {', '.join(self.presets)}")
        preset = self.presets[name]
        self.input_tokens_raw = str(preset.input_tokens)
        self.output_tokens_raw = str(preset.output_tokens)
        self._mark_dirty("Preset applied.", "Refreshing estimate…")
        self._schedule()
        return preset

    # Calculation

    def build_request(self) -> Union[CalculationRequest, ValidationHint]:
        """Validate the current inputs into a request, or explain why not."""
        if not len(self.catalog):
            return ValidationHint("No models loaded.", "Check your pricing file and reload.")

        if not self.input_tokens_raw.strip() or not self.output_tokens_raw.strip():
            return ValidationHint(
                "Enter your token usage.",
                "Fill monthly input and output tokens, or use a preset."
            )

        if self.mode == CalculationMode.SINGLE:
            selected = self.selections[SelectionSlot.SINGLE]
            if selected is None:
                return ValidationHint(
                    "Select a model to begin.", "Choose a provider and model, then calculate."
                )
            record_ids: Tuple[int, ...] = (selected,)
        else:
            selected_a = self.selections[SelectionSlot.A]
            selected_b = self.selections[SelectionSlot.B]
            if selected_a is None or selected_b is None:
                return ValidationHint("Select Model A and Model B.", "Pick two models, then calculate.")
            record_ids = (selected_a, selected_b)

        return CalculationRequest(
            mode=self.mode,
            record_ids=record_ids,
            input_tokens=sanitize_token_count(self.input_tokens_raw),
            output_tokens=sanitize_token_count(self.output_tokens_raw),
            period_scale=period_factor(self.annual),
            show_discount=self.show_discount,
            discount_percent=clamp_discount_percent(self.discount_raw)
        )

    def calculate(self) -> Display:
        """Explicit calculate action.

        Moves the session to Live, cancels any pending automatic
        recalculation and computes immediately.
        """
        self.state.has_calculated_once = True
        self.debouncer.cancel()
        return self._run(auto=False)

    def _auto_calculate(self) -> None:
        logger.debug("auto_calculation_fired")
        self._run(auto=True)

    def _run(self, auto: bool) -> Display:
        request = self.build_request()
        if isinstance(request, ValidationHint):
            logger.debug("calculation_rejected", title=request.title, auto=auto)
            outcome: Display = request
        else:
            outcome = run_request(self.catalog, request)
            if isinstance(outcome, ValidationHint):
                logger.debug("calculation_rejected", title=outcome.title, auto=auto)
            else:
                logger.debug(
                    "calculation_completed",
                    mode=request.mode.value,
                    record_ids=request.record_ids,
                    auto=auto
                )
        self.state.dirty = False
        self._set_display(outcome)
        return outcome

    # Staleness

    def _changed(self) -> None:
        self._mark_dirty(
            "Updating…", "Results refresh automatically when you pause, or click Calculate."
        )
        self._schedule()

    def _mark_dirty(self, title: str, body: str) -> None:
        if not self.state.has_calculated_once:
            return
        self.state.dirty = True
        self._set_display(ValidationHint(title, body))

    def _schedule(self) -> None:
        if not self.state.has_calculated_once:
            return
        self.debouncer.arm(self._auto_calculate)

    def _set_display(self, display: Display) -> None:
        self.display = display
        if self.on_display is not None:
            self.on_display(display)
