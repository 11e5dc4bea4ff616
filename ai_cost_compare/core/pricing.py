"""
Pricing calculations.

Handles cost computations from token volumes and per-million-token rates.
"""

from dataclasses import dataclass
from typing import Tuple

from .catalog import PricingRecord

TOKENS_PER_RATE_UNIT = 1_000_000

MONTHLY = 1
ANNUAL = 12


@dataclass(frozen=True)
class CostBreakdown:
    """Input, output and total cost for one model at one token volume."""
    input_cost: float
    output_cost: float
    total: float


def compute_monthly_cost(
    record: PricingRecord,
    input_tokens: int,
    output_tokens: int
) -> CostBreakdown:
    """Calculate monthly cost for a model at full float precision.

    Rounding to cents is left to the formatter.

    Args:
        record: Pricing record supplying the rates
        input_tokens: Monthly input tokens
        output_tokens: Monthly output tokens

    Returns:
        CostBreakdown where total is exactly input_cost + output_cost
    """
    # Input cost: tokens / 1M * rate per 1M
    input_cost = (input_tokens / TOKENS_PER_RATE_UNIT) * record.input_per_1m

    # Output cost: tokens / 1M * rate per 1M
    output_cost = (output_tokens / TOKENS_PER_RATE_UNIT) * record.output_per_1m

    return CostBreakdown(
        input_cost=input_cost,
        output_cost=output_cost,
        total=input_cost + output_cost
    )


def scale(breakdown: CostBreakdown, factor: int) -> CostBreakdown:
    """Return a new breakdown with every field multiplied by factor.

    Args:
        breakdown: Monthly breakdown
        factor: MONTHLY (1) or ANNUAL (12)
    """
    return CostBreakdown(
        input_cost=breakdown.input_cost * factor,
        output_cost=breakdown.output_cost * factor,
        total=breakdown.total * factor
    )


def period_factor(annual: bool) -> int:
    return ANNUAL if annual else MONTHLY


def compare(
    record_a: PricingRecord,
    record_b: PricingRecord,
    input_tokens: int,
    output_tokens: int,
    factor: int = MONTHLY
) -> Tuple[CostBreakdown, CostBreakdown, float]:
    """Cost two models at the same volume.

    Each side is computed independently from a fresh monthly breakdown,
    then scaled. The delta is taken on the scaled totals.

    Returns:
        Tuple of (breakdown A, breakdown B, total B - total A)
    """
    cost_a = scale(compute_monthly_cost(record_a, input_tokens, output_tokens), factor)
    cost_b = scale(compute_monthly_cost(record_b, input_tokens, output_tokens), factor)
    return cost_a, cost_b, cost_b.total - cost_a.total


def discounted_total(total: float, discount_percent: float) -> float:
    """Apply an illustrative percentage discount to a total."""
    return total * (1 - discount_percent / 100)
