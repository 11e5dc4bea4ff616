"""
Result formatting for display and export.

Every rendering of a result (display payload, plain text, markdown, CSV)
is built from one set of pre-formatted figures, so the representations
can never disagree on a number.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .catalog import PricingRecord
from .pricing import CostBreakdown, discounted_total

EXPORT_FORMATS = ("text", "markdown", "csv")

DELTA_NOTE = "Positive delta means B is more expensive than A."


@dataclass(frozen=True)
class Tile:
    """One labeled value in the display payload."""
    key: str
    value: str
    note: str
    big: bool = False


@dataclass(frozen=True)
class DisplayPayload:
    """Structured values ready for markup."""
    badge: str
    tiles: Tuple[Tile, ...]


@dataclass(frozen=True)
class RenderedResult:
    """The four synchronized renderings of one calculation."""
    display: DisplayPayload
    text: str
    markdown: str
    csv: str

    def export(self, fmt: str) -> str:
        """Return the export text for "text", "markdown" or "csv".

        Raises:
            ValueError: If fmt is not a known export format
        """
        if fmt not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {fmt}")
        return getattr(self, fmt)


def money(amount: float) -> str:
    """Format a dollar amount to cents, e.g. $6.25."""
    return f"${amount:.2f}"


def signed_money(amount: float) -> str:
    """Format a delta with an explicit sign, e.g. +$2.75 or -$2.75."""
    if amount >= 0:
        return f"+{money(amount)}"
    return f"-{money(abs(amount))}"


def period_label(annual: bool) -> str:
    return " / year" if annual else " / month"


def period_unit(annual: bool) -> str:
    return "year" if annual else "month"


def plain_number(value: float) -> str:
    """Render a rate or percentage in fixed-point without a trailing ".0"."""
    if float(value).is_integer():
        return str(int(value))
    return format(Decimal(repr(float(value))), "f")


def csv_text(value: str) -> str:
    """Double-quote a CSV text field, doubling embedded quotes."""
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def _single_figures(
    record: PricingRecord,
    input_tokens: int,
    output_tokens: int,
    breakdown: CostBreakdown,
    annual: bool,
    show_discount: bool,
    discount_percent: float
) -> Dict[str, Optional[str]]:
    """Round and format every number of a single-model result once."""
    figures: Dict[str, Optional[str]] = {
        "title": "Model Cost Estimate (Annual)" if annual else "Model Cost Estimate (Monthly)",
        "period": period_label(annual),
        "unit": period_unit(annual),
        "input_tokens": f"{input_tokens:,}",
        "output_tokens": f"{output_tokens:,}",
        "input_tokens_raw": str(input_tokens),
        "output_tokens_raw": str(output_tokens),
        "input_rate": plain_number(record.input_per_1m),
        "output_rate": plain_number(record.output_per_1m),
        "input_cost": f"{breakdown.input_cost:.2f}",
        "output_cost": f"{breakdown.output_cost:.2f}",
        "total": f"{breakdown.total:.2f}",
        "discounted": None,
        "discount_percent": None,
    }
    if show_discount:
        discounted = discounted_total(breakdown.total, discount_percent)
        figures["discounted"] = f"{discounted:.2f}"
        figures["discount_percent"] = plain_number(discount_percent)
    return figures


def format_single(
    record: PricingRecord,
    input_tokens: int,
    output_tokens: int,
    breakdown: CostBreakdown,
    annual: bool = False,
    show_discount: bool = False,
    discount_percent: float = 0.0
) -> RenderedResult:
    """Render a single-model estimate.

    Args:
        record: Selected pricing record
        input_tokens: Monthly input tokens
        output_tokens: Monthly output tokens
        breakdown: Breakdown already scaled to the requested period
        annual: Whether breakdown covers a year
        show_discount: Whether to append the AIsa estimate overlay
        discount_percent: Overlay discount in [0, 100]

    Returns:
        RenderedResult with display payload, text, markdown and CSV
    """
    f = _single_figures(
        record, input_tokens, output_tokens, breakdown,
        annual, show_discount, discount_percent
    )
    period = f["period"]

    text_lines = [
        f["title"],
        f"Provider: {record.provider}",
        f"Model: {record.model}",
        f"Monthly input tokens: {f['input_tokens']}",
        f"Monthly output tokens: {f['output_tokens']}",
        f"Input cost: ${f['input_cost']}{period}",
        f"Output cost: ${f['output_cost']}{period}",
        f"Total: ${f['total']}{period}",
    ]
    md_lines = [
        f"### {f['title']}",
        f"- **Provider**: {record.provider}",
        f"- **Model**: {record.model}",
        f"- **Monthly input tokens**: {f['input_tokens']}",
        f"- **Monthly output tokens**: {f['output_tokens']}",
        f"- **Input cost**: **${f['input_cost']}{period}**",
        f"- **Output cost**: **${f['output_cost']}{period}**",
        f"- **Total**: **${f['total']}{period}**",
    ]
    tiles = [
        Tile(
            key="Input cost",
            value=f"${f['input_cost']}{period}",
            note=f"{f['input_tokens']} monthly tokens × ${f['input_rate']}/1M"
        ),
        Tile(
            key="Output cost",
            value=f"${f['output_cost']}{period}",
            note=f"{f['output_tokens']} monthly tokens × ${f['output_rate']}/1M"
        ),
        Tile(
            key="Total estimate",
            value=f"${f['total']}{period}",
            note="Token-based estimate using official list pricing.",
            big=True
        ),
    ]

    if show_discount:
        overlay_label = f"AIsa estimate (illustrative, {f['discount_percent']}%)"
        text_lines.append(f"{overlay_label}: ${f['discounted']}{period}")
        md_lines.append(f"- **{overlay_label}**: ${f['discounted']}{period}")
        tiles.append(Tile(
            key="AIsa estimate",
            value=f"${f['discounted']}{period}",
            note=f"Illustrative only, assumes {f['discount_percent']}% discount."
        ))

    csv_fields = [
        csv_text(record.provider),
        csv_text(record.model),
        f["input_tokens_raw"],
        f["output_tokens_raw"],
        f["input_rate"],
        f["output_rate"],
        f["input_cost"],
        f["output_cost"],
        f["total"],
        # Empty placeholders keep the column count stable without the overlay
        f["discounted"] or "",
        f["discount_percent"] or "",
        csv_text(f["unit"]),
    ]

    return RenderedResult(
        display=DisplayPayload(badge=record.label, tiles=tuple(tiles)),
        text="\n".join(text_lines),
        markdown="\n".join(md_lines),
        csv=",".join(csv_fields)
    )


def format_compare(
    record_a: PricingRecord,
    record_b: PricingRecord,
    input_tokens: int,
    output_tokens: int,
    breakdown_a: CostBreakdown,
    breakdown_b: CostBreakdown,
    annual: bool = False
) -> RenderedResult:
    """Render a head-to-head comparison of two models.

    The delta is total B minus total A on the already scaled breakdowns.
    """
    delta = breakdown_b.total - breakdown_a.total

    title = "Model Compare (Annual)" if annual else "Model Compare (Monthly)"
    period = period_label(annual)
    total_a = f"{breakdown_a.total:.2f}"
    total_b = f"{breakdown_b.total:.2f}"
    delta_csv = f"{delta:.2f}"
    delta_text = signed_money(delta)
    tokens_line = f"Input {input_tokens:,}, Output {output_tokens:,}"

    text = "\n".join([
        title,
        f"Monthly tokens: {tokens_line}",
        "",
        f"A: {record_a.label} => ${total_a}{period}",
        f"B: {record_b.label} => ${total_b}{period}",
        f"Delta (B - A): {delta_text}{period}",
        DELTA_NOTE,
    ])
    markdown = "\n".join([
        f"### {title}",
        f"- **Monthly tokens**: {tokens_line}",
        f"- **A**: {record_a.label} = **${total_a}{period}**",
        f"- **B**: {record_b.label} = **${total_b}{period}**",
        f"- **Delta (B - A)**: **{delta_text}{period}**",
        f"- _{DELTA_NOTE}_",
    ])
    csv = ",".join([
        csv_text(record_a.provider),
        csv_text(record_a.model),
        total_a,
        csv_text(record_b.provider),
        csv_text(record_b.model),
        total_b,
        delta_csv,
        csv_text(period_unit(annual)),
    ])
    display = DisplayPayload(
        badge="Compare Mode",
        tiles=(
            Tile(key="Model A", value=f"${total_a}{period}", note=record_a.label),
            Tile(key="Model B", value=f"${total_b}{period}", note=record_b.label),
            Tile(
                key="Delta (B - A)",
                value=f"{delta_text}{period}",
                note="Positive means B is more expensive than A.",
                big=True
            ),
        )
    )

    return RenderedResult(display=display, text=text, markdown=markdown, csv=csv)
