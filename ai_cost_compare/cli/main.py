"""
CLI interface for AI Cost Compare.

Provides command-line access to the pricing catalog, single-model
estimates and A/B comparisons.
"""

import sys
from pathlib import Path
from typing import Optional, Tuple

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ai_cost_compare.config.loader import CalculatorConfig, load_calculator_config
from ai_cost_compare.core.catalog import FormatError, PricingCatalog, PricingRecord, load_pricing_file
from ai_cost_compare.core.debounce import ManualClock
from ai_cost_compare.core.formatter import EXPORT_FORMATS, RenderedResult
from ai_cost_compare.core.session import CalculatorSession, SelectionSlot, ValidationHint
from ai_cost_compare.logging import setup_logging

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

OUTPUT_FORMATS = ("display",) + EXPORT_FORMATS


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context):
    """AI Cost Compare CLI."""
    if ctx.invoked_subcommand is None:
        console.print("AI Cost Compare - Use --help to see available commands")


def _load(config_path: Optional[str], pricing: Optional[str]) -> Tuple[CalculatorConfig, PricingCatalog]:
    """Load configuration and catalog, exiting on any load failure."""
    try:
        config = load_calculator_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error loading config:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    setup_logging(config.log_level)

    try:
        catalog = load_pricing_file(pricing or config.pricing_path)
    except FormatError as e:
        console.print(f"[red]Error:[/] {escape(str(e))}")
        sys.exit(EXIT_CODE_FAIL)

    return config, catalog


def _resolve_model(catalog: PricingCatalog, query: str) -> Tuple[Optional[PricingRecord], str]:
    """Resolve a model query by id, exact "provider | model" label or unique match.

    Returns:
        (record, "") on success, otherwise (None, reason)
    """
    needle = query.strip()
    if needle.isdigit():
        record = catalog.get(int(needle))
        if record is not None:
            return record, ""

    for record in catalog:
        if record.label.lower() == needle.lower():
            return record, ""

    matches = catalog.filter(needle)
    if len(matches) == 1:
        return matches[0], ""
    if not matches:
        return None, f"No model matches '{query}'."
    return None, f"'{query}' matches {len(matches)} models. Use the full 'provider | model' label or an id."


def _resolve_or_exit(catalog: PricingCatalog, query: str) -> PricingRecord:
    record, reason = _resolve_model(catalog, query)
    if record is None:
        console.print(f"[red]Error:[/] {escape(reason)}")
        sys.exit(EXIT_CODE_FAIL)
    return record


def _new_session(catalog: PricingCatalog, config: CalculatorConfig) -> CalculatorSession:
    # Commands calculate explicitly, so the virtual clock is never advanced
    return CalculatorSession(
        catalog,
        ManualClock(),
        delay=config.debounce_seconds,
        presets=config.presets
    )


def _check_format(fmt: str) -> None:
    if fmt not in OUTPUT_FORMATS:
        console.print(f"[red]Error:[/] --format must be one of: {', '.join(OUTPUT_FORMATS)}")
        sys.exit(EXIT_CODE_FAIL)


def _apply_tokens(
    session: CalculatorSession,
    preset: Optional[str],
    input_tokens: Optional[str],
    output_tokens: Optional[str]
) -> None:
    if preset:
        try:
            session.apply_preset(preset)
        except ValueError as e:
            console.print(f"[red]Error:[/] {escape(str(e))}")
            sys.exit(EXIT_CODE_FAIL)
    if input_tokens is not None:
        session.set_input_tokens(input_tokens)
    if output_tokens is not None:
        session.set_output_tokens(output_tokens)


def _display_hint(hint: ValidationHint) -> None:
    console.print(f"\n[bold yellow]{escape(hint.title)}[/]")
    console.print(f"{escape(hint.body)}\n")


def _display_result(result: RenderedResult) -> None:
    """Display a rendered result as a table of tiles."""
    console.print(f"\n[bold]{escape(result.display.badge)}[/bold]")
    table = Table(show_header=False)
    table.add_column("Item")
    table.add_column("Value", justify="right")
    table.add_column("Detail", style="dim")
    for tile in result.display.tiles:
        value = f"[bold]{escape(tile.value)}[/bold]" if tile.big else escape(tile.value)
        table.add_row(escape(tile.key), value, escape(tile.note))
    console.print(table)


def _emit(outcome, fmt: str, out: Optional[str]) -> None:
    """Print the outcome and optionally write an export file, then exit."""
    if isinstance(outcome, ValidationHint):
        _display_hint(outcome)
        sys.exit(EXIT_CODE_FAIL)

    if fmt == "display":
        _display_result(outcome)
    else:
        # Exports go out unstyled so they can be piped
        typer.echo(outcome.export(fmt))

    if out:
        export_format = "text" if fmt == "display" else fmt
        try:
            Path(out).write_text(outcome.export(export_format) + "\n", encoding="utf-8")
            console.print(f"[green]✓[/] Wrote {export_format} export to {escape(out)}")
        except OSError as e:
            # Export failures never invalidate the computed result
            console.print(f"[yellow]Could not write export:[/] {escape(str(e))}")

    sys.exit(EXIT_CODE_PASS)


@app.command()
def models(
    search: Optional[str] = typer.Option(
        None,
        "--search",
        "-s",
        help="Case-insensitive filter on provider and model"
    ),
    pricing: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="Path to a pricing TSV file"
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file"
    )
):
    """List the pricing catalog, optionally filtered."""
    _, catalog = _load(config_path, pricing)
    view = catalog.filter(search)

    if not view:
        console.print("\n[bold yellow]No matches found.[/]")
        console.print("Try a different keyword.\n")
        sys.exit(EXIT_CODE_PASS)

    table = Table(title=f"{len(view)} models")
    table.add_column("ID", justify="right")
    table.add_column("Provider")
    table.add_column("Model")
    table.add_column("Input $/1M", justify="right")
    table.add_column("Output $/1M", justify="right")
    for record in view:
        table.add_row(
            str(record.record_id),
            escape(record.provider),
            escape(record.model),
            f"${record.input_per_1m:,.2f}",
            f"${record.output_per_1m:,.2f}"
        )
    console.print(table)


@app.command()
def estimate(
    model: str = typer.Option(
        ...,
        "--model",
        "-m",
        help="Model id, 'provider | model' label or unique search text"
    ),
    input_tokens: Optional[str] = typer.Option(
        None,
        "--input",
        "-i",
        help="Monthly input tokens (separators allowed, e.g. 1,000,000)"
    ),
    output_tokens: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Monthly output tokens"
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        help="Named token preset, e.g. 70/30 or 50/50"
    ),
    annual: Optional[bool] = typer.Option(
        None,
        "--annual/--monthly",
        help="Report annual instead of monthly cost"
    ),
    discount: Optional[str] = typer.Option(
        None,
        "--discount",
        "-d",
        help="Show an illustrative AIsa estimate at this discount percent"
    ),
    fmt: str = typer.Option(
        "display",
        "--format",
        "-f",
        help="Output format: display, text, markdown or csv"
    ),
    out: Optional[str] = typer.Option(
        None,
        "--out",
        help="Also write the export to this file"
    ),
    pricing: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="Path to a pricing TSV file"
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file"
    )
):
    """Estimate cost for a single model."""
    _check_format(fmt)
    config, catalog = _load(config_path, pricing)
    record = _resolve_or_exit(catalog, model)

    session = _new_session(catalog, config)
    session.select_model(record.record_id)
    _apply_tokens(session, preset, input_tokens, output_tokens)
    session.set_annual(config.annual if annual is None else annual)

    if discount is not None:
        session.set_show_discount(True)
        session.set_discount_percent(discount)
    elif config.discount.enabled:
        session.set_show_discount(True)
        session.set_discount_percent(str(config.discount.percent))

    _emit(session.calculate(), fmt, out)


@app.command("compare")
def compare_models(
    model_a: str = typer.Option(
        ...,
        "--model-a",
        "-a",
        help="Model A id, label or unique search text"
    ),
    model_b: str = typer.Option(
        ...,
        "--model-b",
        "-b",
        help="Model B id, label or unique search text"
    ),
    input_tokens: Optional[str] = typer.Option(
        None,
        "--input",
        "-i",
        help="Monthly input tokens"
    ),
    output_tokens: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Monthly output tokens"
    ),
    preset: Optional[str] = typer.Option(
        None,
        "--preset",
        help="Named token preset, e.g. 70/30 or 50/50"
    ),
    annual: Optional[bool] = typer.Option(
        None,
        "--annual/--monthly",
        help="Report annual instead of monthly cost"
    ),
    fmt: str = typer.Option(
        "display",
        "--format",
        "-f",
        help="Output format: display, text, markdown or csv"
    ),
    out: Optional[str] = typer.Option(
        None,
        "--out",
        help="Also write the export to this file"
    ),
    pricing: Optional[str] = typer.Option(
        None,
        "--pricing",
        "-p",
        help="Path to a pricing TSV file"
    ),
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a YAML config file"
    )
):
    """
    Compare two models at the same token volume.

    The delta is B minus A: positive means B is more expensive.
    """
    _check_format(fmt)
    config, catalog = _load(config_path, pricing)
    record_a = _resolve_or_exit(catalog, model_a)
    record_b = _resolve_or_exit(catalog, model_b)

    session = _new_session(catalog, config)
    session.set_compare_mode(True)
    session.select_model(record_a.record_id, SelectionSlot.A)
    session.select_model(record_b.record_id, SelectionSlot.B)
    _apply_tokens(session, preset, input_tokens, output_tokens)
    session.set_annual(config.annual if annual is None else annual)

    _emit(session.calculate(), fmt, out)


if __name__ == "__main__":
    app()
