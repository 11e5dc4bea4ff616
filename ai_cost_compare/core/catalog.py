"""
Pricing catalog loading and lookup.

Parses tab-separated pricing datasets into validated, sorted records.
"""

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import structlog

logger = structlog.get_logger(__name__)

PROVIDER_COLUMN = "Provider"
MODEL_COLUMN = "Model"
INPUT_COLUMN = "Input $/1M"
OUTPUT_COLUMN = "Output $/1M"

REQUIRED_COLUMNS = (PROVIDER_COLUMN, MODEL_COLUMN, INPUT_COLUMN, OUTPUT_COLUMN)

_LINE_SPLIT = re.compile(r"\r?\n")
_CURRENCY_PREFIX = re.compile(r"^[$€£¥]\s*")


class FormatError(ValueError):
    """Raised when a pricing dataset cannot produce a usable catalog."""


@dataclass(frozen=True)
class PricingRecord:
    """Per-million-token pricing for one provider/model row.

    record_id is assigned at load time and stays stable for the life of
    the catalog, regardless of how the catalog is sorted or filtered.
    """
    record_id: int
    provider: str
    model: str
    input_per_1m: float  # USD per 1M input tokens
    output_per_1m: float  # USD per 1M output tokens

    @property
    def label(self) -> str:
        """Display label used for selection lists."""
        return f"{self.provider} | {self.model}"

    def to_dict(self) -> Dict[str, Union[str, float]]:
        return {
            "provider": self.provider,
            "model": self.model,
            "input_per_1m": self.input_per_1m,
            "output_per_1m": self.output_per_1m,
        }


@dataclass(frozen=True)
class PricingCatalog:
    """Read-only catalog of pricing records sorted by (provider, model)."""
    records: Tuple[PricingRecord, ...]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[PricingRecord]:
        return iter(self.records)

    def filter(self, query: Optional[str]) -> Tuple[PricingRecord, ...]:
        """Return the records matching a case-insensitive substring query.

        The query is matched against "provider model". A blank query
        returns every record.

        Args:
            query: Free-form search text

        Returns:
            Matching records in catalog order
        """
        needle = (query or "").strip().lower()
        if not needle:
            return self.records
        return tuple(
            record for record in self.records
            if needle in f"{record.provider} {record.model}".lower()
        )

    def get(self, record_id: Optional[int]) -> Optional[PricingRecord]:
        """Resolve a stable record id, or None if it is unknown."""
        if record_id is None:
            return None
        for record in self.records:
            if record.record_id == record_id:
                return record
        return None


def sort_records(records: List[PricingRecord]) -> Tuple[PricingRecord, ...]:
    """Sort records by provider, then model (stable for duplicates)."""
    return tuple(sorted(records, key=lambda r: (r.provider, r.model)))


def parse_rate(raw: str) -> Optional[float]:
    """Parse a monetary rate such as "$1,250.00" or "0.625".

    Returns:
        The rate as a float, or None if it is not a finite,
        non-negative number
    """
    cleaned = _CURRENCY_PREFIX.sub("", raw.strip()).replace(",", "")
    if not cleaned:
        return None
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def load_pricing_table(raw_text: str) -> PricingCatalog:
    """Parse a tab-separated pricing dataset into a sorted catalog.

    The header row must contain Provider, Model, Input $/1M and
    Output $/1M in any order. Rows with an empty provider or model, or
    with an unparseable rate, are dropped individually.

    Args:
        raw_text: Full dataset text, header row first

    Returns:
        PricingCatalog sorted by (provider, model)

    Raises:
        FormatError: If the dataset is too short, lacks a required
            header, or has no valid rows
    """
    # Spreadsheet exports often lead with a byte order mark
    lines = _LINE_SPLIT.split((raw_text or "").lstrip("\ufeff").strip())
    if len(lines) < 2:
        raise FormatError(
            "Pricing dataset looks empty. Include the header row and at least one data row."
        )

    header = [name.strip() for name in lines[0].split("\t")]
    missing = [name for name in REQUIRED_COLUMNS if name not in header]
    if missing:
        raise FormatError(
            f"Pricing dataset missing required headers: {', '.join(missing)}. "
            f"Must include: {', '.join(REQUIRED_COLUMNS)}"
        )

    idx_provider = header.index(PROVIDER_COLUMN)
    idx_model = header.index(MODEL_COLUMN)
    idx_input = header.index(INPUT_COLUMN)
    idx_output = header.index(OUTPUT_COLUMN)

    records: List[PricingRecord] = []
    for line_no, line in enumerate(lines[1:], start=2):
        cols = [col.strip() for col in line.split("\t")]

        def _col(idx: int) -> str:
            return cols[idx] if idx < len(cols) else ""

        provider = _col(idx_provider)
        model = _col(idx_model)
        if not provider or not model:
            logger.debug("pricing_row_dropped", line=line_no, reason="missing provider or model")
            continue

        input_rate = parse_rate(_col(idx_input))
        output_rate = parse_rate(_col(idx_output))
        if input_rate is None or output_rate is None:
            logger.debug("pricing_row_dropped", line=line_no, reason="invalid rate")
            continue

        records.append(PricingRecord(
            record_id=len(records),
            provider=provider,
            model=model,
            input_per_1m=input_rate,
            output_per_1m=output_rate
        ))

    if not records:
        raise FormatError(
            "No valid rows found. Check that Input $/1M and Output $/1M are numeric (like $1.25)."
        )

    catalog = PricingCatalog(sort_records(records))
    logger.info("pricing_catalog_loaded", records=len(catalog), dropped=len(lines) - 1 - len(records))
    return catalog


def load_pricing_file(path: Union[str, Path]) -> PricingCatalog:
    """Load a pricing catalog from a UTF-8 TSV file.

    Raises:
        FormatError: If the file does not exist or fails to parse
    """
    pricing_path = Path(path)
    if not pricing_path.exists():
        raise FormatError(
            f"Could not load {pricing_path}. Make sure the pricing file exists."
        )
    return load_pricing_table(pricing_path.read_text(encoding="utf-8-sig"))
