"""
Token volumes and raw input sanitization.

Turns free-form token and percentage text into usable numbers.
"""

import math
import re
from dataclasses import dataclass

_NON_DIGITS = re.compile(r"[^\d]")


@dataclass(frozen=True)
class TokenUsage:
    """Monthly token volume used for cost estimation."""
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens (input + output)."""
        return self.input_tokens + self.output_tokens


def sanitize_token_count(raw: str) -> int:
    """Strip every non-digit character and parse what is left.

    "1,000,000 tokens" becomes 1000000. Text with no digits, or digits
    too large to hold as a float, becomes 0; token counts are never
    rejected.
    """
    digits = _NON_DIGITS.sub("", str(raw or ""))
    if not digits:
        return 0
    try:
        count = int(digits)
        float(count)
    except (ValueError, OverflowError):
        return 0
    return count


def sanitize_number(raw: str) -> float:
    """Parse a number with optional thousands separators.

    Returns:
        The parsed value, or 0.0 if it is not a finite non-negative number
    """
    cleaned = str(raw or "").replace(",", "").strip()
    if not cleaned:
        return 0.0
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def clamp_discount_percent(raw: str) -> float:
    """Sanitize a discount percentage into [0, 100]."""
    return min(100.0, sanitize_number(raw))


def format_with_commas(raw: str) -> str:
    """Reformat the digits of raw with thousands separators.

    Returns an empty string when raw contains no digits.
    """
    digits = _NON_DIGITS.sub("", str(raw or ""))
    if not digits:
        return ""
    try:
        return f"{int(digits):,}"
    except ValueError:
        # Longer than the interpreter's int conversion limit
        return digits
