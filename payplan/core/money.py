"""
Money helpers.

All amounts are Decimal and rounded to cents with ROUND_HALF_UP at every
step that produces a displayed value.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

CENT = Decimal("0.01")
ZERO = Decimal("0")


def to_cents(value) -> Decimal:
    """Round a Decimal-compatible value to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value) -> Optional[Decimal]:
    """
    Parse a loosely-typed amount.

    Returns None for anything that is not a finite number: None, empty
    strings, bools, garbage text, NaN and infinities. A leading '$' and
    thousands separators are tolerated.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip().replace("$", "").replace(",", "")
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None
    if not parsed.is_finite():
        return None
    return parsed


def coerce_amount(value) -> tuple[Decimal, bool]:
    """
    Parse an amount, treating anything unparseable as zero.

    Returns (amount, was_valid).
    """
    parsed = parse_amount(value)
    if parsed is None:
        return ZERO, False
    return parsed, True


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """part / whole as a percentage rounded to cents; 0 when whole is 0."""
    if whole == 0:
        return ZERO
    return to_cents(part / whole * 100)
