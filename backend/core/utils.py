from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

ZERO = Decimal("0")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def to_decimal_or_none(val) -> Optional[Decimal]:
    """Like d() but returns None for values that are not numbers."""
    if val is None or isinstance(val, bool):
        return None
    try:
        result = d(val)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not result.is_finite():
        return None
    return result


def group_thousands(amount) -> str:
    """Format a number with Indonesian grouping: 1234567.5 -> '1.234.567,5'."""
    value = d(amount).normalize()
    sign = "-" if value < 0 else ""
    text = format(abs(value), "f")
    whole, _, frac = text.partition(".")
    grouped = "{:,}".format(int(whole)).replace(",", ".")
    if frac:
        return f"{sign}{grouped},{frac}"
    return f"{sign}{grouped}"


def format_idr(amount) -> str:
    """Rupiah display string, whole rupiah: 'Rp 5.000.000' / '-Rp 1.500'."""
    value = d(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if value < 0:
        return f"-Rp {group_thousands(abs(value))}"
    return f"Rp {group_thousands(value)}"
