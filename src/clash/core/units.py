"""
CLASH token unit helpers.

These helpers standardize 18-decimal CLASH amounts and provide base-unit
conversions without relying on floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_DOWN
from typing import Any

from clash.core.constants import PERCENT_X100_SCALE, TOKEN_DECIMALS, WEI_PER_TOKEN

_QUANTIZER = Decimal(f"1e-{TOKEN_DECIMALS}")


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError("Amount must be int, str, or Decimal")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(str(value))
    raise ValueError("Amount must be int, str, or Decimal")


def quantize_clash(value: Any) -> Decimal:
    """Convert to a Decimal CLASH amount with 18-decimal precision."""
    try:
        dec = _to_decimal(value)
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValueError(f"Invalid amount value: {value}") from exc

    if dec.is_nan():
        raise ValueError("Amount cannot be NaN")
    if dec.is_infinite():
        raise ValueError("Amount cannot be infinite")

    return dec.quantize(_QUANTIZER, rounding=ROUND_DOWN)


def to_base_units(value: Any) -> int:
    """Convert a whole-token CLASH amount to base units as int."""
    dec = quantize_clash(value)
    if dec < 0:
        raise ValueError("Amount cannot be negative")
    return int((dec * Decimal(WEI_PER_TOKEN)).to_integral_value(rounding=ROUND_DOWN))


def from_base_units(value: int) -> Decimal:
    """Convert base units int to a Decimal CLASH amount."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise ValueError("Base units must be an int")
    return (Decimal(value) / Decimal(WEI_PER_TOKEN)).quantize(_QUANTIZER, rounding=ROUND_DOWN)


def format_clash(value: int) -> str:
    """Format a base-unit amount as a human readable CLASH string."""
    amount = from_base_units(value).normalize()
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,f}"


def format_percent_x100(value: int) -> str:
    """Render a percentX100 value as a percentage string (e.g. 1400 -> '14.00%')."""
    whole, frac = divmod(value, PERCENT_X100_SCALE // 100)
    return f"{whole}.{frac:02d}%"
