"""Lossless conversion between native integer units and denominations.

Native amounts are integer strings in an asset's smallest unit (satoshi, wei).
Denominations are human-readable decimal strings. All arithmetic uses
Decimal with a local context wide enough for 256-bit amounts, never floats.
"""

from decimal import ROUND_DOWN, Context, Decimal, localcontext
from typing import Union

from swapquote.models import Asset

NumberLike = Union[str, int, Decimal]

# Enough digits for uint256 values plus 36 fractional places
_CONTEXT = Context(prec=120, rounding=ROUND_DOWN)


def native_to_int(native_amount: NumberLike) -> int:
    """Parse a native amount into an int."""
    if isinstance(native_amount, int):
        return native_amount
    return int(str(native_amount).strip())


def _format(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros."""
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")


def to_denomination(native_amount: NumberLike, asset: Asset) -> str:
    """Convert a native amount to a denomination string.

    Args:
        native_amount: Non-negative integer amount in the asset's smallest unit
        asset: Asset providing the decimal-place count

    Returns:
        Exact decimal string, e.g. "100000000" with 8 decimals -> "1"
    """
    amount = native_to_int(native_amount)
    if amount < 0:
        raise ValueError(f"native amount must not be negative, got {amount}")

    with localcontext(_CONTEXT):
        return _format(Decimal(amount).scaleb(-asset.decimals))


def to_native(decimal_amount: NumberLike, asset: Asset) -> str:
    """Convert a denomination to a native amount, flooring toward zero.

    Never rounds up, so a spend built from the result cannot exceed what
    was quoted: "1.005" with 2 decimals -> "100".
    """
    with localcontext(_CONTEXT):
        amount = Decimal(str(decimal_amount).strip())
        if amount < 0:
            raise ValueError(f"denomination amount must not be negative, got {amount}")
        scaled = amount.scaleb(asset.decimals)
        return str(int(scaled.to_integral_value(rounding=ROUND_DOWN)))


def floor_native(value: NumberLike) -> str:
    """Drop any fractional part of a native amount string ("123.9" -> "123")."""
    with localcontext(_CONTEXT):
        return str(int(Decimal(str(value)).to_integral_value(rounding=ROUND_DOWN)))


def scale_by_rate(
    native_amount: NumberLike,
    from_asset: Asset,
    to_asset: Asset,
    rate: NumberLike,
) -> str:
    """Convert a native amount of one asset into another at a given rate.

    The rate is quoted in denominations (to units per from unit). The
    result is floored to whole native units of to_asset.
    """
    with localcontext(_CONTEXT):
        from_denom = Decimal(native_to_int(native_amount)).scaleb(-from_asset.decimals)
        to_denom = from_denom * Decimal(str(rate))
        return to_native(to_denom, to_asset)
