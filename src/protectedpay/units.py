"""
Native-currency unit conversion.

Amounts cross the package boundary as decimal strings ("0.25") and travel
on-chain as integer wei. Conversion is exact: parsing goes through
``Decimal`` and formatting through integer division, never through floats.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import ValidationError

DECIMALS = 18
WEI_PER_UNIT = 10**DECIMALS
UINT256_MAX = 2**256 - 1
UINT256_DIGITS = len(str(UINT256_MAX))


def parse_amount(amount: str) -> int:
    """
    Convert a decimal string in native units into integer wei.

    Args:
        amount: Non-negative decimal string with at most 18 fractional digits

    Returns:
        Amount in wei

    Raises:
        ValidationError: If the string is not a valid amount
    """
    text = str(amount).strip()
    if not text:
        raise ValidationError("Amount is required")
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValidationError(f"Invalid amount: {amount!r}") from None
    if not value.is_finite():
        raise ValidationError(f"Invalid amount: {amount!r}")
    if value < 0:
        raise ValidationError(f"Amount must not be negative: {amount!r}")

    # Decimal(text) is exact; arithmetic on it would round to the context
    # precision, so scale the digit tuple by hand. Trailing zeros are folded
    # into the exponent and its range checked before any power of ten is built.
    _, digits, exponent = value.as_tuple()
    coefficient_text = "".join(map(str, digits)).lstrip("0")
    if not coefficient_text:
        return 0
    stripped = coefficient_text.rstrip("0")
    exponent += len(coefficient_text) - len(stripped)
    if len(stripped) + exponent > UINT256_DIGITS:
        raise ValidationError(f"Amount is too large: {amount!r}")
    shift = exponent + DECIMALS
    if shift < 0:
        raise ValidationError(
            f"Amount has more than {DECIMALS} decimal places: {amount!r}"
        )
    wei = int(stripped) * 10**shift
    if wei > UINT256_MAX:
        raise ValidationError(f"Amount is too large: {amount!r}")
    return wei


def format_amount(wei: int) -> str:
    """
    Convert integer wei into a canonical decimal string.

    The result always carries a fractional part with trailing zeros removed:
    ``0 -> "0.0"``, ``10**18 -> "1.0"``, ``1 -> "0.000000000000000001"``.
    """
    wei = int(wei)
    sign = "-" if wei < 0 else ""
    whole, fraction = divmod(abs(wei), WEI_PER_UNIT)
    fraction_text = f"{fraction:0{DECIMALS}d}".rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_text}"


def parse_positive_amount(amount: str, label: str = "Amount") -> int:
    """Parse an amount that must be strictly greater than zero."""
    wei = parse_amount(amount)
    if wei == 0:
        raise ValidationError(f"{label} must be greater than zero")
    return wei


def ratio(numerator: str, denominator: str) -> float:
    """
    Display-only ratio of two decimal amounts, clamped to [0, 1].

    The division happens on integer wei; a zero denominator yields 0.0.
    """
    top = parse_amount(numerator)
    bottom = parse_amount(denominator)
    if bottom == 0:
        return 0.0
    if top >= bottom:
        return 1.0
    return top / bottom
