# Overview: Money normalization on Decimal with half-up rounding to cents and to whole units.

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .errors import ValidationError


DEC_0 = Decimal("0.00")
MONEY_Q = Decimal("0.01")
UNIT_Q = Decimal("1")


def to_money(value, field: str = "amount") -> Decimal:
    """
    Normalize a monetary input to a 2-decimal Decimal.

    Floats go through str() so 0.1 stays 0.10. Booleans, blanks and
    non-numeric strings raise ValidationError.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} is required")

    if not isinstance(value, Decimal):
        if isinstance(value, str) and not value.strip():
            raise ValidationError(f"{field} is required")
        try:
            value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"{field} must be a number", details={field: value})

    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number", details={field: str(value)})

    return value.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def to_positive_money(value, field: str = "amount") -> Decimal:
    amount = to_money(value, field)
    if amount <= DEC_0:
        raise ValidationError(f"{field} must be greater than 0", details={field: str(amount)})
    return amount


def round_units(value: Decimal) -> Decimal:
    """Round half-up to whole currency units (CLP has no decimals)."""
    return Decimal(value).quantize(UNIT_Q, rounding=ROUND_HALF_UP)
