"""Decimal helpers for currency amounts (2 decimal places)."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Decimal | int | float | str) -> Decimal:
    """Convert a number to a Decimal rounded to cents.

    Floats go through ``str`` so 0.1 becomes Decimal("0.10"), not the binary
    expansion.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid currency format: {value!r}")
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid currency format: {value!r}") from e

    if not decimal_value.is_finite():
        raise ValueError(f"Invalid currency format: {value!r}")

    return decimal_value.quantize(CENTS, rounding=ROUND_HALF_UP)
