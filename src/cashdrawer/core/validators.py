"""Reusable validation utilities for amounts and free text."""

import re
from decimal import Decimal

from cashdrawer.core.errors import InvalidAmount, MissingReason
from cashdrawer.utils.money import ZERO, to_money

# NUMERIC(12, 2) upper bound
MAX_AMOUNT = Decimal("9999999999.99")


def validate_currency(
    value: Decimal | int | float | str,
    field_name: str = "amount",
    allow_zero: bool = True,
    max_value: Decimal = MAX_AMOUNT,
) -> Decimal:
    """
    Validate a currency amount and round it to cents.

    Args:
        value: Amount as entered (Decimal, int, float or numeric string)
        field_name: Name for error messages
        allow_zero: Accept 0.00 (opening float) or require > 0 (movements)
        max_value: Maximum allowed value, matching NUMERIC(12, 2)

    Returns:
        Decimal with exactly 2 decimal places

    Raises:
        InvalidAmount: If value is non-numeric, NaN/infinite, negative,
            zero when not allowed, or exceeds max
    """
    try:
        amount = to_money(value)
    except ValueError as e:
        raise InvalidAmount(
            f"{field_name} must be a number", details={"field": field_name, "value": str(value)}
        ) from e

    if amount < ZERO:
        raise InvalidAmount(
            f"{field_name} cannot be negative", details={"field": field_name, "value": str(amount)}
        )

    if amount == ZERO and not allow_zero:
        raise InvalidAmount(
            f"{field_name} must be greater than zero",
            details={"field": field_name, "value": str(amount)},
        )

    if amount > max_value:
        raise InvalidAmount(
            f"{field_name} exceeds maximum allowed: {max_value}",
            details={"field": field_name, "value": str(amount)},
        )

    return amount


def sanitize_text(value: str | None) -> str | None:
    """
    Strip HTML tags and surrounding whitespace.

    Args:
        value: Text that may contain HTML

    Returns:
        Cleaned text or None if nothing is left
    """
    if not value:
        return None

    cleaned = re.sub(r"<[^>]+>", "", value).strip()
    return cleaned if cleaned else None


def validate_reason(value: str | None) -> str:
    """Require a non-blank justification for a cash movement."""
    cleaned = sanitize_text(value)
    if cleaned is None:
        raise MissingReason()
    return cleaned
