"""Physical cash count by denomination."""

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from cashdrawer.core.errors import InvalidAmount, ValidationError
from cashdrawer.utils.money import ZERO, to_money

DEFAULT_DENOMINATIONS = "2000,1000,500,100,50,25,10,5,1"


@dataclass(frozen=True)
class CashCountLine:
    denomination: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.denomination * self.quantity


@dataclass(frozen=True)
class CashCount:
    lines: tuple[CashCountLine, ...]

    @property
    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), ZERO)


def configured_denominations() -> tuple[Decimal, ...]:
    """Bill and coin values from CASH_DENOMINATIONS, largest first."""
    raw = os.getenv("CASH_DENOMINATIONS", DEFAULT_DENOMINATIONS)
    values = set()
    for part in raw.split(","):
        if not part.strip():
            continue
        try:
            value = to_money(part)
        except ValueError as e:
            raise ValueError(f"Invalid denomination in CASH_DENOMINATIONS: {part!r}") from e
        if value <= ZERO:
            raise ValueError(f"Denominations must be positive: {part!r}")
        values.add(value)
    return tuple(sorted(values, reverse=True))


def count_cash(
    counts: Mapping[str | int | Decimal, int],
    denominations: tuple[Decimal, ...] | None = None,
) -> CashCount:
    """Total a drawer count: sum of denomination value x quantity counted.

    Args:
        counts: Denomination -> quantity. Keys may be strings ("500"),
            ints or Decimals; missing denominations count as zero.
        denominations: Allowed values; defaults to configured_denominations()

    Raises:
        InvalidAmount: If a quantity is not a non-negative integer
        ValidationError: If a denomination is not in the allowed set
    """
    allowed = denominations if denominations is not None else configured_denominations()
    quantities: dict[Decimal, int] = {}

    for key, quantity in counts.items():
        try:
            denomination = to_money(key)
        except ValueError as e:
            raise ValidationError(
                f"Unknown denomination: {key}",
                details={"denomination": str(key)},
                code="UNKNOWN_DENOMINATION",
            ) from e
        if denomination not in allowed:
            raise ValidationError(
                f"Unknown denomination: {key}",
                details={"denomination": str(key), "allowed": [str(d) for d in allowed]},
                code="UNKNOWN_DENOMINATION",
            )
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 0:
            raise InvalidAmount(
                "Counted quantity must be a non-negative whole number",
                details={"denomination": str(denomination), "quantity": str(quantity)},
            )
        quantities[denomination] = quantities.get(denomination, 0) + quantity

    lines = tuple(CashCountLine(d, quantities.get(d, 0)) for d in allowed)
    return CashCount(lines=lines)
