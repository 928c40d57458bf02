"""Reconciliation engine: expected cash for a session window.

Pure functions over already-fetched sales and movements. Nothing here reads
the database or keeps state, so the same inputs always give the same summary.

Sales arrive from checkout terminals and movements from the ledger, each
stamped by its producer. Records are filtered to the window and sorted by
created_at here instead of trusting arrival order.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Protocol, Sequence

from cashdrawer.core.errors import ExternalFetchFailure
from cashdrawer.models.enums import MovementType, PaymentMethod, ReconciliationOutcome
from cashdrawer.utils.datetime import to_naive_utc
from cashdrawer.utils.money import ZERO, to_money


class SaleLike(Protocol):
    created_at: datetime
    total: Any
    payment_method: str


class MovementLike(Protocol):
    created_at: datetime
    type: str
    amount: Any


@dataclass(frozen=True)
class ReconciliationSummary:
    """Financial summary of one session window.

    cash_sales is net of cash refunds and can be negative. cash_to_withdraw
    is informational only and is not persisted on close.
    """

    window_start: datetime
    window_end: datetime | None
    initial_cash: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    transfer_sales: Decimal
    other_sales: Decimal
    total_refunds: Decimal
    deposits: Decimal
    withdrawals: Decimal
    expected_cash: Decimal
    cash_to_withdraw: Decimal
    sales_count: int
    movements_count: int

    @property
    def total_sales(self) -> Decimal:
        return self.cash_sales + self.card_sales + self.transfer_sales + self.other_sales

    def snapshot(self) -> dict[str, Decimal | int]:
        """Columns written to CashSession on close."""
        return {
            "total_sales_cash": self.cash_sales,
            "total_sales_card": self.card_sales,
            "total_sales_transfer": self.transfer_sales,
            "total_sales_other": self.other_sales,
            "total_refunds": self.total_refunds,
            "total_cash_in": self.deposits,
            "total_cash_out": self.withdrawals,
            "expected_cash": self.expected_cash,
            "sales_count": self.sales_count,
        }


def in_window(created_at: datetime, start: datetime, end: datetime | None) -> bool:
    """Half-open window membership: start <= created_at < end."""
    if created_at < start:
        return False
    return end is None or created_at < end


def _windowed(
    records: Iterable[Any], start: datetime, end: datetime | None, source: str
) -> list[Any]:
    """Records inside the window, oldest first.

    Producers may stamp aware datetimes; everything is compared as naive UTC.
    """
    stamped = []
    for record in records:
        created_at = record.created_at
        if not isinstance(created_at, datetime):
            raise ExternalFetchFailure(
                source, message=f"Unusable {source} record: created_at={created_at!r}"
            )
        stamped.append((to_naive_utc(created_at), record))

    selected = [(ts, r) for ts, r in stamped if in_window(ts, start, end)]
    selected.sort(key=lambda pair: pair[0])
    return [r for _, r in selected]


def _record_amount(value: Any, source: str) -> Decimal:
    try:
        return to_money(value)
    except ValueError as e:
        raise ExternalFetchFailure(
            source, message=f"Unusable {source} record: amount={value!r}"
        ) from e


def normalize_payment_method(method: str | None) -> str:
    """Map a checkout payment method onto a bucket name.

    cash, card and transfer have their own buckets; credit and anything
    unrecognized land in "other".
    """
    value = (method or "").strip().lower()
    if value in (PaymentMethod.CASH.value, PaymentMethod.CARD.value, PaymentMethod.TRANSFER.value):
        return value
    return "other"


def reconcile(
    *,
    initial_cash: Decimal | int | float | str,
    window_start: datetime,
    sales: Sequence[SaleLike],
    movements: Sequence[MovementLike],
    window_end: datetime | None = None,
) -> ReconciliationSummary:
    """Compute expected cash for a session window.

    A sale with a negative total is a refund: its absolute value goes to
    total_refunds and, for cash refunds only, comes out of the cash bucket.

    expected_cash = initial_cash + cash bucket + deposits - withdrawals

    Raises:
        ExternalFetchFailure: a record is malformed; no summary is built
            from partial data
    """
    float_amount = to_money(initial_cash)
    window_start = to_naive_utc(window_start)
    window_end = to_naive_utc(window_end) if window_end is not None else None
    window_sales = _windowed(sales, window_start, window_end, "sales")
    window_movements = _windowed(movements, window_start, window_end, "cash_movements")

    buckets = {"cash": ZERO, "card": ZERO, "transfer": ZERO, "other": ZERO}
    total_refunds = ZERO

    for sale in window_sales:
        amount = _record_amount(sale.total, "sales")
        bucket = normalize_payment_method(sale.payment_method)
        if amount < ZERO:
            refund = -amount
            total_refunds += refund
            if bucket == "cash":
                buckets["cash"] -= refund
        else:
            buckets[bucket] += amount

    deposits = ZERO
    withdrawals = ZERO
    for movement in window_movements:
        amount = _record_amount(movement.amount, "cash_movements")
        if movement.type == MovementType.DEPOSIT.value:
            deposits += amount
        elif movement.type == MovementType.WITHDRAWAL.value:
            withdrawals += amount
        else:
            raise ExternalFetchFailure(
                "cash_movements", message=f"Unknown movement type: {movement.type!r}"
            )

    expected_cash = float_amount + buckets["cash"] + deposits - withdrawals
    cash_to_withdraw = max(ZERO, expected_cash - float_amount)

    return ReconciliationSummary(
        window_start=window_start,
        window_end=window_end,
        initial_cash=float_amount,
        cash_sales=buckets["cash"],
        card_sales=buckets["card"],
        transfer_sales=buckets["transfer"],
        other_sales=buckets["other"],
        total_refunds=total_refunds,
        deposits=deposits,
        withdrawals=withdrawals,
        expected_cash=expected_cash,
        cash_to_withdraw=cash_to_withdraw,
        sales_count=len(window_sales),
        movements_count=len(window_movements),
    )


def compute_difference(
    expected_cash: Decimal | int | float | str,
    actual_cash: Decimal | int | float | str,
) -> Decimal:
    """Variance of the physical count: actual - expected."""
    return to_money(actual_cash) - to_money(expected_cash)


def classify_difference(difference: Decimal | int | float | str) -> ReconciliationOutcome:
    amount = to_money(difference)
    if amount > ZERO:
        return ReconciliationOutcome.SURPLUS
    if amount < ZERO:
        return ReconciliationOutcome.SHORTAGE
    return ReconciliationOutcome.BALANCED
