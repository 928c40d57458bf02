"""Tests for the reconciliation engine (pure computation, no database)."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from cashdrawer.core.errors import ExternalFetchFailure
from cashdrawer.core.reconciliation import (
    classify_difference,
    compute_difference,
    in_window,
    normalize_payment_method,
    reconcile,
)
from cashdrawer.models.enums import ReconciliationOutcome

OPENED_AT = datetime(2026, 3, 2, 8, 0, 0)


def sale(minutes: int, total: str, method: str = "cash"):
    return SimpleNamespace(
        created_at=OPENED_AT + timedelta(minutes=minutes),
        total=Decimal(total),
        payment_method=method,
    )


def movement(minutes: int, type: str, amount: str):
    return SimpleNamespace(
        created_at=OPENED_AT + timedelta(minutes=minutes),
        type=type,
        amount=Decimal(amount),
    )


class TestShiftTotals:
    """Expected cash for a typical shift."""

    def test_cash_card_and_movements(self):
        """Float 1000, cash sale 500, card sale 300, deposit 200, withdrawal 100."""
        summary = reconcile(
            initial_cash=Decimal("1000"),
            window_start=OPENED_AT,
            sales=[sale(5, "500", "cash"), sale(10, "300", "card")],
            movements=[movement(15, "deposit", "200"), movement(20, "withdrawal", "100")],
        )

        assert summary.cash_sales == Decimal("500.00")
        assert summary.card_sales == Decimal("300.00")
        assert summary.deposits == Decimal("200.00")
        assert summary.withdrawals == Decimal("100.00")
        assert summary.expected_cash == Decimal("1600.00")
        assert summary.total_sales == Decimal("800.00")
        assert summary.sales_count == 2
        assert summary.movements_count == 2

    def test_counted_short_by_fifty(self):
        """Counting 1550 against 1600 expected is a 50 shortage."""
        difference = compute_difference(Decimal("1600"), Decimal("1550"))

        assert difference == Decimal("-50.00")
        assert classify_difference(difference) == ReconciliationOutcome.SHORTAGE

    def test_empty_shift_expects_the_float(self):
        summary = reconcile(
            initial_cash="250.5",
            window_start=OPENED_AT,
            sales=[],
            movements=[],
        )

        assert summary.expected_cash == Decimal("250.50")
        assert summary.cash_to_withdraw == Decimal("0.00")
        assert summary.sales_count == 0

    def test_balance_identity_holds(self):
        """expected = float + net cash sales + deposits - withdrawals."""
        summary = reconcile(
            initial_cash=Decimal("75.25"),
            window_start=OPENED_AT,
            sales=[
                sale(1, "19.99"),
                sale(2, "-4.50"),
                sale(3, "120.00", "transfer"),
                sale(4, "0.01"),
            ],
            movements=[movement(5, "deposit", "0.75"), movement(6, "withdrawal", "33.33")],
        )

        assert summary.expected_cash == (
            summary.initial_cash + summary.cash_sales + summary.deposits - summary.withdrawals
        )
        assert summary.expected_cash == Decimal("58.17")


class TestRefunds:
    """Negative sale totals are refunds."""

    def test_cash_refund_reduces_cash_bucket(self):
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            sales=[sale(1, "-50", "cash")],
            movements=[],
        )

        assert summary.cash_sales == Decimal("-50.00")
        assert summary.total_refunds == Decimal("50.00")
        assert summary.expected_cash == Decimal("50.00")

    def test_card_refund_leaves_cash_bucket_alone(self):
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            sales=[sale(1, "-50", "card")],
            movements=[],
        )

        assert summary.cash_sales == Decimal("0.00")
        assert summary.card_sales == Decimal("0.00")
        assert summary.total_refunds == Decimal("50.00")
        assert summary.expected_cash == Decimal("100.00")

    def test_zero_total_sale_counts_but_moves_nothing(self):
        summary = reconcile(
            initial_cash=Decimal("10"),
            window_start=OPENED_AT,
            sales=[sale(1, "0", "cash")],
            movements=[],
        )

        assert summary.sales_count == 1
        assert summary.total_refunds == Decimal("0.00")
        assert summary.expected_cash == Decimal("10.00")


class TestPaymentMethods:
    """Bucket assignment for payment methods."""

    @pytest.mark.parametrize(
        "method, bucket",
        [
            ("cash", "cash"),
            ("CASH ", "cash"),
            ("card", "card"),
            ("transfer", "transfer"),
            ("credit", "other"),
            ("voucher", "other"),
            ("", "other"),
            (None, "other"),
        ],
    )
    def test_normalize_payment_method(self, method, bucket):
        assert normalize_payment_method(method) == bucket

    def test_credit_sales_go_to_other(self):
        summary = reconcile(
            initial_cash=Decimal("0"),
            window_start=OPENED_AT,
            sales=[sale(1, "40", "credit"), sale(2, "60", "gift card")],
            movements=[],
        )

        assert summary.other_sales == Decimal("100.00")
        assert summary.cash_sales == Decimal("0.00")
        assert summary.expected_cash == Decimal("0.00")

    def test_mixed_case_cash_counts_toward_drawer(self):
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            sales=[sale(1, "40", "Cash"), sale(2, "25", " CARD")],
            movements=[],
        )

        assert summary.cash_sales == Decimal("40.00")
        assert summary.card_sales == Decimal("25.00")
        assert summary.other_sales == Decimal("0.00")
        assert summary.expected_cash == Decimal("140.00")


class TestWindow:
    """Records are attributed by created_at to [window_start, window_end)."""

    def test_in_window_is_half_open(self):
        end = OPENED_AT + timedelta(hours=8)

        assert in_window(OPENED_AT, OPENED_AT, end)
        assert not in_window(end, OPENED_AT, end)
        assert not in_window(OPENED_AT - timedelta(seconds=1), OPENED_AT, end)
        assert in_window(OPENED_AT + timedelta(days=30), OPENED_AT, None)

    def test_records_outside_window_are_ignored(self):
        end = OPENED_AT + timedelta(hours=1)
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            window_end=end,
            sales=[sale(-5, "999"), sale(30, "10"), sale(60, "888")],
            movements=[movement(-1, "deposit", "500"), movement(59, "withdrawal", "5")],
        )

        assert summary.sales_count == 1
        assert summary.movements_count == 1
        assert summary.expected_cash == Decimal("105.00")

    def test_arrival_order_does_not_matter(self):
        records = [sale(30, "10"), sale(5, "-2"), sale(15, "7", "card")]
        forward = reconcile(
            initial_cash=Decimal("1"), window_start=OPENED_AT, sales=records, movements=[]
        )
        backward = reconcile(
            initial_cash=Decimal("1"),
            window_start=OPENED_AT,
            sales=list(reversed(records)),
            movements=[],
        )

        assert forward == backward


class TestDeterminism:
    """Same inputs, same summary."""

    def test_repeated_calls_are_identical(self):
        sales = [sale(1, "12.34"), sale(2, "-1.00", "card")]
        movements = [movement(3, "deposit", "5")]

        first = reconcile(
            initial_cash=Decimal("20"), window_start=OPENED_AT, sales=sales, movements=movements
        )
        second = reconcile(
            initial_cash=Decimal("20"), window_start=OPENED_AT, sales=sales, movements=movements
        )

        assert first == second
        assert [s.total for s in sales] == [Decimal("12.34"), Decimal("-1.00")]

    def test_unknown_movement_type_is_rejected(self):
        with pytest.raises(ExternalFetchFailure):
            reconcile(
                initial_cash=Decimal("0"),
                window_start=OPENED_AT,
                sales=[],
                movements=[movement(1, "transfer", "5")],
            )


class TestCashToWithdraw:
    """Cash above the float that can be taken out of the drawer."""

    def test_excess_over_float(self):
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            sales=[sale(1, "340")],
            movements=[],
        )

        assert summary.cash_to_withdraw == Decimal("340.00")

    def test_never_negative(self):
        summary = reconcile(
            initial_cash=Decimal("100"),
            window_start=OPENED_AT,
            sales=[],
            movements=[movement(1, "withdrawal", "60")],
        )

        assert summary.expected_cash == Decimal("40.00")
        assert summary.cash_to_withdraw == Decimal("0.00")


class TestClassifyDifference:
    @pytest.mark.parametrize(
        "difference, outcome",
        [
            ("0", ReconciliationOutcome.BALANCED),
            ("0.001", ReconciliationOutcome.BALANCED),
            ("0.01", ReconciliationOutcome.SURPLUS),
            ("-0.01", ReconciliationOutcome.SHORTAGE),
        ],
    )
    def test_outcome(self, difference, outcome):
        assert classify_difference(difference) == outcome


class TestProducerTimestamps:
    """Sales and movements are stamped by other components."""

    def test_aware_timestamps_are_compared_as_utc(self):
        minus_three = timezone(timedelta(hours=-3))
        summary = reconcile(
            initial_cash=Decimal("0"),
            window_start=OPENED_AT,
            window_end=OPENED_AT + timedelta(hours=2),
            sales=[
                # 09:00 UTC, inside
                SimpleNamespace(
                    created_at=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
                    total=Decimal("10"),
                    payment_method="cash",
                ),
                # 06:30 at UTC-3 is 09:30 UTC, inside
                SimpleNamespace(
                    created_at=datetime(2026, 3, 2, 6, 30, tzinfo=minus_three),
                    total=Decimal("5"),
                    payment_method="cash",
                ),
                # 07:00 UTC, before the window
                SimpleNamespace(
                    created_at=datetime(2026, 3, 2, 7, 0, tzinfo=timezone.utc),
                    total=Decimal("99"),
                    payment_method="cash",
                ),
            ],
            movements=[movement(10, "deposit", "1")],
        )

        assert summary.sales_count == 2
        assert summary.expected_cash == Decimal("16.00")

    def test_aware_window_bounds(self):
        summary = reconcile(
            initial_cash=Decimal("0"),
            window_start=OPENED_AT.replace(tzinfo=timezone.utc),
            sales=[sale(1, "3")],
            movements=[],
        )

        assert summary.window_start == OPENED_AT
        assert summary.cash_sales == Decimal("3.00")


class TestMalformedRecords:
    """Unusable input aborts the reconciliation with a categorized error."""

    @pytest.mark.parametrize("total", [None, "n/a", "NaN"])
    def test_sale_without_numeric_total(self, total):
        bad = SimpleNamespace(
            created_at=OPENED_AT + timedelta(minutes=1), total=total, payment_method="cash"
        )

        with pytest.raises(ExternalFetchFailure) as exc_info:
            reconcile(initial_cash=Decimal("0"), window_start=OPENED_AT, sales=[bad], movements=[])

        assert exc_info.value.details == {"source": "sales"}
        assert exc_info.value.status_code == 502

    def test_sale_without_timestamp(self):
        bad = SimpleNamespace(created_at=None, total=Decimal("1"), payment_method="cash")

        with pytest.raises(ExternalFetchFailure):
            reconcile(initial_cash=Decimal("0"), window_start=OPENED_AT, sales=[bad], movements=[])

    def test_movement_without_numeric_amount(self):
        bad = SimpleNamespace(created_at=OPENED_AT, type="deposit", amount=None)

        with pytest.raises(ExternalFetchFailure) as exc_info:
            reconcile(initial_cash=Decimal("0"), window_start=OPENED_AT, sales=[], movements=[bad])

        assert exc_info.value.details == {"source": "cash_movements"}
