"""Tests for amount and text validators."""

from decimal import Decimal

import pytest

from cashdrawer.core.errors import InvalidAmount, MissingReason
from cashdrawer.core.validators import (
    MAX_AMOUNT,
    sanitize_text,
    validate_currency,
    validate_reason,
)
from cashdrawer.utils.money import to_money


class TestValidateCurrency:
    """Test currency validation."""

    def test_rounds_to_cents(self):
        assert validate_currency("10.005") == Decimal("10.01")
        assert validate_currency(0.1) == Decimal("0.10")
        assert validate_currency(7) == Decimal("7.00")

    def test_zero_allowed_by_default(self):
        assert validate_currency("0") == Decimal("0.00")

    def test_zero_rejected_when_required_positive(self):
        with pytest.raises(InvalidAmount) as exc_info:
            validate_currency("0", field_name="amount", allow_zero=False)

        assert exc_info.value.code == "INVALID_AMOUNT"
        assert exc_info.value.details["field"] == "amount"

    @pytest.mark.parametrize("value", ["-0.01", "abc", "", "nan", "-inf", True])
    def test_rejects_invalid(self, value):
        with pytest.raises(InvalidAmount):
            validate_currency(value)

    def test_rejects_overflow(self):
        with pytest.raises(InvalidAmount):
            validate_currency(MAX_AMOUNT + Decimal("0.01"))

        assert validate_currency(MAX_AMOUNT) == MAX_AMOUNT


class TestTextValidators:
    def test_sanitize_strips_tags(self):
        assert sanitize_text("  <script>x</script> counted twice ") == "x counted twice"

    def test_sanitize_empty(self):
        assert sanitize_text(None) is None
        assert sanitize_text("   ") is None

    def test_reason_required(self):
        assert validate_reason(" bank run ") == "bank run"

        with pytest.raises(MissingReason) as exc_info:
            validate_reason("")

        assert exc_info.value.code == "MISSING_REASON"
        assert exc_info.value.status_code == 422


class TestMoneyHelpers:
    def test_to_money_half_up(self):
        assert to_money("2.675") == Decimal("2.68")
        assert to_money(Decimal("-2.675")) == Decimal("-2.68")
