"""Pydantic schemas for CashSession API."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from cashdrawer.core.validators import sanitize_text
from cashdrawer.models.enums import ReconciliationOutcome


class CashSessionOpen(BaseModel):
    """Schema for opening a register.

    initial_cash is accepted as a number or string and checked by the
    lifecycle manager, so non-numeric, NaN and negative values all get the
    INVALID_AMOUNT error code rather than a generic 422.
    """

    store_id: UUID
    operator_id: UUID
    initial_cash: Decimal | str


class CashSessionClose(BaseModel):
    """Schema for closing a register with a physical count."""

    operator_id: UUID
    actual_cash: Decimal | str | None = Field(
        None, description="Counted cash; omit when sending a denomination count"
    )
    counts: dict[str, int] | None = Field(
        None, description="Denomination value -> quantity counted"
    )
    notes: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def require_count(self) -> "CashSessionClose":
        if self.actual_cash is None and not self.counts:
            raise ValueError("Either actual_cash or counts is required")
        return self

    @field_validator("notes")
    @classmethod
    def validate_notes(cls, v: str | None) -> str | None:
        """Sanitize notes field."""
        return sanitize_text(v)


class CashSessionRead(BaseModel):
    """Schema for reading a cash session from the database."""

    id: UUID
    store_id: UUID
    status: str

    opened_by: UUID
    opened_by_name: str | None = None
    opened_at: datetime
    closed_by: UUID | None = None
    closed_by_name: str | None = None
    closed_at: datetime | None = None

    initial_cash: Decimal

    # Closing snapshot
    total_sales_cash: Decimal | None = None
    total_sales_card: Decimal | None = None
    total_sales_transfer: Decimal | None = None
    total_sales_other: Decimal | None = None
    total_refunds: Decimal | None = None
    total_cash_in: Decimal | None = None
    total_cash_out: Decimal | None = None
    expected_cash: Decimal | None = None
    actual_cash: Decimal | None = None
    difference: Decimal | None = None
    sales_count: int | None = None
    notes: str | None = None

    outcome: ReconciliationOutcome | None = None

    model_config = ConfigDict(from_attributes=True)


class SessionHistoryRow(BaseModel):
    """One closed session as shown to managers."""

    id: UUID
    opened_at: datetime
    closed_at: datetime | None
    opened_by_name: str | None
    closed_by_name: str | None
    initial_cash: Decimal
    expected_cash: Decimal | None
    actual_cash: Decimal | None
    difference: Decimal | None
    outcome: ReconciliationOutcome | None
    notes: str | None = None

    model_config = ConfigDict(from_attributes=True)


class OperatorVarianceRead(BaseModel):
    """Per-operator variance totals across closed sessions."""

    operator_id: UUID
    operator_name: str | None
    sessions_closed: int
    shortages: int
    surpluses: int
    balanced: int
    net_difference: Decimal
    total_shortage: Decimal

    model_config = ConfigDict(from_attributes=True)


class ReconciliationRead(BaseModel):
    """Live reconciliation figures for a session window."""

    session_id: UUID
    window_start: datetime
    window_end: datetime | None
    initial_cash: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    transfer_sales: Decimal
    other_sales: Decimal
    total_sales: Decimal
    total_refunds: Decimal
    deposits: Decimal
    withdrawals: Decimal
    expected_cash: Decimal
    cash_to_withdraw: Decimal
    sales_count: int
    movements_count: int


class CashCountRequest(BaseModel):
    """Denomination breakdown of a physical count."""

    counts: dict[str, int]


class CashCountLineRead(BaseModel):
    denomination: Decimal
    quantity: int
    subtotal: Decimal


class CashCountRead(BaseModel):
    total: Decimal
    lines: list[CashCountLineRead]


class AuditLogRead(BaseModel):
    """Audit trail entry."""

    id: UUID
    session_id: UUID
    action: str
    changed_by: UUID
    changed_at: datetime
    values: dict
    reason: str | None = None

    model_config = ConfigDict(from_attributes=True)
