"""Pydantic schemas for cash movement requests and responses."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from cashdrawer.models.enums import MovementType


class MovementCreate(BaseModel):
    """Schema for recording a movement.

    amount is taken as sent (number or string) and reason as free text. The
    ledger validates both, so a bad value such as "abc", "NaN", 0 or a blank
    reason comes back as INVALID_AMOUNT / MISSING_REASON, not a generic 422.
    """

    store_id: UUID
    operator_id: UUID
    type: MovementType
    amount: Decimal | str
    reason: str = Field("", max_length=500)


class MovementRead(BaseModel):
    """Schema for reading a movement from the database."""

    id: UUID
    store_id: UUID
    type: MovementType
    amount: Decimal
    reason: str
    created_at: datetime
    created_by: UUID
    created_by_name: str | None = None

    model_config = ConfigDict(from_attributes=True)
