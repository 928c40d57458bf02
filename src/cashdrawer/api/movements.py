"""Cash movement endpoints (record, list)."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import get_db
from cashdrawer.core.ledger import list_movements, record_movement
from cashdrawer.models.cash_movement import CashMovement
from cashdrawer.models.schemas import MovementCreate, MovementRead
from cashdrawer.utils.datetime import to_naive_utc

router = APIRouter(prefix="/cash-movements", tags=["cash-movements"])


@router.post(
    "",
    response_model=MovementRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record a cash movement",
    description="Record a manual deposit or withdrawal while the register is open",
)
async def create_movement(
    payload: MovementCreate,
    db: AsyncSession = Depends(get_db),
) -> CashMovement:
    """
    Record a cash movement.

    Errors:
        422 INVALID_AMOUNT: amount is zero, negative or not a number
        422 MISSING_REASON: reason is blank
        409 NO_ACTIVE_SESSION: the store's register is not open
    """
    return await record_movement(
        db,
        store_id=payload.store_id,
        operator_id=payload.operator_id,
        type=payload.type,
        amount=payload.amount,
        reason=payload.reason,
    )


@router.get(
    "",
    response_model=list[MovementRead],
    status_code=status.HTTP_200_OK,
    summary="List movements for a time window",
)
async def list_store_movements(
    store_id: UUID,
    since: datetime = Query(..., description="Window start (inclusive)"),
    until: Optional[datetime] = Query(None, description="Window end (exclusive); default now"),
    db: AsyncSession = Depends(get_db),
) -> list[CashMovement]:
    """Movements with created_at in [since, until), oldest first."""
    return await list_movements(
        db,
        store_id,
        to_naive_utc(since),
        to_naive_utc(until) if until is not None else None,
    )
