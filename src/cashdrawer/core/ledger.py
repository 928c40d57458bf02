"""Cash movement ledger: append-only manual deposits and withdrawals."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import schema_guard
from cashdrawer.core.errors import ValidationError
from cashdrawer.core.logging import get_logger
from cashdrawer.core.sessions import require_active_session, require_operator, require_store
from cashdrawer.core.validators import validate_currency, validate_reason
from cashdrawer.models.cash_movement import CashMovement
from cashdrawer.models.cash_session import CashSession
from cashdrawer.models.enums import MovementType
from cashdrawer.utils.datetime import now_utc

logger = get_logger(__name__)


def parse_movement_type(value: MovementType | str) -> MovementType:
    try:
        return MovementType(value.strip().lower() if isinstance(value, str) else value)
    except ValueError as e:
        raise ValidationError(
            f"Unknown movement type: {value}",
            details={"type": str(value), "allowed": [t.value for t in MovementType]},
            code="INVALID_MOVEMENT_TYPE",
        ) from e


async def record_movement(
    db: AsyncSession,
    store_id: uuid.UUID,
    operator_id: uuid.UUID,
    type: MovementType | str,
    amount: Decimal | int | float | str,
    reason: str | None,
) -> CashMovement:
    """Record a manual deposit or withdrawal for a store's drawer.

    Input is validated before any I/O. No running balance is kept: the
    reconciliation engine recomputes totals from the ledger on demand.

    Raises:
        InvalidAmount: amount is not a number > 0
        MissingReason: reason is blank
        ValidationError: unknown movement type
        NoActiveSession: the store's register is not open
    """
    movement_type = parse_movement_type(type)
    checked_amount = validate_currency(amount, field_name="amount", allow_zero=False)
    checked_reason = validate_reason(reason)

    await require_store(db, store_id)
    await require_operator(db, operator_id)
    active = await require_active_session(db, store_id)

    movement = CashMovement(
        store_id=store_id,
        type=movement_type.value,
        amount=checked_amount,
        reason=checked_reason,
        created_by=operator_id,
        created_at=now_utc(),
    )
    db.add(movement)
    with schema_guard("cash_movements"):
        await db.flush()
        await db.refresh(movement, ["creator"])

    logger.info(
        "movement.recorded",
        movement_id=str(movement.id),
        store_id=str(store_id),
        session_id=str(active.id),
        type=movement_type.value,
        amount=str(checked_amount),
        created_by=str(operator_id),
    )

    return movement


async def list_movements(
    db: AsyncSession,
    store_id: uuid.UUID,
    since: datetime,
    until: datetime | None = None,
) -> list[CashMovement]:
    """Movements with created_at in [since, until), oldest first.

    until=None leaves the window open-ended, which is "up to now" for the
    active session.
    """
    stmt = select(CashMovement).where(
        CashMovement.store_id == store_id,
        CashMovement.created_at >= since,
    )
    if until is not None:
        stmt = stmt.where(CashMovement.created_at < until)
    stmt = stmt.order_by(CashMovement.created_at.asc(), CashMovement.id.asc())

    with schema_guard("cash_movements"):
        result = await db.execute(stmt)
    return list(result.scalars().all())


async def list_movements_for_session(db: AsyncSession, session: CashSession) -> list[CashMovement]:
    """Movements attributed to a session by its time window."""
    return await list_movements(db, session.store_id, session.opened_at, session.closed_at)
