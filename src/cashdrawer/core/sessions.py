"""Session lifecycle manager: open, look up and close cash sessions.

State machine per store: (none) -> open -> closed. Closed is terminal; a new
shift always inserts a new row.

The "active session" is never cached. Every caller re-queries, so several
terminals sharing a store always agree on whether the register is open.
"""

import uuid
from decimal import Decimal
from typing import NoReturn

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.audit import log_session_event
from cashdrawer.core.db import schema_guard
from cashdrawer.core.errors import (
    ActiveSessionExists,
    NoActiveSession,
    NotFoundError,
    SessionNotOpen,
)
from cashdrawer.core.logging import get_logger
from cashdrawer.core.reconciliation import (
    ReconciliationSummary,
    classify_difference,
    compute_difference,
)
from cashdrawer.core.validators import sanitize_text, validate_currency
from cashdrawer.models.cash_session import CashSession
from cashdrawer.models.enums import AuditAction, SessionStatus
from cashdrawer.models.store import Store
from cashdrawer.models.user import User
from cashdrawer.utils.datetime import now_utc

logger = get_logger(__name__)


async def require_store(db: AsyncSession, store_id: uuid.UUID) -> Store:
    with schema_guard("stores"):
        store = await db.get(Store, store_id)
    if store is None:
        raise NotFoundError("Store", str(store_id))
    return store


async def require_operator(db: AsyncSession, operator_id: uuid.UUID) -> User:
    with schema_guard("users"):
        operator = await db.get(User, operator_id)
    if operator is None:
        raise NotFoundError("User", str(operator_id))
    return operator


async def get_session(db: AsyncSession, session_id: uuid.UUID) -> CashSession:
    """Load a session fresh from the database (opener/closer included)."""
    stmt = (
        select(CashSession)
        .where(CashSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    with schema_guard("cash_sessions"):
        result = await db.execute(stmt)
    session = result.scalar_one_or_none()
    if session is None:
        raise NotFoundError("CashSession", str(session_id))
    return session


async def get_active_session(db: AsyncSession, store_id: uuid.UUID) -> CashSession | None:
    """Return the open session for a store, or None.

    The unique index allows at most one open row; ordering by opened_at keeps
    the answer deterministic on databases restored without it.
    """
    stmt = (
        select(CashSession)
        .where(
            CashSession.store_id == store_id,
            CashSession.status == SessionStatus.OPEN.value,
        )
        .order_by(CashSession.opened_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    with schema_guard("cash_sessions"):
        result = await db.execute(stmt)
    return result.scalars().first()


async def require_active_session(db: AsyncSession, store_id: uuid.UUID) -> CashSession:
    """Gate for shift-scoped operations (checkout, movements, reconciliation)."""
    session = await get_active_session(db, store_id)
    if session is None:
        raise NoActiveSession(str(store_id))
    return session


async def open_session(
    db: AsyncSession,
    store_id: uuid.UUID,
    operator_id: uuid.UUID,
    initial_cash: Decimal | int | float | str,
) -> CashSession:
    """Open the register for a shift with a declared float.

    Raises:
        InvalidAmount: initial_cash is not a number >= 0
        NotFoundError: unknown store or operator
        ActiveSessionExists: the store already has an open session, whether
            seen by the pre-check or rejected by the unique index
    """
    float_amount = validate_currency(initial_cash, field_name="initial_cash")

    await require_store(db, store_id)
    await require_operator(db, operator_id)

    existing = await get_active_session(db, store_id)
    if existing is not None:
        logger.warning(
            "session.open_conflict",
            store_id=str(store_id),
            active_session_id=str(existing.id),
        )
        raise ActiveSessionExists(str(store_id), str(existing.id))

    new_session = CashSession(
        store_id=store_id,
        opened_by=operator_id,
        opened_at=now_utc(),
        initial_cash=float_amount,
        status=SessionStatus.OPEN.value,
    )
    db.add(new_session)

    # The partial unique index decides races between terminals
    try:
        with schema_guard("cash_sessions"):
            await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        logger.warning(
            "session.open_conflict",
            store_id=str(store_id),
            error=type(exc).__name__,
        )
        raise ActiveSessionExists(str(store_id)) from exc

    log_session_event(
        db,
        new_session,
        AuditAction.OPEN,
        changed_by=operator_id,
        values={"initial_cash": float_amount, "opened_at": new_session.opened_at},
    )
    with schema_guard("cash_session_audit_logs"):
        await db.flush()

    logger.info(
        "session.opened",
        session_id=str(new_session.id),
        store_id=str(store_id),
        opened_by=str(operator_id),
        initial_cash=str(float_amount),
    )

    return await get_session(db, new_session.id)


async def close_session(
    db: AsyncSession,
    session_id: uuid.UUID,
    *,
    closed_by: uuid.UUID,
    summary: ReconciliationSummary,
    actual_cash: Decimal | int | float | str,
    notes: str | None = None,
) -> CashSession:
    """Persist the closing snapshot and flip the session to closed.

    The update only matches while status is still open, so a second close
    (or a concurrent one) changes nothing and raises SessionNotOpen.
    closed_at is the end of the reconciled window.

    Raises:
        InvalidAmount: actual_cash is not a number >= 0
        SessionNotOpen: session missing or already closed
    """
    counted = validate_currency(actual_cash, field_name="actual_cash")
    difference = compute_difference(summary.expected_cash, counted)
    closed_at = summary.window_end or now_utc()
    cleaned_notes = sanitize_text(notes)

    values = {
        **summary.snapshot(),
        "actual_cash": counted,
        "difference": difference,
        "notes": cleaned_notes,
        "closed_by": closed_by,
        "closed_at": closed_at,
        "status": SessionStatus.CLOSED.value,
    }

    stmt = (
        update(CashSession)
        .where(
            CashSession.id == session_id,
            CashSession.status == SessionStatus.OPEN.value,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    with schema_guard("cash_sessions"):
        result = await db.execute(stmt)

    if result.rowcount != 1:
        await _raise_not_open(db, session_id)

    session = await get_session(db, session_id)
    outcome = classify_difference(difference)

    log_session_event(
        db,
        session,
        AuditAction.CLOSE,
        changed_by=closed_by,
        values={k: v for k, v in values.items() if k not in ("status", "closed_by", "notes")},
        reason=cleaned_notes,
    )
    with schema_guard("cash_session_audit_logs"):
        await db.flush()

    logger.info(
        "session.closed",
        session_id=str(session_id),
        store_id=str(session.store_id),
        closed_by=str(closed_by),
        expected_cash=str(summary.expected_cash),
        actual_cash=str(counted),
        difference=str(difference),
        outcome=outcome.value,
    )

    return session


async def _raise_not_open(db: AsyncSession, session_id: uuid.UUID) -> NoReturn:
    """Raise SessionNotOpen with whatever is known about the stored row."""
    stmt = select(CashSession.status, CashSession.closed_at).where(CashSession.id == session_id)
    with schema_guard("cash_sessions"):
        row = (await db.execute(stmt)).first()

    details: dict = {"exists": row is not None}
    if row is not None:
        details["status"] = row.status
        details["closed_at"] = row.closed_at.isoformat() if row.closed_at else None

    logger.warning("session.close_rejected", session_id=str(session_id), **details)
    raise SessionNotOpen(str(session_id), details=details)


async def ensure_open(db: AsyncSession, session_id: uuid.UUID) -> CashSession:
    """Load a session that is about to be closed."""
    stmt = (
        select(CashSession)
        .where(CashSession.id == session_id)
        .execution_options(populate_existing=True)
    )
    with schema_guard("cash_sessions"):
        session = (await db.execute(stmt)).scalar_one_or_none()
    if session is None or not session.is_open:
        await _raise_not_open(db, session_id)
    return session
