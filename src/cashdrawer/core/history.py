"""Session history: read-only projections over closed sessions."""

import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import schema_guard
from cashdrawer.models.cash_session import CashSession
from cashdrawer.models.enums import ReconciliationOutcome, SessionStatus
from cashdrawer.utils.money import ZERO


@dataclass
class OperatorVariance:
    """Variance totals for the operator who closed the sessions."""

    operator_id: uuid.UUID
    operator_name: str | None
    sessions_closed: int = 0
    shortages: int = 0
    surpluses: int = 0
    balanced: int = 0
    net_difference: Decimal = ZERO
    total_shortage: Decimal = ZERO


async def list_session_history(
    db: AsyncSession,
    store_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
) -> list[CashSession]:
    """Closed sessions for a store, newest close first.

    Opener and closer are loaded with the rows so display names are
    available without further queries.
    """
    limit = max(1, min(limit, 500))
    offset = max(0, offset)

    stmt = (
        select(CashSession)
        .where(
            CashSession.store_id == store_id,
            CashSession.status == SessionStatus.CLOSED.value,
        )
        .order_by(CashSession.closed_at.desc(), CashSession.opened_at.desc())
        .offset(offset)
        .limit(limit)
    )
    with schema_guard("cash_sessions"):
        result = await db.execute(stmt)
    return list(result.scalars().all())


def summarize_variance_by_operator(sessions: Iterable[CashSession]) -> list[OperatorVariance]:
    """Group closed sessions by closing operator.

    Sorted by number of shortages, then by the size of the total shortage,
    so repeated shortfalls surface first.
    """
    by_operator: dict[uuid.UUID, OperatorVariance] = {}

    for session in sessions:
        if session.closed_by is None or session.difference is None:
            continue
        entry = by_operator.get(session.closed_by)
        if entry is None:
            entry = OperatorVariance(
                operator_id=session.closed_by,
                operator_name=session.closed_by_name,
            )
            by_operator[session.closed_by] = entry

        entry.sessions_closed += 1
        entry.net_difference += session.difference
        outcome = session.outcome
        if outcome == ReconciliationOutcome.SHORTAGE:
            entry.shortages += 1
            entry.total_shortage += -session.difference
        elif outcome == ReconciliationOutcome.SURPLUS:
            entry.surpluses += 1
        else:
            entry.balanced += 1

    return sorted(
        by_operator.values(),
        key=lambda v: (-v.shortages, -v.total_shortage, v.operator_name or ""),
    )
