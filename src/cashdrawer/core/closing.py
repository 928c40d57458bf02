"""Shift close-out: fetch the session window, reconcile, persist.

Glue between the sale source, the ledger, the reconciliation engine and the
lifecycle manager. A fetch failure aborts the whole operation; a summary is
never built from partial data.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.cash_count import count_cash
from cashdrawer.core.errors import AppError, ExternalFetchFailure, InvalidAmount, ValidationError
from cashdrawer.core.ledger import list_movements
from cashdrawer.core.logging import get_logger
from cashdrawer.core.reconciliation import ReconciliationSummary, reconcile
from cashdrawer.core.sales import SaleSource, SqlSaleSource
from cashdrawer.core.sessions import close_session, ensure_open, require_operator
from cashdrawer.core.validators import validate_currency
from cashdrawer.models.cash_session import CashSession
from cashdrawer.utils.datetime import now_utc

logger = get_logger(__name__)


async def reconcile_session(
    db: AsyncSession,
    session: CashSession,
    sale_source: SaleSource,
    until: datetime | None = None,
) -> ReconciliationSummary:
    """Reconcile a session over its window.

    Open sessions use [opened_at, until or now); closed sessions always use
    their stored [opened_at, closed_at).

    Raises:
        ExternalFetchFailure: sales or movements could not be read
        SchemaUnavailable: the tables are missing
    """
    if session.is_open:
        window_end = until or now_utc()
    else:
        window_end = session.closed_at

    try:
        sales = await sale_source.list_sales(session.store_id, session.opened_at, window_end)
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "reconciliation.fetch_failed",
            session_id=str(session.id),
            source="sales",
            error=type(exc).__name__,
        )
        raise ExternalFetchFailure("sales") from exc

    try:
        movements = await list_movements(db, session.store_id, session.opened_at, window_end)
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "reconciliation.fetch_failed",
            session_id=str(session.id),
            source="cash_movements",
            error=type(exc).__name__,
        )
        raise ExternalFetchFailure("cash_movements") from exc

    summary = reconcile(
        initial_cash=session.initial_cash,
        window_start=session.opened_at,
        window_end=window_end,
        sales=sales,
        movements=movements,
    )

    logger.info(
        "reconciliation.computed",
        session_id=str(session.id),
        sales_count=summary.sales_count,
        movements_count=summary.movements_count,
        expected_cash=str(summary.expected_cash),
    )
    return summary


def resolve_actual_cash(
    actual_cash: Decimal | int | float | str | None,
    counts: Mapping[str, int] | None,
) -> Decimal:
    """Counted cash from a typed total, a denomination count, or both.

    When both are given they must agree to the cent.
    """
    counted_total = count_cash(counts).total if counts else None

    if actual_cash is None:
        if counted_total is None:
            raise InvalidAmount("actual_cash is required to close the register")
        return validate_currency(counted_total, field_name="actual_cash")

    typed = validate_currency(actual_cash, field_name="actual_cash")
    if counted_total is not None and counted_total != typed:
        raise ValidationError(
            "actual_cash does not match the denomination count",
            details={"actual_cash": str(typed), "counted_total": str(counted_total)},
            code="COUNT_MISMATCH",
        )
    return typed


async def close_shift(
    db: AsyncSession,
    session_id: uuid.UUID,
    *,
    closed_by: uuid.UUID,
    sale_source: SaleSource | None = None,
    actual_cash: Decimal | int | float | str | None = None,
    counts: Mapping[str, int] | None = None,
    notes: str | None = None,
) -> CashSession:
    """Reconcile the session up to now and close it with the operator's count.

    Raises:
        SessionNotOpen: session missing or already closed
        InvalidAmount: no usable count was supplied
        ExternalFetchFailure: sales or movements could not be read
    """
    session = await ensure_open(db, session_id)
    counted = resolve_actual_cash(actual_cash, counts)
    await require_operator(db, closed_by)

    source = sale_source if sale_source is not None else SqlSaleSource(db)
    summary = await reconcile_session(db, session, source, until=now_utc())

    return await close_session(
        db,
        session_id,
        closed_by=closed_by,
        summary=summary,
        actual_cash=counted,
        notes=notes,
    )
