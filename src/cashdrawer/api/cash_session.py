"""CashSession endpoints (open, active, detail, reconcile, close, audit)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.audit import list_session_audit
from cashdrawer.core.cash_count import configured_denominations, count_cash
from cashdrawer.core.closing import close_shift, reconcile_session
from cashdrawer.core.db import get_db
from cashdrawer.core.sales import SaleSource, SqlSaleSource
from cashdrawer.core.sessions import get_active_session, get_session, open_session
from cashdrawer.models import CashSessionClose, CashSessionOpen, CashSessionRead, ReconciliationRead
from cashdrawer.models.cash_session_schemas import (
    AuditLogRead,
    CashCountLineRead,
    CashCountRead,
    CashCountRequest,
)


router = APIRouter(prefix="/cash-sessions", tags=["cash-sessions"])


async def get_sale_source(db: AsyncSession = Depends(get_db)) -> SaleSource:
    """Sales come from the shared checkout table unless overridden."""
    return SqlSaleSource(db)


@router.post("", response_model=CashSessionRead, status_code=status.HTTP_201_CREATED)
async def open_register(
    payload: CashSessionOpen,
    db: AsyncSession = Depends(get_db),
):
    """Open a new cash session (shift) for a store.

    409 ACTIVE_SESSION_EXISTS when the store's register is already open.
    """
    return await open_session(db, payload.store_id, payload.operator_id, payload.initial_cash)


@router.get("/active", response_model=CashSessionRead | None)
async def active_session(
    store_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """The store's open session, or null.

    Checkout must block sales and prompt to open the register on null.
    """
    return await get_active_session(db, store_id)


@router.get("/denominations", response_model=list[str])
async def list_denominations():
    """Bill and coin values accepted by the cash count."""
    return [str(d) for d in configured_denominations()]


@router.post("/cash-count", response_model=CashCountRead)
async def cash_count(payload: CashCountRequest):
    """Total a denomination count without touching any session."""
    count = count_cash(payload.counts)
    return CashCountRead(
        total=count.total,
        lines=[
            CashCountLineRead(
                denomination=line.denomination,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for line in count.lines
        ],
    )


@router.get("/{session_id}", response_model=CashSessionRead)
async def session_detail(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get cash session details, including the stored closing snapshot."""
    return await get_session(db, session_id)


@router.get("/{session_id}/reconciliation", response_model=ReconciliationRead)
async def reconciliation_preview(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
    sale_source: SaleSource = Depends(get_sale_source),
):
    """Expected cash for the session window, computed from live data.

    For an open session the window runs to now; for a closed one it is the
    stored [opened_at, closed_at).
    """
    session = await get_session(db, session_id)
    summary = await reconcile_session(db, session, sale_source)
    return ReconciliationRead(
        session_id=session.id,
        window_start=summary.window_start,
        window_end=summary.window_end,
        initial_cash=summary.initial_cash,
        cash_sales=summary.cash_sales,
        card_sales=summary.card_sales,
        transfer_sales=summary.transfer_sales,
        other_sales=summary.other_sales,
        total_sales=summary.total_sales,
        total_refunds=summary.total_refunds,
        deposits=summary.deposits,
        withdrawals=summary.withdrawals,
        expected_cash=summary.expected_cash,
        cash_to_withdraw=summary.cash_to_withdraw,
        sales_count=summary.sales_count,
        movements_count=summary.movements_count,
    )


@router.post("/{session_id}/close", response_model=CashSessionRead)
async def close_register(
    session_id: UUID,
    payload: CashSessionClose,
    db: AsyncSession = Depends(get_db),
    sale_source: SaleSource = Depends(get_sale_source),
):
    """Reconcile and close a cash session.

    409 SESSION_NOT_OPEN when the session is already closed; the stored
    snapshot is left untouched and can be re-read from GET /{session_id}.
    """
    return await close_shift(
        db,
        session_id,
        closed_by=payload.operator_id,
        sale_source=sale_source,
        actual_cash=payload.actual_cash,
        counts=payload.counts,
        notes=payload.notes,
    )


@router.get("/{session_id}/audit", response_model=list[AuditLogRead])
async def session_audit(
    session_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Open/close audit trail for a session."""
    await get_session(db, session_id)
    return await list_session_audit(db, session_id)
