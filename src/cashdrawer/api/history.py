"""Session history endpoints for manager review."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import get_db
from cashdrawer.core.history import list_session_history, summarize_variance_by_operator
from cashdrawer.core.sessions import require_store
from cashdrawer.models import SessionHistoryRow
from cashdrawer.models.cash_session_schemas import OperatorVarianceRead

router = APIRouter(prefix="/stores/{store_id}/cash-sessions", tags=["session-history"])


@router.get("/history", response_model=list[SessionHistoryRow])
async def session_history(
    store_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """Closed sessions, newest first, with opener and closer names."""
    await require_store(db, store_id)
    return await list_session_history(db, store_id, limit=limit, offset=offset)


@router.get("/variance", response_model=list[OperatorVarianceRead])
async def operator_variance(
    store_id: UUID,
    limit: int = Query(500, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    """Shortage/surplus counts per closing operator over recent sessions."""
    await require_store(db, store_id)
    sessions = await list_session_history(db, store_id, limit=limit)
    return summarize_variance_by_operator(sessions)
