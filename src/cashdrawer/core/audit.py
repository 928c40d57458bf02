"""Audit logging utilities for tracking CashSession lifecycle events."""

import uuid
from decimal import Decimal
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import schema_guard
from cashdrawer.models.cash_session import CashSession
from cashdrawer.models.cash_session_audit_log import CashSessionAuditLog
from cashdrawer.models.enums import AuditAction
from cashdrawer.utils.datetime import now_utc


def _serialize_value(v: Any) -> Any:
    # JSON column: keep money exact as strings
    if isinstance(v, Decimal):
        return str(v)
    if isinstance(v, uuid.UUID):
        return str(v)
    if hasattr(v, "isoformat"):
        return v.isoformat()
    return v


def log_session_event(
    db: AsyncSession,
    session: CashSession,
    action: AuditAction,
    changed_by: uuid.UUID,
    values: dict[str, Any],
    reason: str | None = None,
) -> CashSessionAuditLog:
    """Add an audit entry for an open or close event.

    Args:
        db: Database session
        session: The CashSession the event applies to
        action: AuditAction.OPEN or AuditAction.CLOSE
        changed_by: Operator performing the action
        values: Figures written by the event
        reason: Optional free text (closing notes)

    Returns:
        The pending CashSessionAuditLog (flushed with the caller's unit of work)
    """
    audit_log = CashSessionAuditLog(
        session_id=session.id,
        changed_by=changed_by,
        action=action.value,
        values={k: _serialize_value(v) for k, v in values.items()},
        reason=reason,
        changed_at=now_utc(),
    )

    db.add(audit_log)
    return audit_log


async def list_session_audit(db: AsyncSession, session_id: uuid.UUID) -> list[CashSessionAuditLog]:
    """Audit trail for one session, oldest first."""
    stmt = (
        select(CashSessionAuditLog)
        .where(CashSessionAuditLog.session_id == session_id)
        .order_by(CashSessionAuditLog.changed_at.asc())
    )
    with schema_guard("cash_session_audit_logs"):
        result = await db.execute(stmt)
    return list(result.scalars().all())
