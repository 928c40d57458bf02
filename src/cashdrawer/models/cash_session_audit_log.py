"""Audit log model for CashSession lifecycle events."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashdrawer.core.db import Base
from cashdrawer.utils.datetime import now_utc

if TYPE_CHECKING:
    from cashdrawer.models.cash_session import CashSession


class CashSessionAuditLog(Base):
    """Immutable audit trail for CashSession open and close events."""

    __tablename__ = "cash_session_audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    session_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("cash_sessions.id"),
        nullable=False,
        index=True,
    )

    session: Mapped["CashSession"] = relationship(
        "CashSession",
        foreign_keys=[session_id],
    )

    # WHO
    changed_by: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)

    # WHEN
    changed_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    # WHAT
    action: Mapped[str] = mapped_column(String(20), nullable=False)  # "OPEN", "CLOSE"

    # Figures written by the event, as strings
    values: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<CashSessionAuditLog(session_id={self.session_id}, "
            f"action={self.action}, changed_by={self.changed_by})>"
        )
