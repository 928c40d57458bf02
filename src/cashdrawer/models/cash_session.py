"""CashSession model for shift tracking and reconciliation."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cashdrawer.models.store import Store
    from cashdrawer.models.user import User

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashdrawer.core.db import Base
from cashdrawer.models.enums import ReconciliationOutcome, SessionStatus
from cashdrawer.utils.datetime import now_utc

# Only one row per store may be open; closed rows are unconstrained.
OPEN_SESSION_PREDICATE = text("status = 'open'")


class CashSession(Base):
    """Cash session model for shift tracking and reconciliation.

    Created open by the lifecycle manager and mutated exactly once, on close,
    when the reconciliation snapshot is written. Sales and movements are not
    linked by foreign key; they belong to the session whose
    [opened_at, closed_at) window contains their created_at.
    """

    __tablename__ = "cash_sessions"
    __table_args__ = (
        Index(
            "uq_cash_sessions_one_open_per_store",
            "store_id",
            unique=True,
            postgresql_where=OPEN_SESSION_PREDICATE,
            sqlite_where=OPEN_SESSION_PREDICATE,
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stores.id"),
        nullable=False,
        index=True,
    )

    store: Mapped["Store"] = relationship(
        "Store",
        back_populates="cash_sessions",
    )

    opened_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    opener: Mapped["User"] = relationship(
        "User",
        foreign_keys=[opened_by],
        lazy="selectin",
    )

    closed_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )

    closer: Mapped["User | None"] = relationship(
        "User",
        foreign_keys=[closed_by],
        lazy="selectin",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SessionStatus.OPEN.value,
        index=True,
    )

    opened_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
        index=True,
    )

    closed_at: Mapped[datetime | None] = mapped_column(nullable=True, index=True)

    # Float declared at open
    initial_cash: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    # Closing snapshot (NULL while open)
    total_sales_cash: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_sales_card: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_sales_transfer: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_sales_other: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_refunds: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_cash_in: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    total_cash_out: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    expected_cash: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    actual_cash: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    difference: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    sales_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN.value

    @property
    def outcome(self) -> ReconciliationOutcome | None:
        """Balanced, surplus or shortage; None until the session is closed."""
        if self.difference is None:
            return None
        if self.difference > 0:
            return ReconciliationOutcome.SURPLUS
        if self.difference < 0:
            return ReconciliationOutcome.SHORTAGE
        return ReconciliationOutcome.BALANCED

    @property
    def opened_by_name(self) -> str | None:
        return self.opener.display_name if self.opener is not None else None

    @property
    def closed_by_name(self) -> str | None:
        return self.closer.display_name if self.closer is not None else None

    def __repr__(self) -> str:
        return (
            f"<CashSession(id={self.id}, store_id={self.store_id}, "
            f"opened_by={self.opened_by}, status={self.status})>"
        )
