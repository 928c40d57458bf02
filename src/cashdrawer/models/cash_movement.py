"""CashMovement model: manual deposits and withdrawals."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashdrawer.core.db import Base
from cashdrawer.utils.datetime import now_utc

if TYPE_CHECKING:
    from cashdrawer.models.user import User


class CashMovement(Base):
    """
    A manual cash event that changes the drawer balance outside of a sale.

    Rows are append-only. There is no session reference: a movement belongs to
    whichever session window contains its created_at.

    Attributes:
        id: Unique identifier (UUID v4)
        store_id: Store whose drawer was affected
        type: deposit or withdrawal
        amount: Always positive, 2 decimal places
        reason: Operator's justification (required)
        created_at: When the movement was recorded (naive UTC)
        created_by: Operator who recorded it
    """

    __tablename__ = "cash_movements"
    __table_args__ = (
        Index("ix_cash_movements_store_created", "store_id", "created_at"),
        CheckConstraint("type IN ('deposit', 'withdrawal')", name="ck_cash_movements_type"),
        CheckConstraint("amount > 0", name="ck_cash_movements_amount_positive"),
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
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    reason: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    created_by: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    creator: Mapped["User"] = relationship(
        "User",
        foreign_keys=[created_by],
        lazy="selectin",
    )

    @property
    def created_by_name(self) -> str | None:
        return self.creator.display_name if self.creator is not None else None

    def __repr__(self) -> str:
        return (
            f"<CashMovement(id={self.id}, store_id={self.store_id}, "
            f"type={self.type}, amount={self.amount}, created_at={self.created_at})>"
        )
