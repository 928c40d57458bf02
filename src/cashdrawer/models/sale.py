"""Sale model, owned by the checkout subsystem and mapped here read-only."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Index, Numeric, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cashdrawer.core.db import Base
from cashdrawer.utils.datetime import now_utc


class Sale(Base):
    """A completed checkout transaction.

    ``total`` is signed: refunds are recorded as sales with a negative total.
    The cash drawer core only reads this table.
    """

    __tablename__ = "sales"
    __table_args__ = (Index("ix_sales_store_created", "store_id", "created_at"),)

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    total: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )

    # cash, card, transfer, credit, or free text from checkout
    payment_method: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    profile_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        nullable=True,
    )

    def __repr__(self) -> str:
        return (
            f"<Sale(id={self.id}, store_id={self.store_id}, total={self.total}, "
            f"payment_method={self.payment_method})>"
        )
