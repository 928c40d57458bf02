"""Store model: the tenant that owns cash drawers."""

from typing import TYPE_CHECKING

from cashdrawer.utils.datetime import now_utc

if TYPE_CHECKING:
    from cashdrawer.models.cash_session import CashSession

import uuid
from datetime import datetime

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cashdrawer.core.db import Base


class Store(Base):
    """
    Represents a retail store.

    Each store runs a single cash drawer: at most one open session at a time,
    its own movement ledger and its own sales.
    """

    __tablename__ = "stores"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        index=True,
    )

    is_active: Mapped[bool] = mapped_column(
        default=True,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        nullable=False,
        default=now_utc,
    )

    # Relationships
    cash_sessions: Mapped[list["CashSession"]] = relationship(
        "CashSession",
        back_populates="store",
    )

    def __repr__(self) -> str:
        return self.name
