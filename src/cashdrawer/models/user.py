"""User model for register operators."""

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cashdrawer.core.db import Base
from cashdrawer.utils.datetime import now_utc


class User(Base):
    """An operator who opens and closes registers and records movements."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
        default="",
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        unique=True,
    )

    # Home store; operators may still work other registers
    store_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("stores.id"),
        nullable=True,
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

    @property
    def display_name(self) -> str:
        """Return full name, falling back to email, then the id."""
        if self.full_name and self.full_name.strip():
            return self.full_name.strip()
        return self.email or str(self.id)

    def __repr__(self) -> str:
        return f"<User(full_name={self.full_name}, is_active={self.is_active})>"
