"""Read-only access to completed sales from the checkout subsystem."""

import uuid
from datetime import datetime
from typing import Protocol, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import schema_guard
from cashdrawer.core.reconciliation import SaleLike
from cashdrawer.models.sale import Sale


class SaleSource(Protocol):
    """Anything that can list a store's sales for a time window.

    Implementations raise on failure; they must never return a partial list.
    """

    async def list_sales(
        self,
        store_id: uuid.UUID,
        since: datetime,
        until: datetime | None = None,
    ) -> Sequence[SaleLike]: ...


async def list_sales(
    db: AsyncSession,
    store_id: uuid.UUID,
    since: datetime,
    until: datetime | None = None,
) -> list[Sale]:
    """Sales with created_at in [since, until), oldest first."""
    stmt = select(Sale).where(
        Sale.store_id == store_id,
        Sale.created_at >= since,
    )
    if until is not None:
        stmt = stmt.where(Sale.created_at < until)
    stmt = stmt.order_by(Sale.created_at.asc(), Sale.id.asc())

    with schema_guard("sales"):
        result = await db.execute(stmt)
    return list(result.scalars().all())


class SqlSaleSource:
    """SaleSource backed by the shared ``sales`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_sales(
        self,
        store_id: uuid.UUID,
        since: datetime,
        until: datetime | None = None,
    ) -> list[Sale]:
        return await list_sales(self.db, store_id, since, until)
