"""Database configuration and session management."""

import os
from contextlib import contextmanager
from typing import AsyncGenerator, Iterator

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from cashdrawer.core.errors import SchemaUnavailable
from cashdrawer.core.logging import get_logger

logger = get_logger(__name__)


def resolve_database_url(raw_url: str) -> str:
    """Normalize DATABASE_URL for the async driver.

    Hosting providers hand out postgres:// or postgresql:// URLs, but the
    async engine needs postgresql+asyncpg://.
    """
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if not raw_url:
        return "postgresql+asyncpg://cashdrawer:dev_password_change_in_prod@db:5432/cashdrawer_dev"
    return raw_url


DATABASE_URL = resolve_database_url(os.getenv("DATABASE_URL", ""))

engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Declarative base
Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# PostgreSQL SQLSTATE for undefined_table
UNDEFINED_TABLE = "42P01"

_MISSING_TABLE_MARKERS = ("no such table", "undefinedtable", "undefined_table")


def is_missing_schema_error(exc: BaseException) -> bool:
    """Tell whether a driver error means the table was never created."""
    orig = getattr(exc, "orig", None)
    for source in (orig, exc):
        if source is None:
            continue
        if getattr(source, "sqlstate", None) == UNDEFINED_TABLE:
            return True
        if getattr(source, "pgcode", None) == UNDEFINED_TABLE:
            return True

    message = str(orig if orig is not None else exc).lower()
    if any(marker in message for marker in _MISSING_TABLE_MARKERS):
        return True
    return "relation" in message and "does not exist" in message


@contextmanager
def schema_guard(resource: str) -> Iterator[None]:
    """Translate "table does not exist" driver errors into SchemaUnavailable.

    Other database errors propagate unchanged.
    """
    try:
        yield
    except DBAPIError as exc:
        if is_missing_schema_error(exc):
            logger.error("schema.unavailable", resource=resource, error=type(exc).__name__)
            raise SchemaUnavailable(resource) from exc
        raise
