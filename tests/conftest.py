"""Pytest configuration and fixtures."""

import os
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from cashdrawer.core.db import Base, get_db
from cashdrawer.main import create_app

# Import all models so create_all sees every table
import cashdrawer.models  # noqa: F401
from tests.factories import StoreFactory, UserFactory


def _test_database_url(tmp_path: Path) -> str:
    """TEST_DATABASE_URL when set (e.g. a Postgres test DB), else a throwaway SQLite file."""
    url = os.getenv("TEST_DATABASE_URL", "")
    if url:
        return url
    return f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path: Path):
    """Fresh schema for each test."""
    engine = create_async_engine(_test_database_url(tmp_path), echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    """Create fresh DB session for each test."""
    async_session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def store(db_session: AsyncSession):
    return await StoreFactory.create(db_session, name="Main Street")


@pytest_asyncio.fixture
async def operator(db_session: AsyncSession, store):
    return await UserFactory.create(db_session, full_name="Ana Pérez", store_id=store.id)


@pytest_asyncio.fixture
async def client(db_session):
    """Create async test client with overridden DB dependency."""
    app = create_app()

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        ac.test_app = app
        ac.db_session = db_session
        yield ac


@pytest_asyncio.fixture
async def client_for_health_checks(db_engine):
    """
    Test client that opens a new session per request and commits it.

    Health checks inspect the live connection, so they should not share the
    test's open transaction.
    """
    app = create_app()
    async_session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with async_session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as ac:
        yield ac
