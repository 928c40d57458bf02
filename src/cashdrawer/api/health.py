"""
Health check endpoint for monitoring and orchestration.

Reports:
- Uptime
- Database connectivity
- Whether the cash drawer tables exist (migrations applied)

Always answers 200 so load balancers keep routing while a dependency is
degraded; the body carries the detail.
"""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cashdrawer.core.db import get_db
from cashdrawer.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

REQUIRED_TABLES = ("stores", "users", "cash_sessions", "cash_movements", "sales")

# Global app start time (set in lifespan)
_app_start_time: datetime | None = None


def set_app_start_time(start_time: datetime) -> None:
    """Called by lifespan to track when app started."""
    global _app_start_time
    _app_start_time = start_time


def get_uptime_seconds() -> int:
    """Calculate seconds since app start."""
    if _app_start_time is None:
        return 0
    return int((datetime.now() - _app_start_time).total_seconds())


async def check_database(db: AsyncSession) -> dict[str, Any]:
    """
    Check database connectivity.

    Returns: {"status": "ok"|"down", "response_time_ms": N, "error": str (if down)}
    """
    start = time.time()
    try:
        await db.execute(text("SELECT 1"))
        return {
            "status": "ok",
            "response_time_ms": int((time.time() - start) * 1000),
        }
    except (SQLAlchemyError, OSError) as e:
        logger.warning("health.database_down", error=type(e).__name__)
        return {
            "status": "down",
            "response_time_ms": int((time.time() - start) * 1000),
            "error": type(e).__name__,
        }


async def check_schema(db: AsyncSession) -> dict[str, Any]:
    """
    Check that every table the register needs exists.

    Returns: {"status": "ok"|"missing"|"down", "missing": [...]}
    """
    try:
        conn = await db.connection()
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
    except (SQLAlchemyError, OSError) as e:
        return {"status": "down", "error": type(e).__name__}

    missing = [name for name in REQUIRED_TABLES if name not in existing]
    if missing:
        logger.warning("health.schema_missing", missing=missing)
        return {"status": "missing", "missing": missing}
    return {"status": "ok", "missing": []}


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description=(
        "Returns API health status including uptime, database and schema checks. "
        "Returns 200 regardless of degraded dependencies."
    ),
)
async def health_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Health check endpoint.

    Example response (healthy):
        {
            "status": "ok",
            "uptime_seconds": 3600,
            "checks": {
                "database": {"status": "ok", "response_time_ms": 5},
                "schema": {"status": "ok", "missing": []}
            }
        }
    """
    db_check = await check_database(db)
    if db_check["status"] == "ok":
        schema_check = await check_schema(db)
    else:
        schema_check = {"status": "unknown"}

    overall_status = "ok" if db_check["status"] == "ok" and schema_check["status"] == "ok" else "degraded"

    return JSONResponse(
        content={
            "status": overall_status,
            "uptime_seconds": get_uptime_seconds(),
            "checks": {
                "database": db_check,
                "schema": schema_check,
            },
        },
        status_code=status.HTTP_200_OK,
    )
