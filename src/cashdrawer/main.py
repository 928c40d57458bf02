"""FastAPI application factory for the cash drawer service."""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import uvicorn
from fastapi import FastAPI

from cashdrawer.core.logging import configure_logging, get_logger

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for startup and shutdown events."""
    start_time = datetime.now()
    logger.info("app.startup", message="Cash drawer starting up", timestamp=start_time.isoformat())

    from cashdrawer.api.health import set_app_start_time

    set_app_start_time(start_time)

    yield

    logger.info("app.shutdown", message="Cash drawer shutting down gracefully")


def _setup_middleware(app: FastAPI) -> None:
    """Configure all middleware in correct order."""
    # Last added = first executed, so RequestIDMiddleware goes last
    from cashdrawer.middleware.logging import RequestIDMiddleware
    from cashdrawer.middleware.sentry import SentryContextMiddleware

    app.add_middleware(SentryContextMiddleware)
    app.add_middleware(RequestIDMiddleware)


def _register_routers(app: FastAPI) -> None:
    """Register all API routers."""
    from cashdrawer.api.cash_session import router as cash_session_router
    from cashdrawer.api.health import router as health_router
    from cashdrawer.api.history import router as history_router
    from cashdrawer.api.movements import router as movements_router

    app.include_router(health_router)
    app.include_router(cash_session_router)
    app.include_router(movements_router)
    app.include_router(history_router)


def create_app() -> FastAPI:
    """Application factory."""
    app = FastAPI(
        title="Cash Drawer API",
        description="Cash drawer sessions, movements and end-of-shift reconciliation",
        version="0.1.0",
        lifespan=lifespan,
    )

    from cashdrawer.core.exception_handlers import register_exception_handlers
    from cashdrawer.core.sentry import init_sentry

    init_sentry()
    register_exception_handlers(app)
    _setup_middleware(app)
    _register_routers(app)

    logger.info("app.configured", message="FastAPI application created successfully")

    return app


def run() -> None:
    """Development server entrypoint."""
    uvicorn.run(
        "cashdrawer.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
