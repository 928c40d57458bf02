"""Tests for logging, error classes and the global error handlers."""

from httpx import ASGITransport, AsyncClient
import pytest
from starlette.responses import JSONResponse
import structlog

from cashdrawer.core.db import is_missing_schema_error, resolve_database_url
from cashdrawer.core.errors import (
    ActiveSessionExists,
    AppError,
    ConflictError,
    ErrorDetail,
    ExternalFetchFailure,
    NoActiveSession,
    NotFoundError,
    SchemaUnavailable,
    SessionNotOpen,
    ValidationError,
)
from cashdrawer.core.logging import get_request_id, set_request_id
from cashdrawer.core.sentry import filter_sensitive_data
from cashdrawer.middleware.logging import RequestIDMiddleware, store_id_from_query


class TestErrorClasses:
    """Test custom exception classes."""

    def test_validation_error_creates_correct_response(self):
        """Test ValidationError converts to proper response."""
        exc = ValidationError("Invalid amount", details={"field": "amount"})

        assert exc.code == "VALIDATION_ERROR"
        assert exc.status_code == 422
        assert exc.category == "user_input"

        response = exc.to_response()
        assert isinstance(response, ErrorDetail)
        assert response.details == {"field": "amount"}

    def test_not_found_error_includes_resource_context(self):
        exc = NotFoundError(resource="Store", resource_id="123")

        assert exc.code == "NOT_FOUND"
        assert exc.status_code == 404
        assert exc.details == {"resource": "Store", "resource_id": "123"}

    def test_conflict_error_is_a_state_error(self):
        exc = ConflictError("Already there")

        assert exc.status_code == 409
        assert exc.category == "state"

    @pytest.mark.parametrize(
        "exc, code, status_code, category",
        [
            (ActiveSessionExists("s1"), "ACTIVE_SESSION_EXISTS", 409, "state"),
            (SessionNotOpen("x"), "SESSION_NOT_OPEN", 409, "state"),
            (NoActiveSession("s1"), "NO_ACTIVE_SESSION", 409, "state"),
            (SchemaUnavailable("cash_sessions"), "SCHEMA_UNAVAILABLE", 503, "system"),
            (ExternalFetchFailure("sales"), "EXTERNAL_FETCH_FAILURE", 502, "system"),
        ],
    )
    def test_domain_errors(self, exc: AppError, code, status_code, category):
        assert exc.code == code
        assert exc.status_code == status_code
        assert exc.category == category

    def test_empty_details_are_omitted(self):
        assert AppError("BOOM", "boom").to_response().details is None


class TestRequestIDContext:
    """Test request ID injection."""

    def test_set_and_get_request_id(self):
        set_request_id("test-request-123")

        assert get_request_id() == "test-request-123"


async def _context_app(scope, receive, send):
    """Answer with the logging context bound for the request."""
    response = JSONResponse(structlog.contextvars.get_contextvars())
    await response(scope, receive, send)


class TestRequestLoggingContext:
    """Test the store and request binding done by RequestIDMiddleware."""

    async def _context_for(self, url: str) -> dict:
        transport = ASGITransport(app=RequestIDMiddleware(_context_app))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get(url, headers={"X-Request-ID": "req-7"})
        return response.json()

    async def test_store_id_bound_for_store_scoped_request(self):
        context = await self._context_for("/cash-sessions/active?store_id=store-9")

        assert context == {"request_id": "req-7", "store_id": "store-9"}

    async def test_no_store_id_without_query(self):
        context = await self._context_for("/health")

        assert context == {"request_id": "req-7"}

    @pytest.mark.parametrize(
        "query,expected",
        [
            (b"store_id=abc&limit=5", "abc"),
            (b"limit=5&store_id=abc", "abc"),
            (b"store_id=", None),
            (b"", None),
        ],
    )
    def test_store_id_from_query(self, query, expected):
        assert store_id_from_query({"query_string": query}) == expected


class TestErrorHandling:
    """Test global error handlers."""

    async def test_app_error_body(self, client: AsyncClient):
        response = await client.get("/cash-sessions/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404
        body = response.json()
        assert body["code"] == "NOT_FOUND"
        assert body["category"] == "user_input"
        assert body["details"]["resource"] == "CashSession"

    async def test_request_id_echoed(self, client: AsyncClient):
        response = await client.get("/health", headers={"X-Request-ID": "req-42"})

        assert response.headers["x-request-id"] == "req-42"

    async def test_request_id_generated(self, client: AsyncClient):
        response = await client.get("/health")

        assert response.headers["x-request-id"]


class TestDatabaseHelpers:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("postgres://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("postgresql://u:p@h/db", "postgresql+asyncpg://u:p@h/db"),
            ("sqlite+aiosqlite:///x.db", "sqlite+aiosqlite:///x.db"),
        ],
    )
    def test_resolve_database_url(self, raw, expected):
        assert resolve_database_url(raw) == expected

    def test_missing_schema_detection(self):
        class UndefinedTable(Exception):
            sqlstate = "42P01"

        assert is_missing_schema_error(UndefinedTable())
        assert is_missing_schema_error(Exception("no such table: cash_sessions"))
        assert is_missing_schema_error(Exception('relation "sales" does not exist'))
        assert not is_missing_schema_error(Exception("duplicate key value"))


class TestSentryFilter:
    def test_drops_cash_figures_and_sql(self):
        event = {
            "extra": {"actual_cash": "10.00", "notes": "x", "store_id": "s1"},
            "breadcrumbs": {"values": [{"message": "SELECT * FROM sales -- sql"}, {"message": "ok"}]},
        }

        filtered = filter_sensitive_data(event, {})

        assert filtered["extra"] == {"store_id": "s1"}
        assert filtered["breadcrumbs"]["values"] == [{"message": "ok"}]
