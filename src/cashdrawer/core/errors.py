"""Custom exceptions and error response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

# Error categories let callers tell "fix your input" apart from
# "the register is in the wrong state" and "the system is misconfigured".
USER_INPUT = "user_input"
STATE = "state"
SYSTEM = "system"


class ErrorDetail(BaseModel):
    """Standardized error response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    category: str = Field(USER_INPUT, description="user_input, state or system")
    details: Optional[dict[str, Any]] = Field(None, description="Additional context")


class AppError(Exception):
    """Base exception for all app-level errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None,
        category: str = SYSTEM,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.category = category
        super().__init__(self.message)

    def to_response(self) -> ErrorDetail:
        """Convert to API response schema."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            category=self.category,
            details=self.details if self.details else None,
        )


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        code: str = "VALIDATION_ERROR",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details,
            category=USER_INPUT,
        )


class InvalidAmount(ValidationError):
    """Amount is non-numeric, not finite, or outside its allowed range."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, details=details, code="INVALID_AMOUNT")


class MissingReason(ValidationError):
    """A cash movement was submitted without a justification."""

    def __init__(self, message: str = "A reason is required for every cash movement"):
        super().__init__(message, code="MISSING_REASON")


class NotFoundError(AppError):
    """Raised when resource doesn't exist."""

    def __init__(self, resource: str, resource_id: str):
        super().__init__(
            code="NOT_FOUND",
            message=f"{resource} with ID {resource_id} not found",
            status_code=404,
            details={"resource": resource, "resource_id": resource_id},
            category=USER_INPUT,
        )


class ConflictError(AppError):
    """Raised when resource already exists or operation conflicts."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        code: str = "CONFLICT",
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=409,
            details=details,
            category=STATE,
        )


class ActiveSessionExists(ConflictError):
    """The store already has an open cash session."""

    def __init__(self, store_id: str, session_id: str | None = None):
        details = {"store_id": store_id}
        if session_id is not None:
            details["session_id"] = session_id
        super().__init__(
            "An active cash session already exists for this store",
            details=details,
            code="ACTIVE_SESSION_EXISTS",
        )


class InvalidStateError(AppError):
    """Raised when operation conflicts with resource state."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None,
        code: str = "INVALID_STATE",
        status_code: int = 400,
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details,
            category=STATE,
        )


class SessionNotOpen(InvalidStateError):
    """Close attempted on a session that is missing or already closed."""

    def __init__(self, session_id: str, details: Optional[dict] = None):
        super().__init__(
            "Cash session is not open",
            details={"session_id": session_id, **(details or {})},
            code="SESSION_NOT_OPEN",
            status_code=409,
        )


class NoActiveSession(InvalidStateError):
    """A shift-scoped operation ran while the store has no open session."""

    def __init__(self, store_id: str):
        super().__init__(
            "No open cash session for this store; open the register first",
            details={"store_id": store_id},
            code="NO_ACTIVE_SESSION",
            status_code=409,
        )


class SchemaUnavailable(AppError):
    """The database lacks the cash drawer tables (migration not applied)."""

    def __init__(self, resource: str):
        super().__init__(
            code="SCHEMA_UNAVAILABLE",
            message=(
                f"Storage for {resource} is not available; "
                "the database migrations have not been applied"
            ),
            status_code=503,
            details={"resource": resource},
            category=SYSTEM,
        )


class ExternalFetchFailure(AppError):
    """Sales or movements could not be read, so no reconciliation is produced."""

    def __init__(self, source: str, message: str | None = None):
        super().__init__(
            code="EXTERNAL_FETCH_FAILURE",
            message=message or f"Could not fetch {source}; reconciliation aborted",
            status_code=502,
            details={"source": source},
            category=SYSTEM,
        )
