"""Domain models package."""

from cashdrawer.models.cash_movement import CashMovement
from cashdrawer.models.cash_session import CashSession
from cashdrawer.models.cash_session_audit_log import CashSessionAuditLog
from cashdrawer.models.cash_session_schemas import (
    CashSessionClose,
    CashSessionOpen,
    CashSessionRead,
    ReconciliationRead,
    SessionHistoryRow,
)
from cashdrawer.models.enums import (
    AuditAction,
    MovementType,
    PaymentMethod,
    ReconciliationOutcome,
    SessionStatus,
)
from cashdrawer.models.sale import Sale
from cashdrawer.models.schemas import MovementCreate, MovementRead
from cashdrawer.models.store import Store
from cashdrawer.models.user import User

__all__ = [
    "AuditAction",
    "CashMovement",
    "CashSession",
    "CashSessionAuditLog",
    "CashSessionClose",
    "CashSessionOpen",
    "CashSessionRead",
    "MovementCreate",
    "MovementRead",
    "MovementType",
    "PaymentMethod",
    "ReconciliationOutcome",
    "ReconciliationRead",
    "Sale",
    "SessionHistoryRow",
    "SessionStatus",
    "Store",
    "User",
]
