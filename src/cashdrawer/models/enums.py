"""
Enums for domain models.
Enums provide type safety and clarity. Validation for categorical fields.
"""

import enum


class SessionStatus(str, enum.Enum):
    """Session lifecycle states."""

    OPEN = "open"
    CLOSED = "closed"


class MovementType(str, enum.Enum):
    """Direction of a manual cash movement."""

    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class PaymentMethod(str, enum.Enum):
    """Payment methods known to checkout; anything else counts as other."""

    CASH = "cash"
    CARD = "card"
    TRANSFER = "transfer"
    CREDIT = "credit"


class ReconciliationOutcome(str, enum.Enum):
    """Classification of actual vs expected cash at close."""

    BALANCED = "balanced"
    SURPLUS = "surplus"
    SHORTAGE = "shortage"


class AuditAction(str, enum.Enum):
    """Lifecycle events recorded in the session audit trail."""

    OPEN = "OPEN"
    CLOSE = "CLOSE"
