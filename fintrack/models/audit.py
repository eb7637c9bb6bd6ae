"""
Audit Models for fintrack

Every change to a user's ledger or registry is recorded as an audit event.
This provides:
1. Traceability of who changed what and when
2. Debugging information when a store call fails
3. A history the presentation layer can show

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Categories
    CATEGORY_CREATED = "category_created"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"
    CATEGORY_DELETE_BLOCKED = "category_delete_blocked"
    DEFAULT_CATEGORIES_CREATED = "default_categories_created"

    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Input
    VALIDATION_FAILED = "validation_failed"

    # Reads
    DASHBOARD_LOADED = "dashboard_loaded"

    # System events
    STORE_ERROR = "store_error"
    UNAUTHENTICATED_ACCESS = "unauthenticated_access"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - whose data and which record?
    user_id: Optional[str] = Field(
        default=None,
        description="Owner of the affected data"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity ('category', 'transaction', 'dashboard')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store identifier of the affected record"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }

    def to_record(self) -> dict:
        """Document stored in the audit collection."""
        return self.model_dump(mode="json")


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.category_created(user_id, category_id, name)
        event = AuditEventBuilder.store_error(user_id, "list_transactions", str(e))
    """

    @staticmethod
    def category_created(user_id: str, category_id: str, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_CREATED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category created: {name}",
            details={"name": name},
        )

    @staticmethod
    def category_updated(user_id: str, category_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            description=f"Category updated ({', '.join(fields) or 'no fields'})",
            details={"fields": fields},
        )

    @staticmethod
    def category_deleted(user_id: str, category_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            description="Category deleted",
        )

    @staticmethod
    def category_delete_blocked(user_id: str, category_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETE_BLOCKED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="category",
            entity_id=category_id,
            description="Category delete blocked: transactions still reference it",
        )

    @staticmethod
    def default_categories_created(
        user_id: str,
        created: int,
        attempted: int,
    ) -> AuditEvent:
        severity = AuditSeverity.INFO if created == attempted else AuditSeverity.WARNING
        return AuditEvent(
            event_type=AuditEventType.DEFAULT_CATEGORIES_CREATED,
            severity=severity,
            user_id=user_id,
            entity_type="category",
            description=f"Default categories created: {created} of {attempted}",
            details={"created": created, "attempted": attempted},
        )

    @staticmethod
    def transaction_created(
        user_id: str,
        transaction_id: str,
        kind: str,
        amount: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction created: {kind} {amount}",
            details={"kind": kind, "amount": amount},
        )

    @staticmethod
    def transaction_updated(user_id: str, transaction_id: str, fields: list[str]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description=f"Transaction updated ({', '.join(fields) or 'no fields'})",
            details={"fields": fields},
        )

    @staticmethod
    def transaction_deleted(user_id: str, transaction_id: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            description="Transaction deleted",
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        entity_type: str,
        field: str,
        message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type=entity_type,
            description=f"{entity_type.capitalize()} rejected: {field}",
            details={"field": field, "message": message},
        )

    @staticmethod
    def dashboard_loaded(
        user_id: str,
        transaction_count: int,
        category_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DASHBOARD_LOADED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="dashboard",
            description="Dashboard loaded",
            details={
                "transaction_count": transaction_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def store_error(
        user_id: Optional[str],
        operation: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"Store error during {operation}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def unauthenticated_access(operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UNAUTHENTICATED_ACCESS,
            severity=AuditSeverity.WARNING,
            description=f"Access without a signed-in user: {operation}",
            details={"operation": operation},
        )
