"""
Audit Logger

DESIGN DECISION: Every mutation of a user's ledger or registry is logged.
This provides:
1. Traceability of who changed what
2. Debugging capability when a store call fails
3. A persisted history the user can inspect

The audit logger:
- Is async so it can share the event loop with the store calls
- Gracefully handles failures (never fails the operation being audited)
- Persists to the `audit/{user_id}` collection when a store is configured
"""

import logging
from typing import Optional

import structlog

from fintrack.models.audit import AuditEvent, AuditSeverity
from fintrack.services.storage import AUDIT, DocumentStore, collection_key


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through the stdlib root logger at `level`."""
    logging.basicConfig(format="%(message)s", level=level.upper())
    logging.getLogger().setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The document store (for persistence and user visibility)
    """

    def __init__(self, store: Optional[DocumentStore] = None):
        """
        Initialize audit logger.

        Args:
            store: Document store for persistence.
                   If None, only logs locally.
        """
        self._store = store
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to the store if available and the
        event belongs to a user.

        Returns True if the store write succeeded (or nothing had to be written).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._store is None or not event.user_id:
            return True

        try:
            await self._store.put(
                collection_key(AUDIT, event.user_id),
                event.to_record(),
                new_id=str(event.event_id),
            )
            return True
        except Exception as e:
            # Log failure but don't raise
            self._logger.error(
                "audit_storage_failed",
                error=str(e),
                event_id=str(event.event_id),
            )
            return False

    async def history(self, user_id: str) -> list[AuditEvent]:
        """Persisted events of one user, oldest first. Empty without a store."""
        if self._store is None:
            return []
        records = await self._store.get(collection_key(AUDIT, user_id))
        events = [AuditEvent.model_validate(record) for record in records.values()]
        return sorted(events, key=lambda e: e.timestamp)
