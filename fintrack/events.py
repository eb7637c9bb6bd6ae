"""
Data Change Notifications

The registry and the ledger publish a DataChange after every successful
mutation. Consumers (a dashboard that wants to reload, a cache that wants to
invalidate) subscribe to a ChangeNotifier they were handed explicitly; there
is no global event bus and no event names to agree on.
"""

from enum import Enum
from typing import Callable, Optional

import structlog
from pydantic import BaseModel


logger = structlog.get_logger(__name__)


class ChangeAction(str, Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class DataChange(BaseModel):
    """One mutation of a user's data."""

    user_id: str
    entity: str  # "category" or "transaction"
    action: ChangeAction
    entity_id: Optional[str] = None


ChangeListener = Callable[[DataChange], None]


class ChangeNotifier:
    """Ordered list of listeners called synchronously on every change."""

    def __init__(self):
        self._listeners: list[ChangeListener] = []

    def subscribe(self, listener: ChangeListener) -> Callable[[], None]:
        """Add a listener. Returns a function that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, change: DataChange) -> None:
        for listener in list(self._listeners):
            try:
                listener(change)
            except Exception as e:
                logger.error(
                    "change_listener_failed",
                    entity=change.entity,
                    action=change.action.value,
                    error=str(e),
                )

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
