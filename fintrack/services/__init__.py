"""Services package."""

from fintrack.services.identity import (
    IdentityProvider,
    SessionIdentityProvider,
)
from fintrack.services.storage import (
    ConnectionError,
    DocumentStore,
    DuplicateError,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Identity
    "IdentityProvider",
    "SessionIdentityProvider",
    # Storage services
    "ConnectionError",
    "DocumentStore",
    "DuplicateError",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "NotFoundError",
    "StorageError",
]
