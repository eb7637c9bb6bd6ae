"""
Storage Services Package

Provides the abstract document store interface and concrete implementations.
The in-memory store backs tests and local runs; Google Sheets is the hosted
backend. Both are swappable behind DocumentStore.
"""

from fintrack.services.storage.interface import (
    AUDIT,
    CATEGORIES,
    TRANSACTIONS,
    ConnectionError,
    DocumentStore,
    DuplicateError,
    NotFoundError,
    StorageError,
    collection_key,
    entity_key,
    split_key,
)
from fintrack.services.storage.memory import InMemoryDocumentStore
from fintrack.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)

__all__ = [
    # Interface
    "DocumentStore",
    "AUDIT",
    "CATEGORIES",
    "TRANSACTIONS",
    "collection_key",
    "entity_key",
    "split_key",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "InMemoryDocumentStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
]
