"""
Abstract Storage Interface

DESIGN DECISION: The registry and the ledger only ever talk to this interface.
This allows us to:
1. Use in-memory storage for testing
2. Back the app with Google Sheets (or any document database) later
3. Keep business rules decoupled from storage implementation

The store is a plain key-value document store. Keys are slash-separated
paths namespaced as `{collection}/{user_id}/{entity_id}`; a
"collection key" is the `{collection}/{user_id}` prefix that holds one
user's documents of one kind.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


TRANSACTIONS = "transactions"
CATEGORIES = "categories"
AUDIT = "audit"


def collection_key(collection: str, user_id: str) -> str:
    """Key of one user's slice of a collection."""
    return f"{collection}/{user_id}"


def entity_key(collection: str, user_id: str, entity_id: str) -> str:
    """Key of a single document."""
    return f"{collection}/{user_id}/{entity_id}"


def split_key(key: str) -> tuple[str, str, Optional[str]]:
    """
    Split a key into (collection, user_id, entity_id).

    entity_id is None for collection keys.

    Raises:
        ValueError: If the key has neither two nor three segments
    """
    parts = key.strip("/").split("/")
    if len(parts) == 2 and all(parts):
        return parts[0], parts[1], None
    if len(parts) == 3 and all(parts):
        return parts[0], parts[1], parts[2]
    raise ValueError(f"Malformed store key: {key!r}")


class DocumentStore(ABC):
    """
    Abstract interface for document storage operations.

    Any storage implementation (in-memory, Google Sheets, a hosted realtime
    database) must implement these methods.
    """

    @abstractmethod
    async def put(
        self,
        collection_key: str,
        value: dict[str, Any],
        new_id: Optional[str] = None,
    ) -> str:
        """
        Store a new document under a collection key.

        Args:
            collection_key: `{collection}/{user_id}`
            value: JSON-compatible document
            new_id: Identifier to use; generated by the store when omitted

        Returns:
            The identifier of the stored document

        Raises:
            DuplicateError: If new_id is already taken
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get(self, collection_key: str) -> dict[str, dict[str, Any]]:
        """
        Read every document under a collection key.

        Returns:
            Mapping of id -> document; empty if the collection doesn't exist

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def patch(self, entity_key: str, partial: dict[str, Any]) -> None:
        """
        Merge fields into an existing document.

        Args:
            entity_key: `{collection}/{user_id}/{entity_id}`
            partial: Fields to overwrite; other fields are kept

        Raises:
            NotFoundError: If the document doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete(self, entity_key: str) -> bool:
        """
        Delete a document.

        Returns:
            True if a document was deleted, False if there was none

        Raises:
            StorageError: If the delete fails
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
