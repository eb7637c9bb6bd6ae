"""
In-Memory Storage Implementation

Keeps documents in nested dicts. Used by the test suite and as the default
backend when no external store is configured.

Documents are deep-copied on the way in and on the way out so callers can
never mutate stored state through a returned reference.
"""

import copy
from typing import Any, Optional
from uuid import uuid4

from fintrack.services.storage.interface import (
    DocumentStore,
    DuplicateError,
    NotFoundError,
    split_key,
)


class InMemoryDocumentStore(DocumentStore):
    """Document store backed by a dict of collection key -> {id: document}."""

    def __init__(self):
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}

    async def put(
        self,
        collection_key: str,
        value: dict[str, Any],
        new_id: Optional[str] = None,
    ) -> str:
        collection, user_id, _ = split_key(collection_key)
        documents = self._collections.setdefault(f"{collection}/{user_id}", {})

        document_id = new_id or uuid4().hex
        if document_id in documents:
            raise DuplicateError(f"Document already exists: {collection_key}/{document_id}")

        documents[document_id] = copy.deepcopy(value)
        return document_id

    async def get(self, collection_key: str) -> dict[str, dict[str, Any]]:
        collection, user_id, _ = split_key(collection_key)
        documents = self._collections.get(f"{collection}/{user_id}", {})
        return copy.deepcopy(documents)

    async def patch(self, entity_key: str, partial: dict[str, Any]) -> None:
        documents, document_id = self._locate(entity_key)
        if document_id not in documents:
            raise NotFoundError(f"Document not found: {entity_key}")
        documents[document_id].update(copy.deepcopy(partial))

    async def delete(self, entity_key: str) -> bool:
        documents, document_id = self._locate(entity_key)
        return documents.pop(document_id, None) is not None

    def _locate(self, entity_key: str) -> tuple[dict[str, dict[str, Any]], str]:
        collection, user_id, document_id = split_key(entity_key)
        if document_id is None:
            raise ValueError(f"Expected an entity key, got {entity_key!r}")
        return self._collections.get(f"{collection}/{user_id}", {}), document_id
