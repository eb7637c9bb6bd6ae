"""
Category Registry

Manages each user's categories: creation with case-insensitive name
uniqueness, partial updates, guarded deletes and the one-time default
catalog.

DESIGN DECISION: Every public operation returns a Result. Business
rejections come back as typed Failures, and store exceptions are caught
here, logged with their detail and replaced by a generic message. Nothing
raises past this class.

The registry needs the ledger to guard deletes, and the ledger needs the
registry to check category references. The ledger binds itself to the
registry when it is constructed (see TransactionLedger.__init__).
"""

from typing import Any, Optional

import structlog
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from fintrack.aggregation import category_stats
from fintrack.audit import AuditLogger
from fintrack.categories.defaults import default_category_payloads
from fintrack.events import ChangeAction, ChangeNotifier, DataChange
from fintrack.models import (
    AuditEvent,
    AuditEventBuilder,
    BootstrapReport,
    Category,
    CategoryStats,
    ErrorKind,
    Failure,
    Result,
    failure,
    success,
)
from fintrack.services.storage import (
    CATEGORIES,
    DocumentStore,
    NotFoundError,
    collection_key,
    entity_key,
)
from fintrack.validation import RecordValidator, clean_category_fields


logger = structlog.get_logger(__name__)

CategoryList = list[Category]


def _name_key(name: str) -> str:
    return name.strip().casefold()


class CategoryRegistry:
    """Per-user category management on top of a DocumentStore."""

    def __init__(
        self,
        store: DocumentStore,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[ChangeNotifier] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._notifier = notifier
        self._ledger = None

    def bind_ledger(self, ledger) -> None:
        """Attach the ledger used for the delete guard and category stats."""
        self._ledger = ledger

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def create(self, user_id: str, data: dict[str, Any]) -> Result[str]:
        """
        Create a category.

        Returns:
            Success with the new category id, or a Failure of kind
            VALIDATION, DUPLICATE_NAME, UNAUTHENTICATED or STORE_ERROR
        """
        if not user_id:
            return await self._unauthenticated("create_category")

        issue = self._validator.check_category(data)
        if issue:
            await self._audit(AuditEventBuilder.validation_failed(
                user_id, "category", issue.field, issue.message
            ))
            return failure(ErrorKind.VALIDATION, issue.message)

        fields = clean_category_fields(data)
        try:
            existing = await self._load(user_id)
            if self._name_taken(existing, fields["name"]):
                return failure(ErrorKind.DUPLICATE_NAME, "A category with this name already exists")

            record = to_jsonable_python({**fields, "user_id": user_id})
            category_id = await self._store.put(collection_key(CATEGORIES, user_id), record)
        except Exception as e:
            return await self._store_failure(
                user_id, "create_category", e, "Could not create the category. Please try again."
            )

        logger.info("category_created", user_id=user_id, category_id=category_id)
        await self._audit(AuditEventBuilder.category_created(user_id, category_id, fields["name"]))
        self._publish(user_id, ChangeAction.CREATED, category_id)
        return success(category_id, "Category created")

    async def update(
        self,
        user_id: str,
        category_id: str,
        patch: dict[str, Any],
    ) -> Result[None]:
        """Merge the fields in patch into an existing category."""
        if not user_id:
            return await self._unauthenticated("update_category")

        issue = self._validator.check_category(patch, partial=True)
        if issue:
            await self._audit(AuditEventBuilder.validation_failed(
                user_id, "category", issue.field, issue.message
            ))
            return failure(ErrorKind.VALIDATION, issue.message)

        fields = clean_category_fields(patch)
        try:
            existing = await self._load(user_id)
            if not any(c.id == category_id for c in existing):
                return failure(ErrorKind.NOT_FOUND, "Category not found")

            if "name" in fields and self._name_taken(existing, fields["name"], exclude_id=category_id):
                return failure(ErrorKind.DUPLICATE_NAME, "A category with this name already exists")

            if fields:
                await self._store.patch(
                    entity_key(CATEGORIES, user_id, category_id),
                    to_jsonable_python(fields),
                )
        except NotFoundError:
            return failure(ErrorKind.NOT_FOUND, "Category not found")
        except Exception as e:
            return await self._store_failure(
                user_id, "update_category", e, "Could not update the category. Please try again."
            )

        logger.info("category_updated", user_id=user_id, category_id=category_id, fields=sorted(fields))
        await self._audit(AuditEventBuilder.category_updated(user_id, category_id, sorted(fields)))
        self._publish(user_id, ChangeAction.UPDATED, category_id)
        return success(message="Category updated")

    async def delete(self, user_id: str, category_id: str) -> Result[None]:
        """
        Delete a category that no transaction references.

        Deletion is never cascaded: a referenced category yields
        CATEGORY_IN_USE and nothing is removed.
        """
        if not user_id:
            return await self._unauthenticated("delete_category")

        try:
            existing = await self._load(user_id)
        except Exception as e:
            return await self._store_failure(
                user_id, "delete_category", e, "Could not delete the category. Please try again."
            )
        if not any(c.id == category_id for c in existing):
            return failure(ErrorKind.NOT_FOUND, "Category not found")

        if self._ledger is None:
            logger.error("category_delete_without_ledger", user_id=user_id, category_id=category_id)
            return failure(ErrorKind.STORE_ERROR, "Could not verify whether the category is in use")

        in_use = await self._ledger.has_transactions(user_id, category_id)
        if not in_use.ok:
            return in_use
        if in_use.value:
            await self._audit(AuditEventBuilder.category_delete_blocked(user_id, category_id))
            return failure(
                ErrorKind.CATEGORY_IN_USE,
                "This category still has transactions. Delete or move them first.",
            )

        try:
            deleted = await self._store.delete(entity_key(CATEGORIES, user_id, category_id))
        except Exception as e:
            return await self._store_failure(
                user_id, "delete_category", e, "Could not delete the category. Please try again."
            )
        if not deleted:
            return failure(ErrorKind.NOT_FOUND, "Category not found")

        logger.info("category_deleted", user_id=user_id, category_id=category_id)
        await self._audit(AuditEventBuilder.category_deleted(user_id, category_id))
        self._publish(user_id, ChangeAction.DELETED, category_id)
        return success(message="Category deleted")

    async def bootstrap_defaults(self, user_id: str) -> Result[BootstrapReport]:
        """
        Create the default catalog for a user without categories.

        Best effort: each default goes through create(), individual failures
        are logged and counted, and the batch succeeds if at least one
        category was created. A user who already owns categories gets a
        no-op success.

        Two concurrent first logins may both see zero categories; the
        uniqueness check in create() then rejects most of the second batch.
        """
        if not user_id:
            return await self._unauthenticated("bootstrap_defaults")

        current = await self.list(user_id)
        if not current.ok:
            return current
        if current.value:
            logger.info("categories_already_initialized", user_id=user_id, count=len(current.value))
            return success(
                BootstrapReport(already_initialized=True),
                "User already has categories",
            )

        payloads = default_category_payloads()
        created = 0
        for payload in payloads:
            result = await self.create(user_id, payload)
            if result.ok:
                created += 1
            else:
                logger.warning(
                    "default_category_failed",
                    user_id=user_id,
                    name=payload["name"],
                    reason=result.message,
                )

        report = BootstrapReport(
            created=created,
            attempted=len(payloads),
            failed=len(payloads) - created,
        )
        logger.info("default_categories_created", user_id=user_id, **report.model_dump())
        await self._audit(AuditEventBuilder.default_categories_created(user_id, created, len(payloads)))

        if created == 0:
            return failure(ErrorKind.STORE_ERROR, "Default categories could not be created. Please try again.")
        return success(report, f"{created} default categories created")

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list(self, user_id: str) -> Result[CategoryList]:
        """All categories of a user, ordered by name."""
        if not user_id:
            return await self._unauthenticated("list_categories")
        try:
            categories = await self._load(user_id)
        except Exception as e:
            return await self._store_failure(
                user_id, "list_categories", e, "Could not load categories"
            )
        return success(sorted(categories, key=lambda c: _name_key(c.name)))

    async def get(self, user_id: str, category_id: str) -> Result[Category]:
        if not user_id:
            return await self._unauthenticated("get_category")
        try:
            categories = await self._load(user_id)
        except Exception as e:
            return await self._store_failure(user_id, "get_category", e, "Could not load the category")

        for category in categories:
            if category.id == category_id:
                return success(category)
        return failure(ErrorKind.NOT_FOUND, "Category not found")

    async def exists(self, user_id: str, category_id: str) -> bool:
        """
        Whether the user owns a category with this id.

        Raises:
            StorageError: If the store can't be read
        """
        categories = await self._load(user_id)
        return any(c.id == category_id for c in categories)

    async def category_stats(self, user_id: str, category_id: str) -> Result[CategoryStats]:
        """Transaction count, net total and last transaction date of a category."""
        found = await self.get(user_id, category_id)
        if not found.ok:
            return found
        if self._ledger is None:
            logger.error("category_stats_without_ledger", user_id=user_id, category_id=category_id)
            return failure(ErrorKind.STORE_ERROR, "Could not calculate category statistics")

        transactions = await self._ledger.list(user_id)
        if not transactions.ok:
            return transactions
        return success(category_stats(transactions.value, category_id))

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _load(self, user_id: str) -> CategoryList:
        records = await self._store.get(collection_key(CATEGORIES, user_id))
        categories = []
        for category_id, record in records.items():
            try:
                categories.append(Category.from_record(category_id, record))
            except ValidationError as e:
                # Skip malformed records
                logger.warning(
                    "malformed_category_skipped",
                    user_id=user_id,
                    category_id=category_id,
                    error=str(e),
                )
        return categories

    @staticmethod
    def _name_taken(
        categories: CategoryList,
        name: str,
        exclude_id: Optional[str] = None,
    ) -> bool:
        key = _name_key(name)
        return any(
            _name_key(c.name) == key and c.id != exclude_id
            for c in categories
        )

    async def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)

    def _publish(self, user_id: str, action: ChangeAction, category_id: str) -> None:
        if self._notifier:
            self._notifier.notify(DataChange(
                user_id=user_id,
                entity="category",
                action=action,
                entity_id=category_id,
            ))

    async def _unauthenticated(self, operation: str) -> Failure:
        logger.warning("unauthenticated_access", operation=operation)
        await self._audit(AuditEventBuilder.unauthenticated_access(operation))
        return failure(ErrorKind.UNAUTHENTICATED, "You must be signed in")

    async def _store_failure(
        self,
        user_id: str,
        operation: str,
        error: Exception,
        message: str,
    ) -> Failure:
        logger.error("store_error", user_id=user_id, operation=operation, error=str(error))
        await self._audit(AuditEventBuilder.store_error(user_id, operation, str(error)))
        return failure(ErrorKind.STORE_ERROR, message)
