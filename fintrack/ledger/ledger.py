"""
Transaction Ledger

Manages each user's transactions and keeps them pointing at categories the
same user owns.

DESIGN DECISION: The ledger reads the whole of a user's transaction
collection and filters in Python. Personal ledgers are small, and it keeps
the store contract down to put/get/patch/delete so any key-value document
store can back it.

Like the registry, every public operation returns a Result and never
raises past this class.
"""

from datetime import date
from typing import Any, Callable, Optional, Union

import structlog
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from fintrack.aggregation import filter_transactions, sort_by_date_desc, summarize
from fintrack.audit import AuditLogger
from fintrack.categories import CategoryRegistry
from fintrack.events import ChangeAction, ChangeNotifier, DataChange
from fintrack.models import (
    AuditEvent,
    AuditEventBuilder,
    ErrorKind,
    Failure,
    FinancialSummary,
    Result,
    Transaction,
    TransactionFilter,
    TransactionKind,
    failure,
    success,
)
from fintrack.services.storage import (
    TRANSACTIONS,
    DocumentStore,
    NotFoundError,
    collection_key,
    entity_key,
)
from fintrack.validation import RecordValidator, clean_transaction_fields, normalize_kind


logger = structlog.get_logger(__name__)

TransactionList = list[Transaction]


class TransactionLedger:
    """
    Per-user transaction management on top of a DocumentStore.

    Binds itself to the registry on construction so category deletes can
    ask whether a category is still referenced.
    """

    def __init__(
        self,
        store: DocumentStore,
        registry: CategoryRegistry,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        notifier: Optional[ChangeNotifier] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._store = store
        self._registry = registry
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger
        self._notifier = notifier
        self._clock = clock
        registry.bind_ledger(self)

    # =========================================================================
    # COMMANDS
    # =========================================================================

    async def create(self, user_id: str, data: dict[str, Any]) -> Result[str]:
        """
        Record a transaction.

        Returns:
            Success with the new transaction id, or a Failure of kind
            VALIDATION, CATEGORY_NOT_FOUND, UNAUTHENTICATED or STORE_ERROR
        """
        if not user_id:
            return await self._unauthenticated("create_transaction")

        issue = self._validator.check_transaction(data, today=self._clock())
        if issue:
            await self._audit(AuditEventBuilder.validation_failed(
                user_id, "transaction", issue.field, issue.message
            ))
            return failure(ErrorKind.VALIDATION, issue.message)

        fields = clean_transaction_fields(data)
        fields.setdefault("recurring", False)
        fields.setdefault("payment_method", "")

        try:
            if not await self._registry.exists(user_id, fields["category_id"]):
                return failure(ErrorKind.CATEGORY_NOT_FOUND, "Category not found")

            record = to_jsonable_python({**fields, "user_id": user_id})
            transaction_id = await self._store.put(collection_key(TRANSACTIONS, user_id), record)
        except Exception as e:
            return await self._store_failure(
                user_id, "create_transaction", e, "Could not save the transaction. Please try again."
            )

        logger.info(
            "transaction_created",
            user_id=user_id,
            transaction_id=transaction_id,
            kind=fields["kind"].value,
        )
        await self._audit(AuditEventBuilder.transaction_created(
            user_id, transaction_id, fields["kind"].value, str(fields["amount"])
        ))
        self._publish(user_id, ChangeAction.CREATED, transaction_id)
        return success(transaction_id, "Transaction created")

    async def update(
        self,
        user_id: str,
        transaction_id: str,
        patch: dict[str, Any],
    ) -> Result[None]:
        """Merge the fields in patch into a transaction. id and user_id are immutable."""
        if not user_id:
            return await self._unauthenticated("update_transaction")

        issue = self._validator.check_transaction(patch, partial=True, today=self._clock())
        if issue:
            await self._audit(AuditEventBuilder.validation_failed(
                user_id, "transaction", issue.field, issue.message
            ))
            return failure(ErrorKind.VALIDATION, issue.message)

        fields = clean_transaction_fields(patch)
        try:
            existing = await self._load(user_id)
            if not any(t.id == transaction_id for t in existing):
                return failure(ErrorKind.NOT_FOUND, "Transaction not found")

            if "category_id" in fields and not await self._registry.exists(user_id, fields["category_id"]):
                return failure(ErrorKind.CATEGORY_NOT_FOUND, "Category not found")

            if fields:
                await self._store.patch(
                    entity_key(TRANSACTIONS, user_id, transaction_id),
                    to_jsonable_python(fields),
                )
        except NotFoundError:
            return failure(ErrorKind.NOT_FOUND, "Transaction not found")
        except Exception as e:
            return await self._store_failure(
                user_id, "update_transaction", e, "Could not update the transaction. Please try again."
            )

        logger.info(
            "transaction_updated",
            user_id=user_id,
            transaction_id=transaction_id,
            fields=sorted(fields),
        )
        await self._audit(AuditEventBuilder.transaction_updated(user_id, transaction_id, sorted(fields)))
        self._publish(user_id, ChangeAction.UPDATED, transaction_id)
        return success(message="Transaction updated")

    async def delete(self, user_id: str, transaction_id: str) -> Result[None]:
        if not user_id:
            return await self._unauthenticated("delete_transaction")
        try:
            deleted = await self._store.delete(entity_key(TRANSACTIONS, user_id, transaction_id))
        except Exception as e:
            return await self._store_failure(
                user_id, "delete_transaction", e, "Could not delete the transaction. Please try again."
            )
        if not deleted:
            return failure(ErrorKind.NOT_FOUND, "Transaction not found")

        logger.info("transaction_deleted", user_id=user_id, transaction_id=transaction_id)
        await self._audit(AuditEventBuilder.transaction_deleted(user_id, transaction_id))
        self._publish(user_id, ChangeAction.DELETED, transaction_id)
        return success(message="Transaction deleted")

    # =========================================================================
    # QUERIES
    # =========================================================================

    async def list(self, user_id: str) -> Result[TransactionList]:
        """All transactions of a user, newest first."""
        return await self._query(user_id, "list_transactions", sort_by_date_desc)

    async def get(self, user_id: str, transaction_id: str) -> Result[Transaction]:
        found = await self.list(user_id)
        if not found.ok:
            return found
        for transaction in found.value:
            if transaction.id == transaction_id:
                return success(transaction)
        return failure(ErrorKind.NOT_FOUND, "Transaction not found")

    async def list_by_category(self, user_id: str, category_id: str) -> Result[TransactionList]:
        return await self.filter(user_id, TransactionFilter(category_id=category_id))

    async def list_by_kind(
        self,
        user_id: str,
        kind: Union[TransactionKind, str],
    ) -> Result[TransactionList]:
        normalized = normalize_kind(kind)
        if normalized is None:
            return failure(ErrorKind.VALIDATION, "Type must be 'income' or 'expense'")
        return await self.filter(user_id, TransactionFilter(kind=normalized))

    async def filter(
        self,
        user_id: str,
        criteria: Union[TransactionFilter, dict[str, Any]],
    ) -> Result[TransactionList]:
        """
        Transactions matching every criterion set in `criteria`.

        Accepts a TransactionFilter or a dict with the same keys.
        """
        if isinstance(criteria, dict):
            try:
                criteria = TransactionFilter.model_validate(criteria)
            except ValidationError as e:
                logger.info("invalid_transaction_filter", user_id=user_id, error=str(e))
                return failure(ErrorKind.VALIDATION, "Invalid filter")

        return await self._query(
            user_id,
            "filter_transactions",
            lambda transactions: sort_by_date_desc(filter_transactions(transactions, criteria)),
        )

    async def has_transactions(self, user_id: str, category_id: str) -> Result[bool]:
        """Whether any of the user's transactions references the category."""
        return await self._query(
            user_id,
            "check_category_usage",
            lambda transactions: any(t.category_id == category_id for t in transactions),
        )

    async def financial_summary(self, user_id: str) -> Result[FinancialSummary]:
        """Balance, totals and transaction count over the whole ledger."""
        return await self._query(user_id, "financial_summary", summarize)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _query(
        self,
        user_id: str,
        operation: str,
        compute: Callable[[TransactionList], Any],
    ) -> Result[Any]:
        if not user_id:
            return await self._unauthenticated(operation)
        try:
            transactions = await self._load(user_id)
        except Exception as e:
            return await self._store_failure(user_id, operation, e, "Could not load transactions")
        return success(compute(transactions))

    async def _load(self, user_id: str) -> TransactionList:
        records = await self._store.get(collection_key(TRANSACTIONS, user_id))
        transactions = []
        for transaction_id, record in records.items():
            try:
                transactions.append(Transaction.from_record(transaction_id, record))
            except ValidationError as e:
                # Skip malformed records
                logger.warning(
                    "malformed_transaction_skipped",
                    user_id=user_id,
                    transaction_id=transaction_id,
                    error=str(e),
                )
        return transactions

    async def _audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)

    def _publish(self, user_id: str, action: ChangeAction, transaction_id: str) -> None:
        if self._notifier:
            self._notifier.notify(DataChange(
                user_id=user_id,
                entity="transaction",
                action=action,
                entity_id=transaction_id,
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
