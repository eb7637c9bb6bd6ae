"""
Tests for the category registry.

Run against the in-memory store; store outages are simulated with
FlakyDocumentStore.
"""

from decimal import Decimal

from factories import (
    OTHER_USER_ID,
    USER_ID,
    FlakyDocumentStore,
    category_payload,
    run,
    transaction_payload,
)
from fintrack.audit import AuditLogger
from fintrack.categories import (
    DEFAULT_CATEGORIES,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    CategoryRegistry,
    default_category_payloads,
)
from fintrack.events import ChangeAction
from fintrack.ledger import TransactionLedger
from fintrack.models import AuditEventType, ErrorKind
from fintrack.services.storage import AUDIT, collection_key


class TestCreate:
    """Tests for CategoryRegistry.create."""

    def test_create_returns_id(self, registry):
        result = run(registry.create(USER_ID, category_payload()))
        assert result.ok
        assert result.value

        listed = run(registry.list(USER_ID)).value
        assert [c.name for c in listed] == ["Food"]
        assert listed[0].id == result.value
        assert listed[0].user_id == USER_ID

    def test_create_strips_and_parses(self, registry):
        result = run(registry.create(USER_ID, category_payload(
            name="  Rent  ", spending_limit="1500.50"
        )))
        category = run(registry.get(USER_ID, result.value)).value
        assert category.name == "Rent"
        assert category.spending_limit == Decimal("1500.50")

    def test_duplicate_name_case_insensitive(self, registry):
        run(registry.create(USER_ID, category_payload(name="Food")))
        result = run(registry.create(USER_ID, category_payload(name="  fOOD ")))
        assert not result.ok
        assert result.kind == ErrorKind.DUPLICATE_NAME
        assert len(run(registry.list(USER_ID)).value) == 1

    def test_same_name_allowed_for_other_user(self, registry):
        run(registry.create(USER_ID, category_payload()))
        assert run(registry.create(OTHER_USER_ID, category_payload())).ok

    def test_validation_failure(self, registry):
        result = run(registry.create(USER_ID, category_payload(color="orange")))
        assert not result.ok
        assert result.kind == ErrorKind.VALIDATION
        assert "Color" in result.message

    def test_requires_user(self, registry):
        result = run(registry.create("", category_payload()))
        assert result.kind == ErrorKind.UNAUTHENTICATED

    def test_store_error_is_generic(self):
        registry = CategoryRegistry(FlakyDocumentStore(fail_methods={"put"}))
        result = run(registry.create(USER_ID, category_payload()))
        assert result.kind == ErrorKind.STORE_ERROR
        assert "connection reset" not in result.message

    def test_notifies_on_create(self, registry, notifier):
        changes = []
        notifier.subscribe(changes.append)
        result = run(registry.create(USER_ID, category_payload()))
        assert len(changes) == 1
        assert changes[0].entity == "category"
        assert changes[0].action == ChangeAction.CREATED
        assert changes[0].entity_id == result.value


class TestQueries:
    """Tests for list and get."""

    def test_list_sorted_by_name(self, registry):
        for name in ("Travel", "bills", "Food"):
            run(registry.create(USER_ID, category_payload(name=name)))
        names = [c.name for c in run(registry.list(USER_ID)).value]
        assert names == ["bills", "Food", "Travel"]

    def test_list_is_scoped_to_user(self, registry):
        run(registry.create(USER_ID, category_payload()))
        assert run(registry.list(OTHER_USER_ID)).value == []

    def test_get_unknown(self, registry):
        result = run(registry.get(USER_ID, "missing"))
        assert result.kind == ErrorKind.NOT_FOUND

    def test_malformed_records_skipped(self, registry, store):
        run(store.put(collection_key("categories", USER_ID), {"name": "Broken"}))
        run(registry.create(USER_ID, category_payload()))
        assert [c.name for c in run(registry.list(USER_ID)).value] == ["Food"]

    def test_list_store_error(self):
        registry = CategoryRegistry(FlakyDocumentStore(fail_methods={"get"}))
        result = run(registry.list(USER_ID))
        assert result.kind == ErrorKind.STORE_ERROR


class TestUpdate:
    """Tests for CategoryRegistry.update."""

    def test_patch_merges_fields(self, registry, category_id):
        run(registry.update(USER_ID, category_id, {"spending_limit": 400}))
        result = run(registry.update(USER_ID, category_id, {"color": "#123"}))
        assert result.ok

        category = run(registry.get(USER_ID, category_id)).value
        assert category.color == "#123"
        assert category.spending_limit == Decimal("400")
        assert category.name == "Food"

    def test_rename_to_own_name_allowed(self, registry, category_id):
        assert run(registry.update(USER_ID, category_id, {"name": "FOOD"})).ok

    def test_rename_to_taken_name_rejected(self, registry, category_id):
        run(registry.create(USER_ID, category_payload(name="Travel")))
        result = run(registry.update(USER_ID, category_id, {"name": "travel"}))
        assert result.kind == ErrorKind.DUPLICATE_NAME

    def test_update_unknown(self, registry):
        result = run(registry.update(USER_ID, "missing", {"color": "#000"}))
        assert result.kind == ErrorKind.NOT_FOUND

    def test_partial_validation(self, registry, category_id):
        result = run(registry.update(USER_ID, category_id, {"name": "X"}))
        assert result.kind == ErrorKind.VALIDATION

    def test_clear_spending_limit(self, registry, category_id):
        run(registry.update(USER_ID, category_id, {"spending_limit": 400}))
        run(registry.update(USER_ID, category_id, {"spending_limit": None}))
        assert run(registry.get(USER_ID, category_id)).value.spending_limit is None

    def test_notifies_on_update(self, registry, notifier, category_id):
        changes = []
        notifier.subscribe(changes.append)
        run(registry.update(USER_ID, category_id, {"color": "#000"}))
        assert [c.action for c in changes] == [ChangeAction.UPDATED]


class TestDelete:
    """Tests for the delete guard."""

    def test_delete_unreferenced(self, registry, ledger, category_id):
        result = run(registry.delete(USER_ID, category_id))
        assert result.ok
        assert run(registry.list(USER_ID)).value == []

    def test_delete_referenced_is_blocked(self, registry, ledger, category_id):
        run(ledger.create(USER_ID, transaction_payload(category_id)))
        result = run(registry.delete(USER_ID, category_id))
        assert not result.ok
        assert result.kind == ErrorKind.CATEGORY_IN_USE
        assert len(run(registry.list(USER_ID)).value) == 1
        assert len(run(ledger.list(USER_ID)).value) == 1

    def test_delete_after_transactions_removed(self, registry, ledger, category_id):
        created = run(ledger.create(USER_ID, transaction_payload(category_id)))
        run(ledger.delete(USER_ID, created.value))
        assert run(registry.delete(USER_ID, category_id)).ok

    def test_delete_unknown(self, registry, ledger):
        assert run(registry.delete(USER_ID, "missing")).kind == ErrorKind.NOT_FOUND

    def test_delete_without_ledger_refuses(self, store, category_id):
        unbound = CategoryRegistry(store)
        result = run(unbound.delete(USER_ID, category_id))
        assert result.kind == ErrorKind.STORE_ERROR
        assert len(run(unbound.list(USER_ID)).value) == 1


class TestBootstrap:
    """Tests for the default catalog."""

    def test_creates_fourteen_defaults(self, registry):
        result = run(registry.bootstrap_defaults(USER_ID))
        assert result.ok
        assert result.value.created == 14
        assert result.value.attempted == 14
        assert result.value.failed == 0

        names = {c.name for c in run(registry.list(USER_ID)).value}
        assert names == {entry["name"] for entry in DEFAULT_CATEGORIES}

    def test_catalog_shape(self):
        assert len(DEFAULT_INCOME_CATEGORIES) == 5
        assert len(DEFAULT_EXPENSE_CATEGORIES) == 9
        assert len(DEFAULT_CATEGORIES) == 14
        assert all(set(entry) == {"name", "color", "description"} for entry in DEFAULT_CATEGORIES)

    def test_payloads_are_copies(self):
        payloads = default_category_payloads()
        payloads[0]["name"] = "Changed"
        assert DEFAULT_CATEGORIES[0]["name"] == "Salary"

    def test_second_bootstrap_is_noop(self, registry):
        run(registry.bootstrap_defaults(USER_ID))
        result = run(registry.bootstrap_defaults(USER_ID))
        assert result.ok
        assert result.value.already_initialized
        assert result.value.created == 0
        assert "already has categories" in result.message
        assert len(run(registry.list(USER_ID)).value) == 14

    def test_existing_category_skips_bootstrap(self, registry, category_id):
        result = run(registry.bootstrap_defaults(USER_ID))
        assert result.value.already_initialized
        assert len(run(registry.list(USER_ID)).value) == 1

    def test_partial_failure_tolerated(self):
        store = FlakyDocumentStore(fail_puts_after=3)
        registry = CategoryRegistry(store)
        result = run(registry.bootstrap_defaults(USER_ID))
        assert result.ok
        assert result.value.created == 3
        assert result.value.failed == 11

    def test_total_failure_reported(self):
        registry = CategoryRegistry(FlakyDocumentStore(fail_methods={"put"}))
        result = run(registry.bootstrap_defaults(USER_ID))
        assert not result.ok
        assert result.kind == ErrorKind.STORE_ERROR

    def test_read_failure_reported(self):
        registry = CategoryRegistry(FlakyDocumentStore(fail_methods={"get"}))
        assert run(registry.bootstrap_defaults(USER_ID)).kind == ErrorKind.STORE_ERROR


class TestCategoryStats:
    """Tests for CategoryRegistry.category_stats."""

    def test_stats(self, registry, ledger, category_id):
        run(ledger.create(USER_ID, transaction_payload(category_id, amount="100", date="2024-03-01")))
        run(ledger.create(USER_ID, transaction_payload(
            category_id, amount="40", date="2024-03-05", kind="income"
        )))
        stats = run(registry.category_stats(USER_ID, category_id)).value
        assert stats.transaction_count == 2
        assert stats.net_total == Decimal("-60")
        assert stats.last_transaction_date.isoformat() == "2024-03-05"

    def test_stats_unknown_category(self, registry, ledger):
        result = run(registry.category_stats(USER_ID, "missing"))
        assert result.kind == ErrorKind.NOT_FOUND


class TestAuditTrail:
    """Registry operations leave audit events in the store."""

    def test_events_persisted(self, store):
        audit_logger = AuditLogger(store)
        registry = CategoryRegistry(store, audit_logger=audit_logger)
        TransactionLedger(store, registry, audit_logger=audit_logger)

        created = run(registry.create(USER_ID, category_payload()))
        run(registry.create(USER_ID, category_payload(name="food")))
        run(registry.delete(USER_ID, created.value))

        events = run(audit_logger.history(USER_ID))
        assert [e.event_type for e in events] == [
            AuditEventType.CATEGORY_CREATED,
            AuditEventType.CATEGORY_DELETED,
        ]
        assert run(store.get(collection_key(AUDIT, USER_ID)))
