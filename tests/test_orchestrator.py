"""
Tests for the dashboard composer and the component factory.
"""

from datetime import timedelta
from decimal import Decimal

from factories import (
    TODAY,
    USER_ID,
    FlakyDocumentStore,
    category_payload,
    run,
    transaction_payload,
)
from fintrack.aggregation import ALL_TIME
from fintrack.categories import CategoryRegistry
from fintrack.config import Settings
from fintrack.events import ChangeAction
from fintrack.ledger import TransactionLedger
from fintrack.models import ErrorKind, User
from fintrack.orchestrator import DashboardComposer, create_app_components
from fintrack.services.identity import SessionIdentityProvider
from fintrack.services.storage import InMemoryDocumentStore


def composer_on(store, user=None):
    registry = CategoryRegistry(store)
    ledger = TransactionLedger(store, registry, clock=lambda: TODAY)
    identity = SessionIdentityProvider(user or User(id=USER_ID))
    return DashboardComposer(ledger, registry, identity, clock=lambda: TODAY)


class TestLoadDashboard:
    """Tests for DashboardComposer.load_dashboard."""

    def test_first_load_bootstraps_categories(self, composer, registry):
        result = run(composer.load_dashboard())
        assert result.ok
        snapshot = result.value
        assert snapshot.bootstrapped
        assert len(snapshot.categories) == 14
        assert snapshot.summary.balance == 0
        assert snapshot.recent_transactions == []

    def test_second_load_does_not_bootstrap(self, composer, registry):
        run(composer.load_dashboard())
        snapshot = run(composer.load_dashboard()).value
        assert not snapshot.bootstrapped
        assert len(snapshot.categories) == 14

    def test_summary_and_recent_activity(self, composer, ledger, category_id):
        for offset in range(12):
            day = (TODAY - timedelta(days=offset)).isoformat()
            assert run(ledger.create(
                USER_ID, transaction_payload(category_id, amount="10", date=day)
            )).ok
        run(ledger.create(USER_ID, transaction_payload(
            category_id, amount="500", kind="income", date="2024-01-02"
        )))

        snapshot = run(composer.load_dashboard()).value
        assert snapshot.summary.income_total == Decimal("500")
        assert snapshot.summary.expense_total == Decimal("120")
        assert snapshot.summary.balance == Decimal("380")
        assert snapshot.summary.transaction_count == 13

        recent = snapshot.recent_transactions
        assert len(recent) == 10
        assert recent[0].date == TODAY
        assert [t.date for t in recent] == sorted((t.date for t in recent), reverse=True)

    def test_salary_example(self, composer, ledger, registry):
        salary = run(registry.create(USER_ID, category_payload(name="Salary"))).value
        run(ledger.create(USER_ID, transaction_payload(
            salary, amount="1000", kind="income", date="2024-01-05"
        )))
        run(ledger.create(USER_ID, transaction_payload(
            salary, amount="300", kind="expense", date="2024-01-10"
        )))
        summary = run(composer.load_dashboard()).value.summary
        assert summary.balance == Decimal("700")
        assert summary.income_total == Decimal("1000")
        assert summary.expense_total == Decimal("300")

    def test_requires_signed_in_user(self, composer, identity):
        identity.sign_out()
        result = run(composer.load_dashboard())
        assert result.kind == ErrorKind.UNAUTHENTICATED

    def test_fetch_failure_fails_whole_dashboard(self):
        composer = composer_on(FlakyDocumentStore(fail_methods={"get"}))
        result = run(composer.load_dashboard())
        assert not result.ok
        assert result.kind == ErrorKind.STORE_ERROR
        assert result.value is None

    def test_bootstrap_failure_fails_dashboard(self):
        composer = composer_on(FlakyDocumentStore(fail_methods={"put"}))
        result = run(composer.load_dashboard())
        assert result.kind == ErrorKind.STORE_ERROR

    def test_follows_session_changes(self, composer, identity, registry):
        run(composer.load_dashboard())
        identity.sign_in(User(id="user-9", display_name="Alex"))
        snapshot = run(composer.load_dashboard()).value
        assert snapshot.user.id == "user-9"
        assert all(c.user_id == "user-9" for c in snapshot.categories)


class TestDerivedViews:
    """Tests for quick_summary, charts_data, data_completeness and history."""

    def seed(self, ledger, registry):
        salary = run(registry.create(USER_ID, category_payload(name="Salary", color="#22c55e"))).value
        food = run(registry.create(USER_ID, category_payload(name="Groceries", color="#f59e0b"))).value
        for payload in (
            transaction_payload(salary, amount="2000", kind="income", date="2024-01-05"),
            transaction_payload(food, amount="120", date="2024-01-20"),
            transaction_payload(food, amount="200", date="2024-03-10"),
            transaction_payload(salary, amount="2000", kind="income", date="2024-03-12"),
        ):
            assert run(ledger.create(USER_ID, payload)).ok
        return salary, food

    def test_quick_summary(self, composer, ledger, registry):
        self.seed(ledger, registry)
        summary = run(composer.quick_summary()).value
        assert summary.balance == Decimal("3680")
        assert summary.transaction_count == 4
        assert summary.category_count == 2

    def test_charts_data_last_30_days(self, composer, ledger, registry):
        salary, food = self.seed(ledger, registry)
        charts = run(composer.charts_data(period_days=30)).value
        assert {t.amount for t in charts.transactions} == {Decimal("200"), Decimal("2000")}
        assert charts.summary.balance == Decimal("1800")
        assert [m.key for m in charts.monthly_totals] == ["2024-03"]
        assert charts.top_expense_category.category_name == "Groceries"
        assert charts.expense_distribution[0].percent == 100.0

        # Balance series and activity cover every transaction
        assert charts.running_balance[-1].value == Decimal("3680")
        assert charts.running_balance[-1].date == TODAY
        assert len(charts.running_balance) <= 30
        assert len(charts.daily_activity) == 7

    def test_charts_data_kind_filter(self, composer, ledger, registry):
        self.seed(ledger, registry)
        charts = run(composer.charts_data(period_days=ALL_TIME, kind="expense")).value
        assert charts.kind == "expense"
        assert charts.summary.income_total == 0
        assert charts.summary.expense_total == Decimal("320")
        assert [row.category_name for row in charts.category_breakdown] == ["Groceries"]

    def test_charts_data_both_kinds(self, composer, ledger, registry):
        self.seed(ledger, registry)
        charts = run(composer.charts_data(period_days=ALL_TIME, kind="both")).value
        assert charts.kind is None
        assert len(charts.transactions) == 4

    def test_charts_data_rejects_bad_input(self, composer):
        assert run(composer.charts_data(period_days=-5)).kind == ErrorKind.VALIDATION
        assert run(composer.charts_data(kind="transfer")).kind == ErrorKind.VALIDATION

    def test_data_completeness_for_new_user(self, composer):
        result = run(composer.data_completeness()).value
        assert not result.has_transactions
        assert not result.has_categories
        assert len(result.suggested_actions) == 2

    def test_data_completeness_for_active_user(self, composer, ledger, registry):
        self.seed(ledger, registry)
        result = run(composer.data_completeness()).value
        assert result.has_transactions and result.has_categories
        assert result.suggested_actions == ["Explore the charts to analyze your spending"]

    def test_history(self, composer, ledger, registry):
        self.seed(ledger, registry)
        history = run(composer.history()).value
        assert [m.label for m in history.months] == ["March 2024", "January 2024"]
        march = history.months[0].transactions
        assert [t.amount for t in march] == [Decimal("2000"), Decimal("200")]
        assert len(history.categories) == 2

    def test_views_require_user(self, composer, identity):
        identity.sign_out()
        for view in (composer.quick_summary, composer.charts_data, composer.data_completeness, composer.history):
            assert run(view()).kind == ErrorKind.UNAUTHENTICATED


class TestCreateAppComponents:
    """Tests for the factory wiring."""

    def test_wires_memory_backend(self):
        components = create_app_components(
            settings=Settings(),
            store=InMemoryDocumentStore(),
            user=User(id=USER_ID),
            clock=lambda: TODAY,
        )
        changes = []
        components.notifier.subscribe(changes.append)

        snapshot = run(components.composer.load_dashboard()).value
        assert len(snapshot.categories) == 14
        assert len(changes) == 14
        assert all(c.action == ChangeAction.CREATED for c in changes)

        category_id = snapshot.categories[0].id
        assert run(components.ledger.create(
            USER_ID, transaction_payload(category_id)
        )).ok
        assert run(components.registry.delete(USER_ID, category_id)).kind == ErrorKind.CATEGORY_IN_USE

    def test_audit_history_recorded(self):
        components = create_app_components(
            store=InMemoryDocumentStore(),
            user=User(id=USER_ID),
            clock=lambda: TODAY,
        )
        run(components.composer.load_dashboard())
        events = run(components.audit_logger.history(USER_ID))
        assert any(e.event_type.value == "default_categories_created" for e in events)
        assert events[-1].event_type.value == "dashboard_loaded"

    def test_defaults_to_signed_out_session(self):
        components = create_app_components(store=InMemoryDocumentStore())
        assert components.identity.current_user() is None
        assert run(components.composer.load_dashboard()).kind == ErrorKind.UNAUTHENTICATED
