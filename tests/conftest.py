"""Shared fixtures: an in-memory store with a registry, ledger and composer on top."""

import pytest

from factories import TODAY, USER_ID, category_payload, run
from fintrack.categories import CategoryRegistry
from fintrack.config import TrackerSettings
from fintrack.events import ChangeNotifier
from fintrack.ledger import TransactionLedger
from fintrack.models import User
from fintrack.orchestrator import DashboardComposer
from fintrack.services.identity import SessionIdentityProvider
from fintrack.services.storage import InMemoryDocumentStore
from fintrack.validation import RecordValidator


@pytest.fixture
def settings():
    return TrackerSettings(
        max_amount=1_000_000,
        max_spending_limit=1_000_000,
        history_years=10,
        recent_transactions_limit=10,
        chart_max_points=30,
        activity_days=7,
    )


@pytest.fixture
def validator(settings):
    return RecordValidator(settings)


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def notifier():
    return ChangeNotifier()


@pytest.fixture
def registry(store, validator, notifier):
    return CategoryRegistry(store, validator=validator, notifier=notifier)


@pytest.fixture
def ledger(store, registry, validator, notifier):
    return TransactionLedger(
        store,
        registry,
        validator=validator,
        notifier=notifier,
        clock=lambda: TODAY,
    )


@pytest.fixture
def user():
    return User(id=USER_ID, display_name="Sam", email="sam@example.com")


@pytest.fixture
def identity(user):
    return SessionIdentityProvider(user)


@pytest.fixture
def composer(ledger, registry, identity, settings):
    return DashboardComposer(
        ledger,
        registry,
        identity,
        settings=settings,
        clock=lambda: TODAY,
    )


@pytest.fixture
def category_id(registry):
    """Id of a 'Food' category owned by USER_ID."""
    result = run(registry.create(USER_ID, category_payload()))
    assert result.ok, result.message
    return result.value
