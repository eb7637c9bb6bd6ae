"""
Dashboard Composer for fintrack

This module ties the components together and produces the read models the
presentation layer renders:
1. Dashboard (summary, recent activity, categories)
2. Charts (period/kind filtered series)
3. History (month by month)

DESIGN DECISION: The composer enforces consistency:
- Reads fan out concurrently and fan back in before anything is composed
- If any read fails, the whole view fails (no partial dashboards)
- A user without categories gets the default catalog before the first view

create_app_components() wires everything explicitly; there are no
process-wide singletons.
"""

import asyncio
from datetime import date
from typing import Callable, NamedTuple, Optional, Union

import structlog

from fintrack.aggregation import (
    ALL_TIME,
    apply_period_filter,
    category_breakdown,
    daily_activity,
    expense_distribution,
    group_by_month,
    monthly_totals,
    most_recent,
    running_balance_series,
    summarize,
    top_expense_category,
)
from fintrack.audit import AuditLogger, configure_logging
from fintrack.categories import CategoryRegistry
from fintrack.config import Settings, TrackerSettings, get_settings
from fintrack.events import ChangeNotifier
from fintrack.ledger import TransactionLedger
from fintrack.models import (
    AuditEventBuilder,
    ChartsData,
    DashboardSnapshot,
    DataCompleteness,
    ErrorKind,
    Failure,
    HistoryData,
    QuickSummary,
    Result,
    TransactionKind,
    User,
    failure,
    success,
)
from fintrack.services.identity import IdentityProvider, SessionIdentityProvider
from fintrack.services.storage import (
    DocumentStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
)
from fintrack.validation import RecordValidator, normalize_kind


logger = structlog.get_logger(__name__)

BOTH_KINDS = "both"


def _first_failure(*results) -> Optional[Failure]:
    for result in results:
        if not result.ok:
            return result
    return None


class DashboardComposer:
    """
    Builds consistent snapshots of the signed-in user's data.

    Every method reads the current user from the identity provider, so one
    composer serves whoever is signed in at the time of the call.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        registry: CategoryRegistry,
        identity: IdentityProvider,
        settings: Optional[TrackerSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], date] = date.today,
    ):
        self._ledger = ledger
        self._registry = registry
        self._identity = identity
        self._settings = settings or get_settings().tracker
        self._audit_logger = audit_logger
        self._clock = clock

    async def load_dashboard(self) -> Result[DashboardSnapshot]:
        """
        Load the home screen.

        Flow:
        1. Require a signed-in user
        2. Fetch summary, transactions and categories concurrently
        3. Fail as a whole on the first failed fetch
        4. Bootstrap default categories if the user has none
        5. Keep the most recent transactions for the activity list
        """
        user = self._identity.current_user()
        if user is None:
            return await self._unauthenticated("load_dashboard")

        summary, transactions, categories = await asyncio.gather(
            self._ledger.financial_summary(user.id),
            self._ledger.list(user.id),
            self._registry.list(user.id),
        )
        failed = _first_failure(summary, transactions, categories)
        if failed:
            logger.warning("dashboard_load_failed", user_id=user.id, kind=failed.kind.value)
            return failed

        category_list = categories.value
        bootstrapped = False
        if not category_list:
            bootstrap = await self._registry.bootstrap_defaults(user.id)
            if not bootstrap.ok:
                return bootstrap
            reloaded = await self._registry.list(user.id)
            if not reloaded.ok:
                return reloaded
            category_list = reloaded.value
            bootstrapped = bootstrap.value.created > 0

        snapshot = DashboardSnapshot(
            user=user,
            summary=summary.value,
            recent_transactions=most_recent(
                transactions.value, self._settings.recent_transactions_limit
            ),
            categories=category_list,
            bootstrapped=bootstrapped,
        )

        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.dashboard_loaded(
                user.id, summary.value.transaction_count, len(category_list)
            ))
        return success(snapshot, "Dashboard loaded")

    async def quick_summary(self) -> Result[QuickSummary]:
        """Totals plus the category count, for refreshing counters."""
        user = self._identity.current_user()
        if user is None:
            return await self._unauthenticated("quick_summary")

        summary, categories = await asyncio.gather(
            self._ledger.financial_summary(user.id),
            self._registry.list(user.id),
        )
        failed = _first_failure(summary, categories)
        if failed:
            return failed

        return success(QuickSummary(
            **summary.value.model_dump(),
            category_count=len(categories.value),
        ))

    async def charts_data(
        self,
        period_days: int = 30,
        kind: Union[TransactionKind, str, None] = None,
    ) -> Result[ChartsData]:
        """
        Chart series for the last `period_days` days (ALL_TIME for everything).

        kind narrows the period to income or expense; None or "both" keeps
        both. The running balance and daily activity always cover every
        transaction, since a balance over a filtered subset is meaningless.
        """
        if period_days < 0 and period_days != ALL_TIME:
            return failure(ErrorKind.VALIDATION, "Period must be a number of days or all time")

        kind_filter = None
        if kind is not None and kind != BOTH_KINDS:
            kind_filter = normalize_kind(kind)
            if kind_filter is None:
                return failure(ErrorKind.VALIDATION, "Type must be 'income', 'expense' or 'both'")

        user = self._identity.current_user()
        if user is None:
            return await self._unauthenticated("charts_data")

        transactions, categories = await asyncio.gather(
            self._ledger.list(user.id),
            self._registry.list(user.id),
        )
        failed = _first_failure(transactions, categories)
        if failed:
            return failed

        today = self._clock()
        everything = transactions.value
        selected = apply_period_filter(everything, period_days, kind_filter, today)

        return success(ChartsData(
            period_days=period_days,
            kind=kind_filter.value if kind_filter else None,
            transactions=selected,
            categories=categories.value,
            summary=summarize(selected),
            monthly_totals=monthly_totals(selected),
            category_breakdown=category_breakdown(selected, categories.value),
            expense_distribution=expense_distribution(selected, categories.value),
            top_expense_category=top_expense_category(selected, categories.value),
            running_balance=running_balance_series(
                everything, today, self._settings.chart_max_points
            ),
            daily_activity=daily_activity(everything, today, self._settings.activity_days),
        ))

    async def data_completeness(self) -> Result[DataCompleteness]:
        """What the user still needs to set up, with suggested next steps."""
        user = self._identity.current_user()
        if user is None:
            return await self._unauthenticated("data_completeness")

        transactions, categories = await asyncio.gather(
            self._ledger.list(user.id),
            self._registry.list(user.id),
        )
        failed = _first_failure(transactions, categories)
        if failed:
            return failed

        has_transactions = bool(transactions.value)
        has_categories = bool(categories.value)
        actions = []
        if not has_categories:
            actions.append("Create your first categories to organize your finances")
        if not has_transactions:
            actions.append("Add your first transactions to start tracking")
        if not actions:
            actions.append("Explore the charts to analyze your spending")

        return success(DataCompleteness(
            has_transactions=has_transactions,
            has_categories=has_categories,
            suggested_actions=actions,
        ))

    async def history(self) -> Result[HistoryData]:
        """Transactions grouped by month, newest month and newest day first."""
        user = self._identity.current_user()
        if user is None:
            return await self._unauthenticated("history")

        transactions, categories = await asyncio.gather(
            self._ledger.list(user.id),
            self._registry.list(user.id),
        )
        failed = _first_failure(transactions, categories)
        if failed:
            return failed

        return success(HistoryData(
            months=group_by_month(transactions.value, sort_transactions=True),
            categories=categories.value,
        ))

    async def _unauthenticated(self, operation: str) -> Failure:
        logger.warning("unauthenticated_access", operation=operation)
        if self._audit_logger:
            await self._audit_logger.log(AuditEventBuilder.unauthenticated_access(operation))
        return failure(ErrorKind.UNAUTHENTICATED, "You must be signed in")


class AppComponents(NamedTuple):
    store: DocumentStore
    registry: CategoryRegistry
    ledger: TransactionLedger
    composer: DashboardComposer
    identity: IdentityProvider
    notifier: ChangeNotifier
    audit_logger: AuditLogger


def _create_store(settings: Settings) -> DocumentStore:
    if settings.app.storage_backend == "google_sheets":
        try:
            return GoogleSheetsDocumentStore(GoogleSheetsClient(settings.google_sheets))
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", backend="google_sheets", error=str(e))
    return InMemoryDocumentStore()


def create_app_components(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    identity: Optional[IdentityProvider] = None,
    user: Optional[User] = None,
    clock: Callable[[], date] = date.today,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use (defaults to get_settings())
        store: Document store; built from settings.app.storage_backend when omitted
        identity: Identity provider; an in-process session when omitted
        user: Initially signed-in user for the in-process session
        clock: Source of "today" for validation and charts

    Returns:
        AppComponents with the registry, ledger and composer sharing one
        store, audit logger and change notifier
    """
    settings = settings or get_settings()
    configure_logging(settings.app.log_level)

    store = store or _create_store(settings)
    identity = identity or SessionIdentityProvider(user)
    tracker = settings.tracker

    audit_logger = AuditLogger(store)
    notifier = ChangeNotifier()
    validator = RecordValidator(tracker)

    registry = CategoryRegistry(
        store,
        validator=validator,
        audit_logger=audit_logger,
        notifier=notifier,
    )
    ledger = TransactionLedger(
        store,
        registry,
        validator=validator,
        audit_logger=audit_logger,
        notifier=notifier,
        clock=clock,
    )
    composer = DashboardComposer(
        ledger,
        registry,
        identity,
        settings=tracker,
        audit_logger=audit_logger,
        clock=clock,
    )

    logger.info(
        "app_components_created",
        backend=type(store).__name__,
        environment=settings.app.app_environment,
    )
    return AppComponents(
        store=store,
        registry=registry,
        ledger=ledger,
        composer=composer,
        identity=identity,
        notifier=notifier,
        audit_logger=audit_logger,
    )
