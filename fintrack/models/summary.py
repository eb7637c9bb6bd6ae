"""
Derived Data Models

Shapes produced by the aggregation engine and the dashboard composer for
the presentation layer. None of these are persisted.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from fintrack.models.finance import Category, Transaction, User


ZERO = Decimal("0")


class FinancialSummary(BaseModel):
    """Totals over a set of transactions."""

    balance: Decimal = ZERO
    income_total: Decimal = ZERO
    expense_total: Decimal = ZERO
    transaction_count: int = Field(default=0, ge=0)


class MonthGroup(BaseModel):
    """All transactions of one calendar month."""

    year: int
    month: int = Field(..., ge=1, le=12)
    label: str = Field(..., description="e.g. 'January 2024'")
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class MonthlyTotals(BaseModel):
    """Income and expense of one month (bar chart row)."""

    key: str = Field(..., description="YYYY-MM")
    label: str
    income: Decimal = ZERO
    expense: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class CategoryBreakdownRow(BaseModel):
    """Per-category totals for the breakdown table."""

    category_id: str
    category_name: str
    income: Decimal = ZERO
    expense: Decimal = ZERO
    net: Decimal = ZERO
    transaction_count: int = 0


class CategoryShare(BaseModel):
    """Expense total of one category and its share of all expenses (pie chart)."""

    category_id: str
    category_name: str
    color: Optional[str] = None
    amount: Decimal
    percent: float = Field(..., ge=0.0, le=100.0)


class CategoryStats(BaseModel):
    """Activity of a single category."""

    category_id: str
    transaction_count: int = 0
    net_total: Decimal = ZERO
    last_transaction_date: Optional[date] = None


class BalancePoint(BaseModel):
    """One point of the running-balance series."""

    date: date
    label: str
    value: Decimal


class DailyActivity(BaseModel):
    """Income and expense booked on one day."""

    date: date
    label: str
    income: Decimal = ZERO
    expense: Decimal = ZERO


class BootstrapReport(BaseModel):
    """Outcome of creating the default category catalog."""

    created: int = 0
    attempted: int = 0
    failed: int = 0
    already_initialized: bool = False


# =============================================================================
# DASHBOARD SNAPSHOTS
# =============================================================================

class DashboardSnapshot(BaseModel):
    """Everything the home screen needs, read consistently."""

    user: User
    summary: FinancialSummary
    recent_transactions: list[Transaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    bootstrapped: bool = Field(
        default=False,
        description="True if default categories were created during this load"
    )


class QuickSummary(BaseModel):
    """Lightweight totals for refreshing counters."""

    balance: Decimal = ZERO
    income_total: Decimal = ZERO
    expense_total: Decimal = ZERO
    transaction_count: int = 0
    category_count: int = 0


class ChartsData(BaseModel):
    """Series for the charts screen under one period/kind filter."""

    period_days: int
    kind: Optional[str] = None
    transactions: list[Transaction] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
    summary: FinancialSummary
    monthly_totals: list[MonthlyTotals] = Field(default_factory=list)
    category_breakdown: list[CategoryBreakdownRow] = Field(default_factory=list)
    expense_distribution: list[CategoryShare] = Field(default_factory=list)
    top_expense_category: Optional[CategoryShare] = None
    running_balance: list[BalancePoint] = Field(default_factory=list)
    daily_activity: list[DailyActivity] = Field(default_factory=list)


class DataCompleteness(BaseModel):
    """What a new user still has to set up."""

    has_transactions: bool
    has_categories: bool
    suggested_actions: list[str] = Field(default_factory=list)


class HistoryData(BaseModel):
    """Month-by-month history view."""

    months: list[MonthGroup] = Field(default_factory=list)
    categories: list[Category] = Field(default_factory=list)
