"""
Aggregation Engine

Pure computations over a sequence of transactions: balances, monthly
groupings, category breakdowns, chart series and period filters.

DESIGN DECISION: Nothing in this module touches the store or reads the
system clock. "Today" is always a parameter, so every function can be
tested against a literal list of transactions. Inputs are never mutated;
every function returns new lists.
"""

import math
from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from fintrack.models import (
    BalancePoint,
    Category,
    CategoryBreakdownRow,
    CategoryShare,
    CategoryStats,
    DailyActivity,
    FinancialSummary,
    MonthGroup,
    MonthlyTotals,
    Transaction,
    TransactionFilter,
    TransactionKind,
)


ALL_TIME = -1
UNKNOWN_CATEGORY = "Unknown category"
ZERO = Decimal("0")


# =============================================================================
# BALANCE
# =============================================================================

def summarize(transactions: Iterable[Transaction]) -> FinancialSummary:
    """
    Income total, expense total, balance and transaction count.

    All zero for an empty sequence.
    """
    income = ZERO
    expense = ZERO
    count = 0
    for transaction in transactions:
        count += 1
        if transaction.kind == TransactionKind.INCOME:
            income += transaction.amount
        else:
            expense += transaction.amount

    return FinancialSummary(
        balance=income - expense,
        income_total=income,
        expense_total=expense,
        transaction_count=count,
    )


def calculate_balance(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.signed_amount for t in transactions), ZERO)


# =============================================================================
# ORDERING AND FILTERING
# =============================================================================

def sort_by_date_desc(transactions: Iterable[Transaction]) -> list[Transaction]:
    """Newest first; same-day transactions keep their relative order."""
    return sorted(transactions, key=lambda t: t.date, reverse=True)


def most_recent(transactions: Iterable[Transaction], limit: int) -> list[Transaction]:
    return sort_by_date_desc(transactions)[:max(limit, 0)]


def filter_transactions(
    transactions: Iterable[Transaction],
    criteria: TransactionFilter,
) -> list[Transaction]:
    """Keep transactions matching every criterion that is set."""
    result = []
    for transaction in transactions:
        if criteria.start_date and transaction.date < criteria.start_date:
            continue
        if criteria.end_date and transaction.date > criteria.end_date:
            continue
        if criteria.category_id and transaction.category_id != criteria.category_id:
            continue
        if criteria.kind and transaction.kind != criteria.kind:
            continue
        result.append(transaction)
    return result


def filter_by_period(
    transactions: Iterable[Transaction],
    period_days: int,
    today: date,
) -> list[Transaction]:
    """
    Transactions dated on or after `today - period_days`.

    period_days == ALL_TIME keeps everything.
    """
    if period_days == ALL_TIME:
        return list(transactions)
    if period_days < 0:
        raise ValueError(f"period_days must be >= 0 or ALL_TIME, got {period_days}")
    cutoff = today - timedelta(days=period_days)
    return [t for t in transactions if t.date >= cutoff]


def filter_by_kind(
    transactions: Iterable[Transaction],
    kind: Optional[TransactionKind],
) -> list[Transaction]:
    """None keeps both kinds."""
    if kind is None:
        return list(transactions)
    return [t for t in transactions if t.kind == kind]


def apply_period_filter(
    transactions: Iterable[Transaction],
    period_days: int,
    kind: Optional[TransactionKind],
    today: date,
) -> list[Transaction]:
    """Period cutoff followed by the optional kind filter."""
    return filter_by_kind(filter_by_period(transactions, period_days, today), kind)


# =============================================================================
# MONTHLY VIEWS
# =============================================================================

def month_label(year: int, month: int) -> str:
    """e.g. 'January 2024'."""
    return date(year, month, 1).strftime("%B %Y")


def group_by_month(
    transactions: Iterable[Transaction],
    sort_transactions: bool = False,
) -> list[MonthGroup]:
    """
    Partition by (year, month), most recent month first.

    Members keep their input order unless sort_transactions is set,
    in which case they are ordered newest first.
    """
    buckets: dict[tuple[int, int], list[Transaction]] = defaultdict(list)
    for transaction in transactions:
        buckets[(transaction.date.year, transaction.date.month)].append(transaction)

    groups = []
    for (year, month) in sorted(buckets, reverse=True):
        members = buckets[(year, month)]
        if sort_transactions:
            members = sort_by_date_desc(members)
        groups.append(MonthGroup(
            year=year,
            month=month,
            label=month_label(year, month),
            transactions=members,
        ))
    return groups


def monthly_totals(transactions: Iterable[Transaction]) -> list[MonthlyTotals]:
    """Income and expense per month, oldest first."""
    totals: dict[tuple[int, int], list[Decimal]] = defaultdict(lambda: [ZERO, ZERO])
    for transaction in transactions:
        bucket = totals[(transaction.date.year, transaction.date.month)]
        if transaction.kind == TransactionKind.INCOME:
            bucket[0] += transaction.amount
        else:
            bucket[1] += transaction.amount

    return [
        MonthlyTotals(
            key=f"{year:04d}-{month:02d}",
            label=month_label(year, month),
            income=income,
            expense=expense,
        )
        for (year, month), (income, expense) in sorted(totals.items())
    ]


# =============================================================================
# CATEGORY VIEWS
# =============================================================================

def _category_index(categories: Optional[Sequence[Category]]) -> dict[str, Category]:
    return {c.id: c for c in categories or ()}


def category_breakdown(
    transactions: Iterable[Transaction],
    categories: Optional[Sequence[Category]] = None,
) -> list[CategoryBreakdownRow]:
    """
    Income, expense, net and count per category.

    Sorted by |net| descending; ties keep first-encountered order.
    """
    index = _category_index(categories)
    rows: dict[str, CategoryBreakdownRow] = {}

    for transaction in transactions:
        row = rows.get(transaction.category_id)
        if row is None:
            category = index.get(transaction.category_id)
            row = CategoryBreakdownRow(
                category_id=transaction.category_id,
                category_name=category.name if category else UNKNOWN_CATEGORY,
            )
            rows[transaction.category_id] = row

        if transaction.kind == TransactionKind.INCOME:
            row.income += transaction.amount
        else:
            row.expense += transaction.amount
        row.transaction_count += 1

    for row in rows.values():
        row.net = row.income - row.expense

    # sorted() is stable, so ties stay in encounter order
    return sorted(rows.values(), key=lambda r: abs(r.net), reverse=True)


def expense_distribution(
    transactions: Iterable[Transaction],
    categories: Optional[Sequence[Category]] = None,
) -> list[CategoryShare]:
    """Expense total per category and its percentage share, largest first."""
    index = _category_index(categories)
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.kind != TransactionKind.EXPENSE:
            continue
        totals[transaction.category_id] = (
            totals.get(transaction.category_id, ZERO) + transaction.amount
        )

    grand_total = sum(totals.values(), ZERO)
    if grand_total == ZERO:
        return []

    shares = []
    for category_id, amount in totals.items():
        category = index.get(category_id)
        shares.append(CategoryShare(
            category_id=category_id,
            category_name=category.name if category else UNKNOWN_CATEGORY,
            color=category.color if category else None,
            amount=amount,
            percent=round(float(amount / grand_total * 100), 2),
        ))
    return sorted(shares, key=lambda s: s.amount, reverse=True)


def top_expense_category(
    transactions: Iterable[Transaction],
    categories: Optional[Sequence[Category]] = None,
) -> Optional[CategoryShare]:
    distribution = expense_distribution(transactions, categories)
    return distribution[0] if distribution else None


def category_stats(
    transactions: Iterable[Transaction],
    category_id: str,
) -> CategoryStats:
    """Count, net total and last transaction date of one category."""
    members = [t for t in transactions if t.category_id == category_id]
    return CategoryStats(
        category_id=category_id,
        transaction_count=len(members),
        net_total=calculate_balance(members),
        last_transaction_date=max((t.date for t in members), default=None),
    )


# =============================================================================
# TIME SERIES
# =============================================================================

def _day_label(day: date) -> str:
    return day.strftime("%b %d")


def running_balance_series(
    transactions: Iterable[Transaction],
    today: date,
    max_points: int = 30,
) -> list[BalancePoint]:
    """
    Cumulative balance from the first transaction's date through today.

    Days without activity carry the previous balance forward. When the
    walk has more days than max_points, every Nth day is kept starting at
    the first transaction's date, with N = ceil(days / max_points). Today is
    always the last point; if adding it would exceed max_points it takes the
    place of the last sampled day. Transactions after today are ignored.
    """
    daily_net: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for transaction in transactions:
        if transaction.date <= today:
            daily_net[transaction.date] += transaction.signed_amount

    if not daily_net:
        return []

    budget = max(max_points, 1)
    start = min(daily_net)
    total_days = (today - start).days + 1
    stride = max(1, math.ceil(total_days / budget))
    last_index = total_days - 1

    points = []
    balance = ZERO
    for offset in range(total_days):
        day = start + timedelta(days=offset)
        balance += daily_net.get(day, ZERO)
        if offset % stride == 0 or offset == last_index:
            points.append(BalancePoint(date=day, label=_day_label(day), value=balance))

    if len(points) > budget:
        del points[-2]
    return points


def daily_activity(
    transactions: Iterable[Transaction],
    today: date,
    days: int = 7,
) -> list[DailyActivity]:
    """Income and expense per day for the `days` days ending today, oldest first."""
    first_day = today - timedelta(days=days - 1)
    activity = {
        first_day + timedelta(days=offset): DailyActivity(
            date=first_day + timedelta(days=offset),
            label=_day_label(first_day + timedelta(days=offset)),
        )
        for offset in range(days)
    }

    for transaction in transactions:
        entry = activity.get(transaction.date)
        if entry is None:
            continue
        if transaction.kind == TransactionKind.INCOME:
            entry.income += transaction.amount
        else:
            entry.expense += transaction.amount

    return list(activity.values())
