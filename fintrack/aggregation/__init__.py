"""Aggregation engine package."""

from fintrack.aggregation.engine import (
    ALL_TIME,
    UNKNOWN_CATEGORY,
    apply_period_filter,
    calculate_balance,
    category_breakdown,
    category_stats,
    daily_activity,
    expense_distribution,
    filter_by_kind,
    filter_by_period,
    filter_transactions,
    group_by_month,
    month_label,
    monthly_totals,
    most_recent,
    running_balance_series,
    sort_by_date_desc,
    summarize,
    top_expense_category,
)

__all__ = [
    "ALL_TIME",
    "UNKNOWN_CATEGORY",
    "apply_period_filter",
    "calculate_balance",
    "category_breakdown",
    "category_stats",
    "daily_activity",
    "expense_distribution",
    "filter_by_kind",
    "filter_by_period",
    "filter_transactions",
    "group_by_month",
    "month_label",
    "monthly_totals",
    "most_recent",
    "running_balance_series",
    "sort_by_date_desc",
    "summarize",
    "top_expense_category",
]
