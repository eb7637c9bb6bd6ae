"""
Data Models Package

This package contains all Pydantic models used in fintrack.
All data flowing through the system must conform to these schemas.
"""

from fintrack.models.finance import (
    PAYMENT_METHOD_SUGGESTIONS,
    Category,
    Transaction,
    TransactionFilter,
    TransactionKind,
    User,
    ValidationIssue,
)
from fintrack.models.results import (
    ErrorKind,
    Failure,
    Result,
    Success,
    failure,
    success,
)
from fintrack.models.summary import (
    BalancePoint,
    BootstrapReport,
    CategoryBreakdownRow,
    CategoryShare,
    CategoryStats,
    ChartsData,
    DailyActivity,
    DashboardSnapshot,
    DataCompleteness,
    FinancialSummary,
    HistoryData,
    MonthGroup,
    MonthlyTotals,
    QuickSummary,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "PAYMENT_METHOD_SUGGESTIONS",
    "Category",
    "Transaction",
    "TransactionFilter",
    "TransactionKind",
    "User",
    "ValidationIssue",
    # Results
    "ErrorKind",
    "Failure",
    "Result",
    "Success",
    "failure",
    "success",
    # Derived data
    "BalancePoint",
    "BootstrapReport",
    "CategoryBreakdownRow",
    "CategoryShare",
    "CategoryStats",
    "ChartsData",
    "DailyActivity",
    "DashboardSnapshot",
    "DataCompleteness",
    "FinancialSummary",
    "HistoryData",
    "MonthGroup",
    "MonthlyTotals",
    "QuickSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
