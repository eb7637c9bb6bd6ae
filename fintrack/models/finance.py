"""
Core Data Models for fintrack

These models define the records that flow between the registry, the ledger,
the aggregation engine and the store.

DESIGN DECISION: Models describe the SHAPE of a record, while the rules that
decide whether user input is acceptable live in fintrack.validation.
Input is checked there (fail-fast, one message) before a model is built, so
the models only carry the constraints that must hold for any stored record.
"""

import datetime as dt
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """
    Income/expense discriminator.

    The kind decides the sign a transaction contributes to a balance:
    income adds, expense subtracts. Amounts themselves are always positive.
    """
    INCOME = "income"
    EXPENSE = "expense"


# Suggestions offered to users; payment_method stays free-form.
PAYMENT_METHOD_SUGGESTIONS = (
    "cash",
    "debit_card",
    "credit_card",
    "pix",
    "bank_transfer",
    "bank_slip",
    "other",
)


# =============================================================================
# IDENTITY
# =============================================================================

class User(BaseModel):
    """Authenticated user as reported by the identity provider."""

    id: str = Field(..., min_length=1, description="Opaque user identifier")
    display_name: str = ""
    email: str = ""


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Category(BaseModel):
    """
    A user-defined category.

    Names are unique per user, compared case-insensitively.
    spending_limit is an informational budget ceiling, never enforced.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., description="Store-assigned identifier")
    user_id: str = Field(..., description="Owner")
    name: str
    description: str
    color: str = Field(..., description="Hex RGB color, #RGB or #RRGGBB")
    spending_limit: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Optional budget ceiling"
    )

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible document for the store (id lives in the key)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_record(cls, entity_id: str, record: dict[str, Any]) -> "Category":
        return cls.model_validate({**record, "id": entity_id})


class Transaction(BaseModel):
    """
    A single income or expense entry.

    amount is always positive; use signed_amount for balance arithmetic.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., description="Store-assigned identifier")
    user_id: str = Field(..., description="Owner")
    amount: Decimal = Field(..., gt=0, description="Positive amount")
    date: dt.date = Field(..., description="Calendar date of the transaction")
    category_id: str = Field(..., description="Category owned by the same user")
    description: str
    kind: TransactionKind
    payment_method: str = Field(
        default="",
        description="Free-form, see PAYMENT_METHOD_SUGGESTIONS"
    )
    recurring: bool = False
    recurrence_months: Optional[int] = Field(
        default=None,
        ge=1,
        description="Only meaningful when recurring is true"
    )

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign the transaction contributes to a balance."""
        if self.kind == TransactionKind.INCOME:
            return self.amount
        return -self.amount

    def to_record(self) -> dict[str, Any]:
        """JSON-compatible document for the store (id lives in the key)."""
        return self.model_dump(mode="json", exclude={"id"})

    @classmethod
    def from_record(cls, entity_id: str, record: dict[str, Any]) -> "Transaction":
        return cls.model_validate({**record, "id": entity_id})


class TransactionFilter(BaseModel):
    """
    Conjunctive filter over a user's transactions.

    Every criterion left as None is ignored; the rest must all match.
    """

    start_date: Optional[date] = Field(
        default=None,
        description="Keep transactions on or after this date"
    )
    end_date: Optional[date] = Field(
        default=None,
        description="Keep transactions on or before this date"
    )
    category_id: Optional[str] = None
    kind: Optional[TransactionKind] = None


# =============================================================================
# VALIDATION
# =============================================================================

class ValidationIssue(BaseModel):
    """The first rule a record broke."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'too_short', 'out_of_range')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
