"""
Record Validation Rules

DESIGN DECISION: Validation is staged and fail-fast.

The stages run in a fixed order, and each stage looks at every relevant
field before the next stage starts:

STAGE 1 - PRESENCE:   every required field is non-empty
STAGE 2 - LENGTH:     text fields are within their bounds (after stripping)
STAGE 3 - NUMERIC:    amounts and limits are within their ranges
STAGE 4 - FORMAT:     colors are 3- or 6-digit hex, flags are booleans
STAGE 5 - KIND:       income or expense
STAGE 6 - DATE:       a real calendar date inside the history window

The first failure wins and is reported as a single ValidationIssue whose
message can be shown to the user as-is.

Partial updates validate only the fields present in the patch.

IMPORTANT: Validation never silently fixes input. Cleaning (stripping,
parsing amounts and dates) happens only after a record has passed.
"""

import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from fintrack.config import TrackerSettings, get_settings
from fintrack.models import TransactionKind, ValidationIssue


HEX_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

# Aliases accepted for records created before kinds were stored in English
KIND_ALIASES = {
    "receita": TransactionKind.INCOME,
    "despesa": TransactionKind.EXPENSE,
}

TRANSACTION_FIELDS = (
    "amount",
    "date",
    "category_id",
    "description",
    "kind",
    "payment_method",
    "recurring",
    "recurrence_months",
)
CATEGORY_FIELDS = ("name", "description", "color", "spending_limit")

TRANSACTION_DESCRIPTION_LENGTH = (3, 100)
CATEGORY_NAME_LENGTH = (2, 30)
CATEGORY_DESCRIPTION_LENGTH = (3, 100)


# =============================================================================
# PREDICATES
# =============================================================================

def is_not_empty(value: Any) -> bool:
    """True unless value is None or a blank string."""
    if value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def is_valid_hex_color(value: Any) -> bool:
    return isinstance(value, str) and bool(HEX_COLOR_PATTERN.match(value.strip()))


def parse_decimal(value: Any) -> Optional[Decimal]:
    """Parse a number into a finite Decimal, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not number.is_finite():
        return None
    return number


def is_valid_amount(value: Any, max_amount: float = 1_000_000) -> bool:
    """True for numbers in (0, max_amount]."""
    amount = parse_decimal(value)
    return amount is not None and Decimal("0") < amount <= Decimal(str(max_amount))


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse YYYY-MM-DD (or pass a date through).

    Returns None for anything that isn't a real calendar date,
    e.g. "2024-02-30".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not ISO_DATE_PATTERN.match(value.strip()):
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        return None


def normalize_kind(value: Any) -> Optional[TransactionKind]:
    """Map 'income'/'expense' (any case, or a legacy alias) to a kind."""
    if isinstance(value, TransactionKind):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip().lower()
    if text in KIND_ALIASES:
        return KIND_ALIASES[text]
    try:
        return TransactionKind(text)
    except ValueError:
        return None


TRUE_WORDS = ("true", "1", "yes")
FALSE_WORDS = ("false", "0", "no")


def parse_bool(value: Any) -> Optional[bool]:
    """Map a bool, 0/1 or "true"/"false" (any case) to a bool, or None."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_WORDS:
            return True
        if text in FALSE_WORDS:
            return False
    return None


def years_before(today: date, years: int) -> date:
    """Same calendar day `years` earlier; Feb 29 falls back to Feb 28."""
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        return today.replace(year=today.year - years, day=28)


def _issue(field: str, issue_type: str, message: str) -> ValidationIssue:
    return ValidationIssue(field=field, issue_type=issue_type, message=message)


def _length_issue(
    data: dict[str, Any],
    field: str,
    label: str,
    bounds: tuple[int, int],
) -> Optional[ValidationIssue]:
    low, high = bounds
    length = len(str(data[field]).strip())
    if length < low:
        return _issue(field, "too_short", f"{label} must have at least {low} characters")
    if length > high:
        return _issue(field, "too_long", f"{label} must have at most {high} characters")
    return None


# =============================================================================
# VALIDATOR
# =============================================================================

class RecordValidator:
    """
    Validates raw transaction and category input.

    Limits come from TrackerSettings; "today" is passed in so the date
    window is deterministic under test.
    """

    def __init__(self, settings: Optional[TrackerSettings] = None):
        self._settings = settings or get_settings().tracker

    def check_transaction(
        self,
        data: dict[str, Any],
        partial: bool = False,
        today: Optional[date] = None,
    ) -> Optional[ValidationIssue]:
        """
        Validate transaction input.

        Args:
            data: Raw field values (create payload or update patch)
            partial: Validate only the fields present in data
            today: Reference day for the date window (defaults to the system date)

        Returns:
            The first issue found, or None if the input is acceptable
        """
        today = today or date.today()

        def checked(field: str) -> bool:
            return not partial or field in data

        # Stage 1: presence
        for field, label in (
            ("amount", "Amount"),
            ("date", "Date"),
            ("category_id", "Category"),
            ("description", "Description"),
            ("kind", "Type"),
        ):
            if checked(field) and not is_not_empty(data.get(field)):
                return _issue(field, "missing", f"{label} is required")

        # Stage 2: length
        if checked("description"):
            issue = _length_issue(
                data, "description", "Description", TRANSACTION_DESCRIPTION_LENGTH
            )
            if issue:
                return issue

        # Stage 3: numeric
        if checked("amount"):
            amount = parse_decimal(data["amount"])
            if amount is None:
                return _issue("amount", "invalid_value", "Amount must be a number")
            if not is_valid_amount(amount, self._settings.max_amount):
                return _issue(
                    "amount",
                    "out_of_range",
                    f"Amount must be greater than 0 and at most {self._settings.max_amount:,.2f}",
                )

        months = data.get("recurrence_months")
        if checked("recurrence_months") and is_not_empty(months):
            if (
                isinstance(months, bool)
                or not str(months).strip().isdigit()
                or int(str(months).strip()) < 1
            ):
                return _issue(
                    "recurrence_months",
                    "out_of_range",
                    "Recurrence must be a whole number of months, at least 1",
                )

        # Stage 4: format
        if "recurring" in data and parse_bool(data["recurring"]) is None:
            return _issue("recurring", "invalid_format", "Recurring must be true or false")

        # Stage 5: kind
        if checked("kind") and normalize_kind(data["kind"]) is None:
            return _issue("kind", "invalid_value", "Type must be 'income' or 'expense'")

        # Stage 6: date
        if checked("date"):
            parsed = parse_iso_date(data["date"])
            if parsed is None:
                return _issue("date", "invalid_format", "Date must be a valid date (YYYY-MM-DD)")
            if parsed > today:
                return _issue("date", "future_date", "Date cannot be in the future")
            oldest = years_before(today, self._settings.history_years)
            if parsed < oldest:
                return _issue(
                    "date",
                    "too_old",
                    f"Date cannot be more than {self._settings.history_years} years in the past",
                )

        return None

    def check_category(
        self,
        data: dict[str, Any],
        partial: bool = False,
    ) -> Optional[ValidationIssue]:
        """Validate category input. Same contract as check_transaction."""

        def checked(field: str) -> bool:
            return not partial or field in data

        # Stage 1: presence
        for field, label in (
            ("name", "Name"),
            ("description", "Description"),
            ("color", "Color"),
        ):
            if checked(field) and not is_not_empty(data.get(field)):
                return _issue(field, "missing", f"{label} is required")

        # Stage 2: length
        if checked("name"):
            issue = _length_issue(data, "name", "Name", CATEGORY_NAME_LENGTH)
            if issue:
                return issue
        if checked("description"):
            issue = _length_issue(
                data, "description", "Description", CATEGORY_DESCRIPTION_LENGTH
            )
            if issue:
                return issue

        # Stage 3: numeric
        limit = data.get("spending_limit")
        if checked("spending_limit") and is_not_empty(limit):
            value = parse_decimal(limit)
            if value is None:
                return _issue("spending_limit", "invalid_value", "Spending limit must be a number")
            if not Decimal("0") <= value <= Decimal(str(self._settings.max_spending_limit)):
                return _issue(
                    "spending_limit",
                    "out_of_range",
                    f"Spending limit must be between 0 and {self._settings.max_spending_limit:,.2f}",
                )

        # Stage 4: format
        if checked("color") and not is_valid_hex_color(data["color"]):
            return _issue("color", "invalid_format", "Color must be a hex value like #RGB or #RRGGBB")

        return None


# =============================================================================
# CLEANING (only call on input that passed validation)
# =============================================================================

def clean_transaction_fields(data: dict[str, Any]) -> dict[str, Any]:
    """
    Typed values for the transaction fields present in data.

    Unknown fields, id and user_id are dropped.
    """
    cleaned: dict[str, Any] = {}
    for field in TRANSACTION_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "amount":
            cleaned[field] = parse_decimal(value)
        elif field == "date":
            cleaned[field] = parse_iso_date(value)
        elif field == "kind":
            cleaned[field] = normalize_kind(value)
        elif field == "recurring":
            cleaned[field] = parse_bool(value)
        elif field == "recurrence_months":
            cleaned[field] = int(str(value).strip()) if is_not_empty(value) else None
        else:
            cleaned[field] = str(value).strip() if value is not None else ""
    return cleaned


def clean_category_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Typed values for the category fields present in data."""
    cleaned: dict[str, Any] = {}
    for field in CATEGORY_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "spending_limit":
            cleaned[field] = parse_decimal(value) if is_not_empty(value) else None
        else:
            cleaned[field] = str(value).strip()
    return cleaned
