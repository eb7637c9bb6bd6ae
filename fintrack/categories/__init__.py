"""Category registry package."""

from fintrack.categories.defaults import (
    DEFAULT_CATEGORIES,
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    default_category_payloads,
)
from fintrack.categories.registry import CategoryRegistry

__all__ = [
    "CategoryRegistry",
    "DEFAULT_CATEGORIES",
    "DEFAULT_EXPENSE_CATEGORIES",
    "DEFAULT_INCOME_CATEGORIES",
    "default_category_payloads",
]
