"""Validation rules package."""

from fintrack.validation.validator import (
    RecordValidator,
    clean_category_fields,
    clean_transaction_fields,
    is_not_empty,
    is_valid_amount,
    is_valid_hex_color,
    normalize_kind,
    parse_bool,
    parse_decimal,
    parse_iso_date,
    years_before,
)

__all__ = [
    "RecordValidator",
    "clean_category_fields",
    "clean_transaction_fields",
    "is_not_empty",
    "is_valid_amount",
    "is_valid_hex_color",
    "normalize_kind",
    "parse_bool",
    "parse_decimal",
    "parse_iso_date",
    "years_before",
]
