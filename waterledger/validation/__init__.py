"""Validation package."""

from waterledger.validation.validator import (
    RecordValidationError,
    RecordValidator,
    is_valid_phone,
    to_decimal,
    to_int,
)

__all__ = [
    "RecordValidationError",
    "RecordValidator",
    "is_valid_phone",
    "to_decimal",
    "to_int",
]
