"""Slot validation module."""

from .slots import (
    LOCATION_ALIASES,
    VALID_CUISINES,
    Invalid,
    Valid,
    ValidationResult,
    current_time,
    first_invalid_slot,
    normalize_cuisine,
    normalize_location,
    validate_all,
    validate_slot,
)

__all__ = [
    "LOCATION_ALIASES",
    "VALID_CUISINES",
    "Valid",
    "Invalid",
    "ValidationResult",
    "current_time",
    "first_invalid_slot",
    "normalize_cuisine",
    "normalize_location",
    "validate_all",
    "validate_slot",
]
