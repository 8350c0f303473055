"""Shared constants for the application."""

from hopaba.constants.categories import (
    CATEGORIES,
    PRICE_UNITS,
    DAYS_OF_WEEK,
    EXPERIENCE_OPTIONS,
    AVAILABILITY_OPTIONS,
    LISTING_CONDITIONS,
    normalize_category,
    same_category,
    is_all_categories,
    validate_category,
)

__all__ = [
    'CATEGORIES',
    'PRICE_UNITS',
    'DAYS_OF_WEEK',
    'EXPERIENCE_OPTIONS',
    'AVAILABILITY_OPTIONS',
    'LISTING_CONDITIONS',
    'normalize_category',
    'same_category',
    'is_all_categories',
    'validate_category',
]
