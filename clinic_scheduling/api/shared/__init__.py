"""
Shared utilities for the Clinic Scheduling API.
"""

from .validators import (
    validate_date_string,
    validate_datetime_string,
    validate_docname,
    validate_positive_int,
    validate_weekday,
)

__all__ = [
    "validate_date_string",
    "validate_datetime_string",
    "validate_docname",
    "validate_positive_int",
    "validate_weekday",
]
