"""
Scheduling Validators

Input validation for the whitelisted scheduling endpoints.
"""

import re
import frappe
from frappe import _

from clinic_scheduling.clinic_scheduling.scheduling.working_hours import WEEKDAYS


DATETIME_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)


def validate_date_string(date_str: str, field_name: str = "date") -> str:
    """
    Validate date string format (YYYY-MM-DD).

    Args:
        date_str: Date string to validate
        field_name: Name of field for error messages

    Returns:
        str: Validated date string

    Raises:
        frappe.ValidationError: If date format is invalid
    """
    if not date_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    date_str = str(date_str).strip()

    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        frappe.throw(
            _(f"Invalid {field_name} format. Use YYYY-MM-DD"), frappe.ValidationError
        )

    return date_str


def validate_datetime_string(datetime_str: str, field_name: str = "datetime") -> str:
    """
    Validate datetime string format.

    Accepts "YYYY-MM-DD HH:MM[:SS]" and ISO 8601 with "T", optional
    fractional seconds and UTC offset (as sent by browsers).

    Raises:
        frappe.ValidationError: If datetime format is invalid
    """
    if not datetime_str:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    datetime_str = str(datetime_str).strip()

    if not DATETIME_PATTERN.match(datetime_str):
        frappe.throw(
            _(f"Invalid {field_name} format. Use YYYY-MM-DD HH:MM:SS"),
            frappe.ValidationError,
        )

    return datetime_str


def validate_docname(name: str, field_name: str = "name") -> str:
    """
    Validate a document name (ID).

    Ensures the name is not too long and doesn't contain injection patterns.

    Raises:
        frappe.ValidationError: If name is invalid
    """
    if not name:
        frappe.throw(_(f"{field_name} is required"), frappe.ValidationError)

    name = str(name).strip()

    if len(name) > 140:
        frappe.throw(_(f"{field_name} is too long"), frappe.ValidationError)

    dangerous_patterns = [
        r"<script",
        r"javascript:",
        r"SELECT\s+",
        r"INSERT\s+",
        r"UPDATE\s+",
        r"DELETE\s+",
        r"DROP\s+",
        r"UNION\s+",
        r"--",
        r";",
    ]

    for pattern in dangerous_patterns:
        if re.search(pattern, name, re.IGNORECASE):
            frappe.throw(_(f"Invalid {field_name}"), frappe.ValidationError)

    return name


def validate_weekday(weekday: str, field_name: str = "day_of_week") -> str:
    """Validate a lowercase English weekday name ("monday" ... "sunday")."""
    weekday = str(weekday or "").strip().lower()

    if weekday not in WEEKDAYS:
        frappe.throw(_(f"Invalid {field_name} '{weekday}'"), frappe.ValidationError)

    return weekday


def validate_positive_int(value, field_name: str) -> int:
    """Validate an optional positive integer given as int or string."""
    try:
        value = int(value)
    except (TypeError, ValueError):
        frappe.throw(_(f"{field_name} must be a number"), frappe.ValidationError)

    if value <= 0:
        frappe.throw(_(f"{field_name} must be greater than 0"), frappe.ValidationError)

    return value
