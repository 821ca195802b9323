"""
Clinic Scheduling API

Structure:
    api/
    ├── __init__.py              # This file
    ├── appointments/            # Appointments domain (re-exports)
    ├── shared/                  # Input validators
    ├── appointment_api.py       # Slots, validation, booking, calendar
    └── schedule_api.py          # Working hours configuration

Usage:
    frappe.call("clinic_scheduling.api.appointment_api.get_time_slots", ...)
    frappe.call("clinic_scheduling.api.schedule_api.get_schedule", ...)
"""

from . import appointments
from . import shared

__all__ = [
    "appointments",
    "shared",
]
