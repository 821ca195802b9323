"""
Scheduling Services Module

This module provides core business logic for appointment scheduling:
- Working hours template (working_hours.py)
- Slot generation for UI (slots.py)
- Overlap detection (overlap.py)
- Date/time validation (validation.py)
- Calendar state and drag-and-drop rescheduling (calendar.py)
- Loading templates and bookings from the database (availability.py)
"""
