"""
Appointments API Domain

Handles slot lookup, validation, booking, blocking and rescheduling.
"""

from clinic_scheduling.api.appointment_api import (
	# Slots
	get_time_slots,
	get_available_slots,
	get_occupied_slots,
	# Validation
	validate_appointment_datetime,
	# CRUD
	create_appointment,
	block_time,
	reschedule_appointment,
	update_appointment_status,
	# Calendar
	get_calendar,
)

__all__ = [
	"get_time_slots",
	"get_available_slots",
	"get_occupied_slots",
	"validate_appointment_datetime",
	"create_appointment",
	"block_time",
	"reschedule_appointment",
	"update_appointment_status",
	"get_calendar",
]
