"""
Availability Service

Loads the scheduling inputs from the database:
- Working hours template (Clinic Schedule Config + Scheduling Settings)
- Existing Appointments/Blocks for a date range
- The schedule lock taken by every booking write

This is the only scheduling module that talks to Frappe. Everything it
returns is plain data for the engine modules.
"""

import frappe
from frappe.utils import getdate
from datetime import datetime, date, timedelta
from typing import Any, Dict, List, Optional, Union

from .working_hours import (
	DEFAULT_GAP,
	DEFAULT_SESSION_DURATION,
	DEFAULT_TIMEZONE,
	WorkingHoursTemplate,
	build_template,
)


BOOKING_KINDS = {
	"Session": "session",
	"Blocked": "blocked",
	"Personal": "personal",
}


def get_scheduling_settings() -> Dict[str, Any]:
	"""
	Session sizing and timezone from the Scheduling Settings single.

	Returns:
		dict: {"session_duration_minutes": int, "gap_minutes": int, "timezone": str}
	"""
	settings = frappe.get_cached_doc("Scheduling Settings")

	tz_name = settings.timezone or DEFAULT_TIMEZONE
	if tz_name == "system timezone":
		tz_name = frappe.utils.get_system_timezone()

	gap = settings.session_gap_minutes
	return {
		"session_duration_minutes": settings.session_duration_minutes or DEFAULT_SESSION_DURATION,
		"gap_minutes": DEFAULT_GAP if gap is None else gap,
		"timezone": tz_name,
	}


def get_schedule_configs(clinic: Optional[str] = None) -> List[Dict[str, Any]]:
	"""
	Clinic Schedule Config rows (clinic-specific and global) with their breaks.

	Returns:
		list[dict]: rows as expected by working_hours.build_template
	"""
	if clinic:
		or_filters = [["clinic", "=", clinic], ["clinic", "is", "not set"]]
	else:
		or_filters = [["clinic", "is", "not set"]]

	configs = frappe.get_all(
		"Clinic Schedule Config",
		or_filters=or_filters,
		fields=["name", "clinic", "day_of_week", "work_start_time", "work_end_time", "is_active"],
		order_by="day_of_week asc"
	)

	if not configs:
		return []

	breaks = frappe.get_all(
		"Schedule Break",
		filters={
			"parent": ["in", [c.name for c in configs]],
			"parenttype": "Clinic Schedule Config",
		},
		fields=["parent", "break_start_time", "break_end_time", "label"],
		order_by="idx asc"
	)

	for config in configs:
		config["day_of_week"] = (config.get("day_of_week") or "").lower()
		config["breaks"] = [b for b in breaks if b.parent == config.name]

	return configs


def load_template(clinic: Optional[str] = None) -> WorkingHoursTemplate:
	"""Working hours template for a clinic (global schedule if None)."""
	settings = get_scheduling_settings()
	return build_template(
		get_schedule_configs(clinic),
		clinic=clinic,
		session_duration_minutes=settings["session_duration_minutes"],
		gap_minutes=settings["gap_minutes"],
		timezone=settings["timezone"],
	)


def to_booking(row: Dict[str, Any]) -> Dict[str, Any]:
	"""Appointment row -> booking dict used by the engine."""
	return {
		"id": row.get("name"),
		"start": row.get("start_datetime") and frappe.utils.get_datetime(row.get("start_datetime")),
		"duration_minutes": row.get("duration_minutes"),
		"status": row.get("status"),
		"kind": BOOKING_KINDS.get(row.get("appointment_type"), "session"),
		"patient": row.get("patient"),
	}


def get_bookings(
	start_date: Union[date, str],
	end_date: Union[date, str],
	clinic: Optional[str] = None,
	for_update: bool = False
) -> List[Dict[str, Any]]:
	"""
	Non-cancelled Appointments/Blocks starting between start_date and end_date.

	The range is widened by a day on each side so bookings that run across
	midnight are still seen.

	Args:
		start_date: first day (inclusive)
		end_date: last day (inclusive)
		clinic: restrict to a clinic (None = every clinic)
		for_update: lock the matching rows until the transaction ends

	Returns:
		list[dict]: bookings (see overlap)
	"""
	start_date = getdate(start_date)
	end_date = getdate(end_date)

	filters = [
		["status", "!=", "Cancelled"],
		["start_datetime", ">=", datetime.combine(start_date - timedelta(days=1), datetime.min.time())],
		["start_datetime", "<", datetime.combine(end_date + timedelta(days=2), datetime.min.time())],
	]
	if clinic:
		filters.append(["clinic", "=", clinic])

	rows = frappe.get_all(
		"Appointment",
		filters=filters,
		fields=["name", "start_datetime", "duration_minutes", "status", "appointment_type", "patient"],
		order_by="start_datetime asc",
		for_update=for_update
	)

	return [to_booking(row) for row in rows]


def ensure_scheduling_settings() -> None:
	"""Store the Scheduling Settings defaults if they were never saved."""
	if frappe.db.get_single_value("Scheduling Settings", "session_duration_minutes", cache=False):
		return

	settings = frappe.get_single("Scheduling Settings")
	settings.session_duration_minutes = settings.session_duration_minutes or DEFAULT_SESSION_DURATION
	if settings.session_gap_minutes is None:
		settings.session_gap_minutes = DEFAULT_GAP
	settings.timezone = settings.timezone or DEFAULT_TIMEZONE
	settings.save(ignore_permissions=True)


def _lock_settings_row() -> list:
	return frappe.db.sql("""
		SELECT value
		FROM `tabSingles`
		WHERE doctype = 'Scheduling Settings'
		AND field = 'session_duration_minutes'
		FOR UPDATE
	""")


def lock_schedule() -> None:
	"""
	Serialize booking writers until the current transaction ends.

	Every write that re-checks the schedule locks the Scheduling Settings
	row first, so two checks never interleave, even on a day with no
	bookings to lock yet.
	"""
	if _lock_settings_row():
		return

	ensure_scheduling_settings()
	_lock_settings_row()
