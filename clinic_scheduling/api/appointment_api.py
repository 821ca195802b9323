"""
Appointment API Endpoints

Whitelisted functions used by the calendar, the booking dialogs and the
patient portal. Scheduling failures (outside working hours, break,
conflict) are returned as structured results; only malformed input and
unexpected backend errors are thrown.
"""

import frappe
from frappe import _
from frappe.utils import get_datetime, getdate
from typing import Any, Dict, List, Optional

from clinic_scheduling.clinic_scheduling.scheduling.availability import (
	get_bookings,
	load_template,
	to_booking,
)
from clinic_scheduling.clinic_scheduling.scheduling.calendar import CalendarView, month_grid
from clinic_scheduling.clinic_scheduling.scheduling.overlap import occupied_slots_for_date
from clinic_scheduling.clinic_scheduling.scheduling.slots import generate_available_slots, get_time_slots_for_date
from clinic_scheduling.clinic_scheduling.scheduling.validation import (
	REPEAT_FREQUENCIES,
	repeat_starts,
	validate_block,
	validate_datetime,
	validate_series,
)
from clinic_scheduling.clinic_scheduling.doctype.appointment.appointment import (
	BLOCK_TYPES,
	STATUS_TRANSITIONS,
	get_appointment_for_reschedule,
)

from clinic_scheduling.api.shared import (
	validate_date_string,
	validate_datetime_string,
	validate_docname,
	validate_positive_int,
)


MODES = ("In Person", "Online")
MAX_REPEAT_COUNT = 52
MAX_RANGE_DAYS = 31


def _logger():
	return frappe.logger("clinic_scheduling")


def _parse_start(start_datetime: str, template) -> Any:
	"""Validated request datetime as a naive, template-local datetime."""
	start_datetime = validate_datetime_string(start_datetime, "start_datetime")
	return template.to_local(get_datetime(start_datetime))


def _check(start, template, exclude_appointment=None, duration_minutes=None, is_block=False) -> Dict[str, Any]:
	day = getdate(start)
	bookings = get_bookings(day, day)
	if is_block:
		return validate_block(start, bookings, template, duration_minutes, exclude_id=exclude_appointment)
	return validate_datetime(
		start,
		bookings,
		template,
		exclude_id=exclude_appointment,
		duration_minutes=duration_minutes,
	)


@frappe.whitelist(methods=["GET"])
def get_time_slots(
	date: str,
	clinic: Optional[str] = None,
	exclude_appointment: Optional[str] = None
) -> List[Dict[str, Any]]:
	"""
	Slot picker data for one day.

	Args:
		date: day (YYYY-MM-DD)
		clinic: clinic whose working hours apply (global schedule if empty)
		exclude_appointment: appointment being edited (does not block itself)

	Returns:
		list[dict]: [{"time": "08:00", "is_available": True}, ...]

	Example:
		```javascript
		frappe.call({
			method: "clinic_scheduling.api.appointment_api.get_time_slots",
			args: {date: "2026-01-19"},
			callback: function(r) {
				console.log(r.message);
			}
		});
		```
	"""
	date = validate_date_string(date, "date")
	if exclude_appointment:
		exclude_appointment = validate_docname(exclude_appointment, "exclude_appointment")

	try:
		target_date = getdate(date)
		template = load_template(clinic)
		bookings = get_bookings(target_date, target_date)

		return get_time_slots_for_date(target_date, bookings, template, exclude_id=exclude_appointment)

	except Exception as e:
		frappe.log_error(f"Error in get_time_slots: {str(e)}", "Clinic Scheduling API")
		frappe.throw(_(f"Error loading time slots: {str(e)}"))


@frappe.whitelist(methods=["GET"])
def get_available_slots(start_date: str, end_date: str, clinic: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Slot picker data for a date range (at most 31 days).

	Returns:
		dict: {"2026-01-19": [{"time": "08:00", "is_available": True}, ...], ...}
		Days without working hours are omitted.
	"""
	first_day = getdate(validate_date_string(start_date, "start_date"))
	last_day = getdate(validate_date_string(end_date, "end_date"))

	if last_day < first_day:
		frappe.throw(_("end_date must be on or after start_date"), frappe.ValidationError)
	if (last_day - first_day).days >= MAX_RANGE_DAYS:
		frappe.throw(_(f"Date range cannot exceed {MAX_RANGE_DAYS} days"), frappe.ValidationError)

	try:
		template = load_template(clinic)
		bookings = get_bookings(first_day, last_day)

		return generate_available_slots(first_day, last_day, bookings, template)

	except Exception as e:
		frappe.log_error(f"Error in get_available_slots: {str(e)}", "Clinic Scheduling API")
		frappe.throw(_(f"Error loading available slots: {str(e)}"))


@frappe.whitelist(methods=["GET"])
def get_occupied_slots(date: str, clinic: Optional[str] = None) -> List[Dict[str, Any]]:
	"""
	Bookings starting on a day, for the daily time grid.

	Args:
		date: day (YYYY-MM-DD)
		clinic: clinic whose template (timezone) applies (global schedule if empty)

	Returns:
		list[dict]: [{"time": "10:00", "id": "APT-00001", "patient": "...", "kind": "session"}, ...]
	"""
	date = validate_date_string(date, "date")

	try:
		target_date = getdate(date)
		template = load_template(clinic)

		return occupied_slots_for_date(target_date, get_bookings(target_date, target_date), template)

	except Exception as e:
		frappe.log_error(f"Error in get_occupied_slots: {str(e)}", "Clinic Scheduling API")
		frappe.throw(_(f"Error loading occupied slots: {str(e)}"))


@frappe.whitelist(methods=["GET", "POST"])
def validate_appointment_datetime(
	start_datetime: str,
	clinic: Optional[str] = None,
	exclude_appointment: Optional[str] = None,
	duration_minutes: Optional[int] = None,
	appointment_type: str = "Session"
) -> Dict[str, Any]:
	"""
	Check a date/time BEFORE saving, so the dialog can show the error.

	Blocks (appointment_type Blocked or Personal) are only checked for
	conflicts; sessions must also fit the working hours and avoid breaks.

	Returns:
		dict: {
			"is_valid": bool,
			"error": None | "OutsideWorkingHours" | "WithinBreak" | "SlotConflict",
			"message": str | None,
			"conflict_id": str | None
		}
	"""
	if exclude_appointment:
		exclude_appointment = validate_docname(exclude_appointment, "exclude_appointment")
	if duration_minutes:
		duration_minutes = validate_positive_int(duration_minutes, "duration_minutes")

	template = load_template(clinic)
	start = _parse_start(start_datetime, template)

	return _check(start, template, exclude_appointment, duration_minutes, is_block=appointment_type in BLOCK_TYPES)


@frappe.whitelist(methods=["POST"])
def create_appointment(
	patient: str,
	start_datetime: str,
	clinic: Optional[str] = None,
	mode: str = "In Person",
	service_type: Optional[str] = None,
	notes: Optional[str] = None,
	duration_minutes: Optional[int] = None,
	repeat_frequency: str = "none",
	repeat_count: int = 1
) -> Dict[str, Any]:
	"""
	Book a session, or a recurring series of sessions.

	Args:
		repeat_frequency: "none", "weekly", "biweekly" or "monthly"
		repeat_count: number of sessions in the series

	Every occurrence is validated before the first one is written; if any
	fails, nothing is booked and the failing occurrence is reported.

	Returns:
		dict: {
			"success": bool,
			"appointment": str | None,  # first session
			"appointments": [str],
			"validation": validation result plus "occurrence"
		}
	"""
	if not patient:
		frappe.throw(_("patient is required"), frappe.ValidationError)
	if mode not in MODES:
		frappe.throw(_(f"Invalid mode '{mode}'"), frappe.ValidationError)
	if repeat_frequency not in REPEAT_FREQUENCIES:
		frappe.throw(_(f"Invalid repeat_frequency '{repeat_frequency}'"), frappe.ValidationError)
	if duration_minutes:
		duration_minutes = validate_positive_int(duration_minutes, "duration_minutes")

	repeat_count = validate_positive_int(repeat_count or 1, "repeat_count")
	if repeat_count > MAX_REPEAT_COUNT:
		frappe.throw(_(f"repeat_count cannot exceed {MAX_REPEAT_COUNT}"), frappe.ValidationError)

	template = load_template(clinic)
	starts = repeat_starts(_parse_start(start_datetime, template), repeat_frequency, repeat_count)

	bookings = get_bookings(getdate(starts[0]), getdate(starts[-1]))
	validation = validate_series(starts, bookings, template, duration_minutes=duration_minutes)
	if not validation["is_valid"]:
		return {"success": False, "appointment": None, "appointments": [], "validation": validation}

	names = []
	for start in starts:
		appointment = frappe.get_doc({
			"doctype": "Appointment",
			"appointment_type": "Session",
			"patient": patient,
			"clinic": clinic,
			"start_datetime": start,
			"duration_minutes": duration_minutes or template.session_duration_minutes,
			"mode": mode,
			"service_type": service_type,
			"notes": notes,
			"status": "Scheduled",
		})
		appointment.insert()
		names.append(appointment.name)

		_logger().info(f"Appointment {appointment.name} booked for {start}")

	return {"success": True, "appointment": names[0], "appointments": names, "validation": validation}


@frappe.whitelist(methods=["POST"])
def block_time(
	start_datetime: str,
	duration_minutes: int,
	reason: str,
	block_type: str = "Blocked",
	clinic: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Block a period of the calendar (personal time, meetings, ...).

	Returns:
		dict: same shape as create_appointment
	"""
	if block_type not in BLOCK_TYPES:
		frappe.throw(_(f"Invalid block_type '{block_type}'"), frappe.ValidationError)
	if not reason:
		frappe.throw(_("reason is required"), frappe.ValidationError)
	duration_minutes = validate_positive_int(duration_minutes, "duration_minutes")

	template = load_template(clinic)
	start = _parse_start(start_datetime, template)

	validation = _check(start, template, duration_minutes=duration_minutes, is_block=True)
	if not validation["is_valid"]:
		return {"success": False, "appointment": None, "validation": validation}

	block = frappe.get_doc({
		"doctype": "Appointment",
		"appointment_type": block_type,
		"clinic": clinic,
		"start_datetime": start,
		"duration_minutes": duration_minutes,
		"block_reason": reason,
		"status": "Scheduled",
	})
	block.insert()

	return {"success": True, "appointment": block.name, "validation": validation}


@frappe.whitelist(methods=["POST"])
def reschedule_appointment(appointment_name: str, target_date: str) -> Dict[str, Any]:
	"""
	Drag-and-drop: move an appointment to another day, same time of day.

	The target day's working hours apply and the appointment never
	conflicts with itself. On failure nothing is written.

	Returns:
		dict: {
			"success": bool,
			"new_start": "YYYY-MM-DD HH:MM:SS" | None,
			"validation": validation result,
			"messages": [str]
		}
	"""
	appointment_name = validate_docname(appointment_name, "appointment_name")
	target_day = getdate(validate_date_string(target_date, "target_date"))

	appointment = get_appointment_for_reschedule(appointment_name)
	template = load_template(appointment.clinic)

	bookings = get_bookings(target_day, target_day)
	if not any(b["id"] == appointment.name for b in bookings):
		bookings.append(to_booking(appointment.as_dict()))

	messages = []

	def commit(name, new_start):
		appointment.start_datetime = new_start
		appointment.save()
		_logger().info(f"Appointment {name} rescheduled to {new_start}")

	def notify(title, message):
		messages.append(message)

	view = CalendarView(bookings, template, selected_date=target_day, today=target_day)
	plan = view.reschedule(appointment.name, target_day, commit, notify)

	return {
		"success": plan["ok"],
		"new_start": plan["new_start"].strftime("%Y-%m-%d %H:%M:%S") if plan["new_start"] else None,
		"validation": plan["validation"],
		"messages": messages,
	}


@frappe.whitelist(methods=["POST"])
def update_appointment_status(appointment_name: str, status: str) -> Dict[str, Any]:
	"""Move an appointment to Scheduled, Confirmed, Done or Cancelled."""
	appointment_name = validate_docname(appointment_name, "appointment_name")
	if status not in STATUS_TRANSITIONS:
		frappe.throw(_(f"Invalid status '{status}'"), frappe.ValidationError)

	appointment = frappe.get_doc("Appointment", appointment_name)
	appointment.status = status
	appointment.save()

	return {"name": appointment.name, "status": appointment.status}


@frappe.whitelist(methods=["GET"])
def get_calendar(selected_date: str, clinic: Optional[str] = None) -> Dict[str, Any]:
	"""
	Month grid, week and selected-day data for the calendar screen.

	Returns:
		dict: see CalendarView.as_dict
	"""
	selected = getdate(validate_date_string(selected_date, "selected_date"))

	try:
		template = load_template(clinic)
		grid = month_grid(selected)
		bookings = get_bookings(grid[0], grid[-1])

		view = CalendarView(bookings, template, selected_date=selected, today=getdate())
		return view.as_dict()

	except Exception as e:
		frappe.log_error(f"Error in get_calendar: {str(e)}", "Clinic Scheduling API")
		frappe.throw(_(f"Error loading calendar: {str(e)}"))
