"""
Schedule Configuration API

Whitelisted functions behind the schedule editor: read the resolved
weekly schedule, save one day, copy a day to other days.
"""

import frappe
from frappe import _
from typing import Any, Dict, List, Optional, Union

from clinic_scheduling.clinic_scheduling.scheduling.availability import load_template
from clinic_scheduling.clinic_scheduling.scheduling.working_hours import (
	InvalidScheduleError,
	copy_day_schedule,
	format_time,
	make_day_schedule,
)

from clinic_scheduling.api.shared import validate_weekday


@frappe.whitelist(methods=["GET"])
def get_schedule(clinic: Optional[str] = None) -> Dict[str, Any]:
	"""
	Resolved weekly schedule for a clinic.

	Clinic-specific days override the global schedule; days configured
	nowhere fall back to 08:00-18:00 with a lunch break, Monday to Friday.

	Returns:
		dict: {
			"session_duration_minutes": 50,
			"gap_minutes": 10,
			"timezone": "America/Sao_Paulo",
			"days": [
				{
					"weekday": "monday",
					"is_active": True,
					"windows": [{"start": "08:00", "end": "18:00"}],
					"breaks": [{"start": "12:00", "end": "13:00", "label": "Lunch"}],
					"free_windows": [{"start": "08:00", "end": "12:00"}, {"start": "13:00", "end": "18:00"}]
				},
				...
			]
		}
	"""
	return load_template(clinic).as_dict()


def _save_day(day: Dict[str, Any], clinic: Optional[str]) -> str:
	"""Create or update the Clinic Schedule Config for one weekday."""
	existing = frappe.db.get_value(
		"Clinic Schedule Config",
		{"day_of_week": day["weekday"], "clinic": clinic or ["is", "not set"]},
		"name"
	)

	if existing:
		config = frappe.get_doc("Clinic Schedule Config", existing)
	else:
		config = frappe.get_doc({
			"doctype": "Clinic Schedule Config",
			"clinic": clinic,
			"day_of_week": day["weekday"],
		})

	window = day["windows"][0] if day["windows"] else None
	if window is None:
		frappe.throw(_(f"{day['weekday'].capitalize()}: working hours are required"), frappe.ValidationError)

	config.work_start_time = format_time(window["start"])
	config.work_end_time = format_time(window["end"])
	config.is_active = 1 if day["is_active"] else 0
	config.set("breaks", [])
	for brk in day["breaks"]:
		config.append("breaks", {
			"break_start_time": format_time(brk["start"]),
			"break_end_time": format_time(brk["end"]),
			"label": brk["label"],
		})

	config.save()
	return config.name


@frappe.whitelist(methods=["POST"])
def save_day_schedule(day_schedule: Union[str, Dict[str, Any]], clinic: Optional[str] = None) -> Dict[str, Any]:
	"""
	Save the working hours of one weekday.

	Args:
		day_schedule: {
			"day_of_week": "monday",
			"work_start_time": "08:00",
			"work_end_time": "18:00",
			"is_active": true,
			"breaks": [{"start": "12:00", "end": "13:00", "label": "Lunch"}]
		}
		clinic: clinic to configure (global schedule if empty)

	Returns:
		dict: the resolved schedule (see get_schedule)
	"""
	day_schedule = frappe.parse_json(day_schedule) or {}
	weekday = validate_weekday(day_schedule.get("day_of_week"))

	try:
		day = make_day_schedule(
			weekday,
			[{"start": day_schedule.get("work_start_time"), "end": day_schedule.get("work_end_time")}],
			day_schedule.get("breaks") or [],
			is_active=day_schedule.get("is_active", True),
		)
	except (InvalidScheduleError, KeyError, TypeError) as e:
		frappe.throw(_(f"Invalid schedule for {weekday}: {str(e)}"), frappe.ValidationError)

	_save_day(day, clinic)
	frappe.logger("clinic_scheduling").info(f"Schedule for {weekday} saved (clinic: {clinic or 'global'})")

	return get_schedule(clinic)


@frappe.whitelist(methods=["POST"])
def copy_schedule_to_days(
	source_day: str,
	target_days: Union[str, List[str]],
	clinic: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Repeat one weekday's hours and breaks on other weekdays.

	Returns:
		dict: the resolved schedule (see get_schedule)
	"""
	source_day = validate_weekday(source_day, "source_day")
	target_days = [validate_weekday(day, "target_days") for day in (frappe.parse_json(target_days) or [])]

	if not target_days:
		frappe.throw(_("Select at least one day to copy to"), frappe.ValidationError)

	template = copy_day_schedule(load_template(clinic), source_day, target_days)
	for weekday in target_days:
		_save_day(template.days[weekday], clinic)

	frappe.logger("clinic_scheduling").info(
		f"Schedule for {source_day} copied to {', '.join(target_days)} (clinic: {clinic or 'global'})"
	)

	return get_schedule(clinic)
