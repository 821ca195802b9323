"""
Date/Time Validator

Guards every create, edit and drag-and-drop commit: a requested start is
legal only if the session fits the working hours, stays clear of breaks
and does not overlap another non-cancelled booking. Blocks (blocked or
personal time) may cover breaks and whole days; they are only checked
for conflicts.

Failures are returned as structured results, never raised, so the caller
can show them and abort the write.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from .overlap import find_conflict
from .working_hours import WorkingHoursTemplate, format_time, intervals_overlap


OUTSIDE_WORKING_HOURS = "OutsideWorkingHours"
WITHIN_BREAK = "WithinBreak"
SLOT_CONFLICT = "SlotConflict"

REPEAT_FREQUENCIES = ("none", "weekly", "biweekly", "monthly")


def valid_result() -> Dict[str, Any]:
	return {"is_valid": True, "error": None, "message": None, "conflict_id": None}


def invalid_result(error: str, message: str, conflict_id: Optional[str] = None) -> Dict[str, Any]:
	return {"is_valid": False, "error": error, "message": message, "conflict_id": conflict_id}


def _working_hours_message(template: WorkingHoursTemplate) -> str:
	days = ", ".join(day.capitalize() for day in template.active_weekdays)
	if not days:
		return "No working days are configured"
	return f"Sessions are only available on {days}"


def validate_datetime(
	start: datetime,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	exclude_id: Optional[str] = None,
	duration_minutes: Optional[int] = None
) -> Dict[str, Any]:
	"""
	Check whether a booking may start at the given moment.

	Args:
		start: requested start, not necessarily slot-aligned
		bookings: existing bookings around that day (see overlap)
		template: working hours template of the target day
		exclude_id: booking to ignore (the one being edited/moved)
		duration_minutes: booking length, defaults to the session duration

	Returns:
		dict: {
			"is_valid": bool,
			"error": None | "OutsideWorkingHours" | "WithinBreak" | "SlotConflict",
			"message": str | None,
			"conflict_id": str | None
		}
	"""
	local_start = template.to_local(start)
	target_date = local_start.date()
	day = template.day_for(target_date)
	duration = duration_minutes or template.session_duration_minutes

	if not day["is_active"]:
		return invalid_result(OUTSIDE_WORKING_HOURS, _working_hours_message(template))

	session = {"start": local_start, "end": local_start + timedelta(minutes=duration)}

	windows = [
		{
			"start": datetime.combine(target_date, w["start"]),
			"end": datetime.combine(target_date, w["end"]),
		}
		for w in day["windows"]
	]
	if not any(w["start"] <= session["start"] and session["end"] <= w["end"] for w in windows):
		hours = ", ".join(f"{format_time(w['start'])}-{format_time(w['end'])}" for w in day["windows"])
		return invalid_result(
			OUTSIDE_WORKING_HOURS,
			f"{format_time(local_start)} is outside working hours ({hours})",
		)

	for brk in day["breaks"]:
		break_interval = {
			"start": datetime.combine(target_date, brk["start"]),
			"end": datetime.combine(target_date, brk["end"]),
		}
		if intervals_overlap(session, break_interval):
			label = brk["label"] or "break"
			return invalid_result(
				WITHIN_BREAK,
				f"{format_time(local_start)} falls within {label} ({format_time(brk['start'])}-{format_time(brk['end'])})",
			)

	return _check_conflict(local_start, bookings, template, duration, exclude_id)


def _check_conflict(
	local_start: datetime,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	duration_minutes: int,
	exclude_id: Optional[str]
) -> Dict[str, Any]:
	conflict = find_conflict(
		local_start,
		bookings,
		template,
		duration_minutes=duration_minutes,
		exclude_id=exclude_id,
	)
	if conflict:
		return invalid_result(
			SLOT_CONFLICT,
			f"A session is already booked at {format_time(conflict['local_start'])}",
			conflict_id=conflict.get("id"),
		)

	return valid_result()


def validate_block(
	start: datetime,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	duration_minutes: int,
	exclude_id: Optional[str] = None
) -> Dict[str, Any]:
	"""
	Check whether blocked/personal time may start at the given moment.

	Blocks are not bound to working hours or breaks (a full-day block
	covers lunch); they only must not overlap another booking.

	Returns:
		dict: same shape as validate_datetime, error is None or "SlotConflict"
	"""
	return _check_conflict(template.to_local(start), bookings, template, duration_minutes, exclude_id)


def _add_months(value: datetime, months: int) -> datetime:
	"""Same day `months` later, clamped to the last day of the target month."""
	month_index = value.year * 12 + (value.month - 1) + months
	year, month = month_index // 12, month_index % 12 + 1
	following = date(year + month // 12, month % 12 + 1, 1)
	last_day = (following - timedelta(days=1)).day
	return value.replace(year=year, month=month, day=min(value.day, last_day))


def repeat_starts(start: datetime, frequency: str = "none", count: int = 1) -> List[datetime]:
	"""
	Starts of a recurring series.

	Args:
		start: first occurrence
		frequency: "none", "weekly", "biweekly" or "monthly"
		count: number of occurrences (ignored for "none")

	Raises:
		ValueError: unknown frequency or count < 1
	"""
	if frequency not in REPEAT_FREQUENCIES:
		raise ValueError(f"Unknown repeat frequency '{frequency}'")
	if frequency == "none":
		return [start]
	if int(count) < 1:
		raise ValueError("Repeat count must be at least 1")

	starts = []
	for i in range(int(count)):
		if frequency == "weekly":
			starts.append(start + timedelta(weeks=i))
		elif frequency == "biweekly":
			starts.append(start + timedelta(weeks=2 * i))
		else:
			starts.append(_add_months(start, i))
	return starts


def validate_series(
	starts: List[datetime],
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	duration_minutes: Optional[int] = None
) -> Dict[str, Any]:
	"""
	Validate every occurrence of a recurring booking before any is written.

	Each occurrence is checked against the existing bookings and the
	occurrences before it. The first failure stops the check.

	Returns:
		dict: validation result (see validate_datetime) plus
		"occurrence": 1-based number of the failing occurrence, or None
	"""
	accepted = list(bookings)
	for number, start in enumerate(starts, 1):
		result = validate_datetime(start, accepted, template, duration_minutes=duration_minutes)
		if not result["is_valid"]:
			if len(starts) > 1:
				result["message"] = f"Occurrence {number} of {len(starts)}: {result['message']}"
			result["occurrence"] = number
			return result

		accepted.append({
			"id": None,
			"start": start,
			"duration_minutes": duration_minutes,
			"status": "Scheduled",
		})

	result = valid_result()
	result["occurrence"] = None
	return result
