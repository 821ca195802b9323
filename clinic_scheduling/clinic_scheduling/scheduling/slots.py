"""
Slot Generation Service

Generates discrete session start times for slot pickers, considering:
- Working hours template (active weekdays, work windows)
- Break windows
- Existing appointments and blocks

Policy: times the template makes impossible (inactive day, session not
fitting the window, session touching a break) are dropped. Times that are
only taken by a booking are returned with is_available False.
"""

from datetime import datetime, date, timedelta
from typing import Any, Dict, List, Optional, Union

from .overlap import check_slots
from .working_hours import InvalidScheduleError, WorkingHoursTemplate, intervals_overlap


def _as_date(target_date: Union[date, datetime]) -> date:
	if isinstance(target_date, datetime):
		return target_date.date()
	return target_date


def generate_slots(
	target_date: Union[date, datetime],
	template: WorkingHoursTemplate,
	session_duration_minutes: Optional[int] = None,
	gap_minutes: Optional[int] = None
) -> List[datetime]:
	"""
	Candidate session starts for one day.

	Args:
		target_date: day to generate for
		template: working hours template
		session_duration_minutes: override of the template session duration
		gap_minutes: override of the template gap

	Raises:
		InvalidScheduleError: duration override <= 0 or gap override < 0

	Returns:
		list[datetime]: naive, template-local starts in ascending order

	Algorithm:
		1. Empty if the weekday is not active
		2. For each work window, step from start by duration + gap
		3. Keep a start while start + duration <= window end
		4. Drop starts whose session intersects a break
	"""
	target_date = _as_date(target_date)
	day = template.day_for(target_date)

	if session_duration_minutes is None:
		session_duration_minutes = template.session_duration_minutes
	if gap_minutes is None:
		gap_minutes = template.gap_minutes

	if int(session_duration_minutes) <= 0:
		raise InvalidScheduleError("Session duration must be greater than 0")
	if int(gap_minutes) < 0:
		raise InvalidScheduleError("Gap between sessions cannot be negative")

	duration = timedelta(minutes=int(session_duration_minutes))
	step = duration + timedelta(minutes=int(gap_minutes))

	if not day["is_active"]:
		return []

	breaks = [
		{
			"start": datetime.combine(target_date, b["start"]),
			"end": datetime.combine(target_date, b["end"]),
		}
		for b in day["breaks"]
	]

	slots = []
	for window in day["windows"]:
		window_end = datetime.combine(target_date, window["end"])
		current = datetime.combine(target_date, window["start"])

		while current + duration <= window_end:
			session = {"start": current, "end": current + duration}
			if not any(intervals_overlap(session, brk) for brk in breaks):
				slots.append(current)
			current += step

	return slots


def get_time_slots_for_date(
	target_date: Union[date, datetime],
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	exclude_id: Optional[str] = None
) -> List[Dict[str, Any]]:
	"""
	Slot picker data for one day.

	Returns:
		list[dict]: [{"time": "08:00", "is_available": True}, ...]
	"""
	candidates = generate_slots(target_date, template)
	return check_slots(candidates, bookings, template, exclude_id=exclude_id)


def has_available_slots(
	target_date: Union[date, datetime],
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate
) -> bool:
	return any(slot["is_available"] for slot in get_time_slots_for_date(target_date, bookings, template))


def generate_available_slots(
	start_date: date,
	end_date: date,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate
) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Slot picker data for a date range (inclusive).

	Returns:
		dict: {
			"2026-01-19": [{"time": "08:00", "is_available": True}, ...],
			...
		}
		Days without any candidate are omitted.
	"""
	result = {}
	current_date = _as_date(start_date)
	end_date = _as_date(end_date)

	while current_date <= end_date:
		slots = get_time_slots_for_date(current_date, bookings, template)
		if slots:
			result[current_date.strftime("%Y-%m-%d")] = slots
		current_date += timedelta(days=1)

	return result
