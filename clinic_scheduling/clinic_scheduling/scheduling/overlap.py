"""
Overlap Detection Service

Detects scheduling conflicts between a candidate booking and the existing
Appointments/Blocks of the calendar, considering:
- Session duration plus the inter-session gap
- Appointment status (Cancelled entries never conflict)
- The appointment being edited or dragged (excluded from its own check)

Existing bookings are plain dicts, as returned by frappe.get_all:
	{
		"id": "APT-00001",
		"start": datetime,
		"duration_minutes": 50,
		"status": "Scheduled",
		"kind": "session" | "blocked" | "personal",
		"patient": "..."
	}

The caller always supplies the full set of bookings; nothing is cached here.
"""

from datetime import datetime, date, timedelta
from typing import Any, Dict, List, Optional

from .working_hours import WorkingHoursTemplate, format_time, intervals_overlap


CANCELLED = "cancelled"


def is_cancelled(booking: Dict[str, Any]) -> bool:
	return (booking.get("status") or "").lower() == CANCELLED


def occupied_interval(start: datetime, duration_minutes: int, gap_minutes: int = 0) -> Dict[str, datetime]:
	"""Half-open range [start, start + duration + gap) reserved by a booking."""
	return {
		"start": start,
		"end": start + timedelta(minutes=int(duration_minutes) + int(gap_minutes)),
	}


def active_bookings(
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	exclude_id: Optional[str] = None
) -> List[Dict[str, Any]]:
	"""
	Non-cancelled bookings with their occupied interval attached.

	Returns:
		list[dict]: copies of the bookings with "local_start" and
		"interval" keys, sorted by start
	"""
	result = []
	for booking in bookings:
		if is_cancelled(booking) or not booking.get("start"):
			continue
		if exclude_id and booking.get("id") == exclude_id:
			continue

		local_start = template.to_local(booking["start"])
		duration = booking.get("duration_minutes") or template.session_duration_minutes

		entry = dict(booking)
		entry["local_start"] = local_start
		entry["interval"] = occupied_interval(local_start, duration, template.gap_minutes)
		result.append(entry)

	result.sort(key=lambda x: x["local_start"])
	return result


def find_conflict(
	start: datetime,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	duration_minutes: Optional[int] = None,
	exclude_id: Optional[str] = None
) -> Optional[Dict[str, Any]]:
	"""
	First booking whose occupied interval overlaps the candidate.

	Args:
		start: candidate start (naive = template-local, aware = converted)
		bookings: existing bookings for the relevant range
		template: working hours template (gap, timezone, default duration)
		duration_minutes: candidate duration, defaults to the session duration
		exclude_id: booking to ignore (the one being edited/moved)

	Returns:
		dict | None: the conflicting booking
	"""
	candidate = occupied_interval(
		template.to_local(start),
		duration_minutes or template.session_duration_minutes,
		template.gap_minutes,
	)

	for booking in active_bookings(bookings, template, exclude_id):
		if intervals_overlap(candidate, booking["interval"]):
			return booking

	return None


def check_slots(
	candidates: List[datetime],
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate,
	exclude_id: Optional[str] = None
) -> List[Dict[str, Any]]:
	"""
	Mark every candidate start as available or not.

	Candidates are never dropped here; the result has one entry per
	candidate, in the same order.

	Returns:
		list[dict]: [{"time": "HH:MM", "is_available": bool}, ...]
	"""
	active = active_bookings(bookings, template, exclude_id)

	slots = []
	for candidate_start in candidates:
		local_start = template.to_local(candidate_start)
		candidate = occupied_interval(
			local_start,
			template.session_duration_minutes,
			template.gap_minutes,
		)
		is_available = not any(intervals_overlap(candidate, b["interval"]) for b in active)
		slots.append({"time": format_time(local_start), "is_available": is_available})

	return slots


def occupied_slots_for_date(
	target_date: date,
	bookings: List[Dict[str, Any]],
	template: WorkingHoursTemplate
) -> List[Dict[str, Any]]:
	"""
	Non-cancelled bookings starting on target_date, for calendar display.

	Returns:
		list[dict]: [{"time": "HH:MM", "id": str, "patient": str, "kind": str}, ...]
	"""
	return [
		{
			"time": format_time(booking["local_start"]),
			"id": booking.get("id"),
			"patient": booking.get("patient"),
			"kind": booking.get("kind") or "session",
		}
		for booking in active_bookings(bookings, template)
		if booking["local_start"].date() == target_date
	]
