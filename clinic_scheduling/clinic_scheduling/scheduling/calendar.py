"""
Calendar View

State behind the month/week calendar: selected date, visible month,
per-day grouping of appointments and blocks, week statistics and
drag-and-drop rescheduling.

Rescheduling never writes on its own. plan_reschedule computes and
validates the move; reschedule hands a valid move to the caller's commit
function and reports an invalid one through the caller's notify function.
"""

from datetime import datetime, date, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

from .overlap import is_cancelled
from .slots import has_available_slots
from .validation import validate_block, validate_datetime
from .working_hours import WorkingHoursTemplate


WEEK_STATUSES = {
	"scheduled": "pending",
	"confirmed": "confirmed",
	"done": "done",
}


def day_key(value: Union[date, datetime]) -> str:
	return value.strftime("%Y-%m-%d")


def start_of_week(value: date) -> date:
	"""Weeks start on Sunday."""
	return value - timedelta(days=(value.weekday() + 1) % 7)


def add_months(value: date, months: int) -> date:
	"""First day of the month `months` away from value's month."""
	month_index = value.year * 12 + (value.month - 1) + months
	return date(month_index // 12, month_index % 12 + 1, 1)


def month_grid(month: date) -> List[date]:
	"""Full weeks (Sunday-Saturday) covering the month."""
	first = month.replace(day=1)
	last = add_months(first, 1) - timedelta(days=1)
	start = start_of_week(first)
	end = start_of_week(last) + timedelta(days=6)
	return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def group_by_day(
	appointments: List[Dict[str, Any]],
	template: WorkingHoursTemplate
) -> Dict[str, List[Dict[str, Any]]]:
	"""
	Map "YYYY-MM-DD" to that day's entries, sorted by start.

	Entries without a start are skipped. Each entry is copied and gets a
	"local_start" key in the template timezone.
	"""
	grouped = {}
	for appointment in appointments:
		if not appointment.get("start"):
			continue
		entry = dict(appointment)
		entry["local_start"] = template.to_local(appointment["start"])
		grouped.setdefault(day_key(entry["local_start"]), []).append(entry)

	for entries in grouped.values():
		entries.sort(key=lambda x: x["local_start"])

	return grouped


def compose_target_start(original_start: datetime, target_day: date, template: WorkingHoursTemplate) -> datetime:
	"""Target day at the original time of day (template-local, naive)."""
	local = template.to_local(original_start)
	return datetime.combine(target_day, local.time().replace(second=0, microsecond=0))


class CalendarView:
	"""
	Calendar state for one user session.

	Args:
		appointments: bookings as plain dicts (see overlap); blocks included
		template: working hours template
		selected_date: initially selected day (default: today)
	"""

	def __init__(
		self,
		appointments: List[Dict[str, Any]],
		template: WorkingHoursTemplate,
		selected_date: Optional[date] = None,
		today: Optional[date] = None
	) -> None:
		self.appointments = list(appointments)
		self.template = template
		self.today = today or date.today()
		self.selected_date = selected_date or self.today
		self.current_month = self.selected_date.replace(day=1)
		self.appointments_by_day = group_by_day(self.appointments, template)

	# ===== NAVIGATION =====

	def select_date(self, value: Union[date, datetime]) -> None:
		if isinstance(value, datetime):
			value = value.date()
		self.selected_date = value

	def navigate_month(self, direction: str) -> None:
		if direction not in ("prev", "next"):
			raise ValueError(f"Unknown direction '{direction}'")
		self.current_month = add_months(self.current_month, -1 if direction == "prev" else 1)

	def navigate_week(self, direction: str) -> None:
		if direction == "today":
			self.select_date(self.today)
		elif direction in ("prev", "next"):
			self.select_date(self.selected_date + timedelta(days=-7 if direction == "prev" else 7))
		else:
			raise ValueError(f"Unknown direction '{direction}'")

	# ===== DERIVED VIEWS =====

	@property
	def month_days(self) -> List[date]:
		return month_grid(self.current_month)

	@property
	def week_start(self) -> date:
		return start_of_week(self.selected_date)

	@property
	def week_days(self) -> List[date]:
		return [self.week_start + timedelta(days=i) for i in range(7)]

	@property
	def week_label(self) -> str:
		end = self.week_start + timedelta(days=6)
		return f"{self.week_start.strftime('%d/%m')} - {end.strftime('%d/%m')}"

	def appointments_for(self, value: date) -> List[Dict[str, Any]]:
		return self.appointments_by_day.get(day_key(value), [])

	@property
	def selected_day_appointments(self) -> List[Dict[str, Any]]:
		return self.appointments_for(self.selected_date)

	@property
	def week_stats(self) -> Dict[str, int]:
		stats = {"total": 0, "confirmed": 0, "pending": 0, "done": 0}
		for day in self.week_days:
			for entry in self.appointments_for(day):
				stats["total"] += 1
				bucket = WEEK_STATUSES.get((entry.get("status") or "").lower())
				if bucket:
					stats[bucket] += 1
		return stats

	@property
	def month_appointments_count(self) -> int:
		return sum(
			len(self.appointments_for(day))
			for day in self.month_days
			if day.month == self.current_month.month and day.year == self.current_month.year
		)

	# ===== DRAG AND DROP =====

	def find(self, appointment_id: str) -> Optional[Dict[str, Any]]:
		return next((a for a in self.appointments if a.get("id") == appointment_id), None)

	def plan_reschedule(self, appointment_id: str, target_day: Union[date, datetime]) -> Dict[str, Any]:
		"""
		Validate moving an appointment to another day, same time of day.

		Blocks are only checked for conflicts (see validation.validate_block).

		Returns:
			dict: {
				"ok": bool,
				"new_start": datetime | None,
				"validation": validation result (see validation.validate_datetime)
			}
		"""
		if isinstance(target_day, datetime):
			target_day = target_day.date()

		appointment = self.find(appointment_id)
		if appointment is None or not appointment.get("start"):
			raise KeyError(f"Appointment '{appointment_id}' is not on this calendar")
		if is_cancelled(appointment):
			raise ValueError(f"Appointment '{appointment_id}' is cancelled")

		new_start = compose_target_start(appointment["start"], target_day, self.template)
		if (appointment.get("kind") or "session") != "session":
			validation = validate_block(
				new_start,
				self.appointments,
				self.template,
				appointment.get("duration_minutes"),
				exclude_id=appointment_id,
			)
		else:
			validation = validate_datetime(
				new_start,
				self.appointments,
				self.template,
				exclude_id=appointment_id,
				duration_minutes=appointment.get("duration_minutes"),
			)

		return {
			"ok": validation["is_valid"],
			"new_start": new_start if validation["is_valid"] else None,
			"validation": validation,
		}

	def reschedule(
		self,
		appointment_id: str,
		target_day: Union[date, datetime],
		commit: Callable[[str, datetime], Any],
		notify: Callable[[str, str], Any]
	) -> Dict[str, Any]:
		"""
		Drop handler: commit a valid move, report an invalid one.

		On failure nothing is changed. Exceptions raised by commit propagate
		and leave the local state untouched.
		"""
		plan = self.plan_reschedule(appointment_id, target_day)

		if not plan["ok"]:
			notify("Time unavailable", plan["validation"]["message"])
			return plan

		commit(appointment_id, plan["new_start"])

		appointment = self.find(appointment_id)
		self.appointments = [
			dict(a, start=plan["new_start"]) if a is appointment else a
			for a in self.appointments
		]
		self.appointments_by_day = group_by_day(self.appointments, self.template)
		return plan

	def as_dict(self) -> Dict[str, Any]:
		"""JSON-friendly summary used by the calendar API."""
		return {
			"selected_date": day_key(self.selected_date),
			"current_month": self.current_month.strftime("%Y-%m"),
			"week_label": self.week_label,
			"week_days": [day_key(d) for d in self.week_days],
			"week_stats": self.week_stats,
			"month_appointments_count": self.month_appointments_count,
			"month_days": [
				{
					"date": day_key(d),
					"in_month": d.month == self.current_month.month,
					"is_work_day": self.template.is_work_day(d),
					"has_available_slots": has_available_slots(d, self.appointments, self.template),
					"count": len(self.appointments_for(d)),
				}
				for d in self.month_days
			],
			"selected_day_appointments": [
				{
					"id": a.get("id"),
					"time": a["local_start"].strftime("%H:%M"),
					"patient": a.get("patient"),
					"status": a.get("status"),
					"kind": a.get("kind") or "session",
					"duration_minutes": a.get("duration_minutes"),
				}
				for a in self.selected_day_appointments
			],
		}
