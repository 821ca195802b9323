"""
Working Hours Template

Weekly schedule used by every scheduling computation:
- Work windows per weekday (one or more contiguous ranges)
- Break windows (lunch, supervision, etc.) inside the work windows
- Active weekdays
- Session duration and inter-session gap

The template is plain data. It is loaded once per request (see
availability.load_template) and passed explicitly to the slot generator,
the conflict checker and the validator.
"""

from datetime import datetime, date, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

import pytz


WEEKDAYS = [
	"monday",
	"tuesday",
	"wednesday",
	"thursday",
	"friday",
	"saturday",
	"sunday",
]

DEFAULT_WORK_START = time(8, 0)
DEFAULT_WORK_END = time(18, 0)
DEFAULT_BREAK = {"start": time(12, 0), "end": time(13, 0), "label": "Lunch"}
DEFAULT_SESSION_DURATION = 50
DEFAULT_GAP = 10
DEFAULT_TIMEZONE = "America/Sao_Paulo"


class InvalidScheduleError(ValueError):
	"""Malformed schedule configuration or input."""
	pass


def to_time(time_value: Union[time, timedelta, str]) -> time:
	"""
	Convert the formats a time can arrive in to datetime.time.

	Args:
		time_value: time, timedelta since midnight (as returned by MariaDB
			for Time columns) or a "HH:MM" / "HH:MM:SS" string

	Returns:
		datetime.time object
	"""
	if isinstance(time_value, datetime):
		return time_value.time()
	if isinstance(time_value, time):
		return time_value
	elif isinstance(time_value, timedelta):
		return (datetime.min + time_value).time()
	elif isinstance(time_value, str):
		value = time_value.strip()
		for fmt in ("%H:%M:%S", "%H:%M", "%H:%M:%S.%f"):
			try:
				return datetime.strptime(value, fmt).time()
			except ValueError:
				continue
		raise InvalidScheduleError(f"Invalid time '{time_value}'. Use HH:MM")
	else:
		raise InvalidScheduleError(f"Cannot convert {type(time_value)} to time")


def format_time(value: Union[time, datetime]) -> str:
	"""HH:MM representation used by slot pickers."""
	return value.strftime("%H:%M")


def weekday_name(target_date: Union[date, datetime]) -> str:
	"""Lowercase English weekday name ("monday", ...)."""
	return WEEKDAYS[target_date.weekday()]


def validate_weekday(weekday: str) -> str:
	weekday = (weekday or "").strip().lower()
	if weekday not in WEEKDAYS:
		raise InvalidScheduleError(f"Unknown weekday '{weekday}'")
	return weekday


def parse_weekdays(values: Iterable[str]) -> List[str]:
	"""Normalize a list of weekday names, keeping calendar order."""
	requested = {validate_weekday(value) for value in values}
	return [day for day in WEEKDAYS if day in requested]


# ===== INTERVAL HELPERS =====

def intervals_overlap(a: Dict[str, Any], b: Dict[str, Any]) -> bool:
	"""Half-open overlap: a.start < b.end and b.start < a.end."""
	return a["start"] < b["end"] and b["start"] < a["end"]


def merge_intervals(intervals: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
	"""
	Merge adjacent or overlapping intervals.

	Args:
		intervals: list of {"start": ..., "end": ...}

	Returns:
		list: new sorted list of merged intervals (input is not modified)
	"""
	if not intervals:
		return []

	ordered = sorted(({"start": i["start"], "end": i["end"]} for i in intervals), key=lambda x: x["start"])
	merged = [ordered[0]]

	for current in ordered[1:]:
		last_merged = merged[-1]

		if current["start"] <= last_merged["end"]:
			if current["end"] > last_merged["end"]:
				last_merged["end"] = current["end"]
		else:
			merged.append(current)

	return merged


def interval_subtract(interval: Dict[str, Any], block: Dict[str, Any]) -> List[Dict[str, Any]]:
	"""
	Subtract a block from an interval.

	Returns:
		list: 0, 1 or 2 remaining pieces
	"""
	if block["end"] <= interval["start"] or block["start"] >= interval["end"]:
		return [interval]

	pieces = []
	if block["start"] > interval["start"]:
		pieces.append({"start": interval["start"], "end": block["start"]})
	if block["end"] < interval["end"]:
		pieces.append({"start": block["end"], "end": interval["end"]})
	return pieces


# ===== DAY SCHEDULES =====

def make_day_schedule(
	weekday: str,
	windows: List[Dict[str, Any]],
	breaks: Optional[List[Dict[str, Any]]] = None,
	is_active: bool = True
) -> Dict[str, Any]:
	"""
	Build a normalized day schedule.

	Args:
		weekday: "monday" .. "sunday"
		windows: [{"start": time|str, "end": time|str}, ...]
		breaks: [{"start": time|str, "end": time|str, "label": str}, ...]
		is_active: whether bookings are allowed on this weekday

	Returns:
		dict: {
			"weekday": str,
			"windows": [{"start": time, "end": time}, ...],  # merged, sorted
			"breaks": [{"start": time, "end": time, "label": str}, ...],  # sorted
			"is_active": bool
		}

	Raises:
		InvalidScheduleError: start >= end, or a break outside every window
	"""
	weekday = validate_weekday(weekday)

	normalized_windows = []
	for window in windows or []:
		start = to_time(window["start"])
		end = to_time(window["end"])
		if start >= end:
			raise InvalidScheduleError(
				f"{weekday}: work window {format_time(start)}-{format_time(end)} must start before it ends"
			)
		normalized_windows.append({"start": start, "end": end})
	normalized_windows = merge_intervals(normalized_windows)

	normalized_breaks = []
	for brk in breaks or []:
		start = to_time(brk["start"])
		end = to_time(brk["end"])
		if start >= end:
			raise InvalidScheduleError(
				f"{weekday}: break {format_time(start)}-{format_time(end)} must start before it ends"
			)
		if normalized_windows and not any(
			w["start"] <= start and end <= w["end"] for w in normalized_windows
		):
			raise InvalidScheduleError(
				f"{weekday}: break {format_time(start)}-{format_time(end)} is outside the working hours"
			)
		normalized_breaks.append({"start": start, "end": end, "label": brk.get("label") or ""})
	normalized_breaks.sort(key=lambda x: x["start"])

	return {
		"weekday": weekday,
		"windows": normalized_windows,
		"breaks": normalized_breaks,
		"is_active": bool(is_active) and bool(normalized_windows),
	}


def default_day_schedule(weekday: str) -> Dict[str, Any]:
	"""08:00-18:00 with a lunch break; weekends inactive."""
	weekday = validate_weekday(weekday)
	return make_day_schedule(
		weekday,
		[{"start": DEFAULT_WORK_START, "end": DEFAULT_WORK_END}],
		[dict(DEFAULT_BREAK)],
		is_active=weekday not in ("saturday", "sunday"),
	)


def free_windows(day: Dict[str, Any]) -> List[Dict[str, time]]:
	"""Work windows minus breaks: the ranges a session may occupy."""
	if not day["is_active"]:
		return []

	intervals = [dict(w) for w in day["windows"]]
	for brk in day["breaks"]:
		remaining = []
		for interval in intervals:
			remaining.extend(interval_subtract(interval, brk))
		intervals = remaining
	return intervals


# ===== TEMPLATE =====

class WorkingHoursTemplate:
	"""
	Weekly schedule plus session sizing.

	Treat instances as immutable; copy_day_schedule returns a new template.
	"""

	def __init__(
		self,
		days: Optional[Dict[str, Dict[str, Any]]] = None,
		session_duration_minutes: int = DEFAULT_SESSION_DURATION,
		gap_minutes: int = DEFAULT_GAP,
		timezone: str = DEFAULT_TIMEZONE
	) -> None:
		if not session_duration_minutes or int(session_duration_minutes) <= 0:
			raise InvalidScheduleError("Session duration must be greater than 0")
		if gap_minutes is None or int(gap_minutes) < 0:
			raise InvalidScheduleError("Gap between sessions cannot be negative")

		try:
			self.tz = pytz.timezone(timezone or DEFAULT_TIMEZONE)
		except pytz.UnknownTimeZoneError:
			raise InvalidScheduleError(f"Unknown timezone '{timezone}'")

		days = days or {}
		self.days = {}
		for weekday in WEEKDAYS:
			self.days[weekday] = days.get(weekday) or default_day_schedule(weekday)

		self.session_duration_minutes = int(session_duration_minutes)
		self.gap_minutes = int(gap_minutes)
		self.timezone = self.tz.zone

	def __repr__(self) -> str:
		return f"<WorkingHoursTemplate days={self.active_weekdays} session={self.session_duration_minutes}+{self.gap_minutes}>"

	def __eq__(self, other: Any) -> bool:
		if not isinstance(other, WorkingHoursTemplate):
			return NotImplemented
		return (
			self.days == other.days
			and self.session_duration_minutes == other.session_duration_minutes
			and self.gap_minutes == other.gap_minutes
			and self.timezone == other.timezone
		)

	@property
	def active_weekdays(self) -> List[str]:
		return [day for day in WEEKDAYS if self.days[day]["is_active"]]

	def day_for(self, target_date: Union[date, datetime]) -> Dict[str, Any]:
		return self.days[weekday_name(target_date)]

	def is_work_day(self, target_date: Union[date, datetime]) -> bool:
		return self.day_for(target_date)["is_active"]

	def to_local(self, value: datetime) -> datetime:
		"""
		Wall-clock datetime in the template timezone.

		Aware datetimes are converted; naive ones are already local.
		"""
		if value.tzinfo is None:
			return value
		return value.astimezone(self.tz).replace(tzinfo=None)

	def as_dict(self) -> Dict[str, Any]:
		"""JSON-friendly view used by the schedule API."""
		return {
			"session_duration_minutes": self.session_duration_minutes,
			"gap_minutes": self.gap_minutes,
			"timezone": self.timezone,
			"days": [
				{
					"weekday": weekday,
					"is_active": self.days[weekday]["is_active"],
					"windows": [
						{"start": format_time(w["start"]), "end": format_time(w["end"])}
						for w in self.days[weekday]["windows"]
					],
					"breaks": [
						{"start": format_time(b["start"]), "end": format_time(b["end"]), "label": b["label"]}
						for b in self.days[weekday]["breaks"]
					],
					"free_windows": [
						{"start": format_time(w["start"]), "end": format_time(w["end"])}
						for w in free_windows(self.days[weekday])
					],
				}
				for weekday in WEEKDAYS
			],
		}


def default_template() -> WorkingHoursTemplate:
	return WorkingHoursTemplate()


def build_template(
	configs: List[Dict[str, Any]],
	clinic: Optional[str] = None,
	session_duration_minutes: int = DEFAULT_SESSION_DURATION,
	gap_minutes: int = DEFAULT_GAP,
	timezone: str = DEFAULT_TIMEZONE
) -> WorkingHoursTemplate:
	"""
	Resolve a template from per-day config records.

	Args:
		configs: [
			{
				"clinic": str | None,
				"day_of_week": "monday",
				"work_start_time": "08:00",
				"work_end_time": "18:00",
				"is_active": 1,
				"breaks": [{"break_start_time": ..., "break_end_time": ..., "label": ...}]
			},
			...
		]
		clinic: clinic whose schedule is wanted (None = global schedule)

	Algorithm:
		For each weekday take the clinic-specific record, else the global
		record (no clinic), else the default day.
	"""
	days = {}
	for weekday in WEEKDAYS:
		candidates = [c for c in configs if (c.get("day_of_week") or "").lower() == weekday]
		config = next((c for c in candidates if clinic and c.get("clinic") == clinic), None)
		if config is None:
			config = next((c for c in candidates if not c.get("clinic")), None)

		if config is None:
			days[weekday] = default_day_schedule(weekday)
			continue

		days[weekday] = make_day_schedule(
			weekday,
			[{"start": config["work_start_time"], "end": config["work_end_time"]}],
			[
				{
					"start": b.get("break_start_time"),
					"end": b.get("break_end_time"),
					"label": b.get("label"),
				}
				for b in config.get("breaks") or []
			],
			is_active=bool(config.get("is_active")),
		)

	return WorkingHoursTemplate(
		days,
		session_duration_minutes=session_duration_minutes,
		gap_minutes=gap_minutes,
		timezone=timezone,
	)


def copy_day_schedule(
	template: WorkingHoursTemplate,
	source_day: str,
	target_days: Iterable[str]
) -> WorkingHoursTemplate:
	"""Return a new template where every target day repeats source_day."""
	source = template.days[validate_weekday(source_day)]

	days = dict(template.days)
	for weekday in parse_weekdays(target_days):
		days[weekday] = make_day_schedule(
			weekday,
			[dict(w) for w in source["windows"]],
			[dict(b) for b in source["breaks"]],
			is_active=source["is_active"],
		)

	return WorkingHoursTemplate(
		days,
		session_duration_minutes=template.session_duration_minutes,
		gap_minutes=template.gap_minutes,
		timezone=template.timezone,
	)
