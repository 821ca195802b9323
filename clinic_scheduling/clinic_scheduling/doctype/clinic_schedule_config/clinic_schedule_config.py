# Copyright (c) 2026, Clinic Scheduling contributors
# For license information, please see license.txt

"""
Clinic Schedule Config DocType

Working hours for one weekday, optionally for one clinic. Records without
a clinic are the global schedule used as fallback.
"""

import frappe
from frappe import _
from frappe.model.document import Document

from clinic_scheduling.clinic_scheduling.scheduling.working_hours import (
	InvalidScheduleError,
	WEEKDAYS,
	format_time,
	to_time,
)


class ClinicScheduleConfig(Document):
	"""
	Clinic Schedule Config with validation for work hours and breaks.

	Validations:
	- day_of_week required and known
	- work_start_time < work_end_time
	- Each break: start < end, inside the work window
	- No overlapping breaks
	- One record per (clinic, weekday)
	"""

	def validate(self) -> None:
		self._validate_day_of_week()
		self._validate_work_hours()
		self._validate_breaks()
		self._validate_unique_day()

	def _to_time(self, value, label: str):
		try:
			return to_time(value)
		except InvalidScheduleError:
			frappe.throw(_(f"{label}: invalid time '{value}'. Use HH:MM"), frappe.ValidationError)

	def _validate_day_of_week(self) -> None:
		if not self.day_of_week:
			frappe.throw(_("Day of Week is required"), frappe.ValidationError)

		self.day_of_week = self.day_of_week.lower()
		if self.day_of_week not in WEEKDAYS:
			frappe.throw(_(f"Unknown Day of Week '{self.day_of_week}'"), frappe.ValidationError)

	def _validate_work_hours(self) -> None:
		if not self.work_start_time or not self.work_end_time:
			frappe.throw(_("Work Start Time and Work End Time are required"), frappe.ValidationError)

		start = self._to_time(self.work_start_time, _("Work Start Time"))
		end = self._to_time(self.work_end_time, _("Work End Time"))

		if start >= end:
			frappe.throw(
				_(f"Work Start Time ({format_time(start)}) must be before Work End Time ({format_time(end)})"),
				frappe.ValidationError
			)

	def _validate_breaks(self) -> None:
		work_start = self._to_time(self.work_start_time, _("Work Start Time"))
		work_end = self._to_time(self.work_end_time, _("Work End Time"))

		breaks = []
		for idx, brk in enumerate(self.breaks or [], 1):
			if not brk.break_start_time or not brk.break_end_time:
				frappe.throw(_(f"Break row {idx}: start and end are required"), frappe.ValidationError)

			start = self._to_time(brk.break_start_time, _(f"Break row {idx}"))
			end = self._to_time(brk.break_end_time, _(f"Break row {idx}"))

			if start >= end:
				frappe.throw(
					_(f"Break row {idx}: start ({format_time(start)}) must be before end ({format_time(end)})"),
					frappe.ValidationError
				)

			if start < work_start or end > work_end:
				frappe.throw(
					_(f"Break row {idx} ({format_time(start)}-{format_time(end)}) is outside working hours "
					  f"({format_time(work_start)}-{format_time(work_end)})"),
					frappe.ValidationError
				)

			breaks.append({"idx": idx, "start": start, "end": end})

		breaks.sort(key=lambda x: x["start"])
		for current, next_break in zip(breaks, breaks[1:]):
			if current["end"] > next_break["start"]:
				frappe.throw(
					_(f"Break row {current['idx']} overlaps break row {next_break['idx']}"),
					frappe.ValidationError
				)

	def _validate_unique_day(self) -> None:
		filters = {
			"day_of_week": self.day_of_week,
			"clinic": self.clinic or ["is", "not set"],
		}
		if not self.is_new():
			filters["name"] = ["!=", self.name]

		if frappe.db.exists("Clinic Schedule Config", filters):
			scope = self.clinic or _("the global schedule")
			frappe.throw(
				_(f"{self.day_of_week.capitalize()} is already configured for {scope}"),
				frappe.DuplicateEntryError
			)
