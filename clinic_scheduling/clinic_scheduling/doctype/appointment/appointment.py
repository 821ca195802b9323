# Copyright (c) 2026, Clinic Scheduling contributors
# For license information, please see license.txt

"""
Appointment DocType

Patient sessions and calendar blocks (blocked/personal time) share this
DocType. Both take part in conflict checking.
"""

import frappe
from frappe import _
from frappe.model.document import Document
from frappe.utils import get_datetime, getdate

from clinic_scheduling.clinic_scheduling.scheduling.availability import get_bookings, load_template, lock_schedule
from clinic_scheduling.clinic_scheduling.scheduling.validation import validate_block, validate_datetime


BLOCK_TYPES = ("Blocked", "Personal")

STATUS_TRANSITIONS = {
	"Scheduled": {"Confirmed", "Done", "Cancelled"},
	"Confirmed": {"Scheduled", "Done", "Cancelled"},
	"Done": set(),
	"Cancelled": {"Scheduled"},
}


class Appointment(Document):
	"""
	Appointment DocType with scheduling validation.

	Flow:
	1. Created as Scheduled (sessions) by the booking dialog, or as a Block
	2. Moves through Confirmed -> Done, or is Cancelled
	3. Every save that changes when it happens re-runs the schedule check
	"""

	def validate(self) -> None:
		"""
		Validation before save.

		Runs:
		1. Required fields and defaults
		2. Session/block specific fields
		3. Status transition
		4. Working hours, breaks and conflicts (when the time changed)
		"""
		self._set_defaults()
		self._validate_required_fields()
		self._validate_booking_type_fields()
		self._validate_status_transition()
		self._validate_schedule()

	@property
	def is_block(self) -> bool:
		return self.appointment_type in BLOCK_TYPES

	# ===== VALIDATION METHODS =====

	def _set_defaults(self) -> None:
		if not self.appointment_type:
			self.appointment_type = "Session"
		if not self.status:
			self.status = "Scheduled"
		if not self.duration_minutes:
			template = load_template(self.clinic)
			self.duration_minutes = template.session_duration_minutes

	def _validate_required_fields(self) -> None:
		if not self.start_datetime:
			frappe.throw(_("Start DateTime is required"), frappe.ValidationError)

		if int(self.duration_minutes) <= 0:
			frappe.throw(_("Duration must be greater than 0"), frappe.ValidationError)

	def _validate_booking_type_fields(self) -> None:
		"""Sessions need a patient; blocks need a reason and no patient."""
		if self.is_block:
			if self.patient:
				frappe.throw(_("A blocked period cannot have a patient"), frappe.ValidationError)
			if not self.block_reason:
				frappe.throw(_("Block Reason is required"), frappe.ValidationError)
		elif not self.patient:
			frappe.throw(_("Patient is required"), frappe.ValidationError)

	def _validate_status_transition(self) -> None:
		previous = self.get_doc_before_save()
		if not previous or previous.status == self.status:
			return

		allowed = STATUS_TRANSITIONS.get(previous.status, set())
		if self.status not in allowed:
			frappe.throw(
				_(f"Cannot change status from {previous.status} to {self.status}"),
				frappe.ValidationError
			)

	def _needs_schedule_check(self) -> bool:
		if self.status == "Cancelled":
			return False

		previous = self.get_doc_before_save()
		if not previous:
			return True

		return (
			get_datetime(previous.start_datetime) != get_datetime(self.start_datetime)
			or int(previous.duration_minutes or 0) != int(self.duration_minutes)
			or previous.clinic != self.clinic
			or previous.status == "Cancelled"
		)

	def _validate_schedule(self) -> None:
		"""
		Re-run the date/time validator before writing.

		Sessions get the full check; blocks only the conflict check. The
		schedule lock is held until the transaction ends, so a concurrent
		booking waits and then sees this one.
		"""
		if not self._needs_schedule_check():
			return

		start = get_datetime(self.start_datetime)
		template = load_template(self.clinic)
		day = getdate(template.to_local(start))
		lock_schedule()
		bookings = get_bookings(day, day, for_update=True)

		exclude_id = None if self.is_new() else self.name
		if self.is_block:
			result = validate_block(start, bookings, template, int(self.duration_minutes), exclude_id=exclude_id)
		else:
			result = validate_datetime(
				start,
				bookings,
				template,
				exclude_id=exclude_id,
				duration_minutes=int(self.duration_minutes),
			)

		if not result["is_valid"]:
			frappe.logger("clinic_scheduling").info(
				f"Appointment {self.name or '(new)'} rejected at {start}: {result['error']}"
			)
			frappe.throw(_(result["message"]), frappe.ValidationError, title=_("Time unavailable"))


def get_appointment_for_reschedule(appointment_name: str) -> "Appointment":
	"""Load an appointment that may still be moved (not Done/Cancelled)."""
	appointment = frappe.get_doc("Appointment", appointment_name)
	if appointment.status in ("Done", "Cancelled"):
		frappe.throw(
			_(f"Appointment {appointment_name} is {appointment.status} and cannot be rescheduled"),
			frappe.ValidationError
		)
	return appointment
