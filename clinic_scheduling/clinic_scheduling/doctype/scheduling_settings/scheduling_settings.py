# Copyright (c) 2026, Clinic Scheduling contributors
# For license information, please see license.txt

"""
Scheduling Settings DocType

Single with the session sizing shared by every clinic.
"""

import frappe
import pytz
from frappe import _
from frappe.model.document import Document


class SchedulingSettings(Document):
	def validate(self) -> None:
		if not self.session_duration_minutes or int(self.session_duration_minutes) <= 0:
			frappe.throw(_("Session Duration must be greater than 0"), frappe.ValidationError)

		if self.session_gap_minutes is not None and int(self.session_gap_minutes) < 0:
			frappe.throw(_("Gap Between Sessions cannot be negative"), frappe.ValidationError)

		if self.timezone and self.timezone != "system timezone":
			try:
				pytz.timezone(self.timezone)
			except pytz.UnknownTimeZoneError:
				frappe.throw(_(f"Unknown timezone '{self.timezone}'"), frappe.ValidationError)
