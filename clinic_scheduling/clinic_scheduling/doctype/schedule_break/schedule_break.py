# Copyright (c) 2026, Clinic Scheduling contributors
# For license information, please see license.txt

from frappe.model.document import Document


class ScheduleBreak(Document):
	pass
