# Copyright (c) 2026, Clinic Scheduling contributors
# See license.txt

"""
Tests for Appointment DocType

Tests defaults, session/block fields, status transitions and the
schedule check run on every save.
"""

import frappe
from frappe.tests.utils import FrappeTestCase
from datetime import datetime
from unittest.mock import patch

from clinic_scheduling.clinic_scheduling.scheduling.availability import lock_schedule
from clinic_scheduling.clinic_scheduling.tests import TEST_CLINIC, requires_site, reset_test_data


# Monday
DAY = (2031, 3, 10)


def make_appointment(hour, minute=0, **kwargs):
	values = {
		"doctype": "Appointment",
		"appointment_type": "Session",
		"patient": "Test Patient",
		"clinic": TEST_CLINIC,
		"start_datetime": datetime(*DAY, hour, minute),
	}
	values.update(kwargs)
	return frappe.get_doc(values)


@requires_site
class TestAppointment(FrappeTestCase):
	"""Tests for Appointment DocType."""

	def setUp(self):
		reset_test_data()

	def test_defaults(self):
		"""Status and duration are filled from the settings."""
		appointment = make_appointment(8)
		appointment.insert(ignore_permissions=True)

		self.assertEqual(appointment.status, "Scheduled")
		self.assertEqual(appointment.duration_minutes, 50)
		self.assertTrue(appointment.name.startswith("APT-"))

	def test_session_requires_patient(self):
		appointment = make_appointment(8, patient=None)

		with self.assertRaises(frappe.ValidationError):
			appointment.insert(ignore_permissions=True)

	def test_block_requires_reason_and_no_patient(self):
		block = make_appointment(8, appointment_type="Blocked", patient=None)
		with self.assertRaises(frappe.ValidationError):
			block.insert(ignore_permissions=True)

		block = make_appointment(8, appointment_type="Personal", block_reason="Doctor")
		with self.assertRaises(frappe.ValidationError):
			block.insert(ignore_permissions=True)

		block = make_appointment(8, appointment_type="Personal", patient=None, block_reason="Doctor")
		block.insert(ignore_permissions=True)
		self.assertTrue(block.is_block)

	def test_conflict_rejected(self):
		make_appointment(10).insert(ignore_permissions=True)

		with self.assertRaises(frappe.ValidationError):
			make_appointment(10, 30).insert(ignore_permissions=True)

		make_appointment(11).insert(ignore_permissions=True)

	def test_outside_working_hours_rejected(self):
		with self.assertRaises(frappe.ValidationError):
			make_appointment(7).insert(ignore_permissions=True)

		with self.assertRaises(frappe.ValidationError):
			make_appointment(12, 30).insert(ignore_permissions=True)

	def test_block_conflicts_with_sessions(self):
		make_appointment(
			14, appointment_type="Blocked", patient=None, block_reason="Meeting", duration_minutes=120
		).insert(ignore_permissions=True)

		with self.assertRaises(frappe.ValidationError):
			make_appointment(16).insert(ignore_permissions=True)

		make_appointment(17).insert(ignore_permissions=True)

	def test_saving_without_moving_skips_check(self):
		appointment = make_appointment(9)
		appointment.insert(ignore_permissions=True)

		appointment.notes = "First session"
		appointment.status = "Confirmed"
		appointment.save(ignore_permissions=True)

		self.assertEqual(appointment.status, "Confirmed")

	def test_moving_does_not_conflict_with_itself(self):
		appointment = make_appointment(9)
		appointment.insert(ignore_permissions=True)

		appointment.start_datetime = datetime(*DAY, 9, 30)
		appointment.save(ignore_permissions=True)

	def test_status_transitions(self):
		appointment = make_appointment(9)
		appointment.insert(ignore_permissions=True)

		appointment.status = "Done"
		appointment.save(ignore_permissions=True)

		appointment.status = "Scheduled"
		with self.assertRaises(frappe.ValidationError):
			appointment.save(ignore_permissions=True)

	def test_cancelled_frees_the_slot(self):
		first = make_appointment(10)
		first.insert(ignore_permissions=True)
		first.status = "Cancelled"
		first.save(ignore_permissions=True)

		make_appointment(10, patient="Other Patient").insert(ignore_permissions=True)

		# restoring the cancelled booking re-runs the check
		first.reload()
		first.status = "Scheduled"
		with self.assertRaises(frappe.ValidationError):
			first.save(ignore_permissions=True)

	def test_get_appointment_for_reschedule(self):
		from clinic_scheduling.clinic_scheduling.doctype.appointment.appointment import (
			get_appointment_for_reschedule,
		)

		appointment = make_appointment(9)
		appointment.insert(ignore_permissions=True)
		self.assertEqual(get_appointment_for_reschedule(appointment.name).name, appointment.name)

		appointment.status = "Cancelled"
		appointment.save(ignore_permissions=True)
		with self.assertRaises(frappe.ValidationError):
			get_appointment_for_reschedule(appointment.name)

	def test_full_day_block_accepted(self):
		"""Blocks may cover the lunch break and run to the end of the day."""
		block = make_appointment(
			8, appointment_type="Blocked", patient=None, block_reason="Conference", duration_minutes=480
		)
		block.insert(ignore_permissions=True)

		# 08:00-16:00 plus the 10 minute gap
		with self.assertRaises(frappe.ValidationError):
			make_appointment(16).insert(ignore_permissions=True)

		make_appointment(16, 10).insert(ignore_permissions=True)

	def test_block_outside_working_hours_accepted(self):
		make_appointment(
			12, appointment_type="Personal", patient=None, block_reason="Doctor", duration_minutes=60
		).insert(ignore_permissions=True)

	def test_save_locks_schedule(self):
		with patch("clinic_scheduling.clinic_scheduling.doctype.appointment.appointment.lock_schedule") as lock:
			make_appointment(9).insert(ignore_permissions=True)

		lock.assert_called()

	def test_lock_schedule_restores_settings_row(self):
		frappe.db.delete("Singles", {"doctype": "Scheduling Settings"})

		lock_schedule()

		self.assertTrue(
			frappe.db.get_single_value("Scheduling Settings", "session_duration_minutes", cache=False)
		)
