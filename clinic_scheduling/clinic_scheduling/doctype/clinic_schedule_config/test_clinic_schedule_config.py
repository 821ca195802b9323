# Copyright (c) 2026, Clinic Scheduling contributors
# See license.txt

"""
Tests for Clinic Schedule Config DocType and the schedule API

Tests working hour validation and template resolution.
"""

import frappe
from frappe.tests.utils import FrappeTestCase

from clinic_scheduling.api.schedule_api import (
	copy_schedule_to_days,
	get_schedule,
	save_day_schedule,
)
from clinic_scheduling.clinic_scheduling.scheduling.availability import load_template
from clinic_scheduling.clinic_scheduling.tests import TEST_CLINIC, requires_site, reset_test_data


def make_config(day_of_week="tuesday", start="09:00:00", end="13:00:00", breaks=None):
	return frappe.get_doc({
		"doctype": "Clinic Schedule Config",
		"clinic": TEST_CLINIC,
		"day_of_week": day_of_week,
		"work_start_time": start,
		"work_end_time": end,
		"is_active": 1,
		"breaks": breaks or [],
	})


def days_by_name(schedule):
	return {day["weekday"]: day for day in schedule["days"]}


@requires_site
class TestClinicScheduleConfig(FrappeTestCase):
	"""Tests for Clinic Schedule Config DocType."""

	def setUp(self):
		reset_test_data()

	def test_start_before_end(self):
		with self.assertRaises(frappe.ValidationError):
			make_config(start="13:00:00", end="09:00:00").insert(ignore_permissions=True)

	def test_break_outside_hours(self):
		config = make_config(breaks=[{"break_start_time": "13:30:00", "break_end_time": "14:00:00"}])

		with self.assertRaises(frappe.ValidationError):
			config.insert(ignore_permissions=True)

	def test_overlapping_breaks(self):
		config = make_config(breaks=[
			{"break_start_time": "10:00:00", "break_end_time": "10:30:00"},
			{"break_start_time": "10:15:00", "break_end_time": "10:45:00"},
		])

		with self.assertRaises(frappe.ValidationError):
			config.insert(ignore_permissions=True)

	def test_one_record_per_day(self):
		make_config().insert(ignore_permissions=True)

		with self.assertRaises(frappe.DuplicateEntryError):
			make_config().insert(ignore_permissions=True)

	def test_clinic_schedule_overrides_default(self):
		make_config(breaks=[
			{"break_start_time": "11:00:00", "break_end_time": "11:30:00", "label": "Supervision"},
		]).insert(ignore_permissions=True)

		template = load_template(TEST_CLINIC)
		tuesday = template.days["tuesday"]

		self.assertEqual([(str(w["start"]), str(w["end"])) for w in tuesday["windows"]], [("09:00:00", "13:00:00")])
		self.assertEqual(tuesday["breaks"][0]["label"], "Supervision")
		# days not configured for the clinic keep the default schedule
		self.assertEqual(template.days["monday"]["breaks"][0]["label"], "Lunch")

	def test_save_day_schedule(self):
		schedule = save_day_schedule(
			{
				"day_of_week": "saturday",
				"work_start_time": "09:00",
				"work_end_time": "12:00",
				"is_active": True,
				"breaks": [],
			},
			clinic=TEST_CLINIC
		)

		saturday = days_by_name(schedule)["saturday"]
		self.assertTrue(saturday["is_active"])
		self.assertEqual(saturday["windows"], [{"start": "09:00", "end": "12:00"}])

		# saving again updates the same record
		save_day_schedule(
			{"day_of_week": "saturday", "work_start_time": "09:00", "work_end_time": "11:00"},
			clinic=TEST_CLINIC
		)
		self.assertEqual(
			frappe.db.count("Clinic Schedule Config", {"clinic": TEST_CLINIC, "day_of_week": "saturday"}),
			1
		)

	def test_save_day_schedule_invalid(self):
		with self.assertRaises(frappe.ValidationError):
			save_day_schedule(
				{"day_of_week": "monday", "work_start_time": "18:00", "work_end_time": "08:00"},
				clinic=TEST_CLINIC
			)

	def test_copy_schedule_to_days(self):
		make_config(day_of_week="monday", start="10:00:00", end="16:00:00").insert(ignore_permissions=True)

		schedule = copy_schedule_to_days("monday", '["wednesday", "friday"]', clinic=TEST_CLINIC)
		days = days_by_name(schedule)

		self.assertEqual(days["wednesday"]["windows"], [{"start": "10:00", "end": "16:00"}])
		self.assertEqual(days["friday"]["windows"], [{"start": "10:00", "end": "16:00"}])
		self.assertEqual(days["thursday"]["windows"], [{"start": "08:00", "end": "18:00"}])
		self.assertEqual(get_schedule(TEST_CLINIC), schedule)
