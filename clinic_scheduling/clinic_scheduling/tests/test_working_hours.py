"""
Tests for scheduling/working_hours.py

Tests time parsing, interval mathematics and template resolution.
"""

import unittest
from datetime import date, datetime, time, timedelta

import pytz

from clinic_scheduling.clinic_scheduling.scheduling.working_hours import (
	InvalidScheduleError,
	WorkingHoursTemplate,
	build_template,
	copy_day_schedule,
	default_template,
	free_windows,
	interval_subtract,
	intervals_overlap,
	make_day_schedule,
	merge_intervals,
	parse_weekdays,
	to_time,
	weekday_name,
)


MONDAY = date(2026, 1, 19)


class TestToTime(unittest.TestCase):
	"""Tests for to_time."""

	def test_formats(self):
		self.assertEqual(to_time("08:30"), time(8, 30))
		self.assertEqual(to_time("08:30:15"), time(8, 30, 15))
		self.assertEqual(to_time(timedelta(hours=13)), time(13, 0))
		self.assertEqual(to_time(time(9, 0)), time(9, 0))
		self.assertEqual(to_time(datetime(2026, 1, 19, 7, 45)), time(7, 45))

	def test_invalid(self):
		with self.assertRaises(InvalidScheduleError):
			to_time("8h30")
		with self.assertRaises(InvalidScheduleError):
			to_time(830)


class TestIntervals(unittest.TestCase):
	"""Tests for interval mathematics."""

	def interval(self, start, end):
		return {"start": time(*start), "end": time(*end)}

	def test_overlap_is_half_open(self):
		a = self.interval((9, 0), (10, 0))
		self.assertTrue(intervals_overlap(a, self.interval((9, 59), (11, 0))))
		self.assertFalse(intervals_overlap(a, self.interval((10, 0), (11, 0))))
		self.assertFalse(intervals_overlap(self.interval((8, 0), (9, 0)), a))

	def test_merge_intervals(self):
		intervals = [
			self.interval((13, 0), (14, 0)),
			self.interval((9, 0), (10, 0)),
			self.interval((10, 0), (11, 0)),
			self.interval((9, 30), (10, 30)),
		]

		merged = merge_intervals(intervals)

		self.assertEqual(merged, [self.interval((9, 0), (11, 0)), self.interval((13, 0), (14, 0))])
		# input untouched
		self.assertEqual(intervals[1], self.interval((9, 0), (10, 0)))

	def test_merge_empty(self):
		self.assertEqual(merge_intervals([]), [])

	def test_interval_subtract(self):
		day = self.interval((8, 0), (18, 0))

		self.assertEqual(
			interval_subtract(day, self.interval((12, 0), (13, 0))),
			[self.interval((8, 0), (12, 0)), self.interval((13, 0), (18, 0))]
		)
		self.assertEqual(
			interval_subtract(day, self.interval((7, 0), (9, 0))),
			[self.interval((9, 0), (18, 0))]
		)
		self.assertEqual(interval_subtract(day, self.interval((7, 0), (19, 0))), [])
		self.assertEqual(interval_subtract(day, self.interval((18, 0), (19, 0))), [day])


class TestDaySchedule(unittest.TestCase):
	"""Tests for make_day_schedule and free_windows."""

	def test_normalizes(self):
		day = make_day_schedule(
			"Monday",
			[{"start": "13:00", "end": "18:00"}, {"start": "08:00", "end": "12:00"}],
			[{"start": "15:00", "end": "15:15"}],
		)

		self.assertEqual(day["weekday"], "monday")
		self.assertEqual([w["start"] for w in day["windows"]], [time(8, 0), time(13, 0)])
		self.assertEqual(day["breaks"], [{"start": time(15, 0), "end": time(15, 15), "label": ""}])
		self.assertTrue(day["is_active"])

	def test_start_must_precede_end(self):
		with self.assertRaises(InvalidScheduleError):
			make_day_schedule("monday", [{"start": "18:00", "end": "08:00"}])

		with self.assertRaises(InvalidScheduleError):
			make_day_schedule("monday", [{"start": "08:00", "end": "18:00"}], [{"start": "13:00", "end": "12:00"}])

	def test_break_inside_window(self):
		with self.assertRaises(InvalidScheduleError):
			make_day_schedule("monday", [{"start": "08:00", "end": "12:00"}], [{"start": "11:30", "end": "12:30"}])

	def test_no_windows_is_inactive(self):
		self.assertFalse(make_day_schedule("monday", [])["is_active"])

	def test_unknown_weekday(self):
		with self.assertRaises(InvalidScheduleError):
			make_day_schedule("funday", [{"start": "08:00", "end": "18:00"}])

	def test_free_windows(self):
		template = default_template()

		self.assertEqual(
			free_windows(template.days["monday"]),
			[
				{"start": time(8, 0), "end": time(12, 0)},
				{"start": time(13, 0), "end": time(18, 0)},
			]
		)
		self.assertEqual(free_windows(template.days["sunday"]), [])


class TestTemplate(unittest.TestCase):
	"""Tests for WorkingHoursTemplate and its resolution."""

	def test_default_template(self):
		template = default_template()

		self.assertEqual(template.active_weekdays, ["monday", "tuesday", "wednesday", "thursday", "friday"])
		self.assertEqual(template.session_duration_minutes, 50)
		self.assertEqual(template.gap_minutes, 10)
		self.assertEqual(template.timezone, "America/Sao_Paulo")
		self.assertTrue(template.is_work_day(MONDAY))
		self.assertFalse(template.is_work_day(date(2026, 1, 25)))

	def test_invalid_sizing(self):
		with self.assertRaises(InvalidScheduleError):
			WorkingHoursTemplate(session_duration_minutes=0)
		with self.assertRaises(InvalidScheduleError):
			WorkingHoursTemplate(gap_minutes=-5)
		with self.assertRaises(InvalidScheduleError):
			WorkingHoursTemplate(timezone="Mars/Olympus_Mons")

	def test_to_local(self):
		template = default_template()
		naive = datetime(2026, 1, 19, 10, 0)

		self.assertEqual(template.to_local(naive), naive)
		# 13:00 UTC is 10:00 in Sao Paulo
		aware = pytz.UTC.localize(datetime(2026, 1, 19, 13, 0))
		self.assertEqual(template.to_local(aware), naive)
		self.assertIsNone(template.to_local(aware).tzinfo)

	def test_build_template_resolution(self):
		configs = [
			{
				"clinic": None,
				"day_of_week": "monday",
				"work_start_time": timedelta(hours=9),
				"work_end_time": timedelta(hours=17),
				"is_active": 1,
				"breaks": [],
			},
			{
				"clinic": "Downtown",
				"day_of_week": "monday",
				"work_start_time": "07:00:00",
				"work_end_time": "12:00:00",
				"is_active": 1,
				"breaks": [{"break_start_time": "10:00:00", "break_end_time": "10:15:00", "label": "Coffee"}],
			},
			{
				"clinic": "Downtown",
				"day_of_week": "saturday",
				"work_start_time": "08:00:00",
				"work_end_time": "12:00:00",
				"is_active": 1,
				"breaks": [],
			},
			{
				"clinic": None,
				"day_of_week": "friday",
				"work_start_time": "08:00:00",
				"work_end_time": "18:00:00",
				"is_active": 0,
				"breaks": [],
			},
		]

		downtown = build_template(configs, clinic="Downtown")
		self.assertEqual(downtown.days["monday"]["windows"], [{"start": time(7, 0), "end": time(12, 0)}])
		self.assertEqual(downtown.days["monday"]["breaks"][0]["label"], "Coffee")
		self.assertTrue(downtown.days["saturday"]["is_active"])
		self.assertFalse(downtown.days["friday"]["is_active"])
		# tuesday is configured nowhere
		self.assertEqual(downtown.days["tuesday"]["breaks"][0]["label"], "Lunch")

		shared = build_template(configs)
		self.assertEqual(shared.days["monday"]["windows"], [{"start": time(9, 0), "end": time(17, 0)}])
		self.assertFalse(shared.days["saturday"]["is_active"])

		# a clinic without its own records uses the global schedule
		self.assertEqual(build_template(configs, clinic="Uptown"), shared)

	def test_copy_day_schedule(self):
		template = build_template([
			{
				"day_of_week": "monday",
				"work_start_time": "10:00",
				"work_end_time": "16:00",
				"is_active": 1,
				"breaks": [{"break_start_time": "13:00", "break_end_time": "13:30", "label": "Lunch"}],
			},
		])

		copied = copy_day_schedule(template, "monday", ["Saturday", "wednesday"])

		for weekday in ("wednesday", "saturday"):
			self.assertEqual(copied.days[weekday]["windows"], template.days["monday"]["windows"])
			self.assertEqual(copied.days[weekday]["breaks"], template.days["monday"]["breaks"])
			self.assertEqual(copied.days[weekday]["weekday"], weekday)
		self.assertTrue(copied.is_work_day(date(2026, 1, 24)))
		# the original template is unchanged
		self.assertFalse(template.is_work_day(date(2026, 1, 24)))

	def test_as_dict(self):
		data = default_template().as_dict()

		self.assertEqual(len(data["days"]), 7)
		self.assertEqual(
			data["days"][0],
			{
				"weekday": "monday",
				"is_active": True,
				"windows": [{"start": "08:00", "end": "18:00"}],
				"breaks": [{"start": "12:00", "end": "13:00", "label": "Lunch"}],
				"free_windows": [{"start": "08:00", "end": "12:00"}, {"start": "13:00", "end": "18:00"}],
			}
		)


class TestWeekdays(unittest.TestCase):
	"""Tests for weekday helpers."""

	def test_weekday_name(self):
		self.assertEqual(weekday_name(MONDAY), "monday")
		self.assertEqual(weekday_name(datetime(2026, 1, 25, 10)), "sunday")

	def test_parse_weekdays(self):
		self.assertEqual(parse_weekdays(["Friday", "monday", "friday"]), ["monday", "friday"])

		with self.assertRaises(InvalidScheduleError):
			parse_weekdays(["monday", "someday"])


if __name__ == "__main__":
	unittest.main()
