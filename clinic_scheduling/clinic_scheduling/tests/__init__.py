import unittest

import frappe


# Controller and API tests read and write the database; they run under
# `bench --site <site> run-tests --app clinic_scheduling` and are skipped
# when no site is connected.
requires_site = unittest.skipUnless(
	getattr(frappe.local, "site", None),
	"requires a Frappe site"
)

TEST_CLINIC = "_Test Clinic Scheduling"


def reset_test_data() -> None:
	"""Remove bookings and schedules left by a previous test."""
	frappe.db.delete("Appointment", {"clinic": TEST_CLINIC})
	for name in frappe.get_all("Clinic Schedule Config", filters={"clinic": TEST_CLINIC}, pluck="name"):
		frappe.delete_doc("Clinic Schedule Config", name, force=True)

	settings = frappe.get_single("Scheduling Settings")
	settings.session_duration_minutes = 50
	settings.session_gap_minutes = 10
	settings.timezone = "America/Sao_Paulo"
	settings.save()
