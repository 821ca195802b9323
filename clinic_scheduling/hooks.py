app_name = "clinic_scheduling"
app_title = "Clinic Scheduling"
app_publisher = "Clinic Scheduling contributors"
app_description = "Working hours, slot availability and appointment scheduling for psychology clinics"
app_email = "dev@clinic-scheduling.local"
app_license = "mit"

# Apps
# ------------------

# required_apps = []

# Includes in <head>
# ------------------

# include js, css files in header of desk.html
# app_include_css = "/assets/clinic_scheduling/css/clinic_scheduling.css"
# app_include_js = "/assets/clinic_scheduling/js/clinic_scheduling.js"

# include js in doctype views
# doctype_js = {"doctype" : "public/js/doctype.js"}
# doctype_calendar_js = {"Appointment" : "public/js/appointment_calendar.js"}

# Installation
# ------------

after_install = "clinic_scheduling.install.after_install"

# Document Events
# ---------------
# Hook on document methods and events

# doc_events = {
# 	"Appointment": {
# 		"on_update": "method",
# 	}
# }

# Scheduled Tasks
# ---------------

# scheduler_events = {
# 	"daily": [
# 		"clinic_scheduling.tasks.daily"
# 	],
# }

# Testing
# -------

# before_tests = "clinic_scheduling.install.before_tests"

# Overriding Methods
# ------------------------------
#
# override_whitelisted_methods = {
# 	"frappe.desk.doctype.event.event.get_events": "clinic_scheduling.event.get_events"
# }

# Request Events
# ----------------
# before_request = ["clinic_scheduling.utils.before_request"]
# after_request = ["clinic_scheduling.utils.after_request"]

# Automatically update python controller files with type annotations for this app.
# export_python_type_annotations = True
