from clinic_scheduling.clinic_scheduling.scheduling.availability import ensure_scheduling_settings


def after_install():
	ensure_scheduling_settings()
