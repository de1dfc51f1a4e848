"""Example: drive the attendance gate directly (no Flask).

Controllers stay thin; every rule lives behind AttendanceGate.
"""

import importlib

from config import get_settings_module

from src.geo_attendance.geo_attendance.container import build_container
from src.geo_attendance.geo_attendance.core.exceptions import DomainError


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        zone_config=settings.ALLOWED_ZONE,
        biometric_config=settings.BIOMETRIC,
    )
    gate = container.attendance_gate

    zone = gate.allowed_location()
    print(f"Allowed zone: ({zone.center.latitude}, {zone.center.longitude}) +/- {zone.tolerance_km} km")

    try:
        session = gate.check_in(1, None, zone.center.latitude, zone.center.longitude)
        print("Checked in:", session.to_dict())
    except DomainError as e:
        print(f"Check-in rejected [{e.code.value}]: {e.message}")

    print(container.report_service.summarize(1, None, None).to_dict())


if __name__ == "__main__":
    main()
