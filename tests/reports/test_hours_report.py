from __future__ import annotations

from datetime import timedelta

import pytest

from src.geo_attendance.geo_attendance.attendance.ledger import AttendanceLedger
from src.geo_attendance.geo_attendance.geofence.model import Coordinate
from src.geo_attendance.geo_attendance.reports.service import AttendanceReportService
from tests.fakes import InMemoryAttendance

OFFICE = Coordinate(40.7128, -74.0060)


@pytest.fixture
def ledger(fixed_now) -> AttendanceLedger:
    ledger = AttendanceLedger(InMemoryAttendance())
    for day, hours in ((0, 8.0), (1, 6.0)):
        t = fixed_now + timedelta(days=day)
        ledger.open_session(1, t, OFFICE)
        ledger.close_session(1, t + timedelta(hours=hours), OFFICE)
    ledger.open_session(1, fixed_now + timedelta(days=2), OFFICE)

    ledger.open_session(2, fixed_now, OFFICE)
    ledger.force_close(2, fixed_now + timedelta(hours=10, minutes=15), OFFICE, "Forgot to check out")
    return ledger


def test_summary_averages_closed_sessions_only(ledger):
    summary = AttendanceReportService(ledger).summarize(1, None, None)

    assert summary.total_hours == pytest.approx(14.0)
    assert summary.average_hours == pytest.approx(7.0)
    assert summary.session_count == 3


def test_summary_respects_range(ledger, fixed_now):
    reports = AttendanceReportService(ledger)
    start, end = fixed_now + timedelta(days=1), fixed_now + timedelta(days=1, hours=23)

    assert reports.total_hours(1, start, end) == pytest.approx(6.0)
    assert reports.average_hours(1, start, end) == pytest.approx(6.0)
    assert reports.session_count(1, start, end) == 1


def test_summary_for_subject_without_sessions(ledger):
    summary = AttendanceReportService(ledger).summarize(42, None, None)

    assert summary.to_dict() == {"subject_id": 42, "total_hours": 0.0, "average_hours": 0.0, "session_count": 0}


def test_report_rows_and_ranking(ledger, fixed_now):
    data = AttendanceReportService(ledger).build_attendance_report(start=None, end=None)

    assert len(data.rows) == 4
    forced = next(r for r in data.rows if r["subject_id"] == 2)
    assert forced["worked_hours"] == "10:15"
    assert forced["note"] == "Forgot to check out"
    open_row = next(r for r in data.rows if r["status"] == "OPEN")
    assert open_row["check_out"] == "-"

    assert data.summary == [
        {"subject_id": 1, "total_hours": "14:00", "session_count": 3},
        {"subject_id": 2, "total_hours": "10:15", "session_count": 1},
    ]


def test_report_for_one_subject(ledger):
    data = AttendanceReportService(ledger).build_attendance_report(start=None, end=None, subject_id=2)

    assert [r["subject_id"] for r in data.rows] == [2]
