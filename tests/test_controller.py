from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest
from flask import Flask

from src.geo_attendance.geo_attendance.attendance.controller import register
from src.geo_attendance.geo_attendance.attendance.gate import AttendanceGate
from src.geo_attendance.geo_attendance.attendance.ledger import AttendanceLedger
from src.geo_attendance.geo_attendance.geofence.model import AllowedZone
from src.geo_attendance.geo_attendance.geofence.validator import GeoValidator
from src.geo_attendance.geo_attendance.reports.service import AttendanceReportService
from tests.fakes import FAR_AWAY, INSIDE, SAMPLES_BY_NAME, ZONE_CONFIG, FakeMatcher, InMemoryAttendance, InMemorySubjects, subject


@pytest.fixture
def ledger():
    return AttendanceLedger(InMemoryAttendance())


@pytest.fixture
def gate(ledger, fixed_now):
    return AttendanceGate(
        InMemorySubjects(subject(1), subject(2, active=False)),
        ledger,
        GeoValidator(AllowedZone.from_config(ZONE_CONFIG)),
        FakeMatcher(SAMPLES_BY_NAME),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def client(gate, ledger):
    app = Flask(__name__)
    app.config["TESTING"] = True
    register(app, SimpleNamespace(attendance_gate=gate, report_service=AttendanceReportService(ledger)))
    return app.test_client()


def _check_in(client, subject_id=1, where=INSIDE, face=None):
    return client.post(
        "/api/attendance/check-in",
        json={"subject_id": subject_id, "face_image": face, "latitude": where[0], "longitude": where[1]},
    )


def test_check_in_and_status(client):
    res = _check_in(client)

    assert res.status_code == 200
    assert res.get_json()["session"]["status"] == "OPEN"

    status = client.get("/api/attendance/1/status").get_json()
    assert status["checked_in"] is True


def test_out_of_range_is_forbidden_with_distance(client):
    res = _check_in(client, where=FAR_AWAY)

    assert res.status_code == 403
    body = res.get_json()
    assert body["code"] == "LOCATION_OUT_OF_RANGE"
    assert body["distance_km"] == pytest.approx(6.28, abs=0.02)


def test_error_codes_map_to_http_status(client):
    assert client.post("/api/attendance/check-in", json={"subject_id": 1}).status_code == 400
    assert _check_in(client, where=(0.0, 0.0)).get_json()["code"] == "INVALID_COORDINATE"
    assert _check_in(client, subject_id=99).status_code == 404
    assert _check_in(client, subject_id=2).get_json()["code"] == "SUBJECT_DISABLED"

    res = client.post("/api/attendance/check-out", json={"subject_id": 1, "latitude": INSIDE[0], "longitude": INSIDE[1]})
    assert res.status_code == 409
    assert res.get_json()["code"] == "NOT_CHECKED_IN"


def test_force_checkout_and_admin_views(client, gate, fixed_now):
    gate.check_in(1, None, *INSIDE, now=fixed_now - timedelta(hours=4))

    assert len(client.get("/api/admin/attendance/active").get_json()["sessions"]) == 1

    res = client.post("/api/admin/attendance/1/force-checkout", json={"reason": "Forgot to check out"})
    assert res.status_code == 200
    assert res.get_json()["session"]["working_hours"] == pytest.approx(4.0)

    assert client.get("/api/admin/attendance/active").get_json()["sessions"] == []
    assert len(client.get("/api/admin/attendance").get_json()["sessions"]) == 1


def test_history_summary_and_csv(client, gate, fixed_now):
    gate.check_in(1, None, *INSIDE, now=fixed_now - timedelta(hours=2))
    gate.check_out(1, None, *INSIDE, now=fixed_now)
    day = fixed_now.date().isoformat()

    history = client.get(f"/api/attendance/1/history?start={day}&end={day}").get_json()
    assert len(history["sessions"]) == 1

    summary = client.get("/api/attendance/1/summary").get_json()["summary"]
    assert summary["total_hours"] == 2.0

    res = client.get(f"/api/attendance/1/report.csv?start={day}&end={day}")
    assert res.mimetype == "text/csv"
    assert "02:00" in res.data.decode("utf-8-sig")

    assert client.get("/api/attendance/1/history?start=yesterday").status_code == 400


def test_allowed_location(client):
    body = client.get("/api/location/allowed").get_json()

    assert body["latitude"] == 40.7128
    assert body["tolerance_km"] == 0.5


@pytest.mark.parametrize("face", [123, {"data": "x"}, ["x"], True])
def test_non_string_face_image_is_rejected(client, face):
    res = _check_in(client, face=face)

    assert res.status_code == 400
    assert res.get_json()["code"] == "INVALID_INPUT"
    assert client.get("/api/attendance/1/status").get_json()["checked_in"] is False


def test_today(client, gate, fixed_now):
    assert client.get("/api/attendance/1/today").get_json()["session"] is None

    gate.check_in(1, None, *INSIDE, now=fixed_now)

    assert client.get("/api/attendance/1/today").get_json()["session"]["status"] == "OPEN"
