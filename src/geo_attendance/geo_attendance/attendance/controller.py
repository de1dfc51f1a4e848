from __future__ import annotations

import csv
import io
import logging
from datetime import date, timedelta
from typing import Optional

from flask import Flask, jsonify, request

from ..common.datetime_utils import day_bounds, parse_iso_date
from ..common.validators import optional_text, require_float, require_positive_int
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import ErrorCode
from ..core.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)

HTTP_STATUS = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.INVALID_COORDINATE: 400,
    ErrorCode.ALREADY_CHECKED_IN: 409,
    ErrorCode.NOT_CHECKED_IN: 409,
    ErrorCode.SESSION_ALREADY_OPEN: 409,
    ErrorCode.NO_OPEN_SESSION: 409,
    ErrorCode.LOCATION_OUT_OF_RANGE: 403,
    ErrorCode.SAMPLE_REQUIRED: 422,
    ErrorCode.NO_SUBJECT_DETECTED: 422,
    ErrorCode.AMBIGUOUS_SAMPLE: 422,
    ErrorCode.BIOMETRIC_MISMATCH: 422,
    ErrorCode.VERIFICATION_TIMEOUT: 504,
    ErrorCode.SUBJECT_NOT_FOUND: 404,
    ErrorCode.SUBJECT_DISABLED: 403,
}


def register(app: Flask, container) -> None:
    gate = container.attendance_gate
    reports = container.report_service

    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        payload = {"success": False, "code": e.code.value, "message": e.message}
        distance = getattr(e, "distance_km", None)
        if distance is not None:
            payload["distance_km"] = round(distance, 2)
        return jsonify(payload), HTTP_STATUS.get(e.code, 400)

    def _json_body() -> dict:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data

    def _range_args() -> tuple[Optional[date], Optional[date]]:
        start_s = request.args.get("start")
        end_s = request.args.get("end")
        try:
            start = parse_iso_date(start_s) if start_s else None
            end = parse_iso_date(end_s) if end_s else None
        except ValueError:
            raise ValidationError("Dates must use the YYYY-MM-DD format")
        if start and end and end < start:
            raise ValidationError("End date must not be before start date")
        return start, end

    def _verified_transition(action):
        data = _json_body()
        session = action(
            require_positive_int(data.get("subject_id"), "subject_id"),
            optional_text(data.get("face_image"), "face_image"),
            require_float(data.get("latitude"), "latitude"),
            require_float(data.get("longitude"), "longitude"),
        )
        return jsonify({"success": True, "session": session.to_dict()})

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="api_check_in")
    def api_check_in():
        return _verified_transition(gate.check_in)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="api_check_out")
    def api_check_out():
        return _verified_transition(gate.check_out)

    @app.route("/api/admin/attendance/<int:subject_id>/force-checkout", methods=["POST"], endpoint="api_force_check_out")
    def api_force_check_out(subject_id: int):
        data = _json_body()
        lat = data.get("latitude")
        lng = data.get("longitude")
        session = gate.force_check_out(
            subject_id,
            data.get("reason") or "",
            latitude=require_float(lat, "latitude") if lat is not None else None,
            longitude=require_float(lng, "longitude") if lng is not None else None,
        )
        return jsonify({"success": True, "session": session.to_dict()})

    @app.route("/api/attendance/<int:subject_id>/status", methods=["GET"], endpoint="api_status")
    def api_status(subject_id: int):
        session = gate.current_status(subject_id)
        return jsonify(
            {
                "success": True,
                "checked_in": session is not None,
                "session": session.to_dict() if session else None,
            }
        )

    @app.route("/api/attendance/<int:subject_id>/today", methods=["GET"], endpoint="api_today")
    def api_today(subject_id: int):
        session = gate.today(subject_id)
        return jsonify({"success": True, "session": session.to_dict() if session else None})

    @app.route("/api/attendance/<int:subject_id>/history", methods=["GET"], endpoint="api_history")
    def api_history(subject_id: int):
        start, end = day_bounds(*_range_args())
        sessions = gate.history(subject_id, start, end)
        return jsonify({"success": True, "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/attendance/<int:subject_id>/summary", methods=["GET"], endpoint="api_summary")
    def api_summary(subject_id: int):
        start, end = day_bounds(*_range_args())
        summary = reports.summarize(subject_id, start, end)
        return jsonify({"success": True, "summary": summary.to_dict()})

    @app.route("/api/attendance/<int:subject_id>/report.csv", methods=["GET"], endpoint="api_report_csv")
    def api_report_csv(subject_id: int):
        start_d, end_d = _range_args()
        end_d = end_d or date.today()
        start_d = start_d or (end_d - timedelta(days=DEFAULT_REPORT_DAYS))
        start, end = day_bounds(start_d, end_d)

        data = reports.build_attendance_report(start=start, end=end, subject_id=subject_id)

        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=["session_id", "subject_id", "work_date", "check_in", "check_out", "status", "worked_hours", "note"],
        )
        writer.writeheader()
        for row in data.rows:
            writer.writerow(row)

        filename = f"attendance_{subject_id}_{start_d.strftime('%Y%m%d')}_{end_d.strftime('%Y%m%d')}.csv"
        return app.response_class(
            out.getvalue().encode("utf-8-sig"),
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )

    @app.route("/api/admin/attendance/active", methods=["GET"], endpoint="api_active_sessions")
    def api_active_sessions():
        sessions = gate.currently_checked_in()
        return jsonify({"success": True, "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/admin/attendance", methods=["GET"], endpoint="api_all_sessions")
    def api_all_sessions():
        start, end = day_bounds(*_range_args())
        sessions = gate.all_sessions(start, end)
        return jsonify({"success": True, "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/location/allowed", methods=["GET"], endpoint="api_allowed_location")
    def api_allowed_location():
        zone = gate.allowed_location()
        return jsonify(
            {
                "success": True,
                "latitude": zone.center.latitude,
                "longitude": zone.center.longitude,
                "tolerance_km": zone.tolerance_km,
            }
        )

    @app.errorhandler(500)
    def handle_unexpected(e):
        logger.exception("Unhandled error while serving %s", request.path)
        return jsonify({"success": False, "message": "Internal server error"}), 500
