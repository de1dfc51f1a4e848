from __future__ import annotations

from dataclasses import dataclass

from .attendance.gate import AttendanceGate
from .attendance.ledger import AttendanceLedger
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .biometrics.pixel_matcher import PixelSamplingMatcher
from .core.constants import (
    DEFAULT_BIOMETRIC_WORKERS,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_VERIFICATION_TIMEOUT_SECONDS,
)
from .database.connection import DBConfig, DatabaseConnection
from .geofence.model import AllowedZone
from .geofence.validator import GeoValidator
from .reports.service import AttendanceReportService
from .subjects.mysql_subject_repository import MySQLSubjectRepository


@dataclass(frozen=True)
class Container:
    conn: DatabaseConnection

    subjects_repo: MySQLSubjectRepository
    attendance_repo: MySQLAttendanceRepository

    geo_validator: GeoValidator
    matcher: PixelSamplingMatcher
    ledger: AttendanceLedger
    attendance_gate: AttendanceGate
    report_service: AttendanceReportService


def build_container(*, db_config: dict, zone_config: dict, biometric_config: dict | None = None) -> Container:
    biometric_config = biometric_config or {}

    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    subjects_repo = MySQLSubjectRepository(conn)
    attendance_repo = MySQLAttendanceRepository(conn)

    geo_validator = GeoValidator(AllowedZone.from_config(zone_config))
    matcher = PixelSamplingMatcher(
        threshold=float(biometric_config.get("similarity_threshold", DEFAULT_SIMILARITY_THRESHOLD)),
    )
    ledger = AttendanceLedger(attendance_repo)
    attendance_gate = AttendanceGate(
        subjects_repo,
        ledger,
        geo_validator,
        matcher,
        timeout_seconds=float(biometric_config.get("timeout_seconds", DEFAULT_VERIFICATION_TIMEOUT_SECONDS)),
        max_workers=int(biometric_config.get("max_workers", DEFAULT_BIOMETRIC_WORKERS)),
    )
    report_service = AttendanceReportService(ledger)

    return Container(
        conn=conn,
        subjects_repo=subjects_repo,
        attendance_repo=attendance_repo,
        geo_validator=geo_validator,
        matcher=matcher,
        ledger=ledger,
        attendance_gate=attendance_gate,
        report_service=report_service,
    )
