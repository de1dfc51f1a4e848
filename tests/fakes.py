from __future__ import annotations

import threading
import time
from dataclasses import replace
from datetime import datetime
from typing import Optional, Union

from src.geo_attendance.geo_attendance.attendance.model import AttendanceSession
from src.geo_attendance.geo_attendance.biometrics.base import BiometricEncoding, BiometricMatcher
from src.geo_attendance.geo_attendance.core.exceptions import NoSubjectDetected
from src.geo_attendance.geo_attendance.geofence.model import Coordinate
from src.geo_attendance.geo_attendance.subjects.model import Subject

ZONE_CONFIG = {"latitude": 40.7128, "longitude": -74.0060, "tolerance_km": 0.5}

INSIDE = (40.7129, -74.0061)
FAR_AWAY = (40.730, -73.935)

ENCODING_A = BiometricEncoding(version="px1", values=(10.0, 20.0, 30.0, 40.0))
ENCODING_B = BiometricEncoding(version="px1", values=(250.0, 240.0, 230.0, 220.0))


class InMemorySubjects:
    def __init__(self, *subjects: Subject):
        self._by_id: dict[int, Subject] = {s.subject_id: s for s in subjects}
        self.saved: list[tuple[int, str]] = []

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        return self._by_id.get(subject_id)

    def save_encoding(self, subject_id: int, encoding: str) -> bool:
        subject = self._by_id.get(subject_id)
        if not subject:
            return False
        self._by_id[subject_id] = replace(subject, face_encoding=encoding)
        self.saved.append((subject_id, encoding))
        return True


class InMemoryAttendance:
    """Deliberately unsynchronized; ``write_delay`` widens the check-then-insert window."""

    def __init__(self, *, write_delay: float = 0.0):
        self._rows: dict[int, AttendanceSession] = {}
        self._id = 0
        self._write_delay = write_delay

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        return self._rows.get(session_id)

    def get_open_for_subject(self, subject_id: int) -> Optional[AttendanceSession]:
        for s in self._rows.values():
            if s.subject_id == subject_id and s.is_open:
                return s
        return None

    def create_open(self, *, subject_id: int, opened_at: datetime, latitude: float, longitude: float) -> int:
        if self._write_delay:
            time.sleep(self._write_delay)
        self._id += 1
        self._rows[self._id] = AttendanceSession(
            session_id=self._id,
            subject_id=subject_id,
            opened_at=opened_at,
            open_location=Coordinate(latitude, longitude),
        )
        return self._id

    def close(self, *, session_id, closed_at, latitude, longitude, working_hours, reason=None) -> bool:
        s = self._rows.get(session_id)
        if not s or not s.is_open:
            return False
        self._rows[session_id] = s.closed(closed_at=closed_at, location=Coordinate(latitude, longitude), reason=reason)
        return True

    def list_sessions(self, *, subject_id=None, start=None, end=None):
        items = [
            s
            for s in self._rows.values()
            if (subject_id is None or s.subject_id == subject_id)
            and (start is None or s.opened_at >= start)
            and (end is None or s.opened_at <= end)
        ]
        items.sort(key=lambda s: (s.opened_at, s.session_id), reverse=True)
        return items

    def list_open(self):
        return [s for s in self.list_sessions() if s.is_open]

    def open_count(self, subject_id: int) -> int:
        return sum(1 for s in self._rows.values() if s.subject_id == subject_id and s.is_open)


class FakeMatcher(BiometricMatcher):
    """Maps sample strings to canned encodings (or errors)."""

    def __init__(
        self,
        table: dict[str, Union[BiometricEncoding, Exception]],
        *,
        delay: float = 0.0,
        delays: Optional[dict[str, float]] = None,
        threshold: float = 0.8,
    ):
        super().__init__(threshold=threshold)
        self._table = table
        self._delay = delay
        self._delays = delays or {}
        self._lock = threading.Lock()
        self.calls = 0

    def enroll(self, sample) -> BiometricEncoding:
        with self._lock:
            self.calls += 1
        pause = self._delays.get(sample, self._delay)
        if pause:
            time.sleep(pause)
        found = self._table.get(sample)
        if isinstance(found, Exception):
            raise found
        if found is None:
            raise NoSubjectDetected()
        return found


class FakeDetector:
    def __init__(self, boxes):
        self._boxes = list(boxes)

    def detect(self, gray):
        return list(self._boxes)


def subject(subject_id: int = 1, *, active: bool = True, encoding: Optional[BiometricEncoding] = None) -> Subject:
    return Subject(
        subject_id=subject_id,
        full_name=f"Employee {subject_id}",
        email=f"employee{subject_id}@example.com",
        is_active=active,
        face_encoding=encoding.to_text() if encoding else None,
    )


SAMPLES_BY_NAME = {"face-a": ENCODING_A, "face-b": ENCODING_B}
