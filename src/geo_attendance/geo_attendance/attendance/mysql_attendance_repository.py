from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import SessionStatus
from ..core.exceptions import SessionAlreadyOpen
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from ..geofence.model import Coordinate
from .model import AttendanceSession
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, employee_id, check_in_time, check_in_lat, check_in_lng,
    check_out_time, check_out_lat, check_out_lng, status, close_reason
"""


def _to_session(r: dict) -> AttendanceSession:
    close_location = None
    if r.get("check_out_lat") is not None and r.get("check_out_lng") is not None:
        close_location = Coordinate(float(r["check_out_lat"]), float(r["check_out_lng"]))

    return AttendanceSession(
        session_id=int(r["attendance_id"]),
        subject_id=int(r["employee_id"]),
        opened_at=r["check_in_time"],
        open_location=Coordinate(float(r["check_in_lat"]), float(r["check_in_lng"])),
        status=SessionStatus(r["status"]),
        closed_at=r.get("check_out_time"),
        close_location=close_location,
        close_reason=r.get("close_reason"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    """Attendance storage.

    The ``attendance`` table carries a unique key over (employee_id, open_guard)
    where ``open_guard`` is 1 for OPEN rows and NULL otherwise, so the database
    itself refuses a second OPEN session for a subject.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_open_for_subject(self, subject_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE employee_id=%s AND status=%s
                """,
                (int(subject_id), SessionStatus.OPEN.value),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_open(
        self,
        *,
        subject_id: int,
        opened_at: datetime,
        latitude: float,
        longitude: float,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance(employee_id, check_in_time, check_in_lat, check_in_lng, status)
                    VALUES(%s,%s,%s,%s,%s)
                    """,
                    (int(subject_id), opened_at, latitude, longitude, SessionStatus.OPEN.value),
                )
                return int(cur.lastrowid)
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise SessionAlreadyOpen(int(subject_id)) from e
            raise

    def close(
        self,
        *,
        session_id: int,
        closed_at: datetime,
        latitude: float,
        longitude: float,
        working_hours: float,
        reason: Optional[str] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET check_out_time=%s, check_out_lat=%s, check_out_lng=%s,
                    working_hours=%s, close_reason=%s, status=%s
                WHERE attendance_id=%s AND status=%s
                """,
                (
                    closed_at,
                    latitude,
                    longitude,
                    working_hours,
                    reason,
                    SessionStatus.CLOSED.value,
                    int(session_id),
                    SessionStatus.OPEN.value,
                ),
            )
            return cur.rowcount > 0

    def list_sessions(
        self,
        *,
        subject_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        clauses: list[str] = []
        params: list[object] = []

        if subject_id is not None:
            clauses.append("employee_id=%s")
            params.append(int(subject_id))
        if start is not None:
            clauses.append("check_in_time >= %s")
            params.append(start)
        if end is not None:
            clauses.append("check_in_time <= %s")
            params.append(end)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                {where}
                ORDER BY check_in_time DESC, attendance_id DESC
                """,
                tuple(params),
            )
            return [_to_session(r) for r in fetchall(cur)]

    def list_open(self) -> Sequence[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE status=%s
                ORDER BY check_in_time DESC, attendance_id DESC
                """,
                (SessionStatus.OPEN.value,),
            )
            return [_to_session(r) for r in fetchall(cur)]
