from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceSession


class AttendanceRepository(Protocol):
    def get_by_id(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_open_for_subject(self, subject_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_open(
        self,
        *,
        subject_id: int,
        opened_at: datetime,
        latitude: float,
        longitude: float,
    ) -> int:
        """Insert an OPEN session.

        Implementations backed by shared storage must reject a second OPEN row
        for the same subject by raising SessionAlreadyOpen.
        """

        raise NotImplementedError

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
        """Close the session only if it is still OPEN; False otherwise."""

        raise NotImplementedError

    def list_sessions(
        self,
        *,
        subject_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        """Sessions opened within [start, end], newest first."""

        raise NotImplementedError

    def list_open(self) -> Sequence[AttendanceSession]:
        raise NotImplementedError
