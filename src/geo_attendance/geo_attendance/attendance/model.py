from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from ..core.enums import SessionStatus
from ..geofence.model import Coordinate

SessionId = int


def compute_duration_hours(opened_at: datetime, closed_at: Optional[datetime]) -> Optional[float]:
    """Elapsed time in fractional hours, or None while the session is open."""
    if closed_at is None:
        return None
    return (closed_at - opened_at).total_seconds() / 3600.0


@dataclass(frozen=True)
class AttendanceSession:
    """Domain entity: one check-in/check-out pair.

    Duration is derived from the two timestamps, so it is recomputed
    identically whenever ``closed_at`` is set.
    """

    session_id: SessionId
    subject_id: int
    opened_at: datetime
    open_location: Coordinate
    status: SessionStatus = SessionStatus.OPEN
    closed_at: Optional[datetime] = None
    close_location: Optional[Coordinate] = None
    close_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == SessionStatus.OPEN

    @property
    def duration_hours(self) -> Optional[float]:
        return compute_duration_hours(self.opened_at, self.closed_at)

    def closed(self, *, closed_at: datetime, location: Coordinate, reason: Optional[str] = None) -> "AttendanceSession":
        return replace(
            self,
            status=SessionStatus.CLOSED,
            closed_at=closed_at,
            close_location=location,
            close_reason=reason,
        )

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "subject_id": self.subject_id,
            "status": self.status.value,
            "check_in_time": self.opened_at.isoformat(),
            "check_in_latitude": self.open_location.latitude,
            "check_in_longitude": self.open_location.longitude,
            "check_out_time": self.closed_at.isoformat() if self.closed_at else None,
            "check_out_latitude": self.close_location.latitude if self.close_location else None,
            "check_out_longitude": self.close_location.longitude if self.close_location else None,
            "working_hours": self.duration_hours,
            "close_reason": self.close_reason,
        }
