from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Sequence

from ..core.exceptions import NoOpenSession, SessionAlreadyOpen, ValidationError
from ..geofence.model import Coordinate
from .model import AttendanceSession, SessionId, compute_duration_hours
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceLedger:
    """Holds at most one OPEN session per subject.

    Every check-and-write for a subject runs under that subject's lock, so two
    concurrent opens for the same subject yield one session and one
    SessionAlreadyOpen, while different subjects never wait on each other.
    Verification is not the ledger's job; callers decide whether a
    transition is allowed.
    """

    def __init__(self, sessions: AttendanceRepository):
        self._sessions = sessions
        self._locks: dict[int, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, subject_id: int) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(subject_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[subject_id] = lock
            return lock

    @contextmanager
    def subject_lock(self, subject_id: int) -> Iterator[None]:
        """Hold the subject's lock across a multi-step transition.

        Re-entrant, so ledger operations may be called while it is held.
        """
        lock = self._lock_for(int(subject_id))
        with lock:
            yield

    def open_session(self, subject_id: int, time: datetime, location: Coordinate) -> SessionId:
        with self.subject_lock(subject_id):
            if self._sessions.get_open_for_subject(subject_id) is not None:
                raise SessionAlreadyOpen(subject_id)
            return self._sessions.create_open(
                subject_id=subject_id,
                opened_at=time,
                latitude=location.latitude,
                longitude=location.longitude,
            )

    def close_session(self, subject_id: int, time: datetime, location: Coordinate) -> AttendanceSession:
        return self._close(subject_id, time, location, reason=None)

    def force_close(self, subject_id: int, time: datetime, location: Coordinate, reason: str) -> AttendanceSession:
        session = self._close(subject_id, time, location, reason=reason)
        logger.info("Forced close of session %s for subject %s - reason: %s", session.session_id, subject_id, reason)
        return session

    def _close(self, subject_id: int, time: datetime, location: Coordinate, *, reason: Optional[str]) -> AttendanceSession:
        with self.subject_lock(subject_id):
            current = self._sessions.get_open_for_subject(subject_id)
            if current is None:
                raise NoOpenSession(subject_id)
            if time < current.opened_at:
                raise ValidationError("Check-out time cannot be earlier than check-in time")

            closed = current.closed(closed_at=time, location=location, reason=reason)
            ok = self._sessions.close(
                session_id=current.session_id,
                closed_at=time,
                latitude=location.latitude,
                longitude=location.longitude,
                working_hours=compute_duration_hours(current.opened_at, time),
                reason=reason,
            )
            if not ok:
                # Another process closed it between our read and write.
                raise NoOpenSession(subject_id)
            return closed

    def active_session(self, subject_id: int) -> Optional[AttendanceSession]:
        return self._sessions.get_open_for_subject(subject_id)

    def history(
        self,
        subject_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        """Sessions opened within [start, end], newest first."""
        return list(self._sessions.list_sessions(subject_id=subject_id, start=start, end=end))

    def all_sessions(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Sequence[AttendanceSession]:
        return list(self._sessions.list_sessions(start=start, end=end))

    def open_sessions(self) -> Sequence[AttendanceSession]:
        return list(self._sessions.list_open())
