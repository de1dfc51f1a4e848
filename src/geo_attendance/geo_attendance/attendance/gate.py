from __future__ import annotations

import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from datetime import datetime
from typing import Callable, Optional, Sequence, TypeVar

from ..biometrics.base import BiometricEncoding, BiometricMatcher, Sample, is_sample_present
from ..common.datetime_utils import day_bounds, now_local
from ..common.validators import require_non_empty
from ..core.constants import DEFAULT_BIOMETRIC_WORKERS, DEFAULT_VERIFICATION_TIMEOUT_SECONDS
from ..core.exceptions import (
    AlreadyCheckedIn,
    BiometricMismatch,
    DomainError,
    InvalidCoordinate,
    LocationOutOfRange,
    NoOpenSession,
    NotCheckedIn,
    SampleRequired,
    SessionAlreadyOpen,
    SubjectDisabled,
    SubjectNotFound,
    VerificationTimeout,
)
from ..geofence.model import AllowedZone, Coordinate
from ..geofence.validator import GeoValidator
from ..subjects.model import Subject
from ..subjects.repository import SubjectRepository
from .ledger import AttendanceLedger
from .model import AttendanceSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttendanceGate:
    """Use case: verified check-in / check-out.

    Per subject the state machine is NO_SESSION -> OPEN -> NO_SESSION. Each
    request is checked in a fixed order (subject, session state, location,
    biometrics) and the ledger is only written once every check has passed,
    so a rejected request leaves no trace.
    """

    def __init__(
        self,
        subjects: SubjectRepository,
        ledger: AttendanceLedger,
        geo: GeoValidator,
        matcher: BiometricMatcher,
        *,
        timeout_seconds: Optional[float] = DEFAULT_VERIFICATION_TIMEOUT_SECONDS,
        executor: Optional[Executor] = None,
        max_workers: int = DEFAULT_BIOMETRIC_WORKERS,
        clock: Callable[[], datetime] = now_local,
    ):
        self._subjects = subjects
        self._ledger = ledger
        self._geo = geo
        self._matcher = matcher
        self._timeout = timeout_seconds
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="biometric")
        self._clock = clock

    # ---- commands ---------------------------------------------------------

    def check_in(
        self,
        subject_id: int,
        sample: Optional[Sample],
        latitude: float,
        longitude: float,
        *,
        now: Optional[datetime] = None,
        timeout: Optional[float] = None,
    ) -> AttendanceSession:
        now = now or self._clock()
        try:
            subject = self._resolve(subject_id, require_active=True)

            if self._ledger.active_session(subject_id) is not None:
                raise AlreadyCheckedIn(subject_id)

            location = self._check_location(latitude, longitude)

            pending: Optional[BiometricEncoding] = None
            stored = subject.stored_encoding
            if stored is not None:
                self._verify(sample, stored, action="check-in", timeout=timeout)
            elif is_sample_present(sample):
                pending = self._bounded(self._matcher.enroll, sample, timeout=timeout)

            with self._ledger.subject_lock(subject_id):
                if pending is not None:
                    self._store_enrollment(subject_id, pending)
                try:
                    session_id = self._ledger.open_session(subject_id, now, location)
                except SessionAlreadyOpen as e:
                    raise AlreadyCheckedIn(subject_id) from e
        except DomainError as e:
            logger.warning("Check-in rejected for subject %s [%s]: %s", subject_id, e.code.value, e.message)
            raise

        logger.info("Subject %s checked in at %s", subject_id, now.isoformat())
        return AttendanceSession(session_id=session_id, subject_id=subject_id, opened_at=now, open_location=location)

    def check_out(
        self,
        subject_id: int,
        sample: Optional[Sample],
        latitude: float,
        longitude: float,
        *,
        now: Optional[datetime] = None,
        timeout: Optional[float] = None,
    ) -> AttendanceSession:
        now = now or self._clock()
        try:
            # Disabled subjects may still close a session opened before they were disabled.
            subject = self._resolve(subject_id, require_active=False)

            if self._ledger.active_session(subject_id) is None:
                raise NotCheckedIn(subject_id)

            location = self._check_location(latitude, longitude)

            stored = subject.stored_encoding
            if stored is not None:
                self._verify(sample, stored, action="check-out", timeout=timeout)

            try:
                session = self._ledger.close_session(subject_id, now, location)
            except NoOpenSession as e:
                raise NotCheckedIn(subject_id) from e
        except DomainError as e:
            logger.warning("Check-out rejected for subject %s [%s]: %s", subject_id, e.code.value, e.message)
            raise

        logger.info("Subject %s checked out at %s (%.2f h)", subject_id, now.isoformat(), session.duration_hours)
        return session

    def force_check_out(
        self,
        subject_id: int,
        reason: str,
        *,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> AttendanceSession:
        """Administrative close that skips location and biometric checks.

        Without an explicit location the session's check-in location is used,
        falling back to the zone centre.
        """
        now = now or self._clock()
        reason = require_non_empty(reason, "Reason")

        active = self._ledger.active_session(subject_id)
        if active is None:
            raise NotCheckedIn(subject_id)

        if latitude is not None and longitude is not None:
            location = Coordinate(float(latitude), float(longitude))
            if not location.is_well_formed():
                raise InvalidCoordinate(location.latitude, location.longitude)
        elif active.open_location.is_well_formed():
            location = active.open_location
        else:
            location = self._geo.zone.center

        try:
            return self._ledger.force_close(subject_id, now, location, reason)
        except NoOpenSession as e:
            raise NotCheckedIn(subject_id) from e

    # ---- queries ----------------------------------------------------------

    def current_status(self, subject_id: int) -> Optional[AttendanceSession]:
        return self._ledger.active_session(subject_id)

    def history(
        self,
        subject_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[AttendanceSession]:
        return self._ledger.history(subject_id, start, end)

    def all_sessions(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Sequence[AttendanceSession]:
        return self._ledger.all_sessions(start, end)

    def currently_checked_in(self) -> Sequence[AttendanceSession]:
        return self._ledger.open_sessions()

    def today(self, subject_id: int) -> Optional[AttendanceSession]:
        """Latest session the subject opened on the current day, if any."""
        day = self._clock().date()
        start, end = day_bounds(day, day)
        sessions = self._ledger.history(subject_id, start, end)
        return sessions[0] if sessions else None

    def allowed_location(self) -> AllowedZone:
        return self._geo.zone

    def close(self) -> None:
        """Stop the biometric worker pool if the gate created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    # ---- steps ------------------------------------------------------------

    def _store_enrollment(self, subject_id: int, pending: BiometricEncoding) -> None:
        # Runs under the subject lock; another request may have enrolled or
        # checked in while this sample was being encoded.
        if self._ledger.active_session(subject_id) is not None:
            raise AlreadyCheckedIn(subject_id)

        fresh = self._subjects.get_by_id(subject_id)
        if fresh is None:
            raise SubjectNotFound(subject_id)
        stored = fresh.stored_encoding
        if stored is not None:
            if not self._matcher.matches(pending, stored):
                raise BiometricMismatch(self._matcher.threshold)
            return

        if not self._subjects.save_encoding(subject_id, pending.to_text()):
            raise SubjectNotFound(subject_id)
        logger.info("Face encoding stored for subject %s", subject_id)

    def _resolve(self, subject_id: int, *, require_active: bool) -> Subject:
        subject = self._subjects.get_by_id(subject_id)
        if subject is None:
            raise SubjectNotFound(subject_id)
        if require_active and not subject.is_active:
            raise SubjectDisabled(subject_id)
        return subject

    def _check_location(self, latitude: float, longitude: float) -> Coordinate:
        location = Coordinate(float(latitude), float(longitude))
        result = self._geo.classify(location)
        if not result.inside:
            raise LocationOutOfRange(result.distance_km, result.tolerance_km)
        return location

    def _verify(self, sample: Optional[Sample], stored: BiometricEncoding, *, action: str, timeout: Optional[float]) -> None:
        if not is_sample_present(sample):
            raise SampleRequired(action)
        if not self._bounded(self._matcher.verify, sample, stored, timeout=timeout):
            raise BiometricMismatch(self._matcher.threshold)

    def _bounded(self, fn: Callable[..., T], *args, timeout: Optional[float]) -> T:
        limit = self._timeout if timeout is None else timeout
        future = self._executor.submit(fn, *args)
        try:
            return future.result(timeout=limit)
        except FuturesTimeout:
            future.cancel()
            raise VerificationTimeout(limit)
