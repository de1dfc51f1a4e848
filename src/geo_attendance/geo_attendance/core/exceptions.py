from __future__ import annotations

from typing import Optional

from .enums import ErrorCode


class DomainError(Exception):
    """Base exception for business rule violations.

    Every concrete subclass carries a distinct ``code`` so callers can tell
    failure causes apart without parsing messages.
    """

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ---- validation -----------------------------------------------------------


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidCoordinate(ValidationError):
    code = ErrorCode.INVALID_COORDINATE

    def __init__(self, latitude: float, longitude: float):
        super().__init__(f"Invalid GPS coordinates provided: ({latitude}, {longitude})")
        self.latitude = latitude
        self.longitude = longitude


# ---- session state --------------------------------------------------------


class StateError(DomainError):
    """Raised when a transition is not allowed from the current session state."""


class AlreadyCheckedIn(StateError):
    code = ErrorCode.ALREADY_CHECKED_IN

    def __init__(self, subject_id: int):
        super().__init__("Employee is already checked in. Please check out first.")
        self.subject_id = subject_id


class NotCheckedIn(StateError):
    code = ErrorCode.NOT_CHECKED_IN

    def __init__(self, subject_id: int):
        super().__init__("No active check-in found. Please check in first.")
        self.subject_id = subject_id


class SessionAlreadyOpen(StateError):
    """Ledger-level conflict: an OPEN session already exists for the subject."""

    code = ErrorCode.SESSION_ALREADY_OPEN

    def __init__(self, subject_id: int):
        super().__init__(f"Subject {subject_id} already has an open session")
        self.subject_id = subject_id


class NoOpenSession(StateError):
    code = ErrorCode.NO_OPEN_SESSION

    def __init__(self, subject_id: int):
        super().__init__(f"Subject {subject_id} has no open session")
        self.subject_id = subject_id


# ---- geofence -------------------------------------------------------------


class GeofenceError(DomainError):
    """Raised when a reading falls outside the authorized zone."""


class LocationOutOfRange(GeofenceError):
    code = ErrorCode.LOCATION_OUT_OF_RANGE

    def __init__(self, distance_km: float, tolerance_km: float):
        super().__init__(
            f"Location verification failed. You are {distance_km:.2f} km from the authorized zone "
            f"(allowed {tolerance_km:.2f} km)."
        )
        self.distance_km = distance_km
        self.tolerance_km = tolerance_km


# ---- biometrics -----------------------------------------------------------


class BiometricError(DomainError):
    """Raised when biometric identity confirmation cannot be completed."""


class SampleRequired(BiometricError):
    code = ErrorCode.SAMPLE_REQUIRED

    def __init__(self, action: str = "check-in"):
        super().__init__(f"Face image is required for {action}")
        self.action = action


class NoSubjectDetected(BiometricError):
    code = ErrorCode.NO_SUBJECT_DETECTED

    def __init__(self, message: str = "No face detected in the image"):
        super().__init__(message)


class AmbiguousSample(BiometricError):
    code = ErrorCode.AMBIGUOUS_SAMPLE

    def __init__(self, detected: int):
        super().__init__(f"Multiple faces detected ({detected}). Please ensure only one face is visible")
        self.detected = detected


class BiometricMismatch(BiometricError):
    code = ErrorCode.BIOMETRIC_MISMATCH

    def __init__(self, threshold: float):
        super().__init__(
            f"Face verification failed (required similarity {threshold:.2f}). "
            "Please ensure your face is clearly visible."
        )
        self.threshold = threshold


class VerificationTimeout(BiometricError):
    code = ErrorCode.VERIFICATION_TIMEOUT

    def __init__(self, timeout_seconds: Optional[float]):
        super().__init__(f"Face verification did not finish within {timeout_seconds} seconds")
        self.timeout_seconds = timeout_seconds


# ---- subjects -------------------------------------------------------------


class NotFoundError(DomainError):
    """Raised when a referenced subject does not exist."""


class SubjectNotFound(NotFoundError):
    code = ErrorCode.SUBJECT_NOT_FOUND

    def __init__(self, subject_id: int):
        super().__init__("Employee not found")
        self.subject_id = subject_id


class DisabledError(DomainError):
    """Raised when a subject exists but is not allowed to record attendance."""


class SubjectDisabled(DisabledError):
    code = ErrorCode.SUBJECT_DISABLED

    def __init__(self, subject_id: int):
        super().__init__("Employee account is disabled")
        self.subject_id = subject_id
