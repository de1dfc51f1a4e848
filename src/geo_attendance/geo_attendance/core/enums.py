from __future__ import annotations

from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle state of an attendance session stored in the database."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class ZoneVerdict(str, Enum):
    INSIDE = "INSIDE"
    OUTSIDE = "OUTSIDE"


class ErrorCode(str, Enum):
    """Closed set of caller-facing failure reasons."""

    INVALID_INPUT = "INVALID_INPUT"
    INVALID_COORDINATE = "INVALID_COORDINATE"
    ALREADY_CHECKED_IN = "ALREADY_CHECKED_IN"
    NOT_CHECKED_IN = "NOT_CHECKED_IN"
    SESSION_ALREADY_OPEN = "SESSION_ALREADY_OPEN"
    NO_OPEN_SESSION = "NO_OPEN_SESSION"
    LOCATION_OUT_OF_RANGE = "LOCATION_OUT_OF_RANGE"
    SAMPLE_REQUIRED = "SAMPLE_REQUIRED"
    NO_SUBJECT_DETECTED = "NO_SUBJECT_DETECTED"
    AMBIGUOUS_SAMPLE = "AMBIGUOUS_SAMPLE"
    BIOMETRIC_MISMATCH = "BIOMETRIC_MISMATCH"
    VERIFICATION_TIMEOUT = "VERIFICATION_TIMEOUT"
    SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"
    SUBJECT_DISABLED = "SUBJECT_DISABLED"
