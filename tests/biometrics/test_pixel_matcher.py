from __future__ import annotations

import base64

import cv2
import numpy as np
import pytest

from src.geo_attendance.geo_attendance.biometrics.base import BiometricEncoding, similarity
from src.geo_attendance.geo_attendance.biometrics.pixel_matcher import PixelSamplingMatcher
from src.geo_attendance.geo_attendance.core.exceptions import AmbiguousSample, NoSubjectDetected
from tests.fakes import FakeDetector

ONE_FACE = [(10, 10, 80, 80)]
TWO_FACES = [(0, 0, 50, 50), (60, 60, 50, 50)]


def _png_base64(gray: np.ndarray) -> str:
    ok, buf = cv2.imencode(".png", cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR))
    assert ok
    return base64.b64encode(buf.tobytes()).decode("ascii")


def _gradient() -> np.ndarray:
    return np.tile(np.arange(0, 240, 2, dtype=np.uint8), (120, 1))


def _flat(level: int) -> np.ndarray:
    return np.full((120, 120), level, dtype=np.uint8)


@pytest.fixture
def matcher() -> PixelSamplingMatcher:
    return PixelSamplingMatcher(FakeDetector(ONE_FACE), threshold=0.8)


def test_enroll_samples_an_8x8_grid(matcher):
    encoding = matcher.enroll(_png_base64(_gradient()))

    assert encoding.version == "px1"
    assert len(encoding.values) == 64
    assert all(0.0 <= v <= 255.0 for v in encoding.values)


def test_enroll_is_deterministic(matcher):
    sample = _png_base64(_gradient())

    assert matcher.enroll(sample) == matcher.enroll(sample)


def test_data_url_and_raw_bytes_are_accepted(matcher):
    sample = _png_base64(_gradient())
    expected = matcher.enroll(sample)

    assert matcher.enroll("data:image/png;base64," + sample) == expected
    assert matcher.enroll(base64.b64decode(sample)) == expected


def test_same_sample_verifies(matcher):
    sample = _png_base64(_gradient())
    stored = matcher.enroll(sample)

    assert matcher.similarity(stored, stored) == 1.0
    assert matcher.verify(sample, stored) is True


def test_opposite_sample_does_not_verify(matcher):
    stored = matcher.enroll(_png_base64(_flat(0)))

    assert matcher.similarity(stored, matcher.enroll(_png_base64(_flat(255)))) == 0.0
    assert matcher.verify(_png_base64(_flat(255)), stored) is False


def test_no_face_raises_and_fails_verification():
    matcher = PixelSamplingMatcher(FakeDetector([]))
    sample = _png_base64(_gradient())

    with pytest.raises(NoSubjectDetected):
        matcher.enroll(sample)
    assert matcher.verify(sample, BiometricEncoding("px1", (1.0,) * 64)) is False


def test_two_faces_are_ambiguous():
    matcher = PixelSamplingMatcher(FakeDetector(TWO_FACES))
    sample = _png_base64(_gradient())

    with pytest.raises(AmbiguousSample) as exc:
        matcher.enroll(sample)
    assert exc.value.detected == 2
    assert matcher.verify(sample, BiometricEncoding("px1", (1.0,) * 64)) is False


def test_undecodable_sample_counts_as_no_face(matcher):
    with pytest.raises(NoSubjectDetected):
        matcher.enroll("this is not an image")
    with pytest.raises(NoSubjectDetected):
        matcher.enroll(b"\x00\x01\x02")
    with pytest.raises(NoSubjectDetected):
        matcher.enroll("data:image/png;base64")
    assert matcher.verify("data:image/png;base64", BiometricEncoding("px1", (1.0,) * 64)) is False


def test_incompatible_encodings_have_zero_similarity():
    a = BiometricEncoding("px1", (10.0, 20.0, 30.0))

    assert similarity(a, BiometricEncoding("px1", ())) == 0.0
    assert similarity(a, BiometricEncoding("px1", (10.0, 20.0))) == 0.0
    assert similarity(a, BiometricEncoding("other", (10.0, 20.0, 30.0))) == 0.0


def test_similarity_is_symmetric_and_bounded():
    a = BiometricEncoding("px1", (10.0, 200.0, 30.0))
    b = BiometricEncoding("px1", (60.0, 20.0, 30.0))

    assert similarity(a, b) == similarity(b, a)
    assert 0.0 <= similarity(a, b) <= 1.0


def test_stored_text_token():
    encoding = BiometricEncoding("px1", (12.0, 0.5, 255.0))

    assert encoding.to_text() == "px1:12.00,0.50,255.00"
    assert BiometricEncoding.from_text(encoding.to_text()) == encoding
    assert BiometricEncoding.from_text("garbage").is_empty
    assert BiometricEncoding.from_text("px1:a,b").is_empty


def test_threshold_must_be_a_ratio():
    with pytest.raises(ValueError):
        PixelSamplingMatcher(FakeDetector(ONE_FACE), threshold=1.5)
