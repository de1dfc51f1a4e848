from __future__ import annotations

import base64
import binascii
import logging
from typing import Optional, Protocol, Sequence

import cv2
import numpy as np

from ..core.constants import DEFAULT_SIMILARITY_THRESHOLD, FACE_SIZE, PIXEL_ENCODER_VERSION, SAMPLE_STEP
from ..core.exceptions import AmbiguousSample, NoSubjectDetected
from .base import BiometricEncoding, BiometricMatcher, Sample

logger = logging.getLogger(__name__)

Rect = tuple[int, int, int, int]


class FaceDetector(Protocol):
    def detect(self, gray: np.ndarray) -> Sequence[Rect]:
        """Return (x, y, w, h) boxes of candidate faces in a grayscale image."""
        raise NotImplementedError


class HaarCascadeDetector:
    """Frontal-face detector backed by the Haar cascade bundled with OpenCV."""

    def __init__(self, cascade_path: Optional[str] = None, *, scale_factor: float = 1.1, min_neighbors: int = 5):
        path = cascade_path or (cv2.data.haarcascades + "haarcascade_frontalface_default.xml")
        self._classifier = cv2.CascadeClassifier(path)
        if self._classifier.empty():
            raise RuntimeError(f"Failed to load face cascade from {path}")
        self._scale_factor = scale_factor
        self._min_neighbors = min_neighbors

    def detect(self, gray: np.ndarray) -> Sequence[Rect]:
        faces = self._classifier.detectMultiScale(
            gray,
            scaleFactor=self._scale_factor,
            minNeighbors=self._min_neighbors,
            minSize=(30, 30),
        )
        return [tuple(int(v) for v in f) for f in faces]


def decode_sample(sample: Sample) -> np.ndarray:
    """Decode a base64 (or data URL) image into a grayscale matrix."""
    if isinstance(sample, str):
        text = sample.strip()
        if text.startswith("data:image"):
            _, sep, text = text.partition(",")
            if not sep:
                raise NoSubjectDetected("Failed to decode image")
        try:
            raw = base64.b64decode(text, validate=False)
        except (binascii.Error, ValueError):
            raise NoSubjectDetected("Failed to decode image")
    else:
        raw = bytes(sample)

    img = cv2.imdecode(np.frombuffer(raw, np.uint8), cv2.IMREAD_UNCHANGED) if raw else None
    if img is None:
        raise NoSubjectDetected("Failed to decode image")

    if img.ndim == 2:
        return img
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(img, cv2.COLOR_BGR2GRAY)


class PixelSamplingMatcher(BiometricMatcher):
    """Reference matcher: grid-sampled grey levels of the single detected face.

    This is a deliberately simple encoder; swap in a stronger BiometricMatcher
    without touching the gate.
    """

    def __init__(self, detector: Optional[FaceDetector] = None, *, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        super().__init__(threshold=threshold)
        self._detector = detector or HaarCascadeDetector()

    def enroll(self, sample: Sample) -> BiometricEncoding:
        gray = decode_sample(sample)

        faces = list(self._detector.detect(gray))
        if not faces:
            raise NoSubjectDetected()
        if len(faces) > 1:
            raise AmbiguousSample(len(faces))

        x, y, w, h = faces[0]
        region = gray[y : y + h, x : x + w]
        if region.size == 0:
            raise NoSubjectDetected("Detected face region is empty")

        face = cv2.resize(region, (FACE_SIZE, FACE_SIZE), interpolation=cv2.INTER_AREA)
        return BiometricEncoding(version=PIXEL_ENCODER_VERSION, values=self._sample_grid(face))

    @staticmethod
    def _sample_grid(face: np.ndarray) -> tuple[float, ...]:
        rows, cols = face.shape[:2]
        picked = face[SAMPLE_STEP : rows - SAMPLE_STEP : SAMPLE_STEP, SAMPLE_STEP : cols - SAMPLE_STEP : SAMPLE_STEP]
        # Round to the precision the text token keeps so stored and fresh encodings agree.
        return tuple(round(float(v), 2) for v in picked.ravel())
