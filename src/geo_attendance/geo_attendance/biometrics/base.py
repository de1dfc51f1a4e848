from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from ..core.constants import DEFAULT_SIMILARITY_THRESHOLD
from ..core.exceptions import BiometricError

logger = logging.getLogger(__name__)

# A raw captured sample: base64 text (optionally a data URL) or image bytes.
Sample = Union[str, bytes]


@dataclass(frozen=True)
class BiometricEncoding:
    """Opaque, comparable token derived from a sample.

    Only encodings from the same encoder version and of the same length are
    comparable; anything else has similarity 0.
    """

    version: str
    values: tuple[float, ...]

    @property
    def is_empty(self) -> bool:
        return not self.values

    def to_text(self) -> str:
        return f"{self.version}:" + ",".join(f"{v:.2f}" for v in self.values)

    @classmethod
    def from_text(cls, text: Optional[str]) -> "BiometricEncoding":
        """Parse a stored token. Unreadable tokens become an empty encoding."""
        if not text or ":" not in text:
            return cls(version="", values=())
        version, _, body = text.partition(":")
        try:
            values = tuple(float(v) for v in body.split(",") if v.strip())
        except ValueError:
            return cls(version=version, values=())
        return cls(version=version, values=values)


def similarity(a: BiometricEncoding, b: BiometricEncoding, *, value_range: float = 255.0) -> float:
    """Mean per-component closeness in [0, 1]; symmetric in its arguments."""
    if a.is_empty or b.is_empty:
        return 0.0
    if a.version != b.version or len(a.values) != len(b.values):
        return 0.0

    total = 0.0
    for x, y in zip(a.values, b.values):
        total += max(0.0, 1.0 - abs(x - y) / value_range)
    return min(1.0, total / len(a.values))


def is_sample_present(sample: Optional[Sample]) -> bool:
    if sample is None:
        return False
    if isinstance(sample, str):
        return bool(sample.strip())
    return len(sample) > 0


class BiometricMatcher(ABC):
    """Strategy Pattern: pluggable biometric capability.

    Implementations derive encodings (``enroll``); comparison and verification
    are shared so every strategy reports failures the same way.
    """

    def __init__(self, *, threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Similarity threshold must be within [0, 1], got {threshold!r}")
        self._threshold = float(threshold)

    @property
    def threshold(self) -> float:
        return self._threshold

    @abstractmethod
    def enroll(self, sample: Sample) -> BiometricEncoding:
        """Derive an encoding from exactly one subject in ``sample``.

        Raises NoSubjectDetected or AmbiguousSample.
        """
        raise NotImplementedError

    def similarity(self, a: BiometricEncoding, b: BiometricEncoding) -> float:
        return similarity(a, b)

    def matches(self, candidate: BiometricEncoding, stored: BiometricEncoding) -> bool:
        return self.similarity(candidate, stored) >= self._threshold

    def verify(self, sample: Sample, stored: BiometricEncoding) -> bool:
        try:
            candidate = self.enroll(sample)
        except BiometricError as e:
            logger.info("Face verification failed: %s", e.message)
            return False
        return self.matches(candidate, stored)
