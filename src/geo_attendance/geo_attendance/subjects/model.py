from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..biometrics.base import BiometricEncoding


@dataclass(frozen=True)
class Subject:
    """Domain entity: the employee whose presence is recorded.

    Plain data object; no database access here.
    """

    subject_id: int
    full_name: str
    email: str
    is_active: bool = True
    face_encoding: Optional[str] = None

    @property
    def stored_encoding(self) -> Optional[BiometricEncoding]:
        if not self.face_encoding or not self.face_encoding.strip():
            return None
        return BiometricEncoding.from_text(self.face_encoding)
