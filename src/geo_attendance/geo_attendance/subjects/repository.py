from __future__ import annotations

from typing import Optional, Protocol

from .model import Subject


class SubjectRepository(Protocol):
    """Repository interface for subjects.

    The gate depends on this interface, never on a concrete database.
    """

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        raise NotImplementedError

    def save_encoding(self, subject_id: int, encoding: str) -> bool:
        raise NotImplementedError
