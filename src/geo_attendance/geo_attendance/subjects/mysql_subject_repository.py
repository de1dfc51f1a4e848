from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Subject
from .repository import SubjectRepository


class MySQLSubjectRepository(SubjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, subject_id: int) -> Optional[Subject]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT employee_id, full_name, email, is_active, face_encoding
                FROM employees
                WHERE employee_id=%s
                """,
                (int(subject_id),),
            )
            row = fetchone(cur)
            if not row:
                return None
            return Subject(
                subject_id=int(row["employee_id"]),
                full_name=row["full_name"],
                email=row["email"],
                is_active=bool(row.get("is_active", True)),
                face_encoding=row.get("face_encoding"),
            )

    def save_encoding(self, subject_id: int, encoding: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET face_encoding=%s, updated_at=CURRENT_TIMESTAMP
                WHERE employee_id=%s
                """,
                (encoding, int(subject_id)),
            )
            return cur.rowcount > 0
