from __future__ import annotations

from typing import Mapping, Optional, Sequence

from ..core.enums import StudentStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import UPDATABLE_FIELDS, NewStudent, Student, StudentQuery
from .repository import StudentRepository

_COLUMNS = """
    student_id, name, email, phone, class_name, section, roll_number,
    parent_name, parent_email, parent_phone, address, status, academic_year,
    created_at, updated_at
"""


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        name=r["name"],
        class_name=r["class_name"],
        section=r["section"],
        roll_number=r["roll_number"],
        status=StudentStatus(r["status"]),
        academic_year=r["academic_year"],
        email=r.get("email"),
        phone=r.get("phone"),
        parent_name=r.get("parent_name"),
        parent_email=r.get("parent_email"),
        parent_phone=r.get("parent_phone"),
        address=r.get("address"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLStudentRepository(StudentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_roll_number(self, roll_number: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM students WHERE roll_number=%s", (roll_number,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def create(self, new: NewStudent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(
                    name, email, phone, class_name, section, roll_number,
                    parent_name, parent_email, parent_phone, address, status, academic_year
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    new.name,
                    new.email,
                    new.phone,
                    new.class_name,
                    new.section,
                    new.roll_number,
                    new.parent_name,
                    new.parent_email,
                    new.parent_phone,
                    new.address,
                    new.status.value,
                    new.academic_year,
                ),
            )
            return int(cur.lastrowid)

    def update(self, student_id: int, fields: Mapping[str, object]) -> bool:
        cols = [c for c in UPDATABLE_FIELDS if c in fields]
        if not cols:
            return self.get_by_id(student_id) is not None

        params: list[object] = []
        for c in cols:
            v = fields[c]
            params.append(v.value if isinstance(v, StudentStatus) else v)

        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE students SET {assignments} WHERE student_id=%s",
                tuple(params + [int(student_id)]),
            )
            if cur.rowcount > 0:
                return True
            # rowcount is 0 for no-op updates too; tell those apart from a missing row.
            cur.execute("SELECT 1 AS found FROM students WHERE student_id=%s", (int(student_id),))
            return fetchone(cur) is not None

    def set_status(self, student_id: int, *, status: StudentStatus) -> bool:
        return self.update(student_id, {"status": status})

    def count_in_class(self, *, class_name: str, section: str, academic_year: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS n FROM students
                WHERE class_name=%s AND section=%s AND academic_year=%s
                """,
                (class_name, section, academic_year),
            )
            return int(fetchone(cur)["n"])

    def list_active_in_class(
        self,
        *,
        class_name: str,
        section: Optional[str] = None,
        student_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[Student]:
        clauses = ["class_name=%s", "status=%s"]
        params: list[object] = [class_name, StudentStatus.ACTIVE.value]

        if section:
            clauses.append("section=%s")
            params.append(section)
        if student_ids:
            ids = [int(i) for i in student_ids]
            clauses.append(f"student_id IN ({in_clause(ids)})")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM students WHERE {' AND '.join(clauses)} ORDER BY roll_number",
                tuple(params),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def search(self, query: StudentQuery, *, page: int, limit: int) -> tuple[Sequence[Student], int]:
        clauses = ["1=1"]
        params: list[object] = []

        if query.class_name:
            clauses.append("class_name=%s")
            params.append(query.class_name)
        if query.section:
            clauses.append("section=%s")
            params.append(query.section)
        if query.status is not None:
            clauses.append("status=%s")
            params.append(query.status.value)
        if query.search:
            like = f"%{query.search}%"
            clauses.append("(name LIKE %s OR email LIKE %s OR roll_number LIKE %s OR parent_name LIKE %s)")
            params.extend([like, like, like, like])

        where = " AND ".join(clauses)
        offset = (int(page) - 1) * int(limit)

        with db_cursor(self._conn_factory, snapshot=True) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM students
                WHERE {where}
                ORDER BY class_name, section, roll_number
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset]),
            )
            rows = [_to_student(r) for r in fetchall(cur)]
            cur.execute(f"SELECT COUNT(*) AS n FROM students WHERE {where}", tuple(params))
            total = int(fetchone(cur)["n"])
            return rows, total
