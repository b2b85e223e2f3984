from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence

from ..core.enums import StudentStatus
from .model import NewStudent, Student, StudentQuery


class StudentRepository(Protocol):
    """Repository interface for Student.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    `create` and `update` raise DuplicateKeyError when the roll number is taken.
    """

    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_roll_number(self, roll_number: str) -> Optional[Student]:
        raise NotImplementedError

    def create(self, new: NewStudent) -> int:
        raise NotImplementedError

    def update(self, student_id: int, fields: Mapping[str, object]) -> bool:
        raise NotImplementedError

    def set_status(self, student_id: int, *, status: StudentStatus) -> bool:
        raise NotImplementedError

    def count_in_class(self, *, class_name: str, section: str, academic_year: str) -> int:
        raise NotImplementedError

    def list_active_in_class(
        self,
        *,
        class_name: str,
        section: Optional[str] = None,
        student_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[Student]:
        raise NotImplementedError

    def search(self, query: StudentQuery, *, page: int, limit: int) -> tuple[Sequence[Student], int]:
        """Return (page rows, total matching)."""

        raise NotImplementedError
