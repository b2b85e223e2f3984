from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.datetime_utils import current_academic_year
from ..common.pagination import PageRequest, pagination_meta
from ..core.constants import DEFAULT_SECTION, KEY_STUDENT_ROLL, MAX_ROLL_NUMBER_ATTEMPTS
from ..core.enums import StudentStatus
from ..core.exceptions import ConflictError, DuplicateKeyError, NotFoundError
from .model import NewStudent, Student, StudentQuery
from .repository import StudentRepository
from .roll_numbers import format_roll_number
from .schemas import CreateStudentRequest, UpdateStudentRequest

logger = logging.getLogger(__name__)


class StudentService:
    """Use cases: enrol, look up, update and deactivate students."""

    def __init__(self, students: StudentRepository):
        self._students = students

    def get(self, student_id: int) -> Student:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_students(self, query: StudentQuery, page: PageRequest) -> dict:
        rows, total = self._students.search(query, page=page.page, limit=page.limit)
        return {
            "students": list(rows),
            "pagination": pagination_meta(page, total, total_key="totalStudents"),
        }

    def create_student(self, req: CreateStudentRequest, *, today: Optional[date] = None) -> Student:
        section = req.section or DEFAULT_SECTION
        academic_year = current_academic_year(today)

        def _new(roll_number: str) -> NewStudent:
            return NewStudent(
                name=req.name,
                class_name=req.class_name,
                section=section,
                roll_number=roll_number,
                academic_year=academic_year,
                email=req.email,
                phone=req.phone,
                parent_name=req.parent_name,
                parent_email=req.parent_email,
                parent_phone=req.parent_phone,
                address=req.address,
            )

        if req.roll_number:
            if self._students.get_by_roll_number(req.roll_number):
                raise ConflictError("Roll number already exists")
            try:
                student_id = self._students.create(_new(req.roll_number))
            except DuplicateKeyError:
                raise ConflictError("Roll number already exists")
        else:
            student_id = self._create_with_generated_roll(_new, req.class_name, section, academic_year)

        student = self.get(student_id)
        logger.info("Student enrolled: %s (%s)", student.name, student.roll_number)
        return student

    def _create_with_generated_roll(self, build, class_name: str, section: str, academic_year: str) -> int:
        sequence = self._students.count_in_class(
            class_name=class_name, section=section, academic_year=academic_year
        ) + 1
        for attempt in range(MAX_ROLL_NUMBER_ATTEMPTS):
            roll_number = format_roll_number(class_name, section, sequence + attempt)
            try:
                return self._students.create(build(roll_number))
            except DuplicateKeyError as exc:
                if exc.key != KEY_STUDENT_ROLL:
                    raise
                logger.debug("Roll number %s taken, trying next sequence", roll_number)
        raise ConflictError("Could not allocate a unique roll number")

    def update_student(self, student_id: int, req: UpdateStudentRequest) -> Student:
        current = self.get(student_id)
        fields = dict(req.fields)

        new_roll = fields.get("roll_number")
        if new_roll and new_roll != current.roll_number:
            other = self._students.get_by_roll_number(new_roll)
            if other and other.student_id != current.student_id:
                raise ConflictError("Roll number already exists")

        try:
            ok = self._students.update(current.student_id, fields)
        except DuplicateKeyError:
            raise ConflictError("Roll number already exists")
        if not ok:
            raise NotFoundError("Student not found")
        return self.get(current.student_id)

    def deactivate(self, student_id: int) -> Student:
        """Soft delete: the record is kept with status=inactive."""
        if not self._students.set_status(int(student_id), status=StudentStatus.INACTIVE):
            raise NotFoundError("Student not found")
        student = self.get(student_id)
        logger.info("Student deactivated: %s", student.roll_number)
        return student

