from __future__ import annotations

from datetime import date

import pytest

from src.school_admin.school_admin.common.pagination import PageRequest
from src.school_admin.school_admin.core.enums import StudentStatus
from src.school_admin.school_admin.core.exceptions import ConflictError, NotFoundError, ValidationError
from src.school_admin.school_admin.students.model import StudentQuery
from src.school_admin.school_admin.students.roll_numbers import class_code, format_roll_number
from src.school_admin.school_admin.students.schemas import (
    CreateStudentRequest,
    UpdateStudentRequest,
    student_query_from_args,
)
from src.school_admin.school_admin.students.service import StudentService
from tests.fakes import FakeStudentRepo

TODAY = date(2025, 1, 10)


def test_class_codes():
    assert class_code("Pre-Primary Jr. KG") == "JKG"
    assert class_code("Pre-Primary Sr. KG") == "SKG"
    assert class_code("10th") == "10"
    assert class_code("1st") == "01"
    assert class_code("Nursery") == "GEN"
    assert format_roll_number("3rd", "A", 7) == "03A007"


def test_generated_roll_number_follows_class_count():
    repo = FakeStudentRepo()
    repo.add(name="Existing", class_name="3rd", roll_number="03A001")
    service = StudentService(repo)

    student = service.create_student(CreateStudentRequest(name="Asha", class_name="3rd"), today=TODAY)

    assert student.roll_number == "03A002"
    assert student.section == "A"
    assert student.academic_year == "2025"
    assert student.status == StudentStatus.ACTIVE


def test_generated_roll_number_skips_taken_values():
    repo = FakeStudentRepo()
    repo.add(name="Transferred in", class_name="2nd", section="B", roll_number="02B001", academic_year="2024")
    service = StudentService(repo)

    student = service.create_student(CreateStudentRequest(name="Ravi", class_name="2nd", section="B"), today=TODAY)

    assert student.roll_number == "02B002"


def test_explicit_duplicate_roll_number_is_a_conflict():
    repo = FakeStudentRepo()
    repo.add(name="Existing", class_name="3rd", roll_number="R-1")
    service = StudentService(repo)

    with pytest.raises(ConflictError) as exc:
        service.create_student(CreateStudentRequest(name="New", class_name="3rd", roll_number="R-1"), today=TODAY)
    assert str(exc.value) == "Roll number already exists"


def test_update_is_partial_and_guards_roll_number():
    repo = FakeStudentRepo()
    a = repo.add(name="Asha", class_name="3rd", roll_number="03A001")
    repo.add(name="Ravi", class_name="3rd", roll_number="03A002")
    service = StudentService(repo)

    updated = service.update_student(a.student_id, UpdateStudentRequest.from_json({"phone": "555-0101"}))
    assert updated.phone == "555-0101"
    assert updated.name == "Asha"

    with pytest.raises(ConflictError):
        service.update_student(a.student_id, UpdateStudentRequest.from_json({"rollNumber": "03A002"}))

    with pytest.raises(NotFoundError):
        service.update_student(99, UpdateStudentRequest.from_json({"phone": "1"}))


def test_deactivate_is_a_soft_delete():
    repo = FakeStudentRepo()
    a = repo.add(name="Asha", class_name="3rd", roll_number="03A001")
    service = StudentService(repo)

    gone = service.deactivate(a.student_id)

    assert gone.status == StudentStatus.INACTIVE
    listed = service.list_students(StudentQuery(), PageRequest())
    assert listed["students"] == []
    assert listed["pagination"]["totalStudents"] == 0

    with pytest.raises(NotFoundError):
        service.deactivate(99)


def test_list_filters_and_searches():
    repo = FakeStudentRepo()
    repo.add(name="Asha Patel", class_name="3rd", roll_number="03A001")
    repo.add(name="Ravi Kumar", class_name="3rd", section="B", roll_number="03B001")
    repo.add(name="Meera", class_name="4th", roll_number="04A001")
    service = StudentService(repo)
    page = PageRequest()

    by_class = service.list_students(student_query_from_args({"class": "3rd"}), page)
    assert [s.roll_number for s in by_class["students"]] == ["03A001", "03B001"]

    by_search = service.list_students(student_query_from_args({"search": "kumar"}), page)
    assert [s.name for s in by_search["students"]] == ["Ravi Kumar"]


def test_create_request_validation():
    with pytest.raises(ValidationError) as exc:
        CreateStudentRequest.from_json({"name": "Asha"})
    assert str(exc.value) == "Name and class are required"

    with pytest.raises(ValidationError):
        CreateStudentRequest.from_json({"name": "Asha", "class": "3rd", "parentInfo": {"name": "P"}})


def test_query_status_accepts_empty_for_all():
    assert student_query_from_args({}).status == StudentStatus.ACTIVE
    assert student_query_from_args({"status": ""}).status is None
    with pytest.raises(ValidationError):
        student_query_from_args({"status": "expelled"})
