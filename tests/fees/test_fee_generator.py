from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.school_admin.school_admin.core.enums import FeeStatus, FeeType, GenerationType, StructureStatus, StudentStatus
from src.school_admin.school_admin.core.exceptions import NotFoundError, ValidationError
from src.school_admin.school_admin.fees.generator import ALREADY_EXISTS, FeeGenerator, GenerationScope
from src.school_admin.school_admin.fees.invoice import InvoiceAllocator, auto_invoice_number
from src.school_admin.school_admin.fees.model import FeeComponent, NewFeeRecord
from tests.fakes import FakeFeeRepo, FakeFeeStructureRepo, FakeStudentRepo

THIRD_CLASS_COMPONENTS = (
    FeeComponent(name="Tuition Fee", amount=Decimal("2200")),
    FeeComponent(name="Activity Fee", amount=Decimal("300")),
    FeeComponent(name="Maintenance Fee", amount=Decimal("200")),
)


@pytest.fixture
def school():
    students = FakeStudentRepo()
    s1 = students.add(name="Asha", class_name="3rd", roll_number="03A001")
    s2 = students.add(name="Ravi", class_name="3rd", roll_number="03A002")
    students.add(name="Old", class_name="3rd", roll_number="03A003", status=StudentStatus.INACTIVE)
    students.add(name="Meera", class_name="4th", roll_number="04A001")

    structures = FakeFeeStructureRepo()
    structures.create(
        class_name="3rd",
        section=None,
        academic_year="2025",
        fee_components=THIRD_CLASS_COMPONENTS,
        total_monthly_fee=Decimal("2700"),
    )
    fees = FakeFeeRepo(students)
    return students, structures, fees, (s1, s2)


def _generator(school, fixed_now):
    students, structures, fees, _ = school
    return FeeGenerator(structures, students, fees, clock=lambda: fixed_now)


def _generate(gen, month="January", year=2025, **kw):
    return gen.generate(class_name="3rd", academic_year="2025", month=month, year=year, requested_by="admin", **kw)


def test_generate_bills_every_active_student(school, fixed_now):
    _, _, fees, (s1, s2) = school
    report = _generate(_generator(school, fixed_now))

    assert report.created_count == 2
    assert report.skipped_count == 0
    assert report.error_count == 0
    assert {c["studentId"] for c in report.created} == {s1.student_id, s2.student_id}
    for entry in report.created:
        assert entry["amount"] == 2700.0
        assert entry["dueDate"] == "2025-02-15"

    rec = fees.find_for_period(student_id=s1.student_id, month="January", year=2025)
    assert rec.base_fee_amount == Decimal("2700.00")
    assert rec.final_amount == Decimal("2700.00")
    assert rec.due_date == date(2025, 2, 15)
    assert rec.status == FeeStatus.PENDING
    assert rec.generation_type == GenerationType.AUTO
    assert [c.name for c in rec.components] == ["Tuition Fee", "Activity Fee", "Maintenance Fee"]
    assert all(c.adjusted_amount == c.base_amount for c in rec.components)


def test_rerun_skips_already_billed_period(school, fixed_now):
    _, _, fees, _ = school
    gen = _generator(school, fixed_now)
    _generate(gen)

    again = _generate(gen)

    assert again.created_count == 0
    assert again.skipped_count == 2
    assert all(s["reason"] == ALREADY_EXISTS for s in again.skipped)
    assert len(fees.all()) == 2


def test_december_due_date_rolls_into_next_year(school, fixed_now):
    report = _generate(_generator(school, fixed_now), month="December")

    assert {c["dueDate"] for c in report.created} == {"2026-01-15"}


def test_missing_structure_creates_nothing(school, fixed_now):
    _, _, fees, _ = school
    gen = _generator(school, fixed_now)

    with pytest.raises(NotFoundError) as exc:
        gen.generate(class_name="5th", academic_year="2025", month="January", year=2025, requested_by="admin")

    assert "No fee structure found for 5th in 2025" in str(exc.value)
    assert fees.all() == []


def test_one_student_failure_does_not_stop_batch(school, fixed_now):
    _, _, fees, (s1, s2) = school
    fees.fail_student_ids = {s1.student_id}

    report = _generate(_generator(school, fixed_now))

    assert report.created_count == 1
    assert report.error_count == 1
    assert report.errors[0]["studentId"] == s1.student_id
    assert "store unavailable" in report.errors[0]["error"]
    assert fees.find_for_period(student_id=s2.student_id, month="January", year=2025) is not None


def test_invoice_numbers_are_unique_within_one_batch(school, fixed_now):
    report = _generate(_generator(school, fixed_now))

    invoices = [c["invoiceNumber"] for c in report.created]
    assert len(set(invoices)) == len(invoices)
    assert all(i.startswith("INV-03A00") and "-JAN2025-" in i for i in invoices)


def test_invoice_collision_takes_next_candidate(school, fixed_now):
    students, _, fees, (s1, _) = school
    other = students.get_by_roll_number("04A001")
    millis = int(fixed_now.timestamp() * 1000)
    taken = auto_invoice_number(roll_number=s1.roll_number, month="January", year=2025, suffix=millis)
    fees.insert(
        NewFeeRecord(
            student_id=other.student_id,
            month="January",
            year=2025,
            fee_type=FeeType.MANUAL,
            base_fee_amount=Decimal("100"),
            due_date=date(2025, 2, 15),
            generation_type=GenerationType.MANUAL,
        ),
        invoice_number=taken,
    )

    report = _generate(_generator(school, fixed_now))

    mine = next(c for c in report.created if c["studentId"] == s1.student_id)
    expected = auto_invoice_number(roll_number=s1.roll_number, month="January", year=2025, suffix=millis + 1)
    assert mine["invoiceNumber"] == expected


class RacingFeeRepo(FakeFeeRepo):
    """Pre-check never sees the existing record, as if another run inserted it concurrently."""

    def find_for_period(self, *, student_id, month, year):
        return None


def test_period_duplicate_at_insert_is_reported_as_skipped(school, fixed_now):
    students, structures, _, _ = school
    fees = RacingFeeRepo(students)
    gen = FeeGenerator(structures, students, fees, clock=lambda: fixed_now)
    _generate(gen)

    again = _generate(gen)

    assert again.skipped_count == 2
    assert again.error_count == 0
    assert len(fees.all()) == 2


def test_scope_limits_students(school, fixed_now):
    students, _, _, (s1, _) = school
    students.add(name="Kiran", class_name="3rd", section="B", roll_number="03B001")
    gen = _generator(school, fixed_now)

    by_section = _generate(gen, scope=GenerationScope(section="B"))
    assert [c["rollNumber"] for c in by_section.created] == ["03B001"]

    by_ids = _generate(gen, month="February", scope=GenerationScope(student_ids=(s1.student_id,)))
    assert [c["studentId"] for c in by_ids.created] == [s1.student_id]


def test_class_wise_generation_covers_each_structure(school, fixed_now):
    _, structures, _, _ = school
    structures.create(
        class_name="4th",
        section=None,
        academic_year="2025",
        fee_components=(),
        total_monthly_fee=Decimal("2800"),
    )
    gen = _generator(school, fixed_now)

    report = gen.generate_class_wise(month="January", year=2025, requested_by="admin")
    assert report.created_count == 3
    assert {c["className"] for c in report.created} == {"3rd", "4th"}

    only_fourth = gen.generate_class_wise(month="February", year=2025, requested_by="admin", specific_classes=["4th"])
    assert only_fourth.created_count == 1
    assert only_fourth.created[0]["amount"] == 2800.0

    body = report.to_dict()
    assert body["generated"] == 3
    assert body["skipped"] == 0
    assert len(body["details"]["created"]) == 3


def test_class_wise_without_structures_fails(school, fixed_now):
    gen = _generator(school, fixed_now)

    with pytest.raises(ValidationError):
        gen.generate_class_wise(month="January", year=2026, requested_by="admin")


def test_structure_change_does_not_touch_existing_records(school, fixed_now):
    students, structures, fees, (s1, _) = school
    _generate(_generator(school, fixed_now))

    old = structures.find_active(class_name="3rd", academic_year="2025")
    structures.set_status(old.structure_id, status=StructureStatus.INACTIVE)
    structures.create(
        class_name="3rd",
        section=None,
        academic_year="2025",
        fee_components=(),
        total_monthly_fee=Decimal("9999"),
    )

    rec = fees.find_for_period(student_id=s1.student_id, month="January", year=2025)
    assert rec.base_fee_amount == Decimal("2700.00")
    assert len(rec.components) == 3


def test_shared_allocator_is_used_when_given(school, fixed_now):
    students, structures, fees, _ = school
    allocator = InvoiceAllocator(fees, clock=lambda: fixed_now, max_attempts=1)
    gen = FeeGenerator(structures, students, fees, invoices=allocator)

    report = _generate(gen)

    assert report.created_count == 2


@pytest.mark.parametrize("month, year", [("December", 9999), ("January", 10000), ("January", 1999)])
def test_out_of_range_year_is_rejected_before_billing(school, fixed_now, month, year):
    _, _, fees, _ = school
    gen = _generator(school, fixed_now)

    with pytest.raises(ValidationError):
        _generate(gen, month=month, year=year)
    with pytest.raises(ValidationError):
        gen.generate_class_wise(month=month, year=year, requested_by="admin")

    assert fees.all() == []
