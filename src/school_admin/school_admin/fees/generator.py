"""Monthly fee generation from class fee structures.

For each selected student a FeeRecord is created unless one already exists for
the (student, month, year) period; existing periods are reported as skipped,
which makes re-running a generation safe. One student's failure is recorded in
the report and never stops the rest of the batch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

from ..common.datetime_utils import due_date_for, now_local
from ..common.validators import require_month, require_non_empty, require_year
from ..core.constants import KEY_FEE_PERIOD
from ..core.enums import FeeType, GenerationType
from ..core.exceptions import DuplicateKeyError, NotFoundError, ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from .invoice import InvoiceAllocator
from .model import ComponentSnapshot, FeeStructure, NewFeeRecord
from .repository import FeeRepository, FeeStructureRepository

logger = logging.getLogger(__name__)

ALREADY_EXISTS = "Fee already exists"


@dataclass(frozen=True)
class GenerationScope:
    """Optional narrowing of the student set."""

    section: Optional[str] = None
    student_ids: Sequence[int] = ()


@dataclass
class GenerationReport:
    created: list[dict] = field(default_factory=list)
    skipped: list[dict] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def to_dict(self) -> dict:
        return {
            "generated": self.created_count,
            "skipped": self.skipped_count,
            "errors": self.error_count,
            "details": {
                "created": list(self.created),
                "skipped": list(self.skipped),
                "errors": list(self.errors),
            },
        }


class FeeGenerator:
    def __init__(
        self,
        structures: FeeStructureRepository,
        students: StudentRepository,
        fees: FeeRepository,
        *,
        invoices: Optional[InvoiceAllocator] = None,
        clock: Callable = now_local,
    ):
        self._structures = structures
        self._students = students
        self._fees = fees
        self._invoices = invoices or InvoiceAllocator(fees, clock=clock)

    def generate(
        self,
        *,
        class_name: str,
        academic_year: str,
        month: str,
        year: int,
        requested_by: str,
        scope: Optional[GenerationScope] = None,
    ) -> GenerationReport:
        """Bill every active student of one class for (month, year).

        Fails with NotFoundError, creating nothing, when the class has no
        active structure for the academic year.
        """
        month = require_month(month)
        year = require_year(year)
        requested_by = require_non_empty(requested_by, "generatedBy")

        structure = self._structures.find_active(class_name=class_name, academic_year=str(academic_year))
        if not structure:
            raise NotFoundError(f"No fee structure found for {class_name} in {academic_year}")

        report = GenerationReport()
        self._generate_for_structure(structure, month, year, requested_by, scope or GenerationScope(), report)
        self._log_report(f"{class_name} {month} {year}", report)
        return report

    def generate_class_wise(
        self,
        *,
        month: str,
        year: int,
        requested_by: str,
        specific_classes: Sequence[str] = (),
    ) -> GenerationReport:
        """Bill every class that has an active structure for academic year `year`."""
        month = require_month(month)
        year = require_year(year)
        requested_by = require_non_empty(requested_by, "generatedBy")

        structures = self._structures.list_active(
            academic_year=str(year),
            class_names=list(specific_classes) or None,
        )
        if not structures:
            raise ValidationError("No fee structures found. Please create fee structures first.")

        logger.info("Generating %s %s fees for %d class structure(s)", month, year, len(structures))
        report = GenerationReport()
        for structure in structures:
            self._generate_for_structure(structure, month, year, requested_by, GenerationScope(), report)
        self._log_report(f"{month} {year}", report)
        return report

    def _select_students(self, structure: FeeStructure, scope: GenerationScope) -> Sequence[Student]:
        return self._students.list_active_in_class(
            class_name=structure.class_name,
            section=scope.section or structure.section,
            student_ids=list(scope.student_ids) or None,
        )

    def _generate_for_structure(
        self,
        structure: FeeStructure,
        month: str,
        year: int,
        requested_by: str,
        scope: GenerationScope,
        report: GenerationReport,
    ) -> None:
        students = self._select_students(structure, scope)
        logger.debug("%d student(s) selected in %s", len(students), structure.class_name)

        for student in students:
            entry = {"studentId": student.student_id, "studentName": student.name, "className": structure.class_name}
            try:
                if self._fees.find_for_period(student_id=student.student_id, month=month, year=year):
                    report.skipped.append({**entry, "reason": ALREADY_EXISTS})
                    continue

                new = self._build_record(structure, student, month, year, requested_by)
                candidates = self._invoices.auto_candidates(roll_number=student.roll_number, month=month, year=year)
                fee_id, invoice_number = self._invoices.insert(new, candidates)
            except DuplicateKeyError as exc:
                if exc.key == KEY_FEE_PERIOD:
                    # Lost a race with a concurrent run; the period is billed either way.
                    report.skipped.append({**entry, "reason": ALREADY_EXISTS})
                    continue
                logger.warning("Fee creation failed for %s: %s", student.name, exc)
                report.errors.append({**entry, "error": str(exc)})
                continue
            except Exception as exc:
                logger.warning("Fee creation failed for %s: %s", student.name, exc, exc_info=True)
                report.errors.append({**entry, "error": str(exc)})
                continue

            report.created.append(
                {
                    **entry,
                    "feeId": fee_id,
                    "rollNumber": student.roll_number,
                    "invoiceNumber": invoice_number,
                    "amount": float(new.final_amount),
                    "dueDate": new.due_date.isoformat(),
                }
            )

    @staticmethod
    def _build_record(
        structure: FeeStructure,
        student: Student,
        month: str,
        year: int,
        requested_by: str,
    ) -> NewFeeRecord:
        return NewFeeRecord(
            student_id=student.student_id,
            fee_structure_id=structure.structure_id,
            month=month,
            year=year,
            fee_type=FeeType.MONTHLY,
            components=tuple(ComponentSnapshot.from_component(c) for c in structure.fee_components),
            base_fee_amount=structure.total_monthly_fee,
            due_date=due_date_for(month, year),
            generated_by=requested_by,
            generation_type=GenerationType.AUTO,
        )

    @staticmethod
    def _log_report(label: str, report: GenerationReport) -> None:
        logger.info(
            "Fee generation completed for %s: created=%d skipped=%d errors=%d",
            label,
            report.created_count,
            report.skipped_count,
            report.error_count,
        )
