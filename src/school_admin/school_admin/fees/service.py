from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from ..common.datetime_utils import current_academic_year, due_date_for, now_local
from ..common.pagination import PageRequest, pagination_meta
from ..core.constants import KEY_FEE_PERIOD, KEY_STRUCTURE_ACTIVE, MAX_AMOUNT
from ..core.enums import FeeStatus, GenerationType, StructureStatus
from ..core.exceptions import ConflictError, DuplicateKeyError, NotFoundError, ValidationError
from ..students.model import Student
from ..students.repository import StudentRepository
from .invoice import InvoiceAllocator
from .model import FeeQuery, FeeRecord, FeeStructure, NewFeeRecord, StudentFeeSummary, compute_final_amount
from .repository import FeeRepository, FeeStructureRepository
from .schemas import AdjustFeeRequest, CreateStructureRequest, ManualFeeRequest, PaymentRequest

logger = logging.getLogger(__name__)


class FeeStructureService:
    """Use cases: maintain class fee templates."""

    def __init__(self, structures: FeeStructureRepository):
        self._structures = structures

    def create(self, req: CreateStructureRequest, *, today: Optional[date] = None) -> FeeStructure:
        academic_year = req.academic_year or current_academic_year(today)

        if self._structures.find_active(class_name=req.class_name, academic_year=academic_year):
            raise ConflictError("Fee structure already exists for this class")

        try:
            structure_id = self._structures.create(
                class_name=req.class_name,
                section=req.section,
                academic_year=academic_year,
                fee_components=req.fee_components,
                total_monthly_fee=req.total_monthly_fee,
            )
        except DuplicateKeyError as exc:
            if exc.key != KEY_STRUCTURE_ACTIVE:
                raise
            raise ConflictError("Fee structure already exists for this class")

        structure = self._structures.get_by_id(structure_id)
        logger.info("Fee structure created for %s (%s): %s", req.class_name, academic_year, req.total_monthly_fee)
        return structure

    def list_active(self) -> list[FeeStructure]:
        return list(self._structures.list_active())

    def deactivate(self, structure_id: int) -> FeeStructure:
        if not self._structures.set_status(int(structure_id), status=StructureStatus.INACTIVE):
            raise NotFoundError("Fee structure not found")
        return self._structures.get_by_id(int(structure_id))


class FeeService:
    """Use cases: manual billing, adjustments, payments and fee queries."""

    def __init__(
        self,
        fees: FeeRepository,
        students: StudentRepository,
        *,
        invoices: Optional[InvoiceAllocator] = None,
        clock: Callable = now_local,
    ):
        self._fees = fees
        self._students = students
        self._clock = clock
        self._invoices = invoices or InvoiceAllocator(fees, clock=clock)

    def get(self, fee_id: int) -> FeeRecord:
        fee = self._fees.get_by_id(int(fee_id))
        if not fee:
            raise NotFoundError("Fee record not found")
        return fee

    def create_manual(self, req: ManualFeeRequest) -> tuple[FeeRecord, Student]:
        student = self._students.get_by_id(req.student_id)
        if not student:
            raise NotFoundError("Student not found")

        if self._fees.find_for_period(student_id=student.student_id, month=req.month, year=req.year):
            raise ConflictError("Fee already exists for this student and month")

        new = NewFeeRecord(
            student_id=student.student_id,
            month=req.month,
            year=req.year,
            fee_type=req.fee_type,
            base_fee_amount=req.amount,
            due_date=req.due_date or due_date_for(req.month, req.year),
            generated_by=req.generated_by,
            generation_type=GenerationType.MANUAL,
            remarks=req.description,
        )
        try:
            fee_id, invoice_number = self._invoices.insert(
                new, self._invoices.manual_candidates(month=req.month, year=req.year)
            )
        except DuplicateKeyError as exc:
            if exc.key != KEY_FEE_PERIOD:
                raise
            raise ConflictError("Fee already exists for this student and month")

        logger.info("Manual fee created: %s for %s - %s", invoice_number, student.name, new.final_amount)
        return self.get(fee_id), student

    def adjust(self, fee_id: int, req: AdjustFeeRequest) -> FeeRecord:
        """Apply an absolute discount/charges override and recompute the final amount."""
        fee = self.get(fee_id)
        if fee.is_paid:
            raise ValidationError("Fee is already paid")
        if fee.status == FeeStatus.CANCELLED:
            raise ValidationError("Fee is cancelled")

        final_amount = compute_final_amount(fee.base_fee_amount, req.discount, req.additional_charges)
        if final_amount < 0:
            raise ValidationError("Discount cannot exceed base fee plus additional charges")
        if final_amount > MAX_AMOUNT:
            raise ValidationError(f"Final amount cannot exceed {MAX_AMOUNT}")

        ok = self._fees.update_adjustment(
            fee.fee_id,
            total_discount=req.discount,
            additional_charges=req.additional_charges,
            final_amount=final_amount,
            discount_reason=req.discount_reason,
            remarks=req.remarks,
        )
        if not ok:
            raise ValidationError("Fee could not be adjusted")

        logger.info(
            "Adjusted fee %s: base=%s discount=%s charges=%s final=%s",
            fee.invoice_number,
            fee.base_fee_amount,
            req.discount,
            req.additional_charges,
            final_amount,
        )
        return self.get(fee.fee_id)

    def record_payment(self, fee_id: int, req: PaymentRequest) -> FeeRecord:
        fee = self.get(fee_id)
        if fee.is_paid:
            raise ValidationError("Fee is already paid")
        if fee.status == FeeStatus.CANCELLED:
            raise ValidationError("Fee is cancelled")

        ok = self._fees.mark_paid(
            fee.fee_id,
            paid_date=self._clock(),
            payment_method=req.payment_method,
            transaction_id=req.transaction_id,
            remarks=req.remarks,
        )
        if not ok:
            # Settled by a concurrent request between the read and the write.
            raise ValidationError("Fee is already paid")

        logger.info("Payment recorded for %s via %s", fee.invoice_number, req.payment_method)
        return self.get(fee.fee_id)

    def cancel(self, fee_id: int, *, remarks: Optional[str] = None) -> FeeRecord:
        fee = self.get(fee_id)
        if fee.is_paid:
            raise ValidationError("Fee is already paid")
        if fee.status == FeeStatus.CANCELLED:
            raise ValidationError("Fee is already cancelled")
        if not self._fees.cancel(fee.fee_id, remarks=remarks):
            raise ValidationError("Fee could not be cancelled")
        logger.info("Fee cancelled: %s", fee.invoice_number)
        return self.get(fee.fee_id)

    def mark_overdue(self, *, today: Optional[date] = None) -> int:
        today = today or self._clock().date()
        updated = self._fees.mark_overdue(today=today)
        logger.info("Marked %d fee(s) overdue as of %s", updated, today.isoformat())
        return updated

    def list_fees(self, query: FeeQuery, page: PageRequest) -> dict:
        result = self._fees.search(query, page=page.page, limit=page.limit)
        return {
            "fees": result.rows,
            "summary": result.summary,
            "pagination": pagination_meta(page, result.total, total_key="totalFees"),
        }

    def student_summary(self, student_id: int) -> StudentFeeSummary:
        return self._fees.student_summary(int(student_id))
