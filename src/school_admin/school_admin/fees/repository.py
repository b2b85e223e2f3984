from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Protocol, Sequence

from ..core.enums import StructureStatus
from .model import FeeComponent, FeePage, FeeQuery, FeeRecord, FeeStructure, NewFeeRecord, StudentFeeSummary


class FeeStructureRepository(Protocol):
    def create(
        self,
        *,
        class_name: str,
        section: Optional[str],
        academic_year: str,
        fee_components: Sequence[FeeComponent],
        total_monthly_fee: Decimal,
    ) -> int:
        """Insert an active structure; DuplicateKeyError if one is already active."""

        raise NotImplementedError

    def get_by_id(self, structure_id: int) -> Optional[FeeStructure]:
        raise NotImplementedError

    def find_active(self, *, class_name: str, academic_year: str) -> Optional[FeeStructure]:
        raise NotImplementedError

    def list_active(
        self,
        *,
        academic_year: Optional[str] = None,
        class_names: Optional[Sequence[str]] = None,
    ) -> Sequence[FeeStructure]:
        """Active structures ordered by class name."""

        raise NotImplementedError

    def set_status(self, structure_id: int, *, status: StructureStatus) -> bool:
        raise NotImplementedError


class FeeRepository(Protocol):
    def get_by_id(self, fee_id: int) -> Optional[FeeRecord]:
        raise NotImplementedError

    def find_for_period(self, *, student_id: int, month: str, year: int) -> Optional[FeeRecord]:
        raise NotImplementedError

    def insert(self, new: NewFeeRecord, *, invoice_number: str) -> int:
        """Insert one record.

        Raises DuplicateKeyError naming the violated key: the invoice number
        or the (student, month, year) period.
        """

        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError

    def update_adjustment(
        self,
        fee_id: int,
        *,
        total_discount: Decimal,
        additional_charges: Decimal,
        final_amount: Decimal,
        discount_reason: Optional[str],
        remarks: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def mark_paid(
        self,
        fee_id: int,
        *,
        paid_date: datetime,
        payment_method: str,
        transaction_id: Optional[str],
        remarks: Optional[str],
    ) -> bool:
        """Settle an unpaid, non-cancelled record; False if nothing was updated."""

        raise NotImplementedError

    def cancel(self, fee_id: int, *, remarks: Optional[str]) -> bool:
        """Cancel an unpaid record; False if nothing was updated."""

        raise NotImplementedError

    def mark_overdue(self, *, today: date) -> int:
        raise NotImplementedError

    def search(self, query: FeeQuery, *, page: int, limit: int) -> FeePage:
        raise NotImplementedError

    def student_summary(self, student_id: int) -> StudentFeeSummary:
        raise NotImplementedError
