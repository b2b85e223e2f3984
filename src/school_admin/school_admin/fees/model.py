from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import FeeStatus, FeeType, GenerationType, StructureStatus

_CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value)).quantize(_CENTS)


def compute_final_amount(base_fee_amount, total_discount, additional_charges) -> Decimal:
    """finalAmount = base - discount + charges; the only place it is derived."""
    return to_money(to_money(base_fee_amount) - to_money(total_discount) + to_money(additional_charges))


@dataclass(frozen=True)
class FeeComponent:
    """One named line of a class fee structure (e.g. Tuition Fee)."""

    name: str
    amount: Decimal
    is_optional: bool = False
    description: Optional[str] = None


@dataclass(frozen=True)
class FeeStructure:
    """Class-level fee template for one academic year.

    `section=None` means the structure applies to every section of the class.
    """

    structure_id: int
    class_name: str
    academic_year: str
    fee_components: tuple[FeeComponent, ...]
    total_monthly_fee: Decimal
    status: StructureStatus
    section: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class ComponentSnapshot:
    """Per-record copy of a structure component, customizable per student."""

    name: str
    base_amount: Decimal
    adjusted_amount: Decimal
    discount: Decimal = Decimal("0.00")
    is_applicable: bool = True

    @classmethod
    def from_component(cls, comp: FeeComponent) -> "ComponentSnapshot":
        return cls(
            name=comp.name,
            base_amount=comp.amount,
            adjusted_amount=comp.amount,
            discount=Decimal("0.00"),
            is_applicable=not comp.is_optional,
        )


@dataclass(frozen=True)
class FeeRecord:
    """One student's bill for one (month, year)."""

    fee_id: int
    student_id: int
    invoice_number: str
    month: str
    year: int
    fee_type: FeeType
    base_fee_amount: Decimal
    total_discount: Decimal
    additional_charges: Decimal
    due_date: date
    is_paid: bool
    status: FeeStatus
    generation_type: GenerationType
    fee_structure_id: Optional[int] = None
    components: tuple[ComponentSnapshot, ...] = ()
    generated_by: Optional[str] = None
    paid_date: Optional[datetime] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    remarks: Optional[str] = None
    discount_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def final_amount(self) -> Decimal:
        # Never read back from a stored copy.
        return compute_final_amount(self.base_fee_amount, self.total_discount, self.additional_charges)


@dataclass(frozen=True)
class NewFeeRecord:
    student_id: int
    month: str
    year: int
    fee_type: FeeType
    base_fee_amount: Decimal
    due_date: date
    generation_type: GenerationType
    fee_structure_id: Optional[int] = None
    components: tuple[ComponentSnapshot, ...] = ()
    generated_by: Optional[str] = None
    remarks: Optional[str] = None
    total_discount: Decimal = Decimal("0.00")
    additional_charges: Decimal = Decimal("0.00")

    @property
    def final_amount(self) -> Decimal:
        return compute_final_amount(self.base_fee_amount, self.total_discount, self.additional_charges)


@dataclass(frozen=True)
class FeeQuery:
    month: Optional[str] = None
    year: Optional[int] = None
    is_paid: Optional[bool] = None
    student_id: Optional[int] = None
    search: str = ""


@dataclass(frozen=True)
class StudentBrief:
    """Read-model projection of the owning student for fee listings."""

    student_id: int
    name: str
    roll_number: str
    class_name: str
    section: str


@dataclass(frozen=True)
class FeeSummary:
    total_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")
    pending_amount: Decimal = Decimal("0.00")
    total_fees: int = 0


@dataclass(frozen=True)
class FeePage:
    """Page rows, total count and summary from one consistent read."""

    rows: list[tuple[FeeRecord, Optional[StudentBrief]]] = field(default_factory=list)
    total: int = 0
    summary: FeeSummary = field(default_factory=FeeSummary)


@dataclass(frozen=True)
class StudentFeeSummary:
    total_pending: Decimal = Decimal("0.00")
    total_paid: Decimal = Decimal("0.00")
    fees_count: int = 0
