"""Request/response shapes for the fee endpoints.

Every request body is parsed into a frozen dataclass before it reaches a
service; missing or malformed fields raise ValidationError here.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.validators import (
    optional_str,
    parse_bool,
    parse_id,
    require_amount,
    require_month,
    require_non_empty,
    require_year,
)
from ..core.enums import FeeType
from ..core.exceptions import ValidationError
from .model import FeeComponent, FeeQuery, FeeRecord, FeeStructure, FeeSummary, StudentBrief, StudentFeeSummary


def _money(value: Decimal) -> float:
    return float(value)


def _list_of_str(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")
    return tuple(s for s in (optional_str(v) for v in value) if s)


@dataclass(frozen=True)
class CreateStructureRequest:
    class_name: str
    total_monthly_fee: Decimal
    fee_components: tuple[FeeComponent, ...] = ()
    section: Optional[str] = None
    academic_year: Optional[str] = None

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "CreateStructureRequest":
        data = data or {}
        class_name = optional_str(data.get("className"))
        if not class_name or data.get("totalMonthlyFee") in (None, ""):
            raise ValidationError("Class name and total monthly fee are required")

        raw_components = data.get("feeComponents") or []
        if not isinstance(raw_components, list):
            raise ValidationError("feeComponents must be a list")
        components = []
        for raw in raw_components:
            if not isinstance(raw, Mapping):
                raise ValidationError("Each fee component must be an object")
            components.append(
                FeeComponent(
                    name=require_non_empty(raw.get("name"), "Component name"),
                    amount=require_amount(raw.get("amount"), "Component amount"),
                    is_optional=bool(raw.get("isOptional", False)),
                    description=optional_str(raw.get("description")),
                )
            )

        return cls(
            class_name=class_name,
            total_monthly_fee=require_amount(data.get("totalMonthlyFee"), "Total monthly fee"),
            fee_components=tuple(components),
            section=optional_str(data.get("section")),
            academic_year=optional_str(data.get("academicYear")),
        )


@dataclass(frozen=True)
class GenerateRequest:
    """Single-class generation."""

    class_name: str
    month: str
    year: int
    generated_by: str
    academic_year: Optional[str] = None
    section: Optional[str] = None
    student_ids: tuple[int, ...] = ()

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "GenerateRequest":
        data = data or {}
        class_name = optional_str(data.get("className"))
        generated_by = optional_str(data.get("generatedBy"))
        if not class_name or not data.get("month") or not data.get("year") or not generated_by:
            raise ValidationError("className, month, year, and generatedBy are required")
        raw_ids = data.get("specificStudentIds") or []
        if not isinstance(raw_ids, list):
            raise ValidationError("specificStudentIds must be a list")
        return cls(
            class_name=class_name,
            month=require_month(data.get("month")),
            year=require_year(data.get("year")),
            generated_by=generated_by,
            academic_year=optional_str(data.get("academicYear")),
            section=optional_str(data.get("section")),
            student_ids=tuple(parse_id(i, "student") for i in raw_ids),
        )


@dataclass(frozen=True)
class ClassWiseGenerateRequest:
    month: str
    year: int
    generated_by: str
    specific_classes: tuple[str, ...] = ()

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "ClassWiseGenerateRequest":
        data = data or {}
        generated_by = optional_str(data.get("generatedBy"))
        if not data.get("month") or not data.get("year") or not generated_by:
            raise ValidationError("Month, year, and generatedBy are required")
        return cls(
            month=require_month(data.get("month")),
            year=require_year(data.get("year")),
            generated_by=generated_by,
            specific_classes=_list_of_str(data.get("specificClasses"), "specificClasses"),
        )


@dataclass(frozen=True)
class ManualFeeRequest:
    student_id: int
    month: str
    year: int
    amount: Decimal
    generated_by: str
    fee_type: FeeType = FeeType.MANUAL
    description: Optional[str] = None
    due_date: Optional[date] = None

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "ManualFeeRequest":
        data = data or {}
        required = ("studentId", "month", "year", "amount", "generatedBy")
        if any(data.get(k) in (None, "") for k in required):
            raise ValidationError("Student ID, month, year, amount, and generatedBy are required")

        fee_type_s = optional_str(data.get("feeType")) or FeeType.MANUAL.value
        try:
            fee_type = FeeType(fee_type_s)
        except ValueError:
            raise ValidationError(f"Invalid fee type: {fee_type_s!r}")

        due_date = None
        due_s = optional_str(data.get("dueDate"))
        if due_s:
            try:
                due_date = parse_iso_date(due_s[:10])
            except ValueError:
                raise ValidationError("Invalid due date (YYYY-MM-DD)")

        amount = require_amount(data.get("amount"), "Amount")
        if amount <= 0:
            raise ValidationError("Amount must be greater than zero")

        return cls(
            student_id=parse_id(data.get("studentId"), "student"),
            month=require_month(data.get("month")),
            year=require_year(data.get("year")),
            amount=amount,
            generated_by=require_non_empty(data.get("generatedBy"), "generatedBy"),
            fee_type=fee_type,
            description=optional_str(data.get("description")),
            due_date=due_date,
        )


@dataclass(frozen=True)
class AdjustFeeRequest:
    """Absolute values, not deltas."""

    discount: Decimal
    additional_charges: Decimal
    discount_reason: Optional[str] = None
    remarks: Optional[str] = None

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "AdjustFeeRequest":
        data = data or {}
        zero = Decimal("0.00")
        return cls(
            discount=require_amount(data.get("discount"), "Discount", default=zero),
            additional_charges=require_amount(data.get("additionalCharges"), "Additional charges", default=zero),
            discount_reason=optional_str(data.get("discountReason")),
            remarks=optional_str(data.get("remarks")),
        )


@dataclass(frozen=True)
class PaymentRequest:
    payment_method: str
    transaction_id: Optional[str] = None
    remarks: Optional[str] = None

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "PaymentRequest":
        data = data or {}
        method = optional_str(data.get("paymentMethod"))
        if not method:
            raise ValidationError("Payment method is required")
        return cls(
            payment_method=method,
            transaction_id=optional_str(data.get("transactionId")),
            remarks=optional_str(data.get("remarks")),
        )


def fee_query_from_args(args: Mapping[str, Any]) -> FeeQuery:
    month_s = optional_str(args.get("month"))
    year_s = optional_str(args.get("year"))
    student_s = optional_str(args.get("studentId"))
    return FeeQuery(
        month=require_month(month_s) if month_s else None,
        year=require_year(year_s) if year_s else None,
        is_paid=parse_bool(args.get("isPaid")),
        student_id=parse_id(student_s, "student") if student_s else None,
        search=(args.get("search") or "").strip(),
    )


def structure_to_json(s: FeeStructure) -> dict:
    return {
        "id": s.structure_id,
        "className": s.class_name,
        "section": s.section,
        "academicYear": s.academic_year,
        "feeComponents": [
            {
                "name": c.name,
                "amount": _money(c.amount),
                "isOptional": c.is_optional,
                "description": c.description,
            }
            for c in s.fee_components
        ],
        "totalMonthlyFee": _money(s.total_monthly_fee),
        "status": s.status.value,
        "createdAt": s.created_at.isoformat() if s.created_at else None,
    }


def student_brief_to_json(b: Optional[StudentBrief]) -> Optional[dict]:
    if b is None:
        return None
    return {
        "id": b.student_id,
        "name": b.name,
        "rollNumber": b.roll_number,
        "class": b.class_name,
        "section": b.section,
    }


def fee_to_json(f: FeeRecord, student: Optional[StudentBrief] = None) -> dict:
    return {
        "id": f.fee_id,
        "studentId": f.student_id,
        "student": student_brief_to_json(student),
        "feeStructureId": f.fee_structure_id,
        "invoiceNumber": f.invoice_number,
        "month": f.month,
        "year": f.year,
        "feeType": f.fee_type.value,
        "feeComponents": [
            {
                "name": c.name,
                "baseAmount": _money(c.base_amount),
                "adjustedAmount": _money(c.adjusted_amount),
                "discount": _money(c.discount),
                "isApplicable": c.is_applicable,
            }
            for c in f.components
        ],
        "baseFeeAmount": _money(f.base_fee_amount),
        "totalDiscount": _money(f.total_discount),
        "additionalCharges": _money(f.additional_charges),
        "finalAmount": _money(f.final_amount),
        "dueDate": f.due_date.isoformat(),
        "isPaid": f.is_paid,
        "status": f.status.value,
        "paidDate": f.paid_date.isoformat() if f.paid_date else None,
        "paymentMethod": f.payment_method,
        "transactionId": f.transaction_id,
        "generatedBy": f.generated_by,
        "generationType": f.generation_type.value,
        "remarks": f.remarks,
        "discountReason": f.discount_reason,
        "createdAt": f.created_at.isoformat() if f.created_at else None,
        "updatedAt": f.updated_at.isoformat() if f.updated_at else None,
    }


def summary_to_json(s: FeeSummary) -> dict:
    return {
        "totalAmount": _money(s.total_amount),
        "paidAmount": _money(s.paid_amount),
        "pendingAmount": _money(s.pending_amount),
        "totalFees": s.total_fees,
    }


def student_summary_to_json(s: StudentFeeSummary) -> dict:
    return {
        "totalPending": _money(s.total_pending),
        "totalPaid": _money(s.total_paid),
        "feesCount": s.fees_count,
    }
