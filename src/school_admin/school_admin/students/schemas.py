"""Request/response shapes for the student endpoints."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import optional_str
from ..core.enums import StudentStatus
from ..core.exceptions import ValidationError
from .model import Student, StudentQuery

# JSON key -> column name
_FIELD_MAP = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "class": "class_name",
    "section": "section",
    "rollNumber": "roll_number",
    "parentName": "parent_name",
    "parentEmail": "parent_email",
    "parentPhone": "parent_phone",
    "address": "address",
    "status": "status",
}


def _reject_legacy_shape(data: Mapping[str, Any]) -> None:
    if "parentInfo" in data:
        raise ValidationError("parentInfo is not supported; use parentName, parentEmail and parentPhone")


def parse_status(value: Any) -> StudentStatus:
    try:
        return StudentStatus(str(value).strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid status: {value!r}")


@dataclass(frozen=True)
class CreateStudentRequest:
    name: str
    class_name: str
    section: Optional[str] = None
    roll_number: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "CreateStudentRequest":
        data = data or {}
        _reject_legacy_shape(data)
        name = optional_str(data.get("name"))
        class_name = optional_str(data.get("class"))
        if not name or not class_name:
            raise ValidationError("Name and class are required")
        return cls(
            name=name,
            class_name=class_name,
            section=optional_str(data.get("section")),
            roll_number=optional_str(data.get("rollNumber")),
            email=optional_str(data.get("email")),
            phone=optional_str(data.get("phone")),
            parent_name=optional_str(data.get("parentName")),
            parent_email=optional_str(data.get("parentEmail")),
            parent_phone=optional_str(data.get("parentPhone")),
            address=optional_str(data.get("address")),
        )


@dataclass(frozen=True)
class UpdateStudentRequest:
    """Partial update: only keys present in the body are changed."""

    fields: Mapping[str, Any]

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "UpdateStudentRequest":
        data = data or {}
        _reject_legacy_shape(data)
        fields: dict[str, Any] = {}
        for key, column in _FIELD_MAP.items():
            if key not in data:
                continue
            value = optional_str(data.get(key))
            if column == "status":
                if value is None:
                    raise ValidationError("Status cannot be empty")
                fields[column] = parse_status(value)
            elif column in {"name", "class_name", "section", "roll_number"}:
                if value is None:
                    raise ValidationError(f"{key} cannot be empty")
                fields[column] = value
            else:
                fields[column] = value
        return cls(fields=fields)


def student_query_from_args(args: Mapping[str, Any]) -> StudentQuery:
    status_s = args.get("status", StudentStatus.ACTIVE.value)
    return StudentQuery(
        search=(args.get("search") or "").strip(),
        class_name=optional_str(args.get("class")),
        section=optional_str(args.get("section")),
        status=parse_status(status_s) if status_s else None,
    )


def student_to_json(s: Student) -> dict:
    return {
        "id": s.student_id,
        "name": s.name,
        "email": s.email,
        "phone": s.phone,
        "class": s.class_name,
        "section": s.section,
        "rollNumber": s.roll_number,
        "parentName": s.parent_name,
        "parentEmail": s.parent_email,
        "parentPhone": s.parent_phone,
        "address": s.address,
        "status": s.status.value,
        "academicYear": s.academic_year,
        "createdAt": s.created_at.isoformat() if s.created_at else None,
        "updatedAt": s.updated_at.isoformat() if s.updated_at else None,
    }
