from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import StudentStatus


@dataclass(frozen=True)
class Student:
    """Domain entity: an enrolled student.

    Note: plain data object (no DB access code). Parent contact uses the flat
    shape only (parent_name / parent_email / parent_phone).
    """

    student_id: int
    name: str
    class_name: str
    section: str
    roll_number: str
    status: StudentStatus
    academic_year: str
    email: Optional[str] = None
    phone: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewStudent:
    name: str
    class_name: str
    section: str
    roll_number: str
    academic_year: str
    status: StudentStatus = StudentStatus.ACTIVE
    email: Optional[str] = None
    phone: Optional[str] = None
    parent_name: Optional[str] = None
    parent_email: Optional[str] = None
    parent_phone: Optional[str] = None
    address: Optional[str] = None


@dataclass(frozen=True)
class StudentQuery:
    search: str = ""
    class_name: Optional[str] = None
    section: Optional[str] = None
    status: Optional[StudentStatus] = StudentStatus.ACTIVE


# Columns a profile update may touch.
UPDATABLE_FIELDS = (
    "name",
    "email",
    "phone",
    "class_name",
    "section",
    "roll_number",
    "parent_name",
    "parent_email",
    "parent_phone",
    "address",
    "status",
)
