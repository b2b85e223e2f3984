from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User role used for authorization."""

    STUDENT = "student"
    PARENT = "parent"
    TEACHER = "teacher"
    ADMIN = "admin"


class StudentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    GRADUATED = "graduated"
    TRANSFERRED = "transferred"


class StructureStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class FeeStatus(str, Enum):
    """Lifecycle of a fee record. Only payment recording moves a record to PAID."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class FeeType(str, Enum):
    MONTHLY = "monthly"
    ADMISSION = "admission"
    EXAM = "exam"
    TRANSPORT = "transport"
    LIBRARY = "library"
    SPORTS = "sports"
    MANUAL = "manual"
    OTHER = "other"


class GenerationType(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"
