from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from ..core.constants import MAX_AMOUNT, MAX_FEE_YEAR, MIN_FEE_YEAR, MONTHS
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_min_length(value: Optional[str], field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name} must be at least {min_len} characters")
    return value


def optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def require_month(value: Optional[str]) -> str:
    """Return the canonical month name; matching is case-insensitive."""
    v = (value or "").strip().lower()
    for name in MONTHS:
        if name.lower() == v:
            return name
    raise ValidationError(f"Invalid month: {value!r}")


def require_positive_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}")
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name}")
    if n <= 0:
        raise ValidationError(f"Invalid {field_name}")
    return n


def require_year(value: Any, field_name: str = "year") -> int:
    year = require_positive_int(value, field_name)
    if not MIN_FEE_YEAR <= year <= MAX_FEE_YEAR:
        raise ValidationError(f"{field_name} must be between {MIN_FEE_YEAR} and {MAX_FEE_YEAR}")
    return year


def parse_id(value: Any, entity: str) -> int:
    """Parse a path/body identifier; malformed ids are validation errors, not 404s."""
    try:
        return require_positive_int(value, f"{entity} ID")
    except ValidationError:
        raise ValidationError(f"Invalid {entity} ID")


def require_amount(value: Any, field_name: str, *, default: Optional[Decimal] = None) -> Decimal:
    if value is None or value == "":
        if default is not None:
            return default
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"Invalid {field_name}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid {field_name}")
    if not amount.is_finite():
        raise ValidationError(f"Invalid {field_name}")
    if amount < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field_name} cannot exceed {MAX_AMOUNT}")
    try:
        return amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError(f"Invalid {field_name}")


def parse_bool(value: Any) -> Optional[bool]:
    """Query-string boolean: '' means "no filter"."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    v = str(value).strip().lower()
    if v in {"true", "1", "yes"}:
        return True
    if v in {"false", "0", "no"}:
        return False
    raise ValidationError(f"Invalid boolean value: {value!r}")
