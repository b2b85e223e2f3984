from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..common.validators import optional_str
from ..core.enums import Role
from ..core.exceptions import ValidationError
from .model import User


def _email(value: Any) -> Optional[str]:
    s = optional_str(value)
    return s.lower() if s else None


@dataclass(frozen=True)
class RegisterRequest:
    name: str
    email: str
    password: str
    role: Role

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "RegisterRequest":
        data = data or {}
        name = optional_str(data.get("name"))
        email = _email(data.get("email"))
        password = data.get("password") or ""
        role_s = optional_str(data.get("role"))
        if not (name and email and password and role_s):
            raise ValidationError("All fields are required")
        try:
            role = Role(role_s.lower())
        except ValueError:
            raise ValidationError(f"Invalid role: {role_s}")
        return cls(name=name, email=email, password=str(password), role=role)


@dataclass(frozen=True)
class LoginRequest:
    email: str
    password: str

    @classmethod
    def from_json(cls, data: Optional[Mapping[str, Any]]) -> "LoginRequest":
        data = data or {}
        email = _email(data.get("email"))
        password = data.get("password") or ""
        if not email or not password:
            raise ValidationError("Email and password are required")
        return cls(email=email, password=str(password))


def user_to_json(user: User) -> dict:
    return {"id": user.user_id, "email": user.email, "role": user.role.value, "name": user.name}
