from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from src.school_admin.school_admin.core.enums import Role
from src.school_admin.school_admin.core.exceptions import AuthenticationError, ConflictError, ValidationError
from src.school_admin.school_admin.users.schemas import LoginRequest, RegisterRequest
from src.school_admin.school_admin.users.service import AuthService, TokenService
from tests.fakes import FakeUserRepo

SECRET = "test-jwt-secret-0123456789abcdef0123"


def _auth(tokens=None):
    return AuthService(FakeUserRepo(), tokens or TokenService(SECRET))


def _register(auth, email="teacher@school.test", password="secret1"):
    return auth.register(
        RegisterRequest.from_json({"name": "T", "email": email, "password": password, "role": "teacher"})
    )


def test_register_hashes_password_and_normalises_email():
    auth = _auth()

    user = _register(auth, email="  Teacher@School.TEST ")

    assert user.email == "teacher@school.test"
    assert user.role == Role.TEACHER
    assert user.password_hash != "secret1"


def test_register_rejects_duplicates_and_short_passwords():
    auth = _auth()
    _register(auth)

    with pytest.raises(ConflictError):
        _register(auth)
    with pytest.raises(ValidationError):
        _register(auth, email="other@school.test", password="123")
    with pytest.raises(ValidationError):
        RegisterRequest.from_json({"name": "T", "email": "x@y.z", "password": "secret1", "role": "janitor"})
    with pytest.raises(ValidationError) as exc:
        RegisterRequest.from_json({"email": "x@y.z"})
    assert str(exc.value) == "All fields are required"


def test_login_issues_token_with_user_and_role():
    auth = _auth()
    user = _register(auth)

    token, logged_in = auth.login(LoginRequest.from_json({"email": "teacher@school.test", "password": "secret1"}))

    assert logged_in.user_id == user.user_id
    payload = jwt.decode(token, SECRET, algorithms=["HS256"])
    assert payload["userId"] == user.user_id
    assert payload["role"] == "teacher"
    assert auth.current_user(token).user_id == user.user_id


def test_login_failures():
    auth = _auth()
    _register(auth)

    with pytest.raises(AuthenticationError):
        auth.login(LoginRequest(email="nobody@school.test", password="secret1"))
    with pytest.raises(AuthenticationError):
        auth.login(LoginRequest(email="teacher@school.test", password="wrong-one"))


def test_expired_or_forged_tokens_are_rejected():
    past = datetime.now(timezone.utc) - timedelta(days=2)
    auth = _auth(TokenService(SECRET, expires_hours=1, clock=lambda: past))
    _register(auth)
    token, _ = auth.login(LoginRequest(email="teacher@school.test", password="secret1"))

    with pytest.raises(AuthenticationError) as exc:
        auth.current_user(token)
    assert "expired" in str(exc.value)

    forged = jwt.encode({"userId": 1, "role": "admin"}, "another-secret-0123456789abcdef012345", algorithm="HS256")
    with pytest.raises(AuthenticationError):
        _auth().current_user(forged)
    with pytest.raises(AuthenticationError):
        _auth().current_user("")
