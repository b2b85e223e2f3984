from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt
from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length
from ..core.constants import DEFAULT_TOKEN_HOURS, KEY_USER_EMAIL, MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, ConflictError, DuplicateKeyError
from .model import User
from .repository import UserRepository
from .schemas import LoginRequest, RegisterRequest

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenClaims:
    user_id: int
    role: Role


class TokenService:
    """Issue and verify HS256 bearer tokens carrying `userId` and `role`."""

    ALGORITHM = "HS256"

    def __init__(self, secret: str, *, expires_hours: int = DEFAULT_TOKEN_HOURS, clock: Callable = _utcnow):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._expires = timedelta(hours=int(expires_hours))
        self._clock = clock

    def issue(self, user: User) -> str:
        now = self._clock()
        payload = {
            "userId": user.user_id,
            "role": user.role.value,
            "iat": now,
            "exp": now + self._expires,
        }
        return jwt.encode(payload, self._secret, algorithm=self.ALGORITHM)

    def verify(self, token: str) -> TokenClaims:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.ALGORITHM])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidTokenError:
            raise AuthenticationError("Invalid token")

        try:
            return TokenClaims(user_id=int(payload["userId"]), role=Role(payload["role"]))
        except (KeyError, TypeError, ValueError):
            raise AuthenticationError("Invalid token")


class AuthService:
    """Use cases: register an account, log in, resolve a bearer token."""

    def __init__(self, users: UserRepository, tokens: TokenService):
        self._users = users
        self._tokens = tokens

    def register(self, req: RegisterRequest) -> User:
        require_min_length(req.password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(req.email):
            raise ConflictError("User already exists")

        try:
            user_id = self._users.create_user(
                name=req.name,
                email=req.email,
                password_hash=generate_password_hash(req.password),
                role=req.role,
            )
        except DuplicateKeyError as exc:
            if exc.key != KEY_USER_EMAIL:
                raise
            raise ConflictError("User already exists")

        logger.info("User created: %s (%s)", req.email, req.role.value)
        return self._users.get_by_id(user_id)

    def login(self, req: LoginRequest) -> tuple[str, User]:
        user = self._users.get_by_email(req.email)
        if not user:
            raise AuthenticationError("User not found")

        try:
            ok = check_password_hash(user.password_hash, req.password)
        except ValueError:
            # unknown hash method, e.g. a placeholder value
            ok = False
        if not ok:
            raise AuthenticationError("Invalid password")

        return self._tokens.issue(user), user

    def current_user(self, token: Optional[str]) -> User:
        if not token:
            raise AuthenticationError("Missing bearer token")
        claims = self._tokens.verify(token)
        user = self._users.get_by_id(claims.user_id)
        if not user:
            raise AuthenticationError("Invalid token")
        return user
