from __future__ import annotations

from flask import Flask, request

from ..common.http import fail, json_body, ok
from ..container import Container
from ..core.exceptions import AuthenticationError
from .schemas import LoginRequest, RegisterRequest, user_to_json


def _bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def register(app: Flask, container: Container) -> None:
    auth = container.auth_service

    @app.route("/auth/register", methods=["POST"], endpoint="auth_register")
    def register_user():
        req = RegisterRequest.from_json(json_body())
        user = auth.register(req)
        return ok(201, message="User created successfully", user=user_to_json(user))

    @app.route("/auth/login", methods=["POST"], endpoint="auth_login")
    def login():
        req = LoginRequest.from_json(json_body())
        token, user = auth.login(req)
        return ok(token=token, user=user_to_json(user))

    @app.route("/auth/me", methods=["GET"], endpoint="auth_me")
    def me():
        try:
            user = auth.current_user(_bearer_token())
        except AuthenticationError as e:
            return fail(str(e), 401)
        return ok(user=user_to_json(user))
