from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..common.pagination import PageRequest
from ..common.validators import parse_id
from ..container import Container
from .schemas import CreateStudentRequest, UpdateStudentRequest, student_query_from_args, student_to_json


def register(app: Flask, container: Container) -> None:
    service = container.student_service

    @app.route("/students", methods=["GET"], endpoint="list_students")
    def list_students():
        query = student_query_from_args(request.args)
        page = PageRequest.from_args(request.args, default_limit=container.default_page_limit)
        result = service.list_students(query, page)
        return ok(
            students=[student_to_json(s) for s in result["students"]],
            pagination=result["pagination"],
        )

    @app.route("/students", methods=["POST"], endpoint="create_student")
    def create_student():
        req = CreateStudentRequest.from_json(json_body())
        student = service.create_student(req)
        return ok(201, message="Student created successfully", student=student_to_json(student))

    @app.route("/students/<student_id>", methods=["GET"], endpoint="get_student")
    def get_student(student_id: str):
        student = service.get(parse_id(student_id, "student"))
        return ok(student=student_to_json(student))

    @app.route("/students/<student_id>", methods=["PUT"], endpoint="update_student")
    def update_student(student_id: str):
        sid = parse_id(student_id, "student")
        req = UpdateStudentRequest.from_json(json_body())
        student = service.update_student(sid, req)
        return ok(message="Student updated successfully", student=student_to_json(student))

    @app.route("/students/<student_id>", methods=["DELETE"], endpoint="delete_student")
    def delete_student(student_id: str):
        student = service.deactivate(parse_id(student_id, "student"))
        return ok(message="Student deactivated successfully", student=student_to_json(student))
