from __future__ import annotations

from flask import Flask, request

from ..common.http import json_body, ok
from ..common.pagination import PageRequest
from ..common.validators import optional_str, parse_id
from ..container import Container
from .generator import GenerationScope
from .schemas import (
    AdjustFeeRequest,
    ClassWiseGenerateRequest,
    CreateStructureRequest,
    GenerateRequest,
    ManualFeeRequest,
    PaymentRequest,
    fee_query_from_args,
    fee_to_json,
    structure_to_json,
    student_summary_to_json,
    summary_to_json,
)


def register(app: Flask, container: Container) -> None:
    structures = container.fee_structure_service
    fees = container.fee_service
    generator = container.fee_generator

    @app.route("/fees/structure", methods=["POST"], endpoint="create_fee_structure")
    def create_fee_structure():
        req = CreateStructureRequest.from_json(json_body())
        structure = structures.create(req)
        return ok(201, message="Fee structure created successfully", feeStructure=structure_to_json(structure))

    @app.route("/fees/structures", methods=["GET"], endpoint="list_fee_structures")
    def list_fee_structures():
        items = structures.list_active()
        return ok(structures=[structure_to_json(s) for s in items], count=len(items))

    @app.route("/fees/structure/<structure_id>/deactivate", methods=["PUT"], endpoint="deactivate_fee_structure")
    def deactivate_fee_structure(structure_id: str):
        structure = structures.deactivate(parse_id(structure_id, "fee structure"))
        return ok(message="Fee structure deactivated", feeStructure=structure_to_json(structure))

    @app.route("/fees/generate", methods=["POST"], endpoint="generate_fees")
    def generate_fees():
        req = GenerateRequest.from_json(json_body())
        report = generator.generate(
            class_name=req.class_name,
            academic_year=req.academic_year or str(req.year),
            month=req.month,
            year=req.year,
            requested_by=req.generated_by,
            scope=GenerationScope(section=req.section, student_ids=req.student_ids),
        )
        return ok(
            message=f"Generated {report.created_count} fee records for {req.class_name} - {req.month} {req.year}",
            **report.to_dict(),
        )

    @app.route("/fees/generate-class-wise", methods=["POST"], endpoint="generate_class_wise_fees")
    def generate_class_wise_fees():
        req = ClassWiseGenerateRequest.from_json(json_body())
        report = generator.generate_class_wise(
            month=req.month,
            year=req.year,
            requested_by=req.generated_by,
            specific_classes=req.specific_classes,
        )
        return ok(
            message=f"Generated {report.created_count} fees, skipped {report.skipped_count}, errors {report.error_count}",
            **report.to_dict(),
        )

    @app.route("/fees/manual", methods=["POST"], endpoint="create_manual_fee")
    def create_manual_fee():
        req = ManualFeeRequest.from_json(json_body())
        fee, student = fees.create_manual(req)
        return ok(
            201,
            message="Manual fee created successfully",
            fee=fee_to_json(fee),
            student={
                "id": student.student_id,
                "name": student.name,
                "rollNumber": student.roll_number,
                "class": student.class_name,
                "section": student.section,
            },
        )

    @app.route("/fees", methods=["GET"], endpoint="list_fees")
    def list_fees():
        query = fee_query_from_args(request.args)
        page = PageRequest.from_args(request.args, default_limit=container.default_page_limit)
        result = fees.list_fees(query, page)
        return ok(
            fees=[fee_to_json(f, student) for f, student in result["fees"]],
            summary=summary_to_json(result["summary"]),
            pagination=result["pagination"],
        )

    @app.route("/fees/<fee_id>/adjust", methods=["PUT"], endpoint="adjust_fee")
    def adjust_fee(fee_id: str):
        fid = parse_id(fee_id, "fee")
        req = AdjustFeeRequest.from_json(json_body())
        fee = fees.adjust(fid, req)
        return ok(message="Fee adjusted successfully", fee=fee_to_json(fee))

    @app.route("/fees/<fee_id>/pay", methods=["PUT"], endpoint="pay_fee")
    def pay_fee(fee_id: str):
        fid = parse_id(fee_id, "fee")
        req = PaymentRequest.from_json(json_body())
        fee = fees.record_payment(fid, req)
        return ok(message="Payment recorded successfully", fee=fee_to_json(fee))

    @app.route("/fees/<fee_id>/cancel", methods=["PUT"], endpoint="cancel_fee")
    def cancel_fee(fee_id: str):
        fid = parse_id(fee_id, "fee")
        fee = fees.cancel(fid, remarks=optional_str(json_body().get("remarks")))
        return ok(message="Fee cancelled", fee=fee_to_json(fee))

    @app.route("/fees/mark-overdue", methods=["POST"], endpoint="mark_overdue_fees")
    def mark_overdue_fees():
        updated = fees.mark_overdue()
        return ok(updated=updated)

    @app.route("/fees/student-summary/<student_id>", methods=["GET"], endpoint="student_fee_summary")
    def student_fee_summary(student_id: str):
        summary = fees.student_summary(parse_id(student_id, "student"))
        return ok(**student_summary_to_json(summary))
