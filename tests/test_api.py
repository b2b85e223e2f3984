from __future__ import annotations

import pytest

from src.school_admin.school_admin.main import create_app
from tests.fakes import build_fake_container

STRUCTURE = {
    "className": "3rd",
    "academicYear": "2025",
    "totalMonthlyFee": 2700,
    "feeComponents": [
        {"name": "Tuition Fee", "amount": 2200},
        {"name": "Activity Fee", "amount": 300},
        {"name": "Maintenance Fee", "amount": 200},
    ],
}


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = build_fake_container()
    app = create_app(container)
    with app.test_client() as c:
        yield c


def _enrol(client, name, **extra):
    res = client.post("/students", json={"name": name, "class": "3rd", **extra})
    assert res.status_code == 201
    return res.get_json()["student"]


def _generate_january(client):
    assert client.post("/fees/structure", json=STRUCTURE).status_code == 201
    res = client.post(
        "/fees/generate",
        json={"className": "3rd", "month": "January", "year": 2025, "generatedBy": "admin"},
    )
    assert res.status_code == 200
    return res.get_json()


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.get_json() == {"success": True, "status": "ok"}


def test_structure_create_list_and_duplicate(client):
    res = client.post("/fees/structure", json=STRUCTURE)
    body = res.get_json()
    assert res.status_code == 201
    assert body["feeStructure"]["totalMonthlyFee"] == 2700.0

    dup = client.post("/fees/structure", json=STRUCTURE)
    assert dup.status_code == 400
    assert dup.get_json() == {"success": False, "message": "Fee structure already exists for this class"}

    listed = client.get("/fees/structures").get_json()
    assert listed["count"] == 1

    missing = client.post("/fees/structure", json={"className": "3rd"})
    assert missing.status_code == 400
    assert missing.get_json()["message"] == "Class name and total monthly fee are required"


def test_generate_adjust_and_pay(client):
    _enrol(client, "Asha")
    _enrol(client, "Ravi")
    report = _generate_january(client)
    assert report["generated"] == 2
    assert report["details"]["created"][0]["dueDate"] == "2025-02-15"

    fee_id = report["details"]["created"][0]["feeId"]
    adj = client.put(f"/fees/{fee_id}/adjust", json={"discount": 500, "additionalCharges": 100})
    assert adj.status_code == 200
    assert adj.get_json()["fee"]["finalAmount"] == 2300.0

    no_method = client.put(f"/fees/{fee_id}/pay", json={})
    assert no_method.status_code == 400
    assert no_method.get_json()["message"] == "Payment method is required"

    paid = client.put(f"/fees/{fee_id}/pay", json={"paymentMethod": "cash"})
    assert paid.status_code == 200
    assert paid.get_json()["fee"]["isPaid"] is True

    again = client.put(f"/fees/{fee_id}/pay", json={"paymentMethod": "cash"})
    assert again.status_code == 400
    assert "already paid" in again.get_json()["message"]

    rerun = client.post(
        "/fees/generate",
        json={"className": "3rd", "month": "January", "year": 2025, "generatedBy": "admin"},
    ).get_json()
    assert rerun["generated"] == 0
    assert rerun["skipped"] == 2


def test_generate_without_structure_is_404(client):
    res = client.post(
        "/fees/generate",
        json={"className": "9th", "month": "January", "year": 2025, "generatedBy": "admin"},
    )
    assert res.status_code == 404


def test_class_wise_requires_fields(client):
    res = client.post("/fees/generate-class-wise", json={"month": "January"})
    assert res.status_code == 400
    assert res.get_json()["message"] == "Month, year, and generatedBy are required"

    none = client.post("/fees/generate-class-wise", json={"month": "January", "year": 2025, "generatedBy": "a"})
    assert none.status_code == 400


def test_list_fees_with_summary_and_students(client):
    _enrol(client, "Asha")
    _enrol(client, "Ravi")
    report = _generate_january(client)
    client.put(f"/fees/{report['details']['created'][0]['feeId']}/pay", json={"paymentMethod": "upi"})

    body = client.get("/fees?month=January&year=2025&limit=1").get_json()

    assert body["summary"] == {"totalAmount": 5400.0, "paidAmount": 2700.0, "pendingAmount": 2700.0, "totalFees": 2}
    assert body["pagination"]["totalFees"] == 2
    assert len(body["fees"]) == 1
    assert body["fees"][0]["student"]["class"] == "3rd"

    unpaid = client.get("/fees?isPaid=false").get_json()
    assert [f["isPaid"] for f in unpaid["fees"]] == [False]

    assert client.get("/fees?year=abc").status_code == 400


def test_manual_fee(client):
    student = _enrol(client, "Asha")
    body = {"studentId": student["id"], "month": "March", "year": 2025, "amount": 750, "generatedBy": "office"}

    res = client.post("/fees/manual", json=body)
    assert res.status_code == 201
    data = res.get_json()
    assert data["fee"]["invoiceNumber"] == "INV-2025-MAR-0001"
    assert data["fee"]["dueDate"] == "2025-04-15"
    assert data["student"]["rollNumber"] == student["rollNumber"]

    dup = client.post("/fees/manual", json=body)
    assert dup.status_code == 400

    missing = client.post("/fees/manual", json={**body, "studentId": 999})
    assert missing.status_code == 404

    bad = client.post("/fees/manual", json={"month": "March"})
    assert bad.get_json()["message"] == "Student ID, month, year, amount, and generatedBy are required"


def test_cancel_overdue_and_student_summary(client):
    student = _enrol(client, "Asha")
    report = _generate_january(client)
    fee_id = report["details"]["created"][0]["feeId"]

    overdue = client.post("/fees/mark-overdue").get_json()
    assert overdue["success"] is True

    cancelled = client.put(f"/fees/{fee_id}/cancel", json={"remarks": "left"})
    assert cancelled.get_json()["fee"]["status"] == "cancelled"

    summary = client.get(f"/fees/student-summary/{student['id']}").get_json()
    assert summary["feesCount"] == 1
    assert summary["totalPaid"] == 0.0

    assert client.get("/fees/student-summary/not-an-id").status_code == 400


def test_malformed_and_unknown_fee_ids(client):
    res = client.put("/fees/abc/pay", json={"paymentMethod": "cash"})
    assert res.status_code == 400
    assert res.get_json()["message"] == "Invalid fee ID"

    assert client.put("/fees/999/pay", json={"paymentMethod": "cash"}).status_code == 404


def test_student_crud(client):
    created = _enrol(client, "Asha", parentName="P. Patel")
    assert created["rollNumber"].startswith("03A")
    assert created["parentName"] == "P. Patel"

    got = client.get(f"/students/{created['id']}")
    assert got.status_code == 200

    updated = client.put(f"/students/{created['id']}", json={"phone": "555"}).get_json()
    assert updated["student"]["phone"] == "555"

    assert client.delete(f"/students/{created['id']}").status_code == 200
    assert client.get("/students").get_json()["students"] == []
    assert client.get("/students/999").status_code == 404

    legacy = client.post("/students", json={"name": "B", "class": "3rd", "parentInfo": {"name": "x"}})
    assert legacy.status_code == 400


def test_auth_flow(client):
    reg = client.post(
        "/auth/register",
        json={"name": "Admin", "email": "admin@school.test", "password": "secret1", "role": "admin"},
    )
    assert reg.status_code == 201

    dup = client.post(
        "/auth/register",
        json={"name": "Admin", "email": "admin@school.test", "password": "secret1", "role": "admin"},
    )
    assert dup.status_code == 400

    bad = client.post("/auth/login", json={"email": "admin@school.test", "password": "nope"})
    assert bad.status_code == 400

    login = client.post("/auth/login", json={"email": "admin@school.test", "password": "secret1"}).get_json()
    token = login["token"]
    assert login["user"]["role"] == "admin"

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.get_json()["user"]["email"] == "admin@school.test"

    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_out_of_range_year_is_a_validation_error(client):
    student = _enrol(client, "Asha")
    assert client.post("/fees/structure", json=STRUCTURE).status_code == 201

    manual = client.post(
        "/fees/manual",
        json={"studentId": student["id"], "month": "March", "year": 10000, "amount": 750, "generatedBy": "office"},
    )
    assert manual.status_code == 400
    assert manual.get_json()["message"] == "year must be between 2000 and 2100"

    generate = client.post(
        "/fees/generate",
        json={"className": "3rd", "month": "December", "year": 9999, "generatedBy": "admin"},
    )
    assert generate.status_code == 400

    class_wise = client.post(
        "/fees/generate-class-wise",
        json={"month": "December", "year": 9999, "generatedBy": "admin"},
    )
    assert class_wise.status_code == 400

    assert client.get("/fees?year=10000").status_code == 400
    assert client.get("/fees").get_json()["fees"] == []


def test_amount_beyond_column_limit_is_a_validation_error(client):
    student = _enrol(client, "Asha")

    structure = client.post("/fees/structure", json={**STRUCTURE, "totalMonthlyFee": "1e40"})
    assert structure.status_code == 400
    assert structure.get_json()["success"] is False

    manual = client.post(
        "/fees/manual",
        json={"studentId": student["id"], "month": "March", "year": 2025, "amount": 1e40, "generatedBy": "office"},
    )
    assert manual.status_code == 400

    blank_author = client.post(
        "/fees/manual",
        json={"studentId": student["id"], "month": "March", "year": 2025, "amount": 750, "generatedBy": "  "},
    )
    assert blank_author.status_code == 400
