from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from ..core.enums import FeeStatus, FeeType, GenerationType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import (
    ComponentSnapshot,
    FeePage,
    FeeQuery,
    FeeRecord,
    FeeSummary,
    NewFeeRecord,
    StudentBrief,
    StudentFeeSummary,
    to_money,
)
from .repository import FeeRepository

_COLUMNS = """
    f.fee_id, f.student_id, f.fee_structure_id, f.invoice_number, f.month, f.year,
    f.fee_type, f.fee_components, f.base_fee_amount, f.total_discount,
    f.additional_charges, f.due_date, f.is_paid, f.status, f.paid_date,
    f.payment_method, f.transaction_id, f.generated_by, f.generation_type,
    f.remarks, f.discount_reason, f.created_at, f.updated_at
"""


def _to_fee(r: dict) -> FeeRecord:
    return FeeRecord(
        fee_id=int(r["fee_id"]),
        student_id=int(r["student_id"]),
        fee_structure_id=r.get("fee_structure_id"),
        invoice_number=r["invoice_number"],
        month=r["month"],
        year=int(r["year"]),
        fee_type=FeeType(r["fee_type"]),
        components=tuple(
            ComponentSnapshot(
                name=c["name"],
                base_amount=to_money(c["baseAmount"]),
                adjusted_amount=to_money(c["adjustedAmount"]),
                discount=to_money(c.get("discount", 0)),
                is_applicable=bool(c.get("isApplicable", True)),
            )
            for c in load_json(r["fee_components"])
        ),
        base_fee_amount=to_money(r["base_fee_amount"]),
        total_discount=to_money(r["total_discount"]),
        additional_charges=to_money(r["additional_charges"]),
        due_date=r["due_date"],
        is_paid=bool(r["is_paid"]),
        status=FeeStatus(r["status"]),
        paid_date=r.get("paid_date"),
        payment_method=r.get("payment_method"),
        transaction_id=r.get("transaction_id"),
        generated_by=r.get("generated_by"),
        generation_type=GenerationType(r["generation_type"]),
        remarks=r.get("remarks"),
        discount_reason=r.get("discount_reason"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


def _components_json(components) -> str:
    return dump_json(
        [
            {
                "name": c.name,
                "baseAmount": str(c.base_amount),
                "adjustedAmount": str(c.adjusted_amount),
                "discount": str(c.discount),
                "isApplicable": c.is_applicable,
            }
            for c in components
        ]
    )


class MySQLFeeRepository(FeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, fee_id: int) -> Optional[FeeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM fees f WHERE f.fee_id=%s", (int(fee_id),))
            r = fetchone(cur)
            return _to_fee(r) if r else None

    def find_for_period(self, *, student_id: int, month: str, year: int) -> Optional[FeeRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM fees f WHERE f.student_id=%s AND f.month=%s AND f.year=%s",
                (int(student_id), month, int(year)),
            )
            r = fetchone(cur)
            return _to_fee(r) if r else None

    def insert(self, new: NewFeeRecord, *, invoice_number: str) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fees(
                    student_id, fee_structure_id, invoice_number, month, year, fee_type,
                    fee_components, base_fee_amount, total_discount, additional_charges,
                    final_amount, due_date, is_paid, status, generated_by, generation_type, remarks
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,0,%s,%s,%s,%s)
                """,
                (
                    int(new.student_id),
                    new.fee_structure_id,
                    invoice_number,
                    new.month,
                    int(new.year),
                    new.fee_type.value,
                    _components_json(new.components),
                    new.base_fee_amount,
                    new.total_discount,
                    new.additional_charges,
                    new.final_amount,
                    new.due_date,
                    FeeStatus.PENDING.value,
                    new.generated_by,
                    new.generation_type.value,
                    new.remarks,
                ),
            )
            return int(cur.lastrowid)

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM fees")
            return int(fetchone(cur)["n"])

    def update_adjustment(
        self,
        fee_id: int,
        *,
        total_discount: Decimal,
        additional_charges: Decimal,
        final_amount: Decimal,
        discount_reason: Optional[str],
        remarks: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE fees
                SET total_discount=%s, additional_charges=%s, final_amount=%s,
                    discount_reason=%s, remarks=%s
                WHERE fee_id=%s AND is_paid=0 AND status<>%s
                """,
                (
                    total_discount,
                    additional_charges,
                    final_amount,
                    discount_reason,
                    remarks,
                    int(fee_id),
                    FeeStatus.CANCELLED.value,
                ),
            )
            if cur.rowcount > 0:
                return True
            # Identical re-adjustments leave rowcount at 0.
            cur.execute(
                "SELECT 1 AS found FROM fees WHERE fee_id=%s AND is_paid=0 AND status<>%s",
                (int(fee_id), FeeStatus.CANCELLED.value),
            )
            return fetchone(cur) is not None

    def mark_paid(
        self,
        fee_id: int,
        *,
        paid_date: datetime,
        payment_method: str,
        transaction_id: Optional[str],
        remarks: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE fees
                SET is_paid=1, status=%s, paid_date=%s, payment_method=%s,
                    transaction_id=COALESCE(%s, transaction_id),
                    remarks=COALESCE(%s, remarks)
                WHERE fee_id=%s AND is_paid=0 AND status<>%s
                """,
                (
                    FeeStatus.PAID.value,
                    paid_date,
                    payment_method,
                    transaction_id,
                    remarks,
                    int(fee_id),
                    FeeStatus.CANCELLED.value,
                ),
            )
            return cur.rowcount > 0

    def cancel(self, fee_id: int, *, remarks: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE fees SET status=%s, remarks=COALESCE(%s, remarks)
                WHERE fee_id=%s AND is_paid=0 AND status<>%s
                """,
                (FeeStatus.CANCELLED.value, remarks, int(fee_id), FeeStatus.CANCELLED.value),
            )
            return cur.rowcount > 0

    def mark_overdue(self, *, today: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE fees SET status=%s WHERE status=%s AND is_paid=0 AND due_date<%s",
                (FeeStatus.OVERDUE.value, FeeStatus.PENDING.value, today),
            )
            return int(cur.rowcount)

    def search(self, query: FeeQuery, *, page: int, limit: int) -> FeePage:
        clauses = ["1=1"]
        params: list[object] = []

        if query.month:
            clauses.append("f.month=%s")
            params.append(query.month)
        if query.year is not None:
            clauses.append("f.year=%s")
            params.append(int(query.year))
        if query.is_paid is not None:
            clauses.append("f.is_paid=%s")
            params.append(1 if query.is_paid else 0)
        if query.student_id is not None:
            clauses.append("f.student_id=%s")
            params.append(int(query.student_id))

        offset = (int(page) - 1) * int(limit)

        with db_cursor(self._conn_factory, snapshot=True) as (_, cur):
            if query.search and query.student_id is None:
                like = f"%{query.search}%"
                # Stage 1: students whose name or roll number matches.
                cur.execute(
                    "SELECT student_id FROM students WHERE name LIKE %s OR roll_number LIKE %s",
                    (like, like),
                )
                student_ids = [int(r["student_id"]) for r in fetchall(cur)]
                # Stage 2: invoice match OR owned by one of those students.
                if student_ids:
                    clauses.append(f"(f.invoice_number LIKE %s OR f.student_id IN ({in_clause(student_ids)}))")
                    params.extend([like, *student_ids])
                else:
                    clauses.append("f.invoice_number LIKE %s")
                    params.append(like)

            where = " AND ".join(clauses)

            cur.execute(
                f"""
                SELECT {_COLUMNS},
                       s.name AS s_name, s.roll_number AS s_roll_number,
                       s.class_name AS s_class_name, s.section AS s_section
                FROM fees f
                LEFT JOIN students s ON s.student_id = f.student_id
                WHERE {where}
                ORDER BY f.created_at DESC, f.fee_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [int(limit), offset]),
            )
            rows = []
            for r in fetchall(cur):
                brief = None
                if r.get("s_name") is not None:
                    brief = StudentBrief(
                        student_id=int(r["student_id"]),
                        name=r["s_name"],
                        roll_number=r["s_roll_number"],
                        class_name=r["s_class_name"],
                        section=r["s_section"],
                    )
                rows.append((_to_fee(r), brief))

            cur.execute(
                f"""
                SELECT COUNT(*) AS total_fees,
                       COALESCE(SUM(f.base_fee_amount), 0) AS total_amount,
                       COALESCE(SUM(CASE WHEN f.is_paid=1 THEN f.base_fee_amount ELSE 0 END), 0) AS paid_amount,
                       COALESCE(SUM(CASE WHEN f.is_paid=0 THEN f.base_fee_amount ELSE 0 END), 0) AS pending_amount
                FROM fees f
                WHERE {where}
                """,
                tuple(params),
            )
            s = fetchone(cur) or {}
            summary = FeeSummary(
                total_amount=to_money(s.get("total_amount", 0)),
                paid_amount=to_money(s.get("paid_amount", 0)),
                pending_amount=to_money(s.get("pending_amount", 0)),
                total_fees=int(s.get("total_fees", 0)),
            )
            return FeePage(rows=rows, total=summary.total_fees, summary=summary)

    def student_summary(self, student_id: int) -> StudentFeeSummary:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS fees_count,
                       COALESCE(SUM(CASE WHEN is_paid=0 THEN base_fee_amount ELSE 0 END), 0) AS total_pending,
                       COALESCE(SUM(CASE WHEN is_paid=1 THEN base_fee_amount ELSE 0 END), 0) AS total_paid
                FROM fees
                WHERE student_id=%s
                """,
                (int(student_id),),
            )
            r = fetchone(cur) or {}
            return StudentFeeSummary(
                total_pending=to_money(r.get("total_pending", 0)),
                total_paid=to_money(r.get("total_paid", 0)),
                fees_count=int(r.get("fees_count", 0)),
            )
