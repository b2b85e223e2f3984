from __future__ import annotations

from decimal import Decimal
from typing import Optional, Sequence

from ..core.enums import StructureStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, in_clause, load_json
from .model import FeeComponent, FeeStructure, to_money
from .repository import FeeStructureRepository

_COLUMNS = """
    structure_id, class_name, section, academic_year, fee_components,
    total_monthly_fee, status, created_at
"""


def _to_structure(r: dict) -> FeeStructure:
    return FeeStructure(
        structure_id=int(r["structure_id"]),
        class_name=r["class_name"],
        section=r.get("section"),
        academic_year=r["academic_year"],
        fee_components=tuple(
            FeeComponent(
                name=c["name"],
                amount=to_money(c["amount"]),
                is_optional=bool(c.get("isOptional", False)),
                description=c.get("description"),
            )
            for c in load_json(r["fee_components"])
        ),
        total_monthly_fee=to_money(r["total_monthly_fee"]),
        status=StructureStatus(r["status"]),
        created_at=r.get("created_at"),
    )


class MySQLFeeStructureRepository(FeeStructureRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        class_name: str,
        section: Optional[str],
        academic_year: str,
        fee_components: Sequence[FeeComponent],
        total_monthly_fee: Decimal,
    ) -> int:
        components = [
            {"name": c.name, "amount": str(c.amount), "isOptional": c.is_optional, "description": c.description}
            for c in fee_components
        ]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO fee_structures(class_name, section, academic_year, fee_components, total_monthly_fee, status)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    class_name,
                    section,
                    academic_year,
                    dump_json(components),
                    total_monthly_fee,
                    StructureStatus.ACTIVE.value,
                ),
            )
            return int(cur.lastrowid)

    def get_by_id(self, structure_id: int) -> Optional[FeeStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM fee_structures WHERE structure_id=%s", (int(structure_id),))
            r = fetchone(cur)
            return _to_structure(r) if r else None

    def find_active(self, *, class_name: str, academic_year: str) -> Optional[FeeStructure]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM fee_structures
                WHERE class_name=%s AND academic_year=%s AND status=%s
                """,
                (class_name, academic_year, StructureStatus.ACTIVE.value),
            )
            r = fetchone(cur)
            return _to_structure(r) if r else None

    def list_active(
        self,
        *,
        academic_year: Optional[str] = None,
        class_names: Optional[Sequence[str]] = None,
    ) -> Sequence[FeeStructure]:
        clauses = ["status=%s"]
        params: list[object] = [StructureStatus.ACTIVE.value]

        if academic_year:
            clauses.append("academic_year=%s")
            params.append(academic_year)
        if class_names:
            clauses.append(f"class_name IN ({in_clause(class_names)})")
            params.extend(class_names)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM fee_structures WHERE {' AND '.join(clauses)} ORDER BY class_name",
                tuple(params),
            )
            return [_to_structure(r) for r in fetchall(cur)]

    def set_status(self, structure_id: int, *, status: StructureStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE fee_structures SET status=%s WHERE structure_id=%s",
                (status.value, int(structure_id)),
            )
            if cur.rowcount > 0:
                return True
            cur.execute("SELECT 1 AS found FROM fee_structures WHERE structure_id=%s", (int(structure_id),))
            return fetchone(cur) is not None
