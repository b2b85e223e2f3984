from __future__ import annotations

import json
import re
from contextlib import contextmanager
from decimal import Decimal
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import DuplicateKeyError
from .connection import DatabaseConnection

_DUP_KEY_RE = re.compile(r"for key '([^']+)'")


def _duplicate_key_name(exc: mysql.connector.Error) -> str:
    # MySQL 8 reports "table.key", older servers just "key".
    m = _DUP_KEY_RE.search(str(getattr(exc, "msg", "") or exc))
    if not m:
        return ""
    return m.group(1).split(".")[-1]


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True, snapshot: bool = False):
    """Yield (conn, cursor); commit on success, roll back on error.

    With `snapshot=True` every statement inside the block reads from one
    consistent snapshot (REPEATABLE READ, read-only transaction).
    Duplicate-key violations are re-raised as DuplicateKeyError.
    """
    conn = conn_factory.connect()
    try:
        if snapshot:
            conn.start_transaction(consistent_snapshot=True, isolation_level="REPEATABLE READ", readonly=True)
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.IntegrityError as exc:
        conn.rollback()
        if exc.errno == errorcode.ER_DUP_ENTRY:
            raise DuplicateKeyError(_duplicate_key_name(exc), str(exc)) from exc
        raise
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def dump_json(value: Any) -> str:
    return json.dumps(value, default=lambda o: str(o) if isinstance(o, Decimal) else o)


def load_json(value: Any) -> Any:
    """Normalize MySQL JSON columns across connector implementations.

    mysql-connector can return JSON as str, bytes/bytearray or an already
    decoded object depending on version and cursor type.
    """
    if value is None:
        return []
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value) if value else []
    return value


def in_clause(values) -> str:
    return ",".join(["%s"] * len(values))
