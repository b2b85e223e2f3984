from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .core.constants import DEFAULT_PAGE_LIMIT, DEFAULT_TOKEN_HOURS
from .database.connection import DBConfig, DatabaseConnection
from .fees.generator import FeeGenerator
from .fees.invoice import InvoiceAllocator
from .fees.mysql_fee_repository import MySQLFeeRepository
from .fees.mysql_fee_structure_repository import MySQLFeeStructureRepository
from .fees.repository import FeeRepository, FeeStructureRepository
from .fees.service import FeeService, FeeStructureService
from .students.mysql_student_repository import MySQLStudentRepository
from .students.repository import StudentRepository
from .students.service import StudentService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    users_repo: UserRepository
    students_repo: StudentRepository
    structures_repo: FeeStructureRepository
    fees_repo: FeeRepository

    auth_service: AuthService
    student_service: StudentService
    fee_structure_service: FeeStructureService
    fee_service: FeeService
    fee_generator: FeeGenerator

    default_page_limit: int = DEFAULT_PAGE_LIMIT

    def close(self) -> None:
        if self.conn is not None and not self.conn.closed:
            self.conn.close()
            logger.info("Database handle closed")


def wire_services(
    *,
    conn: Optional[DatabaseConnection],
    users_repo: UserRepository,
    students_repo: StudentRepository,
    structures_repo: FeeStructureRepository,
    fees_repo: FeeRepository,
    jwt_secret: str,
    jwt_expires_hours: int = DEFAULT_TOKEN_HOURS,
    default_page_limit: int = DEFAULT_PAGE_LIMIT,
) -> Container:
    """Build the service graph over any set of repositories."""
    invoices = InvoiceAllocator(fees_repo)
    return Container(
        conn=conn,
        users_repo=users_repo,
        students_repo=students_repo,
        structures_repo=structures_repo,
        fees_repo=fees_repo,
        auth_service=AuthService(users_repo, TokenService(jwt_secret, expires_hours=jwt_expires_hours)),
        student_service=StudentService(students_repo),
        fee_structure_service=FeeStructureService(structures_repo),
        fee_service=FeeService(fees_repo, students_repo, invoices=invoices),
        fee_generator=FeeGenerator(structures_repo, students_repo, fees_repo, invoices=invoices),
        default_page_limit=default_page_limit,
    )


def build_container(*, db_config: dict, settings=None) -> Container:
    conn = DatabaseConnection(DBConfig.from_dict(db_config))

    return wire_services(
        conn=conn,
        users_repo=MySQLUserRepository(conn),
        students_repo=MySQLStudentRepository(conn),
        structures_repo=MySQLFeeStructureRepository(conn),
        fees_repo=MySQLFeeRepository(conn),
        jwt_secret=str(getattr(settings, "JWT_SECRET", "") or getattr(settings, "SECRET_KEY", "")),
        jwt_expires_hours=int(getattr(settings, "JWT_EXPIRES_HOURS", DEFAULT_TOKEN_HOURS)),
        default_page_limit=int(getattr(settings, "DEFAULT_PAGE_LIMIT", DEFAULT_PAGE_LIMIT)),
    )
