"""Default monthly fee structures for every class, used to bootstrap a new year."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..core.exceptions import ConflictError
from .model import FeeComponent
from .schemas import CreateStructureRequest
from .service import FeeStructureService

logger = logging.getLogger(__name__)

ACTIVITY_FEE = Decimal("300")
MAINTENANCE_FEE = Decimal("200")

# (class name, tuition fee); the monthly total adds the fixed activity and maintenance fees
DEFAULT_TUITION = (
    ("Pre-Primary Jr. KG", Decimal("1500")),
    ("Pre-Primary Sr. KG", Decimal("1700")),
    ("1st", Decimal("2000")),
    ("2nd", Decimal("2100")),
    ("3rd", Decimal("2200")),
    ("4th", Decimal("2300")),
    ("5th", Decimal("2400")),
    ("6th", Decimal("2500")),
    ("7th", Decimal("2600")),
    ("8th", Decimal("2700")),
    ("9th", Decimal("3000")),
    ("10th", Decimal("3500")),
)


def default_structure_requests(academic_year: str) -> list[CreateStructureRequest]:
    requests = []
    for class_name, tuition in DEFAULT_TUITION:
        components = (
            FeeComponent(name="Tuition Fee", amount=tuition),
            FeeComponent(name="Activity Fee", amount=ACTIVITY_FEE),
            FeeComponent(name="Maintenance Fee", amount=MAINTENANCE_FEE),
        )
        requests.append(
            CreateStructureRequest(
                class_name=class_name,
                total_monthly_fee=sum((c.amount for c in components), Decimal("0")),
                fee_components=components,
                academic_year=academic_year,
            )
        )
    return requests


def seed_default_structures(service: FeeStructureService, *, academic_year: str) -> tuple[int, int]:
    """Create any missing default structure. Returns (created, skipped)."""
    created = skipped = 0
    for req in default_structure_requests(academic_year):
        try:
            service.create(req)
            created += 1
        except ConflictError:
            skipped += 1
    logger.info("Seeded fee structures for %s: created=%d skipped=%d", academic_year, created, skipped)
    return created, skipped
