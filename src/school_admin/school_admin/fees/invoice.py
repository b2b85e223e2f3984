"""Invoice numbers and collision-safe insertion.

Two formats exist:

* generated bills: ``INV-<rollNumber>-<MON><year>-<4-digit time suffix>``
* manual entries:  ``INV-<year>-<MON>-<4-digit sequence>``

Neither suffix is unique on its own. Uniqueness comes from the store's unique
key on the invoice number: on a collision the next candidate is tried.
"""
from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from ..common.datetime_utils import month_abbr, now_local
from ..core.constants import KEY_FEE_INVOICE, MAX_INVOICE_ATTEMPTS
from ..core.exceptions import ConflictError, DuplicateKeyError
from .model import NewFeeRecord
from .repository import FeeRepository

logger = logging.getLogger(__name__)


def auto_invoice_number(*, roll_number: str, month: str, year: int, suffix: int) -> str:
    return f"INV-{roll_number}-{month_abbr(month)}{int(year)}-{int(suffix) % 10000:04d}"


def manual_invoice_number(*, year: int, month: str, sequence: int) -> str:
    return f"INV-{int(year)}-{month_abbr(month)}-{int(sequence):04d}"


class InvoiceAllocator:
    def __init__(
        self,
        fees: FeeRepository,
        *,
        clock: Callable = now_local,
        max_attempts: int = MAX_INVOICE_ATTEMPTS,
    ):
        self._fees = fees
        self._clock = clock
        self._max_attempts = int(max_attempts)

    def auto_candidates(self, *, roll_number: str, month: str, year: int) -> Iterator[str]:
        millis = int(self._clock().timestamp() * 1000)
        for attempt in range(self._max_attempts):
            yield auto_invoice_number(roll_number=roll_number, month=month, year=year, suffix=millis + attempt)

    def manual_candidates(self, *, month: str, year: int) -> Iterator[str]:
        start = self._fees.count_all() + 1
        for attempt in range(self._max_attempts):
            yield manual_invoice_number(year=year, month=month, sequence=start + attempt)

    def insert(self, new: NewFeeRecord, candidates: Iterable[str]) -> tuple[int, str]:
        """Insert `new` under the first free invoice number.

        Any other duplicate key (e.g. the student already billed for the
        period) propagates unchanged.
        """
        for invoice_number in candidates:
            try:
                return self._fees.insert(new, invoice_number=invoice_number), invoice_number
            except DuplicateKeyError as exc:
                if exc.key != KEY_FEE_INVOICE:
                    raise
                logger.debug("Invoice number %s taken, retrying", invoice_number)
        raise ConflictError("Could not allocate a unique invoice number")
