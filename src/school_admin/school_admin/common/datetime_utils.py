from __future__ import annotations

from datetime import date, datetime

from ..core.constants import DUE_DAY_OF_MONTH, MONTHS


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


def month_number(month: str) -> int:
    """1-based month number for a canonical month name."""
    return MONTHS.index(month) + 1


def month_abbr(month: str) -> str:
    return month[:3].upper()


def due_date_for(month: str, year: int) -> date:
    """Due date of a billing month: the 15th of the following month."""
    m = month_number(month)
    if m == 12:
        return date(int(year) + 1, 1, DUE_DAY_OF_MONTH)
    return date(int(year), m + 1, DUE_DAY_OF_MONTH)


def current_academic_year(today: date | None = None) -> str:
    return str((today or date.today()).year)
