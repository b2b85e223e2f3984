from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from src.school_admin.school_admin.common.datetime_utils import current_academic_year, due_date_for, month_abbr
from src.school_admin.school_admin.common.pagination import PageRequest, pagination_meta
from src.school_admin.school_admin.common.validators import parse_bool, parse_id, require_amount, require_month, require_year
from src.school_admin.school_admin.core.exceptions import ValidationError
from src.school_admin.school_admin.fees.model import compute_final_amount


@pytest.mark.parametrize(
    "month, year, expected",
    [
        ("January", 2025, date(2025, 2, 15)),
        ("November", 2025, date(2025, 12, 15)),
        ("December", 2025, date(2026, 1, 15)),
    ],
)
def test_due_date_is_fifteenth_of_next_month(month, year, expected):
    assert due_date_for(month, year) == expected


def test_month_helpers():
    assert require_month("january") == "January"
    assert month_abbr("September") == "SEP"
    assert current_academic_year(date(2025, 7, 1)) == "2025"
    with pytest.raises(ValidationError):
        require_month("Jan")


def test_ids_and_amounts():
    assert parse_id("12", "fee") == 12
    with pytest.raises(ValidationError) as exc:
        parse_id("abc", "fee")
    assert str(exc.value) == "Invalid fee ID"

    assert require_amount("10.5", "Amount") == Decimal("10.50")
    assert require_amount(None, "Discount", default=Decimal("0.00")) == Decimal("0.00")
    with pytest.raises(ValidationError):
        require_amount("-1", "Discount")
    with pytest.raises(ValidationError):
        require_amount("NaN", "Discount")


def test_year_bounds():
    assert require_year("2025") == 2025
    for bad in ("1999", "2101", "10000", 9999):
        with pytest.raises(ValidationError) as exc:
            require_year(bad)
        assert str(exc.value) == "year must be between 2000 and 2100"


def test_amount_upper_bound():
    assert require_amount("9999999999.99", "Amount") == Decimal("9999999999.99")
    with pytest.raises(ValidationError) as exc:
        require_amount("10000000000", "Amount")
    assert str(exc.value) == "Amount cannot exceed 9999999999.99"
    with pytest.raises(ValidationError):
        require_amount("1e40", "Amount")
    with pytest.raises(ValidationError):
        require_amount(1e40, "Amount")


def test_parse_bool():
    assert parse_bool("") is None
    assert parse_bool("true") is True
    assert parse_bool("0") is False
    with pytest.raises(ValidationError):
        parse_bool("maybe")


def test_final_amount_formula():
    assert compute_final_amount(Decimal("2700"), Decimal("500"), Decimal("100")) == Decimal("2300.00")


def test_pagination():
    page = PageRequest.from_args({"page": "2", "limit": "10"})
    assert page.offset == 10
    meta = pagination_meta(page, 25, total_key="totalFees")
    assert meta == {"currentPage": 2, "totalPages": 3, "totalFees": 25, "hasNext": True, "hasPrev": True}
    assert PageRequest.from_args({"limit": "100000"}).limit == 500
    with pytest.raises(ValidationError):
        PageRequest.from_args({"page": "x"})
