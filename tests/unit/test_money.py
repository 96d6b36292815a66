"""Unit tests for money and date helpers"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from billboard_ledger.utils.date_utils import add_months, as_utc_datetime, effective_timestamp
from billboard_ledger.utils.money import clamp, floor2, money_sum, round1, round2, to_decimal


def test_to_decimal_blank_and_float():
    """Test blanks count as zero and floats keep their short form"""
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("") == Decimal("0")
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("12.50") == Decimal("12.50")


def test_rounding_half_up():
    """Test cents and percentages round half-up"""
    assert round2(Decimal("2.675")) == Decimal("2.68")
    assert round2(Decimal("-2.675")) == Decimal("-2.68")
    assert round1(Decimal("33.35")) == Decimal("33.4")
    assert floor2(Decimal("33.339")) == Decimal("33.33")


def test_money_sum_and_clamp():
    """Test summing mixed inputs and clamping to bounds"""
    assert money_sum(["0.1", 0.2, None, Decimal("0.3")]) == Decimal("0.6")
    assert clamp(Decimal("5"), Decimal("0"), Decimal("3")) == Decimal("3")
    assert clamp(Decimal("-1"), Decimal("0")) == Decimal("0")


def test_effective_timestamp():
    """Test payment date wins over creation time and naive values are UTC"""
    created = datetime(2024, 3, 10, 9, 30)
    paid = date(2024, 3, 1)

    assert effective_timestamp(paid, created) == datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert effective_timestamp(None, created) == datetime(2024, 3, 10, 9, 30, tzinfo=timezone.utc)


def test_as_utc_datetime_converts_offsets():
    """Test aware datetimes are converted to UTC"""
    local = datetime(2024, 3, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))

    assert as_utc_datetime(local) == datetime(2024, 3, 1, 0, 0, tzinfo=timezone.utc)


def test_add_months_clamps_to_month_end():
    """Test month arithmetic across year ends and short months"""
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 11, 30), 3) == date(2024, 2, 29)
    assert add_months(date(2024, 12, 15), 1) == date(2025, 1, 15)
    assert add_months(date(2024, 5, 10), 0) == date(2024, 5, 10)
