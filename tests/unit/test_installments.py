"""Unit tests for installment schedule generation"""

from datetime import date
from decimal import Decimal

import pytest

from billboard_ledger.domain.exceptions import InvalidScheduleError
from billboard_ledger.domain.installments import (
    distribute_evenly,
    distribute_with_interval,
    group_repeating_installments,
    unscheduled_amount,
)

START = date(2024, 1, 31)


def test_distribute_evenly_equal_split():
    """Test plan with evenly divisible amount"""
    installments = distribute_evenly(Decimal("1200"), 4, START)

    assert len(installments) == 4
    assert all(inst.amount == Decimal("300.00") for inst in installments)
    assert sum(inst.amount for inst in installments) == Decimal("1200")


def test_distribute_evenly_rounding():
    """Test last installment absorbs remainder"""
    installments = distribute_evenly(Decimal("1000"), 3, START)

    assert [inst.amount for inst in installments] == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]
    assert sum(inst.amount for inst in installments) == Decimal("1000")


def test_distribute_evenly_dates_and_labels():
    """Test first payment at signing, then monthly clamped to month end"""
    installments = distribute_evenly(Decimal("900"), 3, START)

    assert [inst.due_date for inst in installments] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]
    assert [inst.payment_type for inst in installments] == ["on_signing", "monthly", "monthly"]


def test_distribute_evenly_clamps_count():
    """Test count is held within 1..12"""
    assert len(distribute_evenly(Decimal("100"), 30, START)) == 12
    assert len(distribute_evenly(Decimal("100"), 0, START)) == 1


def test_distribute_evenly_zero_total():
    """Test non-positive totals cannot be scheduled"""
    with pytest.raises(InvalidScheduleError):
        distribute_evenly(Decimal("0"), 4, START)


def test_interval_with_first_payment():
    """Test up-front amount followed by recurring payments every two months"""
    installments = distribute_with_interval(
        Decimal("10000"),
        first_payment=Decimal("2500"),
        interval_months=2,
        num_payments=3,
        start_date=date(2024, 1, 15),
    )

    assert [inst.amount for inst in installments] == [
        Decimal("2500.00"),
        Decimal("2500.00"),
        Decimal("2500.00"),
        Decimal("2500.00"),
    ]
    assert [inst.due_date for inst in installments] == [
        date(2024, 1, 15),
        date(2024, 3, 15),
        date(2024, 5, 15),
        date(2024, 7, 15),
    ]
    assert installments[0].payment_type == "on_signing"
    assert installments[1].payment_type == "every_2_months"


def test_interval_percent_first_payment():
    """Test percentage first payment and remainder on the last recurring payment"""
    installments = distribute_with_interval(
        Decimal("1000"),
        first_payment=Decimal("30"),
        first_payment_type="percent",
        num_payments=3,
        start_date=START,
    )

    assert [inst.amount for inst in installments] == [
        Decimal("300.00"),
        Decimal("233.33"),
        Decimal("233.33"),
        Decimal("233.34"),
    ]
    assert sum(inst.amount for inst in installments) == Decimal("1000")


def test_interval_without_first_payment_starts_on_start_date():
    """Test recurring schedule begins immediately when nothing is paid up front"""
    installments = distribute_with_interval(Decimal("600"), interval_months=3, start_date=START)

    # Default covers six months: two quarterly payments
    assert [inst.amount for inst in installments] == [Decimal("300.00"), Decimal("300.00")]
    assert [inst.due_date for inst in installments] == [date(2024, 1, 31), date(2024, 4, 30)]


def test_interval_count_from_last_payment_date():
    """Test payment count derived from the last payment date"""
    installments = distribute_with_interval(
        Decimal("1200"),
        start_date=date(2024, 1, 1),
        last_payment_date=date(2024, 5, 1),
    )

    assert len(installments) == 4


def test_interval_first_payment_covers_total():
    """Test first payment equal to the total yields a single installment"""
    installments = distribute_with_interval(Decimal("500"), first_payment=Decimal("500"), start_date=START)

    assert len(installments) == 1
    assert installments[0].amount == Decimal("500.00")


@pytest.mark.parametrize(
    "kwargs",
    [
        {"total": Decimal("0")},
        {"total": Decimal("100"), "first_payment": Decimal("150")},
        {"total": Decimal("100"), "first_payment": Decimal("-1")},
        {"total": Decimal("100"), "interval_months": 0},
        {"total": Decimal("100"), "first_payment_type": "fraction"},
    ],
)
def test_interval_invalid_parameters(kwargs):
    """Test impossible schedules are rejected"""
    with pytest.raises(InvalidScheduleError):
        distribute_with_interval(start_date=START, **kwargs)


def test_group_repeating_installments():
    """Test consecutive equal amounts collapse into one group"""
    installments = distribute_with_interval(
        Decimal("1000"),
        first_payment=Decimal("100"),
        num_payments=4,
        start_date=START,
    )

    groups = group_repeating_installments(installments)

    assert [(g.amount, g.count, g.is_grouped) for g in groups] == [
        (Decimal("100.00"), 1, False),
        (Decimal("225.00"), 4, True),
    ]
    assert groups[1].start_date == date(2024, 2, 29)
    assert groups[1].end_date == date(2024, 5, 31)
    assert groups[1].total == Decimal("900.00")


def test_unscheduled_amount():
    """Test uncovered part of the total"""
    installments = distribute_evenly(Decimal("900"), 3, START)

    assert unscheduled_amount(installments[:2], Decimal("900")) == Decimal("300")


def test_interval_small_remainder_never_negative():
    """Test a few cents left after the first payment are not over-scheduled"""
    installments = distribute_with_interval(
        Decimal("1000"),
        first_payment=Decimal("999.93"),
        num_payments=12,
        start_date=START,
    )

    assert all(inst.amount > 0 for inst in installments)
    assert sum(inst.amount for inst in installments) == Decimal("1000")
    assert [inst.amount for inst in installments[1:]] == [Decimal("0.01")] * 7


def test_interval_recurring_amounts_floor_to_cents():
    """Test recurring payments round down so the last one is never short"""
    installments = distribute_with_interval(Decimal("100"), num_payments=6, start_date=START)

    assert [inst.amount for inst in installments] == [Decimal("16.66")] * 5 + [Decimal("16.70")]
