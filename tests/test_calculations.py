"""DTR arithmetic and tax policy tests — pure functions, no database."""

from __future__ import annotations

from datetime import date, time
from decimal import Decimal

import pytest

from campus_admin.attendance.calculations import (
    interval_hours,
    interval_minutes,
    pay_period_for,
    round_hours,
    worked_hours,
)
from campus_admin.payroll.tax import FlatRateTax, NoTax, get_tax_policy, round_money


# ═════════════════════════════════════════════════════════════════════
# 1. TIME INTERVALS
# ═════════════════════════════════════════════════════════════════════


def test_interval_hours_whole_hours():
    assert interval_hours(time(17, 0), time(19, 0)) == Decimal("2.00")


def test_interval_hours_rounds_half_up():
    # 20 minutes = 0.3333... h
    assert interval_hours(time(8, 0), time(8, 20)) == Decimal("0.33")
    # 50 minutes = 0.8333... h
    assert interval_hours(time(8, 0), time(8, 50)) == Decimal("0.83")
    # 45 minutes = 0.75 h exactly
    assert interval_hours(time(8, 0), time(8, 45)) == Decimal("0.75")


def test_interval_missing_bound_is_zero():
    assert interval_hours(None, time(17, 0)) == Decimal("0.00")
    assert interval_hours(time(8, 0), None) == Decimal("0.00")
    assert interval_minutes(None, None) == 0


def test_interval_reversed_is_negative():
    assert interval_minutes(time(17, 0), time(8, 0)) == -540


def test_round_hours_half_up():
    assert round_hours(Decimal("1.005")) == Decimal("1.01")
    assert round_hours(Decimal("1.004")) == Decimal("1.00")


# ═════════════════════════════════════════════════════════════════════
# 2. WORKED HOURS
# ═════════════════════════════════════════════════════════════════════


def test_worked_hours_deducts_lunch():
    hours = worked_hours(time(8, 0), time(17, 0), time(12, 0), time(13, 0))
    assert hours == Decimal("8.00")


def test_worked_hours_without_lunch():
    assert worked_hours(time(8, 0), time(17, 0)) == Decimal("9.00")


def test_worked_hours_ignores_half_lunch():
    assert worked_hours(time(8, 0), time(17, 0), time(12, 0), None) == Decimal("9.00")


def test_worked_hours_missing_time_out():
    assert worked_hours(time(8, 0), None, time(12, 0), time(13, 0)) == Decimal("0.00")


def test_worked_hours_partial_minutes():
    # 08:15 - 16:50 = 515 min, minus 30 min lunch = 485 min = 8.0833 h
    hours = worked_hours(time(8, 15), time(16, 50), time(12, 0), time(12, 30))
    assert hours == Decimal("8.08")


def test_worked_hours_lunch_longer_than_shift_is_negative():
    hours = worked_hours(time(8, 0), time(9, 0), time(9, 0), time(12, 0))
    assert hours < 0


# ═════════════════════════════════════════════════════════════════════
# 3. PAY PERIODS
# ═════════════════════════════════════════════════════════════════════


@pytest.mark.parametrize(
    "day, expected",
    [
        (date(2024, 3, 1), date(2024, 3, 15)),
        (date(2024, 3, 10), date(2024, 3, 15)),
        (date(2024, 3, 15), date(2024, 3, 15)),
        (date(2024, 3, 16), date(2024, 3, 31)),
        (date(2024, 3, 20), date(2024, 3, 31)),
        (date(2024, 2, 20), date(2024, 2, 29)),
        (date(2023, 2, 28), date(2023, 2, 28)),
        (date(2024, 4, 30), date(2024, 4, 30)),
    ],
)
def test_pay_period_for(day, expected):
    assert pay_period_for(day) == expected


# ═════════════════════════════════════════════════════════════════════
# 4. TAX POLICIES
# ═════════════════════════════════════════════════════════════════════


def test_no_tax_withholds_nothing():
    assert NoTax()(Decimal("2750.00")) == Decimal("0.00")


def test_flat_rate_tax():
    assert FlatRateTax(Decimal("0.10"))(Decimal("2750.00")) == Decimal("275.00")
    assert FlatRateTax(Decimal("0.10"))(Decimal("0.00")) == Decimal("0.00")


def test_flat_rate_tax_rejects_bad_rate():
    with pytest.raises(ValueError):
        FlatRateTax(Decimal("1.5"))
    with pytest.raises(ValueError):
        FlatRateTax(Decimal("-0.1"))


def test_get_tax_policy_by_rate():
    assert isinstance(get_tax_policy(Decimal("0")), NoTax)
    policy = get_tax_policy(Decimal("0.12"))
    assert isinstance(policy, FlatRateTax)
    assert policy.rate == Decimal("0.12")


def test_get_tax_policy_defaults_to_settings(monkeypatch):
    from campus_admin.config import settings

    monkeypatch.setattr(settings, "PAYROLL_TAX_RATE", Decimal("0.05"))
    assert isinstance(get_tax_policy(), FlatRateTax)
    monkeypatch.setattr(settings, "PAYROLL_TAX_RATE", Decimal("0"))
    assert isinstance(get_tax_policy(), NoTax)


def test_round_money():
    assert round_money(Decimal("12.345")) == Decimal("12.35")
