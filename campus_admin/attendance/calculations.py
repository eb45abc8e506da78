"""DTR arithmetic — time-of-day intervals and semi-monthly pay periods.

Pure functions, no database access. All hour values are ``Decimal`` rounded
to two places, half-up.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

TWO_PLACES = Decimal("0.01")
ZERO_HOURS = Decimal("0.00")
PAY_PERIOD_SPLIT_DAY = 15


def round_hours(value: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def interval_minutes(start: Optional[time], end: Optional[time]) -> int:
    """Whole minutes from *start* to *end* on the same day.

    Returns 0 when either bound is missing. Spans crossing midnight are not
    supported; a reversed interval yields a negative count.
    """
    if start is None or end is None:
        return 0
    anchor = date.min
    delta = datetime.combine(anchor, end) - datetime.combine(anchor, start)
    return int(delta.total_seconds() // 60)


def interval_hours(start: Optional[time], end: Optional[time]) -> Decimal:
    """Elapsed hours between two time-of-day values, 2dp."""
    return round_hours(Decimal(interval_minutes(start, end)) / Decimal(60))


def worked_hours(
    time_in: Optional[time],
    time_out: Optional[time],
    lunch_start: Optional[time] = None,
    lunch_end: Optional[time] = None,
) -> Decimal:
    """Regular hours: (time_out - time_in) minus the lunch break.

    Lunch is only deducted when both of its bounds are given. Without both
    time_in and time_out nothing was worked.
    """
    if time_in is None or time_out is None:
        return ZERO_HOURS
    minutes = interval_minutes(time_in, time_out)
    if lunch_start is not None and lunch_end is not None:
        minutes -= interval_minutes(lunch_start, lunch_end)
    return round_hours(Decimal(minutes) / Decimal(60))


def pay_period_for(day: date) -> date:
    """Semi-monthly bucket: the 15th for days 1-15, else the month's last day."""
    if day.day <= PAY_PERIOD_SPLIT_DAY:
        return day.replace(day=PAY_PERIOD_SPLIT_DAY)
    last_day = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=last_day)
