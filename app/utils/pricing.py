import calendar
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Union

from app.core.errors import BookingValidationError

# Monthly rates in INR. The hourly table belongs to the slot booking flow and
# the category table to the membership flow; they are deliberately not merged.
HOURLY_RATES = {
    "6hr": Decimal("1500"),
    "12hr": Decimal("2300"),
    "24hr": Decimal("3800"),
}
MEMBERSHIP_RATES = {
    "fixed": Decimal("3500"),
    "floating": Decimal("2200"),
    "limited": Decimal("1200"),
}

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def _is_last_day_of_month(day: date) -> bool:
    return day.day == calendar.monthrange(day.year, day.month)[1]


def _shift_overflowing(day: date, months: int) -> date:
    """Shift by whole months letting the day overflow into the next month (Feb 30 becomes Mar 1/2)."""
    index = day.month - 1 + months
    year, month = day.year + index // 12, index % 12 + 1
    return date(year, month, 1) + timedelta(days=day.day - 1)


def month_diff(later: DateLike, earlier: DateLike) -> int:
    """
    Whole months from ``earlier`` to ``later``; a partial trailing month doesn't count.

    A late-February end date is measured as the 30th, and a one-month span
    ending on the last day of a month is a full month (31 Jan -> 29 Feb is 1).
    """
    later, earlier = _as_date(later), _as_date(earlier)
    sign = 1
    if later < earlier:
        later, earlier, sign = earlier, later, -1
    months = (later.year - earlier.year) * 12 + (later.month - earlier.month)
    if months < 1:
        return 0

    anchor = later
    if later.month == 2 and later.day > 27:
        anchor = date(later.year, 2, 1) + timedelta(days=29)
    partial = _shift_overflowing(anchor, -months) < earlier
    if partial and months == 1 and _is_last_day_of_month(later):
        partial = False
    return sign * (months - int(partial))


def membership_months(start: DateLike, end: DateLike) -> int:
    """Billable months for a window, counting the month the window starts in."""
    return month_diff(end, start) + 1


def add_months(start: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of the target month."""
    index = start.month - 1 + months
    year, month = start.year + index // 12, index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def monthly_rate(key: str) -> Decimal:
    """Rate for an hourly duration type (6hr/12hr/24hr) or a membership category (fixed/floating/limited)."""
    if key in HOURLY_RATES:
        return HOURLY_RATES[key]
    if key in MEMBERSHIP_RATES:
        return MEMBERSHIP_RATES[key]
    raise BookingValidationError(f"No rate defined for '{key}'")


def total_cost(key: str, months: int) -> Decimal:
    if months < 1:
        raise BookingValidationError("Duration must be at least one month")
    return monthly_rate(key) * months
