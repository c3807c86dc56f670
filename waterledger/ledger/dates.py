"""
Date-range helpers.

Every function is a pure function of "now". Pass `now` explicitly to pin
the clock; otherwise the local wall clock is used.
"""

import calendar
from datetime import date, datetime, timedelta
from typing import Optional, Union

from waterledger.config import get_settings
from waterledger.models.reports import DateRange, Period


def today(now: Optional[datetime] = None) -> date:
    """The local calendar day. `today().isoformat()` is the canonical YYYY-MM-DD form."""
    if now is None:
        return datetime.now().date()
    if now.tzinfo is not None:
        now = now.astimezone()
    return now.date()


def week_range(now: Optional[datetime] = None, week_start: Optional[int] = None) -> DateRange:
    """
    The current reporting week.

    Starts on the most recent `week_start` weekday (Python numbering,
    6 = Sunday) on or before today and ends six days later.
    """
    if week_start is None:
        week_start = get_settings().ledger.week_start
    day = today(now)
    start = day - timedelta(days=(day.weekday() - week_start) % 7)
    return DateRange(start=start, end=start + timedelta(days=6))


def month_range(now: Optional[datetime] = None) -> DateRange:
    """First to last calendar day of the current month."""
    day = today(now)
    last = calendar.monthrange(day.year, day.month)[1]
    return DateRange(start=day.replace(day=1), end=day.replace(day=last))


def period_range(
    period: Union[Period, str],
    now: Optional[datetime] = None,
    week_start: Optional[int] = None,
) -> Optional[DateRange]:
    """Range for a named period; None for Period.ALL."""
    period = Period(period)
    if period == Period.TODAY:
        day = today(now)
        return DateRange(start=day, end=day)
    if period == Period.WEEK:
        return week_range(now, week_start)
    if period == Period.MONTH:
        return month_range(now)
    return None


def days_between(earlier: date, later: date) -> int:
    """Whole days from `earlier` to `later`."""
    return (later - earlier).days
