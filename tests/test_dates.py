"""Tests for date-range helpers."""

from datetime import date, datetime, timedelta

import pytest

from waterledger.ledger.dates import days_between, month_range, period_range, today, week_range
from waterledger.models.reports import Period

from conftest import NOW


class TestToday:

    def test_today_uses_pinned_clock(self):
        """Test today() returns the calendar day of `now`."""
        assert today(NOW) == date(2024, 3, 15)
        assert today(NOW).isoformat() == "2024-03-15"

    def test_today_defaults_to_wall_clock(self):
        """Test today() without arguments is the local date."""
        assert today() == datetime.now().date()


class TestWeekRange:

    def test_week_starts_on_sunday(self):
        """Test the default week runs Sunday to Saturday."""
        week = week_range(NOW, week_start=6)
        assert week.start == date(2024, 3, 10)
        assert week.end == date(2024, 3, 16)

    def test_week_on_its_start_day(self):
        """Test a Sunday is the first day of its own week."""
        week = week_range(datetime(2024, 3, 10, 8, 0), week_start=6)
        assert week.start == date(2024, 3, 10)

    @pytest.mark.parametrize("week_start", range(7))
    def test_week_spans_seven_days(self, week_start):
        """Test every configured week start gives a 7-day range containing today."""
        week = week_range(NOW, week_start=week_start)
        assert week.start.weekday() == week_start
        assert week.end - week.start == timedelta(days=6)
        assert week.contains(today(NOW))


class TestMonthRange:

    def test_month_range(self):
        """Test the month spans first to last calendar day."""
        month = month_range(NOW)
        assert month.start == date(2024, 3, 1)
        assert month.end == date(2024, 3, 31)

    def test_leap_february(self):
        """Test February ends on the 29th in a leap year."""
        assert month_range(datetime(2024, 2, 10)).end == date(2024, 2, 29)

    def test_plain_february(self):
        """Test February ends on the 28th otherwise."""
        assert month_range(datetime(2023, 2, 10)).end == date(2023, 2, 28)

    def test_thirty_day_month(self):
        """Test April ends on the 30th."""
        assert month_range(datetime(2024, 4, 30)).end == date(2024, 4, 30)


class TestPeriodRange:

    def test_today_period(self):
        """Test the today period is a single day."""
        span = period_range(Period.TODAY, NOW)
        assert span.start == span.end == date(2024, 3, 15)

    def test_all_has_no_range(self):
        """Test the all period is unbounded."""
        assert period_range("all", NOW) is None

    def test_unknown_period(self):
        """Test an unknown period name is rejected."""
        with pytest.raises(ValueError):
            period_range("year", NOW)


def test_days_between():
    """Test whole days between two dates."""
    assert days_between(date(2024, 2, 4), date(2024, 3, 15)) == 40
