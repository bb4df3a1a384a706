"""
Unit tests for budget period resolution.
"""

from datetime import date, datetime, timezone

import pytest

from exceptions import PeriodResolutionError
from forecast_models import PeriodKind
from period_resolver import coerce_period_kind, previous_period, resolve_period


class TestCoercePeriodKind:
    """Tests for period kind parsing."""

    def test_accepts_enum_and_strings(self):
        """Enum members and case/whitespace variants are accepted."""
        assert coerce_period_kind(PeriodKind.WEEKLY) is PeriodKind.WEEKLY
        assert coerce_period_kind(" Monthly ") is PeriodKind.MONTHLY
        assert coerce_period_kind("yearly") is PeriodKind.YEARLY

    @pytest.mark.parametrize("value", ["daily", "", None, 7])
    def test_unknown_kind_rejected(self, value):
        """Unknown kinds raise PeriodResolutionError."""
        with pytest.raises(PeriodResolutionError):
            coerce_period_kind(value)


class TestResolveMonthly:
    """Tests for calendar-month periods."""

    def test_mid_month(self, june_15):
        """June 15 is the 15th elapsed day of a 30-day period."""
        period = resolve_period("monthly", date(2024, 1, 1), june_15)

        assert period.start == datetime(2024, 6, 1)
        assert period.end == datetime(2024, 7, 1)
        assert period.total_days == 30
        assert period.elapsed_days == 15
        assert period.days_remaining == 15

    def test_first_day_counts_as_elapsed(self):
        """The current calendar day is counted as elapsed."""
        period = resolve_period("monthly", date(2024, 1, 1), datetime(2024, 6, 1, 0, 5))
        assert period.elapsed_days == 1

    def test_leap_february(self):
        """February 2024 has 29 days."""
        period = resolve_period(PeriodKind.MONTHLY, date(2024, 1, 1), datetime(2024, 2, 29, 23, 0))
        assert period.total_days == 29
        assert period.elapsed_days == 29
        assert period.days_remaining == 0

    def test_december_rolls_into_next_year(self):
        """The end of December is January 1 of the next year."""
        period = resolve_period("monthly", date(2024, 1, 1), datetime(2024, 12, 10))
        assert period.end == datetime(2025, 1, 1)
        assert period.total_days == 31

    def test_timezone_is_carried(self):
        """Boundaries use the tzinfo of now."""
        now = datetime(2024, 6, 15, 8, 0, tzinfo=timezone.utc)
        period = resolve_period("monthly", date(2024, 1, 1), now)
        assert period.start == datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert period.contains(now)


class TestResolveWeeklyAndYearly:
    """Tests for weekly and yearly periods."""

    def test_weekly_aligned_to_anchor_weekday(self):
        """A Wednesday anchor gives Wednesday-to-Wednesday weeks."""
        anchor = date(2024, 6, 5)  # Wednesday
        period = resolve_period("weekly", anchor, datetime(2024, 6, 10, 9, 0))  # Monday

        assert period.start == datetime(2024, 6, 5)
        assert period.end == datetime(2024, 6, 12)
        assert period.total_days == 7
        assert period.elapsed_days == 6

    def test_weekly_long_after_anchor(self):
        """Anchors months in the past still align on weekday."""
        period = resolve_period("weekly", date(2024, 1, 3), datetime(2024, 6, 12, 18, 0))
        assert period.start == datetime(2024, 6, 12)
        assert period.elapsed_days == 1

    def test_yearly_leap_year(self):
        """2024 has 366 days."""
        period = resolve_period("yearly", date(2020, 5, 1), datetime(2024, 1, 10))
        assert period.start == datetime(2024, 1, 1)
        assert period.end == datetime(2025, 1, 1)
        assert period.total_days == 366
        assert period.elapsed_days == 10


class TestResolveEdgeCases:
    """Tests for anchors in the future and invalid anchors."""

    def test_future_anchor_clamps_elapsed_to_zero(self):
        """A budget that has not started yet has zero elapsed days."""
        period = resolve_period("weekly", date(2024, 6, 20), datetime(2024, 6, 10))

        assert period.start == datetime(2024, 6, 20)
        assert period.elapsed_days == 0
        assert period.days_remaining == 7

    def test_future_monthly_anchor_uses_anchor_month(self):
        """A monthly budget anchored next month resolves to that month."""
        period = resolve_period("monthly", date(2024, 7, 15), datetime(2024, 6, 5))
        assert period.start == datetime(2024, 7, 1)
        assert period.total_days == 31
        assert period.elapsed_days == 0

    def test_datetime_anchor_is_accepted(self, june_15):
        """A datetime anchor is reduced to its date."""
        period = resolve_period("monthly", datetime(2024, 1, 1, 13, 0), june_15)
        assert period.elapsed_days == 15

    def test_missing_anchor_rejected(self, june_15):
        """A missing anchor raises PeriodResolutionError."""
        with pytest.raises(PeriodResolutionError):
            resolve_period("monthly", None, june_15)


class TestPreviousPeriod:
    """Tests for the preceding same-kind period."""

    def test_previous_month(self, june_15):
        """The period before June is all of May."""
        current = resolve_period("monthly", date(2024, 1, 1), june_15)
        prior = previous_period("monthly", current)

        assert prior.start == datetime(2024, 5, 1)
        assert prior.end == datetime(2024, 6, 1)
        assert prior.total_days == 31
        assert prior.elapsed_days == 31

    def test_previous_month_across_year(self):
        """The period before January is December of the previous year."""
        current = resolve_period("monthly", date(2024, 1, 1), datetime(2024, 1, 20))
        prior = previous_period("monthly", current)
        assert prior.start == datetime(2023, 12, 1)
        assert prior.end == datetime(2024, 1, 1)

    def test_previous_week(self):
        """The period before a week starts seven days earlier."""
        current = resolve_period("weekly", date(2024, 6, 5), datetime(2024, 6, 10))
        prior = previous_period("weekly", current, date(2024, 6, 5))
        assert prior.start == datetime(2024, 5, 29)
        assert prior.end == current.start

    def test_previous_year(self):
        """The period before 2024 is 2023."""
        current = resolve_period("yearly", date(2020, 1, 1), datetime(2024, 3, 1))
        prior = previous_period("yearly", current)
        assert prior.start == datetime(2023, 1, 1)
        assert prior.total_days == 365
