from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from app.core.errors import BookingValidationError
from app.utils.pricing import add_months, membership_months, month_diff, monthly_rate, total_cost


class TestRates:

    def test_twelve_hour_for_three_months(self):
        assert total_cost("12hr", 3) == Decimal("6900")

    @pytest.mark.parametrize("key,rate", [
        ("6hr", "1500"),
        ("12hr", "2300"),
        ("24hr", "3800"),
        ("fixed", "3500"),
        ("floating", "2200"),
        ("limited", "1200"),
    ])
    def test_monthly_rates(self, key, rate):
        assert monthly_rate(key) == Decimal(rate)

    def test_unknown_rate(self):
        with pytest.raises(BookingValidationError):
            monthly_rate("weekly")

    @pytest.mark.parametrize("months", [0, -2])
    def test_months_must_be_positive(self, months):
        with pytest.raises(BookingValidationError):
            total_cost("6hr", months)


class TestMonths:

    @pytest.mark.parametrize("later,earlier,expected", [
        (date(2024, 4, 1), date(2024, 3, 1), 1),
        (date(2024, 3, 31), date(2024, 3, 1), 0),
        (date(2024, 4, 14), date(2024, 3, 15), 0),
        (date(2024, 4, 15), date(2024, 3, 15), 1),
        (date(2025, 1, 10), date(2024, 11, 10), 2),
        # a one-month span ending on a month's last day is a full month
        (date(2024, 2, 29), date(2024, 1, 31), 1),
        (date(2023, 2, 28), date(2023, 1, 31), 1),
        (date(2024, 4, 30), date(2024, 3, 31), 1),
        (date(2024, 4, 30), date(2024, 1, 31), 2),
        # late February counts as the 30th
        (date(2023, 2, 28), date(2022, 11, 30), 3),
        (date(2024, 2, 27), date(2024, 1, 31), 0),
    ])
    def test_month_diff(self, later, earlier, expected):
        assert month_diff(later, earlier) == expected

    def test_month_diff_is_antisymmetric(self):
        assert month_diff(date(2024, 3, 1), date(2024, 6, 1)) == -3

    def test_month_end_window_bills_two_months(self):
        months = membership_months(date(2024, 1, 31), date(2024, 2, 29))
        assert months == 2
        assert total_cost("12hr", months) == Decimal("4600")

    def test_month_diff_accepts_datetimes(self):
        later = datetime(2024, 6, 1, tzinfo=timezone.utc)
        earlier = datetime(2024, 3, 1, tzinfo=timezone.utc)
        assert month_diff(later, earlier) == 3

    def test_membership_months_counts_the_first_month(self):
        assert membership_months(date(2024, 3, 1), date(2024, 3, 20)) == 1
        assert membership_months(date(2024, 3, 1), date(2024, 4, 1)) == 2

    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2024, 11, 15), 3, date(2025, 2, 15)),
        (date(2024, 3, 1), 12, date(2025, 3, 1)),
    ])
    def test_add_months_clamps_to_month_end(self, start, months, expected):
        assert add_months(start, months) == expected
