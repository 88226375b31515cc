"""
Tests for the recurrence engine.

Every test passes an explicit "now" so results never depend on the clock.
"""

import pytest
from datetime import date, datetime, timedelta
from decimal import Decimal

from lifeos.models import BillUrgency, MaintenanceStatus
from lifeos.recurrence import (
    calculate_next_due_date,
    clamp_day_of_month,
    get_bill_urgency,
    get_days_overdue,
    get_days_remaining,
    get_maintenance_status,
    get_next_service_date,
    get_service_progress,
    parse_date,
)


class TestParseDate:
    """Tests for lenient date parsing."""

    def test_plain_iso_date(self):
        assert parse_date("2024-03-10") == date(2024, 3, 10)

    def test_timestamp_with_zulu_suffix(self):
        assert parse_date("2024-03-10T18:45:00Z") == date(2024, 3, 10)

    def test_timestamp_with_offset(self):
        assert parse_date("2024-03-10T08:00:00.123+05:30") == date(2024, 3, 10)

    def test_datetime_is_truncated(self):
        assert parse_date(datetime(2024, 3, 10, 23, 59)) == date(2024, 3, 10)

    @pytest.mark.parametrize("value", ["not-a-date", "", "   ", None, "2024-02-30", 42])
    def test_unreadable_values(self, value):
        assert parse_date(value) is None


class TestClampDayOfMonth:

    @pytest.mark.parametrize("raw,expected", [
        (0, 1), (-4, 1), (35, 31), (15, 15), ("12", 12), ("abc", 1), (None, 1),
    ])
    def test_clamps_into_valid_range(self, raw, expected):
        assert clamp_day_of_month(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        (float("inf"), 31),
        (float("-inf"), 1),
        (float("nan"), 1),
        (Decimal("Infinity"), 31),
        (Decimal("-Infinity"), 1),
        (1e300, 31),
    ])
    def test_non_finite_input(self, raw, expected):
        assert clamp_day_of_month(raw) == expected

    def test_infinite_anchor_still_gives_a_date(self):
        assert calculate_next_due_date(float("inf"), date(2024, 3, 10)) == date(2024, 3, 31)
        assert calculate_next_due_date(float("-inf"), date(2024, 3, 10)) == date(2024, 4, 1)


class TestCalculateNextDueDate:
    """Tests for the day-of-month anchor."""

    def test_later_this_month(self):
        assert calculate_next_due_date(20, date(2024, 3, 10)) == date(2024, 3, 20)

    def test_already_passed_rolls_to_next_month(self):
        assert calculate_next_due_date(5, date(2024, 3, 10)) == date(2024, 4, 5)

    def test_december_rolls_into_january(self):
        assert calculate_next_due_date(5, date(2024, 12, 20)) == date(2025, 1, 5)

    @pytest.mark.parametrize("day", [29, 30, 31])
    def test_clamps_to_end_of_february_non_leap(self, day):
        assert calculate_next_due_date(day, date(2023, 2, 1)) == date(2023, 2, 28)

    @pytest.mark.parametrize("day", [29, 30, 31])
    def test_clamps_to_end_of_february_leap(self, day):
        assert calculate_next_due_date(day, date(2024, 2, 1)) == date(2024, 2, 29)

    def test_day_31_in_thirty_day_month(self):
        assert calculate_next_due_date(31, date(2024, 4, 15)) == date(2024, 4, 30)

    def test_rollover_into_short_month(self):
        # Jan 31 has passed the 30th, so February is the target month
        assert calculate_next_due_date(30, date(2023, 1, 31)) == date(2023, 2, 28)

    def test_same_day_is_due_today(self):
        now = date(2024, 6, 15)
        due = calculate_next_due_date(15, now)
        assert due == now
        assert get_days_remaining(due, now) == 0

    def test_out_of_range_anchor_is_clamped(self):
        now = date(2024, 6, 1)
        assert calculate_next_due_date(0, now) == date(2024, 6, 1)
        assert calculate_next_due_date(-3, now) == date(2024, 6, 1)
        assert calculate_next_due_date(45, now) == date(2024, 6, 30)

    def test_accepts_string_and_datetime_now(self):
        assert calculate_next_due_date(5, "2024-03-10") == date(2024, 4, 5)
        assert calculate_next_due_date(5, datetime(2024, 3, 10, 22, 30)) == date(2024, 4, 5)

    def test_is_idempotent(self):
        now = date(2024, 8, 31)
        assert calculate_next_due_date(31, now) == calculate_next_due_date(31, now)

    def test_month_always_advances_when_day_passed(self):
        for month in range(1, 13):
            now = date(2023, month, 20)
            due = calculate_next_due_date(10, now)
            assert due.month == month % 12 + 1
            assert due.year == (2024 if month == 12 else 2023)

    def test_defaults_to_today(self):
        due = calculate_next_due_date(31)
        assert due >= date.today()

    def test_invalid_now_raises(self):
        with pytest.raises(ValueError):
            calculate_next_due_date(5, "yesterday")


class TestGetDaysRemaining:

    def test_concrete_scenario(self):
        due = calculate_next_due_date(5, "2024-03-10")
        assert due == date(2024, 4, 5)
        assert get_days_remaining("2024-04-05", "2024-03-10") == 26

    def test_leap_year_scenario(self):
        due = calculate_next_due_date(31, "2024-02-01")
        assert due == date(2024, 2, 29)
        assert get_days_remaining(due, "2024-02-01") == 28

    def test_time_of_day_is_ignored(self):
        assert get_days_remaining(
            datetime(2024, 3, 11, 0, 1),
            datetime(2024, 3, 10, 23, 59),
        ) == 1

    def test_past_due_is_negative(self):
        assert get_days_remaining(date(2024, 3, 1), date(2024, 3, 4)) == -3

    def test_invalid_due_date_raises(self):
        with pytest.raises(ValueError):
            get_days_remaining("soon", date(2024, 3, 4))


class TestGetDaysOverdue:
    """Tests for the elapsed-interval anchor."""

    def test_overdue_is_elapsed_minus_interval(self):
        now = date(2024, 5, 20)
        last = now - timedelta(days=10)
        assert get_days_overdue(last, 7, now) == 3

    def test_not_yet_due_is_negative(self):
        now = date(2024, 5, 20)
        last = now - timedelta(days=10)
        assert get_days_overdue(last, 30, now) == -20

    def test_due_today_is_zero(self):
        assert get_days_overdue("2024-05-01", 19, "2024-05-20") == 0

    def test_interval_crosses_month_boundary(self):
        assert get_days_overdue("2024-01-31", 30, "2024-03-02") == 1

    def test_zero_interval(self):
        assert get_days_overdue("2024-05-19", 0, "2024-05-20") == 1

    def test_negative_interval_is_plain_arithmetic(self):
        # Serviced 9 days ago, due 3 days before that
        assert get_days_overdue("2024-06-01", -3, "2024-06-10") == 12
        assert get_next_service_date("2024-06-01", -3) == date(2024, 5, 29)

    def test_timestamp_string(self):
        assert get_days_overdue("2024-05-10T14:00:00Z", 7, "2024-05-20") == 3

    @pytest.mark.parametrize("bad", ["not-a-date", "", None, "2024-13-40"])
    def test_malformed_date_fails_open(self, bad):
        assert get_days_overdue(bad, 30, "2024-05-20") == 0

    def test_malformed_date_fails_open_without_now(self):
        assert get_days_overdue("not-a-date", 30) == 0


class TestServiceHelpers:

    def test_next_service_date(self):
        assert get_next_service_date("2024-01-01", 90) == date(2024, 3, 31)
        assert get_next_service_date("garbage", 90) is None

    def test_progress_is_share_of_interval(self):
        assert get_service_progress("2024-01-01", 20, "2024-01-11") == 50.0

    def test_progress_is_capped(self):
        assert get_service_progress("2024-01-01", 10, "2024-03-01") == 100.0
        assert get_service_progress("2024-02-01", 10, "2024-01-01") == 0.0

    def test_progress_zero_interval_counts_as_one_day(self):
        assert get_service_progress("2024-01-01", 0, "2024-01-01") == 0.0
        assert get_service_progress("2024-01-01", 0, "2024-01-02") == 100.0

    def test_progress_bad_date(self):
        assert get_service_progress("nope", 10, "2024-01-01") == 0.0

    def test_maintenance_status(self):
        assert get_maintenance_status(1) == MaintenanceStatus.OVERDUE
        assert get_maintenance_status(0) == MaintenanceStatus.HEALTHY
        assert get_maintenance_status(-12) == MaintenanceStatus.HEALTHY


class TestBillUrgency:

    @pytest.mark.parametrize("days,expected", [
        (-2, BillUrgency.URGENT),
        (0, BillUrgency.URGENT),
        (1, BillUrgency.URGENT),
        (2, BillUrgency.WARNING),
        (3, BillUrgency.WARNING),
        (4, BillUrgency.NORMAL),
    ])
    def test_default_thresholds(self, days, expected):
        assert get_bill_urgency(days) == expected

    def test_paid_wins(self):
        assert get_bill_urgency(0, paid=True) == BillUrgency.PAID

    def test_custom_thresholds(self):
        assert get_bill_urgency(5, urgent_within_days=2, warning_within_days=7) == BillUrgency.WARNING
