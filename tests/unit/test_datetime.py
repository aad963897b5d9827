# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for date helpers and the re-enrollment window."""

from datetime import date, datetime, timedelta, timezone

import pytest

from schoolcore.domains.enrollment import MonthEnrollmentWindow
from schoolcore.utils.datetime import SystemClock, add_years, ensure_utc, utc_now


class TestEnsureUtc:
    """Tests for ensure_utc."""

    def test_none(self):
        """Test None passes through."""
        assert ensure_utc(None) is None

    def test_naive_is_assumed_utc(self):
        """Test naive datetimes gain UTC tzinfo."""
        result = ensure_utc(datetime(2025, 3, 1, 12))

        assert result == datetime(2025, 3, 1, 12, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        """Test aware datetimes are converted to UTC."""
        minus_three = timezone(timedelta(hours=-3))

        result = ensure_utc(datetime(2025, 3, 1, 22, tzinfo=minus_three))

        assert result == datetime(2025, 3, 2, 1, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc


class TestAddYears:
    """Tests for add_years."""

    def test_regular_date(self):
        """Test shifting an ordinary date."""
        assert add_years(date(2025, 3, 1), 2) == date(2027, 3, 1)

    def test_leap_day_to_non_leap_year(self):
        """Test February 29th becomes February 28th."""
        assert add_years(date(2024, 2, 29), 2) == date(2026, 2, 28)

    def test_leap_day_to_leap_year(self):
        """Test February 29th is kept when the target year is leap."""
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)


class TestClock:
    """Tests for the system clock."""

    def test_system_clock_is_aware(self):
        """Test the system clock returns UTC-aware times."""
        before = utc_now()
        now = SystemClock().now()

        assert now.tzinfo == timezone.utc
        assert now >= before


class TestMonthEnrollmentWindow:
    """Tests for MonthEnrollmentWindow."""

    @pytest.mark.parametrize(
        ("month", "expected"),
        [(6, False), (7, True), (8, True), (9, False)],
    )
    def test_default_months(self, month, expected):
        """Test the window is open in July and August."""
        window = MonthEnrollmentWindow([7, 8])

        assert window.is_open(datetime(2025, month, 15, tzinfo=timezone.utc)) is expected

    def test_custom_months(self):
        """Test the window follows the configured months."""
        window = MonthEnrollmentWindow([1])

        assert window.is_open(datetime(2025, 1, 31, tzinfo=timezone.utc)) is True
        assert window.is_open(datetime(2025, 7, 1, tzinfo=timezone.utc)) is False
