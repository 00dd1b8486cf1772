"""Tests for profile XP aggregation and the profile horizon."""

from __future__ import annotations

import math
from datetime import date

import pytest

from xlog.domain.profile import (
    add_years,
    days_elapsed,
    days_remaining,
    pad_domain_sums,
    profile_xp,
)


class TestProfileXp:
    def test_geometric_mean(self) -> None:
        assert profile_xp([100, 100, 100, 100]) == pytest.approx(100.0)
        assert profile_xp([1, 10, 100, 1000]) == pytest.approx(math.sqrt(1000) / 1)

    def test_any_zero_domain_gives_zero(self) -> None:
        assert profile_xp([0, 500, 500, 500]) == 0.0

    def test_negative_domain_clamped_to_zero(self) -> None:
        value = profile_xp([-30, 500, 500, 500])
        assert value == 0.0
        assert not math.isnan(value)

    def test_missing_domains_count_as_zero(self) -> None:
        assert profile_xp([100, 100]) == 0.0

    def test_large_values_do_not_overflow(self) -> None:
        big = 1e300
        assert profile_xp([big, big, big, big]) == pytest.approx(big)

    def test_pad(self) -> None:
        assert pad_domain_sums([1, 2]) == [1.0, 2.0, 0.0, 0.0]
        assert pad_domain_sums([1, 2, 3, 4, 5]) == [1.0, 2.0, 3.0, 4.0]


class TestHorizon:
    def test_days_remaining(self) -> None:
        created = date(2025, 1, 1)
        assert days_remaining(created, date(2025, 1, 1), 4) == (date(2029, 1, 1) - created).days
        assert days_remaining(created, date(2029, 1, 1), 4) == 0
        assert days_remaining(created, date(2029, 1, 11), 4) == -10

    def test_leap_day_falls_back(self) -> None:
        assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)
        assert add_years(date(2024, 2, 29), 4) == date(2028, 2, 29)

    def test_days_elapsed(self) -> None:
        assert days_elapsed(date(2025, 1, 1), date(2025, 1, 31)) == 30
