"""Tests for synthetic series and estimation helpers.

Covers:
- Mock activity, environmental and market series shape and ranges
- Weekend and seasonal factors
- Estimation of quantities the providers do not expose
"""

from datetime import date

import numpy as np
import pytest
from hypothesis import given, strategies as st, settings

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.data.calendar import trailing_window
from app.data.estimation import (
    baseline_pm25,
    estimate_contributors,
    estimate_daily_commits,
    estimate_daily_commits_from_weekly,
    estimate_daily_stars,
    synthesize_environmental_history,
)
from app.services.mock_data import (
    MockDataGenerator,
    mock_data_message,
    seasonal_factor,
    weekend_factor,
)

END = date(2024, 3, 17)  # a Sunday


# =============================================================================
# Activity
# =============================================================================

class TestActivitySeries:

    def test_length_and_order(self, mock_generator):
        samples = mock_generator.activity_series("san-francisco", 7, end=END)

        assert len(samples) == 7
        assert [s.date for s in samples] == trailing_window(7, END)
        assert samples[-1].date == "2024-03-17"
        assert all(s.entity_id == "san-francisco" for s in samples)

    def test_weekday_ranges(self, mock_generator):
        for s in mock_generator.activity_series("london", 90, end=END):
            if date.fromisoformat(s.date).weekday() < 5:
                assert 100 <= s.commits <= 599
                assert 50 <= s.stars <= 249
                assert 10 <= s.repositories <= 59
                assert 20 <= s.contributors <= 119

    def test_weekend_dip(self, mock_generator):
        weekend = [
            s for s in mock_generator.activity_series("london", 90, end=END)
            if date.fromisoformat(s.date).weekday() >= 5
        ]
        assert weekend
        for s in weekend:
            assert 60 <= s.commits <= 359
            assert 30 <= s.stars <= 149

    def test_seeded_generators_agree(self):
        first = MockDataGenerator(seed=7).activity_series("tokyo", 14, end=END)
        second = MockDataGenerator(seed=7).activity_series("tokyo", 14, end=END)
        assert first == second

    def test_asset_activity(self, mock_generator, registry):
        coin = registry.get_coin("bitcoin")
        samples = mock_generator.asset_activity_series(coin, 30, end=END)

        assert len(samples) == 30
        assert all(s.entity_id == "bitcoin" for s in samples)
        assert all(s.repositories == 3 for s in samples)
        assert all(50 <= s.commits < 150 for s in samples)


# =============================================================================
# Environmental
# =============================================================================

class TestEnvironmentalSeries:

    def test_shape(self, mock_generator, registry):
        city = registry.get_city("berlin")
        samples = mock_generator.environmental_series(city, 14, end=END)

        assert len(samples) == 14
        assert all(s.station_name == "Berlin Central Station" for s in samples)
        assert all(s.entity_id == "berlin" for s in samples)

    def test_ranges_and_coordinates(self, mock_generator, registry):
        city = registry.get_city("bangalore")
        for s in mock_generator.environmental_series(city, 90, end=END):
            assert 0 <= s.aqi <= 500
            assert s.pm25 >= 0
            assert abs(s.coordinates.lat - city.coordinates.lat) <= 0.05
            assert abs(s.coordinates.lng - city.coordinates.lng) <= 0.05

    def test_unknown_baseline_uses_default(self, mock_generator, registry):
        """Cities without a baseline centre on AQI 60."""
        city = registry.get_city("pune")
        samples = mock_generator.environmental_series(city, 7, end=date(2024, 4, 10))
        assert all(40 <= s.aqi <= 80 for s in samples)


class TestFactors:

    @pytest.mark.parametrize("day,factor", [
        (date(2024, 3, 16), 0.6),  # Saturday
        (date(2024, 3, 17), 0.6),  # Sunday
        (date(2024, 3, 18), 1.0),
    ])
    def test_weekend_factor(self, day, factor):
        assert weekend_factor(day) == factor

    @pytest.mark.parametrize("month,factor", [
        (1, 1.3), (2, 1.3), (12, 1.3), (6, 0.8), (8, 0.8), (4, 1.0), (10, 1.0),
    ])
    def test_seasonal_factor(self, month, factor):
        assert seasonal_factor(date(2024, month, 1)) == factor


# =============================================================================
# Market
# =============================================================================

class TestMarketSeries:

    def test_shape(self, mock_generator):
        samples = mock_generator.market_series("ethereum", 30, end=END)

        assert len(samples) == 30
        assert [s.date for s in samples] == trailing_window(30, END)
        assert samples[0].price_change_pct_24h == 0.0
        for s in samples:
            assert s.price > 0
            assert s.volume > 0
            assert s.market_cap > s.volume

    def test_change_matches_prices(self, mock_generator):
        samples = mock_generator.market_series("bitcoin", 5, end=END)
        for previous, current in zip(samples, samples[1:]):
            expected = (current.price - previous.price) / previous.price * 100
            assert current.price_change_pct_24h == pytest.approx(expected)


def test_mock_data_message():
    assert mock_data_message("github") == "Using simulated data - GitHub API is currently unavailable"
    assert "World Air Quality Index API" in mock_data_message("waqi")
    assert "CoinGecko API" in mock_data_message("coingecko")


# =============================================================================
# Estimation
# =============================================================================

class TestEstimation:
    """Approximations for quantities the providers do not report."""

    def test_commits_scale_with_repositories(self):
        rng = np.random.default_rng(1)
        for repos in range(1, 20):
            commits = estimate_daily_commits(repos, rng)
            assert 5 * repos <= commits <= 14 * repos

    def test_no_repositories_no_commits(self):
        assert estimate_daily_commits(0, np.random.default_rng(1)) == 0

    def test_contributors(self):
        assert estimate_contributors(3) == 7
        assert estimate_contributors(0) == 0

    def test_baseline_pm25(self):
        assert baseline_pm25(100) == 40
        assert baseline_pm25(57) == 22

    @given(
        base_aqi=st.integers(0, 500),
        base_pm25=st.integers(0, 300),
        days=st.integers(1, 90),
    )
    @settings(max_examples=50)
    def test_history_bounds(self, base_aqi, base_pm25, days):
        history = synthesize_environmental_history(base_aqi, base_pm25, days, np.random.default_rng(0))

        assert len(history) == days
        for aqi, pm25 in history:
            assert 0 <= aqi <= 500
            assert abs(aqi - base_aqi) <= 16
            assert pm25 >= 0
            assert pm25 <= base_pm25 + 8

    def test_weekly_spread_newest_week_last(self):
        rng = np.random.default_rng(3)
        daily = estimate_daily_commits_from_weekly([0, 0, 700], 14, rng)

        assert len(daily) == 14
        # newest 7 days come from the 700-commit week
        assert all(100 <= d < 110 for d in daily[-7:])
        assert all(0 <= d < 10 for d in daily[:7])

    def test_weekly_spread_beyond_available_weeks(self):
        daily = estimate_daily_commits_from_weekly([70], 14, np.random.default_rng(3))
        assert all(15 <= d < 45 for d in daily[:7])

    def test_weekly_spread_without_data(self):
        daily = estimate_daily_commits_from_weekly([], 7, np.random.default_rng(3))
        assert all(20 <= d < 70 for d in daily)

    def test_daily_stars(self):
        stars = estimate_daily_stars(700, 7, np.random.default_rng(3))
        assert len(stars) == 7
        assert all(100 <= s < 110 for s in stars)
