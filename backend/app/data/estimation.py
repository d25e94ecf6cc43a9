"""Estimation functions for quantities the providers do not expose.

Every function here is an approximation, not a measurement:
- GitHub search does not report daily commit counts, so commits are estimated
  from the number of repositories created that day
- Contributors are a fixed multiple of the repository count
- WAQI only exposes current conditions, so a daily history is synthesized
  by perturbing the current reading
- GitHub commit activity is weekly, so daily commits are spread from weeks

Replacing any of these with a real historical endpoint must not require
changes to the correlation engine.
"""

import math
from typing import List, Sequence, Tuple

import numpy as np

# Commits per repository created on a given day: uniform in [5, 15)
COMMITS_PER_REPOSITORY = (5, 15)
CONTRIBUTORS_PER_REPOSITORY = 2.5

AQI_PERTURBATION = 15.0
PM25_PERTURBATION = 7.5
PM25_PER_AQI = 0.4
MAX_AQI = 500


def estimate_daily_commits(repositories: int, rng: np.random.Generator) -> int:
    """Approximate one day's commits from the number of new repositories."""
    if repositories <= 0:
        return 0
    low, high = COMMITS_PER_REPOSITORY
    return int(repositories * rng.integers(low, high))


def estimate_contributors(repositories: int) -> int:
    return int(math.floor(repositories * CONTRIBUTORS_PER_REPOSITORY))


def baseline_pm25(aqi: float) -> int:
    """PM2.5 fallback when a feed has no particulate reading."""
    return int(math.floor(aqi * PM25_PER_AQI))


def synthesize_environmental_history(
    base_aqi: float,
    base_pm25: float,
    days: int,
    rng: np.random.Generator,
) -> List[Tuple[int, int]]:
    """Build ``days`` (aqi, pm25) readings around the current baseline.

    AQI varies by up to +/-15 and is clamped to [0, 500]; PM2.5 varies by up
    to +/-7.5 and is floored at 0.
    """
    history = []
    for _ in range(days):
        aqi_variation = rng.uniform(-AQI_PERTURBATION, AQI_PERTURBATION)
        pm25_variation = rng.uniform(-PM25_PERTURBATION, PM25_PERTURBATION)
        aqi = int(max(0, min(MAX_AQI, math.floor(base_aqi + aqi_variation))))
        pm25 = int(max(0, math.floor(base_pm25 + pm25_variation)))
        history.append((aqi, pm25))
    return history


def estimate_daily_commits_from_weekly(
    weekly_totals: Sequence[int],
    days: int,
    rng: np.random.Generator,
) -> List[int]:
    """Spread weekly commit totals over the last ``days`` days, oldest first.

    The most recent week covers the most recent seven days. Days older than
    the available weeks, or every day when no weekly data exists, get a
    plausible random count instead.
    """
    daily = []
    for days_ago in range(days):
        week_index = days_ago // 7
        if weekly_totals:
            if week_index < len(weekly_totals):
                weekly = weekly_totals[len(weekly_totals) - 1 - week_index]
                daily.append(int(round(weekly / 7)) + int(rng.integers(0, 10)))
            else:
                daily.append(int(rng.integers(15, 45)))
        else:
            daily.append(int(rng.integers(20, 70)))
    daily.reverse()
    return daily


def estimate_daily_stars(total_stars: int, days: int, rng: np.random.Generator) -> List[int]:
    """Attribute a share of the all-time star count to each day in the window."""
    share = total_stars // days if days else 0
    return [int(share + rng.integers(0, 10)) for _ in range(days)]
