"""Pearson correlation over date-aligned series.

Series are aligned on (date, entity id). A metric pair names one numeric
field on the activity side and one on the counterpart side, so the same
functions serve activity-vs-air-quality and activity-vs-market analysis.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from app.domain.models import AlignedPair, CorrelationResult, InsufficientDataForCorrelation
from app.engines.correlation.significance import calculate_confidence
from core.structured_logger import get_structured_logger

logger = get_structured_logger("Correlation")

# metric name -> (activity field, counterpart field)
MetricPairs = Dict[str, Tuple[str, str]]

ENVIRONMENTAL_PAIRS: MetricPairs = {
    "commits_aqi": ("commits", "aqi"),
    "stars_aqi": ("stars", "aqi"),
    "commits_pm25": ("commits", "pm25"),
    "stars_pm25": ("stars", "pm25"),
}

MARKET_PAIRS: MetricPairs = {
    "commits_price": ("commits", "price"),
    "commits_volume": ("commits", "volume"),
    "stars_price": ("stars", "price"),
    "contributors_price": ("contributors", "price"),
}

MIN_ALIGNED_POINTS = 2


def pearson(x: Sequence[float], y: Sequence[float]) -> float:
    """Pearson correlation coefficient of two equal-length series.

    Returns NaN when the lengths differ, fewer than two points are given, or
    either series has zero variance. Floating point overshoot past +/-1 is
    snapped back to the boundary.
    """
    if len(x) != len(y) or len(x) < 2:
        return math.nan

    xs = np.asarray(x, dtype=float)
    ys = np.asarray(y, dtype=float)
    if np.all(xs == xs[0]) or np.all(ys == ys[0]):
        return math.nan

    n = len(xs)
    sum_x, sum_y = xs.sum(), ys.sum()
    numerator = n * np.dot(xs, ys) - sum_x * sum_y
    variance_product = (n * np.dot(xs, xs) - sum_x ** 2) * (n * np.dot(ys, ys) - sum_y ** 2)
    if not variance_product > 0:
        return math.nan

    r = float(numerator / math.sqrt(variance_product))
    if r > 1.0 or r < -1.0:
        logger.debug(f"Snapping coefficient {r!r} into [-1, 1]")
        r = max(-1.0, min(1.0, r))
    return r


def align_by_date(activity: Sequence, counterpart: Sequence) -> List[AlignedPair]:
    """Pair samples sharing date and entity id, sorted ascending by date.

    Each activity sample is matched with the first counterpart sample for
    the same (date, entity); unmatched samples on either side are dropped.
    """
    index = {}
    for sample in counterpart:
        index.setdefault((sample.date, sample.entity_id), sample)

    pairs = [
        AlignedPair(date=a.date, activity=a, counterpart=index[(a.date, a.entity_id)])
        for a in activity
        if (a.date, a.entity_id) in index
    ]
    pairs.sort(key=lambda p: p.date)
    return pairs


def _column(pairs: Sequence[AlignedPair], side: str, field: str) -> List[float]:
    return [float(getattr(getattr(p, side), field)) for p in pairs]


def _has_variation(values: Sequence[float]) -> bool:
    return any(v != values[0] for v in values)


def check_correlation_inputs(
    activity: Sequence,
    counterpart: Sequence,
    pairs: MetricPairs = ENVIRONMENTAL_PAIRS,
    activity_label: str = "GitHub activity",
    counterpart_label: str = "Air quality",
) -> Optional[InsufficientDataForCorrelation]:
    """Decide whether a correlation is worth computing.

    Returns:
        None when the inputs are usable, otherwise the reason they are not
    """
    if not activity or not counterpart:
        return InsufficientDataForCorrelation("No data available for correlation analysis")

    aligned = align_by_date(activity, counterpart)
    if len(aligned) < MIN_ALIGNED_POINTS:
        return InsufficientDataForCorrelation(
            "Insufficient overlapping data points for correlation analysis"
        )

    activity_fields = sorted({a for a, _ in pairs.values()})
    counterpart_fields = sorted({c for _, c in pairs.values()})

    if not any(_has_variation(_column(aligned, "activity", f)) for f in activity_fields):
        return InsufficientDataForCorrelation(f"{activity_label} data shows no variation")
    if not any(_has_variation(_column(aligned, "counterpart", f)) for f in counterpart_fields):
        return InsufficientDataForCorrelation(f"{counterpart_label} data shows no variation")
    return None


def empty_correlation(
    entity_id: str, period: int, pairs: MetricPairs, data_points: int = 0
) -> CorrelationResult:
    """All-NaN result with zero confidence."""
    return CorrelationResult(
        entity_id=entity_id,
        period=period,
        correlations={name: math.nan for name in pairs},
        confidence=0.0,
        data_points=data_points,
    )


def calculate_correlation(
    activity: Sequence,
    counterpart: Sequence,
    entity_id: str,
    period: int,
    pairs: MetricPairs = ENVIRONMENTAL_PAIRS,
) -> CorrelationResult:
    """Correlate every metric pair over the date-aligned samples."""
    aligned = align_by_date(activity, counterpart)
    if len(aligned) < MIN_ALIGNED_POINTS:
        return empty_correlation(entity_id, period, pairs, data_points=len(aligned))

    correlations = {
        name: pearson(_column(aligned, "activity", a), _column(aligned, "counterpart", c))
        for name, (a, c) in pairs.items()
    }
    return CorrelationResult(
        entity_id=entity_id,
        period=period,
        correlations=correlations,
        confidence=calculate_confidence(len(aligned), correlations),
        data_points=len(aligned),
    )
