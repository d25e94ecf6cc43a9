"""Confidence scoring, significance classification and confidence intervals."""

import math
from typing import Dict, Optional

from app.domain.models import (
    ConfidenceInterval,
    CorrelationResult,
    SignificanceReport,
    SignificantCorrelation,
)

STRONG_THRESHOLD = 0.7
MODERATE_THRESHOLD = 0.5
WEAK_THRESHOLD = 0.3
HIGH_CONFIDENCE_THRESHOLD = 0.8
LOW_CONFIDENCE_THRESHOLD = 0.5

LOW_CONFIDENCE_HIGHLIGHT = (
    "Low confidence in correlation results due to insufficient data or high variability"
)
NO_SIGNIFICANCE_HIGHLIGHT = "No statistically significant correlations detected"

# (upper bound of alpha/2, two-sided critical z)
Z_CRITICAL_VALUES = (
    (0.005, 2.576),  # 99%
    (0.01, 2.326),   # 98%
    (0.025, 1.96),   # 95%
    (0.05, 1.645),   # 90%
    (0.1, 1.282),    # 80%
)
DEFAULT_Z_CRITICAL = 1.96
MIN_INTERVAL_SAMPLES = 4


def _base_confidence(data_points: int) -> float:
    if data_points < 5:
        return 0.1
    if data_points < 10:
        return 0.3
    if data_points < 20:
        return 0.5
    if data_points < 30:
        return 0.7
    return 0.8


def calculate_confidence(data_points: int, correlations: Dict[str, float]) -> float:
    """Confidence in [0, 1] from sample size, adjusted by mean |r|.

    With no valid (non-NaN) coefficient the confidence is the 0.1 floor.
    """
    valid = [abs(c) for c in correlations.values() if not math.isnan(c)]
    if not valid:
        return 0.1

    confidence = _base_confidence(data_points)
    mean_abs = sum(valid) / len(valid)
    if mean_abs > 0.7:
        confidence = min(confidence + 0.15, 0.95)
    elif mean_abs > 0.5:
        confidence = min(confidence + 0.05, 0.85)
    elif mean_abs < 0.2:
        confidence = max(confidence - 0.1, 0.1)
    return max(0.0, min(1.0, confidence))


def classify_strength(coefficient: float) -> Optional[str]:
    magnitude = abs(coefficient)
    if magnitude >= STRONG_THRESHOLD:
        return "strong"
    if magnitude >= MODERATE_THRESHOLD:
        return "moderate"
    if magnitude >= WEAK_THRESHOLD:
        return "weak"
    return None


def confidence_label(confidence: float) -> str:
    if confidence >= 0.9:
        return "very high"
    if confidence >= 0.8:
        return "high"
    if confidence >= 0.6:
        return "moderate"
    return "low"


def analyze_significance(
    result: CorrelationResult,
    subject: str = "higher air pollution",
    activity: str = "GitHub activity",
) -> SignificanceReport:
    """Classify each coefficient and summarize the result in highlight sentences.

    Args:
        result: Correlation to describe
        subject: What the counterpart series measures, used in direction highlights
        activity: What the activity series measures
    """
    significant = []
    for metric, coefficient in result.correlations.items():
        if math.isnan(coefficient):
            continue
        strength = classify_strength(coefficient)
        if strength is None:
            continue
        significant.append(SignificantCorrelation(
            metric=metric,
            coefficient=coefficient,
            strength=strength,
            direction="positive" if coefficient > 0 else "negative",
        ))

    has_significant = bool(significant) and result.confidence >= HIGH_CONFIDENCE_THRESHOLD
    highlights = []
    if has_significant:
        if any(c.strength == "strong" for c in significant):
            highlights.append(
                f"Strong correlations detected with high confidence ({round(result.confidence * 100)}%)"
            )
        if any(c.direction == "positive" for c in significant):
            highlights.append(
                f"Positive correlations suggest {subject} may coincide with increased {activity}"
            )
        if any(c.direction == "negative" for c in significant):
            highlights.append(
                f"Negative correlations suggest {subject} may coincide with decreased {activity}"
            )
    elif result.confidence < LOW_CONFIDENCE_THRESHOLD:
        highlights.append(LOW_CONFIDENCE_HIGHLIGHT)
    else:
        highlights.append(NO_SIGNIFICANCE_HIGHLIGHT)

    return SignificanceReport(
        has_significant_correlations=has_significant,
        significant_correlations=significant,
        highlights=highlights,
        confidence_level=confidence_label(result.confidence),
    )


def z_critical(confidence_level: float) -> float:
    half_alpha = (1 - confidence_level) / 2
    for bound, z in Z_CRITICAL_VALUES:
        if half_alpha <= bound + 1e-12:
            return z
    return DEFAULT_Z_CRITICAL


def confidence_interval(
    coefficient: float, sample_size: int, confidence_level: float = 0.95
) -> Optional[ConfidenceInterval]:
    """Fisher z-transform confidence interval for a correlation coefficient.

    Returns:
        None when the coefficient is NaN or fewer than four samples exist
    """
    if math.isnan(coefficient) or sample_size < MIN_INTERVAL_SAMPLES:
        return None
    if abs(coefficient) >= 1.0:
        return ConfidenceInterval(coefficient, coefficient, confidence_level)

    fisher_z = 0.5 * math.log((1 + coefficient) / (1 - coefficient))
    standard_error = 1 / math.sqrt(sample_size - 3)
    margin = z_critical(confidence_level) * standard_error

    lower = math.tanh(fisher_z - margin)
    upper = math.tanh(fisher_z + margin)
    return ConfidenceInterval(
        lower=max(-1.0, min(1.0, lower)),
        upper=max(-1.0, min(1.0, upper)),
        level=confidence_level,
    )


def interpret_market_correlation(coin_id: str, coefficient: float) -> str:
    """One or two sentences reading the commits-vs-price coefficient."""
    if math.isnan(coefficient):
        return (
            f"Insufficient commit data to calculate correlation for {coin_id}. "
            f"Using star and contributor data for analysis."
        )
    pct = f"{coefficient * 100:.1f}%"
    direction = "positive" if coefficient > 0 else "negative"
    magnitude = abs(coefficient)
    if magnitude < 0.3:
        return (
            f"Weak correlation ({pct}) between developer activity and {coin_id} price movements. "
            f"Market dynamics appear largely independent of commit frequency."
        )
    if magnitude < 0.6:
        return (
            f"Moderate {direction} correlation ({pct}) detected. "
            f"Developer activity shows some relationship with {coin_id} price trends."
        )
    tendency = "coincide with" if coefficient > 0 else "precede"
    return (
        f"Strong {direction} correlation ({pct}) between commits and {coin_id} price. "
        f"Active development periods tend to {tendency} price movements."
    )
