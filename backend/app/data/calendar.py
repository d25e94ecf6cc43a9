"""Calendar helpers for request windows."""

from datetime import date, datetime, timezone
from typing import List, Optional

import pandas as pd

SUPPORTED_PERIODS = (7, 14, 30, 60, 90)


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def trailing_window(days: int, end: Optional[date] = None) -> List[str]:
    """ISO dates of the ``days`` calendar days ending at ``end`` (inclusive), oldest first.

    Args:
        days: Window length, must be positive
        end: Last day of the window, defaults to today (UTC)

    Returns:
        Strictly increasing list of YYYY-MM-DD strings
    """
    if days <= 0:
        raise ValueError(f"Window length must be positive, got {days}")
    end = end or utc_today()
    index = pd.date_range(end=pd.Timestamp(end), periods=days, freq="D")
    return [ts.strftime("%Y-%m-%d") for ts in index]


def is_supported_period(days: int) -> bool:
    return days in SUPPORTED_PERIODS
