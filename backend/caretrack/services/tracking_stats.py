"""
Statistics over tracking entries. Pure functions, no I/O.
"""

import math
from collections import Counter
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from ..models.base import utcnow
from ..models.tracking import TrackingEntry, TrackingStatistics

DAY = timedelta(days=1)
MONTH = timedelta(days=30)
TREND_WINDOW_MONTHS = 3


def _round_half_up(value: float, digits: int = 0) -> float:
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def hour_histogram(entries: Sequence[TrackingEntry]) -> List[int]:
    """Entry count per local hour of day (0-23)."""
    counts = [0] * 24
    for entry in entries:
        counts[entry.date.astimezone().hour] += 1
    return counts


def calculate_trend(dates: Sequence[datetime], now: datetime) -> tuple[Optional[str], int]:
    """
    Compare the last three months with the three months before.

    No trend is claimed without a baseline: a previous window with zero
    events yields (None, 0).
    """
    recent_start = now - relativedelta(months=TREND_WINDOW_MONTHS)
    previous_start = now - relativedelta(months=2 * TREND_WINDOW_MONTHS)

    recent = sum(1 for d in dates if d >= recent_start)
    previous = sum(1 for d in dates if previous_start <= d < recent_start)

    if previous == 0:
        return None, 0

    diff = recent - previous
    percent = int(_round_half_up(abs(diff) / previous * 100))
    if diff < 0:
        return "improving", percent
    if diff > 0:
        return "worsening", percent
    return "stable", percent


def calculate_statistics(
    entries: Sequence[TrackingEntry],
    now: Optional[datetime] = None,
) -> TrackingStatistics:
    """
    Compute aggregate metrics for a list of entries.

    Args:
        entries: Entries in any order
        now: Clock override for tests

    Returns:
        TrackingStatistics (all zero/None for an empty list)
    """
    if not entries:
        return TrackingStatistics()

    now = now or utcnow()
    dates = [entry.date for entry in entries]
    latest, earliest = max(dates), min(dates)

    months = max(1.0, (latest - earliest) / MONTH)
    trend, trend_percent = calculate_trend(dates, now)

    type_counts = Counter(entry.type for entry in entries if entry.type)
    # max() keeps the first of equal counts, i.e. the first type encountered
    most_common_type = max(type_counts.items(), key=lambda item: item[1])[0] if type_counts else None

    hour_counts = hour_histogram(entries)
    peak = max(hour_counts)

    return TrackingStatistics(
        total_events=len(entries),
        days_since_last=math.floor((now - latest) / DAY),
        monthly_avg=_round_half_up(len(entries) / months, 1),
        trend=trend,
        trend_percent=trend_percent,
        most_common_type=most_common_type,
        most_common_hour=hour_counts.index(peak) if peak > 0 else None,
        type_counts=dict(type_counts),
        hour_counts=hour_counts,
    )
