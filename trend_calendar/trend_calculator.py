"""
Growth calculations for keyword search volume.

This module ranks keywords for a calendar month by how far that month's
volume deviates from the keyword's own historical average, and builds the
trailing month windows used for charts and insight requests. All functions
are pure: they read KeywordSeries and never modify them.
"""

import math
from typing import Dict, List, Mapping, Tuple

import numpy as np

from .models import GrowthRecord, KeywordSeries, MonthVolume


def period_key(year: int, month: int) -> str:
    """Dataset key for a calendar month, e.g. 2025-07."""
    return f"{year:04d}-{month:02d}"


def period_label(year: int, month: int) -> str:
    """Display label for a calendar month, e.g. 2025.07."""
    return f"{year:04d}.{month:02d}"


def shift_month(year: int, month: int, offset: int) -> Tuple[int, int]:
    """
    Move a (year, month) pair by a whole number of months

    Args:
        year: Calendar year
        month: Month, 1-12
        offset: Months to move; negative values go back in time

    Returns:
        Tuple of (year, month)
    """
    index = year * 12 + (month - 1) + offset
    return index // 12, index % 12 + 1


def average_volume(series: KeywordSeries) -> float:
    """
    Mean of the strictly positive monthly volumes of a keyword

    Months with zero volume are left out of the average instead of being
    counted as zero-valued samples.

    Args:
        series: Keyword series

    Returns:
        Average volume, or 0.0 when the keyword has no positive months
    """
    values = np.fromiter(series.monthly_data.values(), dtype=float, count=len(series.monthly_data))
    positive = values[values > 0]
    if positive.size == 0:
        return 0.0
    return float(positive.mean())


def growth_for(series: KeywordSeries, year: int, month: int) -> GrowthRecord:
    """
    Percentage deviation of one month's volume from the keyword average

    Args:
        series: Keyword series
        year: Target year
        month: Target month, 1-12

    Returns:
        GrowthRecord with growth in percent (0.0 when the average is zero)
        and the raw volume for that month (0 when absent)
    """
    volume = int(series.monthly_data.get(period_key(year, month), 0))
    avg = average_volume(series)
    growth = (volume - avg) / avg * 100 if avg > 0 else 0.0
    return GrowthRecord(keyword=series.keyword, growth=growth, volume=volume)


def rank_keywords(all_series: Mapping[str, KeywordSeries], year: int, month: int) -> List[GrowthRecord]:
    """
    Rank every keyword by growth for a month, highest first

    The sort is stable, so keywords with equal growth keep their order in
    ``all_series``. The result is never truncated; callers take a prefix.

    Args:
        all_series: Mapping of keyword to series
        year: Target year
        month: Target month, 1-12

    Returns:
        List of GrowthRecord sorted by growth descending
    """
    records = [growth_for(series, year, month) for series in all_series.values()]
    return sorted(records, key=lambda record: record.growth, reverse=True)


def month_window(year: int, month: int, window_size: int) -> List[Tuple[int, int]]:
    """Calendar months ending at (year, month), oldest first."""
    return [shift_month(year, month, -offset) for offset in range(window_size - 1, -1, -1)]


def previous_months(series: KeywordSeries, year: int, month: int, window_size: int = 6) -> List[MonthVolume]:
    """
    Trailing window of monthly volumes ending at the target month

    Unlike the average, zero-volume months are kept here.

    Args:
        series: Keyword series
        year: Target year
        month: Target month, 1-12
        window_size: Number of months including the target month

    Returns:
        List of MonthVolume, oldest first
    """
    return [
        MonthVolume(label=period_label(y, m), volume=int(series.monthly_data.get(period_key(y, m), 0)))
        for y, m in month_window(year, month, window_size)
    ]


def trend_window(all_series: Mapping[str, KeywordSeries], keywords: List[str],
                 year: int, month: int, months: int = 12) -> List[Dict[str, object]]:
    """
    Chart rows for the selected keywords over the last ``months`` months

    Args:
        all_series: Mapping of keyword to series
        keywords: Keywords to include, in selection order
        year: Last year shown
        month: Last month shown
        months: Number of months in the window

    Returns:
        List of dicts with ``month`` (label), ``period`` (key) and
        ``volumes`` (keyword -> volume); keywords missing from the dataset
        plot as 0
    """
    rows = []
    for y, m in month_window(year, month, months):
        key = period_key(y, m)
        volumes = {}
        for keyword in keywords:
            series = all_series.get(keyword)
            volumes[keyword] = int(series.monthly_data.get(key, 0)) if series else 0
        rows.append({"month": period_label(y, m), "period": key, "volumes": volumes})
    return rows


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13, -12.5 -> -12)."""
    return int(math.floor(value + 0.5))
