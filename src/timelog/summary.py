#!/usr/bin/env python3
"""
Calendar-bucketed duration summaries for completed entries.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Tuple

from .entry import Entry, format_duration

logger = logging.getLogger(__name__)

BucketKey = Tuple[int, ...]


class Granularity(Enum):
    """
    Summary period, declared in output order.
    """

    YEARLY = "yearly"
    MONTHLY = "monthly"
    WEEKLY = "weekly"
    DAILY = "daily"


def bucket_key(start: datetime, granularity: Granularity) -> BucketKey:
    """
    Return the bucket key for a start timestamp.

    Parameters
    ----------
    start : datetime
        Entry start, bucketed in its own recorded offset.
    granularity : Granularity
        Summary period.

    Returns
    -------
    BucketKey
        ``(year,)``, ``(year, month)``, ``(iso_year, iso_week)``, or
        ``(year, day_of_year)``.

    Examples
    --------
    >>> bucket_key(datetime(2024, 12, 30, 9, 0), Granularity.WEEKLY)
    (2025, 1)
    >>> bucket_key(datetime(2024, 2, 1, 9, 0), Granularity.DAILY)
    (2024, 32)
    """
    if granularity is Granularity.YEARLY:
        return (start.year,)
    if granularity is Granularity.MONTHLY:
        return (start.year, start.month)
    if granularity is Granularity.WEEKLY:
        iso = start.isocalendar()
        return (iso[0], iso[1])
    return (start.year, start.timetuple().tm_yday)


def format_bucket_label(key: BucketKey, granularity: Granularity) -> str:
    """
    Format a bucket key for display.

    Examples
    --------
    >>> format_bucket_label((2024, 3), Granularity.MONTHLY)
    '2024-03'
    >>> format_bucket_label((2025, 1), Granularity.WEEKLY)
    '2025-W01'
    >>> format_bucket_label((2024, 32), Granularity.DAILY)
    '2024-02-01'
    """
    if granularity is Granularity.YEARLY:
        return f"{key[0]:04d}"
    if granularity is Granularity.MONTHLY:
        return f"{key[0]:04d}-{key[1]:02d}"
    if granularity is Granularity.WEEKLY:
        return f"{key[0]:04d}-W{key[1]:02d}"
    day = date(key[0], 1, 1) + timedelta(days=key[1] - 1)
    return day.isoformat()


def _ordered(granularities: Iterable[Granularity]) -> List[Granularity]:
    requested = set(granularities)
    return [granularity for granularity in Granularity if granularity in requested]


def aggregate_entries(
    entries: Iterable[Entry],
    granularities: Iterable[Granularity],
) -> Dict[Granularity, Dict[BucketKey, timedelta]]:
    """
    Sum completed entry durations per calendar bucket.

    Parameters
    ----------
    entries : Iterable[Entry]
        Entries to summarize. Entries without both start and stop are skipped.
    granularities : Iterable[Granularity]
        Requested summary periods.

    Returns
    -------
    Dict[Granularity, Dict[BucketKey, timedelta]]
        Totals per bucket for each requested granularity.

    Raises
    ------
    ValueError
        If no granularity is requested.
    """
    requested = _ordered(granularities)
    if not requested:
        raise ValueError("At least one summary period is required.")
    totals: Dict[Granularity, Dict[BucketKey, timedelta]] = {
        granularity: {} for granularity in requested
    }
    skipped = 0
    for entry in entries:
        if entry.start is None or entry.stop is None:
            skipped += 1
            continue
        duration = entry.stop - entry.start
        for granularity in requested:
            buckets = totals[granularity]
            key = bucket_key(entry.start, granularity)
            buckets[key] = buckets.get(key, timedelta(0)) + duration
    if skipped:
        logger.debug("Skipped %d incomplete entries", skipped)
    return totals


def render_summary(
    entries: Iterable[Entry],
    granularities: Sequence[Granularity],
) -> List[str]:
    """
    Render summary lines for the requested periods.

    Blocks appear in yearly, monthly, weekly, daily order, separated by a
    single blank line.

    Parameters
    ----------
    entries : Iterable[Entry]
        Entries to summarize.
    granularities : Sequence[Granularity]
        Requested summary periods.

    Returns
    -------
    List[str]
        Output lines without line breaks.
    """
    totals = aggregate_entries(entries, granularities)
    lines: List[str] = []
    for granularity, buckets in totals.items():
        if not buckets:
            continue
        if lines:
            lines.append("")
        for key in sorted(buckets):
            label = format_bucket_label(key, granularity)
            lines.append(f"{label}: {format_duration(buckets[key])}")
    return lines
