#!/usr/bin/env python3
"""
Log entry records, their ordering, and their display rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from functools import cmp_to_key
from typing import List, Optional, Tuple

MISSING_VALUE = "--"
DURATION_UNITS: Tuple[Tuple[str, int], ...] = (
    ("d", 86400),
    ("h", 3600),
    ("m", 60),
    ("s", 1),
)


@dataclass
class Entry:
    """
    One logged work session.

    Attributes
    ----------
    start : Optional[datetime]
        Local timestamp when the session started.
    stop : Optional[datetime]
        Local timestamp when the session stopped, or None while open.
    goal : str
        Intended work, captured at start.
    result : str
        Outcome, captured at stop.
    notes : List[str]
        Notes appended during the session's lifetime.
    """

    start: Optional[datetime] = None
    stop: Optional[datetime] = None
    goal: str = ""
    result: str = ""
    notes: List[str] = field(default_factory=list)

    @property
    def is_open(self) -> bool:
        return self.stop is None

    @property
    def duration(self) -> Optional[timedelta]:
        """
        Return the elapsed time between start and stop.

        Returns
        -------
        Optional[timedelta]
            Elapsed time, or None unless both timestamps are set.
        """
        if self.start is None or self.stop is None:
            return None
        return self.stop - self.start


def compare_entries(left: Entry, right: Entry) -> int:
    """
    Compare two entries by start time.

    Entries without a start sort before every entry that has one.

    Parameters
    ----------
    left : Entry
        First entry.
    right : Entry
        Second entry.

    Returns
    -------
    int
        Negative, zero, or positive as ``left`` sorts before, with, or after
        ``right``.

    Examples
    --------
    >>> early = Entry(start=datetime(2024, 1, 1, 9, 0))
    >>> late = Entry(start=datetime(2024, 1, 1, 10, 0))
    >>> compare_entries(early, late)
    -1
    >>> compare_entries(Entry(), early)
    -1
    >>> compare_entries(Entry(), Entry())
    0
    """
    if left.start is None:
        return 0 if right.start is None else -1
    if right.start is None:
        return 1
    if left.start < right.start:
        return -1
    if left.start > right.start:
        return 1
    return 0


entry_sort_key = cmp_to_key(compare_entries)


def format_duration(span: timedelta) -> str:
    """
    Format a time span as compact day/hour/minute/second tokens.

    Zero-valued units are omitted and sub-second precision is dropped.

    Parameters
    ----------
    span : timedelta
        Span to format.

    Returns
    -------
    str
        Formatted span, empty for a zero span.

    Examples
    --------
    >>> format_duration(timedelta(minutes=90))
    '1h30m'
    >>> format_duration(timedelta(hours=25))
    '1d1h'
    >>> format_duration(timedelta(days=1, hours=2, minutes=3, seconds=4))
    '1d2h3m4s'
    >>> format_duration(timedelta(0))
    ''
    """
    total = int(span.total_seconds())
    sign = -1 if total < 0 else 1
    remaining = abs(total)
    parts: List[str] = []
    for letter, unit_seconds in DURATION_UNITS:
        value, remaining = divmod(remaining, unit_seconds)
        if value:
            parts.append(f"{sign * value}{letter}")
    return "".join(parts)


def format_timestamp(value: Optional[datetime]) -> str:
    """
    Format a timestamp for display.

    Examples
    --------
    >>> format_timestamp(datetime(2024, 1, 3, 9, 30, 15, 123456))
    '2024-01-03 09:30:15'
    >>> format_timestamp(None)
    '--'
    """
    if value is None:
        return MISSING_VALUE
    return value.isoformat(sep=" ", timespec="seconds")


def _titled_lines(title: str, text: str, pad: int) -> List[str]:
    lines = text.splitlines() or [""]
    rendered = [f"{title:<{pad}}{lines[0]}"]
    rendered.extend(f"{'':<{pad}}{line}" for line in lines[1:])
    return rendered


def format_entry(entry: Entry) -> str:
    """
    Render an entry as a block of labeled lines.

    Parameters
    ----------
    entry : Entry
        Entry to render.

    Returns
    -------
    str
        Rendered block without a trailing line break.

    Examples
    --------
    >>> entry = Entry(
    ...     start=datetime(2024, 1, 3, 9, 0),
    ...     stop=datetime(2024, 1, 3, 10, 30),
    ...     goal="Write parser",
    ...     result="Parser done",
    ...     notes=["first\\nsecond"],
    ... )
    >>> print(format_entry(entry))
    Start Time: 2024-01-03 09:00:00
    Stop Time:  2024-01-03 10:30:00
    Duration:   1h30m
    Goal:       Write parser
    Result:     Parser done
    Note:       first
                second
    """
    duration = entry.duration
    fields: List[Tuple[str, str, bool]] = [
        ("Start Time:", format_timestamp(entry.start), False),
        ("Stop Time:", format_timestamp(entry.stop), False),
        (
            "Duration:",
            format_duration(duration) if duration is not None else MISSING_VALUE,
            False,
        ),
        ("Goal:", entry.goal, True),
        ("Result:", entry.result, True),
    ]
    fields.extend(("Note:", note, True) for note in entry.notes)
    pad = max(len(title) for title, _, _ in fields) + 1

    lines: List[str] = []
    for title, value, multiline in fields:
        if multiline:
            lines.extend(_titled_lines(title, value, pad))
        else:
            lines.append(f"{title:<{pad}}{value}")
    return "\n".join(lines)
