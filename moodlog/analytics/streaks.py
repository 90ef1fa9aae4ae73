"""Streak and consistency metrics.

All functions are pure and work on a snapshot of a subject's history:
either Entry objects (anything with an ``entry_date``) or plain dates.
Several entries on the same day count as one satisfied day.
"""

from collections.abc import Iterable
from datetime import date, timedelta
from typing import Any

from moodlog.clock import SystemClock
from moodlog.errors import ValidationError


def entry_dates(entries: Iterable[Any]) -> set[date]:
    """Collapse a history to the set of days that have at least one entry."""
    days: set[date] = set()
    for item in entries:
        day = item if isinstance(item, date) else item.entry_date
        days.add(day)
    return days


def current_streak(entries: Iterable[Any], as_of: date | None = None) -> int:
    """Count consecutive days with an entry, ending at ``as_of``.

    ``as_of`` defaults to today (UTC). Returns 0 when ``as_of`` itself has
    no entry.
    """
    if as_of is None:
        as_of = SystemClock().today()
    days = entry_dates(entries)
    streak = 0
    day = as_of
    while day in days:
        streak += 1
        day -= timedelta(days=1)
    return streak


def best_streak(entries: Iterable[Any]) -> int:
    """Length of the longest run of consecutive days with an entry."""
    days = sorted(entry_dates(entries))
    if not days:
        return 0

    best = run = 1
    for previous, day in zip(days, days[1:]):
        if day - previous == timedelta(days=1):
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def consistency(
    entries: Iterable[Any],
    window_days: int = 30,
    as_of: date | None = None,
) -> float:
    """Percentage of days in the window that have an entry.

    The window is the ``window_days`` days ending at ``as_of`` (inclusive,
    default today in UTC).
    The result is clamped to [0, 100].

    Raises:
        ValidationError: If ``window_days`` is below 1.
    """
    if window_days < 1:
        raise ValidationError(
            f"window_days must be at least 1, got {window_days}", field="window_days"
        )
    if as_of is None:
        as_of = SystemClock().today()

    start = as_of - timedelta(days=window_days)
    hits = sum(1 for day in entry_dates(entries) if start < day <= as_of)
    return min(100.0, max(0.0, hits / window_days * 100))
