"""Trend, per-field statistics and frequency metrics.

Pure functions over a snapshot of entries. Nothing here is statistically
rigorous: a trend is the comparison of two half-means.
"""

import math
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel

from moodlog.errors import InsufficientData
from moodlog.validation.answers import NUMERIC_ANSWERS, MultiChoiceAnswer


class Trend(str, Enum):
    """Direction of change between the two halves of a series."""

    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class FieldStats(BaseModel):
    """Summary of one numeric field over an entry history."""

    count: int
    mean: float
    minimum: float
    maximum: float
    trend: Trend
    trend_percent: int


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _halves(values: Sequence[float]) -> tuple[Sequence[float], Sequence[float]]:
    if len(values) < 2:
        raise InsufficientData(
            f"A trend needs at least 2 values, got {len(values)}", field="values"
        )
    mid = len(values) // 2
    return values[:mid], values[mid:]


def trend(values: Sequence[float]) -> Trend:
    """Compare the mean of the second half of a series against the first.

    The split is at ``floor(n / 2)``, so with an odd count the middle value
    belongs to the second half.

    Raises:
        InsufficientData: With fewer than two values.
    """
    first, second = _halves(values)
    first_mean, second_mean = _mean(first), _mean(second)
    if second_mean > first_mean:
        return Trend.UP
    if second_mean < first_mean:
        return Trend.DOWN
    return Trend.STABLE


def _numeric(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def numeric_series(entries: Iterable[Any], field_id: str) -> list[float]:
    """Chronological numeric answers to one number or bounded-scale field.

    Typed answers are used when present; otherwise the raw value in
    ``data`` is read. Entries without a numeric answer are skipped.
    """
    series: list[float] = []
    for entry in sorted(entries, key=lambda e: e.entry_date):
        answer = (getattr(entry, "answers", None) or {}).get(field_id)
        if isinstance(answer, NUMERIC_ANSWERS):
            series.append(float(answer.value))
            continue
        value = _numeric((getattr(entry, "data", None) or {}).get(field_id))
        if value is not None:
            series.append(value)
    return series


def field_stats(values: Sequence[float]) -> FieldStats:
    """Count, mean, range and trend of a numeric series.

    ``trend_percent`` is the change of the second-half mean relative to the
    first-half mean, rounded; it is 0 when the first-half mean is not
    positive.

    Raises:
        InsufficientData: With fewer than two values.
    """
    first, second = _halves(values)
    first_mean, second_mean = _mean(first), _mean(second)
    percent = 0
    if first_mean > 0:
        percent = round((second_mean - first_mean) / first_mean * 100)

    return FieldStats(
        count=len(values),
        mean=_mean(values),
        minimum=min(values),
        maximum=max(values),
        trend=trend(values),
        trend_percent=percent,
    )


def value_distribution(entries: Iterable[Any], field_id: str) -> dict[str, int]:
    """Count how often each answer value occurs for a field.

    Multi-select answers count each chosen option once. Values are keyed
    by their string form, most frequent first.
    """
    counts: Counter[str] = Counter()
    for entry in entries:
        answer = (getattr(entry, "answers", None) or {}).get(field_id)
        if isinstance(answer, MultiChoiceAnswer):
            counts.update(answer.values)
            continue
        if answer is not None:
            counts[str(answer.value)] += 1
            continue

        raw = (getattr(entry, "data", None) or {}).get(field_id)
        if raw is None or raw == "":
            continue
        if isinstance(raw, list):
            counts.update(str(v) for v in raw)
        else:
            counts[str(raw)] += 1
    return dict(counts.most_common())


def _day(item: Any) -> date:
    return item if isinstance(item, date) else item.entry_date


def week_start(day: date) -> date:
    """The Sunday on or before ``day``."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def weekly_frequency(
    entries: Iterable[Any],
    weeks: int = 8,
    as_of: date | None = None,
) -> dict[date, int]:
    """Number of entries per Sunday-started week.

    Returns the last ``weeks`` buckets ending with the week containing
    ``as_of`` (default: the latest entry), oldest first. Empty weeks are
    included with a count of 0.
    """
    items = list(entries)
    if weeks < 1:
        return {}
    if as_of is None:
        if not items:
            return {}
        as_of = max(_day(item) for item in items)

    last = week_start(as_of)
    buckets = {last - timedelta(weeks=n): 0 for n in reversed(range(weeks))}
    for item in items:
        key = week_start(_day(item))
        if key in buckets:
            buckets[key] += 1
    return buckets


def adherence_rate(
    entries: Iterable[Any],
    active_assignments: int,
    as_of: date,
) -> int:
    """Share of the expected daily entries submitted in the last 7 days.

    Each active assignment expects one entry per day. The rate is a rounded
    percentage capped at 100, and 0 with no active assignments.
    """
    if active_assignments < 1:
        return 0
    start = as_of - timedelta(days=7)
    recent = sum(1 for item in entries if start < _day(item) <= as_of)
    return min(100, round(recent / (active_assignments * 7) * 100))
