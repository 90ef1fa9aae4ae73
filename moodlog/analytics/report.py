"""Adherence report: every metric computed from one snapshot of entries."""

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from typing import Any

from pydantic import BaseModel, Field

from moodlog.analytics.streaks import best_streak, consistency, current_streak
from moodlog.analytics.trends import (
    FieldStats,
    adherence_rate,
    field_stats,
    numeric_series,
    value_distribution,
    weekly_frequency,
)
from moodlog.errors import InsufficientData


class AdherenceReport(BaseModel):
    """Streaks, consistency and per-field summaries as of one day."""

    as_of: date
    window_days: int
    entry_count: int
    last_entry_date: date | None = None
    current_streak: int
    best_streak: int
    consistency: float
    weekly_frequency: dict[date, int] = Field(default_factory=dict)
    field_stats: dict[str, FieldStats] = Field(default_factory=dict)
    distributions: dict[str, dict[str, int]] = Field(default_factory=dict)


def build_report(
    entries: Iterable[Any],
    as_of: date,
    window_days: int = 30,
    fields: Sequence[str] = (),
) -> AdherenceReport:
    """Build an AdherenceReport.

    Entries dated after ``as_of`` are ignored, so a report for a past day
    only sees the history that existed then.

    Args:
        entries: Entry objects (or anything with ``entry_date``/``data``).
        as_of: Day the report is computed for.
        window_days: Consistency window.
        fields: Field ids to summarise. Numeric fields with at least two
            answers get FieldStats; every listed field gets a distribution.
    """
    snapshot = [e for e in entries if e.entry_date <= as_of]

    stats: dict[str, FieldStats] = {}
    distributions: dict[str, dict[str, int]] = {}
    for field_id in fields:
        try:
            stats[field_id] = field_stats(numeric_series(snapshot, field_id))
        except InsufficientData:
            pass
        distributions[field_id] = value_distribution(snapshot, field_id)

    return AdherenceReport(
        as_of=as_of,
        window_days=window_days,
        entry_count=len(snapshot),
        last_entry_date=max((e.entry_date for e in snapshot), default=None),
        current_streak=current_streak(snapshot, as_of),
        best_streak=best_streak(snapshot),
        consistency=consistency(snapshot, window_days, as_of),
        weekly_frequency=weekly_frequency(snapshot, as_of=as_of),
        field_stats=stats,
        distributions=distributions,
    )


class SupervisorSummary(BaseModel):
    """Activity across every subject one supervisor follows."""

    as_of: date
    total_subjects: int
    active_subjects: int
    active_assignments: int
    total_entries: int
    entries_this_week: int
    entries_this_month: int
    average_entries_per_subject: int
    adherence_rate: int


def supervisor_summary(
    entries: Iterable[Any],
    total_subjects: int,
    active_assignments: int,
    as_of: date,
) -> SupervisorSummary:
    """Summarise a supervisor's caseload as of one day.

    "This week" is the 7 days ending at ``as_of``; "this month" runs from
    the first of ``as_of``'s month. A subject is active when they have an
    entry this week.

    Args:
        entries: Entries (with ``subject_id`` and ``entry_date``) of the
            supervisor's assignments.
        total_subjects: Number of distinct subjects the supervisor follows.
        active_assignments: Number of the supervisor's active assignments.
        as_of: Day the summary is computed for.
    """
    snapshot = [e for e in entries if e.entry_date <= as_of]
    week_start = as_of - timedelta(days=7)
    this_week = [e for e in snapshot if e.entry_date > week_start]
    month_start = as_of.replace(day=1)

    return SupervisorSummary(
        as_of=as_of,
        total_subjects=total_subjects,
        active_subjects=len({e.subject_id for e in this_week}),
        active_assignments=active_assignments,
        total_entries=len(snapshot),
        entries_this_week=len(this_week),
        entries_this_month=sum(1 for e in snapshot if e.entry_date >= month_start),
        average_entries_per_subject=(
            round(len(snapshot) / total_subjects) if total_subjects > 0 else 0
        ),
        adherence_rate=adherence_rate(snapshot, active_assignments, as_of),
    )
