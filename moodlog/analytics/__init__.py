"""Adherence and streak analytics over entry histories."""

from moodlog.analytics.report import (
    AdherenceReport,
    SupervisorSummary,
    build_report,
    supervisor_summary,
)
from moodlog.analytics.streaks import (
    best_streak,
    consistency,
    current_streak,
    entry_dates,
)
from moodlog.analytics.trends import (
    FieldStats,
    Trend,
    adherence_rate,
    field_stats,
    numeric_series,
    trend,
    value_distribution,
    week_start,
    weekly_frequency,
)

__all__ = [
    "AdherenceReport",
    "FieldStats",
    "SupervisorSummary",
    "Trend",
    "adherence_rate",
    "best_streak",
    "build_report",
    "consistency",
    "current_streak",
    "entry_dates",
    "field_stats",
    "numeric_series",
    "supervisor_summary",
    "trend",
    "value_distribution",
    "week_start",
    "weekly_frequency",
]
