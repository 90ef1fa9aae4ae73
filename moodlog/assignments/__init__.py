"""Assignment engine and models."""

from moodlog.assignments.models import Assignment, AssignmentStatus, Cadence

__all__ = ["Assignment", "AssignmentStatus", "Cadence"]
