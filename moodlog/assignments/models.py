"""Pydantic models for assignments and their derived status."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from moodlog.registry.models import RegisterSchema


class Cadence(str, Enum):
    """Required submission frequency."""

    DAILY = "daily"
    WEEKLY = "weekly"
    AS_NEEDED = "as-needed"


class Assignment(BaseModel):
    """Binding of one register definition to one subject.

    ``schema`` is a copy of the definition's schema taken when the
    assignment was created; entries are validated against it, never
    against the definition's current schema.
    """

    id: str
    definition_id: str
    subject_id: str
    supervisor_id: str
    cadence: Cadence
    start_date: date
    end_date: date | None = None
    active: bool = True
    notes: str | None = None
    schema_: RegisterSchema = Field(alias="schema")
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    def covers(self, day: date) -> bool:
        """Whether ``day`` falls inside the inclusive validity window."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date


class AssignmentStatus(BaseModel):
    """Derived, read-only state of an assignment on a given day."""

    assignment_id: str
    cadence: Cadence
    today: date
    is_due_today: bool = False
    is_overdue: bool = False
    in_window: bool = True
    last_entry_date: date | None = None
