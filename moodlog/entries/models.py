"""Pydantic models for register entries."""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from moodlog.validation.answers import Answer


class Entry(BaseModel):
    """One subject's dated submission against an assignment.

    ``data`` is the answer set exactly as submitted; ``answers`` is the
    typed view produced by the answer validator from the same submission.
    """

    id: str
    assignment_id: str
    subject_id: str
    data: dict[str, Any]
    answers: dict[str, Answer] = Field(default_factory=dict)
    entry_date: date
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None = None

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None


class ClinicalNote(BaseModel):
    """A supervisor's private note on one entry.

    Only the supervisor of the entry's assignment can write it, and it is
    never shown to the subject.
    """

    id: str
    entry_id: str
    supervisor_id: str
    note: str
    created_at: datetime
    updated_at: datetime
