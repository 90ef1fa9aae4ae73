"""Entry store.

Subjects submit dated answer sets against their active assignments. Every
submission is validated against the schema the assignment was created
with before anything is persisted.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any

from moodlog.clock import Clock, SystemClock
from moodlog.entries.models import Entry
from moodlog.errors import (
    AssignmentInactive,
    AssignmentNotFound,
    EntryNotFound,
    Forbidden,
    FutureDate,
    ValidationError,
)
from moodlog.notifications import Notifier, NullNotifier, emit
from moodlog.registry.kinds import FieldTypeRegistry
from moodlog.validation.answers import Answer, AnswerValidator

if TYPE_CHECKING:
    from moodlog.assignments.models import Assignment
    from moodlog.storage.base import Store

logger = logging.getLogger(__name__)


def _coerce_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(
            f"Entry date must be an ISO YYYY-MM-DD date, got {value!r}",
            field="entry_date",
        ) from None


def _clean_notes(notes: str | None) -> str | None:
    if notes is None:
        return None
    if not isinstance(notes, str):
        raise ValidationError(
            f"Notes must be text, got {type(notes).__name__}", field="notes"
        )
    return notes.strip() or None


class EntryStore:
    """Submits, edits, soft-deletes and lists register entries."""

    def __init__(
        self,
        store: Store,
        clock: Clock | None = None,
        notifier: Notifier | None = None,
        field_types: FieldTypeRegistry | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.notifier = notifier or NullNotifier()
        self.validator = AnswerValidator(field_types)

    def _check(
        self,
        assignment: Assignment,
        data: Any,
        entry_date: date | str,
    ) -> tuple[date, dict[str, Answer]]:
        day = _coerce_date(entry_date)
        answers = self.validator.validate(assignment.schema_, data)
        if day > self.clock.today():
            raise FutureDate(
                f"Entry date {day} is in the future", field="entry_date"
            )
        return day, answers

    def _owned_assignment(self, assignment_id: str, subject_id: str) -> Assignment:
        assignment = self.store.get_assignment(assignment_id)
        if assignment is None or assignment.subject_id != subject_id:
            raise AssignmentNotFound(
                f"No assignment {assignment_id} for subject {subject_id}"
            )
        return assignment

    def _owned_entry(self, entry_id: str, subject_id: str) -> Entry:
        entry = self.store.get_entry(entry_id)
        if entry is None or entry.subject_id != subject_id:
            raise EntryNotFound(f"Entry not found: {entry_id}")
        return entry

    def submit(
        self,
        assignment_id: str,
        subject_id: str,
        data: dict[str, Any],
        entry_date: date | str,
        notes: str | None = None,
    ) -> Entry:
        """Submit an entry for one of the subject's assignments.

        Args:
            assignment_id: Assignment the entry answers.
            subject_id: The submitting subject.
            data: Raw answer set, field id to value.
            entry_date: Day the entry is for (date or ISO string).
            notes: Free-text note attached to the entry.

        Returns:
            The persisted Entry. ``data`` is stored exactly as given.

        Raises:
            AssignmentNotFound: No such assignment for this subject.
            AssignmentInactive: The assignment was revoked.
            SchemaMismatch: The answers do not fit the assignment's schema.
            FutureDate: ``entry_date`` is after today.
        """
        assignment = self._owned_assignment(assignment_id, subject_id)
        if not assignment.active:
            raise AssignmentInactive(f"Assignment {assignment_id} is no longer active")

        day, answers = self._check(assignment, data, entry_date)

        now = self.clock.now()
        entry = Entry(
            id=str(uuid.uuid4()),
            assignment_id=assignment.id,
            subject_id=subject_id,
            data=dict(data),
            answers=answers,
            entry_date=day,
            notes=_clean_notes(notes),
            created_at=now,
            updated_at=now,
        )
        self.store.add_entry(entry)

        logger.info(
            "Entry %s submitted for assignment %s (%s)",
            entry.id,
            assignment.id,
            day.isoformat(),
        )
        emit(
            self.notifier,
            "entry-submitted",
            entry_id=entry.id,
            assignment_id=assignment.id,
            subject_id=subject_id,
            supervisor_id=assignment.supervisor_id,
            entry_date=day.isoformat(),
        )
        return entry

    def update(
        self,
        entry_id: str,
        subject_id: str,
        data: dict[str, Any],
        entry_date: date | str,
        notes: str | None = None,
    ) -> Entry:
        """Replace an entry's answers, date and notes.

        The answers are re-validated against the assignment's schema.

        Raises:
            EntryNotFound: No such entry, or it belongs to another subject.
            SchemaMismatch / FutureDate: As for ``submit``.
        """
        with self.store.transaction():
            entry = self._owned_entry(entry_id, subject_id)
            assignment = self.store.get_assignment(entry.assignment_id)
            if assignment is None:
                raise AssignmentNotFound(f"Assignment not found: {entry.assignment_id}")

            day, answers = self._check(assignment, data, entry_date)

            entry.data = dict(data)
            entry.answers = answers
            entry.entry_date = day
            entry.notes = _clean_notes(notes)
            entry.updated_at = self.clock.now()
            self.store.update_entry(entry)

        logger.info("Entry %s updated", entry_id)
        return entry

    def delete(self, entry_id: str, subject_id: str) -> None:
        """Soft-delete an entry.

        Raises:
            EntryNotFound: No such entry, or it belongs to another subject.
        """
        with self.store.transaction():
            entry = self._owned_entry(entry_id, subject_id)
            entry.deleted_at = self.clock.now()
            self.store.update_entry(entry)

        logger.info("Entry %s deleted", entry_id)

    def get(self, entry_id: str, subject_id: str) -> Entry:
        return self._owned_entry(entry_id, subject_id)

    def list_for_subject(
        self,
        subject_id: str,
        since: date | None = None,
    ) -> list[Entry]:
        """All of a subject's entries, oldest first."""
        return self.store.list_entries(subject_id=subject_id, since=since)

    def list_for_assignment(
        self,
        assignment_id: str,
        caller_id: str,
        since: date | None = None,
    ) -> list[Entry]:
        """Entries of one assignment, for its subject or its supervisor.

        Raises:
            AssignmentNotFound: If no assignment has that id.
            Forbidden: If the caller is neither its subject nor its supervisor.
        """
        assignment = self.store.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(f"Assignment not found: {assignment_id}")
        if caller_id not in (assignment.subject_id, assignment.supervisor_id):
            raise Forbidden(f"Entries of assignment {assignment_id} are not visible to {caller_id}")
        return self.store.list_entries(assignment_id=assignment_id, since=since)
