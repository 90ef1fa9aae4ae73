"""Assignment engine.

Binds register definitions to subjects with a cadence and a validity
window, and derives each assignment's pending state from its entries.

State machine per assignment: created -> active -> inactive (terminal).
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import date, timedelta
from typing import TYPE_CHECKING

from moodlog.assignments.models import Assignment, AssignmentStatus, Cadence
from moodlog.clock import Clock, SystemClock
from moodlog.errors import (
    AssignmentNotFound,
    ConflictError,
    DuplicateActiveAssignment,
    Forbidden,
    ValidationError,
)
from moodlog.registry.models import RegisterDefinition, RegisterTemplate

if TYPE_CHECKING:
    from moodlog.definitions.store import RegisterDefinitionStore
    from moodlog.entries.models import Entry
    from moodlog.storage.base import Store

logger = logging.getLogger(__name__)

OVERDUE_AFTER_DAYS = 7


class AssignmentEngine:
    """Creates, deactivates and reports on assignments."""

    def __init__(
        self,
        store: Store,
        definitions: RegisterDefinitionStore,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.definitions = definitions
        self.clock = clock or SystemClock()

    def assign(
        self,
        caller_id: str,
        subject_ids: Iterable[str],
        cadence: Cadence | str,
        start_date: date,
        end_date: date | None = None,
        notes: str | None = None,
        definition_id: str | None = None,
        template: RegisterTemplate | None = None,
    ) -> list[Assignment]:
        """Assign a register to one or more subjects.

        Pass either ``definition_id`` (a definition the caller owns) or
        ``template``. A template is first deep-copied into a new owned
        definition so later edits never reach in-flight assignments.

        All assignments are created in one transaction: if any subject
        already has an active assignment for the definition, none are.

        Raises:
            ValidationError: Bad arguments (no subjects, both or neither
                source, end date before start date).
            DefinitionNotFound / Forbidden: Unknown or foreign definition.
            ConflictError: The definition is retired.
            DuplicateActiveAssignment: A subject is already assigned.
        """
        subjects = list(dict.fromkeys(subject_ids))
        if not subjects:
            raise ValidationError("At least one subject is required", field="subject_ids")
        if (definition_id is None) == (template is None):
            raise ValidationError(
                "Pass exactly one of definition_id or template", field="definition_id"
            )
        if end_date is not None and end_date < start_date:
            raise ValidationError(
                f"End date {end_date} is before start date {start_date}",
                field="end_date",
            )
        try:
            cadence = Cadence(cadence)
        except ValueError:
            raise ValidationError(f"Unknown cadence: {cadence!r}", field="cadence") from None
        if notes is not None and not isinstance(notes, str):
            raise ValidationError(
                f"Notes must be text, got {type(notes).__name__}", field="notes"
            )
        notes = (notes or "").strip() or None

        with self.store.transaction():
            definition = self._resolve_definition(caller_id, definition_id, template)

            for subject_id in subjects:
                existing = self.store.find_assignments(
                    definition_id=definition.id, subject_id=subject_id, active=True
                )
                if existing:
                    raise DuplicateActiveAssignment(
                        f"Subject {subject_id} already has an active assignment "
                        f"for register {definition.id}",
                        field="subject_ids",
                    )

            now = self.clock.now()
            created: list[Assignment] = []
            for subject_id in subjects:
                assignment = Assignment(
                    id=str(uuid.uuid4()),
                    definition_id=definition.id,
                    subject_id=subject_id,
                    supervisor_id=caller_id,
                    cadence=cadence,
                    start_date=start_date,
                    end_date=end_date,
                    notes=notes,
                    schema=definition.schema_.model_copy(deep=True),
                    created_at=now,
                    updated_at=now,
                )
                self.store.add_assignment(assignment)
                created.append(assignment)

        logger.info(
            "Assigned register %s to %d subject(s) (%s)",
            definition.id,
            len(created),
            cadence.value,
        )
        return created

    def _resolve_definition(
        self,
        caller_id: str,
        definition_id: str | None,
        template: RegisterTemplate | None,
    ) -> RegisterDefinition:
        if template is not None:
            return self.definitions.copy_from_template(caller_id, template)

        definition = self.definitions.get(definition_id, caller_id)
        if not definition.active:
            raise ConflictError(
                f"Register definition {definition_id} is retired", field="definition_id"
            )
        return definition

    def get(self, assignment_id: str, caller_id: str) -> Assignment:
        """Get an assignment visible to the caller (its supervisor or subject)."""
        assignment = self.store.get_assignment(assignment_id)
        if assignment is None:
            raise AssignmentNotFound(f"Assignment not found: {assignment_id}")
        if caller_id not in (assignment.supervisor_id, assignment.subject_id):
            raise Forbidden(f"Assignment {assignment_id} is not visible to {caller_id}")
        return assignment

    def deactivate(self, assignment_id: str, caller_id: str) -> Assignment:
        """Revoke an assignment. Deactivating twice is a no-op.

        Raises:
            AssignmentNotFound: If no assignment has that id.
            Forbidden: If the caller is not the assignment's supervisor.
        """
        with self.store.transaction():
            assignment = self.store.get_assignment(assignment_id)
            if assignment is None:
                raise AssignmentNotFound(f"Assignment not found: {assignment_id}")
            if assignment.supervisor_id != caller_id:
                raise Forbidden(
                    f"Only the supervisor who created assignment {assignment_id} "
                    "can revoke it"
                )
            if not assignment.active:
                return assignment

            assignment.active = False
            assignment.updated_at = self.clock.now()
            self.store.update_assignment(assignment)

        logger.info("Deactivated assignment %s", assignment_id)
        return assignment

    def list_for_subject(self, subject_id: str, active_only: bool = True) -> list[Assignment]:
        return self.store.find_assignments(
            subject_id=subject_id, active=True if active_only else None
        )

    def list_for_supervisor(
        self,
        supervisor_id: str,
        active_only: bool = True,
    ) -> list[Assignment]:
        return self.store.find_assignments(
            supervisor_id=supervisor_id, active=True if active_only else None
        )

    def status(
        self,
        assignment: Assignment,
        entries: Iterable[Entry],
        today: date | None = None,
    ) -> AssignmentStatus:
        """Derive the pending state of an assignment.

        Only entries belonging to ``assignment`` are considered.
        """
        return assignment_status(assignment, entries, today or self.clock.today())


def assignment_status(
    assignment: Assignment,
    entries: Iterable[Entry],
    today: date,
) -> AssignmentStatus:
    """Derive ``is_due_today`` / ``is_overdue`` for an assignment.

    - daily: due today when no entry is dated today
    - weekly: overdue when the latest entry (or, with no entries, the start
      date) is more than seven days before today
    - as-needed: never due, never overdue

    Inactive assignments and days outside the validity window are never
    due or overdue.
    """
    dates = [e.entry_date for e in entries if e.assignment_id == assignment.id]
    last_entry_date = max(dates) if dates else None
    in_window = assignment.covers(today)

    status = AssignmentStatus(
        assignment_id=assignment.id,
        cadence=assignment.cadence,
        today=today,
        in_window=in_window,
        last_entry_date=last_entry_date,
    )
    if not assignment.active or not in_window:
        return status

    if assignment.cadence == Cadence.DAILY:
        status.is_due_today = today not in dates
    elif assignment.cadence == Cadence.WEEKLY:
        reference = last_entry_date or assignment.start_date
        status.is_overdue = today - reference > timedelta(days=OVERDUE_AFTER_DAYS)

    return status
