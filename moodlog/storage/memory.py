"""In-memory implementation of the persistence collaborator."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date

from pydantic import BaseModel

from moodlog.assignments.models import Assignment
from moodlog.entries.models import ClinicalNote, Entry
from moodlog.invitations.models import InvitationCode
from moodlog.registry.models import RegisterDefinition


class DuplicateKeyError(Exception):
    """Raised when adding a row whose id already exists."""

    pass


class MissingRowError(Exception):
    """Raised when updating a row that was never added."""

    pass


class InMemoryStore:
    """Dict-backed store guarded by one re-entrant lock.

    Rows are deep-copied on the way in and on the way out, so callers only
    ever hold snapshots and cannot mutate stored state by accident.
    ``transaction()`` holds the lock for the whole block, which makes
    check-then-act sequences atomic against other threads.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._definitions: dict[str, RegisterDefinition] = {}
        self._assignments: dict[str, Assignment] = {}
        self._entries: dict[str, Entry] = {}
        self._notes: dict[str, ClinicalNote] = {}
        self._invitations: dict[str, InvitationCode] = {}

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    @staticmethod
    def _copy(row: BaseModel) -> BaseModel:
        return row.model_copy(deep=True)

    def _add(self, table: dict, row: BaseModel) -> None:
        with self._lock:
            if row.id in table:
                raise DuplicateKeyError(f"Row already exists: {row.id}")
            table[row.id] = self._copy(row)

    def _update(self, table: dict, row: BaseModel) -> None:
        with self._lock:
            if row.id not in table:
                raise MissingRowError(f"Row not found: {row.id}")
            table[row.id] = self._copy(row)

    def _get(self, table: dict, row_id: str):
        with self._lock:
            row = table.get(row_id)
            return self._copy(row) if row is not None else None

    # Register definitions

    def add_definition(self, definition: RegisterDefinition) -> None:
        self._add(self._definitions, definition)

    def get_definition(self, definition_id: str) -> RegisterDefinition | None:
        return self._get(self._definitions, definition_id)

    def update_definition(self, definition: RegisterDefinition) -> None:
        self._update(self._definitions, definition)

    def list_definitions(self, owner_id: str) -> list[RegisterDefinition]:
        with self._lock:
            rows = [d for d in self._definitions.values() if d.owner_id == owner_id]
            return [self._copy(d) for d in sorted(rows, key=lambda d: d.created_at)]

    # Assignments

    def add_assignment(self, assignment: Assignment) -> None:
        self._add(self._assignments, assignment)

    def get_assignment(self, assignment_id: str) -> Assignment | None:
        return self._get(self._assignments, assignment_id)

    def update_assignment(self, assignment: Assignment) -> None:
        self._update(self._assignments, assignment)

    def find_assignments(
        self,
        definition_id: str | None = None,
        subject_id: str | None = None,
        supervisor_id: str | None = None,
        active: bool | None = None,
    ) -> list[Assignment]:
        with self._lock:
            rows = [
                a
                for a in self._assignments.values()
                if (definition_id is None or a.definition_id == definition_id)
                and (subject_id is None or a.subject_id == subject_id)
                and (supervisor_id is None or a.supervisor_id == supervisor_id)
                and (active is None or a.active == active)
            ]
            return [self._copy(a) for a in sorted(rows, key=lambda a: a.created_at)]

    # Entries

    def add_entry(self, entry: Entry) -> None:
        self._add(self._entries, entry)

    def get_entry(self, entry_id: str) -> Entry | None:
        entry = self._get(self._entries, entry_id)
        if entry is None or entry.deleted:
            return None
        return entry

    def update_entry(self, entry: Entry) -> None:
        self._update(self._entries, entry)

    def list_entries(
        self,
        assignment_id: str | None = None,
        subject_id: str | None = None,
        since: date | None = None,
    ) -> list[Entry]:
        with self._lock:
            rows = [
                e
                for e in self._entries.values()
                if not e.deleted
                and (assignment_id is None or e.assignment_id == assignment_id)
                and (subject_id is None or e.subject_id == subject_id)
                and (since is None or e.entry_date >= since)
            ]
            rows.sort(key=lambda e: (e.entry_date, e.created_at))
            return [self._copy(e) for e in rows]

    # Clinical notes

    def add_note(self, note: ClinicalNote) -> None:
        self._add(self._notes, note)

    def get_note(self, note_id: str) -> ClinicalNote | None:
        return self._get(self._notes, note_id)

    def update_note(self, note: ClinicalNote) -> None:
        self._update(self._notes, note)

    def delete_note(self, note_id: str) -> None:
        with self._lock:
            if self._notes.pop(note_id, None) is None:
                raise MissingRowError(f"Row not found: {note_id}")

    def list_notes(
        self,
        entry_id: str,
        supervisor_id: str | None = None,
    ) -> list[ClinicalNote]:
        with self._lock:
            rows = [
                n
                for n in self._notes.values()
                if n.entry_id == entry_id
                and (supervisor_id is None or n.supervisor_id == supervisor_id)
            ]
            rows.sort(key=lambda n: n.created_at, reverse=True)
            return [self._copy(n) for n in rows]

    # Invitations

    def add_invitation(self, invitation: InvitationCode) -> None:
        self._add(self._invitations, invitation)

    def update_invitation(self, invitation: InvitationCode) -> None:
        self._update(self._invitations, invitation)

    def find_invitations(
        self,
        supervisor_id: str | None = None,
        email: str | None = None,
        code: str | None = None,
        unused_only: bool = False,
    ) -> list[InvitationCode]:
        with self._lock:
            rows = [
                i
                for i in self._invitations.values()
                if (supervisor_id is None or i.supervisor_id == supervisor_id)
                and (email is None or i.email == email)
                and (code is None or i.code == code)
                and (not unused_only or not i.used)
            ]
            return [self._copy(i) for i in sorted(rows, key=lambda i: i.created_at)]
