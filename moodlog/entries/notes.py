"""Clinical notes.

The supervisor of an entry's assignment can keep private notes on that
entry. Notes belong to the supervisor who wrote them: nobody else can read,
edit or delete them.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from moodlog.clock import Clock, SystemClock
from moodlog.entries.models import ClinicalNote, Entry
from moodlog.errors import EntryNotFound, Forbidden, NoteNotFound, ValidationError

if TYPE_CHECKING:
    from moodlog.storage.base import Store

logger = logging.getLogger(__name__)


def _clean_note(note: Any) -> str:
    if not isinstance(note, str):
        raise ValidationError(f"Note must be text, got {type(note).__name__}", field="note")
    cleaned = note.strip()
    if not cleaned:
        raise ValidationError("Note must not be blank", field="note")
    return cleaned


class ClinicalNoteStore:
    """Adds, edits, deletes and lists a supervisor's notes on entries."""

    def __init__(self, store: Store, clock: Clock | None = None) -> None:
        self.store = store
        self.clock = clock or SystemClock()

    def _supervised_entry(self, entry_id: str, caller_id: str) -> Entry:
        entry = self.store.get_entry(entry_id)
        if entry is None:
            raise EntryNotFound(f"Entry not found: {entry_id}")
        assignment = self.store.get_assignment(entry.assignment_id)
        if assignment is None or assignment.supervisor_id != caller_id:
            raise Forbidden(f"Entry {entry_id} is not supervised by {caller_id}")
        return entry

    def _own_note(self, note_id: str, caller_id: str) -> ClinicalNote:
        note = self.store.get_note(note_id)
        if note is None or note.supervisor_id != caller_id:
            raise NoteNotFound(f"Clinical note not found: {note_id}")
        return note

    def add_note(self, entry_id: str, caller_id: str, note: str) -> ClinicalNote:
        """Attach a note to an entry of one of the caller's assignments.

        Raises:
            EntryNotFound: No such entry (or it was deleted).
            Forbidden: The caller does not supervise the entry's assignment.
            ValidationError: The note is blank.
        """
        text = _clean_note(note)
        with self.store.transaction():
            entry = self._supervised_entry(entry_id, caller_id)
            now = self.clock.now()
            clinical_note = ClinicalNote(
                id=str(uuid.uuid4()),
                entry_id=entry.id,
                supervisor_id=caller_id,
                note=text,
                created_at=now,
                updated_at=now,
            )
            self.store.add_note(clinical_note)

        logger.info("Clinical note %s added to entry %s", clinical_note.id, entry_id)
        return clinical_note

    def update_note(self, note_id: str, caller_id: str, note: str) -> ClinicalNote:
        """Replace the text of one of the caller's notes.

        Raises:
            NoteNotFound: No such note, or another supervisor wrote it.
        """
        text = _clean_note(note)
        with self.store.transaction():
            clinical_note = self._own_note(note_id, caller_id)
            clinical_note.note = text
            clinical_note.updated_at = self.clock.now()
            self.store.update_note(clinical_note)
        return clinical_note

    def delete_note(self, note_id: str, caller_id: str) -> None:
        """Remove one of the caller's notes for good."""
        with self.store.transaction():
            self._own_note(note_id, caller_id)
            self.store.delete_note(note_id)

        logger.info("Clinical note %s deleted", note_id)

    def list_notes(self, entry_id: str, caller_id: str) -> list[ClinicalNote]:
        """The caller's notes on an entry, newest first."""
        self._supervised_entry(entry_id, caller_id)
        return self.store.list_notes(entry_id, supervisor_id=caller_id)
