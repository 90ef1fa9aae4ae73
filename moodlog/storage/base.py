"""Persistence collaborator protocol.

The core never talks to a database directly. Anything that implements
``Store`` can back it; ``InMemoryStore`` is the reference implementation.
"""

from contextlib import AbstractContextManager
from datetime import date
from typing import Protocol, runtime_checkable

from moodlog.assignments.models import Assignment
from moodlog.entries.models import ClinicalNote, Entry
from moodlog.invitations.models import InvitationCode
from moodlog.registry.models import RegisterDefinition


@runtime_checkable
class Store(Protocol):
    """Create/read/update/soft-delete access to the core entities.

    Implementations must give snapshot-read-after-write consistency inside
    one ``transaction()`` block, and must serialise concurrent blocks that
    touch the same rows (check-then-act sequences rely on it).
    """

    def transaction(self) -> AbstractContextManager[None]:
        """Open a logical transaction. Re-entrant."""
        ...

    # Register definitions

    def add_definition(self, definition: RegisterDefinition) -> None: ...

    def get_definition(self, definition_id: str) -> RegisterDefinition | None: ...

    def update_definition(self, definition: RegisterDefinition) -> None: ...

    def list_definitions(self, owner_id: str) -> list[RegisterDefinition]: ...

    # Assignments

    def add_assignment(self, assignment: Assignment) -> None: ...

    def get_assignment(self, assignment_id: str) -> Assignment | None: ...

    def update_assignment(self, assignment: Assignment) -> None: ...

    def find_assignments(
        self,
        definition_id: str | None = None,
        subject_id: str | None = None,
        supervisor_id: str | None = None,
        active: bool | None = None,
    ) -> list[Assignment]: ...

    # Entries

    def add_entry(self, entry: Entry) -> None: ...

    def get_entry(self, entry_id: str) -> Entry | None: ...

    def update_entry(self, entry: Entry) -> None: ...

    def list_entries(
        self,
        assignment_id: str | None = None,
        subject_id: str | None = None,
        since: date | None = None,
    ) -> list[Entry]: ...

    # Clinical notes

    def add_note(self, note: ClinicalNote) -> None: ...

    def get_note(self, note_id: str) -> ClinicalNote | None: ...

    def update_note(self, note: ClinicalNote) -> None: ...

    def delete_note(self, note_id: str) -> None: ...

    def list_notes(
        self,
        entry_id: str,
        supervisor_id: str | None = None,
    ) -> list[ClinicalNote]: ...

    # Invitations

    def add_invitation(self, invitation: InvitationCode) -> None: ...

    def update_invitation(self, invitation: InvitationCode) -> None: ...

    def find_invitations(
        self,
        supervisor_id: str | None = None,
        email: str | None = None,
        code: str | None = None,
        unused_only: bool = False,
    ) -> list[InvitationCode]: ...
