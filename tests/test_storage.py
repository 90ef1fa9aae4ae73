"""Tests for the in-memory store."""

import threading
from datetime import date, datetime, timezone

import pytest

from moodlog.entries import ClinicalNote, Entry
from moodlog.registry import RegisterDefinition, RegisterSchema
from moodlog.storage import DuplicateKeyError, InMemoryStore, MissingRowError, Store

NOW = datetime(2024, 3, 15, tzinfo=timezone.utc)


def make_definition(definition_id: str = "d1") -> RegisterDefinition:
    return RegisterDefinition(
        id=definition_id,
        owner_id="dr-ruiz",
        name="Mood",
        schema=RegisterSchema(),
        created_at=NOW,
        updated_at=NOW,
    )


def make_entry(entry_id: str, day: date, subject_id: str = "patient-ana") -> Entry:
    return Entry(
        id=entry_id,
        assignment_id="a1",
        subject_id=subject_id,
        data={"mood": 5},
        entry_date=day,
        created_at=NOW,
        updated_at=NOW,
    )


class TestInMemoryStore:
    """Tests for InMemoryStore."""

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryStore(), Store)

    def test_rows_are_snapshots(self) -> None:
        store = InMemoryStore()
        definition = make_definition()
        store.add_definition(definition)

        definition.name = "Changed outside"
        fetched = store.get_definition("d1")
        assert fetched.name == "Mood"

        fetched.name = "Changed again"
        assert store.get_definition("d1").name == "Mood"

    def test_duplicate_add(self) -> None:
        store = InMemoryStore()
        store.add_definition(make_definition())
        with pytest.raises(DuplicateKeyError):
            store.add_definition(make_definition())

    def test_update_missing(self) -> None:
        with pytest.raises(MissingRowError):
            InMemoryStore().update_definition(make_definition())

    def test_get_missing(self) -> None:
        assert InMemoryStore().get_assignment("nope") is None

    def test_soft_deleted_entries_are_hidden(self) -> None:
        store = InMemoryStore()
        entry = make_entry("e1", date(2024, 3, 1))
        store.add_entry(entry)

        entry.deleted_at = NOW
        store.update_entry(entry)

        assert store.get_entry("e1") is None
        assert store.list_entries() == []

    def test_list_entries_filters(self) -> None:
        store = InMemoryStore()
        store.add_entry(make_entry("e1", date(2024, 3, 3)))
        store.add_entry(make_entry("e2", date(2024, 3, 1)))
        store.add_entry(make_entry("e3", date(2024, 3, 2), subject_id="patient-ben"))

        assert [e.id for e in store.list_entries(subject_id="patient-ana")] == ["e2", "e1"]
        assert [e.id for e in store.list_entries(since=date(2024, 3, 2))] == ["e3", "e1"]

    def test_notes_filtered_and_hard_deleted(self) -> None:
        store = InMemoryStore()
        for note_id, supervisor_id in (("n1", "dr-ruiz"), ("n2", "dr-lopez")):
            store.add_note(
                ClinicalNote(
                    id=note_id,
                    entry_id="e1",
                    supervisor_id=supervisor_id,
                    note="Check in",
                    created_at=NOW,
                    updated_at=NOW,
                )
            )

        assert [n.id for n in store.list_notes("e1", supervisor_id="dr-ruiz")] == ["n1"]
        assert len(store.list_notes("e1")) == 2

        store.delete_note("n1")
        assert store.get_note("n1") is None
        with pytest.raises(MissingRowError):
            store.delete_note("n1")

    def test_transaction_is_reentrant_and_exclusive(self) -> None:
        store = InMemoryStore()
        order: list[str] = []
        entered = threading.Event()

        def other_writer() -> None:
            entered.wait()
            with store.transaction():
                order.append("other")

        thread = threading.Thread(target=other_writer)
        thread.start()

        with store.transaction():
            with store.transaction():
                entered.set()
                thread.join(timeout=0.1)
                order.append("first")

        thread.join()
        assert order == ["first", "other"]
