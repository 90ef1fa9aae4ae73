"""Tests for the entry store."""

from datetime import date, datetime

import pytest

from conftest import OTHER_SUBJECT, OTHER_SUPERVISOR, SUBJECT, SUPERVISOR
from moodlog.assignments import Assignment
from moodlog.core import Services
from moodlog.errors import (
    AssignmentInactive,
    AssignmentNotFound,
    EntryNotFound,
    Forbidden,
    FutureDate,
    SchemaMismatch,
    ValidationError,
)
from moodlog.notifications import NotificationEvent, RecordingNotifier
from moodlog.validation import ScaleAnswer

MOOD_ONLY = [
    {"id": "mood", "kind": "bounded-scale", "label": "Mood", "min": 0, "max": 10, "required": True}
]


@pytest.fixture
def assignment(services: Services) -> Assignment:
    """A daily mood-only assignment for SUBJECT starting 2024-01-01."""
    definition = services.definitions.create(SUPERVISOR, "Mood", None, MOOD_ONLY)
    [created] = services.assignments.assign(
        SUPERVISOR, [SUBJECT], "daily", date(2024, 1, 1), definition_id=definition.id
    )
    return created


class TestSubmit:
    """Submitting entries."""

    def test_mood_scale_submission(self, services: Services, assignment: Assignment) -> None:
        """A 0-10 mood accepts 7 and rejects 11 and a missing answer."""
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 7}, date(2024, 1, 1))
        assert entry.entry_date == date(2024, 1, 1)
        assert entry.answers["mood"] == ScaleAnswer(field_id="mood", value=7, min=0, max=10)

        with pytest.raises(SchemaMismatch):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 11}, date(2024, 1, 1))
        with pytest.raises(SchemaMismatch):
            services.entries.submit(assignment.id, SUBJECT, {}, date(2024, 1, 1))

    def test_data_is_stored_verbatim(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(
            assignment.id, SUBJECT, {"mood": 3}, "2024-03-10", notes="  rough day "
        )

        stored = services.store.get_entry(entry.id)
        assert stored.data == {"mood": 3}
        assert stored.notes == "rough day"
        assert stored.entry_date == date(2024, 3, 10)

    def test_today_is_allowed(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15))
        assert entry.entry_date == date(2024, 3, 15)

    def test_future_date(self, services: Services, assignment: Assignment) -> None:
        with pytest.raises(FutureDate):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 16))
        assert services.entries.list_for_subject(SUBJECT) == []

    def test_bad_date_string(self, services: Services, assignment: Assignment) -> None:
        with pytest.raises(ValidationError):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, "15/03/2024")

    def test_datetime_entry_date_uses_its_day(
        self, services: Services, assignment: Assignment
    ) -> None:
        entry = services.entries.submit(
            assignment.id, SUBJECT, {"mood": 5}, datetime(2024, 3, 14, 9, 30)
        )
        assert entry.entry_date == date(2024, 3, 14)
        assert type(entry.entry_date) is date

        with pytest.raises(FutureDate):
            services.entries.submit(
                assignment.id, SUBJECT, {"mood": 5}, datetime(2024, 3, 16, 8, 0)
            )
        with pytest.raises(FutureDate):
            services.entries.update(
                entry.id, SUBJECT, {"mood": 5}, datetime(2024, 3, 20, 8, 0)
            )

    def test_notes_must_be_text(self, services: Services, assignment: Assignment) -> None:
        with pytest.raises(ValidationError) as exc_info:
            services.entries.submit(
                assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15), notes=42
            )
        assert exc_info.value.field == "notes"
        assert services.entries.list_for_subject(SUBJECT) == []

    def test_mismatch_is_not_persisted(
        self, services: Services, assignment: Assignment
    ) -> None:
        with pytest.raises(SchemaMismatch):
            services.entries.submit(
                assignment.id, SUBJECT, {"mood": 5, "extra": "x"}, date(2024, 3, 15)
            )
        assert services.entries.list_for_subject(SUBJECT) == []

    def test_foreign_assignment(self, services: Services, assignment: Assignment) -> None:
        with pytest.raises(AssignmentNotFound):
            services.entries.submit(assignment.id, OTHER_SUBJECT, {"mood": 5}, date(2024, 3, 15))

    def test_unknown_assignment(self, services: Services) -> None:
        with pytest.raises(AssignmentNotFound):
            services.entries.submit("missing", SUBJECT, {"mood": 5}, date(2024, 3, 15))

    def test_inactive_assignment(self, services: Services, assignment: Assignment) -> None:
        services.assignments.deactivate(assignment.id, SUPERVISOR)
        with pytest.raises(AssignmentInactive):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15))

    def test_emits_entry_submitted(
        self,
        services: Services,
        assignment: Assignment,
        notifier: RecordingNotifier,
    ) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15))

        [event] = notifier.of_type("entry-submitted")
        assert event.payload["entry_id"] == entry.id
        assert event.payload["supervisor_id"] == SUPERVISOR
        assert event.payload["entry_date"] == "2024-03-15"

    def test_failing_notifier_does_not_fail_submit(
        self, services: Services, assignment: Assignment
    ) -> None:
        class BrokenNotifier:
            def notify(self, event: NotificationEvent) -> None:
                raise ConnectionError("mail server down")

        services.entries.notifier = BrokenNotifier()
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15))
        assert services.store.get_entry(entry.id) is not None

    def test_schema_replacement_does_not_affect_submissions(
        self, services: Services, assignment: Assignment
    ) -> None:
        services.definitions.replace_schema(
            assignment.definition_id,
            [{"id": "energy", "kind": "number", "label": "Energy", "required": True}],
            SUPERVISOR,
        )
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 15))
        assert entry.data == {"mood": 5}


class TestUpdateAndDelete:
    """Editing entries."""

    def test_update(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))
        updated = services.entries.update(
            entry.id, SUBJECT, {"mood": 8}, date(2024, 3, 13), notes="better"
        )

        assert updated.data == {"mood": 8}
        assert updated.entry_date == date(2024, 3, 13)
        assert services.entries.get(entry.id, SUBJECT).notes == "better"

    def test_update_revalidates(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))

        with pytest.raises(SchemaMismatch):
            services.entries.update(entry.id, SUBJECT, {"mood": -1}, date(2024, 3, 14))
        with pytest.raises(FutureDate):
            services.entries.update(entry.id, SUBJECT, {"mood": 5}, date(2024, 4, 1))
        assert services.entries.get(entry.id, SUBJECT).data == {"mood": 5}

    def test_update_foreign_entry(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))
        with pytest.raises(EntryNotFound):
            services.entries.update(entry.id, OTHER_SUBJECT, {"mood": 1}, date(2024, 3, 14))

    def test_delete(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))
        services.entries.delete(entry.id, SUBJECT)

        assert services.entries.list_for_subject(SUBJECT) == []
        with pytest.raises(EntryNotFound):
            services.entries.get(entry.id, SUBJECT)
        with pytest.raises(EntryNotFound):
            services.entries.delete(entry.id, SUBJECT)

    def test_delete_foreign_entry(self, services: Services, assignment: Assignment) -> None:
        entry = services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))
        with pytest.raises(EntryNotFound):
            services.entries.delete(entry.id, OTHER_SUBJECT)
        assert services.entries.get(entry.id, SUBJECT) is not None


class TestListing:
    """Listing entries."""

    def test_list_for_subject_is_chronological(
        self, services: Services, assignment: Assignment
    ) -> None:
        for day in (date(2024, 3, 12), date(2024, 3, 10), date(2024, 3, 11)):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, day)

        days = [e.entry_date for e in services.entries.list_for_subject(SUBJECT)]
        assert days == [date(2024, 3, 10), date(2024, 3, 11), date(2024, 3, 12)]

    def test_list_since(self, services: Services, assignment: Assignment) -> None:
        for day in (date(2024, 3, 1), date(2024, 3, 10)):
            services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, day)

        recent = services.entries.list_for_subject(SUBJECT, since=date(2024, 3, 5))
        assert [e.entry_date for e in recent] == [date(2024, 3, 10)]

    def test_list_for_assignment_access(
        self, services: Services, assignment: Assignment
    ) -> None:
        services.entries.submit(assignment.id, SUBJECT, {"mood": 5}, date(2024, 3, 14))

        assert len(services.entries.list_for_assignment(assignment.id, SUBJECT)) == 1
        assert len(services.entries.list_for_assignment(assignment.id, SUPERVISOR)) == 1
        with pytest.raises(Forbidden):
            services.entries.list_for_assignment(assignment.id, OTHER_SUPERVISOR)
        with pytest.raises(AssignmentNotFound):
            services.entries.list_for_assignment("missing", SUBJECT)
