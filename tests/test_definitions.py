"""Tests for the register definition store."""

from datetime import date
from typing import Any

import pytest

from conftest import OTHER_SUPERVISOR, SUBJECT, SUPERVISOR
from moodlog.core import Services
from moodlog.errors import (
    DefinitionNotFound,
    EmptySchema,
    Forbidden,
    HasActiveAssignments,
    InvalidSchema,
    ValidationError,
)
from moodlog.registry import Provenance


class TestCreate:
    """Tests for authoring definitions."""

    def test_create(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        definition = services.definitions.create(
            SUPERVISOR, "  Mood diary ", "Daily mood", mood_schema
        )

        assert definition.owner_id == SUPERVISOR
        assert definition.name == "Mood diary"
        assert definition.provenance == Provenance.AUTHORED
        assert definition.version == 1
        assert definition.active
        assert services.store.get_definition(definition.id) == definition

    def test_empty_schema_rejected(self, services: Services) -> None:
        with pytest.raises(EmptySchema):
            services.definitions.create(SUPERVISOR, "Empty", None, [])
        assert services.store.list_definitions(SUPERVISOR) == []

    def test_invalid_schema_rejected(self, services: Services) -> None:
        with pytest.raises(InvalidSchema):
            services.definitions.create(
                SUPERVISOR,
                "Broken",
                None,
                [{"id": "x", "kind": "single-select", "label": "X"}],
            )

    def test_blank_name_rejected(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        with pytest.raises(ValidationError):
            services.definitions.create(SUPERVISOR, "   ", None, mood_schema)

    def test_non_text_name_rejected(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            services.definitions.create(SUPERVISOR, 123, None, mood_schema)
        assert exc_info.value.field == "name"

    def test_non_text_description_rejected(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        with pytest.raises(ValidationError) as exc_info:
            services.definitions.create(SUPERVISOR, "Mood", 7, mood_schema)
        assert exc_info.value.field == "description"
        assert services.store.list_definitions(SUPERVISOR) == []

    def test_copy_from_template(self, services: Services) -> None:
        template = services.templates.get("daily_mood")
        definition = services.definitions.copy_from_template(SUPERVISOR, template)

        assert definition.provenance == Provenance.TEMPLATE
        assert definition.template_id == "daily_mood"
        assert definition.schema_ == template.schema_
        assert definition.schema_ is not template.schema_


class TestAccess:
    """Ownership checks."""

    def test_get_own(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        assert services.definitions.get(created.id, SUPERVISOR) == created

    def test_get_unknown(self, services: Services) -> None:
        with pytest.raises(DefinitionNotFound):
            services.definitions.get("missing", SUPERVISOR)

    def test_get_foreign(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        with pytest.raises(Forbidden):
            services.definitions.get(created.id, OTHER_SUPERVISOR)

    def test_list_for_owner(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        first = services.definitions.create(SUPERVISOR, "One", None, mood_schema)
        second = services.definitions.create(SUPERVISOR, "Two", None, mood_schema)
        services.definitions.create(OTHER_SUPERVISOR, "Theirs", None, mood_schema)
        services.definitions.retire(second.id, SUPERVISOR)

        assert [d.id for d in services.definitions.list_for_owner(SUPERVISOR)] == [first.id]
        everything = services.definitions.list_for_owner(SUPERVISOR, include_retired=True)
        assert {d.id for d in everything} == {first.id, second.id}


class TestReplaceSchema:
    """Schema replacement and versioning."""

    def test_bumps_version(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        updated = services.definitions.replace_schema(
            created.id, mood_schema[:2], SUPERVISOR
        )

        assert updated.version == 2
        assert updated.schema_.field_ids == ["mood", "hours"]
        assert services.definitions.get(created.id, SUPERVISOR).version == 2

    def test_version_ignores_candidate_version(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        updated = services.definitions.replace_schema(
            created.id, {"version": 9, "fields": mood_schema}, SUPERVISOR
        )
        assert updated.version == 2

    def test_template_copy_cannot_be_replaced(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        copy = services.definitions.copy_from_template(
            SUPERVISOR, services.templates.get("daily_mood")
        )
        with pytest.raises(Forbidden):
            services.definitions.replace_schema(copy.id, mood_schema, SUPERVISOR)

    def test_foreign_definition(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        with pytest.raises(Forbidden):
            services.definitions.replace_schema(created.id, mood_schema, OTHER_SUPERVISOR)

    def test_rejected_schema_leaves_definition_untouched(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        with pytest.raises(EmptySchema):
            services.definitions.replace_schema(created.id, [], SUPERVISOR)
        assert services.definitions.get(created.id, SUPERVISOR) == created

    def test_existing_assignments_keep_their_schema(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        [assignment] = services.assignments.assign(
            SUPERVISOR, [SUBJECT], "daily", date(2024, 3, 1), definition_id=created.id
        )

        services.definitions.replace_schema(created.id, mood_schema[:1], SUPERVISOR)

        stored = services.store.get_assignment(assignment.id)
        assert stored.schema_.version == 1
        assert stored.schema_.field_ids == [f["id"] for f in mood_schema]


class TestUpdateDetails:
    def test_rename(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", "old", mood_schema)
        updated = services.definitions.update_details(
            created.id, SUPERVISOR, name="Mood v2", description=""
        )
        assert updated.name == "Mood v2"
        assert updated.description is None
        assert updated.version == 1

    def test_template_copy_cannot_be_renamed(self, services: Services) -> None:
        copy = services.definitions.copy_from_template(
            SUPERVISOR, services.templates.get("weekly_sleep")
        )
        with pytest.raises(Forbidden):
            services.definitions.update_details(copy.id, SUPERVISOR, name="Mine")


class TestRetire:
    """Soft deletion."""

    def test_retire(self, services: Services, mood_schema: list[dict[str, Any]]) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        retired = services.definitions.retire(created.id, SUPERVISOR)

        assert not retired.active
        assert services.store.get_definition(created.id) is not None

    def test_retire_twice_is_noop(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        first = services.definitions.retire(created.id, SUPERVISOR)
        second = services.definitions.retire(created.id, SUPERVISOR)
        assert first == second

    def test_active_assignments_block_retire(
        self, services: Services, mood_schema: list[dict[str, Any]]
    ) -> None:
        created = services.definitions.create(SUPERVISOR, "Mood", None, mood_schema)
        [assignment] = services.assignments.assign(
            SUPERVISOR, [SUBJECT], "daily", date(2024, 3, 1), definition_id=created.id
        )

        with pytest.raises(HasActiveAssignments):
            services.definitions.retire(created.id, SUPERVISOR)

        services.assignments.deactivate(assignment.id, SUPERVISOR)
        assert not services.definitions.retire(created.id, SUPERVISOR).active
