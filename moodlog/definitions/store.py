"""Register definition store.

Supervisor-owned, versioned register schemas. Definitions are authored
from scratch or copied from a read-only template, and are retired
(soft-deleted) rather than removed.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from moodlog.clock import Clock, SystemClock
from moodlog.errors import (
    DefinitionNotFound,
    Forbidden,
    HasActiveAssignments,
    ValidationError,
)
from moodlog.registry.kinds import FieldTypeRegistry
from moodlog.registry.models import (
    Provenance,
    RegisterDefinition,
    RegisterSchema,
    RegisterTemplate,
)
from moodlog.validation.schema import SchemaCandidate, require_valid_schema

if TYPE_CHECKING:
    from moodlog.storage.base import Store

logger = logging.getLogger(__name__)


def _clean_name(name: str) -> str:
    if name is not None and not isinstance(name, str):
        raise ValidationError(
            f"Register name must be text, got {type(name).__name__}", field="name"
        )
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Register name must not be blank", field="name")
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    if not isinstance(description, str):
        raise ValidationError(
            f"Description must be text, got {type(description).__name__}",
            field="description",
        )
    return description.strip() or None


class RegisterDefinitionStore:
    """Creates, edits and retires register definitions."""

    def __init__(
        self,
        store: Store,
        clock: Clock | None = None,
        field_types: FieldTypeRegistry | None = None,
    ) -> None:
        self.store = store
        self.clock = clock or SystemClock()
        self.field_types = field_types

    def create(
        self,
        owner_id: str,
        name: str,
        description: str | None,
        schema: SchemaCandidate,
    ) -> RegisterDefinition:
        """Create an authored definition.

        Raises:
            EmptySchema: If the schema has no fields.
            InvalidSchema: If the schema fails validation.
            ValidationError: If the name is blank.
        """
        normalised = require_valid_schema(schema, self.field_types)
        now = self.clock.now()
        definition = RegisterDefinition(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=_clean_name(name),
            description=_clean_description(description),
            schema=normalised,
            provenance=Provenance.AUTHORED,
            created_at=now,
            updated_at=now,
        )
        self.store.add_definition(definition)
        logger.info(
            "Created register definition %s for owner %s (%d fields)",
            definition.id,
            owner_id,
            len(normalised.fields),
        )
        return definition

    def copy_from_template(
        self,
        owner_id: str,
        template: RegisterTemplate,
    ) -> RegisterDefinition:
        """Deep-copy a read-only template into a new owned definition.

        The copy is marked as template-derived, so its schema can never be
        replaced in place.
        """
        schema = require_valid_schema(
            template.schema_.model_copy(deep=True), self.field_types
        )
        now = self.clock.now()
        definition = RegisterDefinition(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=_clean_name(template.name),
            description=_clean_description(template.description),
            schema=schema,
            provenance=Provenance.TEMPLATE,
            template_id=template.template_id,
            created_at=now,
            updated_at=now,
        )
        self.store.add_definition(definition)
        logger.info(
            "Copied template %s into definition %s for owner %s",
            template.template_id,
            definition.id,
            owner_id,
        )
        return definition

    def get(self, definition_id: str, caller_id: str) -> RegisterDefinition:
        """Get a definition owned by the caller.

        Raises:
            DefinitionNotFound: If no definition has that id.
            Forbidden: If the caller does not own it.
        """
        definition = self.store.get_definition(definition_id)
        if definition is None:
            raise DefinitionNotFound(f"Register definition not found: {definition_id}")
        if definition.owner_id != caller_id:
            raise Forbidden(
                f"Register definition {definition_id} belongs to another supervisor"
            )
        return definition

    def list_for_owner(
        self,
        owner_id: str,
        include_retired: bool = False,
    ) -> list[RegisterDefinition]:
        definitions = self.store.list_definitions(owner_id)
        if include_retired:
            return definitions
        return [d for d in definitions if d.active]

    def replace_schema(
        self,
        definition_id: str,
        new_schema: SchemaCandidate,
        caller_id: str,
    ) -> RegisterDefinition:
        """Replace an authored definition's schema and bump its version.

        Existing assignments keep the schema they were created with.

        Raises:
            Forbidden: If the definition is template-derived or not the caller's.
            EmptySchema / InvalidSchema: If the new schema is rejected.
        """
        normalised = require_valid_schema(new_schema, self.field_types)

        with self.store.transaction():
            definition = self.get(definition_id, caller_id)
            if definition.provenance != Provenance.AUTHORED:
                raise Forbidden(
                    f"Register definition {definition_id} was copied from a template "
                    "and its schema cannot be replaced"
                )

            definition.schema_ = RegisterSchema(
                fields=normalised.fields,
                version=definition.schema_.version + 1,
            )
            definition.updated_at = self.clock.now()
            self.store.update_definition(definition)

        logger.info(
            "Replaced schema of definition %s (now version %d)",
            definition_id,
            definition.version,
        )
        return definition

    def update_details(
        self,
        definition_id: str,
        caller_id: str,
        name: str | None = None,
        description: str | None = None,
    ) -> RegisterDefinition:
        """Rename or re-describe an authored definition without touching its schema."""
        with self.store.transaction():
            definition = self.get(definition_id, caller_id)
            if definition.provenance != Provenance.AUTHORED:
                raise Forbidden(
                    f"Register definition {definition_id} was copied from a template "
                    "and cannot be edited"
                )
            if name is not None:
                definition.name = _clean_name(name)
            if description is not None:
                definition.description = _clean_description(description)
            definition.updated_at = self.clock.now()
            self.store.update_definition(definition)
        return definition

    def retire(self, definition_id: str, caller_id: str) -> RegisterDefinition:
        """Soft-delete a definition. Retiring twice is a no-op.

        Raises:
            HasActiveAssignments: If any active assignment still references it.
        """
        with self.store.transaction():
            definition = self.get(definition_id, caller_id)
            if not definition.active:
                return definition

            active = self.store.find_assignments(definition_id=definition_id, active=True)
            if active:
                raise HasActiveAssignments(
                    f"Register definition {definition_id} has {len(active)} active "
                    "assignment(s)",
                )

            definition.active = False
            definition.updated_at = self.clock.now()
            self.store.update_definition(definition)

        logger.info("Retired register definition %s", definition_id)
        return definition
