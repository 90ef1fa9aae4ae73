"""Pydantic models for register schemas, definitions and templates."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class FieldKind(str, Enum):
    """Answer type of a single question."""

    SHORT_TEXT = "short-text"
    LONG_TEXT = "long-text"
    NUMBER = "number"
    SINGLE_SELECT = "single-select"
    MULTI_SELECT = "multi-select"
    BOUNDED_SCALE = "bounded-scale"
    DATE = "date"
    TIME = "time"


class Provenance(str, Enum):
    """Where a register definition's schema came from."""

    AUTHORED = "authored"
    TEMPLATE = "template"


class FieldSpec(BaseModel):
    """One question in a register schema."""

    id: str
    kind: FieldKind
    label: str
    required: bool = False
    placeholder: str | None = None
    options: list[str] | None = None
    min: int | float | None = None
    max: int | float | None = None

    def to_contract(self) -> dict[str, Any]:
        """Serialise to the persisted field-shape contract.

        Optional keys are omitted when unset so the stored shape stays
        ``{id, kind, label, required, options?, min?, max?, placeholder?}``.
        """
        data: dict[str, Any] = {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "required": self.required,
        }
        if self.options is not None:
            data["options"] = list(self.options)
        if self.min is not None:
            data["min"] = self.min
        if self.max is not None:
            data["max"] = self.max
        if self.placeholder is not None:
            data["placeholder"] = self.placeholder
        return data


class RegisterSchema(BaseModel):
    """Ordered list of fields plus a monotonically increasing version."""

    fields: list[FieldSpec] = Field(default_factory=list)
    version: int = Field(default=1, ge=1)

    def get_field(self, field_id: str) -> FieldSpec | None:
        """Get a field by its ID."""
        for field in self.fields:
            if field.id == field_id:
                return field
        return None

    @property
    def field_ids(self) -> list[str]:
        return [field.id for field in self.fields]

    def to_contract(self) -> list[dict[str, Any]]:
        """Serialise the fields to the persisted list-of-objects contract."""
        return [field.to_contract() for field in self.fields]


class RegisterTemplate(BaseModel):
    """A read-only register shipped in the template catalogue."""

    type: Literal["register_template"] = "register_template"
    template_id: str
    name: str
    description: str | None = None
    schema_: RegisterSchema = Field(alias="schema")

    model_config = ConfigDict(populate_by_name=True)


class RegisterDefinition(BaseModel):
    """A named, versioned register owned by one supervisor."""

    id: str
    owner_id: str
    name: str
    description: str | None = None
    schema_: RegisterSchema = Field(alias="schema")
    provenance: Provenance = Provenance.AUTHORED
    template_id: str | None = None
    active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(populate_by_name=True)

    @property
    def version(self) -> int:
        return self.schema_.version
