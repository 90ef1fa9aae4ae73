"""Field kinds, register models and the template catalogue."""

from moodlog.registry.kinds import (
    FieldTypeContract,
    FieldTypeRegistry,
    UnknownFieldKindError,
    create_field_type_registry,
    get_default_field_types,
)
from moodlog.registry.models import (
    FieldKind,
    FieldSpec,
    Provenance,
    RegisterDefinition,
    RegisterSchema,
    RegisterTemplate,
)
from moodlog.registry.templates import TemplateRegistry

__all__ = [
    "FieldKind",
    "FieldSpec",
    "FieldTypeContract",
    "FieldTypeRegistry",
    "Provenance",
    "RegisterDefinition",
    "RegisterSchema",
    "RegisterTemplate",
    "TemplateRegistry",
    "UnknownFieldKindError",
    "create_field_type_registry",
    "get_default_field_types",
]
