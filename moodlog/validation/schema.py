"""Schema validation for register definitions.

Validates an ordered field list against the field type registry and
returns a normalised copy. Pure: nothing is persisted or mutated.
"""

import math
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from moodlog.errors import EmptySchema, FieldIssue, InvalidSchema
from moodlog.registry.kinds import (
    FieldTypeContract,
    FieldTypeRegistry,
    get_default_field_types,
)
from moodlog.registry.models import FieldKind, FieldSpec, RegisterSchema

SchemaCandidate = RegisterSchema | dict[str, Any] | list[Any]


class SchemaValidationResult(BaseModel):
    """Result of validating a candidate schema."""

    valid: bool
    schema_: RegisterSchema | None = Field(default=None, alias="schema")
    issues: list[FieldIssue] = Field(default_factory=list)

    model_config = {"populate_by_name": True}

    @property
    def is_empty(self) -> bool:
        """Whether the candidate was rejected for having no fields."""
        return any(issue.code == "EMPTY_SCHEMA" for issue in self.issues)


class SchemaValidator:
    """Validates and normalises register schemas.

    Checks, per field:
    1. Identity: non-blank id, unique within the schema, non-blank label
    2. Options: required and distinct for select kinds, absent otherwise
    3. Bounds: required for bounded-scale (min < max), optional for
       number (min <= max), absent otherwise

    Normalisation trims ids, labels, placeholders and options, drops blank
    options and gives bounded-scale fields without bounds the default range.
    """

    def __init__(self, field_types: FieldTypeRegistry | None = None) -> None:
        self.field_types = field_types or get_default_field_types()

    def validate(self, candidate: SchemaCandidate) -> SchemaValidationResult:
        """Validate a candidate schema.

        Args:
            candidate: A RegisterSchema, a ``{"fields": [...], "version": n}``
                mapping, or a bare list of field objects.

        Returns:
            SchemaValidationResult with the normalised schema when valid.
        """
        issues: list[FieldIssue] = []
        raw_fields, version = self._unpack(candidate, issues)

        if not raw_fields and not issues:
            issues.append(
                FieldIssue(code="EMPTY_SCHEMA", message="A register needs at least one field")
            )
            return SchemaValidationResult(valid=False, issues=issues)

        normalised: list[FieldSpec] = []
        seen_ids: set[str] = set()

        for index, raw in enumerate(raw_fields):
            field = self._parse_field(raw, index, issues)
            if field is None:
                continue

            field = self._normalise_field(field, issues)

            if field.id in seen_ids:
                issues.append(
                    FieldIssue(
                        code="DUPLICATE_ID",
                        message=f"Field id '{field.id}' is used more than once",
                        field_id=field.id,
                    )
                )
            elif field.id:
                seen_ids.add(field.id)

            normalised.append(field)

        if issues:
            return SchemaValidationResult(valid=False, issues=issues)

        return SchemaValidationResult(
            valid=True,
            schema=RegisterSchema(fields=normalised, version=version),
        )

    def _unpack(
        self,
        candidate: SchemaCandidate,
        issues: list[FieldIssue],
    ) -> tuple[list[Any], int]:
        if isinstance(candidate, RegisterSchema):
            return list(candidate.fields), candidate.version
        if isinstance(candidate, list):
            return list(candidate), 1
        if isinstance(candidate, dict):
            fields = candidate.get("fields") or []
            version = candidate.get("version", 1)
            if not isinstance(fields, list):
                issues.append(
                    FieldIssue(code="MALFORMED_SCHEMA", message="'fields' must be a list")
                )
                return [], 1
            if not isinstance(version, int) or isinstance(version, bool) or version < 1:
                issues.append(
                    FieldIssue(
                        code="MALFORMED_SCHEMA",
                        message=f"'version' must be a positive integer, got {version!r}",
                    )
                )
                return [], 1
            return fields, version
        issues.append(
            FieldIssue(
                code="MALFORMED_SCHEMA",
                message=f"Unsupported schema type: {type(candidate).__name__}",
            )
        )
        return [], 1

    def _parse_field(
        self,
        raw: Any,
        index: int,
        issues: list[FieldIssue],
    ) -> FieldSpec | None:
        if isinstance(raw, FieldSpec):
            return raw
        if not isinstance(raw, dict):
            issues.append(
                FieldIssue(
                    code="MALFORMED_FIELD",
                    message=f"Field at position {index} is not an object",
                )
            )
            return None

        field_id = raw.get("id") if isinstance(raw.get("id"), str) else None
        if "kind" in raw and not self.field_types.has_kind(raw["kind"]):
            issues.append(
                FieldIssue(
                    code="UNKNOWN_KIND",
                    message=f"Unknown field kind: {raw['kind']!r}",
                    field_id=field_id,
                )
            )
            return None

        try:
            return FieldSpec.model_validate(raw)
        except PydanticValidationError as e:
            first = e.errors()[0]
            location = ".".join(str(part) for part in first["loc"])
            issues.append(
                FieldIssue(
                    code="MALFORMED_FIELD",
                    message=f"Field at position {index}: {location}: {first['msg']}",
                    field_id=field_id,
                )
            )
            return None

    def _normalise_field(self, field: FieldSpec, issues: list[FieldIssue]) -> FieldSpec:
        contract = self.field_types.get(field.kind)

        field_id = field.id.strip()
        label = field.label.strip()
        placeholder = field.placeholder.strip() if field.placeholder else None

        if not field_id:
            issues.append(FieldIssue(code="BLANK_ID", message="Field id must not be blank"))
        if not label:
            issues.append(
                FieldIssue(
                    code="BLANK_LABEL",
                    message=f"Field '{field_id}' needs a label",
                    field_id=field_id,
                )
            )

        options = self._normalise_options(
            field_id, field.kind, field.options, contract.options, issues
        )
        minimum, maximum = self._normalise_bounds(field_id, field, contract, issues)

        return FieldSpec(
            id=field_id,
            kind=field.kind,
            label=label,
            required=field.required,
            placeholder=placeholder or None,
            options=options,
            min=minimum,
            max=maximum,
        )

    def _normalise_options(
        self,
        field_id: str,
        kind: FieldKind,
        options: list[str] | None,
        requirement: str,
        issues: list[FieldIssue],
    ) -> list[str] | None:
        cleaned = [option.strip() for option in options or [] if option.strip()]

        if requirement == "forbidden":
            if cleaned:
                issues.append(
                    FieldIssue(
                        code="OPTIONS_NOT_ALLOWED",
                        message=f"Field '{field_id}' of kind {kind.value} cannot have options",
                        field_id=field_id,
                    )
                )
            return None

        if not cleaned:
            issues.append(
                FieldIssue(
                    code="MISSING_OPTIONS",
                    message=f"Field '{field_id}' of kind {kind.value} needs at least one option",
                    field_id=field_id,
                )
            )
            return cleaned

        duplicates = sorted({option for option in cleaned if cleaned.count(option) > 1})
        if duplicates:
            issues.append(
                FieldIssue(
                    code="DUPLICATE_OPTION",
                    message=f"Field '{field_id}' repeats options: {duplicates}",
                    field_id=field_id,
                )
            )
        return cleaned

    def _normalise_bounds(
        self,
        field_id: str,
        field: FieldSpec,
        contract: FieldTypeContract,
        issues: list[FieldIssue],
    ) -> tuple[int | float | None, int | float | None]:
        minimum, maximum = field.min, field.max
        non_finite = [b for b in (minimum, maximum) if b is not None and not math.isfinite(b)]
        if non_finite:
            issues.append(
                FieldIssue(
                    code="INVALID_BOUNDS",
                    message=f"Field '{field_id}' has non-finite bounds: {non_finite}",
                    field_id=field_id,
                )
            )
            return minimum, maximum

        if contract.bounds == "forbidden":
            if minimum is not None or maximum is not None:
                issues.append(
                    FieldIssue(
                        code="BOUNDS_NOT_ALLOWED",
                        message=f"Field '{field_id}' of kind {field.kind.value} cannot have min/max",
                        field_id=field_id,
                    )
                )
            return None, None

        if contract.bounds == "required":
            if minimum is None and maximum is None and contract.default_bounds:
                minimum, maximum = contract.default_bounds
            elif minimum is None or maximum is None:
                issues.append(
                    FieldIssue(
                        code="MISSING_BOUND",
                        message=f"Field '{field_id}' needs both min and max",
                        field_id=field_id,
                    )
                )
                return minimum, maximum

        if minimum is not None and maximum is not None:
            invalid = minimum >= maximum if contract.strict_bounds else minimum > maximum
            if invalid:
                issues.append(
                    FieldIssue(
                        code="INVALID_BOUNDS",
                        message=f"Field '{field_id}' has min {minimum} not below max {maximum}",
                        field_id=field_id,
                    )
                )
        return minimum, maximum


def validate_schema(
    candidate: SchemaCandidate,
    field_types: FieldTypeRegistry | None = None,
) -> RegisterSchema | list[FieldIssue]:
    """Validate a candidate schema.

    Returns:
        The normalised RegisterSchema, or the list of issues when rejected.
    """
    result = SchemaValidator(field_types).validate(candidate)
    if result.valid and result.schema_ is not None:
        return result.schema_
    return result.issues


def require_valid_schema(
    candidate: SchemaCandidate,
    field_types: FieldTypeRegistry | None = None,
) -> RegisterSchema:
    """Validate a candidate schema and raise on rejection.

    Raises:
        EmptySchema: If the schema has no fields.
        InvalidSchema: If any other check fails; carries the issues.
    """
    result = SchemaValidator(field_types).validate(candidate)
    if result.is_empty:
        raise EmptySchema("A register needs at least one field", issues=result.issues)
    if not result.valid or result.schema_ is None:
        raise InvalidSchema(
            f"Schema rejected with {len(result.issues)} issue(s)",
            field=result.issues[0].field_id if result.issues else None,
            issues=result.issues,
        )
    return result.schema_
