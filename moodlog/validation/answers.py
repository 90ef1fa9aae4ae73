"""Answer validation for register entries.

The validator is the single boundary where a raw answer bag (field id ->
string | number | boolean | list | null) is checked against a register
schema and turned into typed answers. Code past this point works with the
tagged ``Answer`` union only.
"""

import math
import re
from datetime import date, time
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from moodlog.errors import FieldIssue, SchemaMismatch
from moodlog.registry.kinds import FieldTypeRegistry, get_default_field_types
from moodlog.registry.models import FieldKind, FieldSpec, RegisterSchema

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{2}:\d{2}(:\d{2})?$")


class TextAnswer(BaseModel):
    """Answer to a short-text or long-text field."""

    shape: Literal["text"] = "text"
    field_id: str
    value: str


class NumberAnswer(BaseModel):
    """Answer to a number field."""

    shape: Literal["number"] = "number"
    field_id: str
    value: int | float


class ScaleAnswer(BaseModel):
    """Answer to a bounded-scale field."""

    shape: Literal["scale"] = "scale"
    field_id: str
    value: int | float
    min: int | float
    max: int | float


class ChoiceAnswer(BaseModel):
    """Answer to a single-select field."""

    shape: Literal["choice"] = "choice"
    field_id: str
    value: str


class MultiChoiceAnswer(BaseModel):
    """Answer to a multi-select field."""

    shape: Literal["choices"] = "choices"
    field_id: str
    values: list[str]


class DateAnswer(BaseModel):
    """Answer to a date field."""

    shape: Literal["date"] = "date"
    field_id: str
    value: date


class TimeAnswer(BaseModel):
    """Answer to a time field."""

    shape: Literal["time"] = "time"
    field_id: str
    value: time


Answer = Annotated[
    Union[
        TextAnswer,
        NumberAnswer,
        ScaleAnswer,
        ChoiceAnswer,
        MultiChoiceAnswer,
        DateAnswer,
        TimeAnswer,
    ],
    Field(discriminator="shape"),
]

NUMERIC_ANSWERS = (NumberAnswer, ScaleAnswer)


def is_blank(value: Any) -> bool:
    """Whether a raw value counts as "no answer"."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, list):
        return len(value) == 0
    return False


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


class AnswerValidator:
    """Validates raw answer sets against a register schema.

    The validator is strict:
    - Every key must name a field of the schema
    - Required fields must hold a non-blank value
    - Values must already have the shape of their kind (no string-to-number
      coercion, no booleans)
    - Select values must be one of the field's options
    """

    def __init__(self, field_types: FieldTypeRegistry | None = None) -> None:
        self.field_types = field_types or get_default_field_types()

    def validate(
        self,
        schema: RegisterSchema,
        data: Any,
    ) -> dict[str, Answer]:
        """Validate a raw answer set.

        Args:
            schema: The register schema bound to the assignment.
            data: Raw mapping of field id to answer value.

        Returns:
            Typed answers keyed by field id. Optional fields left blank have
            no entry.

        Raises:
            SchemaMismatch: With one issue per offending field.
        """
        if not isinstance(data, dict):
            raise SchemaMismatch(
                f"Answer set must be a mapping, got {type(data).__name__}"
            )

        issues: list[FieldIssue] = []
        answers: dict[str, Answer] = {}

        known_ids = set(schema.field_ids)
        for key in data:
            if key not in known_ids:
                issues.append(
                    FieldIssue(
                        code="UNKNOWN_FIELD",
                        message=f"Field '{key}' is not part of schema version {schema.version}",
                        field_id=str(key),
                    )
                )

        for field in schema.fields:
            raw = data.get(field.id)
            if is_blank(raw):
                if field.required:
                    issues.append(
                        FieldIssue(
                            code="REQUIRED_MISSING",
                            message=f"Field '{field.id}' is required",
                            field_id=field.id,
                        )
                    )
                continue

            answer = self._validate_value(field, raw, issues)
            if answer is not None:
                answers[field.id] = answer

        if issues:
            raise SchemaMismatch(
                f"Answer set does not match schema version {schema.version}: "
                + "; ".join(issue.message for issue in issues),
                field=issues[0].field_id,
                issues=issues,
            )

        return answers

    def _validate_value(
        self,
        field: FieldSpec,
        raw: Any,
        issues: list[FieldIssue],
    ) -> Answer | None:
        shape = self.field_types.get(field.kind).answer_shape

        if shape == "text":
            if not isinstance(raw, str):
                return self._wrong_type(field, raw, "a string", issues)
            return TextAnswer(field_id=field.id, value=raw)

        if shape == "number":
            if not _is_number(raw):
                return self._wrong_type(field, raw, "a number", issues)
            if not self._in_bounds(field, raw, issues):
                return None
            if field.kind == FieldKind.BOUNDED_SCALE:
                return ScaleAnswer(
                    field_id=field.id, value=raw, min=field.min, max=field.max
                )
            return NumberAnswer(field_id=field.id, value=raw)

        if shape == "choice":
            if not isinstance(raw, str):
                return self._wrong_type(field, raw, "a string option", issues)
            if raw not in (field.options or []):
                issues.append(
                    FieldIssue(
                        code="INVALID_OPTION",
                        message=f"Field '{field.id}': '{raw}' is not one of {field.options}",
                        field_id=field.id,
                    )
                )
                return None
            return ChoiceAnswer(field_id=field.id, value=raw)

        if shape == "choices":
            if not isinstance(raw, list) or not all(isinstance(v, str) for v in raw):
                return self._wrong_type(field, raw, "a list of string options", issues)
            invalid = [v for v in raw if v not in (field.options or [])]
            if invalid:
                issues.append(
                    FieldIssue(
                        code="INVALID_OPTION",
                        message=f"Field '{field.id}': {invalid} not in {field.options}",
                        field_id=field.id,
                    )
                )
                return None
            if len(set(raw)) != len(raw):
                issues.append(
                    FieldIssue(
                        code="DUPLICATE_OPTION",
                        message=f"Field '{field.id}' selects the same option twice",
                        field_id=field.id,
                    )
                )
                return None
            return MultiChoiceAnswer(field_id=field.id, values=list(raw))

        if shape == "date":
            if not isinstance(raw, str) or not _DATE_RE.match(raw):
                return self._wrong_type(field, raw, "a YYYY-MM-DD date", issues)
            try:
                return DateAnswer(field_id=field.id, value=date.fromisoformat(raw))
            except ValueError:
                return self._wrong_type(field, raw, "a valid calendar date", issues)

        if shape == "time":
            if not isinstance(raw, str) or not _TIME_RE.match(raw):
                return self._wrong_type(field, raw, "an HH:MM time", issues)
            try:
                return TimeAnswer(field_id=field.id, value=time.fromisoformat(raw))
            except ValueError:
                return self._wrong_type(field, raw, "a valid time of day", issues)

        return self._wrong_type(field, raw, f"a {shape} answer", issues)

    def _in_bounds(
        self,
        field: FieldSpec,
        value: int | float,
        issues: list[FieldIssue],
    ) -> bool:
        below = field.min is not None and value < field.min
        above = field.max is not None and value > field.max
        if below or above:
            issues.append(
                FieldIssue(
                    code="OUT_OF_RANGE",
                    message=(
                        f"Field '{field.id}': value {value} out of range "
                        f"[{field.min}, {field.max}]"
                    ),
                    field_id=field.id,
                )
            )
            return False
        return True

    def _wrong_type(
        self,
        field: FieldSpec,
        raw: Any,
        expected: str,
        issues: list[FieldIssue],
    ) -> None:
        issues.append(
            FieldIssue(
                code="WRONG_TYPE",
                message=f"Field '{field.id}' expects {expected}, got {raw!r}",
                field_id=field.id,
            )
        )
        return None
