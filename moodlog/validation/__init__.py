"""Validation of register schemas and submitted answer sets."""

from moodlog.validation.answers import (
    NUMERIC_ANSWERS,
    Answer,
    AnswerValidator,
    ChoiceAnswer,
    DateAnswer,
    MultiChoiceAnswer,
    NumberAnswer,
    ScaleAnswer,
    TextAnswer,
    TimeAnswer,
)
from moodlog.validation.schema import (
    SchemaValidationResult,
    SchemaValidator,
    require_valid_schema,
    validate_schema,
)

__all__ = [
    "Answer",
    "AnswerValidator",
    "ChoiceAnswer",
    "DateAnswer",
    "MultiChoiceAnswer",
    "NUMERIC_ANSWERS",
    "NumberAnswer",
    "ScaleAnswer",
    "SchemaValidationResult",
    "SchemaValidator",
    "TextAnswer",
    "TimeAnswer",
    "require_valid_schema",
    "validate_schema",
]
