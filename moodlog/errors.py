"""Error taxonomy for moodlog.

Every failure raised by the core is a ``MoodlogError`` subclass carrying a
kind, a stable reason code and a human message. Collaborators convert them
to ``ErrorDetail`` with ``to_detail()`` instead of inspecting exceptions.
"""

from enum import Enum

from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Top-level error category."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN = "forbidden"
    EXHAUSTION = "exhaustion"


class FieldIssue(BaseModel):
    """A single problem with one field of a schema or an answer set."""

    code: str  # e.g. "DUPLICATE_ID", "OUT_OF_RANGE"
    message: str
    field_id: str | None = None


class ErrorDetail(BaseModel):
    """Structured, serialisable form of a MoodlogError."""

    kind: ErrorKind
    code: str
    message: str
    field: str | None = None
    issues: list[FieldIssue] = Field(default_factory=list)


class MoodlogError(Exception):
    """Base class for all errors raised by the core."""

    kind: ErrorKind = ErrorKind.VALIDATION
    code: str = "MOODLOG_ERROR"

    def __init__(
        self,
        message: str,
        field: str | None = None,
        issues: list[FieldIssue] | None = None,
    ) -> None:
        self.message = message
        self.field = field
        self.issues = list(issues or [])
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Convert to a serialisable ErrorDetail."""
        return ErrorDetail(
            kind=self.kind,
            code=self.code,
            message=self.message,
            field=self.field,
            issues=self.issues,
        )


# Kinds


class ValidationError(MoodlogError):
    """Schema or answer shape violation. Always recoverable by the caller."""

    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"


class NotFoundError(MoodlogError):
    """A definition, assignment, entry or template does not exist."""

    kind = ErrorKind.NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(MoodlogError):
    """The operation conflicts with existing state."""

    kind = ErrorKind.CONFLICT
    code = "CONFLICT"


class ForbiddenError(MoodlogError):
    """The caller may not perform the operation."""

    kind = ErrorKind.FORBIDDEN
    code = "FORBIDDEN"


class ExhaustionError(MoodlogError):
    """A bounded internal retry ran out of attempts."""

    kind = ErrorKind.EXHAUSTION
    code = "EXHAUSTED"


# Validation


class InvalidSchema(ValidationError):
    code = "INVALID_SCHEMA"


class EmptySchema(InvalidSchema):
    code = "EMPTY_SCHEMA"


class SchemaMismatch(ValidationError):
    code = "SCHEMA_MISMATCH"


class FutureDate(ValidationError):
    code = "FUTURE_DATE"


class InsufficientData(ValidationError):
    code = "INSUFFICIENT_DATA"


# Not found


class DefinitionNotFound(NotFoundError):
    code = "DEFINITION_NOT_FOUND"


class AssignmentNotFound(NotFoundError):
    code = "ASSIGNMENT_NOT_FOUND"


class EntryNotFound(NotFoundError):
    code = "ENTRY_NOT_FOUND"


class TemplateNotFound(NotFoundError):
    code = "TEMPLATE_NOT_FOUND"


class NoteNotFound(NotFoundError):
    code = "NOTE_NOT_FOUND"


# Conflict


class DuplicateActiveAssignment(ConflictError):
    code = "DUPLICATE_ACTIVE_ASSIGNMENT"


class AssignmentInactive(ConflictError):
    code = "ASSIGNMENT_INACTIVE"


class HasActiveAssignments(ConflictError):
    code = "HAS_ACTIVE_ASSIGNMENTS"


class DuplicateActiveInvitation(ConflictError):
    code = "DUPLICATE_ACTIVE_INVITATION"


class InvalidOrUsedCode(ConflictError):
    code = "INVALID_OR_USED_CODE"


class Expired(ConflictError):
    code = "EXPIRED"


# Forbidden


class Forbidden(ForbiddenError):
    code = "FORBIDDEN"


# Exhaustion


class CodeSpaceExhausted(ExhaustionError):
    code = "CODE_SPACE_EXHAUSTED"
