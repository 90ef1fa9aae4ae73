"""Field type registry.

Canonical catalogue of answer kinds and the contract each one imposes on
its FieldSpec (options, numeric bounds) and on submitted answers.
"""

from typing import Literal

from pydantic import BaseModel

from moodlog.registry.models import FieldKind

Requirement = Literal["required", "optional", "forbidden"]


class UnknownFieldKindError(Exception):
    """Raised when no contract is registered for a field kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"No field type contract registered for kind: {kind}")


class FieldTypeContract(BaseModel):
    """Validation and rendering contract for one field kind."""

    kind: FieldKind
    options: Requirement = "forbidden"
    bounds: Requirement = "forbidden"
    default_bounds: tuple[int, int] | None = None
    answer_shape: Literal["text", "number", "choice", "choices", "date", "time"]
    multiline: bool = False
    # strict: min must be below max; otherwise min == max is allowed
    strict_bounds: bool = False


class FieldTypeRegistry:
    """Maps field kinds to their contracts."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._contracts: dict[FieldKind, FieldTypeContract] = {}

    def register(self, contract: FieldTypeContract) -> None:
        """Register (or replace) the contract for a kind."""
        self._contracts[contract.kind] = contract

    def get(self, kind: FieldKind | str) -> FieldTypeContract:
        """Get the contract for a kind.

        Raises:
            UnknownFieldKindError: If the kind has no contract.
        """
        try:
            key = FieldKind(kind)
        except ValueError:
            raise UnknownFieldKindError(str(kind)) from None
        if key not in self._contracts:
            raise UnknownFieldKindError(key.value)
        return self._contracts[key]

    def has_kind(self, kind: FieldKind | str) -> bool:
        try:
            return FieldKind(kind) in self._contracts
        except ValueError:
            return False

    @property
    def kinds(self) -> list[FieldKind]:
        """List all registered kinds."""
        return list(self._contracts.keys())


def create_field_type_registry() -> FieldTypeRegistry:
    """Create a registry with all built-in field kinds registered."""
    registry = FieldTypeRegistry()
    registry.register(FieldTypeContract(kind=FieldKind.SHORT_TEXT, answer_shape="text"))
    registry.register(
        FieldTypeContract(kind=FieldKind.LONG_TEXT, answer_shape="text", multiline=True)
    )
    registry.register(
        FieldTypeContract(kind=FieldKind.NUMBER, answer_shape="number", bounds="optional")
    )
    registry.register(
        FieldTypeContract(
            kind=FieldKind.SINGLE_SELECT, answer_shape="choice", options="required"
        )
    )
    registry.register(
        FieldTypeContract(
            kind=FieldKind.MULTI_SELECT, answer_shape="choices", options="required"
        )
    )
    registry.register(
        FieldTypeContract(
            kind=FieldKind.BOUNDED_SCALE,
            answer_shape="number",
            bounds="required",
            default_bounds=(0, 10),
            strict_bounds=True,
        )
    )
    registry.register(FieldTypeContract(kind=FieldKind.DATE, answer_shape="date"))
    registry.register(FieldTypeContract(kind=FieldKind.TIME, answer_shape="time"))
    return registry


_default_registry: FieldTypeRegistry | None = None


def get_default_field_types() -> FieldTypeRegistry:
    """Get the shared registry of built-in field kinds."""
    global _default_registry
    if _default_registry is None:
        _default_registry = create_field_type_registry()
    return _default_registry
