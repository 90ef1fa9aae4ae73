"""Template registry for loading read-only register templates."""

import json
from pathlib import Path

import jsonschema

from moodlog.errors import InvalidSchema, TemplateNotFound
from moodlog.registry.models import RegisterTemplate


class TemplateRegistry:
    """Registry for loading and caching register templates.

    Loads templates from a directory structure:
        <registry_path>/templates/<template_id>.json

    Templates are never mutated; assigning one deep-copies it into a
    supervisor-owned register definition first.
    """

    def __init__(
        self,
        registry_path: Path | str,
        schema_path: Path | str | None = None,
    ) -> None:
        """Initialize the template registry.

        Args:
            registry_path: Path to the template registry directory.
            schema_path: Optional path to the register_template schema for validation.
        """
        self.registry_path = Path(registry_path)
        self.templates_path = self.registry_path / "templates"
        self._cache: dict[str, RegisterTemplate] = {}
        self._schema: dict | None = None

        if schema_path:
            with open(schema_path) as f:
                self._schema = json.load(f)

    def _get_template_path(self, template_id: str) -> Path:
        return self.templates_path / f"{template_id}.json"

    def get(self, template_id: str) -> RegisterTemplate:
        """Get a template by ID.

        Args:
            template_id: The template identifier (e.g., 'daily_mood').

        Returns:
            The loaded RegisterTemplate.

        Raises:
            TemplateNotFound: If the template file doesn't exist.
            InvalidSchema: If the template fails schema validation.
        """
        if template_id in self._cache:
            return self._cache[template_id]

        template_path = self._get_template_path(template_id)
        if not template_path.exists():
            raise TemplateNotFound(
                f"Register template not found: {template_id} "
                f"(expected at {template_path})"
            )

        with open(template_path) as f:
            data = json.load(f)

        if self._schema:
            try:
                jsonschema.validate(data, self._schema)
            except jsonschema.ValidationError as e:
                raise InvalidSchema(
                    f"Register template validation failed for {template_id}: {e.message}"
                ) from e

        template = RegisterTemplate.model_validate(data)
        self._cache[template_id] = template
        return template

    def list_templates(self) -> list[str]:
        """List all available template IDs."""
        if not self.templates_path.exists():
            return []
        return sorted(f.stem for f in self.templates_path.glob("*.json"))

    def load_all(self) -> list[RegisterTemplate]:
        """Load every template in the registry."""
        return [self.get(template_id) for template_id in self.list_templates()]
