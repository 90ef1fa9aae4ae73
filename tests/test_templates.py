"""Tests for the register template catalogue."""

import json
from pathlib import Path

import pytest

from moodlog.errors import InvalidSchema, TemplateNotFound
from moodlog.registry import FieldKind, TemplateRegistry
from moodlog.validation import validate_schema


class TestTemplateRegistry:
    """Tests for TemplateRegistry."""

    def test_list_templates(self, template_registry_path: Path) -> None:
        registry = TemplateRegistry(template_registry_path)
        assert registry.list_templates() == ["daily_mood", "weekly_sleep"]

    def test_load_daily_mood(
        self, template_registry_path: Path, template_schema_path: Path
    ) -> None:
        registry = TemplateRegistry(template_registry_path, schema_path=template_schema_path)
        template = registry.get("daily_mood")

        assert template.template_id == "daily_mood"
        assert template.name == "Daily mood log"
        mood = template.schema_.get_field("mood")
        assert mood.kind == FieldKind.BOUNDED_SCALE
        assert (mood.min, mood.max) == (0, 10)
        assert mood.required

    def test_shipped_templates_pass_schema_validation(
        self, template_registry_path: Path, template_schema_path: Path
    ) -> None:
        """Every template is a valid register schema."""
        registry = TemplateRegistry(template_registry_path, schema_path=template_schema_path)
        for template in registry.load_all():
            assert validate_schema(template.schema_) == template.schema_

    def test_templates_are_cached(self, template_registry_path: Path) -> None:
        registry = TemplateRegistry(template_registry_path)
        assert registry.get("weekly_sleep") is registry.get("weekly_sleep")

    def test_not_found(self, template_registry_path: Path) -> None:
        registry = TemplateRegistry(template_registry_path)
        with pytest.raises(TemplateNotFound, match="anger_log"):
            registry.get("anger_log")

    def test_missing_directory(self, tmp_path: Path) -> None:
        registry = TemplateRegistry(tmp_path / "nowhere")
        assert registry.list_templates() == []
        assert registry.load_all() == []

    def test_schema_violation(self, tmp_path: Path, template_schema_path: Path) -> None:
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "broken.json").write_text(
            json.dumps(
                {
                    "type": "register_template",
                    "template_id": "broken",
                    "name": "Broken",
                    "schema": {"fields": [{"id": "x", "kind": "slider", "label": "X"}]},
                }
            )
        )
        registry = TemplateRegistry(tmp_path, schema_path=template_schema_path)

        with pytest.raises(InvalidSchema, match="broken"):
            registry.get("broken")
