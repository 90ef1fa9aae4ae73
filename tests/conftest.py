"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import pytest

from moodlog.clock import FixedClock
from moodlog.config import GlobalConfig
from moodlog.core import Services
from moodlog.notifications import RecordingNotifier
from moodlog.storage import InMemoryStore

SUPERVISOR = "dr-ruiz"
OTHER_SUPERVISOR = "dr-lopez"
SUBJECT = "patient-ana"
OTHER_SUBJECT = "patient-ben"


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def schemas_dir(project_root: Path) -> Path:
    """Return the schemas directory."""
    return project_root / "schemas"


@pytest.fixture
def template_registry_path(project_root: Path) -> Path:
    """Return the register template catalogue path."""
    return project_root / "register-templates"


@pytest.fixture
def template_schema_path(schemas_dir: Path) -> Path:
    """Return the register template schema path."""
    return schemas_dir / "register_template.schema.json"


@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to Friday 2024-03-15, 12:00 UTC."""
    return FixedClock(datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def store() -> InMemoryStore:
    """A fresh in-memory store."""
    return InMemoryStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    """A notifier that records every event."""
    return RecordingNotifier()


@pytest.fixture
def services(
    store: InMemoryStore,
    clock: FixedClock,
    notifier: RecordingNotifier,
    template_registry_path: Path,
    template_schema_path: Path,
) -> Services:
    """Services wired to the in-memory store, fixed clock and recording notifier."""
    return Services(
        store=store,
        config=GlobalConfig(),
        clock=clock,
        notifier=notifier,
        template_registry_path=template_registry_path,
        template_schema_path=template_schema_path,
    )


@pytest.fixture
def mood_schema() -> list[dict[str, Any]]:
    """A small register schema with one field of most kinds."""
    return [
        {"id": "mood", "kind": "bounded-scale", "label": "Mood", "required": True, "min": 1, "max": 10},
        {"id": "hours", "kind": "number", "label": "Hours slept"},
        {"id": "feeling", "kind": "single-select", "label": "Feeling", "options": ["calm", "sad", "angry"]},
        {"id": "tags", "kind": "multi-select", "label": "Tags", "options": ["work", "family", "sleep"]},
        {"id": "note", "kind": "long-text", "label": "Note"},
    ]
