"""Service wiring shared by the CLI and embedding applications."""

from moodlog.core.factory import create_services
from moodlog.core.services import Services

__all__ = ["Services", "create_services"]
