"""Register definition store."""

from moodlog.definitions.store import RegisterDefinitionStore

__all__ = ["RegisterDefinitionStore"]
