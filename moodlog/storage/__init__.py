"""Persistence collaborator: protocol and in-memory implementation."""

from moodlog.storage.base import Store
from moodlog.storage.memory import DuplicateKeyError, InMemoryStore, MissingRowError

__all__ = ["DuplicateKeyError", "InMemoryStore", "MissingRowError", "Store"]
