"""Entry models and store."""

from moodlog.entries.models import ClinicalNote, Entry

__all__ = ["ClinicalNote", "Entry"]
