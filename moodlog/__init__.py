"""moodlog: Schema-driven self-report registers and adherence analytics."""

__version__ = "0.1.0"
