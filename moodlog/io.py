"""Input utilities for reading entry histories from JSONL files."""

import json
from collections.abc import Iterator
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError


class HistoryRecord(BaseModel):
    """One exported entry: its date and raw answer set."""

    entry_date: date
    data: dict[str, Any] = Field(default_factory=dict)
    notes: str | None = None


def read_jsonl(path: Path | str) -> Iterator[dict[str, Any]]:
    """Read a JSONL file and yield each record.

    Args:
        path: Path to the JSONL file.

    Yields:
        Each parsed JSON record.
    """
    with open(path) as f:
        for line_num, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                yield json.loads(line)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON on line {line_num}: {e}") from e


def read_entry_history(path: Path | str) -> list[HistoryRecord]:
    """Read an entry history exported as JSONL.

    Each line is ``{"entry_date": "YYYY-MM-DD", "data": {...}}``; extra keys
    are ignored.

    Raises:
        ValueError: On invalid JSON or a record without a valid entry date.
    """
    records: list[HistoryRecord] = []
    for index, raw in enumerate(read_jsonl(path), 1):
        try:
            records.append(HistoryRecord.model_validate(raw))
        except PydanticValidationError as e:
            raise ValueError(f"Invalid entry record #{index}: {e.errors()[0]['msg']}") from e
    return records
