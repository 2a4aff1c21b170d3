"""
Snapshot loading.

A snapshot is a JSON document holding everything the builders need:

    {
        "customers": [...],
        "transactions": [...],   # or "entries"
        "batches": [...]
    }

Rows are coerced with the same lenient parsers the builders use, so any
row the backend exports can be loaded as-is.
"""
from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Union
from loguru import logger
from pydantic import BaseModel, Field

from .errors import SnapshotError
from .models import Batch, Customer, LedgerEntry
from .parsers.records import parse_batches, parse_customers, parse_entries


class Snapshot(BaseModel):
    customers: list[Customer] = Field(default_factory=list)
    entries: list[LedgerEntry] = Field(default_factory=list)
    batches: list[Batch] = Field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Snapshot":
        entries = data.get("transactions")
        if entries is None:
            entries = data.get("entries")
        return cls(
            customers=parse_customers(data.get("customers")),
            entries=parse_entries(entries),
            batches=parse_batches(data.get("batches")),
        )


def load_snapshot(path: Union[str, Path]) -> Snapshot:
    """
    Read a snapshot file.

    Raises:
        SnapshotError: If the file is missing, is not valid JSON, or is not
            a JSON object
    """
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {file_path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in snapshot {file_path}: {e}") from e

    if not isinstance(data, dict):
        raise SnapshotError(f"Snapshot {file_path} must be a JSON object, got {type(data).__name__}")

    snapshot = Snapshot.from_dict(data)
    logger.info(
        f"Loaded snapshot {file_path.name}: {len(snapshot.customers)} customers, "
        f"{len(snapshot.entries)} entries, {len(snapshot.batches)} batches"
    )
    return snapshot
