"""Flat-text rendering of scan history for sharing."""

from __future__ import annotations

from typing import Iterable

from .config import constants
from .storage.records import ScanRecord


def format_record(record: ScanRecord) -> str:
    return f"{record.observed_at}  {record.payload}"


def format_history(history: Iterable[ScanRecord]) -> str:
    """Render records newest-first, one per line, separated by blank lines."""

    lines = [format_record(record) for record in history]
    if not lines:
        return constants.EMPTY_EXPORT_TEXT
    return "\n\n".join(lines) + "\n"
