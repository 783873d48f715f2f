"""Bounded scan history and its durable mirror."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterator, Mapping

from ..config import constants
from .kv import KeyValueStore

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


class PersistenceFailure(RuntimeError):
    pass


@dataclass(frozen=True)
class ScanRecord:
    id: str
    payload: str
    observed_at: str

    @classmethod
    def create(
        cls,
        payload: str,
        *,
        now: datetime | None = None,
        after_id: str | None = None,
    ) -> "ScanRecord":
        """Build a record stamped with ``now``.

        Ids are millisecond timestamps; when one would not sort after
        ``after_id`` it is bumped past it so ids stay strictly increasing.
        """

        moment = now or datetime.now(timezone.utc)
        candidate = int(moment.timestamp() * 1000)
        if after_id is not None and after_id.isdigit():
            candidate = max(candidate, int(after_id) + 1)
        return cls(
            id=str(candidate),
            payload=payload,
            observed_at=moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT),
        )

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "payload": self.payload, "observed_at": self.observed_at}

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ScanRecord":
        values = {}
        for field_name in ("id", "payload", "observed_at"):
            value = raw.get(field_name)
            if not isinstance(value, str):
                raise ValueError(f"scan record field {field_name!r} missing or not a string")
            values[field_name] = value
        return cls(**values)


class History:
    """Immutable newest-first sequence of scan records."""

    def __init__(self, records: tuple[ScanRecord, ...] = ()) -> None:
        self._records = tuple(records)

    def prepend(
        self, record: ScanRecord, limit: int = constants.MAX_HISTORY_ITEMS
    ) -> "History":
        return History(((record,) + self._records)[:limit])

    def records(self) -> list[ScanRecord]:
        return list(self._records)

    def to_json(self) -> str:
        return json.dumps([record.to_dict() for record in self._records])

    @classmethod
    def from_json(cls, raw: str) -> "History":
        parsed = json.loads(raw)
        if not isinstance(parsed, list):
            raise ValueError("stored history is not a list")
        records = []
        for entry in parsed:
            if not isinstance(entry, Mapping):
                raise ValueError("stored history entry is not an object")
            records.append(ScanRecord.from_dict(entry))
        return cls(tuple(records))

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ScanRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> ScanRecord:
        return self._records[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, History):
            return NotImplemented
        return self._records == other._records

    def __repr__(self) -> str:
        return f"History({len(self._records)} records)"


class RecordStore:
    """Keeps the in-memory history and mirrors it under a single key."""

    def __init__(
        self,
        backend: KeyValueStore,
        key: str = constants.DEFAULT_HISTORY_KEY,
        limit: int = constants.MAX_HISTORY_ITEMS,
    ) -> None:
        self._backend = backend
        self._key = key
        self._limit = min(limit, constants.MAX_HISTORY_ITEMS)
        self._history = History()
        self._lock = asyncio.Lock()

    @property
    def history(self) -> History:
        return self._history

    @property
    def limit(self) -> int:
        return self._limit

    def load(self) -> History:
        try:
            raw = self._backend.get(self._key)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("history read failed, starting empty: %s", exc)
            raw = None
        if raw is None:
            self._history = History()
            return self._history
        try:
            history = History.from_json(raw)
        except ValueError as exc:
            logger.warning("stored history malformed, starting empty: %s", exc)
            history = History()
        self._history = History(tuple(history.records()[: self._limit]))
        logger.info("loaded %s scan records", len(self._history))
        return self._history

    async def append(self, record: ScanRecord) -> History:
        async with self._lock:
            updated = self._history.prepend(record, self._limit)
            try:
                await asyncio.to_thread(self._backend.set, self._key, updated.to_json())
            except OSError as exc:
                logger.error("failed to persist scan %s: %s", record.id, exc)
                raise PersistenceFailure(f"unable to persist scan {record.id}: {exc}") from exc
            self._history = updated
            return updated

    async def clear(self) -> None:
        async with self._lock:
            try:
                await asyncio.to_thread(self._backend.delete, self._key)
            except OSError as exc:
                logger.error("failed to clear history: %s", exc)
                raise PersistenceFailure(f"unable to clear history: {exc}") from exc
            self._history = History()
