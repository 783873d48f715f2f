"""Busy/idle gate that turns decoded payloads into stored, synced records."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from ..config import constants
from ..export import format_history
from ..feedback import FeedbackEmitter
from ..storage.records import History, PersistenceFailure, RecordStore, ScanRecord
from ..sync.client import SyncClient, SyncFailed
from .notices import LoggingNoticeSink, Notice, NoticeSink

logger = logging.getLogger(__name__)


class PipelineState(Enum):
    IDLE = "idle"
    BUSY = "busy"


class DebounceMode(Enum):
    GLOBAL = "global"
    PAYLOAD = "payload"


@dataclass
class PipelineContext:
    state: PipelineState = PipelineState.IDLE
    last_record_id: str | None = None
    cooling: set[str] = field(default_factory=set)


class PipelineController:
    """Accepts at most one scan per cooldown window.

    In ``global`` mode every detection arriving while a scan is being handled
    or cooling down is dropped. In ``payload`` mode only repeats of a payload
    still cooling down are dropped.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        sync_client: SyncClient | None = None,
        feedback: FeedbackEmitter | None = None,
        notify: NoticeSink | None = None,
        cooldown_seconds: float = constants.DEFAULT_COOLDOWN_SECONDS,
        debounce_mode: DebounceMode | str = DebounceMode.GLOBAL,
        reject_empty: bool = False,
    ) -> None:
        self._store = store
        self._sync_client = sync_client
        self._feedback = feedback
        self._notify = notify or LoggingNoticeSink()
        self._cooldown_seconds = cooldown_seconds
        self._debounce_mode = DebounceMode(debounce_mode)
        self._reject_empty = reject_empty
        self._tasks: set[asyncio.Task] = set()
        self.context = PipelineContext()

    @property
    def state(self) -> PipelineState:
        return self.context.state

    @property
    def history(self) -> History:
        return self._store.history

    @property
    def history_limit(self) -> int:
        return self._store.limit

    @property
    def debounce_mode(self) -> DebounceMode:
        return self._debounce_mode

    def load(self) -> History:
        history = self._store.load()
        numeric_ids = [int(record.id) for record in history if record.id.isdigit()]
        if numeric_ids:
            self.context.last_record_id = str(max(numeric_ids))
        return history

    def on_payload_detected(self, payload: str) -> asyncio.Task | None:
        """Gate a decoded payload; returns the processing task when accepted."""

        if self._reject_empty and not payload.strip():
            logger.debug("dropping empty payload")
            return None
        if not self._try_acquire(payload):
            logger.debug("pipeline busy, dropping payload %r", payload)
            return None
        loop = asyncio.get_running_loop()
        # Fixed timer from acceptance; never waits on the write or the upload.
        loop.call_later(self._cooldown_seconds, self._release, payload)
        task = loop.create_task(self._process(payload))
        self._track(task)
        return task

    def _try_acquire(self, payload: str) -> bool:
        ctx = self.context
        if self._debounce_mode is DebounceMode.PAYLOAD:
            if payload in ctx.cooling:
                return False
            ctx.cooling.add(payload)
            ctx.state = PipelineState.BUSY
            return True
        if ctx.state is PipelineState.BUSY:
            return False
        ctx.state = PipelineState.BUSY
        return True

    def _release(self, payload: str) -> None:
        ctx = self.context
        ctx.cooling.discard(payload)
        if self._debounce_mode is DebounceMode.GLOBAL or not ctx.cooling:
            ctx.state = PipelineState.IDLE
        logger.debug("cooldown elapsed for %r, state=%s", payload, ctx.state.value)

    async def _process(self, payload: str) -> ScanRecord:
        if self._feedback is not None:
            self._track(self._feedback.play())
        record = ScanRecord.create(payload, after_id=self.context.last_record_id)
        self.context.last_record_id = record.id
        try:
            await self._store.append(record)
        except PersistenceFailure as exc:
            self._notify(Notice.STORE_FAILED, f"scan {payload!r} was not saved: {exc}")
            raise
        self._notify(Notice.SCAN_STORED, f"scan {record.payload!r} stored as {record.id}")
        if self._sync_client is not None:
            self._track(asyncio.get_running_loop().create_task(self._sync(record)))
        else:
            logger.debug("no sync endpoint configured; record %s kept locally", record.id)
        return record

    async def _sync(self, record: ScanRecord) -> None:
        try:
            await self._sync_client.send(record)
        except SyncFailed as exc:
            self._notify(
                Notice.SYNC_UNCONFIRMED,
                f"scan {record.payload!r} saved locally but not confirmed remotely "
                f"after {exc.attempts} attempts",
            )

    def _track(self, task: asyncio.Task) -> None:
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("background pipeline task failed: %s", exc)

    async def drain(self) -> None:
        """Wait for outstanding feedback, persistence and sync tasks."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def clear_history(self) -> None:
        await self._store.clear()
        self._notify(Notice.HISTORY_CLEARED, "scan history cleared")

    def export_history(self) -> str | None:
        history = self._store.history
        if not len(history):
            self._notify(Notice.NOTHING_TO_EXPORT, "no scans to export")
            return None
        return format_history(history)
