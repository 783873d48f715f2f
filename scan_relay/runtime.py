"""Wiring of the pipeline from settings."""

from __future__ import annotations

import logging

import httpx

from .config import Settings
from .feedback import FeedbackEmitter, build_player
from .pipeline import NoticeSink, PipelineController
from .storage import FileKeyValueStore, KeyValueStore, RecordStore
from .sync import RetryPolicy, SyncClient

logger = logging.getLogger(__name__)


def build_sync_client(
    settings: Settings, http_client: httpx.AsyncClient | None = None
) -> SyncClient | None:
    if not settings.sync_endpoint:
        logger.info("SCAN_SYNC_ENDPOINT not set; remote upload disabled")
        return None
    return SyncClient(
        settings.sync_endpoint,
        policy=RetryPolicy(
            max_attempts=settings.sync_max_attempts,
            delay_seconds=settings.sync_retry_delay,
        ),
        http_client=http_client,
        timeout=settings.sync_timeout,
        user_agent=settings.user_agent,
    )


def build_controller(
    settings: Settings,
    *,
    backend: KeyValueStore | None = None,
    sync_client: SyncClient | None = None,
    notify: NoticeSink | None = None,
) -> PipelineController:
    store = RecordStore(
        backend if backend is not None else FileKeyValueStore(settings.store_dir),
        key=settings.history_key,
        limit=settings.history_limit,
    )
    return PipelineController(
        store,
        sync_client=sync_client,
        feedback=FeedbackEmitter(build_player(settings.feedback, settings.feedback_sound)),
        notify=notify,
        cooldown_seconds=settings.cooldown_seconds,
        debounce_mode=settings.debounce_mode,
        reject_empty=settings.reject_empty,
    )
