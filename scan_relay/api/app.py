"""FastAPI surface feeding decoded payloads into the scan pipeline."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import PlainTextResponse

from .. import __version__
from ..config import Settings, get_settings
from ..pipeline import LoggingNoticeSink, NoticeLog, PipelineController
from ..runtime import build_controller, build_sync_client
from ..storage import KeyValueStore, PersistenceFailure, ScanRecord
from ..sync import SyncClient
from .schemas import (
    HistoryResponse,
    NoticeListResponse,
    NoticeSchema,
    PipelineStatusResponse,
    ScanRecordSchema,
    ScanRequest,
    ScanResponse,
)

logger = logging.getLogger(__name__)


def _record_schema(record: ScanRecord) -> ScanRecordSchema:
    return ScanRecordSchema(**record.to_dict())


def _controller(request: Request) -> PipelineController:
    return request.app.state.controller


def get_app(
    settings: Settings | None = None,
    *,
    backend: KeyValueStore | None = None,
    sync_client: SyncClient | None = None,
) -> FastAPI:
    cfg = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned_client = sync_client is None
        client = sync_client if sync_client is not None else build_sync_client(cfg)
        notices = NoticeLog(forward=LoggingNoticeSink())
        controller = build_controller(
            cfg, backend=backend, sync_client=client, notify=notices
        )
        controller.load()
        app.state.controller = controller
        app.state.notices = notices
        app.state.sync_enabled = client is not None
        try:
            yield
        finally:
            await controller.drain()
            if owned_client and client is not None:
                await client.aclose()

    app = FastAPI(title="Scan Relay API", version=__version__, lifespan=lifespan)

    @app.get("/healthz")
    def healthz() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.post("/v1/scans", response_model=ScanResponse)
    async def submit_scan(body: ScanRequest, request: Request) -> ScanResponse:
        controller = _controller(request)
        task = controller.on_payload_detected(body.payload)
        if task is None:
            return ScanResponse(accepted=False, state=controller.state.value)
        try:
            record = await asyncio.shield(task)
        except PersistenceFailure as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return ScanResponse(
            accepted=True,
            state=controller.state.value,
            record=_record_schema(record),
        )

    @app.get("/v1/history", response_model=HistoryResponse)
    async def history(request: Request) -> HistoryResponse:
        controller = _controller(request)
        records = [_record_schema(record) for record in controller.history]
        return HistoryResponse(
            count=len(records),
            limit=controller.history_limit,
            records=records,
        )

    @app.delete("/v1/history")
    async def clear_history(request: Request) -> dict[str, str]:
        try:
            await _controller(request).clear_history()
        except PersistenceFailure as exc:
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        return {"status": "cleared"}

    @app.get("/v1/history/export", response_class=PlainTextResponse)
    async def export_history(request: Request) -> PlainTextResponse:
        text = _controller(request).export_history()
        if text is None:
            raise HTTPException(status_code=404, detail="nothing to export")
        return PlainTextResponse(text)

    @app.get("/v1/pipeline", response_model=PipelineStatusResponse)
    async def pipeline_status(request: Request) -> PipelineStatusResponse:
        controller = _controller(request)
        return PipelineStatusResponse(
            state=controller.state.value,
            debounce_mode=controller.debounce_mode.value,
            history_count=len(controller.history),
            sync_enabled=request.app.state.sync_enabled,
        )

    @app.get("/v1/notices", response_model=NoticeListResponse)
    async def notices(request: Request) -> NoticeListResponse:
        entries = request.app.state.notices.entries()
        return NoticeListResponse(
            notices=[
                NoticeSchema(
                    notice=entry.notice.value,
                    message=entry.message,
                    raised_at=entry.raised_at,
                )
                for entry in entries
            ]
        )

    return app
