"""Pydantic API schemas for the scan relay."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ScanRequest(BaseModel):
    payload: str


class ScanRecordSchema(BaseModel):
    id: str
    payload: str
    observed_at: str


class ScanResponse(BaseModel):
    accepted: bool
    state: str
    record: Optional[ScanRecordSchema] = None


class HistoryResponse(BaseModel):
    count: int
    limit: int
    records: List[ScanRecordSchema]


class PipelineStatusResponse(BaseModel):
    state: str
    debounce_mode: str
    history_count: int
    sync_enabled: bool


class NoticeSchema(BaseModel):
    notice: str
    message: str
    raised_at: datetime


class NoticeListResponse(BaseModel):
    notices: List[NoticeSchema]
