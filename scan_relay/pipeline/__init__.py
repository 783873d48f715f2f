"""Scan pipeline controller and user-facing notices."""

from .controller import DebounceMode, PipelineContext, PipelineController, PipelineState
from .notices import LoggingNoticeSink, Notice, NoticeEntry, NoticeLog, NoticeSink

__all__ = [
    "DebounceMode",
    "PipelineContext",
    "PipelineController",
    "PipelineState",
    "LoggingNoticeSink",
    "Notice",
    "NoticeEntry",
    "NoticeLog",
    "NoticeSink",
]
