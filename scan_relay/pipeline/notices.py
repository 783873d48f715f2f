"""User-facing signals raised by the scan pipeline."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable

from ..config import constants

logger = logging.getLogger(__name__)


class Notice(Enum):
    SCAN_STORED = "scan_stored"
    SYNC_UNCONFIRMED = "sync_unconfirmed"
    STORE_FAILED = "store_failed"
    HISTORY_CLEARED = "history_cleared"
    NOTHING_TO_EXPORT = "nothing_to_export"


_WARNINGS = {Notice.SYNC_UNCONFIRMED, Notice.STORE_FAILED}

NoticeSink = Callable[[Notice, str], None]


@dataclass(frozen=True)
class NoticeEntry:
    notice: Notice
    message: str
    raised_at: datetime


class LoggingNoticeSink:
    def __call__(self, notice: Notice, message: str) -> None:
        level = logging.WARNING if notice in _WARNINGS else logging.INFO
        logger.log(level, "[%s] %s", notice.value, message)


class NoticeLog:
    """Keeps the most recent notices and forwards them to an optional sink."""

    def __init__(
        self,
        maxlen: int = constants.DEFAULT_NOTICE_BACKLOG,
        forward: NoticeSink | None = None,
    ) -> None:
        self._entries: deque[NoticeEntry] = deque(maxlen=maxlen)
        self._forward = forward

    def __call__(self, notice: Notice, message: str) -> None:
        self._entries.append(
            NoticeEntry(notice=notice, message=message, raised_at=datetime.now(timezone.utc))
        )
        if self._forward is not None:
            self._forward(notice, message)

    def entries(self) -> list[NoticeEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
