"""Retry policy for record uploads."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..config import constants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = constants.DEFAULT_SYNC_MAX_ATTEMPTS
    delay_seconds: float = constants.DEFAULT_SYNC_RETRY_DELAY

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must not be negative")

    def next_delay(self, attempt: int) -> float:
        """Seconds to wait after failed ``attempt`` (1-based) before the next one."""

        if attempt >= self.max_attempts:
            return 0.0
        logger.debug("retry delay after attempt=%s -> %s", attempt, self.delay_seconds)
        return self.delay_seconds
