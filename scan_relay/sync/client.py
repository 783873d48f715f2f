"""HTTP upload of scan records with bounded retries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import httpx

from ..storage.records import ScanRecord
from .policy import RetryPolicy

logger = logging.getLogger(__name__)


class SyncFailed(RuntimeError):
    def __init__(self, record_id: str, attempts: int, last_error: Exception | None) -> None:
        super().__init__(
            f"record {record_id} not confirmed after {attempts} attempts: {last_error}"
        )
        self.record_id = record_id
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class SyncResult:
    record_id: str
    attempts: int
    status_code: int


class SyncClient:
    def __init__(
        self,
        endpoint: str,
        *,
        policy: RetryPolicy | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
        user_agent: str | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.policy = policy or RetryPolicy()
        headers = {"Accept": "application/json"}
        if user_agent:
            headers["User-Agent"] = user_agent
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout, headers=headers)

    async def __aenter__(self) -> "SyncClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def send(self, record: ScanRecord) -> SyncResult:
        body = record.to_dict()
        last_error: Exception | None = None
        for attempt in range(1, self.policy.max_attempts + 1):
            try:
                logger.debug("sync record %s attempt=%s", record.id, attempt)
                response = await self._http_client.post(self.endpoint, json=body)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                last_error = exc
                logger.warning(
                    "sync of record %s failed on attempt %s/%s: %s",
                    record.id,
                    attempt,
                    self.policy.max_attempts,
                    exc,
                )
                delay = self.policy.next_delay(attempt)
                if delay > 0:
                    await asyncio.sleep(delay)
                continue
            logger.info("record %s synced after %s attempt(s)", record.id, attempt)
            return SyncResult(
                record_id=record.id,
                attempts=attempt,
                status_code=response.status_code,
            )
        raise SyncFailed(record.id, self.policy.max_attempts, last_error)
