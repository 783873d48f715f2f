"""Tests for the record upload client."""

from __future__ import annotations

import json
import unittest
from unittest import mock

import httpx

from scan_relay.storage.records import ScanRecord
from scan_relay.sync import RetryPolicy, SyncClient, SyncFailed

ENDPOINT = "https://example.com/v1/scans"


class _ScriptedTransport:
    """Replays a scripted list of outcomes, one per request."""

    def __init__(self, outcomes: list) -> None:
        self._outcomes = list(outcomes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return httpx.Response(outcome, json={"status": "ok"})


def _record() -> ScanRecord:
    return ScanRecord(id="1700000000000", payload="ABC123", observed_at="2026-01-01T00:00:00Z")


class RetryPolicyTests(unittest.TestCase):
    def test_defaults_match_immediate_retry(self) -> None:
        policy = RetryPolicy()
        self.assertEqual(policy.max_attempts, 3)
        self.assertEqual(policy.next_delay(1), 0.0)

    def test_no_delay_after_last_attempt(self) -> None:
        policy = RetryPolicy(max_attempts=2, delay_seconds=1.5)
        self.assertEqual(policy.next_delay(1), 1.5)
        self.assertEqual(policy.next_delay(2), 0.0)

    def test_rejects_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            RetryPolicy(max_attempts=0)
        with self.assertRaises(ValueError):
            RetryPolicy(delay_seconds=-1)


class SyncClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, transport: _ScriptedTransport, policy: RetryPolicy | None = None) -> SyncClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(transport))
        self.addAsyncCleanup(http_client.aclose)
        return SyncClient(ENDPOINT, policy=policy, http_client=http_client)

    async def test_first_success_short_circuits(self) -> None:
        transport = _ScriptedTransport([200])
        result = await self._client(transport).send(_record())
        self.assertEqual(result.attempts, 1)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(len(transport.requests), 1)
        body = json.loads(transport.requests[0].content)
        self.assertEqual(body, {"id": "1700000000000", "payload": "ABC123", "observed_at": "2026-01-01T00:00:00Z"})
        self.assertEqual(str(transport.requests[0].url), ENDPOINT)

    async def test_two_failures_then_success_uses_three_calls(self) -> None:
        transport = _ScriptedTransport([httpx.ConnectError("refused"), 503, 201])
        result = await self._client(transport).send(_record())
        self.assertEqual(result.attempts, 3)
        self.assertEqual(result.status_code, 201)
        self.assertEqual(len(transport.requests), 3)
        bodies = {request.content for request in transport.requests}
        self.assertEqual(len(bodies), 1)

    async def test_exhaustion_raises_sync_failed(self) -> None:
        transport = _ScriptedTransport([500, httpx.ReadTimeout("slow"), 502])
        with self.assertRaises(SyncFailed) as ctx:
            await self._client(transport).send(_record())
        self.assertEqual(ctx.exception.attempts, 3)
        self.assertEqual(ctx.exception.record_id, "1700000000000")
        self.assertIsInstance(ctx.exception.last_error, httpx.HTTPStatusError)
        self.assertEqual(len(transport.requests), 3)

    async def test_policy_delay_is_awaited_between_attempts(self) -> None:
        transport = _ScriptedTransport([500, 200])
        client = self._client(transport, RetryPolicy(max_attempts=3, delay_seconds=0.25))
        with mock.patch("scan_relay.sync.client.asyncio.sleep", new=mock.AsyncMock()) as sleep:
            result = await client.send(_record())
        self.assertEqual(result.attempts, 2)
        sleep.assert_awaited_once_with(0.25)

    async def test_owned_client_closed_on_exit(self) -> None:
        async with SyncClient(ENDPOINT) as client:
            inner = client._http_client
        self.assertTrue(inner.is_closed)


if __name__ == "__main__":
    unittest.main()
