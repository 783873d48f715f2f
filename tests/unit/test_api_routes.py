import dataclasses
import os
import time
import unittest
from unittest import mock

import httpx
from fastapi.testclient import TestClient

from scan_relay.api import get_app
from scan_relay.config.settings import Settings
from scan_relay.storage.kv import MemoryKeyValueStore
from scan_relay.sync import SyncClient


def _settings(**overrides) -> Settings:
    with mock.patch.dict(os.environ, {}, clear=True):
        base = Settings.from_env()
    return dataclasses.replace(base, feedback="none", **overrides)


def _wait_for(predicate, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


class ApiRoutesTest(unittest.TestCase):
    def test_health(self):
        with TestClient(get_app(_settings(), backend=MemoryKeyValueStore())) as client:
            health = client.get("/healthz")
            self.assertEqual(health.status_code, 200)
            self.assertEqual(health.json().get("status"), "ok")
            status = client.get("/v1/pipeline").json()
            self.assertEqual(status["state"], "idle")
            self.assertFalse(status["sync_enabled"])

    def test_scan_is_accepted_once_per_cooldown(self):
        app = get_app(_settings(cooldown_seconds=5.0), backend=MemoryKeyValueStore())
        with TestClient(app) as client:
            first = client.post("/v1/scans", json={"payload": "ABC123"})
            self.assertEqual(first.status_code, 200)
            body = first.json()
            self.assertTrue(body["accepted"])
            self.assertEqual(body["record"]["payload"], "ABC123")
            self.assertTrue(body["record"]["observed_at"].endswith("Z"))

            repeat = client.post("/v1/scans", json={"payload": "ABC123"})
            self.assertFalse(repeat.json()["accepted"])
            self.assertEqual(repeat.json()["state"], "busy")
            self.assertIsNone(repeat.json()["record"])

            history = client.get("/v1/history").json()
            self.assertEqual(history["count"], 1)
            self.assertEqual(history["limit"], 50)

    def test_history_export_and_clear(self):
        backend = MemoryKeyValueStore()
        app = get_app(_settings(cooldown_seconds=0.0), backend=backend)
        with TestClient(app) as client:
            empty = client.get("/v1/history/export")
            self.assertEqual(empty.status_code, 404)

            for payload in ("ABC123", "XYZ789"):
                _wait_for(lambda: client.get("/v1/pipeline").json()["state"] == "idle")
                self.assertTrue(client.post("/v1/scans", json={"payload": payload}).json()["accepted"])

            records = client.get("/v1/history").json()["records"]
            self.assertEqual([r["payload"] for r in records], ["XYZ789", "ABC123"])

            exported = client.get("/v1/history/export")
            self.assertEqual(exported.status_code, 200)
            self.assertTrue(exported.headers["content-type"].startswith("text/plain"))
            self.assertLess(exported.text.index("XYZ789"), exported.text.index("ABC123"))

            cleared = client.delete("/v1/history")
            self.assertEqual(cleared.json(), {"status": "cleared"})
            self.assertEqual(client.get("/v1/history").json()["count"], 0)
            self.assertIsNone(backend.get("scan_history"))

            notices = [n["notice"] for n in client.get("/v1/notices").json()["notices"]]
            self.assertEqual(
                notices,
                ["nothing_to_export", "scan_stored", "scan_stored", "history_cleared"],
            )

    def test_history_reloaded_at_startup(self):
        backend = MemoryKeyValueStore(
            {"scan_history": '[{"id": "1", "payload": "OLD", "observed_at": "2026-01-01T00:00:00Z"}]'}
        )
        with TestClient(get_app(_settings(), backend=backend)) as client:
            records = client.get("/v1/history").json()["records"]
        self.assertEqual(records[0]["payload"], "OLD")

    def test_failed_upload_raises_notice(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        sync_client = SyncClient(
            "https://example.com/v1/scans",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        app = get_app(_settings(), backend=MemoryKeyValueStore(), sync_client=sync_client)
        with TestClient(app) as client:
            self.assertTrue(client.post("/v1/scans", json={"payload": "ABC123"}).json()["accepted"])

            def _has_warning() -> bool:
                notices = client.get("/v1/notices").json()["notices"]
                return any(n["notice"] == "sync_unconfirmed" for n in notices)

            _wait_for(_has_warning)
            self.assertEqual(client.get("/v1/history").json()["count"], 1)
            self.assertTrue(client.get("/v1/pipeline").json()["sync_enabled"])
        self.assertEqual(len(calls), 3)


if __name__ == "__main__":
    unittest.main()
