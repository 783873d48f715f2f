import os
import unittest
from unittest import mock

from scan_relay.config import constants
from scan_relay.config.settings import Settings


class SettingsTests(unittest.TestCase):
    def test_defaults_when_env_empty(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.sync_endpoint, "")
        self.assertEqual(settings.sync_max_attempts, 3)
        self.assertEqual(settings.sync_retry_delay, 0.0)
        self.assertEqual(settings.cooldown_seconds, 2.0)
        self.assertEqual(settings.history_limit, constants.MAX_HISTORY_ITEMS)
        self.assertEqual(settings.history_key, "scan_history")
        self.assertEqual(settings.debounce_mode, "global")
        self.assertFalse(settings.reject_empty)

    def test_invalid_numbers_fall_back(self):
        env = {
            "SCAN_SYNC_MAX_ATTEMPTS": "zero",
            "SCAN_COOLDOWN_SECONDS": "-1",
            "SCAN_HISTORY_LIMIT": "0",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.sync_max_attempts, 3)
        self.assertEqual(settings.cooldown_seconds, 2.0)
        self.assertEqual(settings.history_limit, 50)

    def test_store_dir_alias_and_choices(self):
        env = {
            "SCAN_STORE_DIR": "",
            "SCAN_DATA_DIR": "/tmp/scan-data",
            "SCAN_FEEDBACK": "BELL",
            "SCAN_DEBOUNCE_MODE": "sideways",
            "SCAN_REJECT_EMPTY": "yes",
            "SCAN_SYNC_ENDPOINT": " https://example.com/scans ",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.store_dir, "/tmp/scan-data")
        self.assertEqual(settings.feedback, "bell")
        self.assertEqual(settings.debounce_mode, "global")
        self.assertTrue(settings.reject_empty)
        self.assertEqual(settings.sync_endpoint, "https://example.com/scans")


if __name__ == "__main__":
    unittest.main()
