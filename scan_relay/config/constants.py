"""Shared runtime constants for the scan relay."""

MAX_HISTORY_ITEMS = 50

DEFAULT_SYNC_ENDPOINT = ""
DEFAULT_SYNC_MAX_ATTEMPTS = 3
DEFAULT_SYNC_RETRY_DELAY = 0.0
DEFAULT_SYNC_TIMEOUT = 10.0
DEFAULT_USER_AGENT = "scan-relay/0.1"

DEFAULT_COOLDOWN_SECONDS = 2.0
DEFAULT_STORE_DIR = "~/.local/share/scan_relay"
DEFAULT_HISTORY_KEY = "scan_history"

FEEDBACK_CHOICES = ["system", "bell", "none"]
DEFAULT_FEEDBACK = "system"
DEFAULT_FEEDBACK_SOUND = "/usr/share/sounds/freedesktop/stereo/complete.oga"

DEBOUNCE_MODES = ["global", "payload"]
DEFAULT_DEBOUNCE_MODE = "global"

DEFAULT_API_HOST = "127.0.0.1"
DEFAULT_API_PORT = 8085
DEFAULT_NOTICE_BACKLOG = 20

EMPTY_EXPORT_TEXT = "No scans recorded."
