"""Settings resolved from the environment with sane defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass

from . import constants


def _get_env_str(env_name: str, default: str) -> str:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    return raw


def _get_env_alias(env_names: tuple[str, ...], default: str) -> str:
    for env_name in env_names:
        raw = os.getenv(env_name)
        if raw is not None and raw != "":
            return raw
    return default


def _get_env_choice(env_name: str, choices: list[str], default: str) -> str:
    raw = (os.getenv(env_name) or "").strip().lower()
    if raw in choices:
        return raw
    return default


def _parse_env_int(env_name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def _parse_env_float(env_name: str, default: float) -> float:
    raw = os.getenv(env_name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def _parse_env_bool(env_name: str, default: bool) -> bool:
    raw = os.getenv(env_name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    sync_endpoint: str
    sync_max_attempts: int
    sync_retry_delay: float
    sync_timeout: float
    user_agent: str
    cooldown_seconds: float
    history_limit: int
    store_dir: str
    history_key: str
    feedback: str
    feedback_sound: str
    debounce_mode: str
    reject_empty: bool
    api_host: str
    api_port: int

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            sync_endpoint=_get_env_str(
                "SCAN_SYNC_ENDPOINT", constants.DEFAULT_SYNC_ENDPOINT
            ).strip(),
            sync_max_attempts=_parse_env_int(
                "SCAN_SYNC_MAX_ATTEMPTS", constants.DEFAULT_SYNC_MAX_ATTEMPTS
            ),
            sync_retry_delay=_parse_env_float(
                "SCAN_SYNC_RETRY_DELAY", constants.DEFAULT_SYNC_RETRY_DELAY
            ),
            sync_timeout=_parse_env_float(
                "SCAN_SYNC_TIMEOUT", constants.DEFAULT_SYNC_TIMEOUT
            ),
            user_agent=_get_env_str("SCAN_USER_AGENT", constants.DEFAULT_USER_AGENT),
            cooldown_seconds=_parse_env_float(
                "SCAN_COOLDOWN_SECONDS", constants.DEFAULT_COOLDOWN_SECONDS
            ),
            history_limit=_parse_env_int(
                "SCAN_HISTORY_LIMIT", constants.MAX_HISTORY_ITEMS
            ),
            store_dir=os.path.expanduser(
                _get_env_alias(
                    ("SCAN_STORE_DIR", "SCAN_DATA_DIR"),
                    constants.DEFAULT_STORE_DIR,
                )
            ),
            history_key=_get_env_alias(
                ("SCAN_HISTORY_KEY",), constants.DEFAULT_HISTORY_KEY
            ),
            feedback=_get_env_choice(
                "SCAN_FEEDBACK", constants.FEEDBACK_CHOICES, constants.DEFAULT_FEEDBACK
            ),
            feedback_sound=_get_env_str(
                "SCAN_FEEDBACK_SOUND", constants.DEFAULT_FEEDBACK_SOUND
            ),
            debounce_mode=_get_env_choice(
                "SCAN_DEBOUNCE_MODE",
                constants.DEBOUNCE_MODES,
                constants.DEFAULT_DEBOUNCE_MODE,
            ),
            reject_empty=_parse_env_bool("SCAN_REJECT_EMPTY", False),
            api_host=_get_env_str("SCAN_API_HOST", constants.DEFAULT_API_HOST),
            api_port=_parse_env_int("SCAN_API_PORT", constants.DEFAULT_API_PORT),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


__all__ = ["Settings", "get_settings"]
