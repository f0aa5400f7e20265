"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from exam_app.constants.exam_constants import SAMPLE_TEST_BANK_PATH, SESSION_STORE_FILENAME
from exam_app.constants.network_constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_HOST,
    DEFAULT_PORT,
    REQUEST_TIMEOUT_SECONDS,
)


def _env_str(name: str, default: str | None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class AppConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    api_token: str | None = None
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    state_dir: Path = Path.home() / ".examqt"
    practice_server: bool = True
    practice_host: str = DEFAULT_HOST
    practice_port: int = DEFAULT_PORT
    test_bank: Path = Path(SAMPLE_TEST_BANK_PATH)
    log_level: str = "INFO"

    @property
    def session_store_path(self) -> Path:
        return self.state_dir / SESSION_STORE_FILENAME

    @classmethod
    def from_env(cls) -> AppConfig:
        defaults = cls()
        practice_host = _env_str("EXAMQT_PRACTICE_HOST", defaults.practice_host)
        practice_port = _env_int("EXAMQT_PRACTICE_PORT", defaults.practice_port)
        practice_server = _env_bool("EXAMQT_PRACTICE_SERVER", defaults.practice_server)
        # Without an explicit backend, talk to the bundled practice server.
        fallback_url = f"http://{practice_host}:{practice_port}" if practice_server else defaults.api_base_url
        state_dir = _env_str("EXAMQT_STATE_DIR", None)
        test_bank = _env_str("EXAMQT_TEST_BANK", None)
        return cls(
            api_base_url=_env_str("EXAMQT_API_BASE_URL", fallback_url).rstrip("/"),
            api_token=_env_str("EXAMQT_API_TOKEN", None),
            request_timeout=_env_float("EXAMQT_REQUEST_TIMEOUT", defaults.request_timeout),
            state_dir=Path(state_dir).expanduser() if state_dir else defaults.state_dir,
            practice_server=practice_server,
            practice_host=practice_host,
            practice_port=practice_port,
            test_bank=Path(test_bank).expanduser() if test_bank else defaults.test_bank,
            log_level=_env_str("EXAMQT_LOG_LEVEL", defaults.log_level).upper(),
        )
