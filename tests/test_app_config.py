from __future__ import annotations

import logging
import os
from pathlib import Path

import pytest

from exam_app.constants.network_constants import DEFAULT_API_BASE_URL
from exam_app.core.app_config import AppConfig
from exam_app.utils.logging_config import configure_logging


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("EXAMQT_"):
            monkeypatch.delenv(name)


def test_defaults_point_at_the_bundled_practice_server():
    config = AppConfig.from_env()

    assert config.practice_server
    assert config.api_base_url == "http://127.0.0.1:8000"
    assert config.api_token is None
    assert config.session_store_path.name == "sessions_active.json"


def test_practice_port_moves_the_default_base_url(monkeypatch):
    monkeypatch.setenv("EXAMQT_PRACTICE_PORT", "9100")

    assert AppConfig.from_env().api_base_url == "http://127.0.0.1:9100"


def test_explicit_backend(monkeypatch, tmp_path):
    monkeypatch.setenv("EXAMQT_PRACTICE_SERVER", "off")
    monkeypatch.setenv("EXAMQT_API_BASE_URL", "https://exams.example.org/api/")
    monkeypatch.setenv("EXAMQT_API_TOKEN", " secret ")
    monkeypatch.setenv("EXAMQT_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("EXAMQT_LOG_LEVEL", "debug")

    config = AppConfig.from_env()

    assert not config.practice_server
    assert config.api_base_url == "https://exams.example.org/api"
    assert config.api_token == "secret"
    assert config.session_store_path == Path(tmp_path) / "sessions_active.json"
    assert config.log_level == "DEBUG"


def test_practice_off_without_url_uses_default(monkeypatch):
    monkeypatch.setenv("EXAMQT_PRACTICE_SERVER", "0")

    assert AppConfig.from_env().api_base_url == DEFAULT_API_BASE_URL


def test_bad_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("EXAMQT_REQUEST_TIMEOUT", "fast")
    monkeypatch.setenv("EXAMQT_PRACTICE_PORT", "")

    config = AppConfig.from_env()

    assert config.request_timeout == AppConfig().request_timeout
    assert config.practice_port == AppConfig().practice_port


def test_configure_logging_quiets_http_client():
    logger = configure_logging("info")

    assert logger.name == "exam_app"
    assert logging.getLogger("httpx").level >= logging.WARNING
