"""Application entry point for ExamQt."""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from PySide6.QtWidgets import QApplication

from exam_app.constants.about import APP_NAME, APP_VERSION
from exam_app.constants.network_constants import BACKGROUND_WORKER_COUNT
from exam_app.core.api_client import ExamApiClient
from exam_app.core.app_config import AppConfig
from exam_app.core.session_store import SessionStore
from exam_app.core.test_bank_importer import TestBankImportError, load_bank_from_file
from exam_app.server.api_server import start_practice_server
from exam_app.server.practice_backend import PracticeBackend
from exam_app.ui.exam_main_window import ExamMainWindow
from exam_app.utils.logging_config import configure_logging


def _resolve_bank_path(path: Path) -> Path:
    """Relative bank paths are tried against the CWD, then next to this module."""
    if path.is_absolute() or path.exists():
        return path
    return Path(__file__).resolve().parent / path


def main() -> None:
    """Read config, optionally start the practice server, and launch the Qt UI."""
    config = AppConfig.from_env()
    logger = configure_logging(config.log_level)
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)

    suggested_test_ids: list[str] = []
    if config.practice_server:
        bank_path = _resolve_bank_path(config.test_bank)
        try:
            bank = load_bank_from_file(bank_path)
        except (OSError, TestBankImportError) as exc:
            logger.error("Could not load test bank %s: %s", bank_path, exc)
        else:
            backend = PracticeBackend(bank.tests)
            start_practice_server(backend, host=config.practice_host, port=config.practice_port)
            suggested_test_ids = backend.test_ids()

    logger.info("Using backend at %s", config.api_base_url)
    client = ExamApiClient(
        base_url=config.api_base_url,
        token=config.api_token,
        timeout=config.request_timeout,
    )
    store = SessionStore(config.session_store_path)
    executor = ThreadPoolExecutor(max_workers=BACKGROUND_WORKER_COUNT, thread_name_prefix="exam-worker")

    app = QApplication(sys.argv)
    window = ExamMainWindow(
        client=client,
        store=store,
        executor=executor,
        suggested_test_ids=suggested_test_ids,
        api_token=config.api_token,
    )
    window.show()
    exit_code = app.exec()

    # Let in-flight answer pushes land before the client goes away.
    executor.shutdown(wait=True)
    client.close()
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
