"""Exam-related constants shared across UI and core layers."""

TIMER_TICK_INTERVAL_MS: int = 1000
TIME_WARNING_WINDOW_SECONDS: int = 60
OPTION_SHORTCUT_COUNT: int = 4
ANSWER_GRACE_SECONDS: int = 5
SCORE_SUCCESS_THRESHOLD: float = 80.0
SCORE_WARNING_THRESHOLD: float = 60.0
SAMPLE_TEST_BANK_PATH: str = "exam_app/data/sample_tests.txt"
SESSION_STORE_FILENAME: str = "sessions_active.json"
