"""Qt UI constants used across widgets."""

WINDOW_TITLE: str = "ExamQt Test Center"

MODE_BUTTON_CENTER: str = "Test Center"
MODE_BUTTON_HISTORY: str = "My Attempts"

TEST_ID_PLACEHOLDER: str = "Enter a test id"
LOAD_TEST_BUTTON: str = "Load Test"
START_TEST_BUTTON: str = "Start Test"
RESUME_PENDING_TEMPLATE: str = "You have an unfinished attempt for test {test_id} (expires {expires})."

PREV_BUTTON: str = "Previous"
NEXT_BUTTON: str = "Next"
MARK_BUTTON: str = "Mark for Review"
UNMARK_BUTTON: str = "Unmark"
CLEAR_BUTTON: str = "Clear Answer"
SUBMIT_BUTTON: str = "Submit Test"
EXIT_BUTTON: str = "Exit Test"
RETRY_SUBMIT_BUTTON: str = "Retry Submit"
CLOSE_RESULT_BUTTON: str = "Back to Test Center"
REFRESH_HISTORY_BUTTON: str = "Refresh"

TIME_EXPIRED_MESSAGE: str = "Time is up. Your attempt has been submitted automatically."
EXIT_CONFIRM_MESSAGE: str = (
    "Your answers are saved, but the clock keeps running while you are away. "
    "The attempt is submitted automatically when time runs out. Exit now?"
)
NO_ATTEMPTS_MESSAGE: str = "No attempts yet."
