"""Static metadata describing ExamQt."""

APP_NAME = "ExamQt"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "ExamQt is a desktop test center for timed, server-scored assessments built with Qt. "
    "Start or resume an attempt, answer at your own pace, and get your score breakdown "
    "as soon as you submit or the clock runs out."
)

HELP_TEXT = (
    "Enter a test id and press Start. If you already have an unfinished attempt for that test "
    "you can continue it (the clock has kept running) or abandon it and start over.\n\n"
    "Keyboard shortcuts while answering:\n"
    "  Left / Right  previous / next question\n"
    "  1 - 4         choose option A - D on the current question\n\n"
    "Exiting an attempt does not pause the clock. Your answers are kept on the server and the "
    "attempt is submitted automatically when the time limit is reached."
)
