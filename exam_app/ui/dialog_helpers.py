"""Helper functions for common dialog patterns in the exam UI."""

from __future__ import annotations

from PySide6.QtWidgets import QMessageBox, QWidget

from exam_app.constants.ui_constants import EXIT_CONFIRM_MESSAGE
from exam_app.core.errors import BackendError, ExamAppError
from exam_app.core.models import ActiveSessionInfo, ResumeChoice, SubmissionSummary
from exam_app.core.services.countdown_timer import format_duration, utc_now


def choose_resume_or_abandon(parent: QWidget, info: ActiveSessionInfo) -> ResumeChoice | None:
    """Ask whether to continue a live session or abandon it and start over.

    Returns:
        The learner's choice, or None if the dialog was closed.
    """
    remaining = max(0.0, (info.expires_at - utc_now()).total_seconds()) if info.expires_at else 0.0
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Question)
    msg_box.setWindowTitle("Attempt in progress")
    msg_box.setText("You already have an unfinished attempt for this test.")
    msg_box.setInformativeText(
        f"Time remaining: {format_duration(remaining)}.\n\n"
        "Continue where you left off, or abandon it and start a new attempt?"
    )
    continue_button = msg_box.addButton("Continue", QMessageBox.AcceptRole)
    abandon_button = msg_box.addButton("Abandon and restart", QMessageBox.DestructiveRole)
    msg_box.addButton(QMessageBox.Cancel)
    msg_box.setDefaultButton(continue_button)
    msg_box.exec()

    clicked = msg_box.clickedButton()
    if clicked is continue_button:
        return ResumeChoice.CONTINUE
    if clicked is abandon_button:
        return ResumeChoice.ABANDON
    return None


def build_submit_confirmation(parent: QWidget, summary: SubmissionSummary) -> QMessageBox:
    """Build (but do not show) the submit confirmation box.

    The caller opens it non-modally with ``open()`` so the countdown keeps
    ticking and an expiry can close it.
    """
    msg_box = QMessageBox(parent)
    msg_box.setIcon(QMessageBox.Question)
    msg_box.setWindowTitle("Submit test?")
    msg_box.setText("Submit your answers? You cannot change them afterwards.")
    msg_box.setInformativeText(
        f"Answered: {summary.answered}\n"
        f"Unanswered: {summary.unanswered}\n"
        f"Marked for review: {summary.marked}\n"
        f"Time spent: {format_duration(summary.elapsed_seconds)}"
    )
    msg_box.setStandardButtons(QMessageBox.Yes | QMessageBox.No)
    msg_box.setDefaultButton(QMessageBox.No)
    return msg_box


def confirm_exit(parent: QWidget) -> bool:
    reply = QMessageBox.question(
        parent,
        "Exit test",
        EXIT_CONFIRM_MESSAGE,
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.No,
    )
    return reply == QMessageBox.Yes


def confirm_resume_pending(parent: QWidget, message: str) -> bool:
    reply = QMessageBox.question(
        parent,
        "Unfinished attempt",
        f"{message}\n\nOpen it now?",
        QMessageBox.Yes | QMessageBox.No,
        QMessageBox.Yes,
    )
    return reply == QMessageBox.Yes


def show_exam_error(parent: QWidget, title: str, error: ExamAppError) -> None:
    """Show an error from the core, preferring the friendly backend message."""
    if isinstance(error, BackendError):
        message = error.user_message
        if error.retryable:
            message += "\n\nYou can try again."
    else:
        message = str(error)
    show_error(parent, title, message)


def show_error(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.critical(parent, title, message)


def show_info(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.information(parent, title, message)


def show_warning(parent: QWidget, title: str, message: str) -> None:
    QMessageBox.warning(parent, title, message)
