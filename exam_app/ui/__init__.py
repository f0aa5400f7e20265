"""Qt UI components for the exam application."""

from .dialog_helpers import (
    build_submit_confirmation,
    choose_resume_or_abandon,
    confirm_exit,
    show_error,
    show_exam_error,
    show_info,
    show_warning,
)
from .exam_main_window import ExamMainWindow
from .question_renderer import render_question

__all__ = [
    "ExamMainWindow",
    "build_submit_confirmation",
    "choose_resume_or_abandon",
    "confirm_exit",
    "show_error",
    "show_exam_error",
    "show_info",
    "show_warning",
    "render_question",
]
