"""Component listing the learner's past attempts."""

from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor
from PySide6.QtWidgets import (
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QPushButton,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.ui_constants import NO_ATTEMPTS_MESSAGE, REFRESH_HISTORY_BUTTON
from exam_app.core.api_client import ExamApiClient
from exam_app.core.errors import BackendError
from exam_app.core.models import AttemptSummary
from exam_app.core.services.countdown_timer import format_duration
from exam_app.core.services.result_presenter import score_band
from exam_app.styling.color_palette import score_color
from exam_app.ui.dialog_helpers import show_exam_error

_COLUMNS = ("Test", "Started", "Score", "Percentage", "Result", "Time spent")


def _result_text(summary: AttemptSummary) -> str:
    if not summary.is_completed:
        return "Not submitted"
    return "Passed" if summary.passed else "Not passed"


class HistoryPanel(QWidget):
    """Table of attempts fetched from ``GET /tests/attempts``."""

    def __init__(self, client: ExamApiClient, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.client = client
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        self.status_label = QLabel("", self)
        header_row.addWidget(self.status_label, stretch=1)
        self.refresh_button = QPushButton(REFRESH_HISTORY_BUTTON, self)
        self.refresh_button.clicked.connect(self.refresh)
        header_row.addWidget(self.refresh_button)
        layout.addLayout(header_row)

        self.table = QTableWidget(0, len(_COLUMNS), self)
        self.table.setHorizontalHeaderLabels(list(_COLUMNS))
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        self.table.verticalHeader().setVisible(False)
        layout.addWidget(self.table, stretch=1)

    def refresh(self) -> None:
        try:
            attempts = self.client.list_attempts()
        except BackendError as exc:
            show_exam_error(self, "Could not load attempts", exc)
            return
        self._populate(attempts)

    def _populate(self, attempts: list[AttemptSummary]) -> None:
        self.table.setRowCount(len(attempts))
        self.status_label.setText(NO_ATTEMPTS_MESSAGE if not attempts else f"{len(attempts)} attempt(s)")
        for row, summary in enumerate(attempts):
            score = (
                f"{summary.marks_obtained:g} / {summary.total_marks:g}"
                if summary.marks_obtained is not None and summary.total_marks is not None
                else "-"
            )
            percentage = f"{summary.percentage:.1f}%" if summary.percentage is not None else "-"
            values = (
                summary.test_name or summary.test_id,
                summary.attempted_at.astimezone().strftime("%Y-%m-%d %H:%M"),
                score,
                percentage,
                _result_text(summary),
                format_duration(summary.time_taken_seconds),
            )
            color = QColor(score_color(score_band(summary.percentage)))
            for column, value in enumerate(values):
                item = QTableWidgetItem(value)
                if column in (3, 4):
                    item.setForeground(color)
                if column >= 2:
                    item.setTextAlignment(Qt.AlignCenter)
                self.table.setItem(row, column, item)
