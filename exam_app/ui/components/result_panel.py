"""Component showing the score breakdown of a finished attempt."""

from __future__ import annotations

from typing import Callable

from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from exam_app.constants.ui_constants import CLOSE_RESULT_BUTTON
from exam_app.core.services.result_presenter import ResultPresenter, score_band
from exam_app.styling.color_palette import score_color


class ResultPanel(QWidget):
    """Displays whatever the presenter holds; closing it clears the presenter."""

    def __init__(self, on_close: Callable[[], None], parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.on_close = on_close
        self._presenter: ResultPresenter | None = None
        self._exam_font_size = 14
        self._build_ui()

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        self.headline_label = QLabel("", self)
        layout.addWidget(self.headline_label)

        self.result_view = QWebEngineView(self)
        layout.addWidget(self.result_view, stretch=1)

        button_row = QHBoxLayout()
        button_row.addStretch()
        self.close_button = QPushButton(CLOSE_RESULT_BUTTON, self)
        self.close_button.clicked.connect(self._handle_close)
        button_row.addWidget(self.close_button)
        layout.addLayout(button_row)

    def show_result(self, presenter: ResultPresenter) -> None:
        self._presenter = presenter
        self._render()

    def set_exam_font_size(self, size: int) -> None:
        self._exam_font_size = size
        if self._presenter is not None and self._presenter.is_open:
            self._render()

    def _render(self) -> None:
        presenter = self._presenter
        color = score_color(score_band(presenter.result.percentage))
        self.headline_label.setText(presenter.headline())
        self.headline_label.setStyleSheet(
            f"font-size: {self._exam_font_size + 4}pt; font-weight: bold; color: {color};"
        )
        self.result_view.setHtml(presenter.render_html(self._exam_font_size))

    def _handle_close(self) -> None:
        if self._presenter is not None:
            self._presenter.close()
            self._presenter = None
        self.result_view.setHtml("")
        self.on_close()
