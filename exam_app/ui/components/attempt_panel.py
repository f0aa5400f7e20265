"""Component for answering a timed test attempt."""

from __future__ import annotations

from typing import Callable

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import (
    QButtonGroup,
    QGridLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QProgressBar,
    QPushButton,
    QRadioButton,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.exam_constants import TIME_WARNING_WINDOW_SECONDS, TIMER_TICK_INTERVAL_MS
from exam_app.constants.ui_constants import (
    CLEAR_BUTTON,
    EXIT_BUTTON,
    MARK_BUTTON,
    NEXT_BUTTON,
    PREV_BUTTON,
    RETRY_SUBMIT_BUTTON,
    SUBMIT_BUTTON,
    UNMARK_BUTTON,
)
from exam_app.core.errors import ExamAppError, SubmissionError
from exam_app.core.models import Question, SubmitReason
from exam_app.core.services.answer_synchronizer import AnswerPush
from exam_app.core.services.countdown_timer import format_duration
from exam_app.core.services.shortcut_adapter import action_for_key, apply_shortcut, shortcut_keys
from exam_app.core.test_session_controller import ControllerState, TestSessionController
from exam_app.styling.styles import Styles
from exam_app.ui.dialog_helpers import build_submit_confirmation, confirm_exit, show_exam_error
from exam_app.ui.question_renderer import option_label, render_question

_PALETTE_COLUMNS = 5


class AttemptPanel(QWidget):
    """UI component driving one TestSessionController."""

    # Emitted from executor worker threads; Qt queues it onto the UI thread.
    push_failed = Signal(str, str)
    # Emitted by the controller, possibly from the thread that finished a submit.
    state_changed = Signal(object)

    def __init__(
        self,
        on_finished: Callable[[TestSessionController], None],
        on_exit: Callable[[], None],
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.on_finished = on_finished
        self.on_exit = on_exit
        self.controller: TestSessionController | None = None

        self._exam_font_size: int = 14
        self._confirmation_box: QMessageBox | None = None
        self._reported_error: ExamAppError | None = None
        self._option_buttons: list[QRadioButton] = []
        self._palette_buttons: list[QPushButton] = []

        self._build_ui()
        self._configure_tick_timer()
        self._configure_shortcuts()
        self.push_failed.connect(self._show_push_failure)
        self.state_changed.connect(self._on_controller_state_changed)

    def _build_ui(self) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        header_row = QHBoxLayout()
        self.title_label = QLabel("", self)
        self.title_label.setStyleSheet(Styles.get_large_label_style())
        header_row.addWidget(self.title_label, stretch=1)

        self.timer_label = QLabel("", self)
        self.timer_label.setAlignment(Qt.AlignRight | Qt.AlignVCenter)
        header_row.addWidget(self.timer_label)
        layout.addLayout(header_row)

        self.timer_progress = QProgressBar(self)
        self.timer_progress.setRange(0, 1000)
        self.timer_progress.setTextVisible(False)
        self.timer_progress.setMaximumHeight(8)
        layout.addWidget(self.timer_progress)

        body_row = QHBoxLayout()

        question_column = QVBoxLayout()
        self.question_view = QWebEngineView(self)
        question_column.addWidget(self.question_view, stretch=1)

        self.options_group = QGroupBox("Your answer", self)
        self.options_layout = QVBoxLayout()
        self.options_group.setLayout(self.options_layout)
        self.option_group = QButtonGroup(self)
        self.option_group.setExclusive(True)
        self.option_group.idClicked.connect(self._handle_option_clicked)
        question_column.addWidget(self.options_group)
        body_row.addLayout(question_column, stretch=3)

        side_column = QVBoxLayout()
        self.palette_group = QGroupBox("Questions", self)
        self.palette_layout = QGridLayout()
        self.palette_group.setLayout(self.palette_layout)
        side_column.addWidget(self.palette_group)

        self.progress_label = QLabel("", self)
        self.progress_label.setWordWrap(True)
        side_column.addWidget(self.progress_label)

        self.sync_label = QLabel("", self)
        self.sync_label.setWordWrap(True)
        self.sync_label.setVisible(False)
        side_column.addWidget(self.sync_label)

        self.resend_button = QPushButton("Resend answers", self)
        self.resend_button.clicked.connect(self._handle_resend)
        self.resend_button.setVisible(False)
        side_column.addWidget(self.resend_button)
        side_column.addStretch()
        body_row.addLayout(side_column, stretch=1)

        layout.addLayout(body_row, stretch=1)

        nav_row = QHBoxLayout()
        self.prev_button = QPushButton(PREV_BUTTON, self)
        self.prev_button.clicked.connect(self._handle_previous)
        nav_row.addWidget(self.prev_button)

        self.next_button = QPushButton(NEXT_BUTTON, self)
        self.next_button.clicked.connect(self._handle_next)
        nav_row.addWidget(self.next_button)

        self.mark_button = QPushButton(MARK_BUTTON, self)
        self.mark_button.clicked.connect(self._handle_toggle_mark)
        nav_row.addWidget(self.mark_button)

        self.clear_button = QPushButton(CLEAR_BUTTON, self)
        self.clear_button.clicked.connect(self._handle_clear)
        nav_row.addWidget(self.clear_button)

        nav_row.addStretch()

        self.exit_button = QPushButton(EXIT_BUTTON, self)
        self.exit_button.clicked.connect(self._handle_exit)
        nav_row.addWidget(self.exit_button)

        self.retry_button = QPushButton(RETRY_SUBMIT_BUTTON, self)
        self.retry_button.clicked.connect(self._handle_retry_submit)
        self.retry_button.setVisible(False)
        nav_row.addWidget(self.retry_button)

        self.submit_button = QPushButton(SUBMIT_BUTTON, self)
        self.submit_button.setProperty("primary", True)
        self.submit_button.clicked.connect(self._handle_submit)
        nav_row.addWidget(self.submit_button)

        layout.addLayout(nav_row)

    def _configure_tick_timer(self) -> None:
        self.tick_timer = QTimer(self)
        self.tick_timer.setInterval(TIMER_TICK_INTERVAL_MS)
        self.tick_timer.timeout.connect(self._tick)

    def _configure_shortcuts(self) -> None:
        self._shortcuts: list[QShortcut] = []
        for key in shortcut_keys():
            shortcut = QShortcut(QKeySequence(key), self)
            shortcut.setContext(Qt.WidgetWithChildrenShortcut)
            shortcut.activated.connect(lambda key=key: self._handle_shortcut(key))
            self._shortcuts.append(shortcut)

    # --- Lifecycle ---

    def begin(self, controller: TestSessionController) -> None:
        self.controller = controller
        definition = controller.definition
        self.title_label.setText(definition.name if definition else "")
        self.sync_label.setVisible(False)
        self.resend_button.setVisible(False)
        self._rebuild_palette()
        self._display_current()
        self._update_timer_view(controller.remaining_seconds())
        self.tick_timer.start()
        self.setFocus()

    def detach(self) -> None:
        """Stop driving the controller without touching the session."""
        self.tick_timer.stop()
        self._dismiss_confirmation()
        self.controller = None

    def report_push_failure(self, push: AnswerPush, error: BaseException) -> None:
        """Hook for AnswerSynchronizer; may be called from a worker thread."""
        self.push_failed.emit(push.key.question_id, str(error))

    def report_state_change(self, state: ControllerState) -> None:
        """Hook for TestSessionController; may be called from a worker thread."""
        self.state_changed.emit(state)

    def set_exam_font_size(self, size: int) -> None:
        self._exam_font_size = size
        self.timer_label.setStyleSheet(Styles.get_timer_style(size, warning=False))
        option_style = f"font-size: {size}pt;"
        self.options_group.setStyleSheet(option_style)
        if self.controller is not None and self.controller.current_question() is not None:
            self._display_current()

    # --- Ticking ---

    def _tick(self) -> None:
        if self.controller is None:
            self.tick_timer.stop()
            return
        remaining = self.controller.tick()
        self._update_timer_view(remaining)
        if not self.controller.is_interactive():
            self._dismiss_confirmation()
            self._refresh_controls()
        self._check_finished()
        self._report_submit_failure()

    def _update_timer_view(self, remaining: float) -> None:
        warning = remaining <= TIME_WARNING_WINDOW_SECONDS
        self.timer_label.setText(format_duration(remaining) if remaining > 0 else "Time is up")
        self.timer_label.setStyleSheet(Styles.get_timer_style(self._exam_font_size, warning=warning))
        if self.controller is not None:
            self.timer_progress.setValue(int(self.controller.fraction_remaining() * 1000))

    def _check_finished(self) -> None:
        controller = self.controller
        if controller is None or controller.state is not ControllerState.COMPLETED:
            return
        self.detach()
        self.on_finished(controller)

    # --- Question display ---

    def _display_current(self) -> None:
        controller = self.controller
        question = controller.current_question()
        navigator = controller.navigator
        html = render_question(
            question,
            navigator.index + 1,
            navigator.count,
            controller.answer_for(question.id),
            self._exam_font_size,
        )
        self.question_view.setHtml(html)
        self._rebuild_options(question)
        self._refresh_controls()

    def _rebuild_options(self, question: Question) -> None:
        for button in self._option_buttons:
            self.option_group.removeButton(button)
            self.options_layout.removeWidget(button)
            button.deleteLater()
        self._option_buttons = []

        selected = self.controller.answer_for(question.id)
        for index, option in enumerate(question.options):
            button = QRadioButton(f"{option_label(index)}  ({index + 1})", self.options_group)
            button.setToolTip(option.text)
            self.option_group.addButton(button, index)
            self.options_layout.addWidget(button)
            button.setChecked(option.id == selected)
            self._option_buttons.append(button)

    def _rebuild_palette(self) -> None:
        while self.palette_layout.count():
            item = self.palette_layout.takeAt(0)
            widget = item.widget()
            if widget is not None:
                widget.deleteLater()
        self._palette_buttons = []
        for entry in self.controller.palette():
            button = QPushButton(str(entry.number), self.palette_group)
            button.clicked.connect(lambda _checked=False, index=entry.number - 1: self._handle_go_to(index))
            row, column = divmod(entry.number - 1, _PALETTE_COLUMNS)
            self.palette_layout.addWidget(button, row, column)
            self._palette_buttons.append(button)

    def _refresh_controls(self) -> None:
        controller = self.controller
        if controller is None:
            return
        interactive = controller.is_interactive()
        navigator = controller.navigator
        question = controller.current_question()

        for entry, button in zip(controller.palette(), self._palette_buttons):
            button.setStyleSheet(Styles.get_palette_button_style(entry.state, entry.is_current))
            button.setEnabled(interactive)

        self.prev_button.setEnabled(interactive and not navigator.is_first())
        self.next_button.setEnabled(interactive and not navigator.is_last())
        self.mark_button.setEnabled(interactive)
        self.mark_button.setText(UNMARK_BUTTON if navigator.is_marked(question.id) else MARK_BUTTON)
        self.clear_button.setEnabled(interactive and controller.answer_for(question.id) is not None)
        self.options_group.setEnabled(interactive)
        self.exit_button.setEnabled(controller.state is ControllerState.ACTIVE)

        failed_submit = isinstance(controller.last_error, SubmissionError)
        awaiting_retry = failed_submit and controller.state is ControllerState.ACTIVE
        self.retry_button.setVisible(awaiting_retry)
        self.submit_button.setEnabled(interactive)

        progress = f"Answered {navigator.answered_count()} of {navigator.count}  |  Marked {len(navigator.marked_ids())}"
        if controller.state is ControllerState.SUBMITTING:
            progress += "\nSubmitting your answers..."
        self.progress_label.setText(progress)

    # --- Actions ---

    def _handle_option_clicked(self, index: int) -> None:
        question = self.controller.current_question() if self.controller else None
        option = question.option_at(index) if question else None
        if option is None:
            return
        try:
            self.controller.select_option(option.id)
        except ExamAppError as exc:
            show_exam_error(self, "Answer not recorded", exc)
        self._redisplay_keeping_options()

    def _handle_clear(self) -> None:
        try:
            self.controller.clear_answer()
        except ExamAppError as exc:
            show_exam_error(self, "Answer not cleared", exc)
        self._display_current()

    def _handle_toggle_mark(self) -> None:
        try:
            self.controller.toggle_mark()
        except ExamAppError as exc:
            show_exam_error(self, "Could not mark question", exc)
        self._refresh_controls()

    def _handle_previous(self) -> None:
        if self.controller and self.controller.previous_question() is not None:
            self._display_current()

    def _handle_next(self) -> None:
        if self.controller and self.controller.next_question() is not None:
            self._display_current()

    def _handle_go_to(self, index: int) -> None:
        if self.controller and self.controller.go_to_question(index) is not None:
            self._display_current()

    def _handle_shortcut(self, key: str) -> None:
        action = action_for_key(key)
        if self.controller is None or action is None or self._confirmation_box is not None:
            return
        if apply_shortcut(self.controller, action):
            self._display_current()

    def _redisplay_keeping_options(self) -> None:
        # The clicked radio button stays; only the highlighted page and palette change.
        controller = self.controller
        question = controller.current_question()
        navigator = controller.navigator
        self.question_view.setHtml(
            render_question(
                question,
                navigator.index + 1,
                navigator.count,
                controller.answer_for(question.id),
                self._exam_font_size,
            )
        )
        self._refresh_controls()

    def _handle_resend(self) -> None:
        if self.controller is None:
            return
        self.controller.retry_failed_answers()
        self.sync_label.setVisible(False)
        self.resend_button.setVisible(False)

    def _show_push_failure(self, question_id: str, message: str) -> None:
        if self.controller is None:
            return
        count = self.controller.failed_answer_count()
        if count == 0:
            return
        self.sync_label.setText(
            f"{count} answer(s) could not be saved to the server yet. "
            "They are kept here; resend before submitting."
        )
        self.sync_label.setStyleSheet(Styles.get_timer_style(self._exam_font_size - 4, warning=True))
        self.sync_label.setVisible(True)
        self.resend_button.setVisible(True)

    # --- Submit and exit ---

    def _handle_submit(self) -> None:
        if self.controller is None or self._confirmation_box is not None:
            return
        summary = self.controller.request_submit()
        if summary is None:
            return
        box = build_submit_confirmation(self, summary)
        box.finished.connect(self._on_confirmation_finished)
        self._confirmation_box = box
        box.open()

    def _on_confirmation_finished(self, _result: int) -> None:
        box = self._confirmation_box
        self._confirmation_box = None
        if box is None or self.controller is None:
            return
        confirmed = box.standardButton(box.clickedButton()) == QMessageBox.Yes
        box.deleteLater()
        if not confirmed:
            self.controller.cancel_submit()
            self._refresh_controls()
            return
        self.controller.submit_async(SubmitReason.MANUAL)
        self._refresh_controls()

    def _handle_retry_submit(self) -> None:
        if self.controller is not None:
            self.controller.retry_submit_async()
            self._refresh_controls()

    def _on_controller_state_changed(self, _state: object) -> None:
        if self.controller is None:
            return
        if not self.controller.is_interactive():
            self._dismiss_confirmation()
        self._refresh_controls()
        self._check_finished()
        self._report_submit_failure()

    def _report_submit_failure(self) -> None:
        error = self.controller.last_error if self.controller else None
        if not isinstance(error, SubmissionError) or error is self._reported_error:
            return
        self._reported_error = error
        title = "Automatic submit failed" if self.controller.submit_reason is SubmitReason.TIMEOUT else "Submit failed"
        show_exam_error(self, title, error)

    def _dismiss_confirmation(self) -> None:
        box = self._confirmation_box
        if box is None:
            return
        self._confirmation_box = None
        box.finished.disconnect(self._on_confirmation_finished)
        box.done(0)
        box.deleteLater()

    def _handle_exit(self) -> None:
        if self.controller is None or not confirm_exit(self):
            return
        self.controller.exit()
        self.detach()
        self.on_exit()
