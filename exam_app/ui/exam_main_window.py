"""Qt main window hosting the test center, attempt, result and history views."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future
from enum import Enum, auto

from PySide6.QtCore import QThread, QTimer, Qt, Signal
from PySide6.QtGui import QCloseEvent
from PySide6.QtWidgets import (
    QHBoxLayout,
    QMainWindow,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION, HELP_TEXT
from exam_app.constants.ui_constants import (
    MODE_BUTTON_CENTER,
    MODE_BUTTON_HISTORY,
    TIME_EXPIRED_MESSAGE,
    WINDOW_TITLE,
)
from exam_app.core.api_client import ExamApiClient
from exam_app.core.errors import ExamAppError, NegotiationCancelledError
from exam_app.core.models import ActiveSessionInfo, ResumeChoice, SubmitReason, TestDefinition
from exam_app.core.session_store import SessionStore
from exam_app.core.test_session_controller import ControllerState, TestSessionController
from exam_app.styling.styles import Styles
from exam_app.ui.components.attempt_panel import AttemptPanel
from exam_app.ui.components.center_panel import CenterPanel
from exam_app.ui.components.history_panel import HistoryPanel
from exam_app.ui.components.result_panel import ResultPanel
from exam_app.ui.dialog_helpers import (
    choose_resume_or_abandon,
    confirm_resume_pending,
    show_exam_error,
    show_info,
)
from exam_app.ui.settings_dialog import SettingsDialog

logger = logging.getLogger(__name__)


class ExamMode(Enum):
    """High-level UI mode of the main window."""

    TEST_CENTER = auto()
    ATTEMPT = auto()
    RESULT = auto()
    HISTORY = auto()


class ExamMainWindow(QMainWindow):
    """Main Qt window. Owns no attempt state; each attempt gets its own controller."""

    # Negotiation runs on the executor; both signals carry its results back here.
    start_finished = Signal(object, object)
    resume_choice_requested = Signal(object, object)

    def __init__(
        self,
        client: ExamApiClient,
        store: SessionStore,
        executor: Executor,
        suggested_test_ids: list[str] | None = None,
        api_token: str | None = None,
    ) -> None:
        super().__init__()
        self.setWindowTitle(WINDOW_TITLE)
        self.resize(1100, 760)

        self.client = client
        self.store = store
        self.executor = executor
        self.controller: TestSessionController | None = None
        self._starting: TestSessionController | None = None
        self._closing = False

        self._mode = ExamMode.TEST_CENTER
        self._ui_font_size: int = 10
        self._exam_font_size: int = 14
        self._api_token = api_token
        self._offer_pending_on_launch = True

        self._build_ui(suggested_test_ids or [])
        self.start_finished.connect(self._on_start_finished)
        # The worker waits for the dialog, so it sees the answer on return.
        self.resume_choice_requested.connect(self._ask_resume_choice, Qt.BlockingQueuedConnection)
        self._apply_styles()
        self.center_panel.refresh_pending()
        QTimer.singleShot(0, self._offer_pending_sessions)

    def _build_ui(self, suggested_test_ids: list[str]) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)

        root_layout = QVBoxLayout()
        central_widget.setLayout(root_layout)

        self._build_mode_buttons(root_layout)

        self.mode_stack = QStackedWidget(self)
        self.center_panel = CenterPanel(
            self.client,
            self.store,
            on_start=self._start_attempt,
            suggested_test_ids=suggested_test_ids,
            parent=self,
        )
        self.attempt_panel = AttemptPanel(
            on_finished=self._show_result,
            on_exit=self._leave_attempt,
            parent=self,
        )
        self.result_panel = ResultPanel(on_close=self._close_result, parent=self)
        self.history_panel = HistoryPanel(self.client, parent=self)

        self.mode_stack.addWidget(self.center_panel)
        self.mode_stack.addWidget(self.attempt_panel)
        self.mode_stack.addWidget(self.result_panel)
        self.mode_stack.addWidget(self.history_panel)
        root_layout.addWidget(self.mode_stack)

        self._set_mode(ExamMode.TEST_CENTER)

    def _build_mode_buttons(self, layout: QVBoxLayout) -> None:
        button_row = QHBoxLayout()

        self.center_mode_button = QPushButton(MODE_BUTTON_CENTER, self)
        self.center_mode_button.setCheckable(True)
        self.center_mode_button.clicked.connect(lambda: self._set_mode(ExamMode.TEST_CENTER))
        button_row.addWidget(self.center_mode_button)

        self.history_mode_button = QPushButton(MODE_BUTTON_HISTORY, self)
        self.history_mode_button.setCheckable(True)
        self.history_mode_button.clicked.connect(self._handle_show_history)
        button_row.addWidget(self.history_mode_button)

        button_row.addStretch()

        self.about_button = QPushButton(f"About {APP_NAME}", self)
        self.about_button.clicked.connect(self._handle_about)
        button_row.addWidget(self.about_button)

        self.help_button = QPushButton("Help", self)
        self.help_button.clicked.connect(self._handle_help)
        button_row.addWidget(self.help_button)

        self.settings_button = QPushButton("Settings", self)
        self.settings_button.clicked.connect(self._handle_settings)
        button_row.addWidget(self.settings_button)

        layout.addLayout(button_row)

    def _set_mode(self, mode: ExamMode) -> None:
        self._mode = mode
        in_attempt = mode == ExamMode.ATTEMPT
        self.center_mode_button.setChecked(mode == ExamMode.TEST_CENTER)
        self.history_mode_button.setChecked(mode == ExamMode.HISTORY)
        # Leaving an attempt goes through its Exit button.
        for button in (self.center_mode_button, self.history_mode_button, self.settings_button):
            button.setEnabled(not in_attempt)

        index_map = {
            ExamMode.TEST_CENTER: 0,
            ExamMode.ATTEMPT: 1,
            ExamMode.RESULT: 2,
            ExamMode.HISTORY: 3,
        }
        self.mode_stack.setCurrentIndex(index_map[mode])
        if mode == ExamMode.TEST_CENTER:
            self.center_panel.refresh_pending()

    # --- Attempt lifecycle ---

    def _start_attempt(self, definition: TestDefinition) -> None:
        if self._starting is not None:
            return
        controller = TestSessionController(
            self.client,
            self.store,
            chooser=self._choose_resume,
            executor=self.executor,
            on_state_changed=self.attempt_panel.report_state_change,
            on_push_failed=self.attempt_panel.report_push_failure,
        )
        self._starting = controller
        self.center_panel.setEnabled(False)
        future = controller.start_async(definition)
        future.add_done_callback(lambda done: self.start_finished.emit(controller, done))

    def _choose_resume(self, info: ActiveSessionInfo) -> ResumeChoice | None:
        """Chooser for the controller; called on a worker thread during negotiation."""
        if QThread.currentThread() == self.thread():
            return choose_resume_or_abandon(self, info)
        if self._closing:
            return None
        reply: list[ResumeChoice | None] = []
        self.resume_choice_requested.emit(info, reply)
        return reply[0] if reply else None

    def _ask_resume_choice(self, info: ActiveSessionInfo, reply: list) -> None:
        reply.append(choose_resume_or_abandon(self, info))

    def _on_start_finished(self, controller: TestSessionController, future: Future) -> None:
        self._starting = None
        self.center_panel.setEnabled(True)
        try:
            future.result()
        except NegotiationCancelledError:
            logger.info("Start cancelled by the learner")
            return
        except ExamAppError as exc:
            show_exam_error(self, "Could not start the test", exc)
            self.center_panel.refresh_pending()
            return

        self.controller = controller
        if controller.state is ControllerState.COMPLETED:
            self._show_result(controller)
            return
        self.attempt_panel.begin(controller)
        self._set_mode(ExamMode.ATTEMPT)

    def _show_result(self, controller: TestSessionController) -> None:
        self.controller = None
        self.result_panel.show_result(controller.results)
        self._set_mode(ExamMode.RESULT)
        if controller.submit_reason is SubmitReason.TIMEOUT:
            show_info(self, "Time is up", TIME_EXPIRED_MESSAGE)

    def _leave_attempt(self) -> None:
        self.controller = None
        self._set_mode(ExamMode.TEST_CENTER)

    def _close_result(self) -> None:
        self._set_mode(ExamMode.TEST_CENTER)

    def _offer_pending_sessions(self) -> None:
        if not self._offer_pending_on_launch:
            return
        pending = self.store.pending()
        if not pending:
            return
        session = pending[0]
        if confirm_resume_pending(self, self.center_panel.pending_message(session)):
            definition = self.center_panel.load_test(session.test_id)
            if definition is not None:
                self._start_attempt(definition)

    # --- Toolbar ---

    def _handle_show_history(self) -> None:
        self._set_mode(ExamMode.HISTORY)
        self.history_panel.refresh()

    def _handle_about(self) -> None:
        details = (
            f"{APP_NAME} v{APP_VERSION}\n"
            f"License: {APP_LICENSE}\n\n"
            f"{APP_ABOUT_TEXT}"
        )
        show_info(self, f"About {APP_NAME}", details)

    def _handle_help(self) -> None:
        show_info(self, f"{APP_NAME} Help", HELP_TEXT)

    def _handle_settings(self) -> None:
        dialog = SettingsDialog(
            self,
            self._ui_font_size,
            self._exam_font_size,
            self._api_token,
            self._offer_pending_on_launch,
        )
        if dialog.exec():
            self._ui_font_size = dialog.get_ui_font_size()
            self._exam_font_size = dialog.get_exam_font_size()
            self._api_token = dialog.get_api_token()
            self._offer_pending_on_launch = dialog.get_offer_pending_on_launch()
            self.client.set_token(self._api_token)
            self._apply_styles()

    def _apply_styles(self) -> None:
        self.setStyleSheet(Styles.get_main_window_style())

        ui_style = f"font-size: {self._ui_font_size}pt;"
        for button in (
            self.center_mode_button,
            self.history_mode_button,
            self.about_button,
            self.help_button,
            self.settings_button,
        ):
            button.setStyleSheet(ui_style)

        self.attempt_panel.set_exam_font_size(self._exam_font_size)
        self.result_panel.set_exam_font_size(self._exam_font_size)

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802
        # A negotiation still running must not wait on a dialog after the event loop ends.
        self._closing = True
        if self.controller is not None:
            # Closing the window is an exit: the session stays open server-side.
            self.controller.exit()
            self.attempt_panel.detach()
            self.controller = None
        super().closeEvent(event)
