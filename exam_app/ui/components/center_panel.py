"""Component for choosing a test and starting (or resuming) an attempt."""

from __future__ import annotations

import html
from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from exam_app.constants.ui_constants import (
    LOAD_TEST_BUTTON,
    RESUME_PENDING_TEMPLATE,
    START_TEST_BUTTON,
    TEST_ID_PLACEHOLDER,
)
from exam_app.core.api_client import ExamApiClient
from exam_app.core.errors import BackendError
from exam_app.core.models import TestDefinition
from exam_app.core.services.countdown_timer import format_duration, utc_now
from exam_app.core.session_store import PendingSession, SessionStore
from exam_app.ui.dialog_helpers import show_exam_error, show_warning


def describe_definition(definition: TestDefinition) -> str:
    lines = [
        f"<h3>{html.escape(definition.name)}</h3>",
        f"<p>{html.escape(definition.description)}</p>" if definition.description else "",
        f"<p>Time limit: <b>{format_duration(definition.time_limit_seconds)}</b><br/>",
        f"Questions: <b>{definition.question_count if definition.question_count is not None else '?'}</b><br/>",
        f"Total marks: <b>{definition.total_marks:g}</b>, pass at <b>{definition.passing_marks:g}</b><br/>",
    ]
    if definition.negative_marking:
        lines.append(f"Negative marking: <b>{definition.negative_mark_percentage:g}%</b> per wrong answer<br/>")
    if definition.max_attempts is not None:
        lines.append(f"Maximum attempts: <b>{definition.max_attempts}</b><br/>")
    lines.append("</p><p>The clock starts when you press Start and keeps running until you submit.</p>")
    return "".join(lines)


class CenterPanel(QWidget):
    """Test id entry, definition preview and the list of unfinished attempts."""

    def __init__(
        self,
        client: ExamApiClient,
        store: SessionStore,
        on_start: Callable[[TestDefinition], None],
        suggested_test_ids: list[str] | None = None,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.client = client
        self.store = store
        self.on_start = on_start
        self._definition: TestDefinition | None = None
        self._build_ui(suggested_test_ids or [])

    def _build_ui(self, suggested_test_ids: list[str]) -> None:
        layout = QVBoxLayout()
        self.setLayout(layout)

        entry_row = QHBoxLayout()
        self.test_id_combo = QComboBox(self)
        self.test_id_combo.setEditable(True)
        self.test_id_combo.addItems(suggested_test_ids)
        self.test_id_combo.lineEdit().setPlaceholderText(TEST_ID_PLACEHOLDER)
        self.test_id_combo.lineEdit().returnPressed.connect(self.load_selected_test)
        entry_row.addWidget(self.test_id_combo, stretch=1)

        self.load_button = QPushButton(LOAD_TEST_BUTTON, self)
        self.load_button.clicked.connect(self.load_selected_test)
        entry_row.addWidget(self.load_button)
        layout.addLayout(entry_row)

        self.definition_label = QLabel("", self)
        self.definition_label.setTextFormat(Qt.RichText)
        self.definition_label.setWordWrap(True)
        self.definition_label.setAlignment(Qt.AlignTop | Qt.AlignLeft)
        layout.addWidget(self.definition_label, stretch=1)

        start_row = QHBoxLayout()
        start_row.addStretch()
        self.start_button = QPushButton(START_TEST_BUTTON, self)
        self.start_button.setProperty("primary", True)
        self.start_button.setEnabled(False)
        self.start_button.clicked.connect(self._handle_start)
        start_row.addWidget(self.start_button)
        layout.addLayout(start_row)

        pending_group = QGroupBox("Unfinished attempts", self)
        pending_layout = QVBoxLayout()
        pending_group.setLayout(pending_layout)
        self.pending_list = QListWidget(self)
        self.pending_list.itemDoubleClicked.connect(self._handle_pending_activated)
        pending_layout.addWidget(self.pending_list)
        layout.addWidget(pending_group)

    def refresh_pending(self) -> list[PendingSession]:
        self.pending_list.clear()
        now = utc_now()
        pending = self.store.pending()
        for session in pending:
            if session.is_expired(now):
                text = f"{session.test_id}: time is up, open to submit"
            else:
                remaining = (session.expires_at - now).total_seconds()
                text = f"{session.test_id}: {format_duration(remaining)} left"
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, session.test_id)
            self.pending_list.addItem(item)
        return pending

    def pending_message(self, session: PendingSession) -> str:
        expires = session.expires_at.astimezone().strftime("%H:%M:%S")
        return RESUME_PENDING_TEMPLATE.format(test_id=session.test_id, expires=expires)

    def load_test(self, test_id: str) -> TestDefinition | None:
        self.test_id_combo.setEditText(test_id)
        return self.load_selected_test()

    def load_selected_test(self) -> TestDefinition | None:
        test_id = self.test_id_combo.currentText().strip()
        if not test_id:
            show_warning(self, "No test", "Enter a test id first.")
            return None
        try:
            definition = self.client.fetch_test(test_id)
        except BackendError as exc:
            self._set_definition(None)
            show_exam_error(self, "Could not load test", exc)
            return None
        self._set_definition(definition)
        return definition

    def _set_definition(self, definition: TestDefinition | None) -> None:
        self._definition = definition
        self.definition_label.setText(describe_definition(definition) if definition else "")
        self.start_button.setEnabled(definition is not None)

    def _handle_start(self) -> None:
        if self._definition is not None:
            self.on_start(self._definition)

    def _handle_pending_activated(self, item: QListWidgetItem) -> None:
        test_id = item.data(Qt.UserRole)
        definition = self.load_test(test_id)
        if definition is not None:
            self.on_start(definition)
