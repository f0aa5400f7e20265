"""Preferences dialog: font sizes, the API token and launch behaviour."""

from __future__ import annotations

from PySide6.QtWidgets import (
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QLineEdit,
    QSpinBox,
    QVBoxLayout,
)

UI_FONT_RANGE = (8, 24)
EXAM_FONT_RANGE = (10, 32)


def _point_spinbox(value: int, bounds: tuple[int, int]) -> QSpinBox:
    spinbox = QSpinBox()
    spinbox.setRange(*bounds)
    spinbox.setSuffix(" pt")
    spinbox.setValue(value)
    return spinbox


class SettingsDialog(QDialog):
    """Modal editor for the per-session preferences of the main window."""

    def __init__(
        self,
        parent=None,
        ui_font_size: int = 10,
        exam_font_size: int = 14,
        api_token: str | None = None,
        offer_pending_on_launch: bool = True,
    ) -> None:
        super().__init__(parent)
        self.setWindowTitle("Settings")
        self.setModal(True)
        self.setMinimumWidth(420)

        self.ui_font_spinbox = _point_spinbox(ui_font_size, UI_FONT_RANGE)
        self.exam_font_spinbox = _point_spinbox(exam_font_size, EXAM_FONT_RANGE)
        self.exam_font_spinbox.setToolTip("Question text, options, timer and results")

        self.token_edit = QLineEdit(api_token or "")
        self.token_edit.setEchoMode(QLineEdit.Password)
        self.token_edit.setPlaceholderText("Leave blank to sign in as guest")
        self.token_edit.setToolTip("Sent as 'Authorization: Bearer <token>' with every request")

        self.pending_checkbox = QCheckBox("Offer to reopen unfinished attempts on launch")
        self.pending_checkbox.setChecked(offer_pending_on_launch)

        form = QFormLayout()
        form.addRow("Interface font:", self.ui_font_spinbox)
        form.addRow("Exam font:", self.exam_font_spinbox)
        form.addRow("API token:", self.token_edit)
        form.addRow(self.pending_checkbox)

        buttons = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        buttons.accepted.connect(self.accept)  # type: ignore[arg-type]
        buttons.rejected.connect(self.reject)  # type: ignore[arg-type]

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addWidget(buttons)

    def get_ui_font_size(self) -> int:
        return self.ui_font_spinbox.value()

    def get_exam_font_size(self) -> int:
        return self.exam_font_spinbox.value()

    def get_api_token(self) -> str | None:
        """Blank means guest, which the client expresses as no token."""
        return self.token_edit.text().strip() or None

    def get_offer_pending_on_launch(self) -> bool:
        return self.pending_checkbox.isChecked()
