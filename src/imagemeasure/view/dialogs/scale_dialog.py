"""
Modal Dialog for the Scale (Calibration) Input
"""
from typing import Optional

from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QLabel, QLineEdit, QComboBox, QDialogButtonBox, QWidget
)

from imagemeasure.controller.store import MeasurementStore

COMMON_UNITS = ["µm", "nm", "mm", "cm", "m"]


class ScaleInputDialog(QDialog):
    """
    Asks for the real length of the two points just picked in scale mode.
    The dialog stays open on invalid input.
    """

    def __init__(self, store: MeasurementStore, default_unit: str, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setWindowTitle("Set Scale")
        self.store = store

        layout = QVBoxLayout(self)

        px = store.pending_scale_pixels or 0.0
        layout.addWidget(QLabel(f"Picked distance: {store.format_sig(px)} px"))

        form = QFormLayout()
        self.edit_length = QLineEdit()
        self.edit_length.setPlaceholderText("e.g. 100")
        form.addRow("Real length:", self.edit_length)

        self.combo_unit = QComboBox()
        self.combo_unit.setEditable(True)
        self.combo_unit.addItems(COMMON_UNITS)
        self.combo_unit.setCurrentText(default_unit)
        form.addRow("Unit:", self.combo_unit)
        layout.addLayout(form)

        self.lbl_error = QLabel("")
        self.lbl_error.setStyleSheet("color: #d9534f;")
        layout.addWidget(self.lbl_error)

        buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel)
        buttons.accepted.connect(self.accept)
        buttons.rejected.connect(self.reject)
        layout.addWidget(buttons)

        self.edit_length.setFocus()

    def accept(self) -> None:
        unit = self.combo_unit.currentText().strip()
        if self.store.apply_scale_input(unit, self.edit_length.text()):
            super().accept()
            return
        self.lbl_error.setText("Enter a positive number (a comma is accepted as decimal separator).")
        self.edit_length.selectAll()
        self.edit_length.setFocus()

    def reject(self) -> None:
        self.store.cancel_scale_input()
        super().reject()
