"""
Side Control Panel
==================
Mode, scale and rounding info, the option toggles, the result list of the
active image and the export buttons.
"""
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QGroupBox, QFormLayout,
    QCheckBox, QListWidget, QListWidgetItem
)

from imagemeasure.controller.store import MeasurementStore
from imagemeasure.model.measurement import MeasureMode, RoundingMode


class SidePanel(QWidget):
    # Export buttons are routed through the main window (file dialogs)
    save_annotated_requested = Signal()
    save_annotated_all_requested = Signal()

    def __init__(self, store: MeasurementStore, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.store = store
        self.setMinimumWidth(280)

        layout = QVBoxLayout(self)

        # --- Info Group ---
        grp_info = QGroupBox("Session")
        form = QFormLayout(grp_info)
        self.lbl_image = QLabel()
        self.lbl_mode = QLabel()
        self.lbl_scale = QLabel()
        self.lbl_avg = QLabel()
        form.addRow("Image:", self.lbl_image)
        form.addRow("Mode:", self.lbl_mode)
        form.addRow("Scale:", self.lbl_scale)
        form.addRow("Average:", self.lbl_avg)
        layout.addWidget(grp_info)

        # --- Mode buttons ---
        h_mode = QHBoxLayout()
        self.btn_measure = QPushButton("Measure (M)")
        self.btn_measure.setCheckable(True)
        self.btn_measure.clicked.connect(self.on_measure_clicked)
        self.btn_scale = QPushButton("Set Scale (S)")
        self.btn_scale.setCheckable(True)
        self.btn_scale.clicked.connect(self.on_scale_clicked)
        h_mode.addWidget(self.btn_measure)
        h_mode.addWidget(self.btn_scale)
        layout.addLayout(h_mode)

        # --- Options ---
        grp_opts = QGroupBox("Options")
        v_opts = QVBoxLayout(grp_opts)
        self.chk_continuous = QCheckBox("Continuous measurement (C)")
        self.chk_continuous.toggled.connect(self.store.set_continuous_measure)
        self.chk_snap = QCheckBox("Edge snap (G)")
        self.chk_snap.toggled.connect(self.store.set_edge_snap)
        self.chk_ceil = QCheckBox("Round up instead of half up")
        self.chk_ceil.toggled.connect(self.on_ceil_toggled)
        v_opts.addWidget(self.chk_continuous)
        v_opts.addWidget(self.chk_snap)
        v_opts.addWidget(self.chk_ceil)
        layout.addWidget(grp_opts)

        # --- Results ---
        layout.addWidget(QLabel("Measurements (newest first):"))
        self.list_results = QListWidget()
        self.list_results.itemClicked.connect(self.on_result_clicked)
        layout.addWidget(self.list_results, stretch=1)

        h_results = QHBoxLayout()
        self.btn_delete = QPushButton("Delete")
        self.btn_delete.clicked.connect(self.on_delete_clicked)
        self.btn_clear = QPushButton("Clear All")
        self.btn_clear.clicked.connect(self.store.clear_measurements)
        h_results.addWidget(self.btn_delete)
        h_results.addWidget(self.btn_clear)
        layout.addLayout(h_results)

        # --- Exports ---
        grp_export = QGroupBox("Export")
        v_export = QVBoxLayout(grp_export)
        btn_copy = QPushButton("Copy TSV (current image)")
        btn_copy.clicked.connect(self.store.copy_current_tsv)
        btn_copy_all = QPushButton("Copy TSV (all images)")
        btn_copy_all.clicked.connect(self.store.copy_all_tsv)
        btn_png = QPushButton("Save Annotated Image...")
        btn_png.clicked.connect(lambda: self.save_annotated_requested.emit())
        btn_png_all = QPushButton("Save All Annotated Images...")
        btn_png_all.clicked.connect(lambda: self.save_annotated_all_requested.emit())
        for btn in (btn_copy, btn_copy_all, btn_png, btn_png_all):
            v_export.addWidget(btn)
        layout.addWidget(grp_export)

        # --- Status ---
        self.lbl_status = QLabel(self.store.status_text)
        self.lbl_status.setWordWrap(True)
        self.lbl_status.setAlignment(Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignTop)
        self.lbl_status.setStyleSheet("color: gray;")
        layout.addWidget(self.lbl_status)

        self.store.changed.connect(self.load_from_state)
        self.store.status_changed.connect(self.lbl_status.setText)
        self.load_from_state()

    def load_from_state(self) -> None:
        """Re-read every displayed value from the store."""
        store = self.store
        self.lbl_image.setText(store.image_chip_text)
        self.lbl_mode.setText(store.mode_text)
        self.lbl_scale.setText(store.scale_text)
        self.lbl_avg.setText(store.avg_text)

        self.btn_measure.setChecked(store.mode is MeasureMode.MEASURE)
        self.btn_scale.setChecked(store.mode is MeasureMode.SCALE)

        for chk, value in (
            (self.chk_continuous, store.continuous_measure),
            (self.chk_snap, store.edge_snap),
            (self.chk_ceil, store.rounding_mode is RoundingMode.CEIL),
        ):
            chk.blockSignals(True)
            try:
                chk.setChecked(value)
            finally:
                chk.blockSignals(False)

        self.list_results.clear()
        selected_row = -1
        for row, m in enumerate(store.current_results):
            item = QListWidgetItem(f"#{m.id}    {store.formatted_length(m.pixel_length)}")
            item.setData(Qt.ItemDataRole.UserRole, m.id)
            self.list_results.addItem(item)
            if m.id == store.highlighted_id:
                selected_row = row
        if selected_row >= 0:
            self.list_results.setCurrentRow(selected_row)

        has_results = bool(store.current_results)
        self.btn_delete.setEnabled(has_results)
        self.btn_clear.setEnabled(has_results)

    # --- SLOTS ---

    def on_measure_clicked(self) -> None:
        mode = MeasureMode.IDLE if self.store.mode is MeasureMode.MEASURE else MeasureMode.MEASURE
        self.store.set_mode(mode)

    def on_scale_clicked(self) -> None:
        mode = MeasureMode.IDLE if self.store.mode is MeasureMode.SCALE else MeasureMode.SCALE
        self.store.set_mode(mode)

    def on_ceil_toggled(self, checked: bool) -> None:
        self.store.set_rounding_mode(RoundingMode.CEIL if checked else RoundingMode.ROUND)

    def on_result_clicked(self, item: QListWidgetItem) -> None:
        self.store.toggle_highlight(int(item.data(Qt.ItemDataRole.UserRole)))

    def on_delete_clicked(self) -> None:
        item = self.list_results.currentItem()
        if item is not None:
            self.store.delete_measurement(int(item.data(Qt.ItemDataRole.UserRole)))
