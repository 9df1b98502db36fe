"""
Main Application Window
=======================
The primary GUI container that holds the Menu Bar, the Canvas and the Side
Panel.

Why is this file needed?
------------------------
1. Layout: It organizes the high-level visual structure of the application.
2. Routing: It connects global actions (like File -> Save) and keyboard
   shortcuts to the store operations, and owns the file dialogs.
"""
import logging
import os
from typing import Optional

from PySide6.QtWidgets import QMainWindow, QSplitter, QFileDialog, QMessageBox
from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QKeySequence, QUndoStack

from imagemeasure.config import PROJECT_EXTENSION
from imagemeasure.controller.store import MeasurementStore
from imagemeasure.model.measurement import MeasureMode
from imagemeasure.view.canvas import MeasurementCanvas
from imagemeasure.view.dialogs.scale_dialog import ScaleInputDialog
from imagemeasure.view.side_panel import SidePanel

logger = logging.getLogger(__name__)

VISIBLE_APP_NAME = "Image Measure"
IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.tif *.tiff *.bmp *.gif *.webp *.heic *.heif)"
PROJECT_FILTER = f"Measure Projects (*.{PROJECT_EXTENSION})"


class MainWindow(QMainWindow):
    def __init__(self, store: MeasurementStore, undo_stack: Optional[QUndoStack] = None) -> None:
        super().__init__()
        self.store = store
        self.undo_stack = undo_stack
        self.project_path: Optional[str] = None

        self.update_window_title()
        self.resize(1400, 900)

        # --- CONTENT AREA ---
        splitter = QSplitter(Qt.Orientation.Horizontal)
        self.setCentralWidget(splitter)

        self.canvas = MeasurementCanvas(self.store)
        self.side_panel = SidePanel(self.store)
        splitter.addWidget(self.canvas)
        splitter.addWidget(self.side_panel)

        # Initial proportions (4 parts canvas : 1 part sidebar)
        splitter.setSizes([1100, 300])
        splitter.setStretchFactor(0, 1)

        # --- ACTIONS & MENUS ---
        self._create_actions()
        self._create_menus()

        # --- SIGNAL CONNECTIONS ---
        self.store.scale_input_requested.connect(self.on_scale_input_requested)
        self.store.status_changed.connect(self.statusBar().showMessage)
        self.store.changed.connect(self.update_window_title)
        self.side_panel.save_annotated_requested.connect(self.on_save_annotated)
        self.side_panel.save_annotated_all_requested.connect(self.on_save_annotated_all)

        self.statusBar().showMessage(self.store.status_text)
        self.canvas.setFocus()

    def _create_actions(self) -> None:
        # File Actions
        self.act_new = QAction("New Project", self)
        self.act_new.setShortcut(QKeySequence.StandardKey.New)
        self.act_new.triggered.connect(self.on_file_new)

        self.act_open_images = QAction("Open Images...", self)
        self.act_open_images.setShortcut("Ctrl+I")
        self.act_open_images.triggered.connect(self.on_open_images)

        self.act_open_folder = QAction("Open Folder...", self)
        self.act_open_folder.setShortcut("Ctrl+Shift+I")
        self.act_open_folder.triggered.connect(self.on_open_folder)

        self.act_open = QAction("Open Project...", self)
        self.act_open.setShortcut("Ctrl+O")
        self.act_open.triggered.connect(self.on_file_open)

        self.act_save = QAction("Save Project", self)
        self.act_save.setShortcut("Ctrl+S")
        self.act_save.triggered.connect(self.on_file_save)

        self.act_save_as = QAction("Save Project As...", self)
        self.act_save_as.setShortcut("Ctrl+Shift+S")
        self.act_save_as.triggered.connect(self.on_file_save_as)

        self.act_save_png = QAction("Save Annotated Image...", self)
        self.act_save_png.setShortcut("Ctrl+E")
        self.act_save_png.triggered.connect(self.on_save_annotated)

        self.act_save_png_all = QAction("Save All Annotated Images...", self)
        self.act_save_png_all.setShortcut("Ctrl+Shift+E")
        self.act_save_png_all.triggered.connect(self.on_save_annotated_all)

        self.act_exit = QAction("Exit", self)
        self.act_exit.triggered.connect(self.close)

        # Edit Actions
        if self.undo_stack is not None:
            self.act_undo = self.undo_stack.createUndoAction(self, "Undo")
            self.act_undo.setShortcut(QKeySequence.StandardKey.Undo)
            self.act_redo = self.undo_stack.createRedoAction(self, "Redo")
            self.act_redo.setShortcut(QKeySequence.StandardKey.Redo)
        else:
            self.act_undo = None
            self.act_redo = None

        self.act_copy = QAction("Copy TSV (Current Image)", self)
        self.act_copy.setShortcut("Ctrl+K")
        self.act_copy.triggered.connect(lambda: self.store.copy_current_tsv())

        self.act_copy_all = QAction("Copy TSV (All Images)", self)
        self.act_copy_all.setShortcut("Ctrl+Shift+K")
        self.act_copy_all.triggered.connect(lambda: self.store.copy_all_tsv())

        self.act_cancel = QAction("Cancel", self)
        self.act_cancel.setShortcut(Qt.Key.Key_Escape)
        self.act_cancel.triggered.connect(lambda: self.store.cancel_action())

        self.act_clear = QAction("Clear Measurements", self)
        self.act_clear.triggered.connect(lambda: self.store.clear_measurements())

        # Measure Actions
        self.act_measure = QAction("Measure", self)
        self.act_measure.setShortcut("M")
        self.act_measure.triggered.connect(lambda: self.toggle_mode(MeasureMode.MEASURE))

        self.act_scale = QAction("Set Scale", self)
        self.act_scale.setShortcut("S")
        self.act_scale.triggered.connect(lambda: self.toggle_mode(MeasureMode.SCALE))

        self.act_continuous = QAction("Continuous Measurement", self)
        self.act_continuous.setShortcut("C")
        self.act_continuous.triggered.connect(lambda: self.store.toggle_continuous_measure())

        self.act_snap = QAction("Edge Snap", self)
        self.act_snap.setShortcut("G")
        self.act_snap.triggered.connect(lambda: self.store.toggle_edge_snap())

        self.act_rounding = QAction("Toggle Rounding", self)
        self.act_rounding.triggered.connect(lambda: self.store.toggle_rounding())

        # View Actions
        self.act_reset_view = QAction("Reset View", self)
        self.act_reset_view.setShortcut("R")
        self.act_reset_view.triggered.connect(lambda: self.store.reset_view())

        self.act_prev = QAction("Previous Image", self)
        self.act_prev.setShortcut("Ctrl+Left")
        self.act_prev.triggered.connect(lambda: self.store.switch_session(-1))

        self.act_next = QAction("Next Image", self)
        self.act_next.setShortcut("Ctrl+Right")
        self.act_next.triggered.connect(lambda: self.store.switch_session(1))

    def _create_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("&File")
        file_menu.addAction(self.act_new)
        file_menu.addSeparator()
        file_menu.addAction(self.act_open_images)
        file_menu.addAction(self.act_open_folder)
        file_menu.addAction(self.act_open)
        file_menu.addSeparator()
        file_menu.addAction(self.act_save)
        file_menu.addAction(self.act_save_as)
        file_menu.addSeparator()
        file_menu.addAction(self.act_save_png)
        file_menu.addAction(self.act_save_png_all)
        file_menu.addSeparator()
        file_menu.addAction(self.act_exit)

        edit_menu = menu_bar.addMenu("&Edit")
        if self.act_undo is not None:
            edit_menu.addAction(self.act_undo)
            edit_menu.addAction(self.act_redo)
            edit_menu.addSeparator()
        edit_menu.addAction(self.act_copy)
        edit_menu.addAction(self.act_copy_all)
        edit_menu.addSeparator()
        edit_menu.addAction(self.act_cancel)
        edit_menu.addAction(self.act_clear)

        measure_menu = menu_bar.addMenu("&Measure")
        measure_menu.addAction(self.act_measure)
        measure_menu.addAction(self.act_scale)
        measure_menu.addSeparator()
        measure_menu.addAction(self.act_continuous)
        measure_menu.addAction(self.act_snap)
        measure_menu.addAction(self.act_rounding)

        view_menu = menu_bar.addMenu("&View")
        view_menu.addAction(self.act_reset_view)
        view_menu.addSeparator()
        view_menu.addAction(self.act_prev)
        view_menu.addAction(self.act_next)

    # --- HELPER METHODS ---
    def update_window_title(self) -> None:
        filename = os.path.basename(self.project_path) if self.project_path else "Untitled"
        chip = self.store.image_chip_text
        self.setWindowTitle(f"{VISIBLE_APP_NAME} - [{filename}] {chip}")

    def toggle_mode(self, mode: MeasureMode) -> None:
        self.store.set_mode(MeasureMode.IDLE if self.store.mode is mode else mode)

    def _last_directory(self) -> str:
        session = self.store.active_session
        if session is not None and session.path:
            return os.path.dirname(session.path)
        return ""

    # --- SLOTS ---

    def on_scale_input_requested(self, default_unit: str) -> None:
        dialog = ScaleInputDialog(self.store, default_unit, self)
        dialog.exec()

    def on_file_new(self) -> None:
        self.store.new_project()
        self.project_path = None
        if self.undo_stack is not None:
            self.undo_stack.clear()
        self.update_window_title()

    def on_open_images(self) -> None:
        fnames, _ = QFileDialog.getOpenFileNames(self, "Open Images", self._last_directory(), IMAGE_FILTER)
        if fnames:
            self.store.add_image_files(fnames)

    def on_open_folder(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Open Folder", self._last_directory())
        if directory:
            self.store.add_image_folder(directory)

    def on_file_open(self) -> None:
        fname, _ = QFileDialog.getOpenFileName(self, "Open Project", "", PROJECT_FILTER)
        if not fname:
            return
        if self.store.load_project(fname):
            self.project_path = fname
            if self.undo_stack is not None:
                self.undo_stack.clear()
            self.update_window_title()
        else:
            QMessageBox.critical(self, "Error", f"Could not open the project:\n{self.store.status_text}")

    def on_file_save(self) -> None:
        if self.project_path:
            self.store.save_project(self.project_path)
        else:
            self.on_file_save_as()

    def on_file_save_as(self) -> None:
        fname, _ = QFileDialog.getSaveFileName(
            self, "Save Project", self.store.default_project_name(), PROJECT_FILTER
        )
        if not fname:
            return
        fname = self.store.ensure_project_extension(fname)
        if self.store.save_project(fname):
            self.project_path = fname
            self.update_window_title()
        else:
            QMessageBox.critical(self, "Error", f"Could not save the project:\n{self.store.status_text}")

    def on_save_annotated(self) -> None:
        if not self.store.current_results:
            self.store.save_annotated("")  # reports "nothing to save"
            return
        start = os.path.join(self._last_directory(), self.store.default_annotated_name())
        fname, _ = QFileDialog.getSaveFileName(self, "Save Annotated Image", start, "PNG (*.png)")
        if fname:
            if not fname.lower().endswith(".png"):
                fname += ".png"
            self.store.save_annotated(fname)

    def on_save_annotated_all(self) -> None:
        directory = QFileDialog.getExistingDirectory(self, "Save Annotated Images To", self._last_directory())
        if directory:
            self.store.save_annotated_all(directory)

    def closeEvent(self, event, /) -> None:
        """Flush the pending autosave before the window goes away."""
        self.store.shutdown(flush=True)
        self.store.preferences.sync()
        event.accept()
