"""
Measurement Store
=================
This module defines the central state of the running application.

Why is this file needed?
------------------------
1. State Management: It holds the loaded image sessions, the active one, the
   picking mode and the in-progress (pending) points in one place.
2. State Machine: Clicks are turned into measurements or calibrations here,
   including edge snapping and continuous measurement.
3. Consistency: Every change of a result list is recorded for undo and
   triggers a debounced autosave of the whole project.
4. Decoupling: Views read from this object and call its operations; they are
   told to refresh through the ``changed`` signal (``view_changed`` when only
   the pan or zoom moved).

Classes:
    MeasurementStore: The main container class.
"""
from __future__ import annotations

import logging
import math
import os
from typing import Iterable, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from imagemeasure.config import (
    DEFAULT_PROJECT_NAME, DEFAULT_UNIT, DEGENERATE_DISTANCE, DISPLAY_DIGITS,
    MAX_SCALE, MAX_VISIBLE_RESULTS, MIN_SCALE, PROJECT_EXTENSION, SNAP_MOVED_DISTANCE,
    SNAP_RADIUS_SCREEN, SNAP_MIN_SCORE, AUTOSAVE_DELAY_MS
)
from imagemeasure.controller.autosave import AutosaveScheduler
from imagemeasure.controller.clipboard import Clipboard
from imagemeasure.controller.images import ImageProvider, QtImageProvider, is_supported_image, list_image_files
from imagemeasure.controller.preferences import Preferences
from imagemeasure.controller.undo import UndoEntry, UndoSink
from imagemeasure.model import formatting
from imagemeasure.model.errors import DecodeError, ExportError, ProjectFileError
from imagemeasure.model.export import (
    build_tsv, measured_export_name, save_annotated_png, unique_file_name
)
from imagemeasure.model.io import ProjectIO, apply_state, document_from_sessions
from imagemeasure.model.measurement import (
    Calibration, MeasureMode, Measurement, Point, ResultsSnapshot, RoundingMode
)
from imagemeasure.model.session import ImageSession
from imagemeasure.model.snap import snap_point
from imagemeasure.model.transform import (
    clamp_point, distance, fit_transform, image_from_screen, pan_transform,
    screen_from_image, zoom_transform
)

logger = logging.getLogger(__name__)

READY_TEXT = "Ready: open images, set the scale if needed, then start measuring."


class MeasurementStore(QObject):
    """
    Owner of all sessions and of the picking state machine.

    Pass this instance to the views. All calls are expected from the Qt main
    thread; the only deferred work is the autosave timer.
    """
    changed = Signal()
    view_changed = Signal()  # transform only, results untouched
    status_changed = Signal(str)
    scale_input_requested = Signal(str)  # default unit for the input dialog
    snapped = Signal(float, float)  # image point a click was moved to

    def __init__(
        self,
        image_provider: Optional[ImageProvider] = None,
        preferences: Optional[Preferences] = None,
        clipboard: Optional[Clipboard] = None,
        undo_sink: Optional[UndoSink] = None,
        autosave_path: Optional[str] = None,
        autosave_delay_ms: int = AUTOSAVE_DELAY_MS,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self.image_provider: ImageProvider = image_provider or QtImageProvider()
        self.preferences = preferences or Preferences()
        self.clipboard = clipboard
        self.undo_sink = undo_sink
        self.autosave_path = autosave_path

        self.sessions: list[ImageSession] = []
        self._registry: dict[str, ImageSession] = {}
        self.active_index: int = -1
        self.mode: MeasureMode = MeasureMode.IDLE
        self.pending_points: list[Point] = []
        self.hover_screen_point: Optional[Point] = None
        self.highlighted_id: Optional[int] = None
        self.canvas_size: tuple[float, float] = (0.0, 0.0)
        self.status_text: str = READY_TEXT

        self.rounding_mode: RoundingMode = self.preferences.rounding_mode
        self.continuous_measure: bool = self.preferences.continuous_measure
        self.edge_snap: bool = self.preferences.edge_snap
        self.digits: int = DISPLAY_DIGITS

        self.pending_scale_pixels: Optional[float] = None
        self.scale_input_unit: str = DEFAULT_UNIT
        self.last_calibration: Optional[Calibration] = None

        self.autosave = AutosaveScheduler(self.write_autosave_now, autosave_delay_ms, parent=self)

    # ------------------------------------------------------------------
    # Read-only views of the state
    # ------------------------------------------------------------------

    @property
    def active_session(self) -> Optional[ImageSession]:
        if 0 <= self.active_index < len(self.sessions):
            return self.sessions[self.active_index]
        return None

    @property
    def current_results(self) -> list[Measurement]:
        session = self.active_session
        return session.results if session else []

    @property
    def draw_results(self) -> list[Measurement]:
        return self.current_results[:MAX_VISIBLE_RESULTS]

    @property
    def draw_limit_note(self) -> Optional[str]:
        if len(self.current_results) > MAX_VISIBLE_RESULTS:
            return (f"Only the newest {MAX_VISIBLE_RESULTS} measurements are drawn "
                    f"(TSV and project files contain all of them).")
        return None

    @property
    def image_chip_text(self) -> str:
        session = self.active_session
        if session is None:
            return "0 / 0"
        return f"{self.active_index + 1} / {len(self.sessions)} {session.name}"

    @property
    def mode_text(self) -> str:
        return self.mode.label

    @property
    def scale_text(self) -> str:
        session = self.active_session
        if session is None or session.calibration is None:
            return "not set"
        c = session.calibration
        return f"{self.format_sig(c.units_per_pixel)} {c.unit}/px"

    @property
    def avg_text(self) -> str:
        results = self.current_results
        if not results:
            return "--"
        avg = sum(m.pixel_length for m in results) / len(results)
        return self.formatted_length(avg)

    def session_by_id(self, session_id: str) -> Optional[ImageSession]:
        return self._registry.get(session_id)

    def format_sig(self, value: float) -> str:
        return formatting.format_sig(value, self.digits, self.rounding_mode)

    def formatted_length(self, pixel_length: float, calibration: Optional[Calibration] = None) -> str:
        if calibration is None and self.active_session is not None:
            calibration = self.active_session.calibration
        return formatting.formatted_length(pixel_length, calibration, self.digits, self.rounding_mode)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def new_project(self) -> None:
        self._set_sessions([])
        self.active_index = -1
        self.mode = MeasureMode.IDLE
        self.pending_points.clear()
        self.hover_screen_point = None
        self.highlighted_id = None
        self.pending_scale_pixels = None
        self.last_calibration = None
        logger.info("New project started.")
        self._set_status("Started a new project.")
        self._notify()
        self._schedule_autosave()

    def add_image_files(self, paths: Iterable[str]) -> int:
        """Decode and append images; unreadable files are skipped. Returns the count added."""
        loaded: list[ImageSession] = []
        for path in paths:
            session = self._load_session(path)
            if session is not None:
                loaded.append(session)

        if not loaded:
            self._set_status("Image load error: no readable files.")
            return 0

        for session in loaded:
            self.sessions.append(session)
            self._registry[session.id] = session
        if self.active_index < 0:
            self.active_index = len(self.sessions) - len(loaded)
            self.fit_active_to_canvas()
        logger.info(f"Added {len(loaded)} image(s).")
        self._set_status(f"Added {len(loaded)} image(s).")
        self._notify()
        self._schedule_autosave()
        return len(loaded)

    def add_image_folder(self, directory: str) -> int:
        files = list_image_files(directory)
        if not files:
            self._set_status("No images found in the folder.")
            return 0
        return self.add_image_files(files)

    def open_paths(self, paths: Iterable[str]) -> bool:
        """
        Open whatever the user handed over (command line, drag and drop).

        The first project file replaces the current sessions; folders and
        image files are appended afterwards. Other files are ignored.
        Returns True if anything was opened.
        """
        projects: list[str] = []
        folders: list[str] = []
        images: list[str] = []
        for path in paths:
            if os.path.isdir(path):
                folders.append(path)
            elif path.lower().endswith(f".{PROJECT_EXTENSION}"):
                projects.append(path)
            elif is_supported_image(path):
                images.append(path)
            else:
                logger.debug(f"Ignoring unsupported path: {path}")

        opened = False
        if projects:
            if len(projects) > 1:
                logger.warning(f"Only the first of {len(projects)} projects is opened.")
            opened = self.load_project(projects[0])
        for folder in folders:
            opened = self.add_image_folder(folder) > 0 or opened
        if images:
            opened = self.add_image_files(images) > 0 or opened
        return opened

    def switch_session(self, delta: int) -> None:
        if not self.sessions:
            return
        self.activate_session((self.active_index + delta) % len(self.sessions))

    def activate_session(self, index: int) -> None:
        if not 0 <= index < len(self.sessions):
            return
        self.pending_points.clear()
        self.highlighted_id = None
        self.active_index = index
        session = self.sessions[index]
        if not session.has_custom_transform:
            self.fit_active_to_canvas()
        self._set_status(f"Switched to: {session.name}")
        self._notify()
        self._schedule_autosave()

    # ------------------------------------------------------------------
    # Modes & preferences
    # ------------------------------------------------------------------

    def set_mode(self, mode: MeasureMode) -> None:
        self.mode = mode
        self.pending_points.clear()
        logger.debug(f"Mode -> {mode.value}")
        self._notify()
        self._schedule_autosave()

    def set_rounding_mode(self, mode: RoundingMode) -> None:
        self.rounding_mode = mode
        self.preferences.rounding_mode = mode
        self._set_status(f"Rounding set to: {mode.label}.")
        self._notify()
        self._schedule_autosave()

    def toggle_rounding(self) -> None:
        self.set_rounding_mode(
            RoundingMode.CEIL if self.rounding_mode is RoundingMode.ROUND else RoundingMode.ROUND
        )

    def set_continuous_measure(self, enabled: bool) -> None:
        if self.continuous_measure == enabled:
            return
        self.continuous_measure = enabled
        self.preferences.continuous_measure = enabled
        self._set_status(f"Continuous measurement {'ON' if enabled else 'OFF'}.")
        self._notify()
        self._schedule_autosave()

    def toggle_continuous_measure(self) -> None:
        self.set_continuous_measure(not self.continuous_measure)

    def set_edge_snap(self, enabled: bool) -> None:
        if self.edge_snap == enabled:
            return
        self.edge_snap = enabled
        self.preferences.edge_snap = enabled
        self._set_status(f"Edge snap {'ON' if enabled else 'OFF'}.")
        self._notify()
        self._schedule_autosave()

    def toggle_edge_snap(self) -> None:
        self.set_edge_snap(not self.edge_snap)

    # ------------------------------------------------------------------
    # View transform
    # ------------------------------------------------------------------

    def update_canvas_size(self, width: float, height: float) -> None:
        if width <= 10 or height <= 10:
            return
        cw, ch = self.canvas_size
        if abs(cw - width) < 0.5 and abs(ch - height) < 0.5:
            return
        self.canvas_size = (float(width), float(height))
        session = self.active_session
        if session is not None and not session.has_custom_transform:
            self._fit(session)
            self._notify_view()

    def fit_active_to_canvas(self) -> None:
        session = self.active_session
        if session is not None:
            self._fit(session)

    def reset_view(self) -> None:
        session = self.active_session
        if session is None:
            return
        self._fit(session)
        self._set_status("View reset.")
        self._notify_view()
        self._schedule_autosave()

    def pan(self, dx: float, dy: float) -> None:
        session = self.active_session
        if session is None or not (math.isfinite(dx) and math.isfinite(dy)):
            return
        session.transform = pan_transform(session.transform, dx, dy)
        session.has_custom_transform = True
        self._notify_view()
        self._schedule_autosave()

    def zoom(self, anchor: Point, factor: float) -> None:
        session = self.active_session
        if session is None:
            return
        if not math.isfinite(factor) or factor <= 0:
            return
        session.transform = zoom_transform(session.transform, anchor, factor, MIN_SCALE, MAX_SCALE)
        session.has_custom_transform = True
        self._notify_view()
        self._schedule_autosave()

    def image_point_from_screen(self, p: Point) -> Optional[Point]:
        session = self.active_session
        if session is None:
            return None
        return image_from_screen(p, session.transform)

    def screen_point_from_image(self, p: Point) -> Optional[Point]:
        session = self.active_session
        if session is None:
            return None
        return screen_from_image(p, session.transform)

    def update_hover(self, screen_point: Optional[Point]) -> None:
        self.hover_screen_point = screen_point

    # ------------------------------------------------------------------
    # Point picking
    # ------------------------------------------------------------------

    def commit_click(self, screen_point: Point) -> None:
        session = self.active_session
        if session is None:
            return
        point = clamp_point(image_from_screen(screen_point, session.transform), session.pixel_size)
        if self.edge_snap:
            snapped = snap_point(
                session.luma, point, session.transform.scale, SNAP_RADIUS_SCREEN, SNAP_MIN_SCORE
            )
            if distance(snapped, point) > SNAP_MOVED_DISTANCE:
                logger.debug(f"Snapped ({point.x:.2f}, {point.y:.2f}) -> ({snapped.x}, {snapped.y})")
                self.snapped.emit(snapped.x, snapped.y)
            point = snapped
        self.commit_image_point(point)

    def commit_image_point(self, point: Point) -> None:
        session = self.active_session
        if session is None:
            return

        self.pending_points.append(point)

        if len(self.pending_points) == 1:
            if self.mode is MeasureMode.IDLE:
                self.mode = MeasureMode.MEASURE
            if self.mode is MeasureMode.SCALE:
                self._set_status("Scale: click the second point, then enter the real length.")
            else:
                self._set_status("Measuring: click the second point / right click or Esc to go back.")
            self._notify()
            return

        if len(self.pending_points) > 2:
            del self.pending_points[2:]
            return

        p1, p2 = self.pending_points
        px = distance(p1, p2)

        if px <= DEGENERATE_DISTANCE:
            self.pending_points.clear()
            self._set_status("Both points are the same. Please try again.")
            self._notify()
            return

        if self.mode is MeasureMode.SCALE:
            self.pending_points.clear()
            self.pending_scale_pixels = px
            if session.calibration is not None:
                self.scale_input_unit = session.calibration.unit
            elif self.last_calibration is not None:
                self.scale_input_unit = self.last_calibration.unit
            else:
                self.scale_input_unit = DEFAULT_UNIT
            self._set_status("Enter the real length of the scale.")
            self._notify()
            self.scale_input_requested.emit(self.scale_input_unit)
            return

        self._adopt_last_calibration(session)
        self._add_measurement(session, p1, p2, px)

        if self.continuous_measure:
            self.pending_points = [p2]
            self._set_status(f"Added: {self.formatted_length(px)} (continuous ON)")
        else:
            self.pending_points.clear()
            self._set_status(f"Added: {self.formatted_length(px)}")
        self._notify()

    def apply_scale_input(self, unit: str, length_text: str) -> bool:
        """
        Finish a scale calibration with the user-typed real length.

        Returns:
            True if the calibration was applied. On invalid input nothing
            changes and the caller should ask again.
        """
        px = self.pending_scale_pixels
        if px is None or px <= 0:
            self.cancel_scale_input()
            return False

        try:
            real_length = formatting.parse_length(length_text)
            calibration = formatting.make_calibration(real_length, px, unit)
        except ValueError as e:
            logger.debug(f"Rejected scale input {length_text!r}: {e}")
            self._set_status("Invalid scale input.")
            return False

        session = self.active_session
        if session is None:
            self.cancel_scale_input()
            return False

        session.calibration = calibration
        self.last_calibration = calibration
        self.pending_scale_pixels = None
        logger.info(f"Calibration set on {session.name}: {calibration.units_per_pixel} {calibration.unit}/px")
        self._set_status(f"Scale set: {self.format_sig(calibration.units_per_pixel)} {calibration.unit}/px")
        self._notify()
        self._schedule_autosave()
        return True

    def cancel_scale_input(self) -> None:
        self.pending_scale_pixels = None
        self._set_status("Scale input cancelled.")

    def cancel_action(self) -> None:
        """Drop the pending points, or else undo the newest measurement."""
        if self.pending_points:
            self.pending_points.clear()
            self._set_status("Cancelled: cleared the points in progress.")
            self._notify()
            return

        session = self.active_session
        if session is None or not session.results:
            self._set_status("Cancel: nothing to cancel.")
            return

        before = session.snapshot(self.highlighted_id)
        removed = session.results.pop(0)
        if self.highlighted_id == removed.id:
            self.highlighted_id = None
        self._register_undo(session, before, "Cancel measurement")
        self._set_status(f"Cancelled: removed #{removed.id}.")
        self._notify()
        self._schedule_autosave()

    def delete_measurement(self, measurement_id: int) -> None:
        session = self.active_session
        if session is None or session.find(measurement_id) is None:
            return

        before = session.snapshot(self.highlighted_id)
        session.results = [m for m in session.results if m.id != measurement_id]
        if self.highlighted_id == measurement_id:
            self.highlighted_id = None
        self._register_undo(session, before, "Delete measurement")
        self._set_status(f"Deleted #{measurement_id}.")
        self._notify()
        self._schedule_autosave()

    def clear_measurements(self) -> None:
        session = self.active_session
        if session is None or not session.results:
            return

        before = session.snapshot(self.highlighted_id)
        session.results = []
        session.next_result_id = 1
        self.pending_points.clear()
        self.highlighted_id = None
        self._register_undo(session, before, "Clear measurements")
        self._set_status("Deleted all measurements of the current image.")
        self._notify()
        self._schedule_autosave()

    def toggle_highlight(self, measurement_id: int) -> None:
        self.highlighted_id = None if self.highlighted_id == measurement_id else measurement_id
        self._notify()

    # ------------------------------------------------------------------
    # Exports
    # ------------------------------------------------------------------

    def copy_current_tsv(self) -> Optional[str]:
        session = self.active_session
        if session is None:
            return None
        text = build_tsv([session], self.digits, self.rounding_mode)
        self._copy(text)
        self._set_status("Copied the current image as TSV.")
        return text

    def copy_all_tsv(self) -> Optional[str]:
        measured = [s for s in self.sessions if s.results]
        if not measured:
            self._set_status("Nothing to copy.")
            return None
        text = build_tsv(measured, self.digits, self.rounding_mode)
        self._copy(text)
        self._set_status(f"Copied {len(measured)} column(s) as TSV.")
        return text

    def default_annotated_name(self) -> str:
        session = self.active_session
        return measured_export_name(session.name) if session else measured_export_name("image")

    def save_annotated(self, filepath: str) -> bool:
        session = self.active_session
        if session is None:
            return False
        if not session.results:
            self._set_status("Nothing to save.")
            return False
        try:
            save_annotated_png(session, filepath, self.digits, self.rounding_mode)
        except ExportError as e:
            logger.error(f"Annotated export failed: {e}")
            self._set_status("Failed to save the image.")
            return False
        self._set_status(f"Image saved: {os.path.basename(filepath)}")
        return True

    def save_annotated_all(self, directory: str) -> int:
        measured = [s for s in self.sessions if s.results]
        if not measured:
            self._set_status("Nothing to save.")
            return 0

        used: set[str] = set()
        saved = 0
        for session in measured:
            name = unique_file_name(measured_export_name(session.name), used, directory)
            try:
                save_annotated_png(session, os.path.join(directory, name), self.digits, self.rounding_mode)
            except ExportError as e:
                logger.warning(f"Skipped {session.name}: {e}")
                continue
            saved += 1
        self._set_status(f"Saved {saved} annotated image(s).")
        return saved

    # ------------------------------------------------------------------
    # Project files
    # ------------------------------------------------------------------

    def default_project_name(self) -> str:
        session = self.active_session
        if session is not None:
            return f"{os.path.splitext(session.name)[0]}.{PROJECT_EXTENSION}"
        return f"{DEFAULT_PROJECT_NAME}.{PROJECT_EXTENSION}"

    @staticmethod
    def ensure_project_extension(filepath: str) -> str:
        if filepath.lower().endswith(f".{PROJECT_EXTENSION}"):
            return filepath
        return f"{filepath}.{PROJECT_EXTENSION}"

    def save_project(self, filepath: str) -> bool:
        if not self.sessions:
            self._set_status("Nothing to save.")
            return False
        filepath = self.ensure_project_extension(filepath)
        doc = document_from_sessions(self.sessions, self.active_index)
        try:
            ProjectIO.save_document(doc, filepath)
        except ProjectFileError:
            self._set_status("Failed to save the project.")
            return False
        self._set_status(f"Project saved: {os.path.basename(filepath)}")
        return True

    def load_project(self, filepath: str, as_autosave_restore: bool = False) -> bool:
        """
        Replace the current sessions with the ones stored in ``filepath``.

        Sessions whose image cannot be decoded are skipped and reported; if
        none can be loaded the current state is left untouched.
        """
        try:
            doc = ProjectIO.load_document(filepath)
        except ProjectFileError:
            if not as_autosave_restore:
                self._set_status("Failed to open the project.")
            return False

        loaded: list[ImageSession] = []
        missing: list[str] = []
        for state in doc.sessions:
            session = self._load_session(state.image_path, name=state.name)
            if session is None:
                missing.append(os.path.basename(state.image_path))
                continue
            apply_state(session, state)
            loaded.append(session)

        if missing:
            logger.warning(f"Missing images: {', '.join(missing)}")

        if not loaded:
            if not as_autosave_restore:
                self._set_status("Failed to open the project: image files not found.")
            return False

        self._set_sessions(loaded)
        self.active_index = max(0, min(doc.active_index, len(loaded) - 1))
        self.mode = MeasureMode.IDLE
        self.pending_points.clear()
        self.hover_screen_point = None
        self.highlighted_id = None
        self.pending_scale_pixels = None

        active = self.active_session
        if active is not None and not active.has_custom_transform:
            self.fit_active_to_canvas()
        calibrations = [s.calibration for s in loaded if s.calibration is not None]
        if active is not None and active.calibration is not None:
            self.last_calibration = active.calibration
        else:
            self.last_calibration = calibrations[-1] if calibrations else None

        if as_autosave_restore:
            self._set_status(f"Restored the previous session ({len(loaded)} image(s)).")
        elif not missing:
            self._set_status(f"Project opened: {len(loaded)} image(s).")
        else:
            self._set_status(f"Project opened: {len(loaded)} image(s) ({len(missing)} missing).")
        self._notify()
        self._schedule_autosave()
        return True

    # ------------------------------------------------------------------
    # Autosave
    # ------------------------------------------------------------------

    def restore_autosave(self) -> bool:
        """Silently load the autosave document if there is one."""
        path = self.autosave_path
        if not path or not os.path.exists(path):
            return False
        try:
            return self.load_project(path, as_autosave_restore=True)
        except Exception as e:
            # A broken autosave just means there is nothing to restore
            logger.warning(f"Autosave restore failed: {e}")
            return False

    def write_autosave_now(self) -> None:
        path = self.autosave_path
        if not path:
            return
        doc = document_from_sessions(self.sessions, self.active_index)
        if not doc.sessions:
            ProjectIO.remove(path)
            return
        ProjectIO.save_document(doc, path)

    def shutdown(self, flush: bool = False) -> None:
        if flush:
            self.autosave.flush()
        self.autosave.cancel()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_session(self, path: str, name: Optional[str] = None) -> Optional[ImageSession]:
        try:
            decoded = self.image_provider.decode(path)
        except DecodeError as e:
            logger.warning(str(e))
            return None
        return ImageSession(name or os.path.basename(path), path, decoded.image)

    def _set_sessions(self, sessions: Sequence[ImageSession]) -> None:
        self.sessions = list(sessions)
        self._registry = {s.id: s for s in self.sessions}

    def _fit(self, session: ImageSession) -> None:
        t = fit_transform(session.pixel_size, self.canvas_size)
        if t is None:
            return
        session.transform = t
        session.has_custom_transform = False

    def _adopt_last_calibration(self, session: ImageSession) -> None:
        if session.calibration is None and self.last_calibration is not None:
            session.calibration = self.last_calibration
        if session.calibration is not None:
            self.last_calibration = session.calibration

    def _add_measurement(self, session: ImageSession, p1: Point, p2: Point, pixel_length: float) -> None:
        before = session.snapshot(self.highlighted_id)
        measurement = Measurement(id=session.next_result_id, p1=p1, p2=p2, pixel_length=pixel_length)
        session.add_measurement(measurement)
        self.highlighted_id = measurement.id
        logger.debug(f"Measurement #{measurement.id} added to {session.name}: {pixel_length:.4f} px")
        self._register_undo(session, before, "Add measurement")
        self._schedule_autosave()

    def _register_undo(self, session: ImageSession, before: ResultsSnapshot, label: str) -> None:
        if self.undo_sink is None:
            return
        entry = UndoEntry(
            session_id=session.id,
            before=before,
            after=session.snapshot(self.highlighted_id),
            label=label,
        )
        self.undo_sink.push(entry, self._apply_snapshot)

    def _apply_snapshot(self, session_id: str, snapshot: ResultsSnapshot) -> None:
        session = self.session_by_id(session_id)
        if session is None:
            logger.debug(f"Undo target {session_id} no longer exists.")
            return
        session.restore(snapshot)
        if session is self.active_session:
            self.highlighted_id = snapshot.highlight_id
        self._notify()
        self._schedule_autosave()

    def _copy(self, text: str) -> None:
        if self.clipboard is not None:
            self.clipboard.set_text(text)

    def _schedule_autosave(self) -> None:
        self.autosave.schedule()

    def _set_status(self, text: str) -> None:
        self.status_text = text
        logger.debug(f"Status: {text}")
        self.status_changed.emit(text)

    def _notify(self) -> None:
        self.changed.emit()

    def _notify_view(self) -> None:
        self.view_changed.emit()
