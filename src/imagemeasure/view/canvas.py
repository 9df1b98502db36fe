"""
Measurement Canvas
==================
Draws the active image with its measurements and turns mouse input into
store operations.

Mouse:
    Left click: commit a point (snapped when edge snap is on).
    Left drag: pan.
    Wheel: zoom around the cursor.
    Right click: cancel (pending points first, then the newest measurement).
Files dropped on the canvas are added as images.
"""
import logging
import math
from typing import Optional

from PySide6.QtCore import QPointF, QRectF, Qt, QTimer
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QPainter, QPen
from PySide6.QtWidgets import QWidget

from imagemeasure.controller.store import MeasurementStore
from imagemeasure.model.measurement import MeasureMode, Point

logger = logging.getLogger(__name__)

BACKGROUND_COLOR = QColor(32, 32, 34)
LINE_COLOR = QColor.fromRgbF(0.42, 0.66, 1.0, 0.95)
HIGHLIGHT_COLOR = QColor.fromRgbF(1.0, 0.78, 0.2, 1.0)
PENDING_COLOR = QColor.fromRgbF(1.0, 0.4, 0.35, 0.95)
SCALE_COLOR = QColor.fromRgbF(0.35, 0.9, 0.5, 0.95)
LABEL_BG_COLOR = QColor.fromRgbF(0.08, 0.08, 0.08, 0.78)
LABEL_TEXT_COLOR = QColor.fromRgbF(0.95, 0.95, 0.95, 0.98)
SNAP_MARK_COLOR = QColor.fromRgbF(1.0, 1.0, 1.0, 0.9)

DRAG_THRESHOLD = 3.0  # screen px before a press becomes a pan
WHEEL_STEP = 1.1  # zoom factor per wheel notch
SNAP_MARK_MS = 350


class MeasurementCanvas(QWidget):
    def __init__(self, store: MeasurementStore, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.store = store

        self.setMouseTracking(True)
        self.setAcceptDrops(True)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setMinimumSize(320, 240)

        self._press_pos: Optional[QPointF] = None
        self._last_drag_pos: Optional[QPointF] = None
        self._dragging = False
        self._snap_mark: Optional[Point] = None

        # Short flash where a click was snapped to
        self._snap_timer = QTimer(self)
        self._snap_timer.setSingleShot(True)
        self._snap_timer.setInterval(SNAP_MARK_MS)
        self._snap_timer.timeout.connect(self._clear_snap_mark)

        self.store.changed.connect(self.update)
        self.store.view_changed.connect(self.update)
        self.store.snapped.connect(self._on_snapped)

    # --- QWidget overrides ---

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self.store.update_canvas_size(self.width(), self.height())

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), BACKGROUND_COLOR)
            session = self.store.active_session
            if session is None:
                painter.setPen(LABEL_TEXT_COLOR)
                painter.drawText(
                    self.rect(), Qt.AlignmentFlag.AlignCenter,
                    "Drop images here or use File > Open Images..."
                )
                return

            t = session.transform
            painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, t.scale < 1.0)
            target = QRectF(t.tx, t.ty, session.pixel_size[0] * t.scale, session.pixel_size[1] * t.scale)
            painter.drawImage(target, session.image)

            painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
            self._paint_results(painter)
            self._paint_pending(painter)
            self._paint_snap_mark(painter)
            self._paint_limit_note(painter)
        finally:
            painter.end()

    def mousePressEvent(self, event) -> None:
        if event.button() == Qt.MouseButton.RightButton:
            self.store.cancel_action()
            return
        if event.button() == Qt.MouseButton.LeftButton:
            self._press_pos = event.position()
            self._last_drag_pos = event.position()
            self._dragging = False

    def mouseMoveEvent(self, event) -> None:
        pos = event.position()
        self.store.update_hover(Point(pos.x(), pos.y()))

        if self._press_pos is not None and event.buttons() & Qt.MouseButton.LeftButton:
            if not self._dragging:
                delta = pos - self._press_pos
                if delta.manhattanLength() > DRAG_THRESHOLD:
                    self._dragging = True
                    self.setCursor(Qt.CursorShape.ClosedHandCursor)
            if self._dragging:
                step = pos - self._last_drag_pos
                self._last_drag_pos = pos
                self.store.pan(step.x(), step.y())
                return

        # Rubber band preview and crosshair follow the cursor
        if self.store.pending_points or self.store.mode is not MeasureMode.IDLE:
            self.update()

    def mouseReleaseEvent(self, event) -> None:
        if event.button() != Qt.MouseButton.LeftButton or self._press_pos is None:
            return
        if self._dragging:
            self.setCursor(Qt.CursorShape.ArrowCursor)
        else:
            pos = event.position()
            self.store.commit_click(Point(pos.x(), pos.y()))
        self._press_pos = None
        self._last_drag_pos = None
        self._dragging = False

    def leaveEvent(self, event) -> None:
        self.store.update_hover(None)
        self.update()
        super().leaveEvent(event)

    def wheelEvent(self, event) -> None:
        notches = event.angleDelta().y() / 120.0
        if notches == 0:
            return
        pos = event.position()
        self.store.zoom(Point(pos.x(), pos.y()), math.pow(WHEEL_STEP, notches))

    def dragEnterEvent(self, event) -> None:
        if event.mimeData().hasUrls():
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:
        paths = [url.toLocalFile() for url in event.mimeData().urls() if url.isLocalFile()]
        logger.info(f"Dropped {len(paths)} path(s) on the canvas.")
        if self.store.open_paths(paths):
            event.acceptProposedAction()

    # --- Painting helpers ---

    def _to_screen(self, p: Point) -> QPointF:
        s = self.store.screen_point_from_image(p)
        return QPointF(s.x, s.y)

    def _paint_results(self, painter: QPainter) -> None:
        font = QFont()
        font.setPixelSize(12)
        painter.setFont(font)
        metrics = QFontMetricsF(font)

        for m in reversed(self.store.draw_results):
            highlighted = m.id == self.store.highlighted_id
            pen = QPen(HIGHLIGHT_COLOR if highlighted else LINE_COLOR)
            pen.setWidthF(3.0 if highlighted else 2.0)
            painter.setPen(pen)
            a, b = self._to_screen(m.p1), self._to_screen(m.p2)
            painter.drawLine(a, b)

            text = f"#{m.id} {self.store.formatted_length(m.pixel_length)}"
            mid = (a + b) * 0.5
            box = QRectF(mid.x() + 6, mid.y() + 6, metrics.horizontalAdvance(text) + 8, metrics.height() + 4)
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(LABEL_BG_COLOR)
            painter.drawRoundedRect(box, 3, 3)
            painter.setPen(HIGHLIGHT_COLOR if highlighted else LABEL_TEXT_COLOR)
            painter.drawText(box, Qt.AlignmentFlag.AlignCenter, text)
        painter.setBrush(Qt.BrushStyle.NoBrush)

    def _paint_pending(self, painter: QPainter) -> None:
        color = SCALE_COLOR if self.store.mode is MeasureMode.SCALE else PENDING_COLOR
        pen = QPen(color)
        pen.setWidthF(2.0)
        painter.setPen(pen)

        for p in self.store.pending_points:
            painter.drawEllipse(self._to_screen(p), 4.0, 4.0)

        hover = self.store.hover_screen_point
        if hover is None:
            return
        hover_pt = QPointF(hover.x, hover.y)
        if self.store.pending_points:
            pen.setStyle(Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.drawLine(self._to_screen(self.store.pending_points[-1]), hover_pt)
        if self.store.mode is not MeasureMode.IDLE:
            pen.setStyle(Qt.PenStyle.SolidLine)
            pen.setWidthF(1.0)
            painter.setPen(pen)
            painter.drawLine(QPointF(hover.x - 10, hover.y), QPointF(hover.x + 10, hover.y))
            painter.drawLine(QPointF(hover.x, hover.y - 10), QPointF(hover.x, hover.y + 10))

    def _paint_snap_mark(self, painter: QPainter) -> None:
        if self._snap_mark is None:
            return
        pen = QPen(SNAP_MARK_COLOR)
        pen.setWidthF(1.5)
        painter.setPen(pen)
        painter.drawEllipse(self._to_screen(self._snap_mark), 7.0, 7.0)

    def _paint_limit_note(self, painter: QPainter) -> None:
        note = self.store.draw_limit_note
        if not note:
            return
        painter.setPen(LABEL_TEXT_COLOR)
        painter.drawText(
            QRectF(8, self.height() - 26, self.width() - 16, 20),
            Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter, note
        )

    # --- Slots ---

    def _on_snapped(self, x: float, y: float) -> None:
        self._snap_mark = Point(x, y)
        self._snap_timer.start()
        self.update()

    def _clear_snap_mark(self) -> None:
        self._snap_mark = None
        self.update()
