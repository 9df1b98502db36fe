"""
Result Exports
==============
Tab separated tables for the clipboard and annotated PNG images.

Table layout, one session:
    PositionNo  <name>
    Unit        <unit>
    1           <oldest value>
    ...

Several sessions get one column each; shorter columns are padded with empty
cells.
"""
from __future__ import annotations

import logging
import os
from typing import Optional, Sequence

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QColor, QFont, QFontMetricsF, QImage, QPainter, QPen

from imagemeasure.config import DISPLAY_DIGITS, MEASURED_SUFFIX
from imagemeasure.model.errors import ExportError
from imagemeasure.model.formatting import calibrated_value, format_sig, formatted_length, unit_label
from imagemeasure.model.measurement import RoundingMode
from imagemeasure.model.session import ImageSession

logger = logging.getLogger(__name__)

LINE_COLOR = QColor.fromRgbF(0.42, 0.66, 1.0, 0.95)
LABEL_BG_COLOR = QColor.fromRgbF(0.08, 0.08, 0.08, 0.78)
LABEL_TEXT_COLOR = QColor.fromRgbF(0.95, 0.95, 0.95, 0.98)


def _column_values(session: ImageSession, digits: int, mode: RoundingMode) -> list[str]:
    # Stored newest first, exported oldest first
    return [
        format_sig(calibrated_value(m.pixel_length, session.calibration), digits, mode)
        for m in reversed(session.results)
    ]


def build_tsv(
    sessions: Sequence[ImageSession],
    digits: int = DISPLAY_DIGITS,
    mode: RoundingMode = RoundingMode.ROUND
) -> str:
    """Tab separated table of the measurements of ``sessions``."""
    if len(sessions) == 1:
        session = sessions[0]
        rows = [
            f"PositionNo\t{session.name}",
            f"Unit\t{unit_label(session.calibration)}",
        ]
        for idx, value in enumerate(_column_values(session, digits, mode), start=1):
            rows.append(f"{idx}\t{value}")
        return "\n".join(rows)

    with_results = [s for s in sessions if s.results]
    columns = [_column_values(s, digits, mode) for s in with_results]
    max_rows = max((len(c) for c in columns), default=0)

    rows = [
        "\t".join(["PositionNo"] + [s.name for s in with_results]),
        "\t".join(["Unit"] + [unit_label(s.calibration) for s in with_results]),
    ]
    for row in range(max_rows):
        cells = [c[row] if row < len(c) else "" for c in columns]
        rows.append("\t".join([str(row + 1)] + cells))
    return "\n".join(rows)


def render_annotated(
    session: ImageSession,
    digits: int = DISPLAY_DIGITS,
    mode: RoundingMode = RoundingMode.ROUND
) -> QImage:
    """
    Draw every measurement of ``session`` onto a copy of its image at native
    resolution.
    """
    width, height = session.image.width(), session.image.height()
    out = QImage(width, height, QImage.Format.Format_ARGB32_Premultiplied)
    out.fill(Qt.GlobalColor.black)

    painter = QPainter(out)
    try:
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.drawImage(QRectF(0, 0, width, height), session.image)

        pen = QPen(LINE_COLOR)
        pen.setWidthF(max(1.5, min(4.0, width / 800.0)))
        font = QFont()
        font.setPixelSize(int(max(12.0, width / 120.0)))
        font.setWeight(QFont.Weight.DemiBold)
        painter.setFont(font)
        metrics = QFontMetricsF(font)

        for m in reversed(session.results):
            p1 = QPointF(m.p1.x, m.p1.y)
            p2 = QPointF(m.p2.x, m.p2.y)
            painter.setPen(pen)
            painter.drawLine(p1, p2)

            text = f"#{m.id} {formatted_length(m.pixel_length, session.calibration, digits, mode)}"
            text_w = metrics.horizontalAdvance(text)
            text_h = metrics.height()
            mx = (m.p1.x + m.p2.x) * 0.5
            my = (m.p1.y + m.p2.y) * 0.5
            box = QRectF(
                max(4.0, min(width - text_w - 14.0, mx + 8.0)),
                max(4.0, min(height - text_h - 6.0, my + 8.0)),
                text_w + 10.0,
                text_h + 4.0,
            )
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(LABEL_BG_COLOR)
            painter.drawRoundedRect(box, 4, 4)
            painter.setPen(LABEL_TEXT_COLOR)
            painter.drawText(box, Qt.AlignmentFlag.AlignCenter, text)
    finally:
        painter.end()
    return out


def save_annotated_png(
    session: ImageSession,
    filepath: str,
    digits: int = DISPLAY_DIGITS,
    mode: RoundingMode = RoundingMode.ROUND
) -> None:
    """
    Raises:
        ExportError: If the session has no measurements or the file cannot be written.
    """
    if not session.results:
        raise ExportError(f"'{session.name}' has no measurements to export.")
    image = render_annotated(session, digits, mode)
    if not image.save(filepath, "PNG"):
        raise ExportError(f"Cannot write '{filepath}'.")
    logger.info(f"Annotated image saved: {filepath}")


def measured_export_name(file_name: str) -> str:
    stem, _ = os.path.splitext(os.path.basename(file_name))
    return f"{stem}{MEASURED_SUFFIX}.png"


def unique_file_name(base: str, used: set[str], directory: Optional[str]) -> str:
    """
    ``base`` or ``<stem>_01<ext>``, ``<stem>_02<ext>``... whichever is neither
    in ``used`` nor already present in ``directory``. The chosen name is added
    to ``used``.
    """
    stem, ext = os.path.splitext(base)
    idx = 0
    while True:
        name = base if idx == 0 else f"{stem}_{idx:02d}{ext}"
        idx += 1
        if name in used:
            continue
        if directory and os.path.exists(os.path.join(directory, name)):
            continue
        used.add(name)
        return name
