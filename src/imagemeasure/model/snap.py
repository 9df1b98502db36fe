"""
Edge Snap Engine
================
Moves a clicked point onto the nearby pixel with the strongest luminance
gradient, which makes clicks on noisy SEM edges reproducible.

The search works on an 8-bit gray copy of the image (LumaBuffer) that is
built once per session at native resolution without filtering.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
from PySide6.QtGui import QImage

from imagemeasure.config import SNAP_MIN_SCORE, SNAP_RADIUS_SCREEN
from imagemeasure.model.measurement import Point

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass
class LumaBuffer:
    """Single channel 8-bit luminance, indexed as ``pixels[y, x]``."""
    pixels: npt.NDArray[np.uint8]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @staticmethod
    def from_qimage(image: QImage) -> Optional[LumaBuffer]:
        """
        Rasterize ``image`` into an 8-bit gray buffer at native resolution.

        Returns None for null or empty images.
        """
        if image is None or image.isNull() or image.width() <= 0 or image.height() <= 0:
            return None
        gray = image.convertToFormat(QImage.Format.Format_Grayscale8)
        width, height = gray.width(), gray.height()
        stride = gray.bytesPerLine()
        raw = np.frombuffer(gray.constBits(), dtype=np.uint8, count=stride * height)
        # Rows are padded to 32-bit boundaries, drop the padding
        pixels = raw.reshape(height, stride)[:, :width].copy()
        logger.debug(f"Luminance buffer built ({width}x{height}).")
        return LumaBuffer(pixels=pixels)


def snap_radius(scale: float, radius_screen: float = SNAP_RADIUS_SCREEN) -> int:
    """Screen-space search radius converted to source pixels (at least 1)."""
    if not np.isfinite(scale) or scale <= 0:
        return 1
    return max(1, int(_round_half_away(radius_screen / scale)))


def _round_half_away(x: float) -> float:
    return float(np.sign(x) * np.floor(abs(x) + 0.5))


def snap_point(
    luma: Optional[LumaBuffer],
    point: Point,
    scale: float,
    radius_screen: float = SNAP_RADIUS_SCREEN,
    min_score: float = SNAP_MIN_SCORE
) -> Point:
    """
    Return the pixel of locally maximal gradient near ``point``.

    Args:
        luma: Luminance buffer of the image (None -> no snapping).
        point: Candidate point in image coordinates.
        scale: Current zoom of the view, used to convert the radius.
        radius_screen: Search radius in screen pixels.
        min_score: Weakest gradient accepted as an edge.

    Returns:
        The snapped pixel (integer coordinates), or ``point`` unchanged when
        no pixel in the search window reaches ``min_score``.
    """
    if luma is None or luma.width < 3 or luma.height < 3:
        return point
    if not (np.isfinite(point.x) and np.isfinite(point.y)):
        return point

    w, h = luma.width, luma.height
    cx = int(min(max(_round_half_away(point.x), 1), w - 2))
    cy = int(min(max(_round_half_away(point.y), 1), h - 2))

    radius = snap_radius(scale, radius_screen)
    min_x, max_x = max(1, cx - radius), min(w - 2, cx + radius)
    min_y, max_y = max(1, cy - radius), min(h - 2, cy + radius)

    # Search window plus a 1 px border for the central differences
    win = luma.pixels[min_y - 1:max_y + 2, min_x - 1:max_x + 2].astype(np.int32)
    ys = np.arange(min_y, max_y + 1)
    xs = np.arange(min_x, max_x + 1)
    gx = np.abs(win[1:-1, 2:] - win[1:-1, :-2])
    gy = np.abs(win[2:, 1:-1] - win[:-2, 1:-1])
    score = (gx + gy).astype(np.float64)

    dy = (ys - cy)[:, np.newaxis]
    dx = (xs - cx)[np.newaxis, :]
    score[dx * dx + dy * dy > radius * radius] = -1.0

    # argmax returns the first maximum in row-major order (y, then x)
    best = int(np.argmax(score))
    row, col = divmod(best, score.shape[1])
    best_score = score[row, col]
    if best_score < min_score:
        return point
    return Point(float(xs[col]), float(ys[row]))
