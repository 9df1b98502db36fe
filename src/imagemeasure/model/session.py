"""
Image Session
=============
One loaded image together with everything measured on it: its view
transform, optional calibration and the result list (newest first).
"""
from __future__ import annotations

import logging
import os
import uuid
from typing import Optional

from PySide6.QtGui import QImage

from imagemeasure.model.measurement import (
    Calibration, Measurement, ResultsSnapshot, ViewTransform, IDENTITY_TRANSFORM
)
from imagemeasure.model.snap import LumaBuffer

logger = logging.getLogger(__name__)


class ImageSession:
    """
    Per-image state. Sessions are identified by ``id`` so that undo entries
    and other long-lived references never hold the session itself.
    """

    def __init__(self, name: str, path: Optional[str], image: QImage) -> None:
        self.id: str = uuid.uuid4().hex
        self.name = name
        self.path = os.path.abspath(path) if path else None
        self.image = image
        self.pixel_size: tuple[float, float] = (float(image.width()), float(image.height()))

        self.transform: ViewTransform = IDENTITY_TRANSFORM
        self.has_custom_transform: bool = False
        self.calibration: Optional[Calibration] = None
        self.results: list[Measurement] = []
        self.next_result_id: int = 1
        self._luma: Optional[LumaBuffer] = None
        self._luma_built: bool = False

    def __repr__(self) -> str:
        return f"ImageSession(name={self.name!r}, results={len(self.results)})"

    @property
    def luma(self) -> Optional[LumaBuffer]:
        """Luminance buffer for edge snapping, built on first access."""
        if not self._luma_built:
            self._luma = LumaBuffer.from_qimage(self.image)
            self._luma_built = True
        return self._luma

    def snapshot(self, highlight_id: Optional[int]) -> ResultsSnapshot:
        return ResultsSnapshot(
            results=tuple(self.results),
            next_result_id=self.next_result_id,
            highlight_id=highlight_id,
        )

    def restore(self, snapshot: ResultsSnapshot) -> None:
        self.results = list(snapshot.results)
        self.next_result_id = snapshot.next_result_id

    def add_measurement(self, measurement: Measurement) -> None:
        self.results.insert(0, measurement)
        self.next_result_id = max(self.next_result_id, measurement.id) + 1

    def find(self, measurement_id: int) -> Optional[Measurement]:
        for m in self.results:
            if m.id == measurement_id:
                return m
        return None
