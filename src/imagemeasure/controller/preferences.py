"""User preferences persisted across restarts (QSettings)."""
from __future__ import annotations

import logging
from typing import Optional

from PySide6.QtCore import QSettings

from imagemeasure.config import PREF_CONTINUOUS, PREF_EDGE_SNAP, PREF_ROUNDING
from imagemeasure.model.measurement import RoundingMode

logger = logging.getLogger(__name__)


class Preferences:
    """Rounding mode, continuous measurement and edge snapping flags."""

    def __init__(self, settings: Optional[QSettings] = None) -> None:
        self._settings = settings if settings is not None else QSettings()

    @property
    def rounding_mode(self) -> RoundingMode:
        raw = self._settings.value(PREF_ROUNDING, RoundingMode.ROUND.value, type=str)
        try:
            return RoundingMode(raw)
        except ValueError:
            logger.warning(f"Unknown rounding mode in settings: {raw!r}")
            return RoundingMode.ROUND

    @rounding_mode.setter
    def rounding_mode(self, mode: RoundingMode) -> None:
        self._settings.setValue(PREF_ROUNDING, mode.value)

    @property
    def continuous_measure(self) -> bool:
        return bool(self._settings.value(PREF_CONTINUOUS, False, type=bool))

    @continuous_measure.setter
    def continuous_measure(self, enabled: bool) -> None:
        self._settings.setValue(PREF_CONTINUOUS, bool(enabled))

    @property
    def edge_snap(self) -> bool:
        return bool(self._settings.value(PREF_EDGE_SNAP, False, type=bool))

    @edge_snap.setter
    def edge_snap(self, enabled: bool) -> None:
        self._settings.setValue(PREF_EDGE_SNAP, bool(enabled))

    def sync(self) -> None:
        self._settings.sync()
