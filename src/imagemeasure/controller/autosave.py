"""
Debounced Autosave
==================
Coalesces bursts of edits into a single write of the project document.

Every mutation calls ``schedule()``, which bumps a revision counter. The first
call starts a single-shot timer; when it fires and the revision moved in the
meantime the timer is simply restarted, otherwise the write callback runs.
The write happens from the Qt event loop, never inside the caller that
triggered it.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Signal

from imagemeasure.config import AUTOSAVE_DELAY_MS

logger = logging.getLogger(__name__)


class AutosaveScheduler(QObject):
    saved = Signal()

    def __init__(
        self,
        write: Callable[[], None],
        delay_ms: int = AUTOSAVE_DELAY_MS,
        parent: Optional[QObject] = None
    ) -> None:
        super().__init__(parent)
        self._write = write
        self._revision = 0
        self._armed_revision = 0
        self._pending = False

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(delay_ms)
        self._timer.timeout.connect(self._on_timeout)

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def pending(self) -> bool:
        return self._pending

    def schedule(self) -> None:
        self._revision += 1
        if self._pending:
            return
        self._pending = True
        self._armed_revision = self._revision
        self._timer.start()

    def flush(self) -> None:
        """Write immediately if a save is waiting."""
        if not self._pending:
            return
        self._timer.stop()
        self._pending = False
        self._run_write()

    def cancel(self) -> None:
        """Drop the outstanding wait without writing."""
        self._timer.stop()
        self._pending = False

    def _on_timeout(self) -> None:
        if self._revision != self._armed_revision:
            # Edited during the wait, wait again
            self._armed_revision = self._revision
            self._timer.start()
            return
        self._pending = False
        self._run_write()

    def _run_write(self) -> None:
        try:
            self._write()
        except Exception as e:
            # Best effort: autosave failures are never shown to the user
            logger.warning(f"Autosave failed: {e}")
            return
        logger.debug(f"Autosave written (revision {self._revision}).")
        self.saved.emit()
