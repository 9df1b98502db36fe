"""
Undo Coordinator
================
Every mutation of a session's result list is recorded as a pair of full
snapshots (before / after). Undo puts the "before" snapshot back, redo the
"after" one.

Why snapshots?
--------------
Result lists are small, so copying them is cheaper to reason about than
diffs. Entries only carry the session id, never the session object, so a
closed session simply makes its entries no-ops.

Classes:
    UndoEntry: The recorded step.
    UndoSink: What the store needs from an undo stack.
    QtUndoSink: Adapter onto a QUndoStack.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from PySide6.QtGui import QUndoCommand, QUndoStack

from imagemeasure.model.measurement import ResultsSnapshot

logger = logging.getLogger(__name__)

RestoreFn = Callable[[str, ResultsSnapshot], None]


@dataclass(frozen=True)
class UndoEntry:
    session_id: str
    before: ResultsSnapshot
    after: ResultsSnapshot
    label: str = ""


class UndoSink(Protocol):
    def push(self, entry: UndoEntry, restore: RestoreFn) -> None: ...


class SnapshotCommand(QUndoCommand):
    """QUndoCommand that swaps between two result snapshots of one session."""

    def __init__(self, entry: UndoEntry, restore: RestoreFn, parent: Optional[QUndoCommand] = None) -> None:
        super().__init__(entry.label, parent)
        self.entry = entry
        self._restore = restore
        # QUndoStack.push() calls redo() right away; the change is already applied
        self._first_redo = True

    def undo(self) -> None:
        self._apply(self.entry.before)

    def redo(self) -> None:
        if self._first_redo:
            self._first_redo = False
            return
        self._apply(self.entry.after)

    def _apply(self, snapshot: ResultsSnapshot) -> None:
        try:
            self._restore(self.entry.session_id, snapshot)
        except Exception as e:
            # Undo must never interrupt the interactive flow
            logger.exception(f"Failed to restore snapshot '{self.entry.label}': {e}")


class QtUndoSink:
    """Registers undo entries on a QUndoStack (one global history)."""

    def __init__(self, stack: Optional[QUndoStack] = None) -> None:
        self.stack = stack if stack is not None else QUndoStack()

    def push(self, entry: UndoEntry, restore: RestoreFn) -> None:
        logger.debug(f"Undo step recorded: {entry.label}")
        self.stack.push(SnapshotCommand(entry, restore))
