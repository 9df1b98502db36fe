"""
Application Initialization
==========================
This module wires the store, the undo history and the main window together
and starts the Qt Event Loop.

Why is this file needed?
------------------------
It acts as the "Dependency Injection" root. It:
1. Instantiates the Measurement Store with its capabilities (image decoding,
   clipboard, preferences, undo stack, autosave location).
2. Opens the images, folders or project passed on the command line, or
   else restores the previous session from the autosave document.
3. Instantiates the Main Window (View) and passes the store into it.
"""
import logging
import os
import sys

from PySide6.QtGui import QUndoStack

from imagemeasure.app.application import create_app
from imagemeasure.config import get_autosave_path, get_log_path
from imagemeasure.controller.clipboard import QtClipboard
from imagemeasure.controller.store import MeasurementStore
from imagemeasure.controller.undo import QtUndoSink
from imagemeasure.logging_config import setup_logging
from imagemeasure.view.main_window import MainWindow

logger = logging.getLogger(__name__)


def main() -> None:
    # 1. Create the Qt Application (names the per-user data directory)
    app = create_app()

    # 2. Setup Logging (Console + rotating file beside the autosave)
    # IMAGEMEASURE_DEBUG=1 switches to debug output
    level = logging.DEBUG if os.environ.get("IMAGEMEASURE_DEBUG") else logging.INFO
    setup_logging(level=level, log_file=get_log_path())

    # 3. Initialize the Store
    undo_stack = QUndoStack()
    store = MeasurementStore(
        clipboard=QtClipboard(),
        undo_sink=QtUndoSink(undo_stack),
        autosave_path=get_autosave_path(),
    )
    # Paths on the command line replace the recovered session
    paths = app.arguments()[1:]
    if paths and store.open_paths(paths):
        logger.info(f"Opened {len(paths)} path(s) from the command line.")
    elif store.restore_autosave():
        logger.info("Previous session restored.")

    # 4. Initialize the Main Window, passing the store
    window = MainWindow(store, undo_stack)
    window.show()

    # 5. Start Event Loop
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
