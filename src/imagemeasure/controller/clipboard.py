"""System clipboard access."""
from typing import Protocol

from PySide6.QtGui import QGuiApplication


class Clipboard(Protocol):
    def set_text(self, text: str) -> None: ...


class QtClipboard:
    """Clipboard backed by the running QGuiApplication."""

    def set_text(self, text: str) -> None:
        QGuiApplication.clipboard().setText(text)
