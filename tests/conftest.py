from __future__ import annotations

import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path
from typing import Optional

import pytest
from PySide6.QtCore import QSettings
from PySide6.QtGui import QColor, QImage, QUndoStack
from PySide6.QtWidgets import QApplication

from imagemeasure.controller.images import DecodedImage
from imagemeasure.controller.preferences import Preferences
from imagemeasure.controller.store import MeasurementStore
from imagemeasure.controller.undo import QtUndoSink
from imagemeasure.model.errors import DecodeError


def make_image(width: int, height: int, value: int = 128, edge_x: Optional[int] = None) -> QImage:
    """Gray image; with ``edge_x`` the columns from there on are white and the rest black."""
    image = QImage(width, height, QImage.Format.Format_Grayscale8)
    if edge_x is None:
        image.fill(QColor(value, value, value))
        return image
    image.fill(QColor(0, 0, 0))
    white = QColor(255, 255, 255)
    for y in range(height):
        for x in range(edge_x, width):
            image.setPixelColor(x, y, white)
    return image


class MemoryClipboard:
    def __init__(self) -> None:
        self.text: Optional[str] = None

    def set_text(self, text: str) -> None:
        self.text = text


class MemoryImageProvider:
    """Serves registered in-memory images by absolute path."""

    def __init__(self) -> None:
        self.images: dict[str, QImage] = {}

    def add(self, path: Path | str, image: QImage) -> str:
        key = os.path.abspath(str(path))
        self.images[key] = image
        return key

    def decode(self, path: str) -> DecodedImage:
        image = self.images.get(os.path.abspath(path))
        if image is None:
            raise DecodeError(path, "not registered")
        return DecodedImage(image=image, width=image.width(), height=image.height())


@pytest.fixture(scope="session")
def qapp() -> QApplication:
    app = QApplication.instance() or QApplication([])
    return app


@pytest.fixture
def settings(tmp_path: Path) -> QSettings:
    return QSettings(str(tmp_path / "prefs.ini"), QSettings.Format.IniFormat)


@pytest.fixture
def provider() -> MemoryImageProvider:
    return MemoryImageProvider()


@pytest.fixture
def clipboard() -> MemoryClipboard:
    return MemoryClipboard()


@pytest.fixture
def undo_stack(qapp: QApplication) -> QUndoStack:
    return QUndoStack()


@pytest.fixture
def autosave_path(tmp_path: Path) -> str:
    return str(tmp_path / "last-project.imeas")


@pytest.fixture
def store(qapp, settings, provider, clipboard, undo_stack, autosave_path) -> MeasurementStore:
    s = MeasurementStore(
        image_provider=provider,
        preferences=Preferences(settings),
        clipboard=clipboard,
        undo_sink=QtUndoSink(undo_stack),
        autosave_path=autosave_path,
    )
    s.update_canvas_size(800, 600)
    yield s
    s.shutdown()


@pytest.fixture
def loaded_store(store: MeasurementStore, provider: MemoryImageProvider, tmp_path: Path) -> MeasurementStore:
    """Store with two 200x100 images, the first one active."""
    paths = [
        provider.add(tmp_path / "img1.png", make_image(200, 100)),
        provider.add(tmp_path / "img2.png", make_image(200, 100, value=60)),
    ]
    assert store.add_image_files(paths) == 2
    return store
