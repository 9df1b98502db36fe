"""
Image Provider
==============
Decodes image files into QImages and lists the images of a folder.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Protocol

from PySide6.QtGui import QImage, QImageReader

from imagemeasure.config import SUPPORTED_EXTENSIONS
from imagemeasure.model.errors import DecodeError

logger = logging.getLogger(__name__)


@dataclass
class DecodedImage:
    image: QImage
    width: int
    height: int


class ImageProvider(Protocol):
    def decode(self, path: str) -> DecodedImage: ...


class QtImageProvider:
    """Decodes every format the installed Qt image plugins support."""

    def decode(self, path: str) -> DecodedImage:
        if not os.path.isfile(path):
            raise DecodeError(path, "file not found")
        reader = QImageReader(path)
        image = reader.read()
        if image.isNull():
            raise DecodeError(path, reader.errorString())
        logger.debug(f"Decoded {path} ({image.width()}x{image.height()}).")
        return DecodedImage(image=image, width=image.width(), height=image.height())


def is_supported_image(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in SUPPORTED_EXTENSIONS


def _natural_key(path: str) -> list:
    parts = re.split(r"(\d+)", os.path.basename(path).lower())
    return [int(p) if p.isdigit() else p for p in parts]


def natural_sort(paths: list[str]) -> list[str]:
    """Sort by file name the way a file browser does ("img2" before "img10")."""
    return sorted(paths, key=_natural_key)


def list_image_files(directory: str) -> list[str]:
    """All supported images below ``directory``, hidden entries skipped."""
    files: list[str] = []
    for root, dirs, names in os.walk(directory):
        dirs[:] = [d for d in dirs if not d.startswith(".")]
        for name in names:
            if name.startswith("."):
                continue
            path = os.path.join(root, name)
            if os.path.isfile(path) and is_supported_image(path):
                files.append(os.path.abspath(path))
    return natural_sort(files)
