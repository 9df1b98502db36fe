from __future__ import annotations

from pathlib import Path

import pytest

from imagemeasure.controller.images import QtImageProvider, is_supported_image, list_image_files, natural_sort
from imagemeasure.model.errors import DecodeError

from conftest import make_image


def test_list_image_files_natural_order(qapp, tmp_path: Path) -> None:
    for name in ("img10.png", "IMG2.PNG", "img1.jpg", "notes.txt", ".hidden.png"):
        (tmp_path / name).write_bytes(b"")
    sub = tmp_path / "sub"
    sub.mkdir()
    (sub / "deep.tif").write_bytes(b"")
    hidden_dir = tmp_path / ".cache"
    hidden_dir.mkdir()
    (hidden_dir / "thumb.png").write_bytes(b"")

    names = [Path(p).name for p in list_image_files(str(tmp_path))]
    assert names == ["deep.tif", "img1.jpg", "IMG2.PNG", "img10.png"]


def test_natural_sort(qapp) -> None:
    assert natural_sort(["/a/x10.png", "/b/x9.png", "/c/X1.png"]) == ["/c/X1.png", "/b/x9.png", "/a/x10.png"]


def test_is_supported_image() -> None:
    assert is_supported_image("a.HEIC")
    assert is_supported_image("a.webp")
    assert not is_supported_image("a.pdf")


def test_qt_provider_decodes_png(qapp, tmp_path: Path) -> None:
    path = tmp_path / "a.png"
    assert make_image(31, 17).save(str(path), "PNG")
    decoded = QtImageProvider().decode(str(path))
    assert (decoded.width, decoded.height) == (31, 17)


def test_qt_provider_errors(qapp, tmp_path: Path) -> None:
    with pytest.raises(DecodeError):
        QtImageProvider().decode(str(tmp_path / "missing.png"))
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"not an image")
    with pytest.raises(DecodeError):
        QtImageProvider().decode(str(broken))
