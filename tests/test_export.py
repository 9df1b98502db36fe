from __future__ import annotations

from pathlib import Path

import pytest
from PySide6.QtGui import QColor, QImage

from imagemeasure.controller.store import MeasurementStore
from imagemeasure.model.errors import ExportError
from imagemeasure.model.export import (
    build_tsv, measured_export_name, render_annotated, save_annotated_png, unique_file_name
)
from imagemeasure.model.measurement import Calibration, Measurement, Point, RoundingMode
from imagemeasure.model.session import ImageSession

from conftest import make_image


def _session(name: str, lengths: list[float], calibration: Calibration | None = None) -> ImageSession:
    session = ImageSession(name, None, make_image(100, 100, value=0))
    session.calibration = calibration
    for length in lengths:
        m = Measurement(
            id=session.next_result_id, p1=Point(10, 50), p2=Point(10 + length, 50), pixel_length=length
        )
        session.add_measurement(m)
    return session


def test_tsv_single_session_oldest_first(qapp) -> None:
    session = _session("a.png", [10.0, 20.0, 33.34], Calibration("µm", 0.5))
    assert build_tsv([session], 4, RoundingMode.ROUND) == (
        "PositionNo\ta.png\n"
        "Unit\tµm\n"
        "1\t5.000\n"
        "2\t10.00\n"
        "3\t16.67"
    )


def test_tsv_single_session_without_results(qapp) -> None:
    assert build_tsv([_session("a.png", [])]) == "PositionNo\ta.png\nUnit\tpx"


def test_tsv_multi_session_padding(qapp) -> None:
    a = _session("a.png", [10.0, 20.0])
    b = _session("b.png", [1.0], Calibration("nm", 2.0))
    empty = _session("c.png", [])
    assert build_tsv([a, empty, b]) == (
        "PositionNo\ta.png\tb.png\n"
        "Unit\tpx\tnm\n"
        "1\t10.00\t2.000\n"
        "2\t20.00\t"
    )


def test_tsv_respects_rounding_mode(qapp) -> None:
    session = _session("a.png", [12.341])
    assert build_tsv([session], 4, RoundingMode.CEIL).endswith("1\t12.35")


def test_render_annotated_draws_lines(qapp) -> None:
    session = _session("a.png", [80.0])
    out = render_annotated(session)
    assert (out.width(), out.height()) == (100, 100)
    assert QColor(out.pixel(30, 50)).blue() > 100
    assert QColor(out.pixel(30, 20)).blue() == 0


def test_save_annotated_png(qapp, tmp_path: Path) -> None:
    path = tmp_path / "out.png"
    save_annotated_png(_session("a.png", [40.0]), str(path))
    assert not QImage(str(path)).isNull()

    with pytest.raises(ExportError):
        save_annotated_png(_session("b.png", []), str(tmp_path / "empty.png"))


def test_export_names(tmp_path: Path) -> None:
    assert measured_export_name("sample.tif") == "sample_measured.png"
    (tmp_path / "x_measured.png").write_bytes(b"")
    used: set[str] = set()
    assert unique_file_name("x_measured.png", used, str(tmp_path)) == "x_measured_01.png"
    assert unique_file_name("x_measured.png", used, str(tmp_path)) == "x_measured_02.png"
    assert unique_file_name("y.png", used, None) == "y.png"


def test_store_save_annotated_all(loaded_store: MeasurementStore, tmp_path: Path) -> None:
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    assert loaded_store.save_annotated_all(str(out_dir)) == 0

    loaded_store.commit_image_point(Point(0, 0))
    loaded_store.commit_image_point(Point(50, 50))
    assert loaded_store.save_annotated_all(str(out_dir)) == 1
    assert (out_dir / "img1_measured.png").exists()

    assert loaded_store.save_annotated(str(out_dir / "single.png"))
    assert (out_dir / "single.png").exists()
