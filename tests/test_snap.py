import numpy as np

from imagemeasure.model.measurement import Point
from imagemeasure.model.snap import LumaBuffer, snap_point, snap_radius

from conftest import make_image


def _edge_buffer(width: int = 40, height: int = 40, edge_x: int = 20) -> LumaBuffer:
    pixels = np.zeros((height, width), dtype=np.uint8)
    pixels[:, edge_x:] = 255
    return LumaBuffer(pixels=pixels)


def test_flat_image_never_moves_point() -> None:
    luma = LumaBuffer(pixels=np.full((50, 50), 137, dtype=np.uint8))
    for p in (Point(3.3, 4.4), Point(25, 25), Point(49, 0)):
        assert snap_point(luma, p, scale=1.0) == p


def test_snaps_to_vertical_edge() -> None:
    luma = _edge_buffer()
    snapped = snap_point(luma, Point(15.0, 20.0), scale=2.0)  # radius 6 px
    assert snapped.x == 19.0
    assert abs(snapped.y - 20.0) <= 6


def test_ties_resolved_row_major() -> None:
    luma = _edge_buffer()
    # Columns 19 and 20 score equally; the topmost row inside the circle wins
    snapped = snap_point(luma, Point(19.5, 20.0), scale=4.0)  # radius 3 px, center (20, 20)
    assert snapped == Point(20.0, 17.0)


def test_edge_outside_radius_is_ignored() -> None:
    luma = _edge_buffer()
    p = Point(5.0, 20.0)
    assert snap_point(luma, p, scale=4.0) == p


def test_tiny_or_missing_buffer() -> None:
    p = Point(1.0, 1.0)
    assert snap_point(None, p, scale=1.0) == p
    assert snap_point(LumaBuffer(pixels=np.zeros((2, 2), dtype=np.uint8)), p, scale=1.0) == p


def test_snap_radius_in_source_pixels() -> None:
    assert snap_radius(1.0, 12) == 12
    assert snap_radius(4.0, 12) == 3
    assert snap_radius(100.0, 12) == 1
    assert snap_radius(0.5, 12) == 24


def test_luma_from_qimage_strips_row_padding(qapp) -> None:
    # 37 is not a multiple of 4, so Qt pads every scan line
    luma = LumaBuffer.from_qimage(make_image(37, 5, edge_x=30))
    assert luma is not None
    assert (luma.width, luma.height) == (37, 5)
    assert luma.pixels[:, :30].max() == 0
    assert luma.pixels[:, 30:].min() == 255


def test_luma_from_null_image(qapp) -> None:
    from PySide6.QtGui import QImage
    assert LumaBuffer.from_qimage(QImage()) is None


def test_large_buffer_matches_cropped_buffer() -> None:
    rng = np.random.default_rng(7)
    pixels = rng.integers(0, 256, size=(1500, 2000), dtype=np.uint8)
    big = LumaBuffer(pixels=pixels)
    # The crop keeps the search window (radius 24) well inside its border
    y0, x0 = 500, 700
    crop = LumaBuffer(pixels=pixels[y0:y0 + 200, x0:x0 + 200].copy())

    p = Point(803.4, 611.7)
    on_big = snap_point(big, p, scale=0.5)
    on_crop = snap_point(crop, Point(p.x - x0, p.y - y0), scale=0.5)
    assert on_big == Point(on_crop.x + x0, on_crop.y + y0)
    assert on_big != p
