import math

import pytest

from imagemeasure.config import MAX_SCALE, MIN_SCALE
from imagemeasure.model.measurement import Point, ViewTransform
from imagemeasure.model.transform import (
    clamp_point, distance, fit_transform, image_from_screen, pan_transform,
    screen_from_image, zoom_transform
)

TRANSFORMS = [
    ViewTransform(),
    ViewTransform(scale=2.5, tx=-40.0, ty=13.25),
    ViewTransform(scale=0.05, tx=1000.0, ty=-3.0),
    ViewTransform(scale=80.0, tx=0.5, ty=0.5),
]


@pytest.mark.parametrize("t", TRANSFORMS)
def test_screen_image_round_trip(t: ViewTransform) -> None:
    for p in (Point(0, 0), Point(123.4, -56.7), Point(1e4, 3.3)):
        back = screen_from_image(image_from_screen(p, t), t)
        assert back.x == pytest.approx(p.x, abs=1e-9)
        assert back.y == pytest.approx(p.y, abs=1e-9)


@pytest.mark.parametrize("factor", [0.5, 1.1, 3.0, 1e-6, 1e6])
def test_zoom_keeps_anchor_fixed(factor: float) -> None:
    t = ViewTransform(scale=1.5, tx=20.0, ty=-10.0)
    anchor = Point(310.0, 205.0)
    before = image_from_screen(anchor, t)
    after = image_from_screen(anchor, zoom_transform(t, anchor, factor))
    assert after.x == pytest.approx(before.x)
    assert after.y == pytest.approx(before.y)


def test_zoom_scale_stays_clamped() -> None:
    t = ViewTransform()
    for _ in range(100):
        t = zoom_transform(t, Point(10, 10), 1.7)
    assert t.scale == MAX_SCALE
    for _ in range(100):
        t = zoom_transform(t, Point(10, 10), 0.3)
    assert t.scale == MIN_SCALE


@pytest.mark.parametrize("factor", [0.0, -2.0, math.inf, math.nan])
def test_zoom_rejects_invalid_factor(factor: float) -> None:
    t = ViewTransform(scale=2.0, tx=1.0, ty=2.0)
    assert zoom_transform(t, Point(5, 5), factor) is t


def test_fit_centers_image() -> None:
    t = fit_transform((200, 100), (800, 600))
    assert t == ViewTransform(scale=4.0, tx=0.0, ty=100.0)


def test_fit_degenerate_sizes() -> None:
    assert fit_transform((200, 100), (0, 600)) is None
    assert fit_transform((0, 100), (800, 600)) is None


def test_pan_moves_translation_only() -> None:
    t = pan_transform(ViewTransform(scale=3.0, tx=1.0, ty=1.0), 4.0, -6.0)
    assert t == ViewTransform(scale=3.0, tx=5.0, ty=-5.0)


def test_clamp_point_and_distance() -> None:
    assert clamp_point(Point(-5, 250), (200, 100)) == Point(0, 100)
    assert clamp_point(Point(50, 50), (200, 100)) == Point(50, 50)
    assert distance(Point(0, 0), Point(3, 4)) == 5.0
