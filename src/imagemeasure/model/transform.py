"""
Screen <-> image coordinate math.

All functions are pure: they take a ViewTransform and return a new one (or a
point), the session store decides where the result is stored.
"""
from __future__ import annotations

import math
from typing import Optional

from imagemeasure.config import MAX_SCALE, MIN_SCALE
from imagemeasure.model.measurement import Point, ViewTransform


def clamp(value: float, min_v: float, max_v: float) -> float:
    return max(min_v, min(max_v, value))


def image_from_screen(p: Point, t: ViewTransform) -> Point:
    return Point((p.x - t.tx) / t.scale, (p.y - t.ty) / t.scale)


def screen_from_image(p: Point, t: ViewTransform) -> Point:
    return Point(p.x * t.scale + t.tx, p.y * t.scale + t.ty)


def fit_transform(
    pixel_size: tuple[float, float],
    canvas_size: tuple[float, float]
) -> Optional[ViewTransform]:
    """
    Largest scale at which the whole image fits the canvas, centered.

    Args:
        pixel_size: (width, height) of the image in pixels.
        canvas_size: (width, height) of the drawing area in screen pixels.

    Returns:
        The fitted transform, or None if either size is degenerate.
    """
    iw, ih = pixel_size
    cw, ch = canvas_size
    if cw <= 0 or ch <= 0 or iw <= 0 or ih <= 0:
        return None
    scale = min(cw / iw, ch / ih)
    tx = (cw - iw * scale) * 0.5
    ty = (ch - ih * scale) * 0.5
    return ViewTransform(scale=scale, tx=tx, ty=ty)


def pan_transform(t: ViewTransform, dx: float, dy: float) -> ViewTransform:
    return ViewTransform(scale=t.scale, tx=t.tx + dx, ty=t.ty + dy)


def zoom_transform(
    t: ViewTransform,
    anchor: Point,
    factor: float,
    min_scale: float = MIN_SCALE,
    max_scale: float = MAX_SCALE
) -> ViewTransform:
    """
    Rescale around a screen point so that the image point under it stays put.

    A non-finite or non-positive factor leaves the transform unchanged.
    """
    if not math.isfinite(factor) or factor <= 0:
        return t
    anchor_img = image_from_screen(anchor, t)
    next_scale = clamp(t.scale * factor, min_scale, max_scale)
    return ViewTransform(
        scale=next_scale,
        tx=anchor.x - anchor_img.x * next_scale,
        ty=anchor.y - anchor_img.y * next_scale,
    )


def clamp_point(p: Point, pixel_size: tuple[float, float]) -> Point:
    """Clamp a point into the [0, W] x [0, H] image rectangle."""
    w, h = pixel_size
    return Point(clamp(p.x, 0.0, w), clamp(p.y, 0.0, h))


def distance(a: Point, b: Point) -> float:
    return a.distance_to(b)
