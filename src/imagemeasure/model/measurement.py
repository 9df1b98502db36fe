"""
Measurement Primitives
======================
Value types shared by the whole application: points in image space, finished
measurements, calibrations and the screen transform of a session.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any, Dict, Optional


class MeasureMode(StrEnum):
    """What a completed two-point commit produces."""
    IDLE = "idle"
    MEASURE = "measure"
    SCALE = "scale"

    @property
    def label(self) -> str:
        return {
            MeasureMode.IDLE: "Idle",
            MeasureMode.MEASURE: "Measure",
            MeasureMode.SCALE: "Set scale",
        }[self]


class RoundingMode(StrEnum):
    """Integer rounding policy applied when formatting significant digits."""
    ROUND = "round"
    CEIL = "ceil"

    @property
    def label(self) -> str:
        return "Round half up" if self is RoundingMode.ROUND else "Round up"


@dataclass(frozen=True)
class Point:
    """A point in image-pixel coordinates."""
    x: float
    y: float

    def distance_to(self, other: Point) -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def to_dict(self) -> Dict[str, Any]:
        return {"x": self.x, "y": self.y}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Point:
        return Point(float(data["x"]), float(data["y"]))


@dataclass(frozen=True)
class Measurement:
    """
    A finished point-to-point measurement.

    The length is stored in pixels; conversion to real units happens at
    display time with the calibration of the owning session.
    """
    id: int
    p1: Point
    p2: Point
    pixel_length: float
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class Calibration:
    """Maps a pixel distance to a real-world quantity in a single unit."""
    unit: str
    units_per_pixel: float

    def to_dict(self) -> Dict[str, Any]:
        return {"unit": self.unit, "unitsPerPixel": self.units_per_pixel}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Calibration:
        return Calibration(unit=str(data["unit"]), units_per_pixel=float(data["unitsPerPixel"]))


@dataclass(frozen=True)
class ViewTransform:
    """Image to screen mapping: ``screen = image * scale + (tx, ty)``."""
    scale: float = 1.0
    tx: float = 0.0
    ty: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {"scale": self.scale, "tx": self.tx, "ty": self.ty}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> ViewTransform:
        return ViewTransform(
            scale=float(data.get("scale", 1.0)),
            tx=float(data.get("tx", 0.0)),
            ty=float(data.get("ty", 0.0)),
        )


IDENTITY_TRANSFORM = ViewTransform()


@dataclass(frozen=True)
class ResultsSnapshot:
    """Everything an undo step needs to put a session back."""
    results: tuple[Measurement, ...]
    next_result_id: int
    highlight_id: Optional[int]
