"""
Calibration & Significant-Digit Formatting
==========================================
Converts pixel lengths into calibrated quantities and renders them with a
fixed number of significant digits.

Two rounding policies exist (see RoundingMode):
    ROUND: nearest, halves away from zero (1234.5 -> 1235)
    CEIL:  always away from zero (1234.1 -> 1235)
"""
from __future__ import annotations

import math
from typing import Callable, Optional

from imagemeasure.config import DEFAULT_UNIT, DISPLAY_DIGITS, PIXEL_UNIT
from imagemeasure.model.measurement import Calibration, RoundingMode

# Scaled values this close to an integer are treated as that integer, so
# that binary noise (1.1 * 1000 == 1100.0000000000002) does not trip CEIL.
_INTEGER_SNAP = 1e-9


def _round_half_away(x: float) -> float:
    return math.copysign(math.floor(abs(x) + 0.5), x)


def _ceil_away(x: float) -> float:
    return math.copysign(math.ceil(abs(x)), x)


def _rounder(mode: RoundingMode) -> Callable[[float], float]:
    return _ceil_away if mode is RoundingMode.CEIL else _round_half_away


def _snap_to_integer(x: float) -> float:
    nearest = round(x)
    if abs(x - nearest) <= _INTEGER_SNAP * max(1.0, abs(x)):
        return float(nearest)
    return x


def round_to_significant(value: float, digits: int = DISPLAY_DIGITS,
                         mode: RoundingMode = RoundingMode.ROUND) -> float:
    """
    Round ``value`` to ``digits`` significant digits.

    The value is shifted by ``10**(digits - e - 1)`` (``e`` being its decimal
    exponent) so the kept digits sit before the decimal point, rounded to an
    integer with the selected policy, and shifted back.
    """
    if not math.isfinite(value) or value == 0:
        return value
    exponent = math.floor(math.log10(abs(value)))
    shift = digits - exponent - 1
    rounder = _rounder(mode)
    if shift >= 0:
        factor = 10.0 ** shift
        return rounder(_snap_to_integer(value * factor)) / factor
    factor = 10.0 ** (-shift)
    return rounder(_snap_to_integer(value / factor)) * factor


def format_sig(value: float, digits: int = DISPLAY_DIGITS,
               mode: RoundingMode = RoundingMode.ROUND) -> str:
    """Format with ``digits`` significant digits; non-finite values render empty."""
    if not math.isfinite(value):
        return ""
    zero = "0." + "0" * digits
    if value == 0:
        return zero
    rounded = round_to_significant(value, digits, mode)
    if rounded == 0:
        return zero
    exponent = math.floor(math.log10(abs(rounded)))
    decimals = max(0, digits - exponent - 1)
    return f"{rounded:.{decimals}f}"


def calibrated_value(pixel_length: float, calibration: Optional[Calibration]) -> float:
    if calibration is None:
        return pixel_length
    return pixel_length * calibration.units_per_pixel


def unit_label(calibration: Optional[Calibration]) -> str:
    return calibration.unit if calibration is not None else PIXEL_UNIT


def formatted_length(pixel_length: float, calibration: Optional[Calibration] = None,
                     digits: int = DISPLAY_DIGITS,
                     mode: RoundingMode = RoundingMode.ROUND) -> str:
    """Human readable length, e.g. ``"1.235 µm"`` or ``"123.5 px"``."""
    value = calibrated_value(pixel_length, calibration)
    return f"{format_sig(value, digits, mode)} {unit_label(calibration)}"


def parse_length(text: str) -> float:
    """
    Parse a user-typed real length. A comma is accepted as decimal separator.

    Raises:
        ValueError: If the text is not a finite, positive number.
    """
    normalized = text.strip().replace(",", ".")
    value = float(normalized)
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"Length must be a positive number, got {text!r}")
    return value


def make_calibration(real_length: float, pixel_distance: float, unit: str = "") -> Calibration:
    """
    Build a calibration from a known real length spanning ``pixel_distance`` pixels.

    Raises:
        ValueError: If the length, the distance or the resulting ratio is not
            finite and positive.
    """
    if not math.isfinite(real_length) or real_length <= 0:
        raise ValueError(f"Invalid real length: {real_length}")
    if not math.isfinite(pixel_distance) or pixel_distance <= 0:
        raise ValueError(f"Invalid pixel distance: {pixel_distance}")
    units_per_pixel = real_length / pixel_distance
    if not math.isfinite(units_per_pixel) or units_per_pixel <= 0:
        raise ValueError(f"Invalid scale: {units_per_pixel}")
    unit = unit.strip() or DEFAULT_UNIT
    return Calibration(unit=unit, units_per_pixel=units_per_pixel)
