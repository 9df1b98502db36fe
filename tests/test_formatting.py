import math

import pytest

from imagemeasure.model.formatting import (
    calibrated_value, format_sig, formatted_length, make_calibration, parse_length,
    round_to_significant
)
from imagemeasure.model.measurement import Calibration, MeasureMode, RoundingMode


def test_format_example_without_calibration() -> None:
    assert format_sig(123.456, 4, RoundingMode.ROUND) == "123.5"
    assert formatted_length(123.456, None, 4, RoundingMode.ROUND) == "123.5 px"


def test_format_example_with_calibration() -> None:
    calibration = Calibration(unit="µm", units_per_pixel=0.01)
    assert calibrated_value(123.456, calibration) == pytest.approx(1.23456)
    assert formatted_length(123.456, calibration, 4, RoundingMode.ROUND) == "1.235 µm"


@pytest.mark.parametrize("value, expected", [
    (1234.5, "1235"),
    (1234.4, "1234"),
    (0.012346, "0.01235"),
    (123456.0, "123500"),
    (-2.5, "-2.500"),
    (9.99951, "10.00"),
])
def test_round_mode(value: float, expected: str) -> None:
    assert format_sig(value, 4, RoundingMode.ROUND) == expected


@pytest.mark.parametrize("value, expected", [
    (1234.1, "1235"),
    (1.1, "1.100"),
    (0.10001, "0.1001"),
    (-1234.1, "-1235"),
])
def test_ceil_mode(value: float, expected: str) -> None:
    assert format_sig(value, 4, RoundingMode.CEIL) == expected


def test_special_values() -> None:
    assert format_sig(0.0) == "0.0000"
    assert format_sig(math.nan) == ""
    assert format_sig(math.inf) == ""
    assert round_to_significant(0.0) == 0.0


def test_parse_length_accepts_comma() -> None:
    assert parse_length(" 1,5 ") == 1.5
    assert parse_length("100") == 100.0


@pytest.mark.parametrize("text", ["", "abc", "0", "-3", "nan", "inf"])
def test_parse_length_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        parse_length(text)


def test_make_calibration() -> None:
    c = make_calibration(100.0, 50.0, "nm")
    assert c == Calibration(unit="nm", units_per_pixel=2.0)
    assert make_calibration(1.0, 4.0, "  ").unit == "µm"


@pytest.mark.parametrize("length, px", [(0.0, 10.0), (-1.0, 10.0), (10.0, 0.0), (math.inf, 10.0)])
def test_make_calibration_rejects(length: float, px: float) -> None:
    with pytest.raises(ValueError):
        make_calibration(length, px, "µm")


def test_modes_are_plain_strings() -> None:
    # Stored as-is in QSettings and log messages
    assert str(RoundingMode.CEIL) == "ceil"
    assert f"{MeasureMode.SCALE}" == "scale"
    assert RoundingMode("round") is RoundingMode.ROUND
