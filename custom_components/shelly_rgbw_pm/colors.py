"""Color conversions between hue/saturation/value and RGB channels.

Hue is expressed in degrees (0-360), saturation, value and brightness in
percent (0-100) and channels in bytes (0-255). Every output is rounded
half-up to the nearest integer.
"""

from __future__ import annotations

import colorsys
import math
from typing import Any


def _to_float(value: Any) -> float | None:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None

    if not math.isfinite(number):
        return None

    return number


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties away from zero for positives."""
    return math.floor(value + 0.5)


def clamp_percent(value: Any) -> int:
    """Clamp a value into 0-100; non-numeric input maps to 0."""
    number = _to_float(value)
    if number is None:
        return 0
    return max(0, min(100, round_half_up(number)))


def clamp_hue(value: Any) -> int:
    """Clamp a hue into 0-360; non-numeric input maps to 0."""
    number = _to_float(value)
    if number is None:
        return 0
    return max(0, min(360, round_half_up(number)))


def clamp_byte(value: Any) -> int:
    """Clamp a channel value into 0-255; non-numeric input maps to 0."""
    number = _to_float(value)
    if number is None:
        return 0
    return max(0, min(255, round_half_up(number)))


def percent_to_byte(value: Any) -> int:
    """Scale a 0-100 percentage to a 0-255 channel value."""
    return clamp_byte(clamp_percent(value) / 100 * 255)


def byte_to_percent(value: Any) -> int:
    """Scale a 0-255 channel value to a 0-100 percentage."""
    return clamp_percent(clamp_byte(value) / 255 * 100)


def hsv_to_rgb(hue: Any, saturation: Any, value: Any) -> tuple[int, int, int]:
    """Convert hue (0-360), saturation and value (0-100) to RGB bytes."""
    red, green, blue = colorsys.hsv_to_rgb(
        (clamp_hue(hue) % 360) / 360,
        clamp_percent(saturation) / 100,
        clamp_percent(value) / 100,
    )
    return clamp_byte(red * 255), clamp_byte(green * 255), clamp_byte(blue * 255)


def rgb_to_hsv(red: Any, green: Any, blue: Any) -> tuple[int, int, int]:
    """Convert RGB bytes to hue (0-359), saturation and value (0-100)."""
    hue, saturation, value = colorsys.rgb_to_hsv(
        clamp_byte(red) / 255, clamp_byte(green) / 255, clamp_byte(blue) / 255
    )
    return (
        round_half_up(hue * 360) % 360,
        round_half_up(saturation * 100),
        round_half_up(value * 100),
    )
