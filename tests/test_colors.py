"""Tests for the color model."""

from __future__ import annotations

import pytest

from custom_components.shelly_rgbw_pm.colors import (
    byte_to_percent,
    clamp_hue,
    clamp_percent,
    hsv_to_rgb,
    percent_to_byte,
    rgb_to_hsv,
    round_half_up,
)


class TestHsvToRgb:
    """Test hue/saturation/value to RGB conversion."""

    @pytest.mark.parametrize(
        ("hsv", "rgb"),
        [
            ((0, 0, 100), (255, 255, 255)),
            ((120, 100, 100), (0, 255, 0)),
            ((240, 100, 50), (0, 0, 128)),
            ((0, 100, 100), (255, 0, 0)),
            ((0, 0, 0), (0, 0, 0)),
        ],
    )
    def test_reference_points(self, hsv, rgb) -> None:
        """Known colors convert to their exact channel values."""
        assert hsv_to_rgb(*hsv) == rgb

    def test_hue_360_wraps_to_red(self) -> None:
        """A full turn of hue is the same color as hue 0."""
        assert hsv_to_rgb(360, 100, 100) == hsv_to_rgb(0, 100, 100)

    def test_out_of_range_input_is_clamped(self) -> None:
        """Saturation and value above 100 behave like 100."""
        assert hsv_to_rgb(120, 250, 400) == (0, 255, 0)


class TestRgbToHsv:
    """Test RGB to hue/saturation/value conversion."""

    def test_white(self) -> None:
        """White has no hue or saturation."""
        assert rgb_to_hsv(255, 255, 255) == (0, 0, 100)

    def test_primary_blue(self) -> None:
        """Pure blue sits at 240 degrees."""
        assert rgb_to_hsv(0, 0, 255) == (240, 100, 100)

    @pytest.mark.parametrize(
        "rgb", [(255, 255, 255), (0, 255, 0), (0, 0, 128), (200, 40, 90)]
    )
    def test_round_trip_within_one_unit(self, rgb) -> None:
        """Converting to HSV and back stays within one unit per channel."""
        restored = hsv_to_rgb(*rgb_to_hsv(*rgb))
        assert all(abs(a - b) <= 1 for a, b in zip(restored, rgb, strict=True))


class TestClamping:
    """Test clamping and scaling helpers."""

    @pytest.mark.parametrize(("value", "expected"), [(-5, 0), (150, 100), (42, 42)])
    def test_clamp_percent(self, value, expected) -> None:
        """Percentages are clamped into 0-100."""
        assert clamp_percent(value) == expected

    @pytest.mark.parametrize(("value", "expected"), [(400, 360), (-10, 0), (90, 90)])
    def test_clamp_hue(self, value, expected) -> None:
        """Hues are clamped into 0-360."""
        assert clamp_hue(value) == expected

    @pytest.mark.parametrize("value", [None, "abc", float("nan"), float("inf")])
    def test_non_numeric_maps_to_zero(self, value) -> None:
        """Values that are not finite numbers clamp to 0."""
        assert clamp_percent(value) == 0
        assert clamp_hue(value) == 0

    def test_round_half_up(self) -> None:
        """Ties round upwards."""
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4) == 2

    def test_percent_byte_scaling(self) -> None:
        """Percent and byte scales map onto each other."""
        assert percent_to_byte(100) == 255
        assert percent_to_byte(60) == 153
        assert percent_to_byte(0) == 0
        assert byte_to_percent(255) == 100
        assert byte_to_percent(128) == 50
