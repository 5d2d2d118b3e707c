"""Tests for core/control/scaling.py — linear rescaling of controller values.

Covers:
- Endpoints and the reference value (100 → 8 on 0..127 → 0..10)
- Monotonicity over the full 7-bit range
- Half-up rounding (not banker's rounding)
- Inverted and offset output ranges, extrapolation outside [min, max]
- ScalingRangeError when min == max
"""

from __future__ import annotations

import pytest

from core.control.errors import ControlConfigError, ScalingRangeError
from core.control.scaling import scale


class TestScaleDefaults:
    """Default range 0..127 → 0..10."""

    def test_zero_maps_to_zero(self) -> None:
        assert scale(0) == 0

    def test_max_maps_to_ten(self) -> None:
        assert scale(127) == 10

    def test_reference_value(self) -> None:
        # 100 / 127 * 10 = 7.87
        assert scale(100) == 8

    def test_midpoint(self) -> None:
        assert scale(64) == 5

    def test_monotonic_over_full_range(self) -> None:
        values = [scale(v) for v in range(128)]
        assert values == sorted(values)

    def test_returns_int(self) -> None:
        assert isinstance(scale(50), int)


class TestScaleRounding:
    """Halves round up, like controllers and JavaScript's Math.round."""

    def test_half_rounds_up(self) -> None:
        # 1 / 2 * 5 = 2.5
        assert scale(1, 0, 2, 0, 5) == 3

    def test_other_half_rounds_up(self) -> None:
        # 9 / 2 * 1 = 4.5; round() would give 4
        assert scale(9, 0, 2, 0, 1) == 5

    def test_below_half_rounds_down(self) -> None:
        assert scale(1, 0, 10, 0, 4) == 0


class TestScaleRanges:
    """Custom input and output ranges."""

    def test_percentage_output(self) -> None:
        assert scale(127, 0, 127, 0, 100) == 100
        assert scale(64, 0, 127, 0, 100) == 50

    def test_inverted_output(self) -> None:
        assert scale(0, 0, 127, 10, 0) == 10
        assert scale(127, 0, 127, 10, 0) == 0

    def test_offset_input(self) -> None:
        assert scale(20, 20, 120, 0, 10) == 0
        assert scale(120, 20, 120, 0, 10) == 10

    def test_no_clamping_outside_range(self) -> None:
        assert scale(127, 0, 100, 0, 10) == 13


class TestScaleErrors:
    """Empty source range."""

    def test_min_equals_max_raises(self) -> None:
        with pytest.raises(ScalingRangeError, match="min=5"):
            scale(5, 5, 5, 0, 10)

    def test_error_is_config_error(self) -> None:
        with pytest.raises(ControlConfigError):
            scale(0, 1, 1)

    def test_error_keeps_range(self) -> None:
        with pytest.raises(ScalingRangeError) as info:
            scale(0, 3, 3)
        assert info.value.min_value == 3
        assert info.value.max_value == 3
