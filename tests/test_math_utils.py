"""Tests for utils/math_utils.py percentage helpers."""

import pytest

from tailtimer.utils.math_utils import calculate_percentage, clamp, round_percentage


class TestPercentages:
    """Percentage rounding and the zero-denominator default."""

    @pytest.mark.parametrize(
        ("part", "whole", "expected"),
        [
            (1, 1, 100.0),
            (1, 3, 33.33),
            (2, 3, 66.67),
            (0, 5, 0.0),
        ],
    )
    def test_calculate(self, part: int, whole: int, expected: float) -> None:
        """Ratios are expressed as percentages with two decimals."""
        assert calculate_percentage(part, whole) == expected

    def test_zero_whole_returns_default(self) -> None:
        """No denominator returns the supplied default."""
        assert calculate_percentage(0, 0) == 0.0
        assert calculate_percentage(0, 0, default=100.0) == 100.0

    def test_round(self) -> None:
        """Rounding uses the configured precision."""
        assert round_percentage(66.6666) == 66.67
        assert round_percentage(66.6666, precision=0) == 67.0


class TestClamp:
    """Range bounding."""

    def test_bounds(self) -> None:
        """Values outside the range are pulled to the nearest bound."""
        assert clamp(150, 0, 100) == 100
        assert clamp(-10, 0, 100) == 0
        assert clamp(42.5, 0, 100) == 42.5
