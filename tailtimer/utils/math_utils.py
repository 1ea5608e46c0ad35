# File: utils/math_utils.py
"""Math and calculation utilities for TailTimer.

Pure Python math functions with no package-internal dependencies.

Functions:
    - round_percentage: Consistent rounding to configured precision
    - calculate_percentage: Ratio as a percentage with a no-data default
    - clamp: Bound a value to a range
"""

from __future__ import annotations

import logging

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

# Default float precision for percentage rounding
DATA_FLOAT_PRECISION = 2


# ==============================================================================
# Percentage Functions
# ==============================================================================


def round_percentage(value: float, precision: int = DATA_FLOAT_PRECISION) -> float:
    """Round a percentage value to the configured precision.

    Examples:
        round_percentage(66.6666) → 66.67
        round_percentage(100.0) → 100.0
    """
    return round(value, precision)


def calculate_percentage(
    part: float,
    whole: float,
    default: float = 0.0,
    precision: int = DATA_FLOAT_PRECISION,
) -> float:
    """Calculate part/whole as a percentage with proper rounding.

    Args:
        part: Numerator (e.g., taken doses)
        whole: Denominator (e.g., taken + missed doses)
        default: Value returned when whole is zero or negative
        precision: Number of decimal places for rounding

    Returns:
        Percentage (0-100) rounded to precision, or default if whole <= 0

    Examples:
        calculate_percentage(1, 1) → 100.0
        calculate_percentage(1, 3) → 33.33
        calculate_percentage(0, 0) → 0.0  # Division by zero protection
        calculate_percentage(0, 0, default=100.0) → 100.0
    """
    if whole <= 0:
        return default
    return round_percentage((part / whole) * 100, precision)


def clamp(value: float, min_val: float, max_val: float) -> float:
    """Clamp a value between minimum and maximum bounds.

    Examples:
        clamp(150, 0, 100) → 100
        clamp(-10, 0, 100) → 0
    """
    return max(min_val, min(value, max_val))
