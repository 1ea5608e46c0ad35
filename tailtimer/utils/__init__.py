# File: utils/__init__.py
"""Pure Python utilities for TailTimer.

Functions here import nothing from the rest of the package and can be unit
tested in isolation.

Submodules:
    - dt_utils: Date/time parsing, local-day normalization, dose time resolution
    - math_utils: Percentage rounding and ratio calculations

Usage:
    from . import dt_utils
    from .math_utils import calculate_percentage
"""

from . import dt_utils, math_utils

__all__ = ["dt_utils", "math_utils"]
