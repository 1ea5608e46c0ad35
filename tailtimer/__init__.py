# File: __init__.py
"""TailTimer medication recurrence and adherence engine.

Turns pet medication courses into concrete due doses, pairs them with the
taken/missed logs recorded against them, and aggregates adherence.

Key Features:
- Recurrence evaluation for Daily, Weekly and Custom Interval courses.
- Deterministic dose materialization for any calendar day.
- Exact-key matching of logs to doses, sharing one dose-time resolver.
- Adherence summaries per day, range, pet, trend window and period.
- Record builders, reminder request planning and backup restore helpers.

Call `utils.dt_utils.set_default_timezone()` once at startup with the user's
timezone; every engine call also accepts an explicit `tz`.
"""

from __future__ import annotations

from . import const

__version__ = "1.0.0"

__all__ = ["__version__", "const"]
