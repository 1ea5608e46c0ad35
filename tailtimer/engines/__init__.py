"""Engine modules for TailTimer.

Contains the pure computation engines:
- schedule_engine: Recurrence evaluation and dose materialization
- dose_engine: Dose identity and log matching
- statistics_engine: Adherence aggregation
"""

# Use relative imports within package to avoid mypy module resolution issues
from .dose_engine import (
    MatchedDose,
    dose_key,
    find_log,
    index_logs,
    log_key,
    match_doses,
    split_by_completion,
    upcoming_and_recent,
)
from .schedule_engine import (
    RecurrenceEngine,
    ScheduledDose,
    active_dates,
    doses_on,
    is_medication_active,
)
from .statistics_engine import (
    AdherenceSummary,
    DailyAdherence,
    PetAdherence,
    PetHistory,
    StatisticsEngine,
    filter_medications,
)

__all__ = [
    "AdherenceSummary",
    "DailyAdherence",
    "MatchedDose",
    "PetAdherence",
    "PetHistory",
    "RecurrenceEngine",
    "ScheduledDose",
    "StatisticsEngine",
    "active_dates",
    "dose_key",
    "doses_on",
    "filter_medications",
    "find_log",
    "index_logs",
    "is_medication_active",
    "log_key",
    "match_doses",
    "split_by_completion",
    "upcoming_and_recent",
]
